"""Instruction execution for the LC-3 emulator.

Executors run after the fetch has already advanced PC, so PC-relative
addresses are computed from the address of the next instruction.
"""

from typing import Callable, Optional

from .console import Console
from .cpu import CPU, Flag
from .decoder import (
    BaseOffset,
    Branch,
    Instruction,
    Jump,
    JumpSubroutine,
    Not,
    Opcode,
    Operate,
    PCRelative,
    Reserved,
    Trap,
)
from .errors import ReservedOpcode
from .memory import Memory
from . import traps


def _operand(instr: Operate, cpu: CPU) -> int:
    """Second ADD/AND operand: imm5 or SR2's value."""
    if instr.immediate:
        return instr.imm5
    return cpu.reg[instr.sr2]


def _pc_address(instr: PCRelative, cpu: CPU) -> int:
    return (cpu.pc + instr.offset) & 0xFFFF


def _base_address(instr: BaseOffset, cpu: CPU) -> int:
    return (cpu.reg[instr.base] + instr.offset) & 0xFFFF


# Instruction executor type
InstructionExecutor = Callable[[Instruction, CPU, Memory, Console], Optional[int]]


def execute_add(instr: Operate, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """ADD DR, SR1, SR2|imm5: DR := SR1 + operand"""
    cpu.set_reg(instr.dr, cpu.reg[instr.sr1] + _operand(instr, cpu))
    cpu.update_flags(instr.dr)
    return None


def execute_and(instr: Operate, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """AND DR, SR1, SR2|imm5: DR := SR1 AND operand"""
    cpu.set_reg(instr.dr, cpu.reg[instr.sr1] & _operand(instr, cpu))
    cpu.update_flags(instr.dr)
    return None


def execute_not(instr: Not, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """NOT DR, SR: DR := ~SR"""
    cpu.set_reg(instr.dr, ~cpu.reg[instr.sr])
    cpu.update_flags(instr.dr)
    return None


def execute_br(instr: Branch, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """BRnzp offset: PC := PC + offset if any selected flag is set"""
    if (
        (instr.n and cpu.cond == Flag.NEG)
        or (instr.z and cpu.cond == Flag.ZRO)
        or (instr.p and cpu.cond == Flag.POS)
    ):
        return (cpu.pc + instr.offset) & 0xFFFF
    return None


def execute_jmp(instr: Jump, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """JMP BaseR: PC := BaseR"""
    return cpu.reg[instr.base]


def execute_jsr(instr: JumpSubroutine, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """JSR offset / JSRR BaseR: R7 := PC, then jump"""
    return_addr = cpu.pc
    if instr.long:
        target = (return_addr + instr.offset) & 0xFFFF
    else:
        target = cpu.reg[instr.base]
    cpu.set_reg(7, return_addr)
    return target


def execute_ld(instr: PCRelative, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LD DR, offset: DR := MEM[PC + offset]"""
    cpu.set_reg(instr.reg, mem.read(_pc_address(instr, cpu)))
    cpu.update_flags(instr.reg)
    return None


def execute_ldi(instr: PCRelative, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LDI DR, offset: DR := MEM[MEM[PC + offset]]"""
    indirect_addr = mem.read(_pc_address(instr, cpu))
    cpu.set_reg(instr.reg, mem.read(indirect_addr))
    cpu.update_flags(instr.reg)
    return None


def execute_ldr(instr: BaseOffset, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LDR DR, BaseR, offset: DR := MEM[BaseR + offset]"""
    cpu.set_reg(instr.reg, mem.read(_base_address(instr, cpu)))
    cpu.update_flags(instr.reg)
    return None


def execute_lea(instr: PCRelative, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LEA DR, offset: DR := PC + offset"""
    cpu.set_reg(instr.reg, _pc_address(instr, cpu))
    cpu.update_flags(instr.reg)
    return None


def execute_st(instr: PCRelative, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """ST SR, offset: MEM[PC + offset] := SR"""
    mem.write(_pc_address(instr, cpu), cpu.reg[instr.reg])
    return None


def execute_sti(instr: PCRelative, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """STI SR, offset: MEM[MEM[PC + offset]] := SR"""
    indirect_addr = mem.read(_pc_address(instr, cpu))
    mem.write(indirect_addr, cpu.reg[instr.reg])
    return None


def execute_str(instr: BaseOffset, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """STR SR, BaseR, offset: MEM[BaseR + offset] := SR"""
    mem.write(_base_address(instr, cpu), cpu.reg[instr.reg])
    return None


def execute_trap(instr: Trap, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """TRAP vector: R7 := PC, run service routine"""
    cpu.set_reg(7, cpu.pc)
    traps.execute_trap(instr.vector, cpu, mem, io)
    return None


def execute_reserved(instr: Reserved, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """RES / RTI: no defined behavior"""
    raise ReservedOpcode(f"Reserved opcode {instr.opcode.name} (x{instr.word:04X})")


# Instruction dispatch table
INSTRUCTION_EXECUTORS: dict[Opcode, InstructionExecutor] = {
    Opcode.BR: execute_br,
    Opcode.ADD: execute_add,
    Opcode.LD: execute_ld,
    Opcode.ST: execute_st,
    Opcode.JSR: execute_jsr,
    Opcode.AND: execute_and,
    Opcode.LDR: execute_ldr,
    Opcode.STR: execute_str,
    Opcode.RTI: execute_reserved,
    Opcode.NOT: execute_not,
    Opcode.LDI: execute_ldi,
    Opcode.STI: execute_sti,
    Opcode.JMP: execute_jmp,
    Opcode.RES: execute_reserved,
    Opcode.LEA: execute_lea,
    Opcode.TRAP: execute_trap,
}


def execute_instruction(
    instr: Instruction,
    cpu: CPU,
    mem: Memory,
    io: Console,
) -> Optional[int]:
    """Execute a single decoded instruction.

    Returns:
        New PC value if the instruction transfers control, None otherwise
    """
    executor = INSTRUCTION_EXECUTORS[instr.opcode]
    return executor(instr, cpu, mem, io)

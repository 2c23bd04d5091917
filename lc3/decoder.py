"""Instruction decoding for the LC-3 emulator.

Each 16-bit word decodes once into an immutable instruction object. The
object carries only the operand fields its opcode uses, with offsets and
immediates already sign-extended to 16-bit words.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union


class Opcode(IntEnum):
    BR = 0
    ADD = 1
    LD = 2
    ST = 3
    JSR = 4
    AND = 5
    LDR = 6
    STR = 7
    RTI = 8
    NOT = 9
    LDI = 10
    STI = 11
    JMP = 12
    RES = 13
    LEA = 14
    TRAP = 15


def sign_extend(value: int, bit_count: int) -> int:
    """Sign-extend the low `bit_count` bits of value to a 16-bit word."""
    value &= (1 << bit_count) - 1
    if (value >> (bit_count - 1)) & 1:
        value |= (0xFFFF << bit_count) & 0xFFFF
    return value


def to_signed(word: int) -> int:
    """Interpret a 16-bit word as two's complement."""
    word &= 0xFFFF
    return word - 0x10000 if word & 0x8000 else word


def _reg(word: int, shift: int) -> int:
    return (word >> shift) & 0x7


@dataclass(frozen=True)
class Operate:
    """ADD / AND: DR = SR1 op (SR2 | imm5)."""
    opcode: Opcode
    dr: int
    sr1: int
    immediate: bool
    sr2: int = 0
    imm5: int = 0

    @property
    def text(self) -> str:
        operand = f"#{to_signed(self.imm5)}" if self.immediate else f"R{self.sr2}"
        return f"{self.opcode.name} R{self.dr}, R{self.sr1}, {operand}"


@dataclass(frozen=True)
class Not:
    dr: int
    sr: int
    opcode: Opcode = Opcode.NOT

    @property
    def text(self) -> str:
        return f"NOT R{self.dr}, R{self.sr}"


@dataclass(frozen=True)
class Branch:
    n: bool
    z: bool
    p: bool
    offset: int
    opcode: Opcode = Opcode.BR

    @property
    def text(self) -> str:
        flags = ("n" if self.n else "") + ("z" if self.z else "") + ("p" if self.p else "")
        return f"BR{flags} #{to_signed(self.offset)}"


@dataclass(frozen=True)
class Jump:
    """JMP BaseR; RET when BaseR is R7."""
    base: int
    opcode: Opcode = Opcode.JMP

    @property
    def text(self) -> str:
        return "RET" if self.base == 7 else f"JMP R{self.base}"


@dataclass(frozen=True)
class JumpSubroutine:
    """JSR PCoffset11 when `long` is set, else JSRR BaseR."""
    long: bool
    offset: int = 0
    base: int = 0
    opcode: Opcode = Opcode.JSR

    @property
    def text(self) -> str:
        if self.long:
            return f"JSR #{to_signed(self.offset)}"
        return f"JSRR R{self.base}"


@dataclass(frozen=True)
class PCRelative:
    """LD, LDI, LEA, ST, STI: register plus PC-relative 9-bit offset."""
    opcode: Opcode
    reg: int
    offset: int

    @property
    def text(self) -> str:
        return f"{self.opcode.name} R{self.reg}, #{to_signed(self.offset)}"


@dataclass(frozen=True)
class BaseOffset:
    """LDR, STR: register, base register and 6-bit offset."""
    opcode: Opcode
    reg: int
    base: int
    offset: int

    @property
    def text(self) -> str:
        return f"{self.opcode.name} R{self.reg}, R{self.base}, #{to_signed(self.offset)}"


@dataclass(frozen=True)
class Trap:
    vector: int
    opcode: Opcode = Opcode.TRAP

    @property
    def text(self) -> str:
        return f"TRAP x{self.vector:02X}"


@dataclass(frozen=True)
class Reserved:
    """RES or RTI. Has no defined behavior."""
    opcode: Opcode
    word: int

    @property
    def text(self) -> str:
        return f"{self.opcode.name} (x{self.word:04X})"


Instruction = Union[
    Operate, Not, Branch, Jump, JumpSubroutine, PCRelative, BaseOffset, Trap, Reserved
]


def decode(word: int) -> Instruction:
    """Decode a single instruction word."""
    word &= 0xFFFF
    op = Opcode(word >> 12)

    if op in (Opcode.ADD, Opcode.AND):
        if (word >> 5) & 1:
            return Operate(op, _reg(word, 9), _reg(word, 6), True, imm5=sign_extend(word, 5))
        return Operate(op, _reg(word, 9), _reg(word, 6), False, sr2=_reg(word, 0))
    if op == Opcode.NOT:
        return Not(_reg(word, 9), _reg(word, 6))
    if op == Opcode.BR:
        return Branch(
            n=bool((word >> 11) & 1),
            z=bool((word >> 10) & 1),
            p=bool((word >> 9) & 1),
            offset=sign_extend(word, 9),
        )
    if op == Opcode.JMP:
        return Jump(_reg(word, 6))
    if op == Opcode.JSR:
        if (word >> 11) & 1:
            return JumpSubroutine(True, offset=sign_extend(word, 11))
        return JumpSubroutine(False, base=_reg(word, 6))
    if op in (Opcode.LD, Opcode.LDI, Opcode.LEA, Opcode.ST, Opcode.STI):
        return PCRelative(op, _reg(word, 9), sign_extend(word, 9))
    if op in (Opcode.LDR, Opcode.STR):
        return BaseOffset(op, _reg(word, 9), _reg(word, 6), sign_extend(word, 6))
    if op == Opcode.TRAP:
        return Trap(word & 0xFF)
    return Reserved(op, word)

"""Trap service routines for the LC-3 emulator."""

import logging
from enum import IntEnum
from typing import Callable

from .console import Console
from .cpu import CPU
from .memory import Memory

logger = logging.getLogger(__name__)

IN_PROMPT = "Enter a character: "


class TrapVector(IntEnum):
    GETC = 0x20  # read character, no echo
    OUT = 0x21  # write character
    PUTS = 0x22  # write one-char-per-word string
    IN = 0x23  # prompt, read character with echo
    PUTSP = 0x24  # write two-chars-per-word string
    HALT = 0x25


TrapRoutine = Callable[[CPU, Memory, Console], None]


def trap_getc(cpu: CPU, mem: Memory, console: Console) -> None:
    """GETC: R0 := character code, not echoed."""
    cpu.set_reg(0, console.read_char())


def trap_out(cpu: CPU, mem: Memory, console: Console) -> None:
    """OUT: write low byte of R0."""
    console.write_char(cpu.reg[0] & 0xFF)
    console.flush()


def trap_puts(cpu: CPU, mem: Memory, console: Console) -> None:
    """PUTS: write the zero-terminated word string at R0."""
    addr = cpu.reg[0]
    word = mem.read(addr)
    while word:
        console.write_char(word & 0xFF)
        addr += 1
        word = mem.read(addr)
    console.flush()


def trap_in(cpu: CPU, mem: Memory, console: Console) -> None:
    """IN: prompt, read a character and echo it; R0 := character code."""
    console.write_text(IN_PROMPT)
    console.flush()
    code = console.read_char()
    console.write_char(code)
    console.flush()
    cpu.set_reg(0, code)


def trap_putsp(cpu: CPU, mem: Memory, console: Console) -> None:
    """PUTSP: write the packed byte string at R0, low byte first."""
    addr = cpu.reg[0]
    word = mem.read(addr)
    while word:
        low = word & 0xFF
        if not low:
            break
        console.write_char(low)
        high = word >> 8
        if not high:
            break
        console.write_char(high)
        addr += 1
        word = mem.read(addr)
    console.flush()


def trap_halt(cpu: CPU, mem: Memory, console: Console) -> None:
    """HALT: stop execution."""
    console.flush()
    cpu.halted = True
    logger.info("HALT at x%04X", (cpu.pc - 1) & 0xFFFF)


# Trap dispatch table
TRAP_ROUTINES: dict[int, TrapRoutine] = {
    TrapVector.GETC: trap_getc,
    TrapVector.OUT: trap_out,
    TrapVector.PUTS: trap_puts,
    TrapVector.IN: trap_in,
    TrapVector.PUTSP: trap_putsp,
    TrapVector.HALT: trap_halt,
}


def execute_trap(vector: int, cpu: CPU, mem: Memory, console: Console) -> None:
    """Run the service routine for `vector`. Unknown vectors do nothing."""
    routine = TRAP_ROUTINES.get(vector)
    if routine is None:
        logger.warning("Ignoring unknown trap vector x%02X at x%04X", vector, (cpu.pc - 1) & 0xFFFF)
        return
    routine(cpu, mem, console)

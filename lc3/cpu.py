"""CPU state model for the LC-3 emulator."""

from enum import IntEnum

REGISTER_COUNT = 8
PC_START = 0x3000


class Flag(IntEnum):
    """Condition codes. Exactly one is set at any time."""
    POS = 1 << 0
    ZRO = 1 << 1
    NEG = 1 << 2


class CPU:
    """Register file: R0-R7, program counter and condition register."""

    def __init__(self, start_address: int = PC_START):
        self.reg: list[int] = [0] * REGISTER_COUNT
        self.pc: int = start_address & 0xFFFF
        self.cond: Flag = Flag.ZRO
        self.halted: bool = False

    def set_reg(self, index: int, value: int) -> None:
        """Set a general register, wrapping to 16 bits."""
        self.reg[index] = value & 0xFFFF

    def update_flags(self, index: int) -> None:
        """Set COND from the sign of register `index`."""
        value = self.reg[index]
        if value == 0:
            self.cond = Flag.ZRO
        elif value >> 15:
            self.cond = Flag.NEG
        else:
            self.cond = Flag.POS

    def advance_pc(self) -> int:
        """Return the current PC and move it to the next word."""
        pc = self.pc
        self.pc = (pc + 1) & 0xFFFF
        return pc

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        state = {f"r{i}": value for i, value in enumerate(self.reg)}
        state["pc"] = self.pc
        state["cond"] = self.cond.name
        return state

    def reset(self, start_address: int = PC_START) -> None:
        """Reset CPU to initial state."""
        self.reg = [0] * REGISTER_COUNT
        self.pc = start_address & 0xFFFF
        self.cond = Flag.ZRO
        self.halted = False

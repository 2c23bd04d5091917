"""Machine aggregate: CPU, memory and console driven by the fetch loop."""

import logging
from typing import Optional

from .console import Console, IOBuffer
from .cpu import CPU, PC_START
from .decoder import Instruction, decode
from .errors import LC3Error, StepLimitExceeded
from .instructions import execute_instruction
from .loader import ImageSource, load_image
from .memory import Memory

logger = logging.getLogger(__name__)


class Machine:
    """One independent LC-3 machine instance."""

    def __init__(self, console: Optional[Console] = None, start_address: int = PC_START):
        self.console: Console = console if console is not None else IOBuffer()
        self.cpu = CPU(start_address)
        self.memory = Memory(keyboard=self.console)
        self.steps = 0

    @property
    def halted(self) -> bool:
        return self.cpu.halted

    def load(self, source: ImageSource) -> int:
        """Load an image into memory. Returns its origin."""
        return load_image(source, self.memory)

    def fetch(self) -> tuple[int, Instruction]:
        """Read the word at PC, advance PC and decode it."""
        addr = self.cpu.advance_pc()
        return addr, decode(self.memory.read(addr))

    def step(self) -> Instruction:
        """Execute one instruction and return it."""
        addr, instr = self.fetch()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("x%04X: %s", addr, instr.text)
        try:
            new_pc = execute_instruction(instr, self.cpu, self.memory, self.console)
        except LC3Error as e:
            # Attach context to error
            e.step = self.steps
            e.addr = addr
            e.instr_text = instr.text
            raise
        if new_pc is not None:
            self.cpu.pc = new_pc
        self.steps += 1
        return instr

    def run(self, max_steps: Optional[int] = None) -> int:
        """Run until HALT. Returns the number of instructions executed.

        Raises:
            LC3RuntimeError: on a reserved opcode, input underflow or when
                `max_steps` instructions ran without halting.
        """
        start = self.steps
        while not self.cpu.halted:
            self.check_step_budget(max_steps, start)
            self.step()
        return self.steps - start

    def check_step_budget(self, max_steps: Optional[int], start: int = 0) -> None:
        """Raise StepLimitExceeded once `max_steps` have run since `start`."""
        if max_steps is not None and self.steps - start >= max_steps:
            raise StepLimitExceeded(
                f"Step limit exceeded: {max_steps}",
                step=self.steps,
                addr=self.cpu.pc,
            )

"""Program runner with tracing for the LC-3 emulator."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .console import IOBuffer
from .cpu import PC_START
from .errors import LC3Error, ErrorInfo
from .machine import Machine

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Options for program execution."""
    start_address: Optional[int] = None  # None: origin of the first image
    max_steps: Optional[int] = 1_000_000
    trace: bool = False
    trace_watch: list[int] = field(default_factory=list)
    trace_include_registers: bool = True
    trace_include_io: bool = True
    initial_memory: dict[int, int] = field(default_factory=dict)


@dataclass
class TraceRow:
    """Single row of execution trace."""
    step: int
    addr: int
    instr_text: str
    mem: dict[str, int]
    registers: Optional[dict] = None
    in_code: Optional[int] = None
    out_code: Optional[int] = None

    def to_dict(self, include_registers: bool, include_io: bool) -> dict:
        result = {
            "step": self.step,
            "addr": self.addr,
            "instr_text": self.instr_text,
            "mem": self.mem,
        }
        if include_registers:
            result["registers"] = self.registers
        if include_io:
            result["in_code"] = self.in_code
            result["out_code"] = self.out_code
        return result


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    output_text: str
    steps_executed: int
    final_state: dict
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "output_text": self.output_text,
            "steps_executed": self.steps_executed,
            "final_state": self.final_state,
            "trace_watch": self.trace_watch,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def run_program(
    images: Sequence[bytes],
    input_text: str = "",
    options: Optional[RunOptions] = None,
) -> RunResult:
    """Load and run one or more object images.

    Args:
        images: Raw image contents, loaded in order
        input_text: Keyboard input for GETC/IN and the KBSR/KBDR registers
        options: Execution options

    Returns:
        RunResult with execution status, output, and trace
    """
    if options is None:
        options = RunOptions()

    trace_rows: list[dict] = []
    trace_watch = sorted(set(options.trace_watch))
    io_buffer = IOBuffer(input_text)
    machine = Machine(console=io_buffer)

    # Load images
    origins: list[int] = []
    try:
        for image in images:
            origins.append(machine.load(image))
    except LC3Error as e:
        return RunResult(
            status="error",
            output_text="",
            steps_executed=0,
            final_state=machine.cpu.get_state(),
            trace_watch=trace_watch,
            trace=[],
            error=e.to_error_info(),
        )

    for addr, val in options.initial_memory.items():
        machine.memory.write(addr, val)

    if options.start_address is not None:
        start = options.start_address
    elif origins:
        start = origins[0]
    else:
        start = PC_START
    machine.cpu.reset(start)

    error_info: Optional[ErrorInfo] = None

    try:
        while not machine.halted:
            machine.check_step_budget(options.max_steps)
            instr_addr = machine.cpu.pc
            io_buffer.reset_io_codes()
            instr = machine.step()

            if options.trace:
                row = TraceRow(
                    step=machine.steps,
                    addr=instr_addr,
                    instr_text=instr.text,
                    mem=machine.memory.get_watched(trace_watch),
                    registers=machine.cpu.get_state() if options.trace_include_registers else None,
                    in_code=io_buffer.last_in_code if options.trace_include_io else None,
                    out_code=io_buffer.last_out_code if options.trace_include_io else None,
                )
                trace_rows.append(row.to_dict(
                    include_registers=options.trace_include_registers,
                    include_io=options.trace_include_io,
                ))

    except LC3Error as e:
        error_info = e.to_error_info()
        logger.warning("Run stopped at x%04X: %s", e.addr, e.message)

    return RunResult(
        status="ok" if error_info is None else "error",
        output_text=io_buffer.get_output(),
        steps_executed=machine.steps,
        final_state=machine.cpu.get_state(),
        trace_watch=trace_watch,
        trace=trace_rows,
        error=error_info,
    )

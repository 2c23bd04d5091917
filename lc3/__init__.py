"""LC-3 Emulator Core Package."""

from .machine import Machine
from .runner import run_program, RunOptions, RunResult
from .errors import LC3Error, ImageLoadError, LC3RuntimeError, ReservedOpcode, InputUnderflow

__all__ = [
    "Machine",
    "run_program",
    "RunOptions",
    "RunResult",
    "LC3Error",
    "ImageLoadError",
    "LC3RuntimeError",
    "ReservedOpcode",
    "InputUnderflow",
]

"""Console devices for GETC/IN/OUT traps and the keyboard registers."""

import logging
import os
import select
import sys
from typing import IO, BinaryIO, Optional, Protocol

from .errors import InputUnderflow

if sys.platform != "win32":
    import termios
else:
    termios = None

logger = logging.getLogger(__name__)


class Console(Protocol):
    """Character console used by the machine."""

    def check_key(self) -> bool: ...

    def read_char(self) -> int: ...

    def write_char(self, code: int) -> None: ...

    def write_text(self, text: str) -> None: ...

    def flush(self) -> None: ...


class IOBuffer:
    """Scripted console: input from a string, output collected in memory."""

    def __init__(self, input_text: str = ""):
        self._input = list(input_text)
        self._input_pos = 0
        self._output: list[str] = []
        self.last_in_code: Optional[int] = None
        self.last_out_code: Optional[int] = None

    def check_key(self) -> bool:
        return self._input_pos < len(self._input)

    def read_char(self) -> int:
        """Read next character from input buffer as a character code."""
        self.last_in_code = None
        if self._input_pos >= len(self._input):
            raise InputUnderflow("Input buffer is empty")
        char = self._input[self._input_pos]
        self._input_pos += 1
        self.last_in_code = ord(char)
        return self.last_in_code

    def write_char(self, code: int) -> None:
        """Write character to output buffer."""
        self.last_out_code = code & 0xFF
        self._output.append(chr(self.last_out_code))

    def write_text(self, text: str) -> None:
        self._output.append(text)

    def flush(self) -> None:
        pass

    def get_output(self) -> str:
        """Get accumulated output as string."""
        return "".join(self._output)

    def reset_io_codes(self) -> None:
        """Reset last I/O codes for new instruction."""
        self.last_in_code = None
        self.last_out_code = None


class TerminalConsole:
    """Console bound to the process terminal.

    Used as a context manager: on enter the terminal is switched to
    unbuffered, unechoed input; on exit the saved mode is restored, also
    when the body raises (e.g. KeyboardInterrupt).

    Output is byte-oriented: each character code is written as the single
    byte in its low 8 bits.
    """

    def __init__(self, stdin: Optional[IO] = None, stdout: Optional[IO] = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._out: BinaryIO = getattr(self.stdout, "buffer", self.stdout)
        self._saved_attrs = None

    def __enter__(self) -> "TerminalConsole":
        self.disable_input_buffering()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore_input_buffering()

    def _fileno(self) -> int:
        return self.stdin.fileno()

    def disable_input_buffering(self) -> None:
        if termios is None or not self.stdin.isatty():
            return
        fd = self._fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        new_attrs = termios.tcgetattr(fd)
        new_attrs[3] &= ~(termios.ICANON | termios.ECHO)
        termios.tcsetattr(fd, termios.TCSANOW, new_attrs)
        logger.debug("Terminal input buffering disabled")

    def restore_input_buffering(self) -> None:
        if self._saved_attrs is None:
            return
        termios.tcsetattr(self._fileno(), termios.TCSANOW, self._saved_attrs)
        self._saved_attrs = None
        logger.debug("Terminal input buffering restored")

    def check_key(self) -> bool:
        readable, _, _ = select.select([self._fileno()], [], [], 0)
        return bool(readable)

    def read_char(self) -> int:
        data = os.read(self._fileno(), 1)
        if not data:
            raise InputUnderflow("End of console input")
        return data[0]

    def write_char(self, code: int) -> None:
        self._out.write(bytes([code & 0xFF]))

    def write_text(self, text: str) -> None:
        self._out.write(text.encode("latin-1", "replace"))

    def flush(self) -> None:
        self._out.flush()

"""Memory model for the LC-3 emulator."""

from typing import Iterable, Optional, Protocol

MEMORY_SIZE = 1 << 16
WORD_MASK = 0xFFFF

# Memory-mapped device registers
KBSR = 0xFE00  # keyboard status
KBDR = 0xFE02  # keyboard data


class Keyboard(Protocol):
    """Input device polled through the keyboard status register."""

    def check_key(self) -> bool: ...

    def read_char(self) -> int: ...


class Memory:
    """Flat 65536-word memory with keyboard device registers."""

    def __init__(
        self,
        keyboard: Optional[Keyboard] = None,
        initial_values: Optional[dict[int, int]] = None,
    ):
        self.size = MEMORY_SIZE
        self.keyboard = keyboard
        self._data: list[int] = [0] * MEMORY_SIZE

        if initial_values:
            for addr, val in initial_values.items():
                self.write(addr, val)

    @staticmethod
    def normalize(value: int) -> int:
        """Wrap value to a 16-bit word."""
        return value & WORD_MASK

    def read(self, addr: int) -> int:
        """Read word at address, polling the keyboard on KBSR."""
        addr &= WORD_MASK
        if addr == KBSR:
            self._poll_keyboard()
        return self._data[addr]

    def write(self, addr: int, value: int) -> None:
        """Write normalized value to memory address."""
        self._data[addr & WORD_MASK] = self.normalize(value)

    def load(self, origin: int, words: Iterable[int]) -> int:
        """Store words starting at origin. Returns the number written."""
        count = 0
        for offset, word in enumerate(words):
            self.write(origin + offset, word)
            count += 1
        return count

    def _poll_keyboard(self) -> None:
        if self.keyboard is not None and self.keyboard.check_key():
            self._data[KBSR] = 1 << 15
            self._data[KBDR] = self.normalize(self.keyboard.read_char())
        else:
            self._data[KBSR] = 0

    def peek(self, addr: int) -> int:
        """Read stored word without touching devices."""
        return self._data[addr & WORD_MASK]

    def get_watched(self, addresses: list[int]) -> dict[str, int]:
        """Get values at watched addresses as string-keyed dict."""
        return {str(addr): self.peek(addr) for addr in addresses}

    def snapshot(self) -> list[int]:
        """Return a copy of the entire memory."""
        return self._data.copy()

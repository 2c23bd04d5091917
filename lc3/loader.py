"""Object image loading for the LC-3 emulator.

An image is a big-endian origin word followed by big-endian program words.
"""

import logging
import struct
from pathlib import Path
from typing import Union

from .errors import ImageLoadError
from .memory import MEMORY_SIZE, Memory

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, bytearray]


def parse_image(data: bytes) -> tuple[int, list[int]]:
    """Split raw image bytes into (origin, words).

    Words that would run past the top of memory are dropped, as is a
    trailing odd byte.
    """
    if len(data) < 2:
        raise ImageLoadError(f"Image too short: {len(data)} bytes")
    (origin,) = struct.unpack_from(">H", data, 0)
    count = min((len(data) - 2) // 2, MEMORY_SIZE - origin)
    words = list(struct.unpack_from(f">{count}H", data, 2))
    return origin, words


def read_image_bytes(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    try:
        return Path(source).read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Cannot read image {source}: {e.strerror or e}") from e


def load_image(source: ImageSource, memory: Memory) -> int:
    """Load an image file or raw bytes into memory. Returns the origin."""
    origin, words = parse_image(read_image_bytes(source))
    memory.load(origin, words)
    name = "<bytes>" if isinstance(source, (bytes, bytearray)) else str(source)
    logger.info("Loaded %s: %d words at x%04X", name, len(words), origin)
    return origin

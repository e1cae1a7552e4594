"""Detection of animated GIF payloads.

A GIF frame is introduced by a Graphic Control Extension (``0x21 0xF9``,
block size 4, four payload bytes, block terminator ``0x00``) that is directly
followed by an Image Descriptor (``0x2C``) or another extension (``0x21``).
A payload holding more than one such sequence carries more than one frame.
"""

import re

GRAPHIC_CONTROL_PATTERN = re.compile(rb"\x21\xF9\x04.{4}\x00[\x2C\x21]", re.DOTALL)


def count_graphic_control_blocks(data: bytes) -> int:
    """Count the non-overlapping graphic control sequences in ``data``."""
    return len(GRAPHIC_CONTROL_PATTERN.findall(data))


def is_animated_gif(data: bytes) -> bool:
    """Return True if the GIF payload contains more than one frame.

    Args:
        data: Raw GIF bytes

    Returns:
        True when two or more graphic control sequences are present
    """
    if not data:
        return False
    return count_graphic_control_blocks(data) > 1

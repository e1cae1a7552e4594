"""Overlay placement arithmetic.

Computes where the top-left corner of an overlay lands on a base image for a
pair of named anchors plus pixel offsets. The result is not clamped: it may
be negative or reach past the base image, clipping is up to the paste.
"""

import math
from enum import Enum
from typing import NamedTuple, Tuple, Union

from ..exceptions import InvalidAdjustmentConfiguration


class HorizontalPosition(str, Enum):
    """Horizontal anchors."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VerticalPosition(str, Enum):
    """Vertical anchors."""
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class Position(NamedTuple):
    x: int
    y: int


def _round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def parse_horizontal_position(value: Union[str, HorizontalPosition]) -> HorizontalPosition:
    try:
        return HorizontalPosition(value)
    except ValueError:
        raise InvalidAdjustmentConfiguration(
            "horizontal_position",
            value,
            f'Invalid horizontal position "{value}", must be one of '
            f'{", ".join(p.value for p in HorizontalPosition)}',
        ) from None


def parse_vertical_position(value: Union[str, VerticalPosition]) -> VerticalPosition:
    try:
        return VerticalPosition(value)
    except ValueError:
        raise InvalidAdjustmentConfiguration(
            "vertical_position",
            value,
            f'Invalid vertical position "{value}", must be one of '
            f'{", ".join(p.value for p in VerticalPosition)}',
        ) from None


def resolve_position(
    image_size: Tuple[int, int],
    overlay_size: Tuple[int, int],
    horizontal_position: Union[str, HorizontalPosition],
    horizontal_offset: int,
    vertical_position: Union[str, VerticalPosition],
    vertical_offset: int,
) -> Position:
    """Calculate the overlay position for the given anchors and offsets.

    Args:
        image_size: (width, height) of the base image
        overlay_size: (width, height) of the overlay
        horizontal_position: left, center or right
        horizontal_offset: Pixels added to the anchored x coordinate
        vertical_position: top, middle or bottom
        vertical_offset: Pixels added to the anchored y coordinate

    Returns:
        Top-left coordinate of the overlay on the base image

    Raises:
        InvalidAdjustmentConfiguration: If an anchor is unknown
    """
    image_width, image_height = image_size
    overlay_width, overlay_height = overlay_size

    horizontal = parse_horizontal_position(horizontal_position)
    if horizontal == HorizontalPosition.LEFT:
        x = 0
    elif horizontal == HorizontalPosition.RIGHT:
        x = image_width - overlay_width
    else:
        x = _round_half_away_from_zero((image_width - overlay_width) / 2)
    x += int(horizontal_offset or 0)

    vertical = parse_vertical_position(vertical_position)
    if vertical == VerticalPosition.TOP:
        y = 0
    elif vertical == VerticalPosition.BOTTOM:
        y = image_height - overlay_height
    else:
        y = _round_half_away_from_zero((image_height - overlay_height) / 2)
    y += int(vertical_offset or 0)

    return Position(x, y)

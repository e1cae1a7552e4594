"""Watermark adjustment: paste an overlay image at an anchored position."""

from pathlib import Path
from typing import Any, Mapping, Optional, Union

from PIL import Image

from ..core.positioning import (
    HorizontalPosition,
    Position,
    VerticalPosition,
    parse_horizontal_position,
    parse_vertical_position,
    resolve_position,
)
from ..exceptions import InvalidAdjustmentConfiguration
from ..utils.hashing import generate_image_fingerprint
from ..utils.image_processing import open_image, paste_overlay, strip_metadata, use_palette_of
from ..utils.logging import get_logger
from .base import ImageAdjustment, register_adjustment

logger = get_logger("mediaforge.adjustments.watermark")


@register_adjustment
class WatermarkAdjustment(ImageAdjustment):
    """An adjustment for applying a watermark to an image.

    The overlay can be given as a decoded image, a file path or raw bytes /
    a binary stream; all of them are decoded once when set. The configuration
    keeps a fingerprint of the overlay under ``watermark`` so the configuration
    hash follows the overlay content.
    """

    DEFAULT_POSITION = 30
    DEFAULT_CONFIGURATION = {
        "watermark": None,
        "vertical_position": VerticalPosition.TOP.value,
        "vertical_offset": 0,
        "horizontal_position": HorizontalPosition.LEFT.value,
        "horizontal_offset": 0,
    }

    def __init__(
        self,
        configuration: Optional[Mapping[str, Any]] = None,
        position: Optional[int] = None,
        watermark: Any = None
    ):
        super().__init__(configuration, position)
        parse_vertical_position(self.get_configuration_value("vertical_position"))
        parse_horizontal_position(self.get_configuration_value("horizontal_position"))
        self._watermark: Optional[Image.Image] = None
        if watermark is not None:
            self.set_watermark_configuration(watermark)

    def set_watermark_configuration(self, watermark: Any) -> None:
        """Set the overlay from an image, a path, raw bytes or a binary stream.

        Raises:
            InvalidAdjustmentConfiguration: If the source type is not supported
            ImageFileError: If the source cannot be decoded
        """
        if isinstance(watermark, Image.Image):
            self.set_watermark(watermark)
        elif isinstance(watermark, (str, Path, bytes, bytearray)) or hasattr(watermark, "read"):
            self.set_watermark(open_image(watermark))
        else:
            raise InvalidAdjustmentConfiguration(
                "watermark", type(watermark).__name__, "Invalid watermark given"
            )

    def get_watermark(self) -> Optional[Image.Image]:
        return self._watermark

    def set_watermark(self, watermark: Image.Image) -> None:
        if not isinstance(watermark, Image.Image):
            raise InvalidAdjustmentConfiguration(
                "watermark", type(watermark).__name__, "Watermark must be a decoded image"
            )
        overlay = watermark.copy()
        self.set_configuration_value("watermark", generate_image_fingerprint(overlay))
        self._watermark = overlay

    def get_vertical_position(self) -> VerticalPosition:
        return parse_vertical_position(self.get_configuration_value("vertical_position"))

    def set_vertical_position(self, vertical_position: Union[str, VerticalPosition]) -> None:
        self.set_configuration_value("vertical_position", parse_vertical_position(vertical_position).value)

    def get_horizontal_position(self) -> HorizontalPosition:
        return parse_horizontal_position(self.get_configuration_value("horizontal_position"))

    def set_horizontal_position(self, horizontal_position: Union[str, HorizontalPosition]) -> None:
        self.set_configuration_value("horizontal_position", parse_horizontal_position(horizontal_position).value)

    def get_vertical_offset(self) -> int:
        return self.get_configuration_value("vertical_offset", 0)

    def set_vertical_offset(self, vertical_offset: int) -> None:
        self.set_configuration_value("vertical_offset", _as_offset("vertical_offset", vertical_offset))

    def get_horizontal_offset(self) -> int:
        return self.get_configuration_value("horizontal_offset", 0)

    def set_horizontal_offset(self, horizontal_offset: int) -> None:
        self.set_configuration_value("horizontal_offset", _as_offset("horizontal_offset", horizontal_offset))

    def calculate_position(self, image: Image.Image) -> Position:
        return resolve_position(
            image.size,
            self._watermark.size,
            self.get_horizontal_position(),
            self.get_horizontal_offset(),
            self.get_vertical_position(),
            self.get_vertical_offset(),
        )

    def can_be_applied(self, image: Image.Image) -> bool:
        return isinstance(self._watermark, Image.Image)

    def apply_to_image(self, image: Image.Image) -> Image.Image:
        """Paste the overlay onto ``image`` and return the watermarked image.

        A palette-matched, metadata-free copy is prepared alongside but the
        paste lands on ``image`` itself. Palette images come back converted
        to RGBA, and that converted image is what moves on down the pipeline.
        """
        watermarked_image = image.copy()
        use_palette_of(watermarked_image, image)
        strip_metadata(watermarked_image)

        target = self.calculate_position(image)
        result = paste_overlay(image, self._watermark, target)
        logger.debug(f"Pasted {self._watermark.size} watermark at {tuple(target)} on {image.size} image")
        return result


def _as_offset(field: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAdjustmentConfiguration(field, value, "Offset must be an integer")
    return value

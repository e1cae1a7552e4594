"""Crop adjustment."""

from typing import Any, Mapping, Optional, Tuple

from PIL import Image

from ..exceptions import InvalidAdjustmentConfiguration
from .base import ImageAdjustment, register_adjustment


@register_adjustment
class CropImageAdjustment(ImageAdjustment):
    """Cut a rectangle out of the image.

    Runs before resize adjustments so the crop coordinates always refer to the
    unscaled image.
    """

    DEFAULT_POSITION = 10
    DEFAULT_CONFIGURATION = {"x": 0, "y": 0, "width": None, "height": None}

    def __init__(self, configuration: Optional[Mapping[str, Any]] = None, position: Optional[int] = None):
        super().__init__(configuration, position)
        for field in ("x", "y", "width", "height"):
            value = self.get_configuration_value(field)
            if value is not None:
                _check_dimension(field, value)

    def set_box(self, x: int, y: int, width: int, height: int) -> None:
        for field, value in (("x", x), ("y", y), ("width", width), ("height", height)):
            _check_dimension(field, value)
        self.set_configuration({"x": x, "y": y, "width": width, "height": height})

    def get_box(self) -> Tuple[int, int, int, int]:
        x = self.get_configuration_value("x", 0) or 0
        y = self.get_configuration_value("y", 0) or 0
        return (
            x,
            y,
            x + (self.get_configuration_value("width") or 0),
            y + (self.get_configuration_value("height") or 0),
        )

    def can_be_applied(self, image: Image.Image) -> bool:
        width = self.get_configuration_value("width")
        height = self.get_configuration_value("height")
        if not width or not height:
            return False
        return self.get_box() != (0, 0, image.width, image.height)

    def apply_to_image(self, image: Image.Image) -> Image.Image:
        return image.crop(self.get_box())


def _check_dimension(field: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAdjustmentConfiguration(field, value, "Must be a non-negative integer")

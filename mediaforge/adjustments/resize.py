"""Resize adjustment."""

from typing import Any, Mapping, Optional, Tuple

from PIL import Image

from ..exceptions import InvalidAdjustmentConfiguration
from ..utils.image_processing import ResizeMode, resize_image
from .base import ImageAdjustment, register_adjustment

DIMENSION_FIELDS = ("width", "height", "maximum_width", "maximum_height")


@register_adjustment
class ResizeImageAdjustment(ImageAdjustment):
    """Scale an image to requested or maximum dimensions.

    ``ratio_mode`` ``inset`` keeps the aspect ratio and fits inside the box,
    ``outbound`` fills the box exactly and crops whatever sticks out.
    Upscaling only happens when ``allow_upscaling`` is set.
    """

    DEFAULT_POSITION = 20
    DEFAULT_CONFIGURATION = {
        "width": None,
        "height": None,
        "maximum_width": None,
        "maximum_height": None,
        "ratio_mode": ResizeMode.INSET.value,
        "allow_upscaling": False,
    }

    def __init__(self, configuration: Optional[Mapping[str, Any]] = None, position: Optional[int] = None):
        super().__init__(configuration, position)
        for field in DIMENSION_FIELDS:
            _check_dimension(field, self.get_configuration_value(field))
        self.get_ratio_mode()

    def set_dimension(self, field: str, value: Optional[int]) -> None:
        if field not in DIMENSION_FIELDS:
            raise InvalidAdjustmentConfiguration(field, value, "Unknown dimension")
        _check_dimension(field, value)
        self.set_configuration_value(field, value)

    def get_ratio_mode(self) -> ResizeMode:
        value = self.get_configuration_value("ratio_mode")
        try:
            return ResizeMode(value)
        except ValueError:
            raise InvalidAdjustmentConfiguration("ratio_mode", value, "Must be inset or outbound") from None

    def set_ratio_mode(self, ratio_mode: str) -> None:
        try:
            mode = ResizeMode(ratio_mode)
        except ValueError:
            raise InvalidAdjustmentConfiguration("ratio_mode", ratio_mode, "Must be inset or outbound") from None
        self.set_configuration_value("ratio_mode", mode.value)

    def calculate_dimensions(self, original_size: Tuple[int, int]) -> Tuple[int, int]:
        """Work out the target size for an image of ``original_size``."""
        original_width, original_height = original_size
        width = self.get_configuration_value("width")
        height = self.get_configuration_value("height")
        maximum_width = self.get_configuration_value("maximum_width")
        maximum_height = self.get_configuration_value("maximum_height")
        mode = self.get_ratio_mode()

        if width is None and height is None:
            width, height = maximum_width, maximum_height
            if width is None and height is None:
                return original_size
            # Maximums alone never force the image into an exact box
            mode = ResizeMode.INSET
        else:
            width = min(width, maximum_width) if width and maximum_width else width
            height = min(height, maximum_height) if height and maximum_height else height

        if mode == ResizeMode.OUTBOUND and width and height:
            target = (width, height)
        else:
            ratios = []
            if width:
                ratios.append(width / original_width)
            if height:
                ratios.append(height / original_height)
            # Maximums bound the other axis too
            if maximum_width:
                ratios.append(maximum_width / original_width)
            if maximum_height:
                ratios.append(maximum_height / original_height)
            ratio = min(ratios)
            target = (
                max(1, round(original_width * ratio)),
                max(1, round(original_height * ratio)),
            )

        if not self.get_configuration_value("allow_upscaling") and (
            target[0] > original_width or target[1] > original_height
        ):
            if mode == ResizeMode.INSET:
                return original_size
            shrink = min(original_width / target[0], original_height / target[1])
            target = (max(1, round(target[0] * shrink)), max(1, round(target[1] * shrink)))
        return target

    def can_be_applied(self, image: Image.Image) -> bool:
        return self.calculate_dimensions(image.size) != image.size

    def apply_to_image(self, image: Image.Image) -> Image.Image:
        return resize_image(image, self.calculate_dimensions(image.size), self.get_ratio_mode())


def _check_dimension(field: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidAdjustmentConfiguration(field, value, "Must be a positive integer or None")

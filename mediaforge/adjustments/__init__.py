"""Image adjustments and their kind registry."""

from .base import ADJUSTMENT_TYPES, ImageAdjustment, adjustment_from_dict, register_adjustment
from .crop import CropImageAdjustment
from .resize import ResizeImageAdjustment
from .watermark import WatermarkAdjustment

__all__ = [
    "ADJUSTMENT_TYPES",
    "ImageAdjustment",
    "adjustment_from_dict",
    "register_adjustment",
    "CropImageAdjustment",
    "ResizeImageAdjustment",
    "WatermarkAdjustment",
]

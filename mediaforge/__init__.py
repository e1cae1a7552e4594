"""mediaforge - image adjustment pipeline with watermarking.

Apply an unordered set of adjustments (crop, resize, watermark) to a stored
image, animated GIFs included, and import the result back into a resource
store.
"""

from .adjustments import (
    CropImageAdjustment,
    ImageAdjustment,
    ResizeImageAdjustment,
    WatermarkAdjustment,
    adjustment_from_dict,
    register_adjustment,
)
from .config import Config
from .core.configuration import AdjustmentConfiguration
from .core.pipeline import AdjustmentPipeline
from .core.positioning import HorizontalPosition, Position, VerticalPosition, resolve_position
from .exceptions import (
    AdjustmentContractViolation,
    ImageFileError,
    ImportFailure,
    InvalidAdjustmentConfiguration,
    InvalidConfiguration,
    MediaForgeError,
)
from .services import ImageService, ImageSizeCache, LocalResourceStore, ProcessingResult, Resource, ResourceStore

__version__ = "1.0.0"

__all__ = [
    "AdjustmentConfiguration",
    "AdjustmentContractViolation",
    "AdjustmentPipeline",
    "Config",
    "CropImageAdjustment",
    "HorizontalPosition",
    "ImageAdjustment",
    "ImageFileError",
    "ImageService",
    "ImageSizeCache",
    "ImportFailure",
    "InvalidAdjustmentConfiguration",
    "InvalidConfiguration",
    "LocalResourceStore",
    "MediaForgeError",
    "Position",
    "ProcessingResult",
    "Resource",
    "ResourceStore",
    "ResizeImageAdjustment",
    "VerticalPosition",
    "WatermarkAdjustment",
    "adjustment_from_dict",
    "register_adjustment",
    "resolve_position",
]

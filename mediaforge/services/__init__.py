"""Services orchestrating the adjustment pipeline and its collaborators."""

from .image_service import ImageService, ProcessingResult
from .resource_store import LocalResourceStore, Resource, ResourceStore
from .size_cache import ImageSizeCache

__all__ = [
    "ImageService",
    "ProcessingResult",
    "LocalResourceStore",
    "Resource",
    "ResourceStore",
    "ImageSizeCache",
]

"""Exception hierarchy for mediaforge.

Every error raised by the adjustment pipeline and the image service derives
from :class:`MediaForgeError` so callers can catch the whole family at once.
"""

from typing import Any, Optional


class MediaForgeError(Exception):
    """Base class for all mediaforge errors."""


class ImageFileError(MediaForgeError):
    """Raised when image data is missing, unreadable or cannot be decoded."""


class InvalidAdjustmentConfiguration(MediaForgeError):
    """Raised when an adjustment receives an invalid configuration value."""

    def __init__(self, field: str, value: Any = None, message: Optional[str] = None):
        """Initialize the configuration error.

        Args:
            field: The configuration field that failed validation
            value: The rejected value
            message: Optional human readable explanation
        """
        self.field = field
        self.value = value
        self.message = message or f'Invalid value "{value}"'
        super().__init__(f"{field}: {self.message}")


class InvalidConfiguration(InvalidAdjustmentConfiguration):
    """Raised when a service setting (e.g. output quality) is out of range."""


class AdjustmentContractViolation(MediaForgeError):
    """Raised when an item handed to the pipeline is not an image adjustment."""


class ImportFailure(MediaForgeError):
    """Raised when the resource store refuses to import processed image data."""

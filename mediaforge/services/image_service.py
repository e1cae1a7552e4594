"""Image processing service.

Drives the adjustment pipeline for a stored image: it materializes a local
copy, detects animated GIFs, runs the adjustments (per frame when animated),
re-encodes only when something changed and hands the result back to the
resource store. Image dimensions are memoized in an :class:`ImageSizeCache`.
"""

import copy
import math
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..config import Config
from ..core.pipeline import AdjustmentPipeline
from ..exceptions import ImageFileError, ImportFailure, InvalidConfiguration
from ..utils.gif import is_animated_gif
from ..utils.image_processing import (
    AnimatedImage,
    format_for_extension,
    open_image,
    read_image_size,
    save_image,
)
from ..utils.logging import get_logger
from .resource_store import DEFAULT_COLLECTION, Resource, ResourceStore
from .size_cache import ImageSizeCache

logger = get_logger("mediaforge.image_service")

DEFAULT_QUALITY = 90


@dataclass
class ProcessingResult:
    """Outcome of processing one image."""
    width: int
    height: int
    resource: Resource
    animated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {'width': self.width, 'height': self.height, 'resource': self.resource}


def merge_recursive_overrule(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; override values win."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_recursive_overrule(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def derive_filename(filename: str, width: int, height: int) -> str:
    """Return ``{stem}-{width}x{height}.{ext}`` for a processed image."""
    path = Path(filename)
    extension = path.suffix
    return f"{path.stem}-{width}x{height}{extension}"


class ImageService:
    """Applies adjustments to stored images and imports the results."""

    def __init__(
        self,
        resource_store: ResourceStore,
        size_cache: Optional[ImageSizeCache] = None,
        config: Optional[Config] = None,
        pipeline: Optional[AdjustmentPipeline] = None
    ):
        """Initialize the service.

        Args:
            resource_store: Store used to read sources and import results
            size_cache: Shared size cache (a private one is created if omitted)
            config: Configuration (defaults are used if omitted)
            pipeline: Adjustment pipeline (built from config if omitted)
        """
        self.config = config or Config()
        self.resource_store = resource_store
        self.size_cache = size_cache or ImageSizeCache(self.config.processing.size_cache_entries)
        self.pipeline = pipeline or AdjustmentPipeline(self.config.processing.frame_workers)

    def process_image(self, original_resource: Resource, adjustments: Iterable[object]) -> ProcessingResult:
        """Apply ``adjustments`` to the image stored as ``original_resource``.

        Args:
            original_resource: The stored source image
            adjustments: Adjustments to apply, in any order

        Returns:
            ProcessingResult with the final dimensions and the imported resource

        Raises:
            AdjustmentContractViolation: If an item is not an adjustment
            ImageFileError: If the source cannot be read or decoded
            InvalidConfiguration: If the configured output quality is invalid
            ImportFailure: If the store refuses the result
        """
        ordered = self.pipeline.order(adjustments)
        additional_options: Dict[str, Any] = {}
        extension = original_resource.file_extension

        local_path = self._local_copy(original_resource)
        logger.info(f"Processing image {original_resource.sha1} with {len(ordered)} adjustments")

        with open_image(local_path) as source:
            if extension == 'gif' and is_animated_gif(local_path.read_bytes()):
                logger.debug(f"Image {original_resource.sha1} is an animated GIF")
                animation = AnimatedImage.from_image(source)
                frames, adjustments_applied = self.pipeline.apply_to_frames(animation.frames, ordered)
                image = animation.assemble(frames)
                additional_options['animated'] = True
            else:
                image, adjustments_applied = self.pipeline.apply(source, ordered)

            if adjustments_applied:
                image_format = format_for_extension(extension) or source.format or 'PNG'
                width, height = image.size
                resource = self._import_processed(
                    image, image_format, original_resource, additional_options, width, height
                )

        if not adjustments_applied:
            logger.debug(f"No adjustment applied to {original_resource.sha1}, re-importing original data")
            resource = self.resource_store.import_resource(
                self.resource_store.get_stream(original_resource),
                original_resource.collection_name,
                filename=original_resource.filename,
            )
            if resource is None:
                raise ImportFailure(
                    f"An error occurred while re-importing the original image {original_resource.sha1}."
                )
            resource.filename = original_resource.filename
            size = self.get_image_size(original_resource)
            width, height = size['width'], size['height']

        self.size_cache.set(resource.cache_entry_identifier, {'width': width, 'height': height})

        return ProcessingResult(
            width=width,
            height=height,
            resource=resource,
            animated=bool(additional_options.get('animated')),
        )

    def process_bytes(
        self,
        data: bytes,
        filename: str,
        adjustments: Iterable[object],
        collection_name: str = DEFAULT_COLLECTION
    ) -> ProcessingResult:
        """Import raw image bytes and process them like a stored image."""
        resource = self.resource_store.import_resource(data, collection_name, filename=filename)
        if resource is None:
            raise ImportFailure(f"An error occurred while importing the source image {filename}.")
        return self.process_image(resource, adjustments)

    def get_image_size(self, resource: Resource) -> Dict[str, int]:
        """Get the size of a stored image, using the size cache.

        Returns:
            Dictionary with ``width`` and ``height``

        Raises:
            ImageFileError: If the resource is not a valid image file
        """
        identity = resource.cache_entry_identifier
        size = self.size_cache.get(identity)
        if size is None:
            width, height = read_image_size(self._local_copy(resource))
            size = {'width': int(width), 'height': int(height)}
            self.size_cache.set(identity, size)
        return size

    def get_options_merged_with_defaults(self, additional_options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Merge ``image.default_options`` with per-call options and derive encoder settings.

        Raises:
            InvalidConfiguration: If quality is not an integer between 0 and 100
        """
        default_options = self.config.get('image.default_options')
        if not isinstance(default_options, dict):
            default_options = {}
        options = merge_recursive_overrule(default_options, additional_options or {})

        raw_quality = options.get('quality', DEFAULT_QUALITY)
        try:
            quality = int(raw_quality)
        except (TypeError, ValueError):
            raise InvalidConfiguration(
                'image.default_options.quality', raw_quality, 'Quality must be an integer'
            ) from None
        if quality < 0 or quality > 100:
            raise InvalidConfiguration(
                'image.default_options.quality',
                quality,
                f'Only values between 0 and 100 are allowed, current value: {quality}',
            )

        options['quality'] = quality
        options['jpeg_quality'] = quality
        # Lossless compression runs inverse to quality: 100 -> 0, 0 -> 9
        options['png_compression_level'] = int(math.ceil(9 - quality * 9 / 100))
        return options

    def _local_copy(self, resource: Resource) -> Path:
        try:
            local_path = Path(self.resource_store.create_temporary_local_copy(resource))
        except OSError as exc:
            logger.error(f"Resource data of {resource.sha1} could not be copied: {exc}")
            raise ImageFileError(
                f"The resource data of the original image does not exist ({resource.sha1})."
            ) from exc
        if not local_path.exists():
            raise ImageFileError(
                f"The resource data of the original image does not exist ({resource.sha1}, {local_path})."
            )
        return local_path

    def _import_processed(
        self,
        image: Any,
        image_format: str,
        original_resource: Resource,
        additional_options: Dict[str, Any],
        width: int,
        height: int
    ) -> Resource:
        options = self.get_options_merged_with_defaults(additional_options)
        suffix = f".{original_resource.file_extension}" if original_resource.file_extension else ""
        fd, temporary_path = tempfile.mkstemp(
            prefix='ProcessedImage-', suffix=suffix, dir=self.config.processing.temp_dir
        )
        os.close(fd)
        try:
            save_image(image, temporary_path, image_format, options)
            resource = self.resource_store.import_resource(
                temporary_path, original_resource.collection_name
            )
            if resource is None:
                raise ImportFailure('An error occurred while importing a generated image file as a resource.')
            resource.filename = derive_filename(original_resource.filename, width, height)
            logger.info(f"Stored processed image {resource.filename} ({resource.sha1})")
            return resource
        finally:
            if os.path.exists(temporary_path):
                os.unlink(temporary_path)

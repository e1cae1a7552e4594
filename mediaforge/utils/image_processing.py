"""Image primitive layer for mediaforge.

Thin wrappers around Pillow covering the handful of operations the
adjustment pipeline needs: open, copy, paste, resize, strip and save,
plus splitting animated images into frames and reassembling them.
"""

import io
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union

from PIL import Image, ImageOps, ImageSequence

from ..exceptions import ImageFileError
from .logging import get_logger

logger = get_logger("mediaforge.image_processing")

ImageSource = Union[str, Path, bytes, bytearray, BinaryIO]


class ResizeMode(Enum):
    """Image resize modes."""
    INSET = "inset"  # Scale to the given size, caller keeps the aspect ratio
    OUTBOUND = "outbound"  # Fill the box exactly, crop the overflow


@dataclass
class AnimatedImage:
    """Ordered frames of a multi-frame image sharing one logical canvas."""
    frames: List[Image.Image]
    durations: List[int] = field(default_factory=list)
    loop: int = 0

    @property
    def size(self) -> Tuple[int, int]:
        return self.frames[0].size

    @classmethod
    def from_image(cls, image: Image.Image) -> "AnimatedImage":
        """Split an opened multi-frame image into coalesced RGBA frames."""
        frames = []
        durations = []
        for frame in ImageSequence.Iterator(image):
            durations.append(int(frame.info.get("duration", 100)))
            frames.append(frame.convert("RGBA"))
        logger.debug(f"Split animated image into {len(frames)} frames")
        return cls(frames=frames, durations=durations, loop=int(image.info.get("loop", 0)))

    def assemble(self, frames: List[Image.Image]) -> "AnimatedImage":
        """Rebuild an animation from transformed frames, keeping their order.

        The first frame becomes the base container and the remaining frames
        are appended as layers behind it.
        """
        if len(frames) != len(self.frames):
            raise ValueError(f"Expected {len(self.frames)} frames, got {len(frames)}")
        base, layers = frames[0], list(frames[1:])
        return AnimatedImage(frames=[base] + layers, durations=list(self.durations), loop=self.loop)


def open_image(source: ImageSource) -> Image.Image:
    """Decode an image from a path, raw bytes or a binary stream.

    Raises:
        ImageFileError: If the data cannot be read or decoded
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(source)
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.error(f"Failed to decode image {_describe(source)}: {exc}")
        raise ImageFileError(f"Could not decode image data ({_describe(source)}): {exc}") from exc
    return image


def read_image_size(path: Union[str, Path]) -> Tuple[int, int]:
    """Read the pixel dimensions of an image file without decoding pixels."""
    try:
        with Image.open(path) as image:
            return image.size
    except (OSError, ValueError) as exc:
        raise ImageFileError(f"The given resource was not a valid image file: {path}") from exc


def use_palette_of(target: Image.Image, source: Image.Image) -> Image.Image:
    """Give ``target`` the palette of ``source`` when both are palette images."""
    if source.mode == "P" and target.mode == "P":
        palette = source.getpalette()
        if palette:
            target.putpalette(palette)
    return target


def strip_metadata(image: Image.Image) -> Image.Image:
    """Drop EXIF, ICC and text chunks carried on the image, in place."""
    image.info.clear()
    image.getexif().clear()
    return image


def paste_overlay(base: Image.Image, overlay: Image.Image, position: Tuple[int, int]) -> Image.Image:
    """Paste ``overlay`` onto ``base`` at ``position`` and return the result.

    The overlay alpha channel is used as the paste mask. Coordinates outside
    the base canvas are clipped by Pillow. Palette images are converted to
    RGBA before pasting and the converted image is returned, so overlay
    colours are kept and the encoder re-quantizes on save. Other bases are
    pasted onto in place.
    """
    mask = None
    if overlay.mode == "P" and "transparency" in overlay.info:
        overlay = overlay.convert("RGBA")
    if overlay.mode in ("RGBA", "LA"):
        mask = overlay.getchannel("A")

    if base.mode == "P":
        base = base.convert("RGBA")

    base.paste(overlay, (int(position[0]), int(position[1])), mask)
    return base


def resize_image(
    image: Image.Image,
    size: Tuple[int, int],
    mode: ResizeMode = ResizeMode.INSET,
    resample: Image.Resampling = Image.Resampling.LANCZOS
) -> Image.Image:
    """Resize image with various modes.

    Args:
        image: PIL Image
        size: Target size (width, height)
        mode: Resize mode
        resample: Resampling filter

    Returns:
        Resized image
    """
    if mode == ResizeMode.INSET:
        return image.resize(size, resample)
    elif mode == ResizeMode.OUTBOUND:
        return ImageOps.fit(image, size, resample)
    raise ValueError(f"Unknown resize mode: {mode}")


def format_for_extension(extension: str) -> Optional[str]:
    """Return the Pillow format name registered for a file extension."""
    if not extension:
        return None
    return Image.registered_extensions().get("." + extension.lower().lstrip("."))


def _flatten_for_jpeg(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA", "P"):
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.getchannel("A"))
        return background
    if image.mode not in ("RGB", "L", "CMYK"):
        return image.convert("RGB")
    return image


def build_save_kwargs(image_format: str, options: Dict[str, Any]) -> Dict[str, Any]:
    """Translate merged output options into Pillow save keyword arguments."""
    save_kwargs: Dict[str, Any] = {}
    if image_format == "JPEG":
        save_kwargs = {"quality": options.get("jpeg_quality", 90), "optimize": True}
    elif image_format == "WEBP":
        save_kwargs = {"quality": options.get("jpeg_quality", 90)}
    elif image_format == "PNG":
        save_kwargs = {"compress_level": options.get("png_compression_level", 1)}
    return save_kwargs


def save_image(
    image: Union[Image.Image, AnimatedImage],
    target: Union[str, Path, BinaryIO],
    image_format: str,
    options: Optional[Dict[str, Any]] = None
) -> None:
    """Encode an image (or animation) to ``target`` using merged output options.

    Args:
        image: Single image or animated frame sequence
        target: Output path or writable binary stream
        image_format: Pillow format name, e.g. ``"PNG"``
        options: Output options as produced by the image service
    """
    options = options or {}
    save_kwargs = build_save_kwargs(image_format, options)

    if isinstance(image, AnimatedImage):
        frames = image.frames
        if image_format == "JPEG":
            frames = [_flatten_for_jpeg(frame) for frame in frames]
        if image.durations:
            save_kwargs["duration"] = image.durations
        frames[0].save(
            target,
            image_format,
            save_all=bool(options.get("animated", True)),
            append_images=frames[1:],
            loop=image.loop,
            **save_kwargs
        )
        return

    if image_format == "JPEG":
        image = _flatten_for_jpeg(image)
    image.save(target, image_format, **save_kwargs)


def _describe(source: ImageSource) -> str:
    if isinstance(source, (str, Path)):
        return os.fspath(source)
    if isinstance(source, (bytes, bytearray)):
        return f"{len(source)} bytes"
    return getattr(source, "name", type(source).__name__)

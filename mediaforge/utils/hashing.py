"""Hashing utilities for mediaforge cache keys.

Adjustment configurations are hashed from a canonical JSON serialization
(sorted keys, compact separators) so two configurations holding the same
values always produce the same digest, regardless of insertion order.

Typical usage:
    from mediaforge.utils.hashing import generate_configuration_hash

    generate_configuration_hash({"width": 100, "height": 50})
    generate_configuration_hash({"height": 50, "width": 100})
    # identical digests
"""

import hashlib
import json
from typing import Any, Mapping

from PIL import Image


def canonical_json(content: Mapping[str, Any]) -> str:
    """Serialize a configuration mapping into its canonical JSON form.

    Args:
        content: Mapping made of JSON compatible values

    Returns:
        JSON text with sorted keys and no insignificant whitespace
    """
    return json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def generate_configuration_hash(content: Mapping[str, Any]) -> str:
    """
    Generate a SHA256 hash for an adjustment configuration.

    Args:
        content: The configuration mapping to hash

    Returns:
        SHA256 hexadecimal digest of the canonical serialization
    """
    return hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()


def generate_image_fingerprint(image: Image.Image) -> str:
    """Return a SHA1 digest identifying the pixel content of an image.

    The mode and size take part in the digest so that two images with the
    same raw buffer but a different interpretation never collide.
    """
    digest = hashlib.sha1()
    digest.update(f"{image.mode}:{image.width}x{image.height}:".encode("ascii"))
    digest.update(image.tobytes())
    palette = image.getpalette() if image.mode == "P" else None
    if palette:
        digest.update(bytes(palette))
    return digest.hexdigest()


def sha1_of_bytes(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()

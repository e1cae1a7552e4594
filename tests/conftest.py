"""
Shared test fixtures for the mediaforge test suite.

Provides temporary directories, generated Pillow images, GIF payloads and
wired-up resource store / image service instances.
"""

import io
import shutil
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from mediaforge.config import Config
from mediaforge.services.image_service import ImageService
from mediaforge.services.resource_store import LocalResourceStore
from mediaforge.services.size_cache import ImageSizeCache


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep MEDIAFORGE_* variables from the host out of the tests."""
    for name in (
        "MEDIAFORGE_IMAGE_QUALITY",
        "MEDIAFORGE_FRAME_WORKERS",
        "MEDIAFORGE_TEMP_DIR",
        "MEDIAFORGE_LOG_LEVEL",
        "MEDIAFORGE_LOGGING_DISABLED",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir):
    """Create a configuration writing processed files into the temp directory."""
    config = Config(config_file=str(temp_dir / "missing.json"))
    processed_dir = temp_dir / "processed"
    processed_dir.mkdir()
    config.processing.temp_dir = str(processed_dir)
    return config


# ============================================================================
# Image Fixtures
# ============================================================================

def png_bytes(image):
    buffer = io.BytesIO()
    image.save(buffer, "PNG")
    return buffer.getvalue()


def gif_bytes(colors, size=(40, 30)):
    """Encode one GIF frame per colour; a duration forces per-frame control blocks."""
    frames = [Image.new("RGB", size, color) for color in colors]
    buffer = io.BytesIO()
    if len(frames) == 1:
        frames[0].save(buffer, "GIF", duration=100)
    else:
        frames[0].save(buffer, "GIF", save_all=True, append_images=frames[1:], duration=100, loop=0)
    return buffer.getvalue()


@pytest.fixture
def source_image():
    """A plain white 200x100 RGB image."""
    return Image.new("RGB", (200, 100), (255, 255, 255))


@pytest.fixture
def overlay_image():
    """A solid red 20x10 RGB overlay."""
    return Image.new("RGB", (20, 10), (255, 0, 0))


@pytest.fixture
def transparent_overlay():
    """A 20x10 RGBA overlay whose left half is fully transparent."""
    overlay = Image.new("RGBA", (20, 10), (0, 0, 255, 255))
    overlay.paste((0, 0, 0, 0), (0, 0, 10, 10))
    return overlay


@pytest.fixture
def animated_gif_bytes():
    """A three frame animated GIF."""
    return gif_bytes([(255, 0, 0), (0, 255, 0), (0, 0, 255)])


@pytest.fixture
def static_gif_bytes():
    """A single frame GIF."""
    return gif_bytes([(255, 0, 0)])


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def resource_store(temp_dir):
    """A filesystem resource store rooted in the temp directory."""
    store = LocalResourceStore(temp_dir / "storage", temp_dir / "copies")
    yield store
    store.close()


@pytest.fixture
def size_cache():
    return ImageSizeCache(max_entries=100)


@pytest.fixture
def image_service(resource_store, size_cache, test_config):
    """An image service wired to the temp store and configuration."""
    return ImageService(resource_store, size_cache=size_cache, config=test_config)


@pytest.fixture
def stored_png(resource_store, source_image):
    """The 200x100 source image imported as photo.png."""
    return resource_store.import_resource(png_bytes(source_image), filename="photo.png")


@pytest.fixture
def encode_png():
    return png_bytes


@pytest.fixture
def encode_gif():
    return gif_bytes

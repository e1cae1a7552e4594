"""
Integration tests for ImageService.

Runs real images through the resource store, the adjustment pipeline and the
encoders, and checks the resulting resources, filenames and cached sizes.
"""

import io
import os
from unittest.mock import patch

import pytest
from PIL import Image

from mediaforge.adjustments import CropImageAdjustment, ResizeImageAdjustment, WatermarkAdjustment
from mediaforge.exceptions import (
    AdjustmentContractViolation,
    ImageFileError,
    ImportFailure,
    InvalidConfiguration,
)
from mediaforge.services.image_service import ImageService, ProcessingResult, derive_filename
from mediaforge.services.resource_store import Resource


def open_result(resource_store, resource):
    return Image.open(resource_store.get_stream(resource))


def bottom_right_watermark(overlay):
    adjustment = WatermarkAdjustment(watermark=overlay)
    adjustment.set_horizontal_position("right")
    adjustment.set_vertical_position("bottom")
    adjustment.set_horizontal_offset(-2)
    adjustment.set_vertical_offset(-3)
    return adjustment


class TestProcessImage:
    """Test cases for ImageService.process_image."""

    def test_watermark_end_to_end(self, image_service, resource_store, stored_png, overlay_image):
        result = image_service.process_image(stored_png, [bottom_right_watermark(overlay_image)])

        assert isinstance(result, ProcessingResult)
        assert (result.width, result.height) == (200, 100)
        assert result.animated is False
        assert result.resource.sha1 != stored_png.sha1
        assert result.resource.filename == "photo-200x100.png"

        with open_result(resource_store, result.resource) as image:
            rgb = image.convert("RGB")
            assert rgb.getpixel((178, 87)) == (255, 0, 0)
            assert rgb.getpixel((197, 96)) == (255, 0, 0)
            assert rgb.getpixel((177, 87)) == (255, 255, 255)
            assert rgb.getpixel((178, 97)) == (255, 255, 255)

    def test_nothing_applied_reimports_verbatim(self, image_service, resource_store, stored_png):
        original_bytes = resource_store.get_stream(stored_png).read()

        result = image_service.process_image(stored_png, [WatermarkAdjustment()])

        assert result.resource.sha1 == stored_png.sha1
        assert result.resource.filename == "photo.png"
        assert resource_store.get_stream(result.resource).read() == original_bytes
        assert (result.width, result.height) == (200, 100)

    def test_empty_adjustment_set(self, image_service, stored_png):
        result = image_service.process_image(stored_png, [])
        assert result.resource.sha1 == stored_png.sha1
        assert result.to_dict() == {"width": 200, "height": 100, "resource": result.resource}

    def test_crop_and_resize_filename(self, image_service, stored_png):
        adjustments = [
            ResizeImageAdjustment({"width": 50}),
            CropImageAdjustment({"width": 100, "height": 100}),
        ]
        result = image_service.process_image(stored_png, adjustments)
        assert (result.width, result.height) == (50, 50)
        assert result.resource.filename == "photo-50x50.png"

    def test_result_size_is_cached(self, image_service, size_cache, stored_png, overlay_image):
        result = image_service.process_image(stored_png, [bottom_right_watermark(overlay_image)])
        assert size_cache.get(result.resource.cache_entry_identifier) == {"width": 200, "height": 100}

    def test_collection_is_preserved(self, image_service, resource_store, source_image, overlay_image, encode_png):
        original = resource_store.import_resource(encode_png(source_image), "private", filename="p.png")
        result = image_service.process_image(original, [WatermarkAdjustment(watermark=overlay_image)])
        assert result.resource.collection_name == "private"

    def test_jpeg_output(self, image_service, resource_store, source_image, overlay_image):
        buffer = io.BytesIO()
        source_image.save(buffer, "JPEG")
        original = resource_store.import_resource(buffer.getvalue(), filename="photo.jpg")

        result = image_service.process_image(original, [WatermarkAdjustment(watermark=overlay_image)])

        assert result.resource.filename == "photo-200x100.jpg"
        with open_result(resource_store, result.resource) as image:
            assert image.format == "JPEG"

    def test_contract_violation(self, image_service, stored_png):
        with pytest.raises(AdjustmentContractViolation):
            image_service.process_image(stored_png, ["not an adjustment"])

    def test_missing_source_data(self, image_service):
        missing = Resource(sha1="f" * 40, filename="gone.png")
        with pytest.raises(ImageFileError):
            image_service.process_image(missing, [])

    def test_undecodable_source(self, image_service, resource_store):
        broken = resource_store.import_resource(b"this is not a png", filename="broken.png")
        with pytest.raises(ImageFileError):
            image_service.process_image(broken, [])

    def test_import_failure_cleans_up(self, image_service, resource_store, stored_png, overlay_image, test_config):
        with patch.object(resource_store, "import_resource", return_value=None):
            with pytest.raises(ImportFailure):
                image_service.process_image(stored_png, [WatermarkAdjustment(watermark=overlay_image)])
        assert os.listdir(test_config.processing.temp_dir) == []

    def test_verbatim_import_failure(self, image_service, resource_store, stored_png):
        with patch.object(resource_store, "import_resource", return_value=None):
            with pytest.raises(ImportFailure):
                image_service.process_image(stored_png, [])

    def test_temp_files_removed_after_success(self, image_service, stored_png, overlay_image, test_config):
        image_service.process_image(stored_png, [WatermarkAdjustment(watermark=overlay_image)])
        assert os.listdir(test_config.processing.temp_dir) == []

    def test_invalid_quality(self, image_service, stored_png, overlay_image, test_config):
        test_config.image.default_options["quality"] = 150
        with pytest.raises(InvalidConfiguration):
            image_service.process_image(stored_png, [WatermarkAdjustment(watermark=overlay_image)])


class TestAnimatedGif:
    """Test per-frame processing of animated GIFs."""

    def test_each_frame_watermarked(self, image_service, resource_store, animated_gif_bytes, overlay_image):
        original = resource_store.import_resource(animated_gif_bytes, filename="anim.gif")
        adjustment = WatermarkAdjustment(watermark=overlay_image)
        adjustment.set_horizontal_position("right")
        adjustment.set_vertical_position("bottom")

        result = image_service.process_image(original, [adjustment])

        assert result.animated is True
        assert (result.width, result.height) == (40, 30)
        assert result.resource.filename == "anim-40x30.gif"
        with open_result(resource_store, result.resource) as image:
            assert image.n_frames == 3
            for index in range(3):
                image.seek(index)
                frame = image.convert("RGB")
                assert frame.getpixel((39, 29)) == (255, 0, 0)

    def test_frame_order_kept_with_workers(self, resource_store, size_cache, test_config,
                                           animated_gif_bytes, overlay_image):
        test_config.processing.frame_workers = 3
        service = ImageService(resource_store, size_cache=size_cache, config=test_config)
        original = resource_store.import_resource(animated_gif_bytes, filename="anim.gif")

        result = service.process_image(original, [WatermarkAdjustment(watermark=overlay_image)])

        with open_result(resource_store, result.resource) as image:
            colours = []
            for index in range(image.n_frames):
                image.seek(index)
                colours.append(image.convert("RGB").getpixel((39, 29)))
        assert colours == [(255, 0, 0), (0, 255, 0), (0, 0, 255)]

    def test_static_gif_processed_as_single_image(self, image_service, resource_store,
                                                   encode_gif, overlay_image):
        # The source palette holds only blue, the overlay is red
        original = resource_store.import_resource(encode_gif([(0, 0, 255)]), filename="still.gif")
        result = image_service.process_image(original, [WatermarkAdjustment(watermark=overlay_image)])
        assert result.animated is False
        assert result.resource.filename == "still-40x30.gif"
        with open_result(resource_store, result.resource) as image:
            rgb = image.convert("RGB")
            assert rgb.getpixel((5, 5)) == (255, 0, 0)
            assert rgb.getpixel((19, 9)) == (255, 0, 0)
            assert rgb.getpixel((30, 20)) == (0, 0, 255)

    def test_palette_png_watermark_colour(self, image_service, resource_store, overlay_image):
        buffer = io.BytesIO()
        Image.new("RGB", (40, 30), (0, 128, 0)).quantize(colors=2).save(buffer, "PNG")
        original = resource_store.import_resource(buffer.getvalue(), filename="palette.png")

        result = image_service.process_image(original, [WatermarkAdjustment(watermark=overlay_image)])

        with open_result(resource_store, result.resource) as image:
            rgb = image.convert("RGB")
            assert rgb.getpixel((5, 5)) == (255, 0, 0)
            assert rgb.getpixel((30, 20)) == (0, 128, 0)

    def test_animated_nothing_applied(self, image_service, resource_store, animated_gif_bytes):
        original = resource_store.import_resource(animated_gif_bytes, filename="anim.gif")
        result = image_service.process_image(original, [WatermarkAdjustment()])
        assert result.resource.sha1 == original.sha1
        assert result.animated is True


class TestProcessBytes:
    """Test cases for ImageService.process_bytes."""

    def test_process_bytes(self, image_service, source_image, overlay_image, encode_png):
        result = image_service.process_bytes(
            encode_png(source_image), "upload.png", [WatermarkAdjustment(watermark=overlay_image)]
        )
        assert result.resource.filename == "upload-200x100.png"

    def test_process_bytes_import_failure(self, image_service, resource_store, source_image, encode_png):
        with patch.object(resource_store, "import_resource", return_value=None):
            with pytest.raises(ImportFailure):
                image_service.process_bytes(encode_png(source_image), "upload.png", [])


class TestImageSize:
    """Test cases for ImageService.get_image_size."""

    def test_size_read_and_cached(self, image_service, size_cache, stored_png):
        assert image_service.get_image_size(stored_png) == {"width": 200, "height": 100}
        assert size_cache.get(stored_png.cache_entry_identifier) == {"width": 200, "height": 100}

    def test_cached_size_used(self, image_service, size_cache, stored_png):
        size_cache.set(stored_png.cache_entry_identifier, {"width": 1, "height": 2})
        assert image_service.get_image_size(stored_png) == {"width": 1, "height": 2}

    def test_invalid_image(self, image_service, resource_store):
        broken = resource_store.import_resource(b"nope", filename="broken.png")
        with pytest.raises(ImageFileError):
            image_service.get_image_size(broken)


class TestOutputOptions:
    """Test cases for get_options_merged_with_defaults."""

    @pytest.mark.parametrize("quality,compression", [(100, 0), (90, 1), (50, 5), (0, 9)])
    def test_png_compression_level(self, image_service, quality, compression):
        options = image_service.get_options_merged_with_defaults({"quality": quality})
        assert options["jpeg_quality"] == quality
        assert options["png_compression_level"] == compression

    def test_defaults(self, image_service):
        options = image_service.get_options_merged_with_defaults()
        assert options["quality"] == 90
        assert options["jpeg_quality"] == 90
        assert options["png_compression_level"] == 1

    def test_additional_options_win(self, image_service, test_config):
        test_config.image.default_options = {"quality": 80, "extra": {"a": 1, "b": 2}}
        options = image_service.get_options_merged_with_defaults({"extra": {"b": 3}, "animated": True})
        assert options["quality"] == 80
        assert options["extra"] == {"a": 1, "b": 3}
        assert options["animated"] is True
        assert test_config.image.default_options["extra"] == {"a": 1, "b": 2}

    @pytest.mark.parametrize("quality", [-1, 101, "high"])
    def test_invalid_quality(self, image_service, quality):
        with pytest.raises(InvalidConfiguration) as exc_info:
            image_service.get_options_merged_with_defaults({"quality": quality})
        assert exc_info.value.field == "image.default_options.quality"


class TestDeriveFilename:
    """Test the processed filename policy."""

    def test_derive_filename(self):
        assert derive_filename("photo.png", 200, 100) == "photo-200x100.png"
        assert derive_filename("archive.tar.gz", 1, 2) == "archive.tar-1x2.gz"
        assert derive_filename("noext", 3, 4) == "noext-3x4"

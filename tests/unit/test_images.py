"""
Unit tests for JPEG re-encoding of uploaded images.
"""

import io

import pytest
from PIL import Image

from src.core.media.images import ImageEncodingError, encode_jpeg
from tests.utils.helpers import make_image_bytes


def _open(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


class TestEncodeJpeg:
    """Tests for encode_jpeg."""

    def test_png_becomes_jpeg(self, png_bytes):
        jpeg = encode_jpeg(png_bytes)

        img = _open(jpeg)
        assert img.format == "JPEG"
        assert img.size == (32, 32)

    def test_transparency_is_flattened_to_rgb(self, rgba_png_bytes):
        img = _open(encode_jpeg(rgba_png_bytes))

        assert img.mode == "RGB"

    def test_greyscale_is_converted_to_rgb(self):
        img = _open(encode_jpeg(make_image_bytes("PNG", mode="L")))

        assert img.mode == "RGB"

    def test_jpeg_input_is_reencoded(self):
        jpeg = encode_jpeg(make_image_bytes("JPEG"), quality=30)

        assert jpeg[:2] == b"\xff\xd8"

    def test_lower_quality_gives_smaller_output(self):
        noise = Image.effect_noise((128, 128), 64).convert("RGB")
        buffer = io.BytesIO()
        noise.save(buffer, format="PNG")

        low = encode_jpeg(buffer.getvalue(), quality=10)
        high = encode_jpeg(buffer.getvalue(), quality=90)

        assert len(low) < len(high)

    def test_exif_orientation_is_applied(self):
        """Orientation 6 means the stored pixels must be rotated 90 degrees."""
        img = Image.new("RGB", (40, 20), (10, 20, 30))
        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", exif=exif.tobytes())

        result = _open(encode_jpeg(buffer.getvalue()))

        assert result.size == (20, 40)

    def test_garbage_is_rejected(self):
        with pytest.raises(ImageEncodingError):
            encode_jpeg(b"definitely not an image")

    def test_empty_payload_is_rejected(self):
        with pytest.raises(ImageEncodingError, match="empty"):
            encode_jpeg(b"")

    @pytest.mark.parametrize("quality", [0, 96, -5])
    def test_quality_out_of_range_is_rejected(self, png_bytes, quality):
        with pytest.raises(ValueError, match="quality"):
            encode_jpeg(png_bytes, quality=quality)

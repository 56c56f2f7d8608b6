"""
Image preparation before upload.

Profile images arrive in whatever format the client produced. They are
normalised to JPEG at a fixed quality so every stored object has the
same content type and a predictable size.
"""

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"


class ImageEncodingError(ValueError):
    """Raised when the payload cannot be decoded as an image."""
    pass


def encode_jpeg(image_data: bytes, quality: int = 50) -> bytes:
    """
    Re-encode an image payload as JPEG.

    EXIF orientation is applied first because the orientation tag is
    lost in the re-encode. Transparency is flattened onto white.

    Args:
        image_data: Raw image bytes (JPEG, PNG, WebP, ...)
        quality: JPEG quality, 1-95

    Returns:
        JPEG bytes

    Raises:
        ImageEncodingError: payload is empty or not a decodable image
    """
    if not image_data:
        raise ImageEncodingError("Image payload is empty")

    if not 1 <= quality <= 95:
        raise ValueError(f"JPEG quality must be between 1 and 95, got {quality}")

    try:
        with Image.open(io.BytesIO(image_data)) as img:
            original_format = img.format
            img = ImageOps.exif_transpose(img)

            if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                rgba = img.convert("RGBA")
                background = Image.new("RGB", rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.getchannel("A"))
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")

            output = io.BytesIO()
            img.save(output, format="JPEG", quality=quality, optimize=True)

    except (UnidentifiedImageError, OSError) as e:
        raise ImageEncodingError(f"Payload is not a valid image: {e}") from e

    data = output.getvalue()

    logger.debug(
        "Encoded image as JPEG",
        extra={
            "original_format": original_format,
            "input_bytes": len(image_data),
            "output_bytes": len(data),
            "quality": quality,
        }
    )

    return data

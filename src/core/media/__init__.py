"""
Stored media domain logic.

Contains the value objects, URL/key helpers and image preparation used by
the storage facade.
"""

from .models import AddressingStyle, ObjectLocation, PresignedURL
from .keys import (
    InvalidObjectURLError,
    build_image_key,
    build_object_url,
    detect_addressing_style,
    extract_object_key,
    is_s3_url,
)
from .images import JPEG_CONTENT_TYPE, ImageEncodingError, encode_jpeg

__all__ = [
    "AddressingStyle",
    "ObjectLocation",
    "PresignedURL",
    "InvalidObjectURLError",
    "build_image_key",
    "build_object_url",
    "detect_addressing_style",
    "extract_object_key",
    "is_s3_url",
    "JPEG_CONTENT_TYPE",
    "ImageEncodingError",
    "encode_jpeg",
]

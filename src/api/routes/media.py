"""
Profile media API endpoints.

The three operations the mobile app needs from object storage:
1. Sign a download URL for a private object (GET /presigned-url)
2. Upload a profile image (POST /images)
3. Look up an object's size without downloading it (GET /size)

Objects are addressed by their full S3 URL, the same URL the upload
endpoint returns, so clients never handle bucket names or keys.
"""

import logging
from datetime import datetime
from typing import Annotated, NoReturn, Optional

from botocore.exceptions import ClientError
from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field

from ...infrastructure.storage.client import (
    PROVIDER_ERRORS,
    ObjectURLUnavailableError,
    StorageClient,
    StorageError,
)
from ..dependencies import (
    AuthenticatedUser,
    SettingsDep,
    StorageClientDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Error codes S3 uses for a missing object (HEAD responses carry no body, hence "404")
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class PresignedURLResponse(BaseModel):
    """A signed, time-limited download URL."""
    url: str = Field(description="Signed GET URL")
    key: str = Field(description="Object key the URL grants access to")
    expires_at: datetime = Field(description="When the URL stops working (UTC)")


class ImageUploadResponse(BaseModel):
    """Response after uploading a profile image."""
    url: str = Field(description="Object URL of the stored image")
    key: str = Field(description="Object key of the stored image")


class FileSizeResponse(BaseModel):
    """Object size read from metadata."""
    url: str = Field(description="Object URL that was inspected")
    key: str = Field(description="Object key that was inspected")
    size_bytes: int = Field(description="Content length in bytes")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_storage_url(storage: StorageClient, url: str) -> str:
    """Reject URLs that don't point at our storage and return the key."""
    if not storage.is_storage_url(url):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Not a storage URL: {url}"
        )

    try:
        return storage.extract_key(url)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


def _raise_provider_error(error: Exception, key: str) -> NoReturn:
    """Translate a boto3/botocore error into an HTTP error."""
    code = None
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code")

    if code in NOT_FOUND_CODES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Object not found: {key}"
        )

    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Storage provider error: {code or type(error).__name__}"
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/presigned-url",
    response_model=PresignedURLResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign a download URL",
    description="Generate a time-limited GET URL for a private object",
)
async def get_presigned_url(
    url: Annotated[str, Query(description="Full S3 URL of the object")],
    api_key: AuthenticatedUser,
    storage: StorageClientDep,
    expiry_seconds: Annotated[
        Optional[int],
        Query(gt=0, le=604800, description="Validity window; configured default if omitted"),
    ] = None,
) -> PresignedURLResponse:
    """
    Sign a download URL.

    Objects in the bucket are private. Clients that can't authenticate
    against S3 (image views, share sheets) load them through this URL.
    """
    key = _require_storage_url(storage, url)

    try:
        presigned = await storage.get_presigned_url(url, expiry_seconds=expiry_seconds)
    except PROVIDER_ERRORS as e:
        _raise_provider_error(e, key)

    logger.info(
        "Issued presigned URL",
        extra={"key": presigned.key, "expires_at": presigned.expires_at.isoformat()}
    )

    return PresignedURLResponse(
        url=presigned.url,
        key=presigned.key,
        expires_at=presigned.expires_at,
    )


@router.post(
    "/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload profile image",
    description="Upload an image; it is stored as an encrypted JPEG",
)
async def upload_image(
    image: Annotated[UploadFile, File(description="Image file (JPEG/PNG/WebP)")],
    image_name: Annotated[str, Form(description="File name to store the image under")],
    api_key: AuthenticatedUser,
    storage: StorageClientDep,
    settings: SettingsDep,
) -> ImageUploadResponse:
    """
    Upload a profile image.

    The image is re-encoded as JPEG and stored under the profile image
    prefix with server-side encryption. The returned URL can be passed
    back to the other endpoints.
    """
    if not image.content_type or not image.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Upload is not an image (got {image.content_type})"
        )

    image_data = await image.read()

    max_size_bytes = settings.max_image_size_mb * 1024 * 1024
    if len(image_data) > max_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image exceeds {settings.max_image_size_mb}MB"
        )

    logger.info(
        "Processing image upload",
        extra={"image_name": image_name, "size_bytes": len(image_data)}
    )

    try:
        file_url = await storage.upload_image(image_data, image_name)
    except ValueError as e:
        # Bad name or undecodable image
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except ObjectURLUnavailableError as e:
        logger.error("Image upload URL unavailable", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Upload finished but the image URL is not available"
        )
    except PROVIDER_ERRORS as e:
        _raise_provider_error(e, image_name)

    return ImageUploadResponse(
        url=file_url,
        key=storage.extract_key(file_url),
    )


@router.get(
    "/size",
    response_model=FileSizeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get object size",
    description="Read an object's content length from its metadata",
)
async def get_file_size(
    url: Annotated[str, Query(description="Full S3 URL of the object")],
    api_key: AuthenticatedUser,
    storage: StorageClientDep,
) -> FileSizeResponse:
    """Get the size of a stored object via a HEAD request."""
    key = _require_storage_url(storage, url)

    try:
        size_bytes = await storage.get_file_size(url)
    except PROVIDER_ERRORS as e:
        _raise_provider_error(e, key)
    except StorageError as e:
        logger.error("Object size unavailable", extra={"key": key, "error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    return FileSizeResponse(url=url, key=key, size_bytes=size_bytes)

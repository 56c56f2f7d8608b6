"""
Object storage client for profile media.

Wraps boto3 for the three things the app needs from S3:
- signed, time-limited download URLs for private objects
- encrypted profile image uploads
- object sizes from metadata (HEAD) requests

Signing, transfer and encryption all happen in boto3/botocore. Provider
errors are logged and re-raised unchanged so callers see exactly what S3
reported. The only local failure is an upload whose URL cannot be built.

Mock mode stores objects in memory, enabling API testing without
provisioning a bucket.
"""

import asyncio
import io
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol
from urllib.parse import quote, urlsplit

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.media import (
    JPEG_CONTENT_TYPE,
    ObjectLocation,
    PresignedURL,
    build_image_key,
    build_object_url,
    encode_jpeg,
    extract_object_key,
    is_s3_url,
)

logger = logging.getLogger(__name__)

# Errors raised by boto3/botocore. These are propagated as-is.
PROVIDER_ERRORS = (ClientError, BotoCoreError, S3UploadFailedError)

SERVER_SIDE_ENCRYPTION = "aws:kms"

MOCK_ENDPOINT_URL = "http://mock-s3.local"

ProgressCallback = Callable[[int], None]


class StorageError(Exception):
    """Raised when a storage operation cannot produce a result."""
    pass


class ObjectURLUnavailableError(StorageError):
    """Raised when an upload succeeded but its URL could not be assembled."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for S3 storage.

    Using a dataclass instead of raw parameters means:
    - Configuration is explicit and documented
    - Simple to create test configurations
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str = "ap-southeast-1"
    endpoint_url: Optional[str] = None
    addressing_style: str = "auto"
    kms_key_id: Optional[str] = None
    presigned_url_expiry_seconds: int = 3600
    image_prefix: str = "profile_images/"
    jpeg_quality: int = 50
    multipart_threshold_bytes: int = 8 * 1024 * 1024

    @property
    def path_style_hosts(self) -> tuple[str, ...]:
        """Custom endpoints address buckets in the path."""
        if not self.endpoint_url:
            return ()
        host = urlsplit(self.endpoint_url).hostname
        return (host,) if host else ()


class StorageClient(Protocol):
    """
    Protocol for profile media storage.

    Using a protocol means tests can provide mocks and routes don't care
    whether they talk to S3 or to memory.
    """

    async def get_presigned_url(
        self,
        s3_url: str,
        expiry_seconds: Optional[int] = None,
    ) -> PresignedURL:
        """Sign a temporary GET URL for the object behind `s3_url`."""
        ...

    async def upload_image(
        self,
        image_data: bytes,
        image_name: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> str:
        """Upload an image and return the object URL."""
        ...

    async def get_file_size(self, s3_url: str) -> int:
        """Return the object's content length in bytes."""
        ...

    def extract_key(self, url: str) -> str:
        """Derive the object key from a full URL."""
        ...

    def is_storage_url(self, url: str) -> bool:
        """Check whether a URL points at this storage."""
        ...


class _KeyResolverMixin:
    """URL handling shared by the real and mock clients."""

    _config: StorageConfig
    endpoint_url: Optional[str]

    def _endpoint_hosts(self) -> tuple[str, ...]:
        # Upload URLs are built from the resolved endpoint, which may differ
        # from the configured one (us-east-1 resolves to the global host).
        hosts = list(self._config.path_style_hosts)
        resolved = urlsplit(self.endpoint_url or "").hostname
        if resolved and resolved not in hosts:
            hosts.append(resolved)
        return tuple(hosts)

    def extract_key(self, url: str) -> str:
        return extract_object_key(url, self._endpoint_hosts())

    def is_storage_url(self, url: str) -> bool:
        return is_s3_url(url, self._config.region, self._endpoint_hosts())

    def _locate(self, url: str) -> ObjectLocation:
        # Objects are always read from the configured bucket, whatever the URL says.
        return ObjectLocation(bucket=self._config.bucket_name, key=self.extract_key(url))

    def _resolve_expiry(self, expiry_seconds: Optional[int]) -> int:
        if expiry_seconds is None:
            expiry_seconds = self._config.presigned_url_expiry_seconds
        if expiry_seconds <= 0:
            raise ValueError(f"expiry_seconds must be positive, got {expiry_seconds}")
        return expiry_seconds


class S3StorageClient(_KeyResolverMixin):
    """
    AWS S3 object storage client.

    Uses a static access/secret key pair. Works against any S3-compatible
    endpoint (MinIO, LocalStack) when `endpoint_url` is set.

    All methods are async even though boto3 is synchronous; blocking
    calls are pushed to a worker thread so the event loop stays free.
    """

    def __init__(self, config: StorageConfig, s3_client=None) -> None:
        self._config = config

        if s3_client is None:
            boto_config = Config(
                signature_version="s3v4",
                s3={"addressing_style": config.addressing_style},
            )
            s3_client = boto3.client(
                "s3",
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                region_name=config.region,
                config=boto_config,
            )

        self._s3_client = s3_client
        self._transfer_config = TransferConfig(
            multipart_threshold=config.multipart_threshold_bytes,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "region": config.region,
                "endpoint": self.endpoint_url,
            }
        )

    @property
    def endpoint_url(self) -> Optional[str]:
        """Endpoint boto3 actually talks to."""
        return self._s3_client.meta.endpoint_url

    async def get_presigned_url(
        self,
        s3_url: str,
        expiry_seconds: Optional[int] = None,
    ) -> PresignedURL:
        """
        Generate a temporary download URL.

        The bucket stays private; clients that cannot authenticate
        against S3 fetch the object through this URL until it expires.
        Signing is local to botocore, no request is sent.
        """
        expiry = self._resolve_expiry(expiry_seconds)
        location = self._locate(s3_url)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expiry)

        try:
            url = self._s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={
                    "Bucket": location.bucket,
                    "Key": location.key,
                },
                ExpiresIn=expiry,
                HttpMethod="GET",
            )
        except PROVIDER_ERRORS as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"key": location.key, "error": str(e)}
            )
            raise

        logger.debug(
            "Generated presigned URL",
            extra={"key": location.key, "expires_in": expiry}
        )

        return PresignedURL(url=url, key=location.key, expires_at=expires_at)

    async def upload_image(
        self,
        image_data: bytes,
        image_name: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Upload a profile image to S3.

        Path structure: {image_prefix}{image_name}
        The payload is re-encoded as JPEG and stored with aws:kms
        server-side encryption. boto3's managed transfer switches to
        multipart above the configured threshold.

        Returns:
            Object URL: endpoint/bucket/key
        """
        key = build_image_key(image_name, self._config.image_prefix)
        jpeg_data = await asyncio.to_thread(encode_jpeg, image_data, self._config.jpeg_quality)

        extra_args = {
            "ContentType": JPEG_CONTENT_TYPE,
            "ServerSideEncryption": SERVER_SIDE_ENCRYPTION,
        }
        if self._config.kms_key_id:
            extra_args["SSEKMSKeyId"] = self._config.kms_key_id

        try:
            await asyncio.to_thread(
                self._s3_client.upload_fileobj,
                io.BytesIO(jpeg_data),
                self._config.bucket_name,
                key,
                ExtraArgs=extra_args,
                Callback=progress_callback,
                Config=self._transfer_config,
            )
        except PROVIDER_ERRORS as e:
            logger.error(
                "Failed to upload image",
                extra={"key": key, "error": str(e)}
            )
            raise

        file_url = build_object_url(self.endpoint_url, self._config.bucket_name, key)
        if file_url is None:
            logger.error(
                "Uploaded image URL could not be assembled",
                extra={"key": key, "endpoint": self.endpoint_url}
            )
            raise ObjectURLUnavailableError(f"Object URL not available for {key}")

        logger.info(
            "Uploaded image",
            extra={"key": key, "size_bytes": len(jpeg_data)}
        )

        return file_url

    async def get_file_size(self, s3_url: str) -> int:
        """Read the content length from object metadata without downloading it."""
        location = self._locate(s3_url)

        try:
            response = await asyncio.to_thread(
                self._s3_client.head_object,
                Bucket=location.bucket,
                Key=location.key,
            )
        except PROVIDER_ERRORS as e:
            logger.error(
                "Failed to read object metadata",
                extra={"key": location.key, "error": str(e)}
            )
            raise

        content_length = response.get("ContentLength")
        if content_length is None:
            raise StorageError(f"No content length reported for {location.key}")

        return int(content_length)


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient(_KeyResolverMixin):
    """
    In-memory storage for local development.

    Objects live in a dictionary and the endpoint is a fake path-style
    host. Missing objects raise the same 404 ClientError S3 would, so
    callers exercise their real error handling.
    """

    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        if config is None:
            config = StorageConfig(
                access_key_id="",
                secret_access_key="",
                bucket_name="mock-bucket",
            )
        if not config.endpoint_url:
            config = replace(config, endpoint_url=MOCK_ENDPOINT_URL)

        self._config = config
        # {key: (bytes, extra_args)}
        self._objects: dict[str, tuple[bytes, dict[str, str]]] = {}
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def endpoint_url(self) -> Optional[str]:
        return self._config.endpoint_url

    def put_object(self, key: str, data: bytes) -> str:
        """Seed an object directly. Returns its URL."""
        self._objects[key] = (data, {})
        return build_object_url(self.endpoint_url, self._config.bucket_name, key)

    def get_object(self, key: str) -> bytes:
        """Stored bytes for `key`, for assertions in tests."""
        if key not in self._objects:
            raise _not_found("GetObject")
        return self._objects[key][0]

    def get_object_metadata(self, key: str) -> dict[str, str]:
        """Upload arguments stored with `key`."""
        if key not in self._objects:
            raise _not_found("HeadObject")
        return dict(self._objects[key][1])

    async def get_presigned_url(
        self,
        s3_url: str,
        expiry_seconds: Optional[int] = None,
    ) -> PresignedURL:
        """
        Return a mock signed URL.

        Like real presigning, existence is not checked.
        """
        expiry = self._resolve_expiry(expiry_seconds)
        location = self._locate(s3_url)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expiry)

        url = (
            f"{self.endpoint_url}/{location.bucket}/{quote(location.key, safe='/~')}"
            f"?X-Amz-Expires={expiry}&X-Amz-Signature=mock"
        )
        return PresignedURL(url=url, key=location.key, expires_at=expires_at)

    async def upload_image(
        self,
        image_data: bytes,
        image_name: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> str:
        """Store image in memory."""
        key = build_image_key(image_name, self._config.image_prefix)
        jpeg_data = encode_jpeg(image_data, self._config.jpeg_quality)

        extra_args = {
            "ContentType": JPEG_CONTENT_TYPE,
            "ServerSideEncryption": SERVER_SIDE_ENCRYPTION,
        }
        if self._config.kms_key_id:
            extra_args["SSEKMSKeyId"] = self._config.kms_key_id

        self._objects[key] = (jpeg_data, extra_args)

        if progress_callback is not None:
            progress_callback(len(jpeg_data))

        logger.debug(
            "Stored image in mock storage",
            extra={"key": key, "size_bytes": len(jpeg_data)}
        )

        return build_object_url(self.endpoint_url, self._config.bucket_name, key)

    async def get_file_size(self, s3_url: str) -> int:
        """Size of the stored object."""
        location = self._locate(s3_url)
        if location.key not in self._objects:
            raise _not_found("HeadObject")
        return len(self._objects[location.key][0])


def _not_found(operation_name: str) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": "404", "Message": "Not Found"},
            "ResponseMetadata": {"HTTPStatusCode": 404},
        },
        operation_name,
    )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient(config)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)

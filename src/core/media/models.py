"""
Domain models for stored media.

These models have no dependencies on boto3 or FastAPI. They describe where
an object lives and what a signed download URL promises.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class AddressingStyle(Enum):
    """
    How the bucket is named in an S3 URL.

    PATH:           https://s3.ap-southeast-1.amazonaws.com/<bucket>/<key>
    VIRTUAL_HOSTED: https://<bucket>.s3.ap-southeast-1.amazonaws.com/<key>
    """
    PATH = "path"
    VIRTUAL_HOSTED = "virtual"


@dataclass(frozen=True)
class ObjectLocation:
    """A bucket/key pair. Frozen because locations are values."""
    bucket: str
    key: str

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ValueError("Bucket name cannot be empty")
        if not self.key:
            raise ValueError("Object key cannot be empty")


@dataclass(frozen=True)
class PresignedURL:
    """
    A time-limited, signed GET URL for a private object.

    The expiry must lie in the future when the value is created; a signed
    URL that is already dead is never handed out.
    """
    url: str
    key: str
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.expires_at.tzinfo is None:
            raise ValueError("expires_at must be timezone-aware")
        if self.expires_at <= datetime.now(timezone.utc):
            raise ValueError("Presigned URL expiry must be in the future")

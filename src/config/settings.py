"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without an S3 bucket.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Profile Media API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # AWS / S3 Configuration
    aws_region: str = Field(
        default="ap-southeast-1",
        description="Region of the bucket. Also used to recognise S3 URLs."
    )
    aws_access_key_id: str = Field(
        default="",
        description="Static access key. Required unless in mock mode."
    )
    aws_secret_access_key: str = Field(
        default="",
        description="Static secret key. Required unless in mock mode."
    )
    s3_bucket_name: str = Field(
        default="profile-media",
        description="Bucket holding profile images"
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint (MinIO, LocalStack). Regional AWS endpoint if not provided."
    )
    s3_addressing_style: Literal["auto", "path", "virtual"] = Field(
        default="auto",
        description="Addressing style used by boto3 when building request and presigned URLs"
    )
    s3_kms_key_id: Optional[str] = Field(
        default=None,
        description="KMS key for aws:kms server-side encryption. Bucket default key if not set."
    )
    s3_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real S3. Enables local dev without a bucket."
    )

    # Media Behavior
    presigned_url_expiry_seconds: int = Field(
        default=3600,
        gt=0,
        le=604800,
        description="Validity window of signed download URLs. SigV4 caps this at 7 days."
    )
    profile_image_prefix: str = Field(
        default="profile_images/",
        description="Key prefix for uploaded profile images"
    )
    jpeg_quality: int = Field(
        default=50,
        ge=1,
        le=95,
        description="JPEG quality for re-encoded uploads. 50 keeps profile images small."
    )
    max_image_size_mb: int = Field(
        default=10,
        gt=0,
        description="Maximum accepted image upload in MB"
    )
    multipart_threshold_mb: int = Field(
        default=8,
        gt=0,
        description="Payloads above this size are sent as multipart uploads"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def s3_endpoint(self) -> str:
        """
        Endpoint that objects are addressed through.

        Regional endpoints follow the pattern: https://s3.{region}.amazonaws.com
        """
        if self.s3_endpoint_url:
            return self.s3_endpoint_url.rstrip("/")
        return f"https://s3.{self.aws_region}.amazonaws.com"

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.s3_bucket_name:
            missing.append("S3_BUCKET_NAME")

        # Credentials only required if not in mock mode
        if not self.s3_mock_mode:
            if not self.aws_access_key_id:
                missing.append("AWS_ACCESS_KEY_ID")
            if not self.aws_secret_access_key:
                missing.append("AWS_SECRET_ACCESS_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()

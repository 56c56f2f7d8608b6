"""
Profile Media - signed downloads, encrypted uploads and size lookups for
images kept in a private S3 bucket.

This package contains the complete application:
- core: Framework-agnostic key/URL handling and image preparation
- infrastructure: S3 storage client
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"

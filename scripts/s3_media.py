#!/usr/bin/env python3
"""
Command-line access to profile media storage.

Signs download URLs, uploads images and reads object sizes using the
same settings and client as the API.

Usage:
    python scripts/s3_media.py presign https://s3.ap-southeast-1.amazonaws.com/<bucket>/profile_images/3.jpg
    python scripts/s3_media.py upload ./avatar.png --name 3.jpg
    python scripts/s3_media.py size https://<bucket>.s3.ap-southeast-1.amazonaws.com/profile_images/3.jpg

Requires:
    - .env file with AWS credentials and S3_BUCKET_NAME (or S3_MOCK_MODE=true)
"""

import asyncio
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.api.dependencies import build_storage_config
from src.config.settings import get_settings
from src.infrastructure.storage.client import (
    PROVIDER_ERRORS,
    StorageError,
    create_storage_client,
)


def _print_progress(total_size: int):
    """Build a boto3 transfer callback that prints running byte counts."""
    sent = 0

    def callback(bytes_transferred: int) -> None:
        nonlocal sent
        sent += bytes_transferred
        print(f"  uploaded {sent}/{total_size} bytes", end="\r")

    return callback


async def run(args) -> int:
    settings = get_settings()

    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        return 1

    storage = create_storage_client(
        config=build_storage_config(settings),
        mock_mode=settings.s3_mock_mode,
    )

    try:
        if args.command == "presign":
            presigned = await storage.get_presigned_url(args.url, expiry_seconds=args.expires)
            print(presigned.url)
            print(f"Expires at: {presigned.expires_at.isoformat()}")

        elif args.command == "upload":
            image_path = Path(args.file)
            if not image_path.exists():
                print(f"ERROR: Cannot find {args.file}")
                return 1

            image_data = image_path.read_bytes()
            image_name = args.name or f"{image_path.stem}.jpg"

            print(f"Uploading {image_path} as {image_name}")
            file_url = await storage.upload_image(
                image_data,
                image_name,
                progress_callback=_print_progress(len(image_data)),
            )
            print()
            print(file_url)

        elif args.command == "size":
            size_bytes = await storage.get_file_size(args.url)
            print(size_bytes)

    except ValueError as e:
        print(f"ERROR: {e}")
        return 1
    except PROVIDER_ERRORS as e:
        print(f"ERROR from storage provider: {e}")
        return 1
    except StorageError as e:
        print(f"ERROR: {e}")
        return 1

    return 0


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Profile media storage tools')
    subparsers = parser.add_subparsers(dest='command', required=True)

    presign = subparsers.add_parser('presign', help='Sign a download URL for an object')
    presign.add_argument('url', help='Full S3 URL of the object')
    presign.add_argument('--expires', type=int, default=None, help='Validity window in seconds')

    upload = subparsers.add_parser('upload', help='Upload an image as a profile image')
    upload.add_argument('file', help='Local image file')
    upload.add_argument('--name', default=None, help='Name to store the image under (default: <stem>.jpg)')

    size = subparsers.add_parser('size', help='Print an object\'s size in bytes')
    size.add_argument('url', help='Full S3 URL of the object')

    args = parser.parse_args()

    sys.exit(asyncio.run(run(args)))


if __name__ == '__main__':
    main()

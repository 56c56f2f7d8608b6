"""
Unit tests for the media value objects.

Testing philosophy:
- Test behavior, not implementation
- Each test should have a clear "given/when/then" structure
- Prefer real objects over mocks where practical
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.media.models import ObjectLocation, PresignedURL


class TestObjectLocation:
    """Tests for the ObjectLocation value object."""

    def test_locations_with_same_parts_are_equal(self):
        assert ObjectLocation("media", "a.jpg") == ObjectLocation("media", "a.jpg")

    def test_location_rejects_empty_bucket(self):
        with pytest.raises(ValueError, match="Bucket"):
            ObjectLocation("", "a.jpg")

    def test_location_rejects_empty_key(self):
        with pytest.raises(ValueError, match="key"):
            ObjectLocation("media", "")


class TestPresignedURL:
    """Tests for the PresignedURL value object."""

    def test_future_expiry_is_accepted(self):
        expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
        presigned = PresignedURL(url="https://signed", key="a.jpg", expires_at=expires_at)

        assert presigned.expires_at == expires_at

    def test_past_expiry_is_rejected(self):
        """A URL that is already dead is never handed out."""
        expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)

        with pytest.raises(ValueError, match="future"):
            PresignedURL(url="https://signed", key="a.jpg", expires_at=expires_at)

    def test_naive_expiry_is_rejected(self):
        expires_at = datetime.now() + timedelta(hours=1)

        with pytest.raises(ValueError, match="timezone"):
            PresignedURL(url="https://signed", key="a.jpg", expires_at=expires_at)

    def test_presigned_url_is_immutable(self):
        expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
        presigned = PresignedURL(url="https://signed", key="a.jpg", expires_at=expires_at)

        with pytest.raises(AttributeError):
            presigned.url = "https://other"

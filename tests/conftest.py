"""Pytest configuration and fixtures for tests."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from minio.error import S3Error

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from minio_access.core.config import BucketPartition, ModuleConfig  # noqa: E402
from minio_access.storage.schemas import UploadedFile  # noqa: E402

ACCESS_KEY = "AKIDEXAMPLE"
SECRET_KEY = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"


class FakeS3Error(S3Error):
    """S3Error carrying only an error code."""

    def __init__(self, code: str, message: str = "backend error"):
        Exception.__init__(self, f"{code}: {message}")
        self._fake_code = code

    @property
    def code(self) -> str:
        return self._fake_code

    def __str__(self) -> str:
        return str(self.args[0])


@pytest.fixture
def s3_error():
    """Factory for S3Error instances with a given code."""
    return FakeS3Error


@pytest.fixture
def fixed_now() -> datetime:
    """Signing clock pinned to 2024-01-15T10:00:00Z."""
    return datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def module_config() -> ModuleConfig:
    """Internal MinIO on minio.internal:9000 without external endpoint."""
    return ModuleConfig(
        endpoint="minio.internal",
        port=9000,
        use_ssl=False,
        access_key=ACCESS_KEY,
        secret_key=SECRET_KEY,
        region="us-east-1",
        url_expiry_hours=1,
        buckets=BucketPartition(
            private=["secure-docs", "private-bucket"],
            public=["public-assets"],
        ),
    )


@pytest.fixture
def external_config(module_config: ModuleConfig) -> ModuleConfig:
    """Same backend reached through cdn.example.com over HTTPS."""
    return module_config.model_copy(
        update={"port": None, "external_endpoint": "cdn.example.com", "external_use_ssl": True}
    )


@pytest.fixture
def mock_minio() -> MagicMock:
    """Mock MinIO client where no bucket exists yet."""
    client = MagicMock()
    client.bucket_exists.return_value = False
    return client


@pytest.fixture
def uploaded_file() -> UploadedFile:
    """Small PNG upload with whitespace in its name."""
    content = b"\x89PNG\r\n\x1a\nfake"
    return UploadedFile(
        field_name="avatar",
        original_filename="my profile pic.png",
        mime_type="image/png",
        size_bytes=len(content),
        content=content,
    )

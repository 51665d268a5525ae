"""Tests for storage schemas."""

import pytest
from pydantic import ValidationError

from minio_access.storage.schemas import (
    FileFieldConfig,
    ObjectReference,
    ReferenceField,
    TypeDescriptor,
    UploadedFile,
)


class TestObjectReference:
    """Tests for ObjectReference."""

    def test_path_and_uri(self) -> None:
        ref = ObjectReference(bucket_name="secure-docs", object_name="reports/q1.pdf")
        assert ref.path == "secure-docs/reports/q1.pdf"
        assert ref.uri == "storage://secure-docs/reports/q1.pdf"
        assert str(ref) == ref.path

    def test_empty_parts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ObjectReference(bucket_name="", object_name="a")
        with pytest.raises(ValidationError):
            ObjectReference(bucket_name="b", object_name="")

    def test_frozen_and_hashable(self) -> None:
        ref = ObjectReference(bucket_name="b", object_name="o")
        with pytest.raises(ValidationError):
            ref.bucket_name = "other"
        assert ref == ObjectReference(bucket_name="b", object_name="o")
        assert len({ref, ObjectReference(bucket_name="b", object_name="o")}) == 1


class TestUploadedFile:
    """Tests for UploadedFile."""

    def test_defaults(self) -> None:
        file = UploadedFile(field_name="doc", original_filename="a.bin", size_bytes=3, content=b"abc")
        assert file.mime_type == "application/octet-stream"
        assert file.encoding is None

    def test_content_hidden_from_repr(self) -> None:
        file = UploadedFile(field_name="doc", original_filename="a.bin", size_bytes=6, content=b"secret")
        assert "secret" not in repr(file)

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UploadedFile(field_name="doc", original_filename="a", size_bytes=-1, content=b"")


class TestFileFieldConfig:
    """Tests for FileFieldConfig."""

    def test_defaults(self) -> None:
        config = FileFieldConfig(name="doc")
        assert config.bucket_name is None
        assert config.required is False
        assert config.max_count == 1
        assert config.allowed_mime_types == []
        assert config.max_size is None

    def test_max_count_positive(self) -> None:
        with pytest.raises(ValidationError):
            FileFieldConfig(name="doc", max_count=0)


class TestTypeDescriptor:
    """Tests for TypeDescriptor."""

    def test_lookup(self) -> None:
        descriptor = TypeDescriptor(fields={"cover": ReferenceField(bucket_name="media")})
        assert descriptor.lookup("cover") == ReferenceField(bucket_name="media")
        assert descriptor.lookup("title") is None

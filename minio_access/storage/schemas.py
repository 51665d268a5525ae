"""Storage schemas for object references and uploads.

ObjectReference is the contract for referencing stored content.
Responses carry references, never URLs; URLs are produced at read time.
"""

from pydantic import BaseModel, ConfigDict, Field

STORAGE_SCHEME = "storage://"


class ObjectReference(BaseModel):
    """Reference to an object stored in a bucket.

    Path format: {bucket_name}/{object_name}
    URI format: storage://{bucket_name}/{object_name}
    """

    model_config = ConfigDict(frozen=True)

    bucket_name: str = Field(..., min_length=1, description="Bucket holding the object")
    object_name: str = Field(..., min_length=1, description="Object key, may contain '/'")

    @property
    def path(self) -> str:
        return f"{self.bucket_name}/{self.object_name}"

    @property
    def uri(self) -> str:
        return f"{STORAGE_SCHEME}{self.path}"

    def __str__(self) -> str:
        return self.path


class UploadedFile(BaseModel):
    """Raw uploaded file handed over by the request pipeline."""

    field_name: str = Field(..., description="Form field the file arrived in")
    original_filename: str = Field(..., min_length=1, description="Client-side file name")
    mime_type: str = Field(default="application/octet-stream", description="Declared content type")
    size_bytes: int = Field(..., ge=0, description="Declared size of the content")
    content: bytes = Field(..., repr=False)
    encoding: str | None = Field(default=None, description="Transfer encoding reported by the client")


class FileFieldConfig(BaseModel):
    """Upload rules for a single form field."""

    name: str = Field(..., min_length=1)
    bucket_name: str | None = Field(default=None, description="Target bucket")
    required: bool = False
    max_count: int = Field(default=1, ge=1)
    allowed_mime_types: list[str] = Field(default_factory=list, description="Empty means any type")
    max_size: int | None = Field(default=None, gt=0, description="Maximum size in bytes")


class ReferenceField(BaseModel):
    """Marks a field as holding stored references.

    When bucket_name is set, a plain value is the object name inside that
    bucket. Otherwise a plain value is split at its first '/'.
    """

    model_config = ConfigDict(frozen=True)

    bucket_name: str | None = None


class TypeDescriptor(BaseModel):
    """Reference-bearing fields of one registered type."""

    fields: dict[str, ReferenceField] = Field(default_factory=dict)

    def lookup(self, name: str) -> ReferenceField | None:
        return self.fields.get(name)

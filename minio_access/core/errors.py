"""Exception taxonomy for storage operations.

Propagation rules:
- ProvisioningError: fatal at startup
- ResolutionError: recovered per field while rewriting responses
- everything else: surfaced to the immediate caller, never retried
"""


class StorageError(Exception):
    """Base class for storage access errors."""

    def __init__(
        self,
        message: str,
        bucket_name: str | None = None,
        object_name: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize.

        Args:
            message: Human-readable error message
            bucket_name: Bucket involved in the failed operation
            object_name: Object involved in the failed operation
            original_error: Backend exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.bucket_name = bucket_name
        self.object_name = object_name
        self.original_error = original_error

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"bucket_name={self.bucket_name!r}, object_name={self.object_name!r})"
        )


class ConfigError(StorageError):
    """Startup configuration is missing or invalid."""

    pass


class ProvisioningError(StorageError):
    """Bucket creation or policy assignment failed."""

    def __init__(
        self,
        bucket_name: str,
        reason: str,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            f"Failed to provision bucket {bucket_name!r}: {reason}",
            bucket_name=bucket_name,
            original_error=original_error,
        )
        self.reason = reason


class UploadError(StorageError):
    """Backend write failed."""

    pass


class ResolutionError(StorageError):
    """A stored reference could not be turned into a URL."""

    def __init__(
        self,
        message: str,
        bucket_name: str | None = None,
        object_name: str | None = None,
        original_error: Exception | None = None,
        field_path: str | None = None,
    ) -> None:
        super().__init__(
            message,
            bucket_name=bucket_name,
            object_name=object_name,
            original_error=original_error,
        )
        self.field_path = field_path


class SigningError(ResolutionError):
    """Presigned URL inputs are malformed."""

    pass


class BackendError(StorageError):
    """Backend read/delete failed."""

    pass


class ObjectNotFoundError(BackendError):
    """Object or bucket does not exist."""

    pass


class FileValidationError(StorageError):
    """Uploaded file violates its field configuration."""

    def __init__(self, message: str, field_name: str | None = None) -> None:
        super().__init__(message)
        self.field_name = field_name

"""Core configuration and error types."""

from .config import BucketPartition, ModuleConfig, load_config_from_env
from .errors import (
    BackendError,
    ConfigError,
    FileValidationError,
    ObjectNotFoundError,
    ProvisioningError,
    ResolutionError,
    SigningError,
    StorageError,
    UploadError,
)

__all__ = [
    "BucketPartition",
    "ModuleConfig",
    "load_config_from_env",
    # Exceptions
    "StorageError",
    "ConfigError",
    "ProvisioningError",
    "UploadError",
    "ResolutionError",
    "SigningError",
    "BackendError",
    "ObjectNotFoundError",
    "FileValidationError",
]

"""Storage module for object access.

This module provides:
- ObjectReference: Reference to a stored object (bucket + object name)
- BucketManager: One-time bucket provisioning with visibility policies
- ObjectStore: MinIO-based uploads, deletes and URL resolution
- UrlSigner: SigV4 presigned GET URLs
- ResponseRewriter: Stored references -> URLs in response payloads
"""

from .buckets import BucketManager, build_bucket_policy
from .object_store import ObjectStore, create_client
from .references import DescriptorRegistry, is_reference, parse_reference
from .rewriter import ResponseRewriter, RewriteReport
from .schemas import (
    STORAGE_SCHEME,
    FileFieldConfig,
    ObjectReference,
    ReferenceField,
    TypeDescriptor,
    UploadedFile,
)
from .service import StorageService
from .signer import Credentials, UrlSigner, presign_get_url
from .uploads import process_upload_fields, validate_file

__all__ = [
    "STORAGE_SCHEME",
    "ObjectReference",
    "UploadedFile",
    "FileFieldConfig",
    "ReferenceField",
    "TypeDescriptor",
    "BucketManager",
    "build_bucket_policy",
    "ObjectStore",
    "create_client",
    "Credentials",
    "UrlSigner",
    "presign_get_url",
    "DescriptorRegistry",
    "parse_reference",
    "is_reference",
    "ResponseRewriter",
    "RewriteReport",
    "validate_file",
    "process_upload_fields",
    "StorageService",
]

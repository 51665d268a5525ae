"""Access layer over S3-compatible object storage.

Buckets are provisioned with a public/private policy, uploads are stored as
bucket/object references, and references in outgoing responses are turned
into direct or SigV4-presigned URLs at read time.
"""

from .core import ModuleConfig, load_config_from_env
from .storage import ObjectReference, ResponseRewriter, StorageService

__all__ = [
    "ModuleConfig",
    "load_config_from_env",
    "ObjectReference",
    "ResponseRewriter",
    "StorageService",
]

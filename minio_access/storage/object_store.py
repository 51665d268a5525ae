"""Object storage on MinIO / S3-compatible backends.

ObjectStore handles uploads, deletes and URL resolution:
- Uploads return a stored reference (bucket/object), never a URL
- Public buckets resolve to a direct URL
- Private buckets resolve to a SigV4 presigned URL
"""

import asyncio
import io
import re
import time
from urllib.parse import quote

from minio import Minio
from minio.error import S3Error

from minio_access.core.config import ModuleConfig
from minio_access.core.errors import BackendError, ObjectNotFoundError, UploadError
from minio_access.observability.logger import get_logger

from .buckets import BucketManager
from .schemas import ObjectReference, UploadedFile
from .signer import UrlSigner, host_header, parse_endpoint

logger = get_logger(__name__)

NOT_FOUND_CODES = ("NoSuchKey", "NoSuchBucket", "NoSuchObject")

WHITESPACE_PATTERN = re.compile(r"\s")


def create_client(config: ModuleConfig) -> Minio:
    """MinIO client connected to the internal endpoint."""
    return Minio(
        endpoint=config.client_endpoint(),
        access_key=config.access_key,
        secret_key=config.secret_key,
        secure=config.use_ssl,
        region=config.region,
    )


class ObjectStore:
    """MinIO-based object storage with read-time URL resolution.

    Naming convention: {unix_millis}-{original filename, whitespace -> '-'}
    """

    def __init__(
        self,
        config: ModuleConfig,
        client: Minio | None = None,
        bucket_manager: BucketManager | None = None,
        signer: UrlSigner | None = None,
    ):
        """Initialize object store.

        Args:
            config: Module configuration
            client: MinIO client (default: built lazily from config)
            bucket_manager: Provisioning guard (default: one bound to the client)
            signer: Presigner for private buckets (default: from config)
        """
        self.config = config
        self._client = client
        self._bucket_manager = bucket_manager
        self.signer = signer or UrlSigner.from_config(config)

    @property
    def client(self) -> Minio:
        """Lazy initialization of MinIO client."""
        if self._client is None:
            self._client = create_client(self.config)
        return self._client

    @property
    def bucket_manager(self) -> BucketManager:
        if self._bucket_manager is None:
            self._bucket_manager = BucketManager(self.client, self.config)
        return self._bucket_manager

    @staticmethod
    def build_object_name(original_filename: str, now_ms: int | None = None) -> str:
        """Build the default object name for an upload.

        Args:
            original_filename: Client-side file name
            now_ms: Unix time in milliseconds (default: current time)

        Returns: {now_ms}-{filename with whitespace replaced by '-'}
        """
        if now_ms is None:
            now_ms = time.time_ns() // 1_000_000
        return f"{now_ms}-{WHITESPACE_PATTERN.sub('-', original_filename)}"

    async def upload(
        self,
        file: UploadedFile,
        bucket_name: str,
        object_name: str | None = None,
    ) -> str:
        """Store an uploaded file and return its reference.

        Buckets are provisioned first if that has not happened yet.

        Args:
            file: Uploaded file buffer with metadata
            bucket_name: Target bucket
            object_name: Object key (default: generated from the file name)

        Returns:
            Stored reference "{bucket_name}/{object_name}"

        Raises:
            ProvisioningError: If bucket provisioning fails
            UploadError: If the backend write fails
        """
        if not self.bucket_manager.initialized:
            await self.bucket_manager.ensure_buckets()

        name = object_name or self.build_object_name(file.original_filename)
        try:
            await asyncio.to_thread(
                self.client.put_object,
                bucket_name=bucket_name,
                object_name=name,
                data=io.BytesIO(file.content),
                length=len(file.content),
                content_type=file.mime_type,
            )
        except Exception as e:
            raise UploadError(
                f"Failed to upload {file.original_filename!r} to {bucket_name}: {e}",
                bucket_name=bucket_name,
                object_name=name,
                original_error=e,
            ) from e

        logger.object_uploaded(bucket_name, name, len(file.content), file.mime_type)
        return ObjectReference(bucket_name=bucket_name, object_name=name).path

    def get_direct_url(self, bucket_name: str, object_name: str) -> str:
        """Unsigned URL for an object in an anonymously readable bucket."""
        host, embedded_port = parse_endpoint(self.config.effective_endpoint)
        port = embedded_port if embedded_port is not None else self.config.port
        authority = host_header(host, port, self.config.protocol)
        path = "/".join(quote(segment, safe="-_.~") for segment in object_name.split("/"))
        return f"{self.config.protocol}://{authority}/{quote(bucket_name, safe='-_.~')}/{path}"

    async def get_presigned_url(self, bucket_name: str, object_name: str) -> str:
        """Resolve an object to the URL a client should fetch.

        Args:
            bucket_name: Bucket name
            object_name: Object key

        Returns:
            Direct URL for non-private buckets, presigned URL otherwise

        Raises:
            SigningError: If the reference cannot be signed
        """
        if not self.config.is_private(bucket_name):
            return self.get_direct_url(bucket_name, object_name)
        return self.signer.sign(bucket_name, object_name, self.config.url_expiry_seconds)

    async def resolve(self, ref: ObjectReference) -> str:
        return await self.get_presigned_url(ref.bucket_name, ref.object_name)

    async def delete(self, bucket_name: str, object_name: str) -> None:
        """Delete an object.

        Raises:
            ObjectNotFoundError: If the object or bucket does not exist
            BackendError: If the backend call fails
        """
        try:
            await asyncio.to_thread(
                self.client.remove_object,
                bucket_name=bucket_name,
                object_name=object_name,
            )
        except Exception as e:
            if isinstance(e, S3Error) and e.code in NOT_FOUND_CODES:
                raise ObjectNotFoundError(
                    f"Object not found: {bucket_name}/{object_name}",
                    bucket_name=bucket_name,
                    object_name=object_name,
                    original_error=e,
                ) from e
            raise BackendError(
                f"Failed to delete {bucket_name}/{object_name}: {e}",
                bucket_name=bucket_name,
                object_name=object_name,
                original_error=e,
            ) from e

        logger.info(f"Deleted {bucket_name}/{object_name}")

    async def object_exists(self, bucket_name: str, object_name: str) -> bool:
        """Check whether an object is stored.

        Raises:
            BackendError: If the backend call fails for another reason
        """
        try:
            await asyncio.to_thread(
                self.client.stat_object,
                bucket_name=bucket_name,
                object_name=object_name,
            )
            return True
        except S3Error as e:
            if e.code in NOT_FOUND_CODES:
                return False
            raise BackendError(
                f"Failed to check {bucket_name}/{object_name}: {e}",
                bucket_name=bucket_name,
                object_name=object_name,
                original_error=e,
            ) from e

"""Storage service facade wiring buckets, objects, signing and rewriting."""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any

from minio import Minio

from minio_access.core.config import ModuleConfig, load_config_from_env
from minio_access.observability.logger import get_logger

from .buckets import BucketManager
from .object_store import ObjectStore, create_client
from .references import DescriptorRegistry
from .rewriter import ResponseRewriter
from .schemas import FileFieldConfig, ReferenceField, UploadedFile
from .signer import UrlSigner, utcnow
from .uploads import process_upload_fields

logger = get_logger(__name__)


class StorageService:
    """One entry point per application for storage access."""

    def __init__(
        self,
        config: ModuleConfig,
        client: Minio | None = None,
        registry: DescriptorRegistry | None = None,
        mapping_fields: Mapping[str, ReferenceField] | None = None,
        max_concurrency: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.client = client or create_client(config)
        self.buckets = BucketManager(self.client, config)
        self.objects = ObjectStore(
            config,
            client=self.client,
            bucket_manager=self.buckets,
            signer=UrlSigner.from_config(config, clock=clock),
        )
        self.registry = registry if registry is not None else DescriptorRegistry()
        self.rewriter = ResponseRewriter(
            self.objects,
            registry=self.registry,
            mapping_fields=mapping_fields,
            max_concurrency=max_concurrency,
        )

    @classmethod
    def from_env(cls, dotenv_path: str | None = None, **kwargs: Any) -> "StorageService":
        return cls(load_config_from_env(dotenv_path), **kwargs)

    async def startup(self) -> None:
        """Provision buckets. A ProvisioningError here must abort startup."""
        logger.info(
            "Provisioning storage buckets",
            extra_data={"endpoint": self.config.client_endpoint(), "region": self.config.region},
        )
        await self.buckets.ensure_buckets()

    async def upload(self, file: UploadedFile, bucket_name: str, object_name: str | None = None) -> str:
        return await self.objects.upload(file, bucket_name, object_name)

    async def upload_fields(
        self,
        files: Mapping[str, Sequence[UploadedFile]],
        fields: Sequence[FileFieldConfig],
    ) -> dict[str, str]:
        return await process_upload_fields(self.objects, files, fields)

    async def resolve(self, bucket_name: str, object_name: str) -> str:
        return await self.objects.get_presigned_url(bucket_name, object_name)

    async def rewrite(self, value: Any) -> Any:
        return await self.rewriter.rewrite(value)

    async def delete(self, bucket_name: str, object_name: str) -> None:
        await self.objects.delete(bucket_name, object_name)

"""Bucket provisioning with visibility policies.

Every configured bucket is created once with a fixed anonymous-read policy:
private buckets deny s3:GetObject to everyone, public buckets allow it.
Existing buckets are left untouched.
"""

import asyncio
import json
from typing import Any

from minio import Minio

from minio_access.core.config import ModuleConfig
from minio_access.core.errors import ProvisioningError
from minio_access.observability.logger import get_logger

logger = get_logger(__name__)

POLICY_VERSION = "2012-10-17"


def build_bucket_policy(bucket_name: str, public: bool) -> dict[str, Any]:
    """Policy document for anonymous GET on every object of the bucket."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow" if public else "Deny",
                "Principal": {"AWS": ["*"]},
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket_name}/*"],
            }
        ],
    }


class BucketManager:
    """Creates configured buckets exactly once per manager.

    ensure_buckets() is safe to call from concurrent tasks: the first caller
    runs the provisioning pass while the others wait on the lock and return
    once it has finished. A failed pass leaves the manager uninitialized so
    the next call tries again.
    """

    def __init__(self, client: Minio, config: ModuleConfig):
        self._client = client
        self._config = config
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure_buckets(self) -> None:
        """Provision every configured bucket if not done yet.

        Raises:
            ProvisioningError: If any bucket cannot be checked, created or
                given its policy
        """
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return

            for bucket_name, public in self._config.buckets.all_buckets():
                await self._provision(bucket_name, public)

            self._initialized = True
            logger.info(
                "Buckets ready",
                extra_data={
                    "private": self._config.buckets.private,
                    "public": self._config.buckets.public,
                },
            )

    async def _provision(self, bucket_name: str, public: bool) -> bool:
        """Create one bucket with its policy.

        Returns:
            True if the bucket was created, False if it already existed
        """
        try:
            exists = await asyncio.to_thread(self._client.bucket_exists, bucket_name=bucket_name)
        except Exception as e:
            raise ProvisioningError(bucket_name, f"existence check failed: {e}", e) from e

        if exists:
            logger.debug(f"Bucket {bucket_name} already exists, skipping")
            return False

        try:
            await asyncio.to_thread(
                self._client.make_bucket,
                bucket_name=bucket_name,
                location=self._config.region,
            )
        except Exception as e:
            raise ProvisioningError(bucket_name, f"creation failed: {e}", e) from e

        policy = json.dumps(build_bucket_policy(bucket_name, public))
        try:
            await asyncio.to_thread(
                self._client.set_bucket_policy,
                bucket_name=bucket_name,
                policy=policy,
            )
        except Exception as e:
            raise ProvisioningError(bucket_name, f"policy assignment failed: {e}", e) from e

        logger.bucket_provisioned(bucket_name, public)
        return True

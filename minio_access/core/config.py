"""Module configuration for the storage access layer.

ModuleConfig is supplied once at startup, either constructed directly by the
host application or loaded from MINIO_* environment variables.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ConfigError

DEFAULT_REGION = "us-east-1"

# SigV4 presigned URLs are valid for at most 7 days
MAX_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60

ENV_PREFIX = "MINIO_"


class BucketPartition(BaseModel):
    """Disjoint private/public bucket sets."""

    private: list[str] = Field(default_factory=list, description="Buckets requiring signed URLs")
    public: list[str] = Field(default_factory=list, description="Buckets readable anonymously")

    @model_validator(mode="after")
    def _check_disjoint(self) -> "BucketPartition":
        overlap = sorted(set(self.private) & set(self.public))
        if overlap:
            raise ValueError(f"Buckets declared both private and public: {', '.join(overlap)}")
        return self

    def all_buckets(self) -> list[tuple[str, bool]]:
        """Return (bucket_name, is_public) pairs, private buckets first."""
        return [(name, False) for name in self.private] + [(name, True) for name in self.public]


class ModuleConfig(BaseModel):
    """Connection, credential and visibility settings."""

    endpoint: str = Field(..., min_length=1, description="Internal endpoint host, may embed :port")
    port: int | None = Field(default=None, ge=1, le=65535, description="Endpoint port")
    use_ssl: bool = Field(default=False, description="Use HTTPS for the internal endpoint")
    access_key: str = Field(..., min_length=1)
    secret_key: str = Field(..., min_length=1)
    region: str = Field(default=DEFAULT_REGION)
    external_endpoint: str | None = Field(
        default=None,
        description="Endpoint clients reach when it differs from the upload path",
    )
    external_use_ssl: bool | None = Field(default=None, description="TLS override for the external endpoint")
    url_expiry_hours: float = Field(default=1, gt=0, description="Signed URL lifetime in hours")
    buckets: BucketPartition = Field(default_factory=BucketPartition)

    @model_validator(mode="after")
    def _check_expiry(self) -> "ModuleConfig":
        if self.url_expiry_seconds > MAX_URL_EXPIRY_SECONDS:
            raise ValueError(
                f"url_expiry_hours={self.url_expiry_hours} exceeds the 7 day presign limit"
            )
        if self.url_expiry_seconds < 1:
            raise ValueError("url_expiry_hours must amount to at least one second")
        return self

    @property
    def url_expiry_seconds(self) -> int:
        return int(self.url_expiry_hours * 60 * 60)

    @property
    def effective_endpoint(self) -> str:
        return self.external_endpoint or self.endpoint

    @property
    def effective_use_ssl(self) -> bool:
        if self.external_use_ssl is not None:
            return self.external_use_ssl
        return self.use_ssl

    @property
    def protocol(self) -> str:
        return "https" if self.effective_use_ssl else "http"

    def is_private(self, bucket_name: str) -> bool:
        return bucket_name in self.buckets.private

    def is_public(self, bucket_name: str) -> bool:
        return bucket_name in self.buckets.public

    def client_endpoint(self) -> str:
        """Internal endpoint in the host[:port] form the MinIO client expects."""
        host = self.endpoint
        for prefix in ("https://", "http://"):
            if host.lower().startswith(prefix):
                host = host[len(prefix):]
        host = host.rstrip("/")
        if self.port and ":" not in host:
            host = f"{host}:{self.port}"
        return host


def _env(name: str) -> str | None:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_bool(name: str) -> bool | None:
    value = _env(name)
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str]:
    value = _env(name)
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config_from_env(dotenv_path: str | None = None) -> ModuleConfig:
    """Build ModuleConfig from MINIO_* environment variables.

    Reads a .env file first (existing environment variables win).

    Args:
        dotenv_path: Explicit .env path (default: search from cwd)

    Returns:
        Validated ModuleConfig

    Raises:
        ConfigError: If required settings are missing or invalid
    """
    load_dotenv(dotenv_path)

    missing = [name for name in ("ENDPOINT", "ACCESS_KEY", "SECRET_KEY") if not _env(name)]
    if missing:
        raise ConfigError(
            f"Missing storage settings: {', '.join(ENV_PREFIX + name for name in missing)}"
        )

    raw: dict = {
        "endpoint": _env("ENDPOINT"),
        "access_key": _env("ACCESS_KEY"),
        "secret_key": _env("SECRET_KEY"),
        "region": _env("REGION") or DEFAULT_REGION,
        "use_ssl": bool(_env_bool("USE_SSL")),
        "external_endpoint": _env("EXTERNAL_ENDPOINT"),
        "external_use_ssl": _env_bool("EXTERNAL_USE_SSL"),
        "buckets": {
            "private": _env_list("PRIVATE_BUCKETS"),
            "public": _env_list("PUBLIC_BUCKETS"),
        },
    }
    if port := _env("PORT"):
        raw["port"] = port
    if expiry := _env("URL_EXPIRY_HOURS"):
        raw["url_expiry_hours"] = expiry

    try:
        return ModuleConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid storage configuration: {e}") from e

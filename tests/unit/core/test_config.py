"""Tests for module configuration."""

import pytest
from pydantic import ValidationError

from minio_access.core.config import BucketPartition, ModuleConfig, load_config_from_env
from minio_access.core.errors import ConfigError

ENV_KEYS = [
    "MINIO_ENDPOINT",
    "MINIO_PORT",
    "MINIO_USE_SSL",
    "MINIO_ACCESS_KEY",
    "MINIO_SECRET_KEY",
    "MINIO_REGION",
    "MINIO_EXTERNAL_ENDPOINT",
    "MINIO_EXTERNAL_USE_SSL",
    "MINIO_URL_EXPIRY_HOURS",
    "MINIO_PRIVATE_BUCKETS",
    "MINIO_PUBLIC_BUCKETS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Environment without MINIO_* variables, cwd without .env."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestBucketPartition:
    """Tests for BucketPartition."""

    def test_overlap_rejected(self) -> None:
        with pytest.raises(ValidationError, match="both private and public: shared"):
            BucketPartition(private=["a", "shared"], public=["shared", "b"])

    def test_all_buckets_private_first(self) -> None:
        partition = BucketPartition(private=["p1", "p2"], public=["pub"])
        assert partition.all_buckets() == [("p1", False), ("p2", False), ("pub", True)]


class TestModuleConfig:
    """Tests for derived settings."""

    def test_expiry_hours_to_seconds(self, module_config) -> None:
        assert module_config.url_expiry_seconds == 3600
        assert module_config.model_copy(update={"url_expiry_hours": 0.5}).url_expiry_seconds == 1800

    def test_expiry_limit(self) -> None:
        with pytest.raises(ValidationError, match="7 day"):
            ModuleConfig(endpoint="m", access_key="a", secret_key="s", url_expiry_hours=24 * 8)

    def test_visibility(self, module_config) -> None:
        assert module_config.is_private("secure-docs")
        assert not module_config.is_private("public-assets")
        assert module_config.is_public("public-assets")
        assert not module_config.is_public("unknown")

    def test_internal_endpoint_defaults(self, module_config) -> None:
        assert module_config.effective_endpoint == "minio.internal"
        assert module_config.effective_use_ssl is False
        assert module_config.protocol == "http"

    def test_external_override(self, external_config) -> None:
        assert external_config.effective_endpoint == "cdn.example.com"
        assert external_config.protocol == "https"

    def test_external_tls_falls_back_to_internal(self, module_config) -> None:
        config = module_config.model_copy(update={"use_ssl": True, "external_endpoint": "cdn.example.com"})
        assert config.effective_use_ssl is True

    def test_external_tls_can_disable(self, module_config) -> None:
        config = module_config.model_copy(update={"use_ssl": True, "external_use_ssl": False})
        assert config.protocol == "http"

    @pytest.mark.parametrize(
        ("endpoint", "port", "expected"),
        [
            ("minio.internal", 9000, "minio.internal:9000"),
            ("minio.internal:9001", 9000, "minio.internal:9001"),
            ("http://minio.internal/", None, "minio.internal"),
        ],
    )
    def test_client_endpoint(self, endpoint: str, port: int | None, expected: str) -> None:
        config = ModuleConfig(endpoint=endpoint, port=port, access_key="a", secret_key="s")
        assert config.client_endpoint() == expected


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env."""

    def test_loads_all_settings(self, clean_env) -> None:
        clean_env.setenv("MINIO_ENDPOINT", "minio.internal")
        clean_env.setenv("MINIO_PORT", "9000")
        clean_env.setenv("MINIO_USE_SSL", "false")
        clean_env.setenv("MINIO_ACCESS_KEY", "AKIDEXAMPLE")
        clean_env.setenv("MINIO_SECRET_KEY", "secret")
        clean_env.setenv("MINIO_REGION", "eu-west-1")
        clean_env.setenv("MINIO_EXTERNAL_ENDPOINT", "cdn.example.com")
        clean_env.setenv("MINIO_EXTERNAL_USE_SSL", "true")
        clean_env.setenv("MINIO_URL_EXPIRY_HOURS", "2")
        clean_env.setenv("MINIO_PRIVATE_BUCKETS", "secure-docs, private-bucket")
        clean_env.setenv("MINIO_PUBLIC_BUCKETS", "public-assets")

        config = load_config_from_env()

        assert config.port == 9000
        assert config.region == "eu-west-1"
        assert config.external_use_ssl is True
        assert config.url_expiry_seconds == 7200
        assert config.buckets.private == ["secure-docs", "private-bucket"]
        assert config.buckets.public == ["public-assets"]

    def test_defaults(self, clean_env) -> None:
        clean_env.setenv("MINIO_ENDPOINT", "localhost:9000")
        clean_env.setenv("MINIO_ACCESS_KEY", "a")
        clean_env.setenv("MINIO_SECRET_KEY", "s")

        config = load_config_from_env()

        assert config.region == "us-east-1"
        assert config.use_ssl is False
        assert config.external_use_ssl is None
        assert config.url_expiry_seconds == 3600
        assert config.buckets.all_buckets() == []

    def test_reads_dotenv_file(self, clean_env, tmp_path) -> None:
        env_file = tmp_path / "storage.env"
        env_file.write_text(
            "MINIO_ENDPOINT=minio.local\nMINIO_ACCESS_KEY=a\nMINIO_SECRET_KEY=s\nMINIO_PUBLIC_BUCKETS=pub\n"
        )

        try:
            config = load_config_from_env(str(env_file))
        finally:
            for key in ENV_KEYS:
                clean_env.delenv(key, raising=False)

        assert config.endpoint == "minio.local"
        assert config.buckets.public == ["pub"]

    def test_missing_credentials(self, clean_env) -> None:
        clean_env.setenv("MINIO_ENDPOINT", "minio.internal")
        with pytest.raises(ConfigError, match="MINIO_ACCESS_KEY, MINIO_SECRET_KEY"):
            load_config_from_env()

    def test_invalid_partition(self, clean_env) -> None:
        clean_env.setenv("MINIO_ENDPOINT", "minio.internal")
        clean_env.setenv("MINIO_ACCESS_KEY", "a")
        clean_env.setenv("MINIO_SECRET_KEY", "s")
        clean_env.setenv("MINIO_PRIVATE_BUCKETS", "x")
        clean_env.setenv("MINIO_PUBLIC_BUCKETS", "x")
        with pytest.raises(ConfigError, match="Invalid storage configuration"):
            load_config_from_env()

"""AWS Signature Version 4 presigning for GET requests.

Builds presigned object URLs locally instead of going through the SDK signer,
so URLs can be issued for an endpoint the SDK client is not connected to
(e.g. a public hostname in front of an internal MinIO).

Only path-style GET URLs with an unsigned payload are produced.
"""

import hashlib
import hmac
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import quote

from minio_access.core.config import MAX_URL_EXPIRY_SECONDS, ModuleConfig
from minio_access.core.errors import SigningError

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE = "s3"
TERMINATOR = "aws4_request"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS = "host"

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class Credentials:
    """Access key pair used for signing."""

    access_key: str
    secret_key: str

    def __repr__(self) -> str:
        return f"Credentials(access_key={self.access_key!r}, secret_key='***')"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_endpoint(endpoint: str) -> tuple[str, int | None]:
    """Split an endpoint string into host and optional port.

    Any http(s):// prefix is dropped. If the text after ':' is not an integer
    the whole string is taken as the host.
    """
    value = endpoint.strip()
    lowered = value.lower()
    for prefix in ("https://", "http://"):
        if lowered.startswith(prefix):
            value = value[len(prefix):]
            break
    value = value.rstrip("/")

    host, sep, port_text = value.partition(":")
    if sep and port_text.isascii() and port_text.isdigit():
        return host, int(port_text)
    return value, None


def uri_encode(value: str) -> str:
    """Percent-encode everything outside the RFC 3986 unreserved set."""
    return quote(value, safe="-_.~")


def canonical_uri(bucket_name: str, object_name: str) -> str:
    segments = [uri_encode(segment) for segment in object_name.split("/")]
    return f"/{uri_encode(bucket_name)}/{'/'.join(segments)}"


def host_header(host: str, port: int | None, protocol: str) -> str:
    host = host.lower()
    if port is None or DEFAULT_PORTS.get(protocol) == port:
        return host
    return f"{host}:{port}"


def format_amz_date(now: datetime) -> tuple[str, str]:
    """Return (amz_date, date_stamp) in UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y%m%dT%H%M%SZ"), now.strftime("%Y%m%d")


def credential_scope(date_stamp: str, region: str) -> str:
    return f"{date_stamp}/{region}/{SERVICE}/{TERMINATOR}"


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str) -> bytes:
    k_date = _hmac_sha256(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, SERVICE)
    return _hmac_sha256(k_service, TERMINATOR)


def canonical_query_string(params: dict[str, str]) -> str:
    return "&".join(f"{key}={uri_encode(params[key])}" for key in sorted(params))


def build_canonical_request(uri: str, query: str, host: str) -> str:
    return "\n".join(
        [
            "GET",
            uri,
            query,
            f"host:{host}\n",
            SIGNED_HEADERS,
            UNSIGNED_PAYLOAD,
        ]
    )


def build_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    digest = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return "\n".join([ALGORITHM, amz_date, scope, digest])


def presign_get_url(
    endpoint: str,
    bucket_name: str,
    object_name: str,
    expiry_seconds: int,
    credentials: Credentials,
    region: str,
    now: datetime,
    use_ssl: bool = False,
    port: int | None = None,
) -> str:
    """Build a SigV4 presigned GET URL.

    Deterministic for fixed inputs: the clock is passed in, never read.

    Args:
        endpoint: Host, optionally with scheme and/or :port
        bucket_name: Bucket name
        object_name: Object key; '/' separates path segments
        expiry_seconds: URL lifetime (1..604800)
        credentials: Access key pair
        region: Signing region
        now: Signing time
        use_ssl: Emit an https URL
        port: Port used when the endpoint does not embed one

    Returns:
        Presigned URL

    Raises:
        SigningError: If bucket/object name is empty or expiry is out of range
    """
    if not bucket_name:
        raise SigningError("Bucket name is required for presigning", object_name=object_name)
    if not object_name:
        raise SigningError("Object name is required for presigning", bucket_name=bucket_name)
    if not 1 <= expiry_seconds <= MAX_URL_EXPIRY_SECONDS:
        raise SigningError(
            f"Expiry must be between 1 and {MAX_URL_EXPIRY_SECONDS} seconds, got {expiry_seconds}",
            bucket_name=bucket_name,
            object_name=object_name,
        )

    protocol = "https" if use_ssl else "http"
    host, embedded_port = parse_endpoint(endpoint)
    if not host:
        raise SigningError(f"Invalid endpoint: {endpoint!r}", bucket_name=bucket_name, object_name=object_name)
    authority = host_header(host, embedded_port if embedded_port is not None else port, protocol)

    amz_date, date_stamp = format_amz_date(now)
    scope = credential_scope(date_stamp, region)
    uri = canonical_uri(bucket_name, object_name)
    query = canonical_query_string(
        {
            "X-Amz-Algorithm": ALGORITHM,
            "X-Amz-Credential": f"{credentials.access_key}/{scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(int(expiry_seconds)),
            "X-Amz-SignedHeaders": SIGNED_HEADERS,
        }
    )

    canonical_request = build_canonical_request(uri, query, authority)
    string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
    signing_key = derive_signing_key(credentials.secret_key, date_stamp, region)
    signature = hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    return f"{protocol}://{authority}{uri}?{query}&X-Amz-Signature={signature}"


class UrlSigner:
    """Presigner bound to one endpoint and credential set.

    The clock is injectable so tests can pin the signing time.
    """

    def __init__(
        self,
        endpoint: str,
        credentials: Credentials,
        region: str,
        use_ssl: bool = False,
        port: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.endpoint = endpoint
        self.credentials = credentials
        self.region = region
        self.use_ssl = use_ssl
        self.port = port
        self._clock = clock

    @classmethod
    def from_config(cls, config: ModuleConfig, clock: Callable[[], datetime] = utcnow) -> "UrlSigner":
        """Signer for the endpoint clients actually reach."""
        return cls(
            endpoint=config.effective_endpoint,
            credentials=Credentials(config.access_key, config.secret_key),
            region=config.region,
            use_ssl=config.effective_use_ssl,
            port=config.port,
            clock=clock,
        )

    def sign(self, bucket_name: str, object_name: str, expiry_seconds: int) -> str:
        return presign_get_url(
            endpoint=self.endpoint,
            bucket_name=bucket_name,
            object_name=object_name,
            expiry_seconds=expiry_seconds,
            credentials=self.credentials,
            region=self.region,
            now=self._clock(),
            use_ssl=self.use_ssl,
            port=self.port,
        )

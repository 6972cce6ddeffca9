"""S3 connection settings for shellstore.

Environment Variables:
    SHELLSTORE_S3_ENDPOINT_HOST: Store endpoint host, with or without scheme (required)
    SHELLSTORE_S3_ENDPOINT_PORT: Store endpoint port (optional)
    SHELLSTORE_S3_SIGNING_REGION: Region used for request signing (default: us-east-1)
    SHELLSTORE_S3_ACCESS_KEY: Access key (optional; anonymous if absent)
    SHELLSTORE_S3_SECRET_KEY: Secret key (optional; anonymous if absent)
    SHELLSTORE_S3_SHELL_BUCKET: Bucket for shell documents (synthesized if absent)
    SHELLSTORE_S3_SUBMODEL_BUCKET: Bucket for submodel documents (synthesized if absent)
    SHELLSTORE_S3_DISABLE_CERT_CHECKING: "1" to skip TLS verification (test doubles only)
    SHELLSTORE_S3_PATH_STYLE_ACCESS: "1" to force path-style addressing (local emulators)

Fail-closed on a missing endpoint host. Bucket names pass through
make_bucket_name(), so a configured name that cannot be repaired fails here
rather than at bucket creation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shellstore.storage.bucket_names import make_bucket_name

logger = logging.getLogger(__name__)

SHELLSTORE_S3_ENDPOINT_HOST_ENV = "SHELLSTORE_S3_ENDPOINT_HOST"
SHELLSTORE_S3_ENDPOINT_PORT_ENV = "SHELLSTORE_S3_ENDPOINT_PORT"
SHELLSTORE_S3_SIGNING_REGION_ENV = "SHELLSTORE_S3_SIGNING_REGION"
SHELLSTORE_S3_ACCESS_KEY_ENV = "SHELLSTORE_S3_ACCESS_KEY"
SHELLSTORE_S3_SECRET_KEY_ENV = "SHELLSTORE_S3_SECRET_KEY"
SHELLSTORE_S3_SHELL_BUCKET_ENV = "SHELLSTORE_S3_SHELL_BUCKET"
SHELLSTORE_S3_SUBMODEL_BUCKET_ENV = "SHELLSTORE_S3_SUBMODEL_BUCKET"
SHELLSTORE_S3_DISABLE_CERT_CHECKING_ENV = "SHELLSTORE_S3_DISABLE_CERT_CHECKING"
SHELLSTORE_S3_PATH_STYLE_ACCESS_ENV = "SHELLSTORE_S3_PATH_STYLE_ACCESS"

DEFAULT_SIGNING_REGION = "us-east-1"
SHELL_FAMILY = "shells"
SUBMODEL_FAMILY = "submodels"


class S3ConfigError(Exception):
    """Raised when S3 configuration is missing or invalid."""


class S3Settings(BaseModel):
    """Connection and bucket settings for the S3 backend."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    endpoint_host: str = Field(..., min_length=1, description="Endpoint host or URL")
    endpoint_port: int | None = Field(default=None, ge=1, le=65535)
    signing_region: str = DEFAULT_SIGNING_REGION
    access_key: str | None = None
    secret_key: str | None = None
    shell_bucket: str = Field(default_factory=lambda: make_bucket_name(None, SHELL_FAMILY))
    submodel_bucket: str = Field(default_factory=lambda: make_bucket_name(None, SUBMODEL_FAMILY))
    disable_cert_checking: bool = False
    path_style_access: bool = False

    @field_validator("shell_bucket", "submodel_bucket")
    @classmethod
    def _normalize_bucket(cls, value: str) -> str:
        return make_bucket_name(value)

    @property
    def has_credentials(self) -> bool:
        """True when both access key and secret key are set."""
        return bool(self.access_key) and bool(self.secret_key)

    @property
    def endpoint_url(self) -> str:
        """Return ``scheme://host[:port]`` for the store endpoint."""
        host = self.endpoint_host
        if "://" not in host:
            host = f"https://{host}"
        if self.endpoint_port is not None:
            return f"{host}:{self.endpoint_port}"
        return host


def _get_env_bool(env: Mapping[str, str], key: str) -> bool:
    return env.get(key, "").strip().lower() in ("1", "true", "yes")


def load_s3_settings(env: Mapping[str, str] | None = None) -> S3Settings:
    """Load S3 settings from the environment.

    Args:
        env: Mapping to read instead of os.environ (for tests).

    Returns:
        Validated S3Settings.

    Raises:
        S3ConfigError: If the endpoint host is missing or a value is invalid.
    """
    source: Mapping[str, str] = os.environ if env is None else env

    host = source.get(SHELLSTORE_S3_ENDPOINT_HOST_ENV, "").strip()
    if not host:
        raise S3ConfigError(
            f"{SHELLSTORE_S3_ENDPOINT_HOST_ENV} is not set. S3 storage is not configured."
        )

    values: dict[str, object] = {
        "endpoint_host": host,
        "disable_cert_checking": _get_env_bool(source, SHELLSTORE_S3_DISABLE_CERT_CHECKING_ENV),
        "path_style_access": _get_env_bool(source, SHELLSTORE_S3_PATH_STYLE_ACCESS_ENV),
    }
    optional = {
        "endpoint_port": SHELLSTORE_S3_ENDPOINT_PORT_ENV,
        "signing_region": SHELLSTORE_S3_SIGNING_REGION_ENV,
        "access_key": SHELLSTORE_S3_ACCESS_KEY_ENV,
        "secret_key": SHELLSTORE_S3_SECRET_KEY_ENV,
        "shell_bucket": SHELLSTORE_S3_SHELL_BUCKET_ENV,
        "submodel_bucket": SHELLSTORE_S3_SUBMODEL_BUCKET_ENV,
    }
    for field_name, env_var in optional.items():
        raw = source.get(env_var, "").strip()
        if raw:
            values[field_name] = raw

    if bool(values.get("access_key")) != bool(values.get("secret_key")):
        logger.warning(
            "Only one of %s / %s is set; falling back to anonymous credentials",
            SHELLSTORE_S3_ACCESS_KEY_ENV,
            SHELLSTORE_S3_SECRET_KEY_ENV,
        )

    try:
        return S3Settings.model_validate(values)
    except ValueError as e:
        raise S3ConfigError(f"Invalid S3 configuration: {e}") from e

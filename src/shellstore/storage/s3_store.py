"""shellstore S3 object store backend.

Provides the boto3-backed gateway used in production against AWS S3 or an
S3-compatible service (MinIO, Ceph RGW, local emulators).

Error mapping:
    NoSuchKey / 404 / NotFound / NoSuchVersion -> ObjectNotFoundError
    any other ClientError or BotoCoreError     -> StoreUnavailableError

The client is built with a single attempt per call; the gateway does not
retry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import boto3
from botocore import UNSIGNED
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from shellstore.storage.errors import ObjectNotFoundError, StoreUnavailableError
from shellstore.storage.models import (
    JSON_CONTENT_TYPE,
    ObjectVersion,
    StoredObject,
    VersionPage,
)
from shellstore.storage.object_store import ObjectStore
from shellstore.storage.tracing import traced_storage_operation

if TYPE_CHECKING:
    from shellstore.config import S3Settings

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound", "NoSuchVersion"})
_MISSING_BUCKET_CODES = frozenset({"NoSuchBucket", "404", "NotFound"})
_VERSIONED_STATES = frozenset({"Enabled", "Suspended"})
_US_EAST_1 = "us-east-1"


def create_s3_client(settings: S3Settings) -> Any:
    """Create a boto3 S3 client from settings.

    Anonymous (unsigned) requests are used when access or secret key is
    missing.
    """
    config_kwargs: dict[str, Any] = {
        "retries": {"total_max_attempts": 1, "mode": "standard"},
    }
    if settings.path_style_access:
        config_kwargs["s3"] = {"addressing_style": "path"}

    client_kwargs: dict[str, Any] = {
        "endpoint_url": settings.endpoint_url,
        "region_name": settings.signing_region,
        "verify": not settings.disable_cert_checking,
    }
    if settings.has_credentials:
        logger.info("Using static S3 credentials (access key, secret key)")
        client_kwargs["aws_access_key_id"] = settings.access_key
        client_kwargs["aws_secret_access_key"] = settings.secret_key
    else:
        logger.info("Using anonymous S3 credentials")
        config_kwargs["signature_version"] = UNSIGNED

    if settings.disable_cert_checking:
        logger.warning("TLS certificate checking is disabled for the S3 client")

    session = boto3.session.Session()
    client = session.client("s3", config=BotoConfig(**config_kwargs), **client_kwargs)
    logger.info("Created S3 client for %s", settings.endpoint_url)
    return client


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


@contextmanager
def _store_errors(
    operation: str,
    bucket: str,
    key: str | None = None,
    version_id: str | None = None,
) -> Iterator[None]:
    """Translate botocore exceptions into shellstore storage errors."""
    try:
        yield
    except ClientError as e:
        code = _error_code(e)
        if key is not None and code in _NOT_FOUND_CODES:
            raise ObjectNotFoundError(
                bucket=bucket,
                key=key,
                version_id=version_id,
            ) from e
        raise StoreUnavailableError(
            f"S3 {operation} failed: {code or e}",
            bucket=bucket,
            key=key,
            cause=e,
        ) from e
    except BotoCoreError as e:
        raise StoreUnavailableError(
            f"S3 {operation} failed: {e}",
            bucket=bucket,
            key=key,
            cause=e,
        ) from e


class S3ObjectStore(ObjectStore):
    """boto3-backed object store.

    Args:
        client: A boto3 S3 client (see create_s3_client()).
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: S3Settings) -> S3ObjectStore:
        """Build a store with a client created from settings."""
        return cls(create_s3_client(settings))

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "s3"

    @property
    def client(self) -> Any:
        """Return the underlying boto3 client."""
        return self._client

    @traced_storage_operation("put")
    def put(
        self,
        bucket: str,
        key: str,
        body: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str = JSON_CONTENT_TYPE,
    ) -> str | None:
        """Store an object."""
        with _store_errors("put_object", bucket, None):
            response = self._client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                Metadata=dict(metadata or {}),
            )
        version_id = response.get("VersionId")
        logger.debug("Stored object: bucket=%s key=%s version=%s", bucket, key, version_id)
        return version_id

    @traced_storage_operation("get")
    def get(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object."""
        with _store_errors("get_object", bucket, key):
            response = self._client.get_object(Bucket=bucket, Key=key)
            stream = response["Body"]
            try:
                body = stream.read()
            finally:
                stream.close()
        return StoredObject(
            bucket=bucket,
            key=key,
            body=body,
            metadata=dict(response.get("Metadata", {})),
            content_type=response.get("ContentType"),
            version_id=response.get("VersionId"),
        )

    @traced_storage_operation("head")
    def head(self, bucket: str, key: str) -> dict[str, str]:
        """Return object user metadata."""
        with _store_errors("head_object", bucket, key):
            response = self._client.head_object(Bucket=bucket, Key=key)
        return dict(response.get("Metadata", {}))

    @traced_storage_operation("delete")
    def delete(self, bucket: str, key: str) -> None:
        """Delete an object."""
        with _store_errors("delete_object", bucket, key):
            self._client.delete_object(Bucket=bucket, Key=key)
        logger.info("Removed object '%s' from bucket '%s'", key, bucket)

    @traced_storage_operation("list_keys")
    def list_keys(self, bucket: str) -> list[str]:
        """List every key, following list_objects_v2 continuation tokens."""
        keys: list[str] = []
        with _store_errors("list_objects_v2", bucket):
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket):
                keys.extend(item["Key"] for item in page.get("Contents", []))
        return keys

    @traced_storage_operation("iter_version_pages")
    def iter_version_pages(self, bucket: str) -> Iterator[VersionPage]:
        """Yield list_object_versions pages, delete markers included."""
        with _store_errors("list_object_versions", bucket):
            paginator = self._client.get_paginator("list_object_versions")
            for page in paginator.paginate(Bucket=bucket):
                versions = [
                    ObjectVersion(
                        key=item["Key"],
                        version_id=item["VersionId"],
                        is_latest=bool(item.get("IsLatest", False)),
                    )
                    for item in page.get("Versions", [])
                ]
                versions.extend(
                    ObjectVersion(
                        key=item["Key"],
                        version_id=item["VersionId"],
                        is_latest=bool(item.get("IsLatest", False)),
                        is_delete_marker=True,
                    )
                    for item in page.get("DeleteMarkers", [])
                )
                yield VersionPage(versions=versions, is_truncated=bool(page.get("IsTruncated")))

    @traced_storage_operation("delete_version")
    def delete_version(self, bucket: str, key: str, version_id: str) -> None:
        """Delete one version of an object."""
        with _store_errors("delete_object", bucket, key, version_id):
            self._client.delete_object(Bucket=bucket, Key=key, VersionId=version_id)
        logger.info(
            "Removed version '%s' of object '%s' from bucket '%s'",
            version_id,
            key,
            bucket,
        )

    @traced_storage_operation("bucket_exists")
    def bucket_exists(self, bucket: str) -> bool:
        """Return True if the bucket exists and is reachable."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as e:
            if _error_code(e) in _MISSING_BUCKET_CODES:
                return False
            raise StoreUnavailableError(
                f"S3 head_bucket failed: {_error_code(e)}",
                bucket=bucket,
                cause=e,
            ) from e
        except BotoCoreError as e:
            raise StoreUnavailableError(
                f"S3 head_bucket failed: {e}",
                bucket=bucket,
                cause=e,
            ) from e
        return True

    @traced_storage_operation("create_bucket")
    def create_bucket(self, bucket: str) -> None:
        """Create a bucket and enable versioning on it."""
        region = self._client.meta.region_name
        with _store_errors("create_bucket", bucket):
            if region and region != _US_EAST_1:
                self._client.create_bucket(
                    Bucket=bucket,
                    CreateBucketConfiguration={"LocationConstraint": region},
                )
            else:
                self._client.create_bucket(Bucket=bucket)
            self._client.put_bucket_versioning(
                Bucket=bucket,
                VersioningConfiguration={"Status": "Enabled"},
            )
        logger.info("Created bucket '%s' with versioning enabled", bucket)

    @traced_storage_operation("delete_bucket")
    def delete_bucket(self, bucket: str) -> None:
        """Delete an empty bucket."""
        with _store_errors("delete_bucket", bucket):
            self._client.delete_bucket(Bucket=bucket)
        logger.info("Deleted bucket '%s'", bucket)

    @traced_storage_operation("list_buckets")
    def list_buckets(self) -> list[str]:
        """Return all bucket names."""
        with _store_errors("list_buckets", ""):
            response = self._client.list_buckets()
        return [item["Name"] for item in response.get("Buckets", [])]

    @traced_storage_operation("is_versioned")
    def is_versioned(self, bucket: str) -> bool:
        """Return True if versioning is enabled or suspended on the bucket."""
        with _store_errors("get_bucket_versioning", bucket):
            response = self._client.get_bucket_versioning(Bucket=bucket)
        return response.get("Status") in _VERSIONED_STATES

"""shellstore in-memory object store backend.

Provides dict-backed buckets for development and testing with the S3
behaviors the document layer depends on:
- Versioned buckets keep every write; deletes leave delete markers
- Unversioned buckets keep one object per key
- Version listings are paged, so callers must follow truncation
- Missing buckets fail like a store-side error, missing objects like NoSuchKey
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field

from shellstore.storage.errors import ObjectNotFoundError, StoreUnavailableError
from shellstore.storage.models import (
    JSON_CONTENT_TYPE,
    ObjectVersion,
    StoredObject,
    VersionPage,
)
from shellstore.storage.object_store import ObjectStore
from shellstore.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)

_NULL_VERSION = "null"
DEFAULT_PAGE_SIZE = 1000


@dataclass
class _Entry:
    version_id: str
    body: bytes = b""
    metadata: dict[str, str] = field(default_factory=dict)
    content_type: str | None = None
    is_delete_marker: bool = False


@dataclass
class _Bucket:
    versioned: bool
    history: dict[str, list[_Entry]] = field(default_factory=dict)

    def latest(self, key: str) -> _Entry | None:
        entries = self.history.get(key)
        if not entries or entries[-1].is_delete_marker:
            return None
        return entries[-1]


class InMemoryObjectStore(ObjectStore):
    """Dict-backed object store.

    Args:
        enable_versioning: Whether create_bucket() turns versioning on. Set
            to False to emulate stores that ignore versioning requests.
        page_size: Maximum entries per listing page.
    """

    def __init__(
        self,
        *,
        enable_versioning: bool = True,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._buckets: dict[str, _Bucket] = {}
        self._enable_versioning = enable_versioning
        self._page_size = max(1, page_size)
        self._lock = threading.RLock()

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "memory"

    def _bucket(self, bucket: str) -> _Bucket:
        found = self._buckets.get(bucket)
        if found is None:
            raise StoreUnavailableError("NoSuchBucket: bucket does not exist", bucket=bucket)
        return found

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
        with self._lock:
            target = self._bucket(bucket)
            entry = _Entry(
                version_id=uuid.uuid4().hex if target.versioned else _NULL_VERSION,
                body=bytes(body),
                metadata=dict(metadata or {}),
                content_type=content_type,
            )
            if target.versioned:
                target.history.setdefault(key, []).append(entry)
            else:
                target.history[key] = [entry]
            logger.debug("Stored object: bucket=%s key=%s version=%s", bucket, key, entry.version_id)
            return entry.version_id if target.versioned else None

    @traced_storage_operation("get")
    def get(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object."""
        with self._lock:
            entry = self._bucket(bucket).latest(key)
            if entry is None:
                raise ObjectNotFoundError(bucket=bucket, key=key)
            return StoredObject(
                bucket=bucket,
                key=key,
                body=entry.body,
                metadata=dict(entry.metadata),
                content_type=entry.content_type,
                version_id=entry.version_id,
            )

    @traced_storage_operation("head")
    def head(self, bucket: str, key: str) -> dict[str, str]:
        """Return object user metadata."""
        with self._lock:
            entry = self._bucket(bucket).latest(key)
            if entry is None:
                raise ObjectNotFoundError(bucket=bucket, key=key)
            return dict(entry.metadata)

    @traced_storage_operation("delete")
    def delete(self, bucket: str, key: str) -> None:
        """Delete an object; versioned buckets get a delete marker."""
        with self._lock:
            target = self._bucket(bucket)
            if target.versioned:
                marker = _Entry(version_id=uuid.uuid4().hex, is_delete_marker=True)
                target.history.setdefault(key, []).append(marker)
            else:
                target.history.pop(key, None)

    @traced_storage_operation("list_keys")
    def list_keys(self, bucket: str) -> list[str]:
        """List live keys in lexicographic order."""
        with self._lock:
            target = self._bucket(bucket)
            return sorted(k for k in target.history if target.latest(k) is not None)

    @traced_storage_operation("iter_version_pages")
    def iter_version_pages(self, bucket: str) -> Iterator[VersionPage]:
        """Yield version listing pages, newest version first within a key."""
        with self._lock:
            target = self._bucket(bucket)
            versions: list[ObjectVersion] = []
            for key in sorted(target.history):
                entries = target.history[key]
                for index, entry in enumerate(reversed(entries)):
                    versions.append(
                        ObjectVersion(
                            key=key,
                            version_id=entry.version_id,
                            is_latest=index == 0,
                            is_delete_marker=entry.is_delete_marker,
                        )
                    )

        if not versions:
            yield VersionPage(versions=[], is_truncated=False)
            return
        for start in range(0, len(versions), self._page_size):
            chunk = versions[start : start + self._page_size]
            yield VersionPage(versions=chunk, is_truncated=start + self._page_size < len(versions))

    @traced_storage_operation("delete_version")
    def delete_version(self, bucket: str, key: str, version_id: str) -> None:
        """Delete one version; deleting an unknown version is a no-op like S3."""
        with self._lock:
            target = self._bucket(bucket)
            entries = target.history.get(key, [])
            remaining = [e for e in entries if e.version_id != version_id]
            if remaining:
                target.history[key] = remaining
            else:
                target.history.pop(key, None)

    @traced_storage_operation("bucket_exists")
    def bucket_exists(self, bucket: str) -> bool:
        """Return True if the bucket exists."""
        with self._lock:
            return bucket in self._buckets

    @traced_storage_operation("create_bucket")
    def create_bucket(self, bucket: str) -> None:
        """Create a bucket, versioned unless versioning is disabled."""
        with self._lock:
            if bucket in self._buckets:
                raise StoreUnavailableError("BucketAlreadyOwnedByYou", bucket=bucket)
            self._buckets[bucket] = _Bucket(versioned=self._enable_versioning)

    @traced_storage_operation("delete_bucket")
    def delete_bucket(self, bucket: str) -> None:
        """Delete an empty bucket."""
        with self._lock:
            if self._bucket(bucket).history:
                raise StoreUnavailableError("BucketNotEmpty", bucket=bucket)
            del self._buckets[bucket]

    @traced_storage_operation("list_buckets")
    def list_buckets(self) -> list[str]:
        """Return all bucket names."""
        with self._lock:
            return sorted(self._buckets)

    @traced_storage_operation("is_versioned")
    def is_versioned(self, bucket: str) -> bool:
        """Return True if the bucket keeps versions."""
        with self._lock:
            return self._bucket(bucket).versioned

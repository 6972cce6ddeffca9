"""shellstore object store gateway interface.

Provides the ObjectStore base class that all storage backends implement: a
thin, uniform surface over an S3-compatible store. Backends never retry;
store-level failures surface as StoreUnavailableError and retry policy belongs
to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator

from shellstore.storage.errors import ObjectNotFoundError
from shellstore.storage.models import (
    JSON_CONTENT_TYPE,
    ObjectVersion,
    StoredObject,
    VersionPage,
)


class ObjectStore(ABC):
    """Abstract base class for object storage backends.

    Implementations:
    - S3ObjectStore: S3 compatible stores via boto3 (production)
    - InMemoryObjectStore: dict-backed buckets (dev/test)
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability (e.g., "s3")."""
        ...

    @abstractmethod
    def put(
        self,
        bucket: str,
        key: str,
        body: bytes,
        *,
        metadata: dict[str, str] | None = None,
        content_type: str = JSON_CONTENT_TYPE,
    ) -> str | None:
        """Store an object, replacing any current object under ``key``.

        Args:
            bucket: Target bucket.
            key: Object key.
            body: Object content.
            metadata: User metadata attached to the object.
            content_type: MIME type of the content.

        Returns:
            The version id assigned by the store, or None if unversioned.

        Raises:
            StoreUnavailableError: If the store cannot complete the write.
        """
        ...

    @abstractmethod
    def get(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object with its body and metadata.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StoreUnavailableError: If the store cannot complete the read.
        """
        ...

    @abstractmethod
    def head(self, bucket: str, key: str) -> dict[str, str]:
        """Return the user metadata of an object without fetching its body.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StoreUnavailableError: If the store cannot complete the request.
        """
        ...

    @abstractmethod
    def delete(self, bucket: str, key: str) -> None:
        """Delete the current object under ``key``.

        On a versioned bucket this leaves a delete marker; use
        delete_version() to remove history.
        """
        ...

    @abstractmethod
    def list_keys(self, bucket: str) -> list[str]:
        """List every key in the bucket, flattening store-side pagination."""
        ...

    @abstractmethod
    def iter_version_pages(self, bucket: str) -> Iterator[VersionPage]:
        """Yield the bucket's version listing one page at a time.

        The last page has ``is_truncated`` set to False.
        """
        ...

    @abstractmethod
    def delete_version(self, bucket: str, key: str, version_id: str) -> None:
        """Delete one specific version of an object."""
        ...

    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        """Return True if the bucket exists."""
        ...

    @abstractmethod
    def create_bucket(self, bucket: str) -> None:
        """Create a bucket and enable versioning on it."""
        ...

    @abstractmethod
    def delete_bucket(self, bucket: str) -> None:
        """Delete an empty bucket."""
        ...

    @abstractmethod
    def list_buckets(self) -> list[str]:
        """Return the names of all buckets visible to the client."""
        ...

    @abstractmethod
    def is_versioned(self, bucket: str) -> bool:
        """Return True if the bucket keeps object versions."""
        ...

    def exists(self, bucket: str, key: str) -> bool:
        """Return True if an object exists under ``key``."""
        try:
            self.head(bucket, key)
        except ObjectNotFoundError:
            return False
        return True

    def list_versions(self, bucket: str) -> list[ObjectVersion] | None:
        """List every version in the bucket, or None if it is unversioned."""
        if not self.is_versioned(bucket):
            return None
        versions: list[ObjectVersion] = []
        for page in self.iter_version_pages(bucket):
            versions.extend(page.versions)
        return versions

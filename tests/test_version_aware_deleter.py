"""Tests for version-aware deletion.

Tests cover:
1. Unversioned buckets: single delete, NotFound afterwards
2. Versioned buckets: every version and delete marker of the key is removed
3. Pagination: deletion follows truncated version listings
4. Bucket wipe, bucket deletion and bucket creation helpers
"""

from __future__ import annotations

import pytest

from shellstore.documents.deleter import (
    create_bucket_if_not_exists,
    delete_bucket_if_exists,
    delete_document,
    wipe_bucket,
)
from shellstore.storage.errors import BucketNamingError, ObjectNotFoundError
from shellstore.storage.memory_store import InMemoryObjectStore
from tests.fixtures.synthetic.documents_fixture import SUBMODEL_BUCKET


class TestUnversioned:
    """Tests for unversioned buckets."""

    def test_delete_then_read_is_not_found(self, unversioned_store: InMemoryObjectStore) -> None:
        unversioned_store.put(SUBMODEL_BUCKET, "SM-001", b"{}")

        assert delete_document(unversioned_store, SUBMODEL_BUCKET, "SM-001") == 1

        with pytest.raises(ObjectNotFoundError):
            unversioned_store.get(SUBMODEL_BUCKET, "SM-001")

    def test_delete_missing_is_not_found(self, unversioned_store: InMemoryObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            delete_document(unversioned_store, SUBMODEL_BUCKET, "SM-001")


class TestVersioned:
    """Tests for versioned buckets."""

    def test_all_versions_removed(self, store: InMemoryObjectStore) -> None:
        """No version of the key survives in the bucket listing."""
        for body in (b"v1", b"v2", b"v3"):
            store.put(SUBMODEL_BUCKET, "SM-001", body)
        store.put(SUBMODEL_BUCKET, "SM-002", b"other")

        removed = delete_document(store, SUBMODEL_BUCKET, "SM-001")

        assert removed == 3
        versions = store.list_versions(SUBMODEL_BUCKET)
        assert versions is not None
        assert all(v.key != "SM-001" for v in versions)
        assert store.get(SUBMODEL_BUCKET, "SM-002").body == b"other"

    def test_delete_markers_removed(self, store: InMemoryObjectStore) -> None:
        store.put(SUBMODEL_BUCKET, "SM-001", b"v1")
        store.delete(SUBMODEL_BUCKET, "SM-001")
        store.put(SUBMODEL_BUCKET, "SM-001", b"v2")

        assert delete_document(store, SUBMODEL_BUCKET, "SM-001") == 3
        assert store.list_versions(SUBMODEL_BUCKET) == []

    def test_follows_truncated_pages(self) -> None:
        store = InMemoryObjectStore(page_size=2)
        store.create_bucket(SUBMODEL_BUCKET)
        store.put(SUBMODEL_BUCKET, "SM-000", b"first")
        for index in range(5):
            store.put(SUBMODEL_BUCKET, "SM-001", f"v{index}".encode())
        store.put(SUBMODEL_BUCKET, "SM-002", b"last")

        assert delete_document(store, SUBMODEL_BUCKET, "SM-001") == 5

        versions = store.list_versions(SUBMODEL_BUCKET)
        assert versions is not None
        assert sorted(v.key for v in versions) == ["SM-000", "SM-002"]

    def test_delete_missing_is_not_found(self, store: InMemoryObjectStore) -> None:
        store.put(SUBMODEL_BUCKET, "SM-002", b"other")

        with pytest.raises(ObjectNotFoundError):
            delete_document(store, SUBMODEL_BUCKET, "SM-001")


class TestBucketHelpers:
    """Tests for wipe, delete and create helpers."""

    def test_wipe_versioned_bucket(self, store: InMemoryObjectStore) -> None:
        store.put(SUBMODEL_BUCKET, "SM-001", b"v1")
        store.put(SUBMODEL_BUCKET, "SM-001", b"v2")
        store.put(SUBMODEL_BUCKET, "SM-002", b"v1")

        assert wipe_bucket(store, SUBMODEL_BUCKET) == 3
        assert store.list_versions(SUBMODEL_BUCKET) == []

    def test_wipe_unversioned_bucket(self, unversioned_store: InMemoryObjectStore) -> None:
        unversioned_store.put(SUBMODEL_BUCKET, "SM-001", b"{}")
        unversioned_store.put(SUBMODEL_BUCKET, "SM-002", b"{}")

        assert wipe_bucket(unversioned_store, SUBMODEL_BUCKET) == 2
        assert unversioned_store.list_keys(SUBMODEL_BUCKET) == []

    def test_delete_bucket_if_exists(self, store: InMemoryObjectStore) -> None:
        store.put(SUBMODEL_BUCKET, "SM-001", b"{}")

        assert delete_bucket_if_exists(store, SUBMODEL_BUCKET) is True
        assert store.bucket_exists(SUBMODEL_BUCKET) is False
        assert delete_bucket_if_exists(store, SUBMODEL_BUCKET) is False

    def test_create_bucket_if_not_exists(self) -> None:
        store = InMemoryObjectStore()

        assert create_bucket_if_not_exists(store, "new-bucket") is True
        assert create_bucket_if_not_exists(store, "new-bucket") is False
        assert store.is_versioned("new-bucket") is True

    def test_create_rejects_invalid_name(self) -> None:
        store = InMemoryObjectStore()

        with pytest.raises(BucketNamingError):
            create_bucket_if_not_exists(store, "Bad_Bucket")
        assert store.list_buckets() == []

"""Version-aware document deletion and bucket wiping.

Unversioned bucket: one delete by key. Versioned bucket: a plain delete
would only add a delete marker, so every stored version of the key is
removed, paging through the version listing until it is no longer
truncated.
"""

from __future__ import annotations

import logging

from shellstore.storage.bucket_names import check_bucket_name
from shellstore.storage.errors import ObjectNotFoundError
from shellstore.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def delete_document(store: ObjectStore, bucket: str, identifier: str) -> int:
    """Delete a document and, on versioned buckets, its whole history.

    Args:
        store: Object store gateway.
        bucket: Bucket holding the document.
        identifier: Document identifier (the object key).

    Returns:
        Number of objects or versions removed.

    Raises:
        ObjectNotFoundError: If nothing is stored under ``identifier``.
        StoreUnavailableError: If the store fails mid-way. Versions deleted
            before the failure stay deleted.
    """
    if not store.is_versioned(bucket):
        if not store.exists(bucket, identifier):
            raise ObjectNotFoundError(
                "No document found with this identifier",
                bucket=bucket,
                key=identifier,
            )
        store.delete(bucket, identifier)
        return 1

    removed = 0
    for page in store.iter_version_pages(bucket):
        for version in page.versions:
            if version.key == identifier:
                store.delete_version(bucket, version.key, version.version_id)
                removed += 1
        if not page.is_truncated:
            break

    if removed == 0:
        raise ObjectNotFoundError(
            "No document versions found with this identifier",
            bucket=bucket,
            key=identifier,
        )
    logger.info("Deleted %d version(s) of '%s' from bucket '%s'", removed, identifier, bucket)
    return removed


def wipe_bucket(store: ObjectStore, bucket: str) -> int:
    """Remove every object (and every version) from a bucket.

    Returns:
        Number of objects or versions removed.
    """
    removed = 0
    if store.is_versioned(bucket):
        for page in store.iter_version_pages(bucket):
            for version in page.versions:
                store.delete_version(bucket, version.key, version.version_id)
                removed += 1
            if not page.is_truncated:
                break
    else:
        for key in store.list_keys(bucket):
            store.delete(bucket, key)
            removed += 1
    logger.info("Wiped %d entr(ies) from bucket '%s'", removed, bucket)
    return removed


def delete_bucket_if_exists(store: ObjectStore, bucket: str) -> bool:
    """Wipe and delete a bucket.

    Returns:
        False if the bucket did not exist.
    """
    if not store.bucket_exists(bucket):
        logger.info("Bucket '%s' could not be deleted since it does not exist", bucket)
        return False
    wipe_bucket(store, bucket)
    store.delete_bucket(bucket)
    logger.info("Deleted bucket '%s'", bucket)
    return True


def create_bucket_if_not_exists(store: ObjectStore, bucket: str) -> bool:
    """Create a versioned bucket unless it already exists.

    Returns:
        True if the bucket was created.
    """
    check_bucket_name(bucket)
    if store.bucket_exists(bucket):
        logger.info("Using existing bucket '%s'", bucket)
        return False
    store.create_bucket(bucket)
    return True

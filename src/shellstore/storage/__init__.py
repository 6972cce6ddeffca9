"""shellstore Object Storage Abstraction.

Provides a uniform gateway over S3-compatible object stores, bucket name
normalization, and the typed errors shared by the document layer.

Backends:
- S3ObjectStore: boto3 client against S3 or an S3-compatible service
- InMemoryObjectStore: dict-backed buckets (dev/test)
"""

from shellstore.storage.bucket_names import check_bucket_name, make_bucket_name
from shellstore.storage.errors import (
    BucketNamingError,
    DocumentDecodeError,
    ElementNotFoundError,
    ObjectNotFoundError,
    ObjectStorageError,
    PathNotResolvableError,
    StoreUnavailableError,
    UnsupportedOperationError,
)
from shellstore.storage.memory_store import InMemoryObjectStore
from shellstore.storage.models import ObjectVersion, StoredObject, VersionPage
from shellstore.storage.object_store import ObjectStore
from shellstore.storage.s3_store import S3ObjectStore, create_s3_client

__all__ = [
    "BucketNamingError",
    "DocumentDecodeError",
    "ElementNotFoundError",
    "InMemoryObjectStore",
    "ObjectNotFoundError",
    "ObjectStorageError",
    "ObjectStore",
    "ObjectVersion",
    "PathNotResolvableError",
    "S3ObjectStore",
    "StoreUnavailableError",
    "StoredObject",
    "UnsupportedOperationError",
    "VersionPage",
    "check_bucket_name",
    "create_s3_client",
    "make_bucket_name",
]

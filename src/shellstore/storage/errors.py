"""shellstore storage and document error types.

Provides typed exceptions for store and document operations. Nothing is
downgraded to a logged trace and a ``None`` return: operations that cannot
complete raise one of the errors below and the caller decides what to do.
"""

from __future__ import annotations


class ObjectStorageError(Exception):
    """Base exception for shellstore storage operations.

    Attributes:
        message: Human-readable error message.
        bucket: Bucket associated with the operation (if applicable).
        key: Object key associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.bucket = bucket
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.bucket:
            parts.append(f"bucket={self.bucket}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class BucketNamingError(ObjectStorageError):
    """Raised when a bucket name violates an S3 naming rule.

    Fatal to bucket creation. ``rule`` names the violated rule; for the
    character-set rule ``invalid_characters`` holds the sorted distinct
    offending characters.
    """

    def __init__(
        self,
        message: str,
        *,
        rule: str,
        bucket: str | None = None,
        invalid_characters: list[str] | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket)
        self.rule = rule
        self.invalid_characters = invalid_characters or []


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an object, a version, or a document is absent."""

    def __init__(
        self,
        message: str = "Object not found",
        *,
        bucket: str | None = None,
        key: str | None = None,
        version_id: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)
        self.version_id = version_id


class ElementNotFoundError(ObjectNotFoundError):
    """Raised when the final segment of an element path does not exist."""

    def __init__(
        self,
        message: str = "Element not found",
        *,
        path: str,
        key: str | None = None,
    ) -> None:
        super().__init__(message, key=key)
        self.path = path

    def __str__(self) -> str:
        return f"{super().__str__()} path={self.path}"


class PathNotResolvableError(ObjectStorageError):
    """Raised when an intermediate path segment is not a collection element."""

    def __init__(
        self,
        message: str = "Element path could not be resolved",
        *,
        path: str,
        key: str | None = None,
    ) -> None:
        super().__init__(message, key=key)
        self.path = path

    def __str__(self) -> str:
        return f"{super().__str__()} path={self.path}"


class UnsupportedOperationError(ObjectStorageError):
    """Raised for operations that are not meaningful on store-backed documents."""


class DocumentDecodeError(ObjectStorageError):
    """Raised when a stored body cannot be decoded into a document."""


class StoreUnavailableError(ObjectStorageError):
    """Raised when the object store cannot complete an operation.

    Covers transport failures and service-side errors other than a missing
    object. The gateway never retries; ``cause`` keeps the original exception.
    """

    def __init__(
        self,
        message: str = "Object store unavailable",
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)
        self.cause = cause

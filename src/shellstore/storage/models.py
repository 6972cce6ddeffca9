"""shellstore object storage data models.

Provides typed dataclasses for stored objects and version listings.
"""

from __future__ import annotations

from dataclasses import dataclass, field

JSON_CONTENT_TYPE = "application/json"


def get_metadata_value(metadata: dict[str, str], tag: str) -> str | None:
    """Look up a user metadata tag case-insensitively.

    S3 returns user metadata keys lower-cased, so ``idShort`` written on put
    comes back as ``idshort`` on get and head.
    """
    if tag in metadata:
        return metadata[tag]
    lowered = tag.lower()
    for name, value in metadata.items():
        if name.lower() == lowered:
            return value
    return None


@dataclass(frozen=True)
class StoredObject:
    """An object body together with its user metadata.

    Attributes:
        bucket: Bucket holding the object.
        key: Object key (the document identifier).
        body: Object content as bytes.
        metadata: User metadata (``identifier``, ``idShort``, ...).
        content_type: MIME type reported by the store.
        version_id: Version of the object, if the bucket is versioned.
    """

    bucket: str
    key: str
    body: bytes
    metadata: dict[str, str] = field(default_factory=dict)
    content_type: str | None = None
    version_id: str | None = None

    def text(self) -> str:
        """Return the body decoded as UTF-8."""
        return self.body.decode("utf-8")


@dataclass(frozen=True)
class ObjectVersion:
    """One entry of a bucket version listing."""

    key: str
    version_id: str
    is_latest: bool = False
    is_delete_marker: bool = False


@dataclass(frozen=True)
class VersionPage:
    """One page of a version listing.

    ``is_truncated`` is True while the store has more pages to report.
    """

    versions: list[ObjectVersion]
    is_truncated: bool = False

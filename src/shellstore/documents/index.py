"""Short name to identifier resolution.

The object store has no secondary index. resolve_id_short() scans the
bucket: it lists every key, fetches each object's metadata (never the body)
and returns the ``identifier`` of the first object whose ``idShort``
matches. That is O(n) in the bucket size, and ties between duplicate short
names go to whichever object the store lists first.

IdShortIndex keeps the mapping in memory for a repository, updated on every
write, and falls back to the scan on a miss.
"""

from __future__ import annotations

import logging
import threading

from shellstore.documents.codec import METADATA_ID_SHORT, METADATA_IDENTIFIER
from shellstore.storage.errors import ObjectNotFoundError
from shellstore.storage.models import get_metadata_value
from shellstore.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def resolve_id_short(store: ObjectStore, bucket: str, id_short: str) -> str | None:
    """Resolve a short name to an identifier by scanning object metadata.

    Returns:
        The identifier of the first matching object, or None if no object
        carries the short name.

    Raises:
        StoreUnavailableError: If listing or a metadata fetch fails.
    """
    for key in store.list_keys(bucket):
        try:
            metadata = store.head(bucket, key)
        except ObjectNotFoundError:
            logger.warning("Object '%s' vanished from bucket '%s' during scan", key, bucket)
            continue
        if get_metadata_value(metadata, METADATA_ID_SHORT) == id_short:
            return get_metadata_value(metadata, METADATA_IDENTIFIER) or key
    logger.debug("No object with idShort '%s' in bucket '%s'", id_short, bucket)
    return None


class IdShortIndex:
    """In-memory short name index with a bucket scan fallback.

    The first identifier registered for a short name wins, matching the scan's
    first-match rule.
    """

    def __init__(self, store: ObjectStore, bucket: str) -> None:
        self._store = store
        self._bucket = bucket
        self._by_id_short: dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, id_short: str, identifier: str) -> None:
        """Record ``id_short`` for ``identifier``, dropping its previous short name."""
        with self._lock:
            self._discard_locked(identifier)
            self._by_id_short.setdefault(id_short, identifier)

    def discard(self, identifier: str) -> None:
        """Forget every short name pointing at ``identifier``."""
        with self._lock:
            self._discard_locked(identifier)

    def _discard_locked(self, identifier: str) -> None:
        stale = [name for name, ident in self._by_id_short.items() if ident == identifier]
        for name in stale:
            del self._by_id_short[name]

    def clear(self) -> None:
        with self._lock:
            self._by_id_short.clear()

    def lookup(self, id_short: str) -> str | None:
        """Return the cached identifier without touching the store."""
        with self._lock:
            return self._by_id_short.get(id_short)

    def resolve(self, id_short: str) -> str | None:
        """Return the identifier for ``id_short``, scanning the bucket on a miss."""
        cached = self.lookup(id_short)
        if cached is not None:
            return cached

        identifier = resolve_id_short(self._store, self._bucket, id_short)
        if identifier is not None:
            with self._lock:
                self._by_id_short.setdefault(id_short, identifier)
        return identifier

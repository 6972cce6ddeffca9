"""Per-repository routing table and per-identifier write locks.

RoutingTable maps identifiers to composed views. It is owned by one
repository and injected at construction; every access goes through an
RLock, and readers get snapshots.

IdentifierLocks serializes read-modify-write sequences on the same document
inside one process. Writers in other processes are not covered: two
processes updating the same document can still lose one update.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

V = TypeVar("V")


class RoutingTable(Generic[V]):
    """Thread-safe identifier -> view mapping."""

    def __init__(self) -> None:
        self._entries: dict[str, V] = {}
        self._lock = threading.RLock()

    def get(self, identifier: str) -> V | None:
        with self._lock:
            return self._entries.get(identifier)

    def put(self, identifier: str, view: V) -> V | None:
        """Register ``view``; return the entry it replaced, if any."""
        with self._lock:
            previous = self._entries.get(identifier)
            self._entries[identifier] = view
            return previous

    def remove(self, identifier: str) -> V | None:
        with self._lock:
            return self._entries.pop(identifier, None)

    def replace_all(self, entries: dict[str, V]) -> None:
        """Swap in a freshly rebuilt set of entries."""
        with self._lock:
            self._entries = dict(entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def identifiers(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def values(self) -> list[V]:
        with self._lock:
            return list(self._entries.values())

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class _LockEntry:
    """An RLock and the number of threads holding or waiting for it."""

    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class IdentifierLocks:
    """One lock per document identifier.

    An entry lives only while some thread holds or waits for it, so the map
    does not grow with every identifier ever written.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}
        self._guard = threading.Lock()

    def _acquire_entry(self, identifier: str) -> _LockEntry:
        with self._guard:
            entry = self._entries.get(identifier)
            if entry is None:
                entry = _LockEntry()
                self._entries[identifier] = entry
            entry.holders += 1
            return entry

    def _release_entry(self, identifier: str, entry: _LockEntry) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[identifier]

    @contextmanager
    def hold(self, identifier: str) -> Iterator[None]:
        """Hold the write section for ``identifier``."""
        entry = self._acquire_entry(identifier)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(identifier, entry)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

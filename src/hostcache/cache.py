from __future__ import annotations

import threading
from typing import Dict, List, Optional

from .host_entry import HostEntry

""" Unbounded name -> HostEntry store without expiry. """


class ResolutionCache:
    """
    Thread-safe in-memory store of resolved host entries.

    Inputs:
        None (constructor)
    Outputs:
        ResolutionCache instance

    Notes:
        Every operation runs under one re-entrant lock. The lock is exposed
        as ``lock`` so a resolver can hold it across a cache probe, a
        blocking backend call and the following insert.
        Entries never expire; only flush() removes them.

    Example use:
        >>> from hostcache.cache import ResolutionCache
        >>> from hostcache.host_entry import HostEntry
        >>> cache = ResolutionCache()
        >>> first = cache.insert("localhost", HostEntry("localhost"))
        >>> cache.insert("localhost", HostEntry("other")) is first
        True
        >>> cache.flush()
        1
    """

    def __init__(self) -> None:
        self._store: Dict[str, HostEntry] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def lookup(self, key: str) -> Optional[HostEntry]:
        """
        Probe the cache without side effects.

        Inputs:
            key: Hostname or discovered canonical name.

        Outputs:
            The stored HostEntry, or None when the key is absent.
        """
        with self._lock:
            return self._store.get(key)

    def insert(self, key: str, entry: HostEntry) -> HostEntry:
        """
        Store entry under key unless the key is already populated.

        Inputs:
            key: Cache key.
            entry: Freshly built HostEntry.

        Outputs:
            The authoritative stored entry. When another insert got there
            first, the new entry is discarded and the existing one returned.
        """
        with self._lock:
            existing = self._store.get(key)
            if existing is not None:
                return existing
            self._store[key] = entry
            return entry

    def flush(self) -> int:
        """Remove every entry; returns how many were removed."""
        with self._lock:
            removed = len(self._store)
            self._store.clear()
            return removed

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._store.keys())

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

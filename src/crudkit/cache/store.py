"""Storage backends for :class:`~crudkit.cache.ResponseCache`.

Two backends are provided:

- :class:`MemoryStore` -- a plain dict, scoped to the process.  The default
  for library use.
- :class:`DiskStore` -- persists entries with :mod:`diskcache` so the
  ``crudkit`` command can reuse responses across invocations.

Backends only store and enumerate :class:`~crudkit.models.CacheEntry`
values; freshness decisions belong to the cache itself.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional, Protocol

import diskcache

from crudkit.models import CacheEntry


class CacheStore(Protocol):
    """Key/value store of :class:`~crudkit.models.CacheEntry` objects."""

    def get(self, key: str) -> Optional[CacheEntry]: ...

    def set(self, entry: CacheEntry) -> None: ...

    def delete(self, key: str) -> bool: ...

    def keys(self) -> Iterator[str]: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...

    def close(self) -> None: ...


class MemoryStore:
    """In-process store backed by a dict."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def set(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def keys(self) -> Iterator[str]:
        return iter(list(self._entries))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def close(self) -> None:
        pass


class DiskStore:
    """Filesystem store backed by :class:`diskcache.Cache`.

    Entries are stored as plain dicts under their raw cache key so that
    prefix invalidation can enumerate them.  Entries with a TTL are also
    given a :mod:`diskcache` expiry so stale files are culled even if they
    are never read again.

    Args:
        directory: Root directory; a ``responses/`` subdirectory is used.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory) / "responses"
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> Optional[CacheEntry]:
        data = self._cache.get(key)
        if data is None:
            return None
        return CacheEntry.model_validate(data)

    def set(self, entry: CacheEntry) -> None:
        self._cache.set(entry.key, entry.model_dump(mode="json"), expire=entry.ttl_seconds)

    def delete(self, key: str) -> bool:
        return bool(self._cache.delete(key))

    def keys(self) -> Iterator[str]:
        return iter(list(self._cache.iterkeys()))

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def close(self) -> None:
        self._cache.close()

"""Response caching for crudkit.

This package provides :class:`ResponseCache`, which stores decoded response
bodies keyed by cache key, applies the per-request revalidation policy of a
:class:`~crudkit.models.RequestDescriptor`, and coalesces concurrent
refreshes of the same key into one network call.

Entries live in a :class:`MemoryStore` by default; the ``crudkit`` command
uses a :mod:`diskcache`-backed :class:`DiskStore` instead.
"""

from crudkit.cache.cache import ResponseCache
from crudkit.cache.store import CacheStore, DiskStore, MemoryStore

__all__ = ["CacheStore", "DiskStore", "MemoryStore", "ResponseCache"]

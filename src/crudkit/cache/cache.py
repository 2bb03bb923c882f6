"""Response cache with per-request revalidation and request coalescing.

:class:`ResponseCache` stores decoded response bodies as
:class:`~crudkit.models.CacheEntry` values and decides, per
:class:`~crudkit.models.RequestDescriptor`, whether a stored value may be
served or the network must be consulted:

===============  ===========================  ============================
revalidate       read                         write on success (ttl)
===============  ===========================  ============================
``"none"``       never                        default TTL
``"force"``      never                        default TTL (overwrites)
``n``            if younger than ``n`` s      ``n``
``None``         if younger than default TTL  default TTL
``"immutable"``  any stored entry             ``None`` (never expires)
===============  ===========================  ============================

Concurrent refreshes of one key are coalesced: the first caller starts a
task and records it as the key's in-flight marker, later callers await that
same task, and the marker is removed when the task finishes whether it
succeeded or not.  Errors are never cached.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from crudkit.cache.store import CacheStore, MemoryStore
from crudkit.models import CacheEntry, RequestDescriptor, Revalidate
from crudkit.output import get_output
from crudkit.result import Ok, Result

Loader = Callable[[RequestDescriptor], Awaitable[Result[Any]]]
Clock = Callable[[], float]


class ResponseCache:
    """Key-addressed store of cached responses.

    Args:
        store: Backend holding the entries; defaults to a
            :class:`~crudkit.cache.store.MemoryStore`.
        default_ttl_seconds: TTL used when a request does not carry a
            numeric policy.  ``None`` stores entries as immutable.
        clock: Returns the current time in epoch seconds.

    Example::

        cache = ResponseCache(default_ttl_seconds=60)
        cache.write("GET /users", [{"id": 1}], ttl_seconds=60)
        entry = cache.read("GET /users")
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        default_ttl_seconds: Optional[int] = 300,
        clock: Clock = time.time,
    ) -> None:
        self._store: CacheStore = store if store is not None else MemoryStore()
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._inflight: dict[str, asyncio.Future[Result[Any]]] = {}
        self._epoch = 0

    # ------------------------------------------------------------------ #
    # Entry access
    # ------------------------------------------------------------------ #

    def read(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for *key*, evicting it if its TTL has passed."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._store.delete(key)
            return None
        return entry

    def write(self, key: str, value: Any, ttl_seconds: Optional[int]) -> CacheEntry:
        """Store *value* under *key*; ``ttl_seconds=None`` makes it immutable."""
        entry = CacheEntry(key=key, value=value, stored_at=self._clock(), ttl_seconds=ttl_seconds)
        self._store.set(entry)
        return entry

    def invalidate(self, key: str) -> bool:
        """Remove the entry for *key*.  Returns whether one existed."""
        self._epoch += 1
        return self._store.delete(key)

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with *prefix*.  Returns the count."""
        self._epoch += 1
        removed = 0
        for key in self._store.keys():
            if key.startswith(prefix) and self._store.delete(key):
                removed += 1
        return removed

    def clear(self) -> None:
        """Remove all entries."""
        self._epoch += 1
        self._store.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``size``, ``default_ttl_seconds`` and ``in_flight`` counts."""
        return {
            "size": len(self._store),
            "default_ttl_seconds": self.default_ttl_seconds,
            "in_flight": len(self._inflight),
        }

    def close(self) -> None:
        self._store.close()

    # ------------------------------------------------------------------ #
    # Revalidating fetch
    # ------------------------------------------------------------------ #

    async def fetch(self, descriptor: RequestDescriptor, loader: Loader) -> Result[Any]:
        """Serve *descriptor* from the cache or through *loader*.

        Args:
            descriptor: A GET-equivalent request; its ``key`` and
                ``revalidate`` policy drive the decision.
            loader: Coroutine performing the network round trip.

        Returns:
            The cached value wrapped in ``Ok``, or the loader's result.
        """
        policy = descriptor.revalidate
        key = descriptor.key
        output = get_output()

        if policy not in ("none", "force"):
            entry = self.read(key)
            if entry is not None and self._is_fresh(entry, policy):
                output.debug(f"Cache hit: {key}")
                return Ok(entry.value)

        task = self._inflight.get(key)
        if task is None:
            output.debug(f"Cache miss: {key}")
            task = asyncio.ensure_future(
                self._load(key, descriptor, loader, self._ttl_for(policy), self._epoch)
            )
            self._inflight[key] = task
            task.add_done_callback(lambda done, key=key: self._release(key, done))
        else:
            output.debug(f"Awaiting in-flight refresh: {key}")
        # One caller giving up must not cancel the refresh the others await.
        return await asyncio.shield(task)

    async def _load(
        self,
        key: str,
        descriptor: RequestDescriptor,
        loader: Loader,
        ttl: Optional[int],
        epoch: int,
    ) -> Result[Any]:
        result = await loader(descriptor)
        if result.ok:
            if epoch == self._epoch:
                self.write(key, result.value, ttl)
            else:
                get_output().debug(f"Not caching {key}: invalidated while in flight")
        return result

    def _release(self, key: str, task: asyncio.Future[Result[Any]]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def _is_fresh(self, entry: CacheEntry, policy: Revalidate) -> bool:
        if policy == "immutable":
            return True
        max_age = policy if isinstance(policy, int) else self.default_ttl_seconds
        if max_age is None:
            return True
        return entry.age(self._clock()) < max_age

    def _ttl_for(self, policy: Revalidate) -> Optional[int]:
        if policy == "immutable":
            return None
        if isinstance(policy, int):
            return policy
        return self.default_ttl_seconds

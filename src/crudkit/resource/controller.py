"""Generic CRUD state container for one entity collection.

:class:`ResourceController` keeps a :class:`CollectionState` (``items``,
``loading``, ``error``, ``phase``) in step with a REST collection such as
``/users``:

=========  ===========  ===========================================
operation  request      on success
=========  ===========  ===========================================
list       GET path     replace ``items`` wholesale
create     POST path    append the server-confirmed item
update     PATCH path/  replace the matching item in place
remove     DELETE path/ drop the matching item
=========  ===========  ===========================================

Each operation moves the phase ``IDLE -> LOADING -> READY | FAILED``.
Operations on one controller are serialized by an :class:`asyncio.Lock`.
The lock hands over in the order callers arrived, so results are committed
in issue order and the last operation issued is the last one written.  An
operation whose caller cancels it commits nothing and returns the state to
``IDLE`` for the next one in line.

Failures never raise: every operation returns a
:data:`~crudkit.result.Result` and records the error in ``state.error``.
Malformed arguments raise :class:`~crudkit.exceptions.ConfigError` before
the state is touched.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Hashable, Optional, TypeVar
from urllib.parse import quote

from crudkit.client.api_client import ApiClient
from crudkit.exceptions import ApiError, ErrorKind
from crudkit.models import RequestDescriptor, Revalidate, derive_cache_key
from crudkit.output import get_output
from crudkit.resource.codec import Codec
from crudkit.result import Err, Ok, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Phase(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class CollectionState(Generic[T]):
    """Snapshot of a collection.

    Attributes:
        items: Items in insertion order; identities are unique.
        loading: ``True`` while an operation is in flight.
        error: The error of the last operation, ``None`` after a success.
        phase: Where the last operation is in its lifecycle.
    """

    items: list[T] = field(default_factory=list)
    loading: bool = False
    error: Optional[ApiError] = None
    phase: Phase = Phase.IDLE


StateListener = Callable[[CollectionState[Any]], None]


class ResourceController(Generic[T]):
    """Manage one REST collection through an :class:`~crudkit.client.ApiClient`.

    Args:
        client: The (open) client to issue requests through.
        path: Collection path, e.g. ``"/users"``.  Items live at
            ``<path>/<id>``.
        codec: Identity extraction and serialization for the entity type.
        items_field: When the list endpoint wraps its array in an object
            (``{"data": [...]}``), the key holding the array.
        retry_create: Allow retrying ``create`` on transient failures.  Off
            by default since a retried POST can duplicate the resource.

    Example::

        users = ResourceController(client, "/users", DictCodec())
        await users.list()
        await users.update(2, {"name": "B2"})
        print(users.items)
    """

    def __init__(
        self,
        client: ApiClient,
        path: str,
        codec: Codec[T],
        items_field: Optional[str] = None,
        retry_create: bool = False,
    ) -> None:
        self._client = client
        self._path = path.rstrip("/")
        self._codec = codec
        self._items_field = items_field
        self._retry_create = retry_create
        self._state: CollectionState[T] = CollectionState()
        self._lock = asyncio.Lock()
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------ #
    # State access
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> CollectionState[T]:
        """A copy of the current state."""
        return dataclasses.replace(self._state, items=list(self._state.items))

    @property
    def items(self) -> list[T]:
        return list(self._state.items)

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[ApiError]:
        return self._state.error

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with a state copy after every transition.

        A listener that raises is logged and skipped.

        Returns:
            A function that unregisters the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    async def list(
        self,
        params: Optional[dict[str, Any]] = None,
        revalidate: Revalidate = None,
    ) -> Result[list[T]]:
        """Load the collection through the cache.

        On success ``items`` is replaced wholesale; on failure the previous
        ``items`` are kept and ``error`` is set.

        Raises:
            ConfigError: If *params* or *revalidate* are malformed.
        """
        descriptor = RequestDescriptor.from_options(
            method="GET", path=self._path, params=params, revalidate=revalidate
        )

        async def run() -> Result[list[T]]:
            result = await self._client.fetch(descriptor)
            if not result.ok:
                return self._commit(result)
            decoded = self._decode_list(result.value)
            if not decoded.ok:
                return self._commit(decoded)
            items = decoded.value

            def apply() -> None:
                self._state.items = items

            return self._commit(Ok(list(items)), apply)

        return await self._serialized(run)

    async def create(self, data: Any) -> Result[Optional[T]]:
        """POST *data* to the collection and append the item the server returns.

        If the server answers without a body nothing is appended; call
        :meth:`list` to pick up the new item.
        """
        descriptor = RequestDescriptor.from_options(
            method="POST", path=self._path, body=self._codec.encode(data)
        )

        async def run() -> Result[Optional[T]]:
            result = await self._client.fetch(descriptor, idempotent=self._retry_create)
            if not result.ok:
                return self._commit(result)
            self._invalidate(None)
            if result.value is None:
                return self._commit(Ok(None))
            decoded = self._decode_one(result.value)
            if not decoded.ok:
                return self._commit(decoded)
            item = decoded.value

            def apply() -> None:
                index = self._index_of(self._codec.identity(item))
                if index is None:
                    self._state.items.append(item)
                else:
                    self._state.items[index] = item

            return self._commit(Ok(item), apply)

        return await self._serialized(run)

    async def update(self, item_id: Hashable, patch: Any) -> Result[T]:
        """PATCH the item *item_id* and replace it in place.

        Fails with ``NOT_FOUND`` before any network call when *item_id* is
        not in ``items``, and with ``UNKNOWN`` when the server answers with
        an item of a different identity.
        """
        descriptor = RequestDescriptor.from_options(
            method="PATCH", path=self._item_path(item_id), body=self._codec.encode(patch)
        )

        async def run() -> Result[T]:
            current_index = self._index_of(item_id)
            if current_index is None:
                error = ApiError.not_found(f"No item with id {item_id!r} in {self._path}")
                return self._commit(Err(error))
            current = self._state.items[current_index]
            result = await self._client.fetch(descriptor)
            if not result.ok:
                return self._commit(result)
            self._invalidate(item_id)
            if result.value is None:
                decoded: Result[T] = Ok(self._codec.merge(current, patch))
            else:
                decoded = self._decode_one(result.value)
            if not decoded.ok:
                return self._commit(decoded)
            item = decoded.value
            returned_id = self._codec.identity(item)
            if returned_id != item_id:
                error = ApiError(
                    ErrorKind.UNKNOWN,
                    f"Update of {item_id!r} in {self._path} returned item {returned_id!r}",
                    cause=result.value,
                )
                return self._commit(Err(error))

            def apply() -> None:
                index = self._index_of(item_id)
                if index is not None:
                    self._state.items[index] = item

            return self._commit(Ok(item), apply)

        return await self._serialized(run)

    async def remove(self, item_id: Hashable) -> Result[None]:
        """DELETE the item *item_id*.

        Idempotent: an id that is not in ``items`` succeeds without a
        network call, and a 404 from the server counts as success.
        """
        descriptor = RequestDescriptor.from_options(method="DELETE", path=self._item_path(item_id))

        async def run() -> Result[None]:
            if self._index_of(item_id) is None:
                get_output().debug(f"remove({item_id!r}): not present in {self._path}, nothing to do")
                return self._commit(Ok(None))
            result = await self._client.fetch(descriptor)
            if not result.ok and result.error.kind is not ErrorKind.NOT_FOUND:
                return self._commit(result)
            self._invalidate(item_id)

            def apply() -> None:
                self._state.items = [
                    item for item in self._state.items if self._codec.identity(item) != item_id
                ]

            return self._commit(Ok(None), apply)

        return await self._serialized(run)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _serialized(self, operation: Callable[[], Awaitable[Result[Any]]]) -> Result[Any]:
        async with self._lock:
            self._begin()
            try:
                return await operation()
            except BaseException:
                self._abandon()
                raise

    def _begin(self) -> None:
        if self._state.phase in (Phase.READY, Phase.FAILED):
            self._state.phase = Phase.IDLE
            self._notify()
        self._state.phase = Phase.LOADING
        self._state.loading = True
        self._notify()

    def _abandon(self) -> None:
        self._state.loading = False
        self._state.phase = Phase.IDLE
        self._notify()

    def _commit(self, result: Result[Any], apply: Optional[Callable[[], None]] = None) -> Result[Any]:
        if result.ok:
            if apply is not None:
                apply()
            self._state.error = None
            self._state.phase = Phase.READY
        else:
            self._state.error = result.error
            self._state.phase = Phase.FAILED
        self._state.loading = False
        self._notify()
        return result

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("State listener %r for %s failed", listener, self._path)

    def _index_of(self, item_id: Hashable) -> Optional[int]:
        for index, item in enumerate(self._state.items):
            if self._codec.identity(item) == item_id:
                return index
        return None

    def _item_path(self, item_id: Hashable) -> str:
        return f"{self._path}/{quote(str(item_id), safe='')}"

    def _invalidate(self, item_id: Optional[Hashable]) -> None:
        cache = self._client.cache
        list_key = derive_cache_key("GET", self._path)
        cache.invalidate(list_key)
        cache.invalidate_prefix(list_key + "?")
        if item_id is not None:
            item_key = derive_cache_key("GET", self._item_path(item_id))
            cache.invalidate(item_key)
            cache.invalidate_prefix(item_key + "?")

    def _decode_one(self, data: Any) -> Result[T]:
        try:
            return Ok(self._codec.decode(data))
        except (TypeError, ValueError, KeyError) as exc:
            return Err(ApiError(ErrorKind.UNKNOWN, f"Unexpected item from {self._path}: {exc}", cause=exc))

    def _decode_list(self, data: Any) -> Result[list[T]]:
        if self._items_field is not None and isinstance(data, dict):
            data = data.get(self._items_field)
        if not isinstance(data, list):
            return Err(
                ApiError(ErrorKind.UNKNOWN, f"Expected a JSON array from {self._path}", cause=data)
            )
        items: dict[Hashable, T] = {}
        for raw in data:
            decoded = self._decode_one(raw)
            if not decoded.ok:
                return decoded
            # Later duplicates win but keep the first position.
            items[self._codec.identity(decoded.value)] = decoded.value
        return Ok(list(items.values()))

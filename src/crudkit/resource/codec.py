"""Entity codecs -- the only entity-specific knowledge a controller has.

A :class:`Codec` tells :class:`~crudkit.resource.ResourceController` how to
identify an item, turn JSON into an item, turn an input or patch into JSON,
and apply a patch locally when the server answers a write without a body.

Two codecs are provided:

- :class:`DictCodec` keeps items as plain dicts.
- :class:`ModelCodec` validates items into a Pydantic model.
"""

from __future__ import annotations

from typing import Any, Generic, Hashable, Protocol, TypeVar

from pydantic import BaseModel

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class Codec(Protocol[T]):
    def identity(self, item: T) -> Hashable: ...

    def decode(self, data: Any) -> T: ...

    def encode(self, value: Any) -> Any: ...

    def merge(self, item: T, patch: Any) -> T: ...


class DictCodec:
    """Items are JSON objects; identity is ``item[id_field]``.

    Args:
        id_field: Name of the identity key.
    """

    def __init__(self, id_field: str = "id") -> None:
        self.id_field = id_field

    def identity(self, item: dict[str, Any]) -> Hashable:
        return item[self.id_field]

    def decode(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        if self.id_field not in data:
            raise ValueError(f"Item has no {self.id_field!r} field")
        return dict(data)

    def encode(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", exclude_unset=True)
        return value

    def merge(self, item: dict[str, Any], patch: Any) -> dict[str, Any]:
        return {**item, **self.encode(patch)}


class ModelCodec(Generic[M]):
    """Items are instances of a Pydantic model.

    Args:
        model: The model class items are validated into.
        id_field: Attribute holding the identity.

    Example::

        class User(BaseModel):
            id: int
            name: str

        controller = ResourceController(client, "/users", ModelCodec(User))
    """

    def __init__(self, model: type[M], id_field: str = "id") -> None:
        self.model = model
        self.id_field = id_field

    def identity(self, item: M) -> Hashable:
        return getattr(item, self.id_field)

    def decode(self, data: Any) -> M:
        return self.model.model_validate(data)

    def encode(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", exclude_unset=True)
        return value

    def merge(self, item: M, patch: Any) -> M:
        data = item.model_dump()
        data.update(self.encode(patch))
        return self.model.model_validate(data)

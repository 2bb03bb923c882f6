"""Discriminated result values returned by the request pipeline.

Every pipeline stage returns either :class:`Ok` wrapping a decoded payload or
:class:`Err` wrapping an :class:`~crudkit.exceptions.ApiError`.  Failures are
forwarded as values so that a transient network fault never escapes as an
uncaught exception into the caller's event loop.

Example::

    result = await client.get("/users")
    if result.ok:
        render(result.value)
    else:
        show(user_message(result.error))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

from crudkit.exceptions import ApiError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful outcome carrying ``value``."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """A failed outcome carrying an :class:`~crudkit.exceptions.ApiError`."""

    error: ApiError

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None

    def unwrap(self) -> NoReturn:
        """Raise the wrapped error."""
        raise self.error


Result = Union[Ok[T], Err]

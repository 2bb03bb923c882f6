"""Exception hierarchy and canonical API error model for crudkit.

All exceptions inherit from :class:`CrudkitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`crudkit.exit_codes`.
The CLI entry point in :func:`crudkit.app.main` catches ``CrudkitError`` and
exits with the appropriate code.

:class:`ApiError` is the one error type produced by the request pipeline.
Unlike the other subclasses it is normally *returned* inside an
:class:`~crudkit.result.Err` rather than raised, so the transport, retry,
auth and cache layers can forward failures as plain values.  Callers that
prefer exceptions may still ``raise result.error``.

Subclass hierarchy::

    CrudkitError (exit 1)
    +-- ConfigError  (exit 1)
    +-- ApiError     (exit code derived from ErrorKind)
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from crudkit.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class CrudkitError(Exception):
    """Base exception for all crudkit errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(CrudkitError):
    """Raised for configuration and programmer errors (malformed options, missing profiles, bad tokens)."""

    exit_code = EXIT_GENERIC_FAILURE


class ErrorKind(str, enum.Enum):
    """Failure categories a request can end in.

    ``NETWORK`` and ``TIMEOUT`` are transport-level; the rest are derived
    from the HTTP status code.  Only ``NETWORK``, ``TIMEOUT`` and ``SERVER``
    are considered transient (see :attr:`retryable`).
    """

    NETWORK = "network"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    SERVER = "server"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        """Whether a further attempt could succeed."""
        return self in _RETRYABLE


_RETRYABLE = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.SERVER})

_EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.NETWORK: EXIT_CONNECTION_ERROR,
    ErrorKind.TIMEOUT: EXIT_CONNECTION_ERROR,
    ErrorKind.UNAUTHORIZED: EXIT_AUTH_FAILURE,
    ErrorKind.NOT_FOUND: EXIT_NOT_FOUND,
    ErrorKind.VALIDATION: EXIT_INVALID_USAGE,
    ErrorKind.SERVER: EXIT_SERVER_ERROR,
    ErrorKind.UNKNOWN: EXIT_GENERIC_FAILURE,
}

_USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "Could not reach the server. Check your connection and try again.",
    ErrorKind.TIMEOUT: "The server took too long to respond. Try again in a moment.",
    ErrorKind.UNAUTHORIZED: "Your session has expired. Please log in again.",
    ErrorKind.NOT_FOUND: "The requested item could not be found.",
    ErrorKind.VALIDATION: "The request was rejected. Check the submitted data.",
    ErrorKind.SERVER: "The server ran into a problem. Try again later.",
    ErrorKind.UNKNOWN: "Something went wrong.",
}


class ApiError(CrudkitError):
    """A single request failure.

    Instances are constructed once per failure and are read-only afterwards;
    assigning to any public attribute raises :class:`AttributeError`.

    Args:
        kind: The failure category.
        message: Diagnostic message (not localized display text, see
            :func:`user_message`).
        http_status: HTTP status code when a response was received.
        cause: The underlying exception or payload, if any.

    Example::

        err = ApiError(ErrorKind.NOT_FOUND, "HTTP 404: no such user", http_status=404)
        assert not err.retryable
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        http_status: Optional[int] = None,
        cause: Any = None,
    ) -> None:
        super().__init__(message, exit_code=_EXIT_CODES[kind])
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "http_status", http_status)
        object.__setattr__(self, "cause", cause)
        object.__setattr__(self, "_frozen", True)

    def __setattr__(self, name: str, value: Any) -> None:
        # The interpreter sets __traceback__/__context__ on raise.
        if getattr(self, "_frozen", False) and not name.startswith("__"):
            raise AttributeError(f"ApiError is immutable; cannot set {name!r}")
        object.__setattr__(self, name, value)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def __repr__(self) -> str:
        status = f", http_status={self.http_status}" if self.http_status is not None else ""
        return f"ApiError({self.kind.value}, {self.message!r}{status})"

    # Convenience constructors used by the transport and controller.

    @classmethod
    def from_status(cls, status: int, message: str) -> ApiError:
        """Build an error from a non-2xx HTTP status code."""
        return cls(kind_for_status(status), message, http_status=status)

    @classmethod
    def not_found(cls, message: str) -> ApiError:
        return cls(ErrorKind.NOT_FOUND, message, http_status=None)


def kind_for_status(status: int) -> ErrorKind:
    """Map an HTTP error status to an :class:`ErrorKind`.

    401 is ``UNAUTHORIZED``, 404 ``NOT_FOUND``, any other 4xx
    ``VALIDATION`` and any 5xx ``SERVER``.  Other codes are ``UNKNOWN``.
    """
    if status == 401:
        return ErrorKind.UNAUTHORIZED
    if status == 404:
        return ErrorKind.NOT_FOUND
    if 400 <= status < 500:
        return ErrorKind.VALIDATION
    if 500 <= status < 600:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


def user_message(error: ApiError) -> str:
    """Return generic display text for *error*.

    Host applications that localize should switch on ``error.kind``
    instead; this is the English fallback used by the CLI.
    """
    return _USER_MESSAGES[error.kind]

"""The login session -- sole owner of the bearer token.

A :class:`Session` is created by the host and injected into
:class:`~crudkit.auth.interceptor.AuthInterceptor`; there is no module-level
global.  Only three entry points change the token:

* :meth:`Session.login` -- the host accepts a token from its login flow.
* :meth:`Session.logout` -- the host ends the session.
* :meth:`Session.expire` -- called by the interceptor on HTTP 401.

Hosts react to expiry (for example by showing a login screen) through
:meth:`Session.subscribe`; the session itself never navigates anywhere.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable, Optional

from crudkit.exceptions import ApiError, ConfigError

if TYPE_CHECKING:
    from crudkit.auth.credential_store import CredentialStore

logger = logging.getLogger(__name__)

ExpiredListener = Callable[[Optional[ApiError]], None]

_TOKEN_RE = re.compile(r"\S+")


class Session:
    """Holds at most one well-formed bearer token.

    Args:
        store: Optional persistent store.  When given, a valid stored token
            is restored on construction and every change is written back.

    Example::

        session = Session()
        unsubscribe = session.subscribe(lambda err: show_login())
        session.login("eyJhbGciOi...")
    """

    def __init__(self, store: Optional[CredentialStore] = None) -> None:
        self._store = store
        self._token: Optional[str] = None
        self._listeners: list[ExpiredListener] = []
        if store is not None:
            entry = store.load() if store.is_valid() else None
            if entry is not None and _TOKEN_RE.fullmatch(entry.token):
                self._token = entry.token

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def login(self, token: str) -> None:
        """Start a session with *token*.

        Raises:
            ConfigError: If *token* is empty or contains whitespace.
        """
        if not isinstance(token, str) or not _TOKEN_RE.fullmatch(token):
            raise ConfigError("Token must be a non-empty string without whitespace")
        if self._store is not None:
            from crudkit.auth.credential_store import CredentialEntry

            self._store.save(CredentialEntry(token=token))
        self._token = token

    def logout(self) -> None:
        """End the session.  Listeners are not notified."""
        self._clear()

    def expire(self, error: Optional[ApiError] = None) -> None:
        """Clear the token and notify every "session expired" listener.

        Reserved for :class:`~crudkit.auth.interceptor.AuthInterceptor`.
        A listener that raises is logged and skipped.
        """
        self._clear()
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Session expired listener %r failed", listener)

    def subscribe(self, listener: ExpiredListener) -> Callable[[], None]:
        """Register *listener* for expiry; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _clear(self) -> None:
        self._token = None
        if self._store is not None:
            self._store.clear()

    def __repr__(self) -> str:
        state = "authenticated" if self._token else "anonymous"
        return f"Session({state})"

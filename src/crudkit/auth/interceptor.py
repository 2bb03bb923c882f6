"""Bearer-token injection and unauthorized-response handling.

:class:`AuthInterceptor` sits between the cache layer and the retry policy.
Before a call it attaches ``Authorization: Bearer <token>`` when the
:class:`~crudkit.auth.session.Session` holds a token; after a call it
watches for ``UNAUTHORIZED`` and expires the session.

The token is only ever read from the session and written into the outgoing
descriptor; it is never logged or stored anywhere else.
"""

from __future__ import annotations

from typing import Any, Optional

from crudkit.auth.session import Session
from crudkit.exceptions import ErrorKind
from crudkit.models import RequestDescriptor
from crudkit.output import get_output
from crudkit.result import Result

AUTH_HEADER = "Authorization"
_BEARER_PREFIX = "Bearer "


class AuthInterceptor:
    """Pre/post hooks around a request.

    Args:
        session: The injected session that owns the token.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def authorize(self, descriptor: RequestDescriptor) -> RequestDescriptor:
        """Return *descriptor* with a bearer header when a token is present.

        Without a token the descriptor is returned unchanged.
        """
        token = self._session.token
        if token is None:
            return descriptor
        return descriptor.with_headers(**{AUTH_HEADER: f"{_BEARER_PREFIX}{token}"})

    def observe(
        self,
        result: Result[Any],
        descriptor: Optional[RequestDescriptor] = None,
    ) -> Result[Any]:
        """Expire the session on ``UNAUTHORIZED`` and pass *result* through.

        When *descriptor* is given and was not sent with the current token,
        the 401 belongs to an anonymous request or to one issued before the
        latest login, and the current session is left alone.
        """
        if result.ok or result.error.kind is not ErrorKind.UNAUTHORIZED:
            return result

        if descriptor is not None:
            sent = _sent_token(descriptor)
            if sent is None:
                get_output().debug("401 for an anonymous request; no session to expire")
                return result
            if sent != self._session.token:
                get_output().debug("Ignoring 401 for a request sent with a superseded token")
                return result

        get_output().debug(f"Session expired ({result.error.message}); clearing token")
        self._session.expire(result.error)
        return result


def _sent_token(descriptor: RequestDescriptor) -> Optional[str]:
    for name, value in descriptor.headers.items():
        if name.lower() == AUTH_HEADER.lower() and value.startswith(_BEARER_PREFIX):
            return value[len(_BEARER_PREFIX):]
    return None

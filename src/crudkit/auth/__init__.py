"""Bearer-token authentication for crudkit.

The main entry points are:

- :class:`Session` -- injected single owner of the bearer token, with
  ``login``/``logout`` and a "session expired" notification channel.
- :class:`AuthInterceptor` -- attaches the token to outgoing requests and
  expires the session on HTTP 401.
- :class:`CredentialStore` -- optional per-profile persistence used by the
  ``crudkit`` command.

Typical usage::

    from crudkit.auth import Session

    session = Session()
    session.subscribe(lambda error: redirect_to_login())
    session.login(token)
"""

from crudkit.auth.credential_store import CredentialEntry, CredentialStore
from crudkit.auth.interceptor import AuthInterceptor
from crudkit.auth.session import Session

__all__ = [
    "AuthInterceptor",
    "CredentialEntry",
    "CredentialStore",
    "Session",
]

"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to an error category and is referenced by
:class:`~crudkit.exceptions.ApiError` (via its :class:`~crudkit.exceptions.ErrorKind`)
and the other :class:`~crudkit.exceptions.CrudkitError` subclasses.
Shell wrappers around the ``crudkit`` command can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ crudkit request GET /users
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the session token was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or the request was rejected as invalid (HTTP 4xx)."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed (HTTP 401); the session was cleared."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, malformed body)."""

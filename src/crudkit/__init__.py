"""crudkit -- a resilient, typed client layer for HTTP/JSON APIs.

The package layers request execution, retry with exponential backoff,
response caching with revalidation and request coalescing, bearer-token
sessions, and a generic CRUD state container for UI callers.

Typical use::

    from crudkit import ApiClient, ClientConfig, DictCodec, ResourceController, Session

    session = Session()
    session.subscribe(lambda error: show_login())
    config = ClientConfig.from_options(baseUrl="https://api.example.com")

    async with ApiClient(config, session=session) as client:
        users = ResourceController(client, "/users", DictCodec())
        await users.list()

Modules:
    client: Transport, retry policy and the composed :class:`ApiClient`.
    cache: :class:`ResponseCache` and its storage backends.
    auth: :class:`Session`, :class:`AuthInterceptor`, credential storage.
    resource: :class:`ResourceController` and entity codecs.
    models: Pydantic models shared across the package.
    exceptions: :class:`ApiError`, :class:`ErrorKind` and the exception hierarchy.
    config: XDG-aware configuration and profiles for the ``crudkit`` command.
    output: stdout/stderr output system with Rich support.
"""

__version__ = "0.1.0"

from crudkit.auth import AuthInterceptor, Session
from crudkit.cache import ResponseCache
from crudkit.client import ApiClient, RetryPolicy, Transport, with_retry
from crudkit.exceptions import ApiError, ConfigError, CrudkitError, ErrorKind, user_message
from crudkit.models import CacheEntry, ClientConfig, RequestDescriptor
from crudkit.resource import CollectionState, DictCodec, ModelCodec, Phase, ResourceController
from crudkit.result import Err, Ok, Result

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthInterceptor",
    "CacheEntry",
    "ClientConfig",
    "CollectionState",
    "ConfigError",
    "CrudkitError",
    "DictCodec",
    "Err",
    "ErrorKind",
    "ModelCodec",
    "Ok",
    "Phase",
    "RequestDescriptor",
    "ResourceController",
    "ResponseCache",
    "Result",
    "RetryPolicy",
    "Session",
    "Transport",
    "user_message",
    "with_retry",
]

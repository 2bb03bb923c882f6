"""HTTP client layer for crudkit.

Provides the layered request pipeline built on :mod:`httpx`:

    :class:`Transport` -- one network call per invocation, status mapping.
    :class:`RetryPolicy` / :func:`with_retry` -- bounded exponential backoff.
    :class:`ApiClient` -- composes cache, auth, retry and transport.

Example::

    from crudkit.client import ApiClient
    from crudkit.models import ClientConfig

    async with ApiClient(ClientConfig(base_url="https://api.example.com")) as client:
        result = await client.get("/users")
"""

from crudkit.client.api_client import ApiClient
from crudkit.client.retry import RetryPolicy, with_retry
from crudkit.client.transport import Transport

__all__ = ["ApiClient", "RetryPolicy", "Transport", "with_retry"]

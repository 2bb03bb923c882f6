"""The composed request pipeline.

:class:`ApiClient` wires the layers together in their fixed order::

    fetch(descriptor)
      -> ResponseCache.fetch      (GET-equivalents only)
      -> AuthInterceptor.authorize
      -> RetryPolicy.run
      -> Transport.execute        (one network call per attempt)
      -> AuthInterceptor.observe

Writes bypass cache reads entirely; invalidating the affected entries after
a successful write is the caller's decision (see
:class:`~crudkit.resource.ResourceController`).
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from crudkit.auth.interceptor import AuthInterceptor
from crudkit.auth.session import Session
from crudkit.cache import ResponseCache
from crudkit.client.retry import RetryPolicy
from crudkit.client.transport import Transport
from crudkit.models import ClientConfig, RequestDescriptor, Revalidate
from crudkit.result import Result


class ApiClient:
    """Resilient JSON API client.

    Must be used as an async context manager so that the transport's
    connection pool is opened and closed.

    Args:
        config: Base URL, retry, cache and timeout settings.
        session: Session holding the bearer token.  A fresh anonymous
            session is created when omitted.
        cache: Response cache; defaults to an in-memory cache using
            ``config.default_ttl_seconds``.
        transport: Optional :mod:`httpx` transport (tests pass
            :class:`httpx.MockTransport`).
        retry: Retry policy; defaults to one built from *config*.

    Example::

        config = ClientConfig.from_options(baseUrl="https://api.example.com")
        async with ApiClient(config, session=session) as client:
            result = await client.get("/users", revalidate=30)
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[Session] = None,
        cache: Optional[ResponseCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry: Optional[RetryPolicy] = None,
    ) -> None:
        self._config = config
        self._session = session if session is not None else Session()
        self._auth = AuthInterceptor(self._session)
        self._cache = (
            cache if cache is not None else ResponseCache(default_ttl_seconds=config.default_ttl_seconds)
        )
        self._retry = retry if retry is not None else RetryPolicy.from_config(config)
        self._transport = Transport(config, transport)

    @classmethod
    def from_options(cls, **options: Any) -> ApiClient:
        """Build a client from raw configuration options (see :meth:`ClientConfig.from_options`)."""
        return cls(ClientConfig.from_options(**options))

    async def __aenter__(self) -> ApiClient:
        self._transport.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._transport.aclose()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def session(self) -> Session:
        return self._session

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def fetch(
        self,
        descriptor: RequestDescriptor,
        idempotent: Optional[bool] = None,
    ) -> Result[Any]:
        """Run *descriptor* through the full pipeline.

        Args:
            descriptor: The request to perform.
            idempotent: Allow (``True``) or forbid (``False``) retries
                regardless of the HTTP method.

        Returns:
            ``Ok`` with the decoded body or ``Err`` with an
            :class:`~crudkit.exceptions.ApiError`.  Never raises for
            request failures.
        """
        if descriptor.is_cacheable:
            return await self._cache.fetch(descriptor, lambda d: self._send(d, idempotent))
        return await self._send(descriptor, idempotent)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        cache_key: Optional[str] = None,
        revalidate: Revalidate = None,
        idempotent: Optional[bool] = None,
    ) -> Result[Any]:
        """Build a :class:`~crudkit.models.RequestDescriptor` and :meth:`fetch` it.

        Raises:
            ConfigError: If the request options are malformed.
        """
        descriptor = RequestDescriptor.from_options(
            method=method,
            path=path,
            params=params,
            body=body,
            headers=dict(headers or {}),
            cache_key=cache_key,
            revalidate=revalidate,
        )
        return await self.fetch(descriptor, idempotent=idempotent)

    async def get(self, path: str, **kwargs: Any) -> Result[Any]:
        """Send a GET request through the cache."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Result[Any]:
        """Send a POST request.  Not retried unless ``idempotent=True``."""
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Result[Any]:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Result[Any]:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Result[Any]:
        return await self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _send(self, descriptor: RequestDescriptor, idempotent: Optional[bool]) -> Result[Any]:
        authorized = self._auth.authorize(descriptor)
        result = await self._retry.run(self._transport, authorized, idempotent)
        return self._auth.observe(result, authorized)

"""Single-call HTTP transport -- the only place crudkit touches the network.

:class:`Transport` wraps :class:`httpx.AsyncClient` and turns one
:class:`~crudkit.models.RequestDescriptor` into exactly one network call.
It never retries; that is the job of :mod:`crudkit.client.retry`.

Every outcome is returned as a :data:`~crudkit.result.Result`:

* connection failures, transport errors and undecodable bodies -> ``NETWORK``
* :class:`httpx.TimeoutException` -> ``TIMEOUT``
* non-2xx statuses -> the kind given by
  :func:`~crudkit.exceptions.kind_for_status`
* anything else raised by httpx -> ``UNKNOWN``
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from crudkit.exceptions import ApiError, ErrorKind
from crudkit.models import ClientConfig, RequestDescriptor
from crudkit.output import get_output
from crudkit.result import Err, Ok, Result


class Transport:
    """Executes one request per :meth:`execute` call.

    Must be used as an async context manager so the underlying connection
    pool is opened and closed.

    Args:
        config: Base URL, timeout and TLS settings.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        async with Transport(config) as transport:
            result = await transport.execute(RequestDescriptor(method="GET", path="/users"))
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> Transport:
        self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    def open(self) -> None:
        if self._client is not None:
            return
        kwargs: dict[str, Any] = {
            "base_url": self._config.base_url,
            "timeout": self._config.timeout_seconds,
            "verify": self._config.verify_ssl,
            "follow_redirects": True,
            "headers": {"Accept": "application/json"},
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(**kwargs)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def execute(self, descriptor: RequestDescriptor) -> Result[Any]:
        """Perform the request described by *descriptor*.

        Returns:
            ``Ok`` with the decoded JSON body (``None`` for an empty body),
            or ``Err`` with an :class:`~crudkit.exceptions.ApiError`.
        """
        assert self._client is not None, "Transport not open -- use as async context manager"

        kwargs: dict[str, Any] = {
            "method": descriptor.method,
            "url": descriptor.path,
            "headers": descriptor.headers,
        }
        if descriptor.params:
            kwargs["params"] = descriptor.params
        if descriptor.body is not None:
            kwargs["json"] = descriptor.body

        try:
            response = await self._client.request(**kwargs)
        except httpx.TimeoutException as exc:
            return Err(ApiError(ErrorKind.TIMEOUT, f"Request timed out: {exc}", cause=exc))
        except (httpx.TransportError, httpx.DecodingError) as exc:
            return Err(ApiError(ErrorKind.NETWORK, f"Network error: {exc}", cause=exc))
        except httpx.HTTPError as exc:
            return Err(ApiError(ErrorKind.UNKNOWN, f"Request failed: {exc}", cause=exc))

        get_output().debug(f"{descriptor.method} {descriptor.path} -> HTTP {response.status_code}")

        if response.status_code >= 400:
            return Err(_error_from_response(response))

        if not response.content:
            return Ok(None)
        try:
            return Ok(response.json())
        except ValueError as exc:
            return Err(
                ApiError(
                    ErrorKind.NETWORK,
                    f"HTTP {response.status_code}: response body is not valid JSON",
                    http_status=response.status_code,
                    cause=exc,
                )
            )


def _error_from_response(response: httpx.Response) -> ApiError:
    """Build an :class:`ApiError` from an error response, extracting a message from the body."""
    status = response.status_code
    detail: Any = None
    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix
    error = ApiError.from_status(status, full_msg)
    if detail is None:
        return error
    return ApiError(error.kind, full_msg, http_status=status, cause=detail)

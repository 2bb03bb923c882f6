"""Bounded retry with capped exponential backoff.

:class:`RetryPolicy` re-invokes a request only for transient failure kinds
(``NETWORK``, ``TIMEOUT``, ``SERVER``).  Client errors (``UNAUTHORIZED``,
``NOT_FOUND``, ``VALIDATION``) and ``UNKNOWN`` are returned after the first
attempt.

The wait after attempt *n* (1-indexed) is ``base * 2 ** (n - 1)`` seconds,
never more than ``max_delay``.  With the defaults that is 0.3 s, 0.6 s,
1.2 s, ...

Non-idempotent requests (``POST``) are executed once unless the caller opts
in, since a retried create could duplicate a resource server-side.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol

from crudkit.exceptions import ConfigError
from crudkit.models import ClientConfig, RequestDescriptor
from crudkit.output import get_output
from crudkit.result import Result

Sleep = Callable[[float], Awaitable[Any]]

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "PATCH", "DELETE"})


class Executor(Protocol):
    """Anything with an ``execute(descriptor)`` coroutine, e.g. :class:`~crudkit.client.transport.Transport`."""

    async def execute(self, descriptor: RequestDescriptor) -> Result[Any]: ...


class RetryPolicy:
    """Retry transient failures with exponential backoff.

    Args:
        max_attempts: Total attempts including the first one (``>= 1``).
        base_delay: Delay in seconds before the first retry.
        max_delay: Upper bound in seconds for any single delay.
        sleep: Coroutine used to wait; defaults to :func:`asyncio.sleep`.

    Raises:
        ConfigError: If ``max_attempts`` is below 1 or a delay is negative.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.3,
        max_delay: float = 5.0,
        sleep: Optional[Sleep] = None,
    ) -> None:
        if max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1, got {max_attempts}")
        if base_delay < 0 or max_delay < 0:
            raise ConfigError("Retry delays must be non-negative")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep: Sleep = sleep or asyncio.sleep

    @classmethod
    def from_config(cls, config: ClientConfig, sleep: Optional[Sleep] = None) -> RetryPolicy:
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.backoff_base_seconds,
            max_delay=config.backoff_max_seconds,
            sleep=sleep,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt *attempt* (1-indexed)."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)

    async def run(
        self,
        executor: Executor,
        descriptor: RequestDescriptor,
        idempotent: Optional[bool] = None,
    ) -> Result[Any]:
        """Execute *descriptor* through *executor*, retrying transient failures.

        Args:
            executor: Object performing a single attempt.
            descriptor: The request to perform.
            idempotent: Override the method-based idempotence check.  Pass
                ``True`` to allow retrying a ``POST``.

        Returns:
            The first successful result, the first non-retryable error, or
            the last error once attempts are exhausted.
        """
        if idempotent is None:
            idempotent = descriptor.method in IDEMPOTENT_METHODS
        attempts = self.max_attempts if idempotent else 1
        output = get_output()

        result = await executor.execute(descriptor)
        attempt = 1
        while not result.ok and result.error.retryable and attempt < attempts:
            delay = self.delay_for(attempt)
            output.debug(
                f"{result.error.kind.value} error on {descriptor.method} {descriptor.path}, "
                f"retrying in {delay:.2f}s (attempt {attempt + 1}/{attempts})"
            )
            await self._sleep(delay)
            attempt += 1
            result = await executor.execute(descriptor)
        return result


async def with_retry(
    transport: Executor,
    descriptor: RequestDescriptor,
    max_attempts: int = 3,
    idempotent: Optional[bool] = None,
) -> Result[Any]:
    """Run *descriptor* through *transport* with a default :class:`RetryPolicy`."""
    return await RetryPolicy(max_attempts=max_attempts).run(transport, descriptor, idempotent)

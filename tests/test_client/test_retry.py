"""Tests for the retry policy."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from crudkit.client.retry import RetryPolicy, with_retry
from crudkit.exceptions import ApiError, ConfigError, ErrorKind
from crudkit.models import ClientConfig, RequestDescriptor
from crudkit.result import Err, Ok, Result


class ScriptedExecutor:
    """Returns the scripted results in order, repeating the last one."""

    def __init__(self, *results: Result[Any]) -> None:
        self.results = list(results)
        self.calls = 0

    async def execute(self, descriptor: RequestDescriptor) -> Result[Any]:
        self.calls += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


def _err(kind: ErrorKind) -> Err:
    return Err(ApiError(kind, kind.value))


def _policy(max_attempts: int = 3) -> tuple[RetryPolicy, list[float]]:
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    return RetryPolicy(max_attempts=max_attempts, base_delay=0.3, max_delay=5.0, sleep=fake_sleep), delays


GET = RequestDescriptor(method="GET", path="/users")
POST = RequestDescriptor(method="POST", path="/users", body={"name": "A"})


class TestRetryableKinds:
    def test_server_server_success(self) -> None:
        policy, delays = _policy()
        executor = ScriptedExecutor(_err(ErrorKind.SERVER), _err(ErrorKind.SERVER), Ok({"id": 1}))
        result = asyncio.run(policy.run(executor, GET))
        assert result.ok
        assert result.value == {"id": 1}
        assert executor.calls == 3
        assert delays == [0.3, 0.6]

    def test_network_then_success(self) -> None:
        policy, _ = _policy()
        executor = ScriptedExecutor(_err(ErrorKind.NETWORK), Ok([]))
        assert asyncio.run(policy.run(executor, GET)).ok
        assert executor.calls == 2

    def test_gives_up_after_max_attempts(self) -> None:
        policy, delays = _policy(max_attempts=3)
        executor = ScriptedExecutor(_err(ErrorKind.TIMEOUT))
        result = asyncio.run(policy.run(executor, GET))
        assert result.error.kind is ErrorKind.TIMEOUT
        assert executor.calls == 3
        assert len(delays) == 2


class TestNonRetryableKinds:
    @pytest.mark.parametrize(
        "kind",
        [ErrorKind.VALIDATION, ErrorKind.UNAUTHORIZED, ErrorKind.NOT_FOUND, ErrorKind.UNKNOWN],
    )
    def test_single_attempt(self, kind: ErrorKind) -> None:
        policy, delays = _policy()
        executor = ScriptedExecutor(_err(kind), Ok("never"))
        result = asyncio.run(policy.run(executor, GET))
        assert result.error.kind is kind
        assert executor.calls == 1
        assert delays == []


class TestIdempotence:
    def test_post_is_not_retried_by_default(self) -> None:
        policy, _ = _policy()
        executor = ScriptedExecutor(_err(ErrorKind.SERVER), Ok({"id": 1}))
        result = asyncio.run(policy.run(executor, POST))
        assert result.error.kind is ErrorKind.SERVER
        assert executor.calls == 1

    def test_post_retried_when_marked_idempotent(self) -> None:
        policy, _ = _policy()
        executor = ScriptedExecutor(_err(ErrorKind.SERVER), Ok({"id": 1}))
        assert asyncio.run(policy.run(executor, POST, idempotent=True)).ok
        assert executor.calls == 2

    def test_get_not_retried_when_marked_non_idempotent(self) -> None:
        policy, _ = _policy()
        executor = ScriptedExecutor(_err(ErrorKind.SERVER), Ok([]))
        asyncio.run(policy.run(executor, GET, idempotent=False))
        assert executor.calls == 1


class TestBackoff:
    def test_delays_double_and_cap(self) -> None:
        policy = RetryPolicy(max_attempts=10, base_delay=1.0, max_delay=5.0)
        assert [policy.delay_for(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_from_config(self) -> None:
        config = ClientConfig(max_attempts=4, backoff_base_ms=100, backoff_max_ms=250)
        policy = RetryPolicy.from_config(config)
        assert policy.max_attempts == 4
        assert policy.delay_for(1) == 0.1
        assert policy.delay_for(3) == 0.25

    def test_invalid_attempts(self) -> None:
        with pytest.raises(ConfigError):
            RetryPolicy(max_attempts=0)

    def test_negative_delay(self) -> None:
        with pytest.raises(ConfigError):
            RetryPolicy(base_delay=-1)


class TestWithRetry:
    def test_uses_default_policy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def no_sleep(seconds: float) -> None:
            return None

        monkeypatch.setattr("crudkit.client.retry.asyncio.sleep", no_sleep)
        executor = ScriptedExecutor(_err(ErrorKind.SERVER), _err(ErrorKind.SERVER), Ok("done"))
        result = asyncio.run(with_retry(executor, GET, max_attempts=3))
        assert result.value == "done"
        assert executor.calls == 3

"""Tests for the error taxonomy and the Result type."""

from __future__ import annotations

import pytest

from crudkit.exceptions import (
    ApiError,
    ConfigError,
    CrudkitError,
    ErrorKind,
    kind_for_status,
    user_message,
)
from crudkit.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)
from crudkit.result import Err, Ok


class TestKindForStatus:
    @pytest.mark.parametrize(
        "status,kind",
        [
            (401, ErrorKind.UNAUTHORIZED),
            (404, ErrorKind.NOT_FOUND),
            (400, ErrorKind.VALIDATION),
            (403, ErrorKind.VALIDATION),
            (422, ErrorKind.VALIDATION),
            (500, ErrorKind.SERVER),
            (503, ErrorKind.SERVER),
            (302, ErrorKind.UNKNOWN),
        ],
    )
    def test_mapping(self, status: int, kind: ErrorKind) -> None:
        assert kind_for_status(status) is kind


class TestErrorKind:
    def test_transient_kinds_are_retryable(self) -> None:
        assert ErrorKind.NETWORK.retryable
        assert ErrorKind.TIMEOUT.retryable
        assert ErrorKind.SERVER.retryable

    def test_client_errors_are_not_retryable(self) -> None:
        for kind in (ErrorKind.UNAUTHORIZED, ErrorKind.NOT_FOUND, ErrorKind.VALIDATION, ErrorKind.UNKNOWN):
            assert not kind.retryable


class TestApiError:
    def test_fields(self) -> None:
        err = ApiError(ErrorKind.SERVER, "HTTP 502", http_status=502, cause={"x": 1})
        assert err.kind is ErrorKind.SERVER
        assert err.message == "HTTP 502"
        assert err.http_status == 502
        assert err.cause == {"x": 1}
        assert err.retryable
        assert str(err) == "HTTP 502"

    def test_is_immutable(self) -> None:
        err = ApiError(ErrorKind.NOT_FOUND, "gone")
        with pytest.raises(AttributeError):
            err.kind = ErrorKind.SERVER  # type: ignore[misc]
        with pytest.raises(AttributeError):
            err.message = "changed"  # type: ignore[misc]
        assert err.kind is ErrorKind.NOT_FOUND

    def test_can_still_be_raised(self) -> None:
        err = ApiError(ErrorKind.TIMEOUT, "slow")
        with pytest.raises(ApiError) as exc_info:
            raise err
        assert exc_info.value is err
        assert isinstance(err, CrudkitError)

    def test_from_status(self) -> None:
        err = ApiError.from_status(401, "HTTP 401")
        assert err.kind is ErrorKind.UNAUTHORIZED
        assert err.http_status == 401

    def test_not_found_has_no_status(self) -> None:
        err = ApiError.not_found("no item 9")
        assert err.kind is ErrorKind.NOT_FOUND
        assert err.http_status is None

    def test_exit_codes_follow_kind(self) -> None:
        assert ApiError(ErrorKind.NETWORK, "").exit_code == EXIT_CONNECTION_ERROR
        assert ApiError(ErrorKind.TIMEOUT, "").exit_code == EXIT_CONNECTION_ERROR
        assert ApiError(ErrorKind.UNAUTHORIZED, "").exit_code == EXIT_AUTH_FAILURE
        assert ApiError(ErrorKind.NOT_FOUND, "").exit_code == EXIT_NOT_FOUND
        assert ApiError(ErrorKind.VALIDATION, "").exit_code == EXIT_INVALID_USAGE
        assert ApiError(ErrorKind.SERVER, "").exit_code == EXIT_SERVER_ERROR

    def test_repr_includes_status(self) -> None:
        assert repr(ApiError(ErrorKind.SERVER, "boom", http_status=500)) == (
            "ApiError(server, 'boom', http_status=500)"
        )

    def test_user_message_per_kind(self) -> None:
        for kind in ErrorKind:
            assert user_message(ApiError(kind, "diagnostic detail"))
        assert "log in" in user_message(ApiError(ErrorKind.UNAUTHORIZED, ""))


class TestConfigError:
    def test_is_crudkit_error(self) -> None:
        assert issubclass(ConfigError, CrudkitError)
        assert ConfigError("bad").exit_code == 1


class TestResult:
    def test_ok(self) -> None:
        result = Ok([1, 2])
        assert result.ok
        assert result.value == [1, 2]
        assert result.error is None
        assert result.unwrap() == [1, 2]

    def test_err(self) -> None:
        err = ApiError(ErrorKind.VALIDATION, "HTTP 422")
        result = Err(err)
        assert not result.ok
        assert result.value is None
        assert result.error is err
        with pytest.raises(ApiError):
            result.unwrap()

"""Tests for the result rendering bridge."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from crudkit.client.response import render_result
from crudkit.exceptions import ApiError, ErrorKind
from crudkit.exit_codes import EXIT_AUTH_FAILURE, EXIT_NOT_FOUND, EXIT_SUCCESS
from crudkit.output import OutputManager, reset_output, set_output
from crudkit.result import Err, Ok


@pytest.fixture()
def mock_output() -> MagicMock:
    """Install a mock OutputManager as the global output."""
    mock = MagicMock(spec=OutputManager)
    set_output(mock)
    yield mock
    reset_output()


class TestRenderResult:
    def test_success_formats_value(self, mock_output: MagicMock) -> None:
        code = render_result(Ok([{"id": 1}]))
        assert code == EXIT_SUCCESS
        mock_output.format_response.assert_called_once_with([{"id": 1}])
        mock_output.error.assert_not_called()

    def test_empty_success_prints_nothing(self, mock_output: MagicMock) -> None:
        assert render_result(Ok(None)) == EXIT_SUCCESS
        mock_output.format_response.assert_not_called()

    def test_failure_reports_and_returns_exit_code(self, mock_output: MagicMock) -> None:
        err = ApiError(ErrorKind.NOT_FOUND, "HTTP 404: no such user", http_status=404)
        code = render_result(Err(err))
        assert code == EXIT_NOT_FOUND
        mock_output.error.assert_called_once_with("HTTP 404: no such user")
        mock_output.suggest.assert_called_once()
        mock_output.format_response.assert_not_called()

    def test_unauthorized_suggests_login(self, mock_output: MagicMock) -> None:
        code = render_result(Err(ApiError(ErrorKind.UNAUTHORIZED, "HTTP 401")))
        assert code == EXIT_AUTH_FAILURE
        (hint,), _ = mock_output.suggest.call_args
        assert "log in" in hint

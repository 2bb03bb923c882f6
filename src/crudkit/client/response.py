"""Result rendering bridge -- maps a pipeline :data:`~crudkit.result.Result` to the output system.

After a request completes, :func:`render_result` routes a successful payload
through :meth:`~crudkit.output.OutputManager.format_response` and reports a
failure on stderr together with a user-facing hint.

See Also:
    :mod:`crudkit.output` -- the output manager that renders data.
"""

from __future__ import annotations

from typing import Any

from crudkit.exceptions import user_message
from crudkit.exit_codes import EXIT_SUCCESS
from crudkit.output import get_output
from crudkit.result import Result


def render_result(result: Result[Any]) -> int:
    """Print *result* and return the matching process exit code.

    Args:
        result: The outcome of :meth:`~crudkit.client.ApiClient.fetch`.

    Returns:
        :data:`~crudkit.exit_codes.EXIT_SUCCESS` on success, otherwise the
        exit code carried by the :class:`~crudkit.exceptions.ApiError`.
    """
    output = get_output()
    if result.ok:
        if result.value is not None:
            output.format_response(result.value)
        return EXIT_SUCCESS

    err = result.error
    output.error(err.message)
    output.suggest(user_message(err))
    return err.exit_code

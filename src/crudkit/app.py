"""Typer application and CLI entry point for crudkit.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``request``, ``auth``, ``config``, ``cache``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`crudkit.config`: Profile and global configuration resolution.
    :mod:`crudkit.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

import typer

from crudkit import __version__
from crudkit.exit_codes import EXIT_GENERIC_FAILURE

if TYPE_CHECKING:
    from crudkit.output import OutputFormat


app = typer.Typer(
    name="crudkit",
    help="Talk to a REST API through a cached, retrying, authenticated client.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from crudkit.commands.auth import auth_app  # noqa: E402
from crudkit.commands.cache import cache_app  # noqa: E402
from crudkit.commands.config import config_app  # noqa: E402
from crudkit.commands.request import request_command  # noqa: E402

app.command("request")(request_command)
app.add_typer(auth_app, name="auth", help="Session token management.")
app.add_typer(config_app, name="config", help="Configuration and profile management.")
app.add_typer(cache_app, name="cache", help="Response cache management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"crudkit {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the profile's base URL."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~crudkit.output.OutputManager` from CLI
    flags (falling back to ``output.format`` in the global config) and stores
    the ``profile`` and ``base_url`` overrides in the Typer context so that
    sub-commands can read them via ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        profile: Profile name override (highest precedence).
        base_url: Base URL override (highest precedence).
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from crudkit.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = _configured_format()

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["base_url"] = base_url
    ctx.obj["verbose"] = verbose


def _configured_format() -> OutputFormat:
    """Return the ``output.format`` from the global config, ``AUTO`` if unusable."""
    from crudkit.config import load_global_config
    from crudkit.exceptions import ConfigError
    from crudkit.output import OutputFormat

    try:
        return OutputFormat(load_global_config().output.format)
    except (ConfigError, ValueError):
        return OutputFormat.AUTO


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from crudkit.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``crudkit`` console script.

    Unhandled :class:`~crudkit.exceptions.CrudkitError` instances cause a
    clean exit with the error's ``exit_code``.  All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from crudkit.exceptions import CrudkitError
        from crudkit.output import error

        if isinstance(exc, CrudkitError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)

"""Auth commands -- manage the stored session token.

Provides the ``crudkit auth`` sub-command group.  The token is kept per
profile by :class:`~crudkit.auth.CredentialStore` and restored by
:class:`~crudkit.auth.Session` on every ``crudkit request``.  A 401 response
clears it again.

Typical workflow::

    crudkit auth login --source env:API_TOKEN
    crudkit auth status
    crudkit auth logout
"""

from __future__ import annotations

from typing import Optional

import typer

from crudkit.commands import resolve_context
from crudkit.exit_codes import EXIT_AUTH_FAILURE, EXIT_INVALID_USAGE
from crudkit.output import error, format_response, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(
        None, "--token", "-t", help="Bearer token to store."
    ),
    source: Optional[str] = typer.Option(
        None,
        "--source",
        "-s",
        help="Credential source: env:VAR, file:/path, prompt.",
    ),
) -> None:
    """Store a bearer token for the active profile.

    Exactly one of ``--token`` or ``--source`` must be given.  A source is
    resolved once, at login time, and the resulting token is stored.

    Args:
        ctx: Typer context carrying the ``profile`` option.
        token: The token itself.
        source: Where to read the token from.

    Raises:
        typer.Exit: With code 2 for missing/conflicting options, or a
            token that cannot be resolved or is malformed.

    Example::

        crudkit auth login --token eyJhbGciOi...
        crudkit --profile staging auth login --source file:~/.staging-token
    """
    from crudkit.auth import CredentialStore, Session
    from crudkit.config import resolve_credential
    from crudkit.exceptions import ConfigError

    if (token is None) == (source is None):
        error("Pass exactly one of --token or --source.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    _, profile = resolve_context(ctx)
    try:
        value = token if token is not None else resolve_credential(source)
        Session(CredentialStore(profile.name)).login(value.strip())
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    success(f'Logged in for profile "{profile.name}".')


@auth_app.command("logout")
def auth_logout(ctx: typer.Context) -> None:
    """Forget the stored token for the active profile.

    Example::

        crudkit auth logout
    """
    from crudkit.auth import CredentialStore, Session

    _, profile = resolve_context(ctx)
    session = Session(CredentialStore(profile.name))
    if not session.is_authenticated:
        info(f'Not logged in for profile "{profile.name}".')
        return
    session.logout()
    success(f'Logged out of profile "{profile.name}".')


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show whether a token is stored for the active profile.

    Exits with code 3 when there is no usable token, so scripts can test
    ``crudkit auth status --quiet`` before making requests.

    Example::

        crudkit auth status
        crudkit auth status --json
    """
    from crudkit.auth import CredentialStore

    _, profile = resolve_context(ctx)
    store = CredentialStore(profile.name)
    entry = store.load() if store.is_valid() else None

    format_response(
        {
            "profile": profile.name,
            "authenticated": entry is not None,
            "token": _mask(entry.token) if entry is not None else None,
            "created_at": entry.created_at.isoformat() if entry is not None else None,
            "expires_at": (
                entry.expires_at.isoformat()
                if entry is not None and entry.expires_at is not None
                else None
            ),
        }
    )
    if entry is None:
        suggest("Log in: crudkit auth login --token TOKEN")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)


def _mask(token: str) -> str:
    """Show only the last four characters of *token*."""
    if len(token) <= 4:
        return "*" * len(token)
    return "*" * 8 + token[-4:]

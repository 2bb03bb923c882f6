"""Request command -- send one HTTP request through the client pipeline.

``crudkit request GET /users`` runs the request through the same cache,
auth, retry and transport layers a library user gets from
:class:`~crudkit.client.ApiClient`, then prints the decoded body to stdout.
The process exit code reflects the :class:`~crudkit.exceptions.ErrorKind`
of a failure (see :mod:`crudkit.exit_codes`).

Example::

    crudkit request GET /users --param page=2 --revalidate 60
    crudkit request PATCH /users/2 --data '{"name": "B2"}'
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer

from crudkit.auth import CredentialStore, Session
from crudkit.cache import ResponseCache
from crudkit.client import ApiClient
from crudkit.client.response import render_result
from crudkit.commands import open_cache, resolve_context
from crudkit.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from crudkit.models import ClientConfig, RequestDescriptor, Revalidate
from crudkit.output import debug, error, suggest, warning
from crudkit.result import Result


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method, e.g. GET or PATCH."),
    path: str = typer.Argument(help="Path relative to the profile's base URL."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="JSON request body."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as key=value (repeatable)."
    ),
    revalidate: Optional[str] = typer.Option(
        None,
        "--revalidate",
        "-r",
        help="Cache policy for GET: none, force, immutable, or max age in seconds.",
    ),
) -> None:
    """Send a request and print the response body.

    Args:
        ctx: Typer context carrying the ``profile`` and ``base_url`` options.
        method: HTTP method.
        path: Request path, e.g. ``/users/2``.
        data: JSON document sent as the request body.
        param: ``key=value`` query parameters.
        revalidate: Cache policy for this request.

    Raises:
        typer.Exit: With code 2 for invalid arguments, or the exit code
            matching the request's failure kind.
    """
    global_cfg, profile = resolve_context(ctx)
    if not profile.client.base_url:
        error("No base URL configured.")
        suggest("Pass --base-url, set CRUDKIT_BASE_URL, or run: crudkit config profile NAME --base-url URL")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    descriptor = RequestDescriptor(
        method=method,
        path=path if path.startswith("/") else f"/{path}",
        params=_parse_params(param),
        body=_parse_body(data),
        revalidate=_parse_revalidate(revalidate),
    )

    session = Session(CredentialStore(profile.name))
    session.subscribe(lambda err: warning("Session expired. Log in again: crudkit auth login --token TOKEN"))
    cache = open_cache(global_cfg, profile)
    debug(f"{descriptor.method} {profile.client.base_url}{descriptor.path} (profile: {profile.name})")
    try:
        result = asyncio.run(_send(profile.client, session, cache, descriptor))
    finally:
        cache.close()

    code = render_result(result)
    if code != EXIT_SUCCESS:
        raise typer.Exit(code=code)


async def _send(
    config: ClientConfig,
    session: Session,
    cache: ResponseCache,
    descriptor: RequestDescriptor,
) -> Result[Any]:
    async with ApiClient(config, session=session, cache=cache) as client:
        return await client.fetch(descriptor)


def _parse_params(pairs: Optional[list[str]]) -> Optional[dict[str, str]]:
    if not pairs:
        return None
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            error(f"Invalid --param {pair!r}, expected key=value")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        params[key] = value
    return params


def _parse_body(data: Optional[str]) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        error(f"--data is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None


def _parse_revalidate(value: Optional[str]) -> Revalidate:
    """Parse ``none`` / ``force`` / ``immutable`` / a non-negative integer."""
    if value is None:
        return None
    if value in ("none", "force", "immutable"):
        return value
    try:
        seconds = int(value)
    except ValueError:
        seconds = -1
    if seconds < 0:
        error(f"Invalid --revalidate {value!r}, expected none, force, immutable or seconds")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    return seconds

"""Cache commands -- inspect and invalidate the response cache.

The persistent cache is keyed by request (``"GET /users"``,
``"GET /users?{\\"page\\":2}"``) and kept per profile under the XDG cache
directory.  ``crudkit config set cache.persist false`` turns it off, in which
case every ``crudkit request`` starts with an empty in-memory cache.
"""

from __future__ import annotations

import typer

from crudkit.commands import open_cache, resolve_context
from crudkit.output import format_response, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show the number of cached entries for the active profile.

    Example::

        crudkit cache stats --json
    """
    global_cfg, profile = resolve_context(ctx)
    cache = open_cache(global_cfg, profile)
    try:
        stats = cache.stats()
    finally:
        cache.close()
    stats["profile"] = profile.name
    stats["persistent"] = global_cfg.cache.persist
    format_response(stats)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Drop every cached response for the active profile."""
    global_cfg, profile = resolve_context(ctx)
    cache = open_cache(global_cfg, profile)
    try:
        cache.clear()
    finally:
        cache.close()
    success(f'Cache cleared for profile "{profile.name}".')


@cache_app.command("invalidate")
def cache_invalidate(
    ctx: typer.Context,
    prefix: str = typer.Argument(help="Key prefix, e.g. 'GET /users'."),
) -> None:
    """Drop every cached response whose key starts with PREFIX.

    Example::

        crudkit cache invalidate "GET /users"
    """
    global_cfg, profile = resolve_context(ctx)
    cache = open_cache(global_cfg, profile)
    try:
        removed = cache.invalidate_prefix(prefix)
    finally:
        cache.close()
    success(f"Invalidated {removed} cached response(s).")

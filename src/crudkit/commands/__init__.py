"""Built-in CLI sub-commands for crudkit.

This package groups the Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~crudkit.commands.request` -- send one request through the pipeline.
* :mod:`~crudkit.commands.auth` -- log in, log out, inspect the session.
* :mod:`~crudkit.commands.config` -- view and modify settings and profiles.
* :mod:`~crudkit.commands.cache` -- inspect and invalidate the response cache.

The helpers below resolve the active profile from the Typer context and open
the response cache the same way for every command.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from crudkit.models import GlobalConfig, Profile

if TYPE_CHECKING:
    from crudkit.cache import ResponseCache

DEFAULT_PROFILE = "default"


def resolve_context(ctx: typer.Context) -> tuple[GlobalConfig, Profile]:
    """Resolve ``(global_config, profile)`` from the root callback's options.

    When no profile is configured an empty ``default`` profile is returned so
    that commands such as ``auth login`` still work.

    Raises:
        typer.Exit: With the error's exit code if the configuration is invalid.
    """
    from crudkit.config import resolve_config
    from crudkit.exceptions import ConfigError
    from crudkit.output import error

    obj = ctx.obj or {}
    try:
        global_cfg, profile = resolve_config(obj.get("profile"), obj.get("base_url"))
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    if profile is None:
        profile = Profile(name=DEFAULT_PROFILE)
    return global_cfg, profile


def open_cache(global_cfg: GlobalConfig, profile: Profile) -> ResponseCache:
    """Open the response cache for *profile*.

    Persistent caches live in ``<cache_dir>/<profile>/`` so that two
    profiles never share entries for the same path.
    """
    from crudkit.cache import DiskStore, MemoryStore, ResponseCache
    from crudkit.config import get_cache_dir

    store = DiskStore(get_cache_dir() / profile.name) if global_cfg.cache.persist else MemoryStore()
    return ResponseCache(store, default_ttl_seconds=profile.client.default_ttl_seconds)

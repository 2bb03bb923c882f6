"""Config commands -- view and modify global configuration and profiles.

Provides the ``crudkit config`` sub-command group for reading and updating
the global configuration file (:class:`~crudkit.models.GlobalConfig`) and for
creating the per-API :class:`~crudkit.models.Profile` files that hold each
target's :class:`~crudkit.models.ClientConfig`.
"""

from __future__ import annotations

from typing import Optional

import typer

from crudkit.exit_codes import EXIT_INVALID_USAGE
from crudkit.output import error, format_response, info, success, suggest


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the global configuration and the known profiles.

    Example::

        crudkit config show
        crudkit config show --json
    """
    from crudkit.config import get_config_dir, list_profiles, load_global_config
    from crudkit.exceptions import ConfigError

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    data = config.model_dump(mode="json")
    data["profiles"] = list_profiles()
    format_response(data)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.persist')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a global configuration value.

    Uses dot notation for nested keys.  The value is coerced to the type of
    the existing field (bool, int, or str) and the result is validated
    against :class:`~crudkit.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is unknown, the value
            cannot be coerced, or validation fails.

    Example::

        crudkit config set default_profile staging
        crudkit config set output.format json
        crudkit config set cache.persist false
    """
    from pydantic import ValidationError

    from crudkit.config import load_global_config, save_global_config
    from crudkit.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    coerced: object
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    elif current is None and value.lower() in ("", "none", "null"):
        coerced = None
    else:
        coerced = value
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("profile")
def config_profile(
    name: str = typer.Argument(help="Profile name."),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-u", help="API base URL."
    ),
    max_attempts: Optional[int] = typer.Option(
        None, "--max-attempts", help="Attempts per retryable request."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Default cache TTL in seconds."
    ),
    timeout_ms: Optional[int] = typer.Option(
        None, "--timeout-ms", help="Per-call network timeout in milliseconds."
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Also make this the default profile."
    ),
) -> None:
    """Create or update a profile.

    Only the options that are passed change; the rest keep their current
    (or default) values.

    Raises:
        typer.Exit: With code 2 if the resulting client settings are invalid.

    Example::

        crudkit config profile staging --base-url https://staging.example.com --default
        crudkit config profile staging --ttl 60
    """
    from crudkit.config import (
        load_global_config,
        load_profile,
        profile_exists,
        save_global_config,
        save_profile,
    )
    from crudkit.exceptions import ConfigError
    from crudkit.models import ClientConfig, Profile

    existed = profile_exists(name)
    try:
        profile = load_profile(name) if existed else Profile(name=name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    updates = {
        "base_url": base_url,
        "max_attempts": max_attempts,
        "default_ttl_seconds": ttl,
        "timeout_ms": timeout_ms,
    }
    options = profile.client.model_dump()
    options.update({k: v for k, v in updates.items() if v is not None})
    try:
        client = ClientConfig.from_options(**options)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_profile(Profile(name=name, client=client))
    success(f'Profile "{name}" {"updated" if existed else "created"}.')

    if make_default:
        global_cfg = load_global_config()
        save_global_config(global_cfg.model_copy(update={"default_profile": name}))
        info(f'Default profile set to "{name}".')
    if not client.base_url:
        suggest(f"Set a base URL: crudkit config profile {name} --base-url URL")


@config_app.command("remove-profile")
def config_remove_profile(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Delete a profile and its stored token.

    Example::

        crudkit config remove-profile staging
    """
    from crudkit.auth import CredentialStore
    from crudkit.config import delete_profile, load_global_config, save_global_config
    from crudkit.exceptions import ConfigError

    try:
        delete_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    CredentialStore(name).clear()

    global_cfg = load_global_config()
    if global_cfg.default_profile == name:
        save_global_config(global_cfg.model_copy(update={"default_profile": None}))
    success(f'Profile "{name}" removed.')

"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration used by the ``crudkit``
command:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.crudkit/`` on macOS and Windows.  See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`, :func:`get_profiles_dir`.
* **Global config** -- A single :class:`~crudkit.models.GlobalConfig`
  JSON file storing defaults (output format, cache persistence).
* **Profiles** -- One JSON file per API target, each holding a
  :class:`~crudkit.models.ClientConfig`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config.

Library users do not need any of this: they construct a
:class:`~crudkit.models.ClientConfig` directly.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from crudkit.exceptions import ConfigError
from crudkit.models import GlobalConfig, Profile

_APP_NAME = "crudkit"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "crudkit.json"

ENV_PROFILE = "CRUDKIT_PROFILE"
ENV_BASE_URL = "CRUDKIT_BASE_URL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/crudkit/`` (default ``~/.config/crudkit/``).
    On macOS/Windows: ``~/.crudkit/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the on-disk response cache.  Its contents can be deleted at any
    time.

    On Linux/BSD: ``$XDG_CACHE_HOME/crudkit/`` (default ``~/.cache/crudkit/``).
    On macOS/Windows: ``~/.crudkit/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credentials, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/crudkit/`` (default ``~/.local/share/crudkit/``).
    On macOS/Windows: ``~/.crudkit/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return ``<config_dir>/profiles/``, creating it if necessary."""
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration, or defaults when the file is missing.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all profile names, sorted alphabetically."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Load and validate a profile from disk.

    Raises:
        ConfigError: If the profile does not exist, contains invalid JSON,
            or fails validation.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    data = _read_json(path, f"profile '{name}'")
    try:
        return Profile.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: Profile) -> None:
    """Persist a profile atomically; the file name is ``<profile.name>.json``."""
    data = profile.model_dump(mode="json")
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete a profile's JSON file.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./crudkit.json`` if present.

    A repository can pin its ``default_profile`` here.

    Raises:
        ConfigError: If the file exists but contains invalid JSON.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json(path, "project config")


# --- Precedence resolution ---


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[Profile]]:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_profile``, ``cli_base_url``)
        2. Environment variables (``CRUDKIT_PROFILE``, ``CRUDKIT_BASE_URL``)
        3. Project config (``./crudkit.json``)
        4. User config (``~/.config/crudkit/config.json``)
        5. Defaults

    Returns:
        A tuple of ``(global_config, active_profile_or_None)``.
    """
    global_cfg = load_global_config()

    resolved_name: Optional[str] = global_cfg.default_profile
    project = load_project_config()
    if project is not None and project.get("default_profile"):
        resolved_name = project["default_profile"]
    env_profile = os.environ.get(ENV_PROFILE)
    if env_profile:
        resolved_name = env_profile
    if cli_profile is not None:
        resolved_name = cli_profile

    if resolved_name is None and global_cfg.auto_select_single_profile:
        profiles = list_profiles()
        if len(profiles) == 1:
            resolved_name = profiles[0]

    profile: Optional[Profile] = None
    if resolved_name is not None:
        profile = load_profile(resolved_name)

    base_url = cli_base_url or os.environ.get(ENV_BASE_URL)
    if base_url:
        if profile is None:
            profile = Profile(name="default")
        client = profile.client.model_copy(update={"base_url": base_url.rstrip("/")})
        profile = profile.model_copy(update={"client": client})

    return global_cfg, profile


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a token from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively without echo (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set (source: {source})")
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for a token: stdin is not a TTY (source: prompt)")
        return getpass.getpass("Token: ")

    raise ConfigError(f"Unknown credential source format: {source}")

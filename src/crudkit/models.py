"""Canonical Pydantic models shared across all crudkit modules.

This is the single source of truth for data shapes in the project.  The
models fall into two groups:

**Pipeline models** -- values that flow through the request pipeline:
    :class:`RequestDescriptor` and :class:`CacheEntry`.

**Configuration models** -- supplied by the host or serialised as JSON in
the user's config directory:
    :class:`ClientConfig`, :class:`OutputConfig`, :class:`CacheConfig`,
    :class:`GlobalConfig`, and :class:`Profile`.

All models use Pydantic v2.  Pipeline models are frozen so a descriptor can
be shared between coalesced callers without defensive copies.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from crudkit.exceptions import ConfigError

Revalidate = Union[Literal["none", "force", "immutable"], int, None]
"""Per-request cache policy.

* ``"none"`` -- always hit the network, never read the cache, write-through.
* ``"force"`` -- always hit the network and overwrite the entry.
* ``"immutable"`` -- serve any stored entry; store without expiry.
* ``n`` (int) -- serve an entry younger than ``n`` seconds, else refresh.
* ``None`` -- behave like ``n = ClientConfig.default_ttl_seconds``.
"""

_CACHEABLE_METHODS = frozenset({"GET"})


def derive_cache_key(method: str, path: str, params: Optional[dict[str, Any]] = None) -> str:
    """Build the default cache key ``"<METHOD> <path>[?<query>]"``.

    Query parameters are serialised with sorted keys so that identical
    requests resolve to the same key regardless of parameter ordering.
    All query variants of a path share the ``"<METHOD> <path>?"`` prefix.
    """
    key = f"{method.upper()} {path}"
    if params:
        key += "?" + json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    return key


# --- Pipeline models ---


class RequestDescriptor(BaseModel):
    """Immutable description of one HTTP request.

    Example::

        RequestDescriptor(method="GET", path="/users", params={"page": 2}, revalidate=60)
    """

    model_config = ConfigDict(frozen=True)

    method: str = Field(description="HTTP method, normalised to upper case")
    path: str = Field(description="Path appended to ClientConfig.base_url")
    params: Optional[dict[str, Any]] = Field(default=None, description="Query parameters")
    body: Any = Field(default=None, description="JSON-serialisable request body")
    headers: dict[str, str] = Field(default_factory=dict)
    cache_key: Optional[str] = Field(
        default=None, description="Explicit cache key; derived from method/path/params when omitted"
    )
    revalidate: Revalidate = None

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("revalidate")
    @classmethod
    def _non_negative_ttl(cls, value: Revalidate) -> Revalidate:
        if isinstance(value, int) and value < 0:
            raise ValueError("revalidate seconds must be >= 0")
        return value

    @classmethod
    def from_options(cls, **options: Any) -> RequestDescriptor:
        """Validate *options*, raising :class:`ConfigError` when malformed."""
        try:
            return cls.model_validate(options)
        except ValidationError as exc:
            raise ConfigError(f"Invalid request: {exc}") from exc

    @property
    def key(self) -> str:
        """The effective cache key."""
        return self.cache_key or derive_cache_key(self.method, self.path, self.params)

    @property
    def is_cacheable(self) -> bool:
        """GET requests, or any request carrying an explicit ``cache_key``."""
        return self.method in _CACHEABLE_METHODS or self.cache_key is not None

    def with_headers(self, **extra: str) -> RequestDescriptor:
        """Return a copy with *extra* merged over the existing headers."""
        return self.model_copy(update={"headers": {**self.headers, **extra}})

    def without_header(self, name: str) -> RequestDescriptor:
        """Return a copy with header *name* removed (case-insensitive)."""
        kept = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        return self.model_copy(update={"headers": kept})


class CacheEntry(BaseModel):
    """A stored response body.

    ``ttl_seconds = None`` marks the entry immutable: it is never evicted by
    age, only by explicit invalidation.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any = None
    stored_at: float = Field(description="Epoch seconds at which the entry was written")
    ttl_seconds: Optional[int] = None

    def age(self, now: float) -> float:
        return now - self.stored_at

    def is_expired(self, now: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return self.age(now) >= self.ttl_seconds


# --- Configuration models ---


class ClientConfig(BaseModel):
    """Options consumed by :class:`~crudkit.client.ApiClient`.

    Accepts both snake_case and camelCase names (``base_url`` or
    ``baseUrl``).  Unknown options are rejected.  Use
    :meth:`from_options` to get a :class:`~crudkit.exceptions.ConfigError`
    instead of a raw Pydantic error.

    Example::

        ClientConfig.from_options(baseUrl="https://api.example.com", maxAttempts=5)
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    base_url: str = Field(default="", description="Prefix for every request path")
    max_attempts: int = Field(default=3, ge=1, description="Attempts per retryable request")
    default_ttl_seconds: Optional[int] = Field(
        default=300, ge=0, description="TTL for cached reads without an explicit policy; None = immutable"
    )
    timeout_ms: int = Field(default=10_000, gt=0, description="Per-call network timeout")
    backoff_base_ms: int = Field(default=300, ge=0, description="Delay before the first retry")
    backoff_max_ms: int = Field(default=5_000, ge=0, description="Upper bound for any retry delay")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_options(cls, **options: Any) -> ClientConfig:
        """Validate *options*, raising :class:`ConfigError` when malformed."""
        try:
            return cls.model_validate(options)
        except ValidationError as exc:
            raise ConfigError(f"Invalid client configuration: {exc}") from exc

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def backoff_base_seconds(self) -> float:
        return self.backoff_base_ms / 1000

    @property
    def backoff_max_seconds(self) -> float:
        return self.backoff_max_ms / 1000


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(default="auto", description="Output format: auto, json, plain, rich")


class CacheConfig(BaseModel):
    """Response cache settings for the CLI stored in :class:`GlobalConfig`."""

    persist: bool = Field(
        default=True, description="Keep cached responses on disk between invocations"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/crudkit/config.json``.

    See :func:`~crudkit.config.resolve_config` for the precedence chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


class Profile(BaseModel):
    """A named API target stored as JSON under the ``profiles/`` config directory."""

    name: str
    client: ClientConfig = Field(default_factory=ClientConfig)

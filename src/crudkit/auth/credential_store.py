"""Persistent token storage scoped per profile.

Stores the session token in ``~/.local/share/crudkit/credentials/<profile>.json``
(XDG) or the platform-equivalent directory, so the ``crudkit`` command keeps
a login across invocations.  Files are written atomically via
:func:`tempfile.NamedTemporaryFile` and ``os.replace`` with ``0o600``
permissions so that tokens are never world-readable, even momentarily.

Only :class:`~crudkit.auth.session.Session` reads or writes a store.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from crudkit.config import get_data_dir


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialEntry(BaseModel):
    """A stored bearer token.

    Attributes:
        token: The bearer token.
        created_at: When the token was stored.
        expires_at: Optional UTC expiry; ``None`` means until logout or a
            401 response.
    """

    token: str = Field(description="The bearer token")
    created_at: datetime = Field(default_factory=_utcnow)
    expires_at: Optional[datetime] = Field(
        default=None,
        description="When this token expires (None = until logout)",
    )


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore:
    """Read/write the token for a single profile.

    Args:
        profile_name: The profile identifier used to derive the file name.

    Example::

        store = CredentialStore("my-api")
        store.save(CredentialEntry(token="tok123"))
        assert store.load().token == "tok123"
    """

    def __init__(self, profile_name: str) -> None:
        self._profile_name = profile_name
        self._path = _credentials_dir() / f"{profile_name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path to this profile's credential file."""
        return self._path

    def save(self, entry: CredentialEntry) -> None:
        """Persist *entry* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = json.dumps(entry.model_dump(mode="json"), indent=2) + "\n"
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd = None
        tmp_path: Optional[str] = None
        try:
            fd = tempfile.NamedTemporaryFile(
                mode="w",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            )
            tmp_path = fd.name
            # Restrict permissions before any secret is written.
            os.chmod(tmp_path, 0o600)
            fd.write(text)
            fd.flush()
            os.fsync(fd.fileno())
            fd.close()
            fd = None
            os.replace(tmp_path, self._path)
        except BaseException:
            if fd is not None:
                fd.close()
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise

    def load(self) -> Optional[CredentialEntry]:
        """Load the stored entry, or ``None`` if missing or unreadable."""
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return CredentialEntry.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def is_valid(self) -> bool:
        """``True`` if a stored, non-expired token exists."""
        entry = self.load()
        if entry is None:
            return False
        if entry.expires_at is None:
            return True
        expires = entry.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return _utcnow() < expires

    def clear(self) -> None:
        """Delete the stored file.  No-op when it is already gone."""
        if self._path.is_file():
            self._path.unlink()

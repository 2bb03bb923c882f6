"""Tests for the credential store."""

from __future__ import annotations

import json
import os
import stat
from datetime import datetime, timedelta, timezone

import pytest

from crudkit.auth.credential_store import CredentialEntry, CredentialStore


@pytest.fixture()
def store(tmp_path: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> CredentialStore:
    """Create a CredentialStore that writes to a temp directory."""
    monkeypatch.setattr(
        "crudkit.auth.credential_store.get_data_dir",
        lambda: tmp_path,  # type: ignore[union-attr]
    )
    return CredentialStore("test-profile")


class TestCredentialEntry:
    def test_minimal(self) -> None:
        entry = CredentialEntry(token="abc123")
        assert entry.token == "abc123"
        assert entry.expires_at is None
        assert entry.created_at.tzinfo is not None

    def test_roundtrip_json(self) -> None:
        entry = CredentialEntry(
            token="tok",
            expires_at=datetime(2030, 6, 15, 12, 0, tzinfo=timezone.utc),
        )
        restored = CredentialEntry.model_validate(json.loads(entry.model_dump_json()))
        assert restored.token == "tok"
        assert restored.expires_at == entry.expires_at


class TestCredentialStore:
    def test_load_returns_none_when_no_file(self, store: CredentialStore) -> None:
        assert store.load() is None

    def test_is_valid_returns_false_when_no_file(self, store: CredentialStore) -> None:
        assert store.is_valid() is False

    def test_save_and_load(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(token="secret"))

        loaded = store.load()
        assert loaded is not None
        assert loaded.token == "secret"
        assert store.path.name == "test-profile.json"

    def test_is_valid_no_expiry(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(token="tok"))
        assert store.is_valid() is True

    def test_is_valid_future_expiry(self, store: CredentialStore) -> None:
        future = datetime.now(timezone.utc) + timedelta(hours=1)
        store.save(CredentialEntry(token="tok", expires_at=future))
        assert store.is_valid() is True

    def test_is_valid_past_expiry(self, store: CredentialStore) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        store.save(CredentialEntry(token="tok", expires_at=past))
        assert store.is_valid() is False

    def test_is_valid_naive_expiry_treated_as_utc(self, store: CredentialStore) -> None:
        """A naive datetime should be treated as UTC."""
        future = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)
        store.save(CredentialEntry(token="tok", expires_at=future))
        assert store.is_valid() is True

    def test_clear(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(token="x"))
        store.clear()
        assert store.load() is None
        assert store.is_valid() is False

    def test_clear_nonexistent(self, store: CredentialStore) -> None:
        store.clear()

    def test_file_permissions(self, store: CredentialStore) -> None:
        """Credential files should have 0o600 permissions."""
        store.save(CredentialEntry(token="secret"))
        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

    def test_overwrite(self, store: CredentialStore) -> None:
        store.save(CredentialEntry(token="first"))
        store.save(CredentialEntry(token="second"))
        assert store.load().token == "second"

    def test_corrupted_file_returns_none(self, store: CredentialStore) -> None:
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text("not valid json {{{", encoding="utf-8")
        assert store.load() is None

    def test_separate_profiles(
        self, tmp_path: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            "crudkit.auth.credential_store.get_data_dir",
            lambda: tmp_path,  # type: ignore[union-attr]
        )
        store_a = CredentialStore("profile-a")
        store_b = CredentialStore("profile-b")

        store_a.save(CredentialEntry(token="tok-a"))
        store_b.save(CredentialEntry(token="tok-b"))

        assert store_a.load().token == "tok-a"
        assert store_b.load().token == "tok-b"

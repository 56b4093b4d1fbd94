"""Tests for settings and credential persistence."""
from __future__ import annotations

import pytest

from nexus_ops.config import (
    DEFAULT_SETTINGS_PATH,
    CredentialStore,
    Credentials,
    Settings,
    SettingsLoader,
)


def test_packaged_settings_load():
    settings = SettingsLoader().load()

    assert settings.sampler_interval_seconds == 4.0
    assert settings.live_event_capacity == 15
    assert settings.log_capacity == 50
    assert settings.step_delay_seconds == 0.7
    assert settings.target_placeholder == "Target"
    assert settings.member_page_limit == 20
    assert settings.channels == ("#general", "#lobby", "#gaming", "#voice-hangout", "#dev-logs")


def test_loader_caches_until_forced(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("sampler:\n  interval_seconds: 2\n", encoding="utf-8")
    loader = SettingsLoader(path)

    first = loader.load()
    path.write_text("sampler:\n  interval_seconds: 9\n", encoding="utf-8")

    assert loader.load() is first
    assert loader.load(force=True).sampler_interval_seconds == 9.0
    assert loader.path == path


def test_from_dict_defaults():
    settings = Settings.from_dict({})

    assert settings.scan_member_sample == 10
    assert settings.script_length == 10
    assert settings.scan_language == "Bengali"
    assert DEFAULT_SETTINGS_PATH.name == "settings.yaml"


def test_credentials_round_trip(tmp_path):
    store = CredentialStore(tmp_path / "nested" / "credentials.yaml")

    assert store.load() == Credentials()
    assert store.load().complete is False

    store.save(Credentials(token="abc", guild_id="123"))

    loaded = store.load()
    assert loaded == Credentials(token="abc", guild_id="123")
    assert loaded.complete is True


@pytest.mark.parametrize("content", ["- just\n- a list\n", "bot_token: [unclosed\n"])
def test_malformed_credentials_are_ignored(tmp_path, content):
    path = tmp_path / "credentials.yaml"
    path.write_text(content, encoding="utf-8")

    assert CredentialStore(path).load() == Credentials()


def test_credentials_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "elsewhere.yaml"
    monkeypatch.setenv("NEXUS_OPS_CREDENTIALS", str(path))

    assert CredentialStore().path == path

"""Configuration loading utilities for Nexus Ops."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"
DEFAULT_CREDENTIALS_PATH = Path("~/.nexus_ops/credentials.yaml")

DEFAULT_CHANNELS = ("#general", "#lobby", "#gaming", "#voice-hangout", "#dev-logs")


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    sampler_interval_seconds: float
    live_event_capacity: int
    log_capacity: int
    channels: tuple[str, ...]
    step_delay_seconds: float
    target_placeholder: str
    script_length: int
    member_page_limit: int
    scan_member_sample: int
    scan_language: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        sampler_cfg = data.get("sampler", {})
        feeds_cfg = data.get("feeds", {})
        operation_cfg = data.get("operation", {})
        platform_cfg = data.get("platform", {})
        scan_cfg = data.get("scan", {})
        channels = tuple(str(item) for item in data.get("channels") or DEFAULT_CHANNELS)
        if not channels:
            raise ValueError("channels must not be empty")
        return Settings(
            sampler_interval_seconds=float(sampler_cfg.get("interval_seconds", 4.0)),
            live_event_capacity=int(feeds_cfg.get("live_event_capacity", 15)),
            log_capacity=int(feeds_cfg.get("log_capacity", 50)),
            channels=channels,
            step_delay_seconds=float(operation_cfg.get("step_delay_seconds", 0.7)),
            target_placeholder=str(operation_cfg.get("target_placeholder", "Target")),
            script_length=int(operation_cfg.get("script_length", 10)),
            member_page_limit=int(platform_cfg.get("member_page_limit", 20)),
            scan_member_sample=int(scan_cfg.get("member_sample", 10)),
            scan_language=str(scan_cfg.get("language", "Bengali")),
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    return SettingsLoader().load()


@dataclass(frozen=True)
class Credentials:
    token: str = ""
    guild_id: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.token and self.guild_id)


class CredentialStore:
    """Remembers the last bot token and guild id that connected successfully."""

    def __init__(self, path: Optional[Path] = None) -> None:
        if path is None:
            path = Path(os.environ.get("NEXUS_OPS_CREDENTIALS", str(DEFAULT_CREDENTIALS_PATH)))
        self._path = path.expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Credentials:
        if not self._path.exists():
            return Credentials()
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable credential file %s: %s", self._path, exc)
            return Credentials()
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed credential file %s", self._path)
            return Credentials()
        return Credentials(
            token=str(data.get("bot_token") or ""),
            guild_id=str(data.get("guild_id") or ""),
        )

    def save(self, credentials: Credentials) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"bot_token": credentials.token, "guild_id": credentials.guild_id}
        with self._path.open("w", encoding="utf-8") as fh:
            yaml.safe_dump(payload, fh, default_flow_style=False)
        logger.debug("Stored credentials for guild %s at %s", credentials.guild_id, self._path)


__all__ = [
    "CredentialStore",
    "Credentials",
    "Settings",
    "SettingsLoader",
    "get_settings",
]

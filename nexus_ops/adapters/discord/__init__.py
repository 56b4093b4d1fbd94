"""Discord adapter: guild metadata and member snapshots for a session."""

from __future__ import annotations

from .guild import GuildConnectionError, GuildGateway

__all__ = ["GuildConnectionError", "GuildGateway"]

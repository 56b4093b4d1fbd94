"""Guild snapshot fetching over the Discord REST API.

Only the HTTP side of discord.py is used: the client logs in with the bot
token, performs one guild lookup and one page of member listing, and closes.
No gateway websocket is opened.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote

import discord

from ...models import MemberRecord, PresenceStatus, ServerAggregate, ThreatLevel
from ...rng import DeterministicRNG

logger = logging.getLogger(__name__)

CONNECTION_FAILED = "Connection Failed. Check Token/ID."
PLACEHOLDER_AVATAR = "https://ui-avatars.com/api/?name={name}"


class GuildConnectionError(RuntimeError):
    """Raised when the guild cannot be reached with the given credentials."""


def _default_client() -> discord.Client:
    intents = discord.Intents.none()
    intents.guilds = True
    intents.members = True
    return discord.Client(intents=intents)


def _joined_date(joined_at: Optional[datetime]) -> str:
    if joined_at is None:
        return ""
    return joined_at.date().isoformat()


class GuildGateway:
    """Fetches the server aggregate and a page of members for a session."""

    def __init__(
        self,
        rng: DeterministicRNG,
        *,
        member_limit: int = 20,
        client_factory: Callable[[], discord.Client] = _default_client,
    ) -> None:
        self._rng = rng
        self._member_limit = member_limit
        self._client_factory = client_factory

    def _member_record(self, member: discord.Member) -> MemberRecord:
        username = member.name
        if member.avatar is not None:
            avatar = member.avatar.url
        else:
            avatar = PLACEHOLDER_AVATAR.format(name=quote(username))
        return MemberRecord(
            id=str(member.id),
            username=username,
            messages=self._rng.randint(0, 499),
            vc_minutes=self._rng.randint(0, 99),
            avatar=avatar,
            joined_date=_joined_date(member.joined_at),
            status=PresenceStatus.ONLINE,
            threat_level=ThreatLevel.SAFE,
        )

    async def fetch_snapshot(self, token: str, guild_id: str) -> Tuple[ServerAggregate, List[MemberRecord]]:
        """Return the guild aggregate and its first page of members."""

        try:
            numeric_id = int(guild_id)
        except (TypeError, ValueError) as exc:
            raise GuildConnectionError(CONNECTION_FAILED) from exc

        client = self._client_factory()
        try:
            await client.login(token)
            guild = await client.fetch_guild(numeric_id, with_counts=True)
            server = ServerAggregate(
                name=guild.name,
                icon=guild.icon.url if guild.icon is not None else "",
                member_count=guild.approximate_member_count or 0,
            )
            members = [
                self._member_record(member)
                async for member in guild.fetch_members(limit=self._member_limit)
            ]
        except (discord.DiscordException, OSError, asyncio.TimeoutError) as exc:
            logger.warning("Guild %s lookup failed: %s", guild_id, exc)
            raise GuildConnectionError(CONNECTION_FAILED) from exc
        finally:
            await client.close()

        logger.info("Fetched %d members from %s", len(members), server.name)
        return server, members


__all__ = ["CONNECTION_FAILED", "GuildConnectionError", "GuildGateway"]

"""Synthetic activity telemetry for a connected guild."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, TypeVar

from .config import DEFAULT_CHANNELS
from .models import ActionCategory, LiveEvent
from .session import SessionContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RandomSource(Protocol):
    def choice(self, seq: Sequence[T]) -> T: ...


@dataclass(frozen=True)
class SimulatedAction:
    key: str
    verb: str
    category: ActionCategory


ACTION_CATALOG: tuple[SimulatedAction, ...] = (
    SimulatedAction("send-message", "sent a message", ActionCategory.MESSAGE),
    SimulatedAction("join-voice", "joined voice", ActionCategory.VOICE),
    SimulatedAction("start-stream", "started streaming", ActionCategory.VOICE),
    SimulatedAction("join-server", "joined the server", ActionCategory.JOIN),
    SimulatedAction("leave-server", "left the server", ActionCategory.LEAVE),
)

_MEMBER_DELTAS = {ActionCategory.JOIN: 1, ActionCategory.LEAVE: -1}


class TelemetrySampler:
    """Manufactures one live event per tick while the session is connected."""

    def __init__(
        self,
        session: SessionContext,
        rng: RandomSource,
        *,
        channels: Sequence[str] = DEFAULT_CHANNELS,
        actions: Sequence[SimulatedAction] = ACTION_CATALOG,
    ) -> None:
        if not channels or not actions:
            raise ValueError("sampler needs at least one channel and one action")
        self._session = session
        self._rng = rng
        self._channels = tuple(channels)
        self._actions = tuple(actions)

    @property
    def active(self) -> bool:
        return self._session.connected and bool(self._session.members)

    def tick(self) -> Optional[LiveEvent]:
        """Sample one event, or do nothing when there is nobody to sample."""

        if not self.active:
            return None
        session = self._session
        member = self._rng.choice(session.members)
        action = self._rng.choice(self._actions)
        channel = self._rng.choice(self._channels)
        event = LiveEvent(
            user=member.username,
            action=action.verb,
            channel=channel,
            category=action.category,
        )
        session.live_events.add(event)

        delta = _MEMBER_DELTAS.get(action.category)
        if delta is not None and session.server is not None:
            count = session.server.adjust_members(delta)
            logger.debug("%s %s; member count now %d", member.username, action.verb, count)
        return event


__all__ = ["ACTION_CATALOG", "RandomSource", "SimulatedAction", "TelemetrySampler"]

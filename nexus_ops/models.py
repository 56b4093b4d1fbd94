"""Core data models for Nexus Ops."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def new_id() -> str:
    """Short opaque identifier for feed and log rows."""

    return uuid.uuid4().hex[:9]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PresenceStatus(str, Enum):
    ONLINE = "online"
    IDLE = "idle"
    DND = "dnd"
    OFFLINE = "offline"


class ThreatLevel(str, Enum):
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGER = "danger"


class ActionCategory(str, Enum):
    MESSAGE = "message"
    VOICE = "voice"
    JOIN = "join"
    LEAVE = "leave"


class LogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    SUCCESS = "success"


class OperationPhase(str, Enum):
    SAFE = "SAFE"
    ARMED = "ARMED"
    EXECUTING = "EXECUTING"


@dataclass(frozen=True)
class MemberRecord:
    id: str
    username: str
    messages: int
    vc_minutes: int
    avatar: str
    joined_date: str
    status: PresenceStatus = PresenceStatus.ONLINE
    threat_level: ThreatLevel = ThreatLevel.SAFE


@dataclass(frozen=True)
class LiveEvent:
    """A synthetic activity row shown in the live feed."""

    user: str
    action: str
    channel: str
    category: ActionCategory
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def is_membership_change(self) -> bool:
        return self.category in (ActionCategory.JOIN, ActionCategory.LEAVE)


@dataclass(frozen=True)
class LogEntry:
    message: str
    level: LogLevel = LogLevel.INFO
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class ServerAggregate:
    """Live counters for the connected guild."""

    name: str
    icon: str
    member_count: int = 0

    def adjust_members(self, delta: int) -> int:
        self.member_count = max(0, self.member_count + delta)
        return self.member_count


__all__ = [
    "ActionCategory",
    "LiveEvent",
    "LogEntry",
    "LogLevel",
    "MemberRecord",
    "OperationPhase",
    "PresenceStatus",
    "ServerAggregate",
    "ThreatLevel",
    "new_id",
]

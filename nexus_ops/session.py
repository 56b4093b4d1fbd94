"""Explicit session context shared by the sampler and the operation engine."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .config import Settings
from .event_log import BoundedEventLog
from .models import LiveEvent, LogEntry, LogLevel, MemberRecord, ServerAggregate

logger = logging.getLogger(__name__)

_LOGGING_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass
class SessionContext:
    """State for one dashboard session; owned by the controller."""

    live_events: BoundedEventLog[LiveEvent]
    logs: BoundedEventLog[LogEntry]
    connected: bool = False
    members: List[MemberRecord] = field(default_factory=list)
    server: Optional[ServerAggregate] = None
    busy: bool = False
    threat_report: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionContext":
        return cls(
            live_events=BoundedEventLog(settings.live_event_capacity),
            logs=BoundedEventLog(settings.log_capacity),
        )

    @property
    def server_name(self) -> Optional[str]:
        return self.server.name if self.server else None

    def add_log(self, message: str, level: LogLevel = LogLevel.INFO) -> LogEntry:
        """Append a console entry and mirror it to the process log."""

        entry = self.logs.add(LogEntry(message=message, level=level))
        logger.log(_LOGGING_LEVELS[level], "[%s] %s", level.value, message)
        return entry

    def attach(self, server: ServerAggregate, members: List[MemberRecord]) -> None:
        self.server = server
        self.members = list(members)
        self.connected = True

    def detach(self) -> None:
        self.connected = False
        self.members = []
        self.server = None


__all__ = ["SessionContext"]

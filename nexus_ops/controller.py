"""Dashboard controller: the command surface the shell drives."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol, Sequence, Tuple

from .adapters.discord import GuildConnectionError, GuildGateway
from .config import Credentials, CredentialStore, Settings, get_settings
from .llm_client import ContentProviderError, LLMClient
from .models import LogLevel, MemberRecord, ServerAggregate
from .operations import OperationStateMachine, Sleep
from .rng import DeterministicRNG
from .scheduler import TelemetryScheduler
from .session import SessionContext
from .telemetry import TelemetrySampler

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Bot Token and Server ID missing!"
SCAN_PENDING = "AI is analyzing member patterns..."
SCAN_FAILED = "AI Analysis failed."


class SnapshotSource(Protocol):
    async def fetch_snapshot(self, token: str, guild_id: str) -> Tuple[ServerAggregate, List[MemberRecord]]: ...


class ContentSource(Protocol):
    async def request_threat_narrative(self, members: Sequence[MemberRecord], *, sample: int = 10) -> str: ...

    async def request_operation_script(self, target_name: str) -> List[str]: ...


class DashboardController:
    """Owns one session and relays operator commands into the core.

    Connect, scan and execute hold the session's busy flag while they run; a
    second such command issued meanwhile is refused. The telemetry sampler is
    scheduled from :meth:`start` until :meth:`close` regardless of the flag.
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        rng: Optional[DeterministicRNG] = None,
        platform: Optional[SnapshotSource] = None,
        content: Optional[ContentSource] = None,
        credentials: Optional[CredentialStore] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.rng = rng or DeterministicRNG.from_entropy()
        self.session = SessionContext.from_settings(self.settings)
        self.platform = platform or GuildGateway(self.rng, member_limit=self.settings.member_page_limit)
        self._owns_content = content is None
        self.content = content or LLMClient(
            script_length=self.settings.script_length,
            language=self.settings.scan_language,
        )
        self.credential_store = credentials or CredentialStore()
        self.credentials = Credentials()
        self.sampler = TelemetrySampler(self.session, self.rng, channels=self.settings.channels)
        self.scheduler = TelemetryScheduler(
            self.sampler, interval_seconds=self.settings.sampler_interval_seconds
        )
        self.operation = OperationStateMachine(
            self.session,
            self.content,
            step_delay=self.settings.step_delay_seconds,
            target_placeholder=self.settings.target_placeholder,
            sleep=sleep,
        )

    async def __aenter__(self) -> "DashboardController":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def start(self) -> None:
        self.credentials = self.credential_store.load()
        self.scheduler.start()

    def close(self) -> None:
        self.scheduler.shutdown()
        if self._owns_content and isinstance(self.content, LLMClient):
            self.content.close()

    @contextmanager
    def _busy(self, command: str) -> Iterator[bool]:
        if self.session.busy:
            logger.info("Refusing %s; another operation is in flight", command)
            yield False
            return
        self.session.busy = True
        try:
            yield True
        finally:
            self.session.busy = False

    async def connect(self, token: Optional[str] = None, guild_id: Optional[str] = None) -> bool:
        """Connect to a guild, falling back to the last stored credentials."""

        token = self.credentials.token if token is None else token
        guild_id = self.credentials.guild_id if guild_id is None else guild_id
        if not token or not guild_id:
            self.session.add_log(MISSING_CREDENTIALS, LogLevel.ERROR)
            return False

        with self._busy("connect") as acquired:
            if not acquired:
                return False
            self.session.add_log(f"Initiating connection to Guild {guild_id}...", LogLevel.INFO)
            try:
                server, members = await self.platform.fetch_snapshot(token, guild_id)
            except GuildConnectionError as exc:
                self.session.add_log(str(exc), LogLevel.ERROR)
                self.session.connected = False
                return False

            self.session.attach(server, members)
            self.credentials = Credentials(token=token, guild_id=guild_id)
            try:
                self.credential_store.save(self.credentials)
            except OSError as exc:
                self.session.add_log(f"Could not store credentials: {exc}", LogLevel.WARN)
            self.session.add_log(f"Synchronized with {server.name}", LogLevel.SUCCESS)
            return True

    def disconnect(self) -> None:
        if not self.session.connected:
            return
        name = self.session.server_name
        self.session.detach()
        self.session.add_log(f"Disconnected from {name}", LogLevel.INFO)

    async def scan(self) -> Optional[str]:
        """Run the AI threat scan over the synced members."""

        if not self.session.connected:
            return None
        with self._busy("scan") as acquired:
            if not acquired:
                return None
            self.session.threat_report = SCAN_PENDING
            try:
                report = await self.content.request_threat_narrative(
                    self.session.members, sample=self.settings.scan_member_sample
                )
            except ContentProviderError as exc:
                self.session.add_log(f"Threat scan failed: {exc}", LogLevel.ERROR)
                report = SCAN_FAILED
            except Exception as exc:
                logger.exception("Threat scan crashed")
                self.session.add_log(f"Threat scan failed: {exc}", LogLevel.ERROR)
                report = SCAN_FAILED
            self.session.threat_report = report
            return report

    def toggle_arm(self) -> bool:
        return self.operation.toggle_arm()

    async def execute(self) -> bool:
        with self._busy("execute") as acquired:
            if not acquired:
                return False
            return await self.operation.execute()


__all__ = ["DashboardController", "MISSING_CREDENTIALS", "SCAN_FAILED", "SCAN_PENDING"]

"""Guarded, narrated "nuke" operation.

The operation moves SAFE -> ARMED -> EXECUTING -> SAFE. Arming is a toggle
that is refused while a run is in flight; execution is refused unless the
machine is exactly ARMED. A run asks the content provider for a script and
plays it back one line at a time with a fixed pause between lines.

A provider failure during a run leaves the machine ARMED rather than SAFE.
Only a completed run disarms.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Protocol

from .event_log import BoundedEventLog
from .llm_client import ContentProviderError
from .models import LogLevel, OperationPhase
from .session import SessionContext

logger = logging.getLogger(__name__)

BOOT_LINE = "[BOOT] SECURE KERNEL INITIALIZED..."
STEP_PREFIX = "[PURGE] "
SUCCESS_MESSAGE = "Operation Re-birth Successful"
FAILURE_MESSAGE = "Nuke Protocol Failure"

Sleep = Callable[[float], Awaitable[None]]


class ScriptSource(Protocol):
    async def request_operation_script(self, target_name: str) -> List[str]: ...


def step_progress(index: int, total: int) -> int:
    """Percentage after ``index`` (zero based) of ``total`` steps, rounded half up."""

    return (200 * (index + 1) + total) // (2 * total)


class OperationStateMachine:
    def __init__(
        self,
        session: SessionContext,
        provider: ScriptSource,
        *,
        step_delay: float = 0.7,
        target_placeholder: str = "Target",
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._session = session
        self._provider = provider
        self._step_delay = step_delay
        self._target_placeholder = target_placeholder
        self._sleep = sleep or asyncio.sleep
        self._phase = OperationPhase.SAFE
        self._progress = 0
        self.narrative: BoundedEventLog[str] = BoundedEventLog(None, newest_first=False)

    @property
    def phase(self) -> OperationPhase:
        return self._phase

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def armed(self) -> bool:
        return self._phase is OperationPhase.ARMED

    def toggle_arm(self) -> bool:
        """Flip between SAFE and ARMED; returns False when refused."""

        if self._phase is OperationPhase.EXECUTING:
            logger.debug("Ignoring arm toggle while executing")
            return False
        self._phase = OperationPhase.SAFE if self.armed else OperationPhase.ARMED
        logger.info("Operation %s", self._phase.value)
        return True

    async def execute(self) -> bool:
        """Run the armed operation to completion.

        Returns True when the run completed, False when it was refused or the
        content provider failed.
        """

        if self._phase is not OperationPhase.ARMED:
            logger.debug("Ignoring execute while %s", self._phase.value)
            return False

        self._phase = OperationPhase.EXECUTING
        self._progress = 0
        self.narrative.clear()
        self.narrative.add(BOOT_LINE)

        target = self._session.server_name or self._target_placeholder
        completed = False
        try:
            steps = await self._provider.request_operation_script(target)
            total = len(steps)
            for index, step in enumerate(steps):
                self.narrative.add(f"{STEP_PREFIX}{step}")
                self._progress = step_progress(index, total)
                await self._sleep(self._step_delay)
            completed = True
        except ContentProviderError as exc:
            logger.error("Operation script request failed: %s", exc)
            self._session.add_log(FAILURE_MESSAGE, LogLevel.ERROR)
            return False
        except Exception:
            logger.exception("Operation run failed")
            self._session.add_log(FAILURE_MESSAGE, LogLevel.ERROR)
            return False
        finally:
            # a run never leaves the machine EXECUTING, even when cancelled
            self._phase = OperationPhase.SAFE if completed else OperationPhase.ARMED

        self._session.add_log(SUCCESS_MESSAGE, LogLevel.SUCCESS)
        return True


__all__ = [
    "BOOT_LINE",
    "FAILURE_MESSAGE",
    "OperationStateMachine",
    "STEP_PREFIX",
    "SUCCESS_MESSAGE",
    "step_progress",
]

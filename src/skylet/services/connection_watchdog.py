"""
Connection watchdog.

Synthesizes ``connection_lost`` when telemetry goes silent. Loss is only
reported after two consecutive silent intervals; a single missed interval
just raises the "missed" flag.
"""

import asyncio
import contextlib

from src.skylet.core.base_service import BaseService
from src.skylet.services.fsm.engine import FlightStateMachine
from src.skylet.services.fsm.types import FlightInput, FlightState
from src.skylet.utils.logging import get_logger, log_warning

logger = get_logger(__name__)


class ConnectionWatchdog(BaseService):
    """Telemetry liveness monitor."""

    def __init__(self, fsm: FlightStateMachine, interval: float = 5.0):
        super().__init__("connection_watchdog")
        self._fsm = fsm
        self.interval = interval
        self._heartbeat = asyncio.Event()
        self._missed = False
        self._task: asyncio.Task[None] | None = None
        self.lost_signals = 0

    @property
    def missed(self) -> bool:
        """True when the previous interval passed without telemetry."""
        return self._missed

    def heartbeat(self) -> None:
        """Record telemetry. Must be called on the event loop thread."""
        self._heartbeat.set()

    async def check_interval(self) -> bool:
        """Wait for a heartbeat or the end of one interval, whichever comes first.

        Returns:
            True if ``connection_lost`` was submitted
        """
        try:
            await asyncio.wait_for(self._heartbeat.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            if self._missed:
                self.lost_signals += 1
                if self._fsm.state is not FlightState.DISCONNECTED:
                    log_warning(
                        logger,
                        "No telemetry for two consecutive intervals",
                        interval_s=self.interval,
                        state=self._fsm.state.value,
                    )
                self._fsm.submit(FlightInput.CONNECTION_LOST, source="watchdog")
                return True

            logger.debug(f"No telemetry for {self.interval}s")
            self._missed = True
            return False

        self._heartbeat.clear()
        self._missed = False
        return False

    async def _run(self) -> None:
        while True:
            await self.check_interval()

    async def start_service(self) -> None:
        self._missed = False
        self._heartbeat.clear()
        self._task = asyncio.create_task(self._run(), name="connection-watchdog")

    async def stop_service(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

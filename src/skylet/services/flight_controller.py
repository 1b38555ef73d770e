"""
Flight controller.

Wires the flight state machine, the vehicle event bridge and the connection
watchdog around one vehicle, and exposes the narrow surface the
orchestration layer is allowed to use.
"""

from typing import Any

from src.skylet.core.config import Config
from src.skylet.hal.vehicle import FlipDirection, VehicleCommandSink
from src.skylet.services.connection_watchdog import ConnectionWatchdog
from src.skylet.services.event_bridge import VehicleEventBridge
from src.skylet.services.fsm.engine import FlightStateMachine
from src.skylet.services.fsm.status import StatusMirror
from src.skylet.services.fsm.types import FlightTimings, StatusSnapshot
from src.skylet.utils.logging import get_logger

logger = get_logger(__name__)


class FlightController:
    """Owns one vehicle's flight lifecycle from first connection to shutdown."""

    def __init__(
        self,
        vehicle: VehicleCommandSink,
        timings: FlightTimings | None = None,
        watchdog_interval: float | None = 5.0,
        history_size: int = 100,
        flip_direction: FlipDirection = FlipDirection.BACK,
    ):
        """
        Args:
            vehicle: Vehicle to fly
            timings: Action durations
            watchdog_interval: Telemetry silence interval; None disables the watchdog
            history_size: Number of transitions kept for status reporting
            flip_direction: Direction used when flip() is called without one
        """
        self.vehicle = vehicle
        self.fsm = FlightStateMachine(vehicle, timings, history_size=history_size)
        self.watchdog = (
            ConnectionWatchdog(self.fsm, interval=watchdog_interval)
            if watchdog_interval is not None
            else None
        )
        self.bridge = VehicleEventBridge(self.fsm, self.watchdog)
        self.status_mirror = StatusMirror(self.fsm)
        self.flip_direction = flip_direction
        self._started = False

    @classmethod
    def from_config(cls, config: Config, vehicle: VehicleCommandSink) -> "FlightController":
        return cls(
            vehicle,
            timings=FlightTimings.from_config(config.flight),
            watchdog_interval=(
                config.watchdog.WATCHDOG_INTERVAL_S if config.watchdog.WATCHDOG_ENABLED else None
            ),
            history_size=config.flight.FLIGHT_HISTORY_SIZE,
            flip_direction=FlipDirection(config.flight.FLIGHT_FLIP_DIRECTION),
        )

    async def start(self) -> None:
        """Attach to the vehicle and begin the first flight cycle."""
        if self._started:
            logger.warning("Flight controller already started")
            return

        self.bridge.attach(self.vehicle)
        if self.watchdog is not None:
            await self.watchdog.start()
        await self.fsm.start()
        self._started = True

    async def current_state(self) -> StatusSnapshot:
        return await self.fsm.current_state()

    async def flip(self, direction: FlipDirection | None = None) -> bool:
        return await self.fsm.flip(direction or self.flip_direction)

    async def status(self) -> dict[str, Any]:
        """Flight status plus link health."""
        status = await self.status_mirror.to_dict()
        link: dict[str, Any] = {"telemetry_messages": self.bridge.telemetry_count}
        if self.watchdog is not None:
            link["watchdog"] = {
                **self.watchdog.get_status(),
                "interval_s": self.watchdog.interval,
                "missed": self.watchdog.missed,
                "lost_signals": self.watchdog.lost_signals,
            }
        status["link"] = link
        return status

    async def close(self, timeout: float | None = None) -> None:
        """Halt the vehicle, wait for the cycle to complete and tear down.

        Background services are stopped even when the wait times out.

        Raises:
            ShutdownTimeoutError: If the vehicle is not released within ``timeout``
        """
        try:
            await self.fsm.close(timeout=timeout)
        finally:
            if self.watchdog is not None:
                await self.watchdog.stop()
            await self.fsm.stop()

            close_vehicle = getattr(self.vehicle, "close", None)
            if close_vehicle is not None:
                await close_vehicle()
            self._started = False
            logger.info("Flight controller closed")

"""
Vehicle event bridge.

Turns vehicle callbacks into flight state machine inputs. Handlers only
enqueue and return: they never wait on the engine lock, and callbacks
arriving on a driver thread are handed to the event loop.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from src.skylet.hal.vehicle import VehicleCommandSink, VehicleEvent
from src.skylet.services.connection_watchdog import ConnectionWatchdog
from src.skylet.services.fsm.engine import FlightStateMachine
from src.skylet.services.fsm.types import FlightInput, TelemetrySnapshot
from src.skylet.utils.logging import get_logger, log_warning

logger = get_logger(__name__)


class VehicleEventBridge:
    """Maps connected / takeoff / landing / flight data events onto the engine."""

    def __init__(self, fsm: FlightStateMachine, watchdog: ConnectionWatchdog | None = None):
        self._fsm = fsm
        self._watchdog = watchdog
        self._loop: asyncio.AbstractEventLoop | None = None
        self.telemetry_count = 0

    def attach(
        self, vehicle: VehicleCommandSink, loop: asyncio.AbstractEventLoop | None = None
    ) -> None:
        """Subscribe to the vehicle's events.

        Args:
            vehicle: Vehicle whose events should be bridged
            loop: Event loop running the engine (defaults to the running loop)
        """
        self._loop = loop or asyncio.get_running_loop()
        vehicle.on(VehicleEvent.CONNECTED, self._on_connected)
        vehicle.on(VehicleEvent.TAKEOFF, self._on_takeoff)
        vehicle.on(VehicleEvent.LANDING, self._on_landing)
        vehicle.on(VehicleEvent.FLIGHT_DATA, self._on_flight_data)
        logger.info("Vehicle event bridge attached")

    def _on_connected(self, data: Any = None) -> None:
        logger.info("Connected event from vehicle")
        self._fsm.submit(FlightInput.CONNECTION_MADE, source="vehicle")

    def _on_takeoff(self, data: Any = None) -> None:
        logger.info("Take off event from vehicle")
        self._fsm.submit(FlightInput.TAKE_OFF, source="vehicle")

    def _on_landing(self, data: Any = None) -> None:
        logger.info("Landing event from vehicle")
        self._fsm.submit(FlightInput.LAND, source="vehicle")

    def _on_flight_data(self, data: Any) -> None:
        try:
            snapshot = TelemetrySnapshot(
                battery_percent=int(data.battery_percentage),
                height=int(data.height),
            )
        except (AttributeError, TypeError, ValueError) as e:
            log_warning(logger, "Dropping malformed flight data", error=e)
            return

        self._call_in_loop(self._deliver_telemetry, snapshot)

    def _deliver_telemetry(self, snapshot: TelemetrySnapshot) -> None:
        self.telemetry_count += 1
        self._fsm.record_telemetry(snapshot)
        if self._watchdog is not None:
            self._watchdog.heartbeat()

    def _call_in_loop(self, callback: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None:
            raise RuntimeError("Event bridge used before attach()")

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            callback(*args)
        else:
            loop.call_soon_threadsafe(callback, *args)

"""
Mock vehicle for running the flight controller without hardware
"""

import asyncio
import contextlib
import logging
from collections import defaultdict
from typing import Any

from src.skylet.core.exceptions import VehicleCommandError
from src.skylet.hal.vehicle import EventHandler, FlightData, FlipDirection, VehicleEvent

logger = logging.getLogger(__name__)


class MockVehicle:
    """Simulated vehicle implementing VehicleCommandSink.

    With ``simulate=True`` it behaves like a small quadcopter: connect emits
    CONNECTED after a delay and starts a telemetry stream, takeoff climbs to
    the cruise height and emits TAKEOFF, land emits LANDING and descends,
    halt drops the link. With ``simulate=False`` it only records commands,
    and tests drive events through ``emit``.
    """

    def __init__(
        self,
        connect_delay: float = 0.5,
        telemetry_interval: float = 1.0,
        cruise_height: int = 10,
        battery_percent: int = 100,
        simulate: bool = True,
    ):
        self.connect_delay = connect_delay
        self.telemetry_interval = telemetry_interval
        self.cruise_height = cruise_height
        self.battery_percent = battery_percent
        self.simulate = simulate

        self.connected = False
        self.height = 0
        self.commands: list[str] = []
        self.fail_commands: set[str] = set()

        self._handlers: dict[VehicleEvent, list[EventHandler]] = defaultdict(list)
        self._tasks: set[asyncio.Task[None]] = set()
        self._telemetry_task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, vehicle_config: Any) -> "MockVehicle":
        """Build a simulator from a VehicleConfig section."""
        return cls(
            connect_delay=vehicle_config.VEHICLE_MOCK_CONNECT_DELAY_S,
            telemetry_interval=vehicle_config.VEHICLE_MOCK_TELEMETRY_INTERVAL_S,
            cruise_height=vehicle_config.VEHICLE_MOCK_CRUISE_HEIGHT,
            battery_percent=vehicle_config.VEHICLE_MOCK_BATTERY_PERCENT,
        )

    def on(self, event: VehicleEvent, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: VehicleEvent, data: Any = None) -> None:
        """Deliver an event to every registered handler."""
        for handler in list(self._handlers[event]):
            handler(data)

    def command_count(self, command: str) -> int:
        return sum(1 for c in self.commands if c.split(":")[0] == command)

    def _record(self, command: str) -> None:
        name = command.split(":")[0]
        if name in self.fail_commands:
            logger.warning(f"Mock vehicle rejecting command: {command}")
            raise VehicleCommandError(name)
        self.commands.append(command)
        logger.debug(f"Mock vehicle command: {command}")

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def connect(self) -> None:
        self._record("connect")
        if self.simulate and not self.connected:
            self._spawn(self._complete_connect())

    async def _complete_connect(self) -> None:
        await asyncio.sleep(self.connect_delay)
        if self.connected:
            return
        self.connected = True
        logger.info("Mock vehicle connected")
        self.emit(VehicleEvent.CONNECTED)
        self._telemetry_task = asyncio.create_task(self._telemetry_loop())

    async def takeoff(self) -> None:
        self._record("takeoff")
        if self.simulate and self.connected:
            self.height = self.cruise_height
            self.emit(VehicleEvent.TAKEOFF)

    async def land(self) -> None:
        self._record("land")
        if self.simulate and self.connected:
            self.emit(VehicleEvent.LANDING)
            self.height = 0

    async def flip(self, direction: FlipDirection) -> None:
        self._record(f"flip:{direction.value}")

    async def halt(self) -> None:
        self._record("halt")
        self.connected = False
        self.height = 0
        await self._stop_telemetry()

    async def close(self) -> None:
        """Cancel background simulation tasks."""
        self.connected = False
        await self._stop_telemetry()
        for task in list(self._tasks):
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _stop_telemetry(self) -> None:
        task = self._telemetry_task
        self._telemetry_task = None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _telemetry_loop(self) -> None:
        while self.connected:
            self.emit(
                VehicleEvent.FLIGHT_DATA,
                FlightData(battery_percentage=self.battery_percent, height=self.height),
            )
            if self.height > 0 and self.battery_percent > 0:
                self.battery_percent -= 1
            await asyncio.sleep(self.telemetry_interval)

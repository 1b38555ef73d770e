"""Side effects dispatched by flight state transitions.

Every action runs as its own task. The shared lock is taken only to pick up
the vehicle handle or touch a shared field. Commands are sent under a
separate command lock that the engine never takes.
"""

import asyncio
import itertools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from src.skylet.core.exceptions import VehicleCommandError
from src.skylet.hal.vehicle import FlipDirection, VehicleCommandSink
from src.skylet.services.fsm.types import (
    ActionName,
    FlightInput,
    FlightState,
    FlightTimings,
    InputEvent,
)
from src.skylet.utils.logging import get_logger, log_debug, log_error, log_info, log_warning

if TYPE_CHECKING:
    from src.skylet.services.fsm.engine import FlightStateMachine

logger = get_logger(__name__)

ActionHandler = Callable[[InputEvent], Awaitable[None]]


@dataclass(frozen=True)
class DeferredInput:
    """An input armed to be submitted after a delay."""

    flight_input: FlightInput
    delay: float
    armed_at: float = field(default_factory=time.monotonic)

    @property
    def remaining(self) -> float:
        return max(0.0, self.armed_at + self.delay - time.monotonic())


class ActionExecutor:
    """Runs the action named by a transition against the vehicle."""

    def __init__(
        self,
        fsm: "FlightStateMachine",
        vehicle: VehicleCommandSink,
        timings: FlightTimings,
    ):
        self._fsm = fsm
        self._vehicle = vehicle
        self.timings = timings
        self._command_lock = asyncio.Lock()
        self._deferred: dict[int, DeferredInput] = {}
        self._deferred_ids = itertools.count()
        self._handlers: dict[ActionName, ActionHandler] = {
            ActionName.NO_OP: self.no_op,
            ActionName.START_CONNECTION: self.start_connection,
            ActionName.REQUEST_TAKEOFF: self.request_takeoff,
            ActionName.WAIT_FOR_HEIGHT: self.wait_for_height,
            ActionName.RETRY_TAKEOFF: self.retry_takeoff,
            ActionName.MARK_READY: self.mark_ready,
            ActionName.LAND_VEHICLE: self.land_vehicle,
            ActionName.HALT_VEHICLE: self.halt_vehicle,
            ActionName.MARK_DONE: self.mark_done,
        }

    @property
    def pending_deferred(self) -> list[DeferredInput]:
        """Inputs armed but not yet submitted."""
        return list(self._deferred.values())

    async def run(self, action: ActionName, event: InputEvent) -> None:
        """Run one action, logging rather than propagating failures."""
        handler = self._handlers[action]
        try:
            await handler(event)
        except asyncio.CancelledError:
            log_debug(logger, "Action cancelled", action=action.value)
            raise
        except Exception as e:
            logger.error(f"Action '{action.value}' failed: {e}", exc_info=True)

    async def _command(self, command: str, *args: Any) -> bool:
        """Send one vehicle command. Commands are sent one at a time.

        Returns:
            True if the vehicle accepted the command within the timeout
        """
        async with self._fsm.lock:
            method = getattr(self._vehicle, command)

        try:
            async with self._command_lock:
                await asyncio.wait_for(method(*args), timeout=self.timings.command_timeout)
        except VehicleCommandError as e:
            log_error(logger, "Vehicle command failed", command=command, error=e)
            return False
        except asyncio.TimeoutError:
            log_error(
                logger,
                "Vehicle command timed out",
                command=command,
                timeout_s=self.timings.command_timeout,
            )
            return False

        log_debug(logger, "Vehicle command sent", command=command)
        return True

    async def _defer(
        self,
        delay: float,
        flight_input: FlightInput,
        guard: Callable[[], bool] | None = None,
    ) -> bool:
        """Sleep, then submit an input unless ``guard`` says otherwise.

        Returns:
            True if the input was submitted
        """
        key = next(self._deferred_ids)
        self._deferred[key] = DeferredInput(flight_input, delay)
        log_debug(logger, "Deferred input armed", input=flight_input.value, delay_s=delay)
        try:
            await asyncio.sleep(delay)
        finally:
            del self._deferred[key]

        if guard is not None and not guard():
            log_debug(logger, "Deferred input dropped", input=flight_input.value)
            return False

        self._fsm.submit(flight_input, source="timer")
        return True

    def _should_reconnect(self) -> bool:
        return not self._fsm.closing and self._fsm.state is FlightState.DISCONNECTED

    async def no_op(self, event: InputEvent) -> None:
        log_debug(logger, "No-op transition", input=event.flight_input.value)

    async def start_connection(self, event: InputEvent) -> None:
        """Ask the vehicle to connect, and try again later if still disconnected."""
        if not await self._command("connect"):
            log_warning(
                logger,
                "Connection attempt failed",
                retry_in_s=self.timings.reconnect_delay,
            )
        await self._defer(
            self.timings.reconnect_delay,
            FlightInput.TRY_CONNECTION,
            guard=self._should_reconnect,
        )

    async def request_takeoff(self, event: InputEvent) -> None:
        if self._fsm.closing:
            logger.info("Shutdown in progress, halting instead of taking off")
            self._fsm.submit(FlightInput.HALT, source="executor")
            return

        if not await self._command("takeoff"):
            self._fsm.submit(FlightInput.COMMAND_FAILED, source="executor")

    async def wait_for_height(self, event: InputEvent) -> None:
        """Check the height once after the takeoff grace period.

        A fixed delay stands in for a real climb confirmation.
        """
        await asyncio.sleep(self.timings.takeoff_grace)

        telemetry = await self._fsm.get_telemetry()
        if telemetry is not None and telemetry.height > 0:
            log_info(logger, "Vehicle at height", height=telemetry.height)
            self._fsm.submit(FlightInput.AT_HEIGHT, source="executor")
        else:
            log_warning(logger, "Vehicle still on ground after takeoff grace")
            self._fsm.submit(FlightInput.ON_GROUND, source="executor")

    async def retry_takeoff(self, event: InputEvent) -> None:
        if not await self._command("takeoff"):
            self._fsm.submit(FlightInput.COMMAND_FAILED, source="executor")
            return
        await self.wait_for_height(event)

    async def mark_ready(self, event: InputEvent) -> None:
        log_info(
            logger,
            "Vehicle ready, holding station",
            flight_duration_s=self.timings.flight_duration,
        )
        await self._defer(self.timings.flight_duration, FlightInput.FLIGHT_TIME_OVER)

    async def land_vehicle(self, event: InputEvent) -> None:
        if not await self._command("land"):
            self._fsm.submit(FlightInput.COMMAND_FAILED, source="executor")
            return

        await asyncio.sleep(self.timings.landing_grace)

        telemetry = await self._fsm.get_telemetry()
        if telemetry is not None and telemetry.height > 0:
            log_warning(
                logger,
                "Landing grace elapsed with height still reported",
                height=telemetry.height,
            )
        self._fsm.submit(FlightInput.ON_GROUND, source="executor")

    async def halt_vehicle(self, event: InputEvent) -> None:
        if not await self._command("halt"):
            logger.error("Halt command failed, treating vehicle as released")

        await asyncio.sleep(self.timings.halt_settle)
        self._fsm.submit(FlightInput.DONE, source="executor")

    async def mark_done(self, event: InputEvent) -> None:
        await self._fsm.completion.release()
        await self._fsm.clear_telemetry()
        logger.info("Flight cycle complete, vehicle released")

        if self.timings.auto_restart and not self._fsm.closing:
            await self._defer(
                self.timings.reconnect_delay,
                FlightInput.TRY_CONNECTION,
                guard=self._should_reconnect,
            )

    async def flip(self, direction: FlipDirection) -> bool:
        """Flip the vehicle. Refused unless it is holding station."""
        state = self._fsm.state
        if state is not FlightState.READY:
            log_warning(logger, "Flip refused", state=state.value)
            return False

        if not await self._command("flip", direction):
            self._fsm.submit(FlightInput.COMMAND_FAILED, source="executor")
            return False
        return True

"""Flight state machine engine.

The engine is the single serializer of state mutation: producers submit
inputs to a queue, one loop evaluates them in arrival order against the
state current at dequeue time, commits the new state under the shared lock
and dispatches the action as a fire-and-forget task.
"""

import asyncio
import contextlib
from datetime import UTC, datetime
from typing import Any

from src.skylet.core.base_service import BaseService
from src.skylet.core.exceptions import ShutdownTimeoutError
from src.skylet.hal.vehicle import FlipDirection, VehicleCommandSink
from src.skylet.services.fsm.actions import ActionExecutor
from src.skylet.services.fsm.completion import CompletionSignal
from src.skylet.services.fsm.history import StateHistory
from src.skylet.services.fsm.transition_table import build_transition_table, lookup
from src.skylet.services.fsm.types import (
    ActionName,
    FlightInput,
    FlightState,
    FlightTimings,
    InputEvent,
    StateChangeEvent,
    StatusSnapshot,
    TelemetrySnapshot,
    Transition,
)
from src.skylet.utils.logging import (
    end_flight_cycle,
    get_logger,
    log_debug,
    log_info,
    log_warning,
    start_flight_cycle,
)

logger = get_logger(__name__)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class FlightStateMachine(BaseService):
    """Owns the flight state, its lock, the input queue and the vehicle handle."""

    def __init__(
        self,
        vehicle: VehicleCommandSink,
        timings: FlightTimings | None = None,
        history_size: int = 100,
        auto_connect: bool = True,
    ):
        """
        Args:
            vehicle: Command sink for the vehicle; owned by the action executor
            timings: Action durations (defaults match a real flight)
            history_size: Number of transitions kept in memory
            auto_connect: Submit ``try_connection`` when the engine starts
        """
        super().__init__("flight_state_machine")
        self.lock = asyncio.Lock()
        self.completion = CompletionSignal()
        self.history = StateHistory(max_history=history_size)
        self.executor = ActionExecutor(self, vehicle, timings or FlightTimings())
        self.auto_connect = auto_connect

        self._table = build_transition_table()
        self._state = FlightState.DISCONNECTED
        self._last_transition = datetime.now(UTC)
        self._telemetry: TelemetrySnapshot | None = None
        self._cycle_id: str | None = None
        self._closing = False

        self._queue: asyncio.Queue[InputEvent] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> FlightState:
        """Current state without taking the lock; use current_state() for a snapshot."""
        return self._state

    @property
    def closing(self) -> bool:
        return self._closing

    @property
    def cycle_id(self) -> str | None:
        return self._cycle_id

    def submit(self, flight_input: FlightInput, source: str = "external") -> InputEvent:
        """Queue an input without blocking. Safe to call from any thread.

        Returns:
            The queued event
        """
        event = InputEvent(flight_input, source)
        loop = self._loop
        if loop is not None and not loop.is_closed() and _running_loop() is not loop:
            loop.call_soon_threadsafe(self._queue.put_nowait, event)
        else:
            self._queue.put_nowait(event)

        log_debug(
            logger,
            "Input submitted",
            input=flight_input.value,
            source=source,
            seq=event.sequence,
        )
        return event

    async def current_state(self) -> StatusSnapshot:
        """Locked snapshot of the state and its last transition time."""
        async with self.lock:
            return StatusSnapshot(self._state, self._last_transition)

    async def get_telemetry(self) -> TelemetrySnapshot | None:
        async with self.lock:
            return self._telemetry

    async def update_telemetry(self, snapshot: TelemetrySnapshot) -> None:
        async with self.lock:
            self._telemetry = snapshot

    async def clear_telemetry(self) -> None:
        async with self.lock:
            self._telemetry = None

    def record_telemetry(self, snapshot: TelemetrySnapshot) -> None:
        """Schedule a telemetry write and return immediately.

        Must be called on the event loop thread.
        """
        self._track(asyncio.create_task(self.update_telemetry(snapshot)))

    async def flip(self, direction: FlipDirection = FlipDirection.BACK) -> bool:
        """Trigger a flip. Only honoured while the vehicle holds station."""
        return await self.executor.flip(direction)

    async def process_input(self, event: InputEvent) -> Transition | None:
        """Evaluate one input against the current state.

        Returns:
            The committed transition, or None for an invalid cell
        """
        async with self.lock:
            from_state = self._state
            transition = lookup(self._table, from_state, event.flight_input)
            if transition is not None:
                self._state = transition.next_state
                self._last_transition = datetime.now(UTC)
                committed_at = self._last_transition

        if transition is None:
            self.history.record_invalid(from_state, event.flight_input)
            log_warning(
                logger,
                "Invalid transition",
                state=from_state.value,
                input=event.flight_input.value,
                source=event.source,
            )
            return None

        if from_state is FlightState.DISCONNECTED and transition.next_state is FlightState.CONNECTED:
            self.completion.begin()
            self._cycle_id = start_flight_cycle()

        self.history.record_transition(
            StateChangeEvent(
                from_state=from_state,
                to_state=transition.next_state,
                flight_input=event.flight_input,
                action=transition.action,
                timestamp=committed_at,
                source=event.source,
            )
        )
        log_info(
            logger,
            "State transition",
            from_state=from_state.value,
            to_state=transition.next_state.value,
            input=event.flight_input.value,
            action=transition.action.value,
        )

        self._dispatch(transition.action, event)

        if transition.action is ActionName.MARK_DONE:
            self._cycle_id = None
            end_flight_cycle()

        return transition

    def _dispatch(self, action: ActionName, event: InputEvent) -> None:
        task = asyncio.create_task(
            self.executor.run(action, event),
            name=f"action-{action.value}-{event.sequence}",
        )
        self._track(task)

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_loop(self) -> None:
        """Consume inputs until cancelled."""
        while True:
            event = await self._queue.get()
            try:
                await self.process_input(event)
            except Exception as e:
                logger.error(
                    f"Error processing input {event.flight_input.value}: {e}", exc_info=True
                )
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every input queued so far has been evaluated."""
        await self._queue.join()

    async def start_service(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._closing = False
        self._loop_task = asyncio.create_task(self._run_loop(), name="flight-state-machine")
        if self.auto_connect:
            self.submit(FlightInput.TRY_CONNECTION, source="startup")

    async def stop_service(self) -> None:
        """Cancel the engine loop and every outstanding action or timer."""
        tasks = list(self._tasks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None

        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._loop = None

    async def close(self, timeout: float | None = None) -> None:
        """Halt the vehicle and block until the flight cycle has completed.

        Args:
            timeout: Seconds to wait before giving up (None waits forever)

        Raises:
            ShutdownTimeoutError: If the vehicle is not released in time
        """
        self._closing = True
        if not self.is_running:
            logger.warning("close() called on a stopped flight state machine")
            return

        logger.info("Closing: halting vehicle and waiting for the flight cycle to complete")
        self.submit(FlightInput.HALT, source="shutdown")
        try:
            await asyncio.wait_for(self._wait_for_completion(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ShutdownTimeoutError(
                f"Vehicle not released within {timeout}s (state: {self._state.value})"
            ) from e
        logger.info("Flight cycle completed, safe to shut down")

    async def _wait_for_completion(self) -> None:
        await self.drain()
        await self.completion.wait()

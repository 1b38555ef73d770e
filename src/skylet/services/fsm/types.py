"""Type definitions for the flight state machine."""

import itertools
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

_sequence = itertools.count(1)


class FlightState(Enum):
    """Flight lifecycle states."""

    DISCONNECTED = "disconnected"  # No link to the vehicle
    CONNECTED = "connected"  # Linked, not taken off yet
    TAKING_OFF = "taking_off"
    READY = "ready"  # Holding station, accepting commands
    LANDING = "landing"


class FlightInput(Enum):
    """Inputs accepted by the flight state machine."""

    TRY_CONNECTION = "try_connection"  # Please try connecting to the vehicle
    CONNECTION_MADE = "connection_made"  # Vehicle reported connected
    TAKE_OFF = "take_off"  # Vehicle reported take off
    AT_HEIGHT = "at_height"  # Height checked and > 0
    FLIGHT_TIME_OVER = "flight_time_over"  # Flight duration timer popped
    LAND = "land"  # Vehicle reported landing
    ON_GROUND = "on_ground"  # Height checked and 0
    HALT = "halt"  # Please halt the vehicle
    CONNECTION_LOST = "connection_lost"  # Telemetry silence detected
    DONE = "done"  # Vehicle released
    COMMAND_FAILED = "command_failed"  # A takeoff/land command failed


class ActionName(Enum):
    """Actions a transition may dispatch."""

    NO_OP = "no_op"
    START_CONNECTION = "start_connection"
    REQUEST_TAKEOFF = "request_takeoff"
    WAIT_FOR_HEIGHT = "wait_for_height"
    RETRY_TAKEOFF = "retry_takeoff"
    MARK_READY = "mark_ready"
    LAND_VEHICLE = "land_vehicle"
    HALT_VEHICLE = "halt_vehicle"
    MARK_DONE = "mark_done"


@dataclass(frozen=True)
class Transition:
    """Target state and action for one (state, input) cell."""

    next_state: FlightState
    action: ActionName


@dataclass(frozen=True)
class InputEvent:
    """An input queued for the engine. Never mutated after creation."""

    flight_input: FlightInput
    source: str = "external"
    sequence: int = field(default_factory=lambda: next(_sequence))
    created_at: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Last known vehicle telemetry."""

    battery_percent: int
    height: int
    received_at: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class StatusSnapshot:
    """Consistent view of the state and when it was last committed."""

    state: FlightState
    last_transition: datetime

    @property
    def is_ready(self) -> bool:
        return self.state is FlightState.READY


@dataclass
class StateChangeEvent:
    """Record of one committed transition."""

    from_state: FlightState
    to_state: FlightState
    flight_input: FlightInput
    action: ActionName
    timestamp: datetime
    source: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class FlightTimings:
    """Durations used by the action executor, in seconds."""

    flight_duration: float = 30.0
    takeoff_grace: float = 3.0
    landing_grace: float = 5.0
    halt_settle: float = 3.0
    reconnect_delay: float = 5.0
    command_timeout: float = 2.0
    auto_restart: bool = True

    @classmethod
    def from_config(cls, flight_config: Any) -> "FlightTimings":
        """Build timings from a FlightConfig section."""
        return cls(
            flight_duration=flight_config.FLIGHT_DURATION_S,
            takeoff_grace=flight_config.FLIGHT_TAKEOFF_GRACE_S,
            landing_grace=flight_config.FLIGHT_LANDING_GRACE_S,
            halt_settle=flight_config.FLIGHT_HALT_SETTLE_S,
            reconnect_delay=flight_config.FLIGHT_RECONNECT_DELAY_S,
            command_timeout=flight_config.FLIGHT_COMMAND_TIMEOUT_S,
            auto_restart=flight_config.FLIGHT_AUTO_RESTART,
        )

"""Flight lifecycle state machine components."""

from .actions import ActionExecutor, DeferredInput
from .completion import CompletionSignal
from .engine import FlightStateMachine
from .history import StateHistory
from .status import StatusMirror
from .transition_table import build_transition_table, lookup
from .types import (
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

__all__ = [
    "ActionExecutor",
    "ActionName",
    "CompletionSignal",
    "DeferredInput",
    "FlightInput",
    "FlightState",
    "FlightStateMachine",
    "FlightTimings",
    "InputEvent",
    "StateChangeEvent",
    "StateHistory",
    "StatusMirror",
    "StatusSnapshot",
    "TelemetrySnapshot",
    "Transition",
    "build_transition_table",
    "lookup",
]

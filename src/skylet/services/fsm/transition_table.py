"""Static transition table for the flight lifecycle.

Cells absent from the table are invalid: the engine logs them and leaves
the state unchanged. ``halt`` and ``connection_lost`` are defined for every
state and never move away from the ground, and nothing leaves READY or
TAKING_OFF downwards except through LANDING.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from src.skylet.services.fsm.types import ActionName, FlightInput, FlightState, Transition

TransitionTable = Mapping[tuple[FlightState, FlightInput], Transition]

S = FlightState
I = FlightInput  # noqa: E741
A = ActionName


def _set(
    table: dict[tuple[FlightState, FlightInput], Transition],
    state: FlightState,
    inputs: Iterable[FlightInput],
    next_state: FlightState,
    action: ActionName,
) -> None:
    for flight_input in inputs:
        table[(state, flight_input)] = Transition(next_state, action)


def build_transition_table() -> TransitionTable:
    """Build the read-only (state, input) -> transition mapping."""
    t: dict[tuple[FlightState, FlightInput], Transition] = {}

    _set(t, S.DISCONNECTED, [I.CONNECTION_MADE], S.CONNECTED, A.REQUEST_TAKEOFF)
    _set(t, S.DISCONNECTED, [I.TRY_CONNECTION], S.DISCONNECTED, A.START_CONNECTION)
    _set(t, S.DISCONNECTED, [I.CONNECTION_LOST, I.ON_GROUND, I.HALT], S.DISCONNECTED, A.NO_OP)

    _set(t, S.CONNECTED, [I.TAKE_OFF], S.TAKING_OFF, A.WAIT_FOR_HEIGHT)
    _set(t, S.CONNECTED, [I.TRY_CONNECTION, I.CONNECTION_LOST], S.CONNECTED, A.NO_OP)
    _set(t, S.CONNECTED, [I.HALT], S.LANDING, A.HALT_VEHICLE)

    _set(t, S.TAKING_OFF, [I.TRY_CONNECTION, I.TAKE_OFF], S.TAKING_OFF, A.NO_OP)
    _set(t, S.TAKING_OFF, [I.ON_GROUND], S.TAKING_OFF, A.RETRY_TAKEOFF)
    _set(t, S.TAKING_OFF, [I.AT_HEIGHT], S.READY, A.MARK_READY)
    _set(t, S.TAKING_OFF, [I.CONNECTION_LOST], S.LANDING, A.HALT_VEHICLE)
    _set(t, S.TAKING_OFF, [I.HALT], S.LANDING, A.LAND_VEHICLE)

    _set(t, S.READY, [I.TRY_CONNECTION], S.READY, A.NO_OP)
    _set(
        t,
        S.READY,
        [I.FLIGHT_TIME_OVER, I.LAND, I.CONNECTION_LOST, I.HALT],
        S.LANDING,
        A.LAND_VEHICLE,
    )

    # on_ground and connection_lost both mean the vehicle should be released.
    _set(t, S.LANDING, [I.ON_GROUND, I.CONNECTION_LOST], S.LANDING, A.HALT_VEHICLE)
    _set(t, S.LANDING, [I.LAND, I.HALT], S.LANDING, A.NO_OP)
    _set(t, S.LANDING, [I.DONE], S.DISCONNECTED, A.MARK_DONE)

    # Late timer inputs. Timers are never cancelled by transitions, so these
    # must stay harmless in whatever state the vehicle has reached since.
    for state in (S.DISCONNECTED, S.CONNECTED, S.TAKING_OFF, S.LANDING):
        _set(t, state, [I.FLIGHT_TIME_OVER], state, A.NO_OP)
    _set(t, S.LANDING, [I.AT_HEIGHT], S.LANDING, A.NO_OP)

    # Command failures reported by the action executor.
    _set(t, S.DISCONNECTED, [I.COMMAND_FAILED], S.DISCONNECTED, A.NO_OP)
    _set(t, S.CONNECTED, [I.COMMAND_FAILED], S.LANDING, A.HALT_VEHICLE)
    _set(t, S.TAKING_OFF, [I.COMMAND_FAILED], S.LANDING, A.HALT_VEHICLE)
    _set(t, S.READY, [I.COMMAND_FAILED], S.READY, A.NO_OP)
    _set(t, S.LANDING, [I.COMMAND_FAILED], S.LANDING, A.HALT_VEHICLE)

    return MappingProxyType(t)


def lookup(
    table: TransitionTable, state: FlightState, flight_input: FlightInput
) -> Transition | None:
    """Return the transition for a cell, or None when the cell is invalid."""
    return table.get((state, flight_input))

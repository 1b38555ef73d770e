"""Unit tests for transition history tracking."""

from datetime import UTC, datetime, timedelta

from src.skylet.services.fsm.history import StateHistory
from src.skylet.services.fsm.types import (
    ActionName,
    FlightInput,
    FlightState,
    StateChangeEvent,
)


def make_event(from_state, to_state, flight_input, action=ActionName.NO_OP, at=None):
    return StateChangeEvent(
        from_state=from_state,
        to_state=to_state,
        flight_input=flight_input,
        action=action,
        timestamp=at or datetime.now(UTC),
        source="test",
    )


class TestStateHistory:
    """Test history recording and statistics."""

    def test_records_transitions_in_order(self):
        history = StateHistory()
        history.record_transition(
            make_event(FlightState.DISCONNECTED, FlightState.CONNECTED, FlightInput.CONNECTION_MADE)
        )
        history.record_transition(
            make_event(FlightState.CONNECTED, FlightState.TAKING_OFF, FlightInput.TAKE_OFF)
        )

        recent = history.get_recent_history()
        assert [e["to_state"] for e in recent] == ["connected", "taking_off"]
        assert recent[0]["input"] == "connection_made"
        assert recent[0]["source"] == "test"

    def test_history_is_bounded(self):
        history = StateHistory(max_history=3)
        for _ in range(5):
            history.record_transition(
                make_event(FlightState.READY, FlightState.READY, FlightInput.TRY_CONNECTION)
            )

        assert len(history.get_recent_history()) == 3
        assert history.get_statistics()["total_transitions"] == 5

    def test_recent_history_limit(self):
        history = StateHistory()
        for flight_input in (FlightInput.HALT, FlightInput.LAND, FlightInput.DONE):
            history.record_transition(
                make_event(FlightState.LANDING, FlightState.LANDING, flight_input)
            )

        recent = history.get_recent_history(limit=2)
        assert [e["input"] for e in recent] == ["land", "done"]

    def test_state_duration_measured_between_entries(self):
        history = StateHistory()
        start = datetime.now(UTC)
        history.record_transition(
            make_event(
                FlightState.TAKING_OFF, FlightState.READY, FlightInput.AT_HEIGHT, at=start
            )
        )
        history.record_transition(
            make_event(
                FlightState.READY,
                FlightState.LANDING,
                FlightInput.FLIGHT_TIME_OVER,
                at=start + timedelta(seconds=30),
            )
        )

        durations = history.get_statistics()["state_durations"]
        assert durations["ready"]["average"] == 30.0
        assert durations["ready"]["count"] == 1

    def test_self_transition_does_not_end_duration(self):
        history = StateHistory()
        start = datetime.now(UTC)
        history.record_transition(
            make_event(FlightState.TAKING_OFF, FlightState.READY, FlightInput.AT_HEIGHT, at=start)
        )
        history.record_transition(
            make_event(
                FlightState.READY,
                FlightState.READY,
                FlightInput.TRY_CONNECTION,
                at=start + timedelta(seconds=5),
            )
        )

        assert "ready" not in history.get_statistics()["state_durations"]
        assert history.get_current_state_duration(FlightState.READY) is not None

    def test_current_state_duration_untracked(self):
        assert StateHistory().get_current_state_duration(FlightState.READY) is None

    def test_transition_counts(self):
        history = StateHistory()
        for _ in range(2):
            history.record_transition(
                make_event(FlightState.LANDING, FlightState.DISCONNECTED, FlightInput.DONE)
            )

        common = history.get_statistics()["most_common_transitions"]
        assert common[0] == {"from": "landing", "to": "disconnected", "count": 2}

    def test_invalid_inputs_counted(self):
        history = StateHistory()
        history.record_invalid(FlightState.DISCONNECTED, FlightInput.AT_HEIGHT)
        history.record_invalid(FlightState.DISCONNECTED, FlightInput.AT_HEIGHT)
        history.record_invalid(FlightState.READY, FlightInput.DONE)

        assert history.get_invalid_count() == 3
        assert history.get_invalid_count(state=FlightState.DISCONNECTED) == 2
        assert history.get_invalid_count(flight_input=FlightInput.DONE) == 1
        assert history.get_statistics()["invalid_inputs"] == 3


"""Unit tests for the read-only status view."""

import asyncio

import pytest

from src.skylet.services.fsm.status import StatusMirror
from src.skylet.services.fsm.types import (
    FlightInput,
    FlightState,
    InputEvent,
    TelemetrySnapshot,
)


@pytest.fixture
def mirror(fsm):
    return StatusMirror(fsm)


class TestStatusMirror:
    """Test status reporting."""

    @pytest.mark.asyncio
    async def test_idle_status(self, mirror):
        status = await mirror.to_dict()

        assert status["state"] == "disconnected"
        assert status["ready"] is False
        assert status["cycle_id"] is None
        assert status["telemetry"] is None
        assert status["pending_cycles"] == 0
        assert status["pending_timers"] == []
        assert status["time_in_state_s"] is None
        assert status["completed_cycles"] == 0
        assert status["engine"]["is_running"] is False
        assert status["statistics"]["total_transitions"] == 0
        assert status["recent_transitions"] == []

    @pytest.mark.asyncio
    async def test_status_during_cycle(self, fsm, mirror):
        await fsm.update_telemetry(TelemetrySnapshot(battery_percent=88, height=9))
        await fsm.process_input(InputEvent(FlightInput.CONNECTION_MADE))

        status = await mirror.to_dict()

        assert status["state"] == "connected"
        assert status["cycle_id"] == fsm.cycle_id
        assert status["telemetry"] == {"battery_percent": 88, "height": 9}
        assert status["pending_cycles"] == 1
        assert status["time_in_state_s"] >= 0.0
        assert status["statistics"]["total_transitions"] == 1
        assert [t["to_state"] for t in status["recent_transitions"]] == ["connected"]

    @pytest.mark.asyncio
    async def test_status_while_ready(self, fsm, mirror):
        for flight_input in (
            FlightInput.CONNECTION_MADE,
            FlightInput.TAKE_OFF,
            FlightInput.AT_HEIGHT,
        ):
            await fsm.process_input(InputEvent(flight_input))

        # Let the dispatched mark_ready action arm its timer
        await asyncio.sleep(0.005)

        snapshot = await mirror.snapshot()
        assert snapshot.state is FlightState.READY

        status = await mirror.to_dict()
        assert status["ready"] is True
        assert status["pending_timers"][0]["input"] == "flight_time_over"

    @pytest.mark.asyncio
    async def test_recent_transitions_are_limited(self, fsm):
        mirror = StatusMirror(fsm, recent_limit=2)
        for flight_input in (
            FlightInput.CONNECTION_MADE,
            FlightInput.TAKE_OFF,
            FlightInput.AT_HEIGHT,
        ):
            await fsm.process_input(InputEvent(flight_input))

        status = await mirror.to_dict()

        assert [t["to_state"] for t in status["recent_transitions"]] == ["taking_off", "ready"]

    @pytest.mark.asyncio
    async def test_running_engine_reported(self, running_fsm):
        status = await StatusMirror(running_fsm).to_dict()

        assert status["engine"]["is_running"] is True
        assert status["engine"]["started_at"] is not None

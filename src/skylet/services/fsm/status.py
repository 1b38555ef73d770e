"""Read-only view of the flight state for orchestration layers."""

from typing import Any

from src.skylet.services.fsm.engine import FlightStateMachine
from src.skylet.services.fsm.types import StatusSnapshot


class StatusMirror:
    """Exposes state, timestamps and telemetry without granting control."""

    def __init__(self, fsm: FlightStateMachine, recent_limit: int = 10):
        self._fsm = fsm
        self.recent_limit = recent_limit

    async def snapshot(self) -> StatusSnapshot:
        return await self._fsm.current_state()

    async def to_dict(self) -> dict[str, Any]:
        """Status summary suitable for readiness reporting."""
        snapshot = await self.snapshot()
        telemetry = await self._fsm.get_telemetry()
        time_in_state = self._fsm.history.get_current_state_duration(snapshot.state)

        return {
            "state": snapshot.state.value,
            "ready": snapshot.is_ready,
            "last_transition": snapshot.last_transition.isoformat(),
            "time_in_state_s": round(time_in_state, 3) if time_in_state is not None else None,
            "cycle_id": self._fsm.cycle_id,
            "telemetry": (
                {"battery_percent": telemetry.battery_percent, "height": telemetry.height}
                if telemetry
                else None
            ),
            "pending_cycles": self._fsm.completion.pending,
            "completed_cycles": self._fsm.completion.release_count,
            "pending_timers": [
                {"input": d.flight_input.value, "remaining_s": round(d.remaining, 3)}
                for d in self._fsm.executor.pending_deferred
            ],
            "engine": self._fsm.get_status(),
            "statistics": self._fsm.history.get_statistics(),
            "recent_transitions": self._fsm.history.get_recent_history(limit=self.recent_limit),
        }

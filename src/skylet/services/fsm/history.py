"""Transition history and statistics tracking."""

from collections import Counter, defaultdict, deque
from datetime import UTC, datetime
from typing import Any

from src.skylet.services.fsm.types import FlightInput, FlightState, StateChangeEvent
from src.skylet.utils.logging import get_logger

logger = get_logger(__name__)


class StateHistory:
    """Tracks committed transitions in memory and provides statistics.

    Self-transitions (no-op cells) are recorded but do not end the time
    spent in a state.
    """

    def __init__(self, max_history: int = 100):
        """Initialize history tracker with maximum size.

        Args:
            max_history: Maximum number of events to keep in memory
        """
        self._history: deque[StateChangeEvent] = deque(maxlen=max_history)
        self._state_durations: dict[FlightState, list[float]] = defaultdict(list)
        self._state_entry_times: dict[FlightState, datetime] = {}
        self._transition_counts: Counter[tuple[FlightState, FlightState]] = Counter()
        self._invalid_inputs: Counter[tuple[FlightState, FlightInput]] = Counter()

    def record_transition(self, event: StateChangeEvent) -> None:
        """Record a committed transition."""
        self._history.append(event)
        self._transition_counts[(event.from_state, event.to_state)] += 1

        if event.from_state != event.to_state:
            entered = self._state_entry_times.pop(event.from_state, None)
            if entered is not None:
                duration = (event.timestamp - entered).total_seconds()
                self._state_durations[event.from_state].append(duration)
            self._state_entry_times[event.to_state] = event.timestamp

        logger.debug(f"Recorded transition: {event.from_state.value} -> {event.to_state.value}")

    def record_invalid(self, state: FlightState, flight_input: FlightInput) -> None:
        self._invalid_inputs[(state, flight_input)] += 1

    def get_current_state_duration(self, current_state: FlightState) -> float | None:
        """Get seconds spent in the current state, or None if not tracked."""
        if current_state in self._state_entry_times:
            return (datetime.now(UTC) - self._state_entry_times[current_state]).total_seconds()
        return None

    def get_recent_history(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Get recent transitions as dictionaries, oldest first."""
        events = list(self._history)
        if limit:
            events = events[-limit:]

        return [
            {
                "from_state": event.from_state.value,
                "to_state": event.to_state.value,
                "input": event.flight_input.value,
                "action": event.action.value,
                "timestamp": event.timestamp.isoformat(),
                "source": event.source,
                "metadata": event.metadata,
            }
            for event in events
        ]

    def get_statistics(self) -> dict[str, Any]:
        """Get transition statistics."""
        avg_durations = {}
        for state, durations in self._state_durations.items():
            if durations:
                avg_durations[state.value] = {
                    "average": sum(durations) / len(durations),
                    "min": min(durations),
                    "max": max(durations),
                    "count": len(durations),
                }

        return {
            "total_transitions": sum(self._transition_counts.values()),
            "invalid_inputs": self.get_invalid_count(),
            "state_durations": avg_durations,
            "most_common_transitions": [
                {"from": from_state.value, "to": to_state.value, "count": count}
                for (from_state, to_state), count in self._transition_counts.most_common(5)
            ],
            "history_size": len(self._history),
        }

    def get_invalid_count(
        self, state: FlightState | None = None, flight_input: FlightInput | None = None
    ) -> int:
        """Count invalid inputs, optionally filtered by state and/or input."""
        return sum(
            count
            for (s, i), count in self._invalid_inputs.items()
            if (state is None or s == state) and (flight_input is None or i == flight_input)
        )


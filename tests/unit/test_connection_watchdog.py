"""Unit tests for the connection watchdog."""

import asyncio

import pytest

from src.skylet.services.connection_watchdog import ConnectionWatchdog
from src.skylet.services.fsm.types import FlightInput


@pytest.fixture
def submitted(fsm, monkeypatch):
    inputs = []
    monkeypatch.setattr(
        fsm, "submit", lambda flight_input, source="external": inputs.append((flight_input, source))
    )
    return inputs


@pytest.fixture
def watchdog(fsm):
    return ConnectionWatchdog(fsm, interval=0.02)


class TestDebounce:
    """Test the two-interval loss detection."""

    @pytest.mark.asyncio
    async def test_first_silent_interval_only_sets_flag(self, watchdog, submitted):
        assert await watchdog.check_interval() is False

        assert watchdog.missed is True
        assert submitted == []

    @pytest.mark.asyncio
    async def test_second_silent_interval_reports_loss(self, watchdog, submitted):
        await watchdog.check_interval()
        assert await watchdog.check_interval() is True

        assert submitted == [(FlightInput.CONNECTION_LOST, "watchdog")]
        assert watchdog.lost_signals == 1

    @pytest.mark.asyncio
    async def test_heartbeat_clears_flag(self, watchdog, submitted):
        await watchdog.check_interval()
        watchdog.heartbeat()

        assert await watchdog.check_interval() is False
        assert watchdog.missed is False

        # Silence starts again from zero
        assert await watchdog.check_interval() is False
        assert submitted == []

    @pytest.mark.asyncio
    async def test_persistent_silence_keeps_reporting(self, watchdog, submitted):
        results = [await watchdog.check_interval() for _ in range(4)]

        assert results == [False, True, True, True]
        assert len(submitted) == 3

    @pytest.mark.asyncio
    async def test_heartbeat_ends_wait_early(self, fsm):
        watchdog = ConnectionWatchdog(fsm, interval=5.0)
        watchdog.heartbeat()

        assert await asyncio.wait_for(watchdog.check_interval(), timeout=0.5) is False


class TestLifecycle:
    """Test the background loop."""

    @pytest.mark.asyncio
    async def test_running_watchdog_reports_after_two_intervals(
        self, watchdog, submitted, wait_until
    ):
        loop = asyncio.get_running_loop()
        started = loop.time()
        await watchdog.start()
        try:
            await wait_until(lambda: watchdog.lost_signals >= 1)
            assert loop.time() - started >= 2 * watchdog.interval - 0.005
            assert submitted[0] == (FlightInput.CONNECTION_LOST, "watchdog")
        finally:
            await watchdog.stop()

    @pytest.mark.asyncio
    async def test_stop(self, watchdog, submitted):
        await watchdog.start()
        assert watchdog.is_running is True

        await watchdog.stop()

        assert watchdog.is_running is False
        await asyncio.sleep(0.1)
        assert submitted == []

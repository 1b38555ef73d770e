"""
Unit test specific configuration and fixtures.
Unit tests should be fast and never sleep for real flight durations.
"""

import os

import pytest
import pytest_asyncio

from src.skylet.hal.mock_vehicle import MockVehicle
from src.skylet.services.fsm.engine import FlightStateMachine
from src.skylet.services.fsm.types import FlightTimings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep developer environment overrides out of unit tests."""
    for key in list(os.environ):
        if key.startswith("SKYLET_"):
            monkeypatch.delenv(key)


@pytest.fixture
def fast_timings():
    """Timings short enough to run whole actions in a unit test."""
    return FlightTimings(
        flight_duration=0.05,
        takeoff_grace=0.02,
        landing_grace=0.02,
        halt_settle=0.02,
        reconnect_delay=0.05,
        command_timeout=0.1,
        auto_restart=False,
    )


@pytest.fixture
def vehicle():
    """Mock vehicle that records commands but never emits events on its own."""
    return MockVehicle(simulate=False)


@pytest_asyncio.fixture
async def fsm(vehicle, fast_timings):
    """Engine that is not started; drive it with process_input()."""
    machine = FlightStateMachine(vehicle, fast_timings, auto_connect=False)
    yield machine
    # Cancel actions dispatched by process_input()
    await machine.stop_service()


@pytest_asyncio.fixture
async def running_fsm(fsm):
    """Started engine with its consumer loop running."""
    await fsm.start()
    yield fsm
    await fsm.stop()

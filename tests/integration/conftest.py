"""
Integration test fixtures.
Controllers built here fly real cycles against the mock vehicle with
shortened timings, and are always torn down after the test.
"""

import contextlib

import pytest
import pytest_asyncio

from src.skylet.core.exceptions import ShutdownTimeoutError
from src.skylet.hal.mock_vehicle import MockVehicle
from src.skylet.services.flight_controller import FlightController
from src.skylet.services.fsm.types import FlightTimings


@pytest.fixture
def timings():
    return FlightTimings(
        flight_duration=0.1,
        takeoff_grace=0.05,
        landing_grace=0.03,
        halt_settle=0.03,
        reconnect_delay=0.05,
        command_timeout=0.2,
        auto_restart=False,
    )


@pytest.fixture
def simulator():
    return MockVehicle(connect_delay=0.01, telemetry_interval=0.01, cruise_height=8)


@pytest_asyncio.fixture
async def make_controller():
    """Factory building controllers that are closed at teardown."""
    controllers = []

    def _make(vehicle, timings, watchdog_interval=None):
        controller = FlightController(vehicle, timings, watchdog_interval=watchdog_interval)
        controllers.append(controller)
        return controller

    yield _make

    for controller in controllers:
        with contextlib.suppress(ShutdownTimeoutError):
            await controller.close(timeout=1.0)

"""Unit tests for the exception hierarchy."""

import pytest

from src.skylet.core.exceptions import (
    ConfigurationError,
    HardwareError,
    ShutdownTimeoutError,
    SkyletException,
    VehicleCommandError,
)


class TestExceptionHierarchy:
    """Test that every error can be caught as a SkyletException."""

    @pytest.mark.parametrize(
        "exc_class", [ConfigurationError, HardwareError, ShutdownTimeoutError]
    )
    def test_base_class(self, exc_class):
        with pytest.raises(SkyletException):
            raise exc_class("boom")

    def test_vehicle_command_error_is_hardware_error(self):
        assert issubclass(VehicleCommandError, HardwareError)


class TestVehicleCommandError:
    """Test the vehicle command error payload."""

    def test_default_message(self):
        error = VehicleCommandError("takeoff")

        assert error.command == "takeoff"
        assert str(error) == "Vehicle command 'takeoff' failed"

    def test_custom_message(self):
        error = VehicleCommandError("land", "link down")

        assert error.command == "land"
        assert str(error) == "link down"

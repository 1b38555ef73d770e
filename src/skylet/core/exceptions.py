"""
Custom exception classes for the skylet flight controller.
"""


class SkyletException(Exception):
    """Base exception for all skylet custom exceptions."""

    pass


class ConfigurationError(SkyletException):
    """Exception raised for configuration errors."""

    pass


class HardwareError(SkyletException):
    """Exception raised for vehicle hardware interface errors."""

    pass


class VehicleCommandError(HardwareError):
    """Exception raised when a vehicle rejects or fails a command."""

    def __init__(self, command: str, message: str | None = None):
        self.command = command
        super().__init__(message or f"Vehicle command '{command}' failed")


class ShutdownTimeoutError(SkyletException):
    """Exception raised when the vehicle is not grounded before the shutdown deadline."""

    pass

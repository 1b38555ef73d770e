"""Vehicle hardware abstraction layer."""

from .mock_vehicle import MockVehicle
from .vehicle import FlightData, FlipDirection, VehicleCommandSink, VehicleEvent

__all__ = [
    "FlightData",
    "FlipDirection",
    "MockVehicle",
    "VehicleCommandSink",
    "VehicleEvent",
]

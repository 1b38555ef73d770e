"""Flight lifecycle services."""

from .connection_watchdog import ConnectionWatchdog
from .event_bridge import VehicleEventBridge
from .flight_controller import FlightController

__all__ = ["ConnectionWatchdog", "FlightController", "VehicleEventBridge"]

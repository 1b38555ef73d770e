"""
Vehicle command sink interface.

The flight controller never speaks the device protocol itself: a driver
implementing VehicleCommandSink is injected and owned by the action executor.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

EventHandler = Callable[[Any], None]


class VehicleEvent(Enum):
    """Events emitted by a vehicle driver."""

    CONNECTED = "connected"
    TAKEOFF = "takeoff"
    LANDING = "landing"
    FLIGHT_DATA = "flight_data"


class FlipDirection(Enum):
    """Flip directions understood by the vehicle."""

    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class FlightData:
    """Raw flight data payload carried by a FLIGHT_DATA event."""

    battery_percentage: int
    height: int


class VehicleCommandSink(Protocol):
    """
    Interface for vehicle drivers.

    Commands are coroutines that send the request and return; completion is
    reported, if at all, through events. A driver raises VehicleCommandError
    when it cannot deliver a command.

    Event handlers may be invoked from a driver thread.
    """

    async def connect(self) -> None:
        """Open (or re-open) the link to the vehicle."""
        ...

    async def takeoff(self) -> None:
        """Ask the vehicle to take off."""
        ...

    async def land(self) -> None:
        """Ask the vehicle to land."""
        ...

    async def flip(self, direction: FlipDirection) -> None:
        """Ask the vehicle to flip in the given direction."""
        ...

    async def halt(self) -> None:
        """Stop the vehicle and release the link."""
        ...

    def on(self, event: VehicleEvent, handler: EventHandler) -> None:
        """Register a handler for a vehicle event."""
        ...

"""Route simulation engine."""

from .clock import SimulationClock
from .parameters import SimulationParameters
from .replay import TimedLocationUpdate, replay_route
from .session import SimulationSession
from .simulator import LocationUpdate, RouteSimulator, SimulationCursor, SimulatorState

__all__ = [
    "LocationUpdate",
    "RouteSimulator",
    "SimulationClock",
    "SimulationCursor",
    "SimulationParameters",
    "SimulationSession",
    "SimulatorState",
    "TimedLocationUpdate",
    "replay_route",
]

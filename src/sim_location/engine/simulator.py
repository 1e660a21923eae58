"""Stateful route simulation engine.

RouteSimulator walks a cursor along a Route, one tick at a time. Each tick
moves the cursor by ``speed * tick_interval * time_scale`` meters and
produces a LocationUpdate describing the new fix. Speed and time scale are
read from the live SimulationParameters on every tick, so changes made by
the caller take effect on the next tick.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum

from sim_location.core.exceptions import EmptyRouteError
from sim_location.geo.distance import Coordinate, calculate_heading, distance
from sim_location.geo.route import Route
from sim_location.geo.segment import AT_START, AtProgress, MoveKind, SegmentProgress

from .parameters import SimulationParameters

logger = logging.getLogger(__name__)


class SimulatorState(str, Enum):
    """Simulator lifecycle states."""

    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass
class SimulationCursor:
    """Position of the simulation within its route."""

    segment_index: int = 0
    progress: SegmentProgress = field(default_factory=lambda: AT_START)


@dataclass(frozen=True)
class LocationUpdate:
    """One simulated fix, emitted once per tick."""

    position: Coordinate
    previous_position: Coordinate
    distance_covered_m: float
    kind: MoveKind
    segment_index: int
    is_final: bool = False


class RouteSimulator:
    """Drives a cursor along a route: IDLE -> RUNNING -> (IDLE | FINISHED)."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = SimulatorState.IDLE
        self._route: Route | None = None
        self._parameters: SimulationParameters | None = None
        self._cursor: SimulationCursor | None = None

    @property
    def state(self) -> SimulatorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SimulatorState.RUNNING

    @property
    def route(self) -> Route | None:
        return self._route

    @property
    def parameters(self) -> SimulationParameters | None:
        return self._parameters

    @property
    def cursor(self) -> SimulationCursor | None:
        """Copy of the current cursor, or None when no simulation is active."""
        with self._lock:
            if self._cursor is None:
                return None
            return SimulationCursor(self._cursor.segment_index, self._cursor.progress)

    def start(self, route: Route, parameters: SimulationParameters) -> None:
        """Begin a new run from the first point of ``route``, replacing any previous run."""
        if route.is_empty:
            raise EmptyRouteError(
                "Route requires at least two points", details={"segments": len(route)}
            )

        with self._lock:
            self._route = route
            self._parameters = parameters
            self._cursor = SimulationCursor()
            self._state = SimulatorState.RUNNING

        logger.info(
            f"Simulation started: segments={len(route)}, "
            f"length={route.total_length_m:.1f}m, speed={parameters.speed_mps:.2f}m/s"
        )

    def stop(self) -> None:
        """Return to IDLE and discard the cursor. Safe to call in any state."""
        with self._lock:
            if self._state == SimulatorState.RUNNING:
                logger.info("Simulation stopped")
            self._state = SimulatorState.IDLE
            self._cursor = None

    def reset(self) -> None:
        """Stop and forget the route, e.g. after the route was replaced."""
        with self._lock:
            self.stop()
            self._route = None
            self._parameters = None

    def tick(self) -> LocationUpdate | None:
        """Advance one tick. Returns None without side effects unless RUNNING."""
        with self._lock:
            if (
                self._state != SimulatorState.RUNNING
                or self._route is None
                or self._parameters is None
                or self._cursor is None
            ):
                return None

            travel = self._parameters.travel_distance_m
            if self._parameters.carry_over_distance:
                update = self._advance_with_carry(self._route, self._cursor, travel)
            else:
                update = self._advance(self._route, self._cursor, travel)

            if update.is_final:
                self._state = SimulatorState.FINISHED
                self._cursor = None
                logger.info("Simulation finished")
            return update

    def _advance(
        self, route: Route, cursor: SimulationCursor, travel: float
    ) -> LocationUpdate:
        index = cursor.segment_index
        segment = route.segments[index]
        previous = segment.origin_of(cursor.progress)
        position, kind = segment.next_position(cursor.progress, travel)

        if kind == MoveKind.IN_SEGMENT:
            cursor.progress = AtProgress(position)
        else:
            cursor.segment_index += 1
            cursor.progress = AT_START

        covered = distance(previous, position)
        self._log_move(kind, previous, position, covered, travel)
        return LocationUpdate(
            position=position,
            previous_position=previous,
            distance_covered_m=covered,
            kind=kind,
            segment_index=index,
            is_final=cursor.segment_index >= len(route),
        )

    def _advance_with_carry(
        self, route: Route, cursor: SimulationCursor, travel: float
    ) -> LocationUpdate:
        """Like _advance, but distance left at a segment end moves on into the next one."""
        first_segment = route.segments[cursor.segment_index]
        previous = first_segment.origin_of(cursor.progress)
        left = travel
        covered = 0.0

        while True:
            index = cursor.segment_index
            segment = route.segments[index]
            remaining = segment.remaining_m(cursor.progress)
            position, kind = segment.next_position(cursor.progress, left)

            if kind == MoveKind.IN_SEGMENT:
                cursor.progress = AtProgress(position)
                covered += left
                break

            cursor.segment_index += 1
            cursor.progress = AT_START
            covered += remaining
            left -= remaining
            if cursor.segment_index >= len(route) or left <= 0.0:
                break

        self._log_move(kind, previous, position, covered, travel)
        return LocationUpdate(
            position=position,
            previous_position=previous,
            distance_covered_m=covered,
            kind=kind,
            segment_index=index,
            is_final=cursor.segment_index >= len(route),
        )

    @staticmethod
    def _log_move(
        kind: MoveKind,
        previous: Coordinate,
        position: Coordinate,
        covered: float,
        travel: float,
    ) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        marker = "move to" if kind == MoveKind.IN_SEGMENT else "finish to"
        heading = calculate_heading(previous, position) if covered > 0 else 0.0
        logger.debug(
            f"{marker} - distance={covered:.2f}m, step={travel:.2f}m, heading={heading:.0f}"
        )

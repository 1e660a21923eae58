"""Straight-line track between two consecutive route points."""

from dataclasses import dataclass, field
from enum import Enum

from .distance import Coordinate, distance


class MoveKind(str, Enum):
    """Outcome of advancing along a segment."""

    IN_SEGMENT = "in_segment"
    SEGMENT_FINISHED = "segment_finished"


@dataclass(frozen=True)
class AtStart:
    """No progress has been made on the current segment yet."""


@dataclass(frozen=True)
class AtProgress:
    """Partway through the current segment, at ``position``."""

    position: Coordinate

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _as_coordinate(self.position))


SegmentProgress = AtStart | AtProgress

AT_START = AtStart()


def _as_coordinate(point: tuple[float, float]) -> Coordinate:
    return point if isinstance(point, Coordinate) else Coordinate(float(point[0]), float(point[1]))


@dataclass(frozen=True)
class Segment:
    """Straight leg from ``start`` to ``end``; ``length_m`` is computed once."""

    start: Coordinate
    end: Coordinate
    length_m: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_coordinate(self.start))
        object.__setattr__(self, "end", _as_coordinate(self.end))
        object.__setattr__(self, "length_m", distance(self.start, self.end))

    def origin_of(self, progress: SegmentProgress) -> Coordinate:
        """Point that travel on this segment is measured from."""
        if isinstance(progress, AtProgress):
            return progress.position
        return self.start

    def remaining_m(self, progress: SegmentProgress) -> float:
        return distance(self.origin_of(progress), self.end)

    def next_position(
        self, progress: SegmentProgress, travel_distance_m: float
    ) -> tuple[Coordinate, MoveKind]:
        """Advance ``travel_distance_m`` meters toward ``end``.

        A step that reaches or overshoots the end point lands exactly on
        ``end``; whatever distance is left over is not applied here. A
        zero-length remainder always finishes, even for a zero step.

        Intermediate points are interpolated linearly in lat/lon space,
        which is accurate enough for the short legs of a driving route.
        """
        origin = self.origin_of(progress)
        remaining = distance(origin, self.end)

        if remaining <= 0.0 or travel_distance_m >= remaining:
            return self.end, MoveKind.SEGMENT_FINISHED

        fraction = travel_distance_m / remaining
        lat = origin.latitude + (self.end.latitude - origin.latitude) * fraction
        lon = origin.longitude + (self.end.longitude - origin.longitude) * fraction
        return Coordinate(lat, lon), MoveKind.IN_SEGMENT

"""Immutable routes built from a polyline, and the sources that supply them."""

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import polyline

from sim_location.core.exceptions import NotFoundError, RouteFormatError

from .distance import Coordinate
from .segment import Segment


@dataclass(frozen=True)
class Route:
    """Ordered segments of a computed driving route.

    Built once and never mutated; a changed route means a new Route.
    """

    segments: tuple[Segment, ...] = ()

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def total_length_m(self) -> float:
        return sum(segment.length_m for segment in self.segments)

    @property
    def points(self) -> list[Coordinate]:
        if not self.segments:
            return []
        return [self.segments[0].start] + [segment.end for segment in self.segments]


def build_route(points: Iterable[tuple[float, float]]) -> Route:
    """Pair consecutive points into segments. Fewer than two points yields an empty route."""
    coords = [Coordinate(float(lat), float(lon)) for lat, lon in points]
    return Route(tuple(Segment(a, b) for a, b in zip(coords, coords[1:])))


def decode_polyline(encoded: str, precision: int = 5) -> list[Coordinate]:
    """Decode polyline string to list of (lat, lon) coordinates."""
    try:
        coords = polyline.decode(encoded, precision)
    except (TypeError, ValueError, IndexError) as e:
        raise RouteFormatError(f"Invalid encoded polyline: {e}") from e
    return [Coordinate(lat, lon) for lat, lon in coords]


def parse_route_points(data: Any) -> list[Coordinate]:
    """Extract route points from decoded JSON.

    Accepted shapes:
        - ``[[lat, lon], ...]``
        - ``[{"lat": .., "lon": ..}, ...]`` (``lng`` / ``latitude`` / ``longitude`` also accepted)
        - GeoJSON ``LineString`` geometry or a Feature wrapping one (``[lon, lat]`` order)
        - ``{"polyline": "<encoded>", "precision": 5}``
    """
    if isinstance(data, dict):
        if "polyline" in data:
            try:
                precision = int(data.get("precision", 5))
            except (TypeError, ValueError) as e:
                raise RouteFormatError("Polyline precision must be an integer") from e
            return decode_polyline(data["polyline"], precision)
        if data.get("type") == "Feature":
            return parse_route_points(data.get("geometry"))
        if data.get("type") == "LineString":
            return [_lon_lat_pair(c) for c in data.get("coordinates", [])]
        raise RouteFormatError(
            "Unsupported route object", details={"keys": sorted(str(k) for k in data)}
        )

    if isinstance(data, list):
        return [_point(item) for item in data]

    raise RouteFormatError(f"Unsupported route data type: {type(data).__name__}")


def _point(item: Any) -> Coordinate:
    if isinstance(item, dict):
        lat = item.get("lat", item.get("latitude"))
        lon = item.get("lon", item.get("lng", item.get("longitude")))
        if lat is None or lon is None:
            raise RouteFormatError("Route point is missing lat/lon", details={"point": item})
        return _coordinate(lat, lon, item)
    if isinstance(item, Sequence) and not isinstance(item, str) and len(item) >= 2:
        return _coordinate(item[0], item[1], item)
    raise RouteFormatError("Route point must be [lat, lon] or an object", details={"point": item})


def _lon_lat_pair(item: Any) -> Coordinate:
    if not isinstance(item, Sequence) or len(item) < 2:
        raise RouteFormatError("GeoJSON position must be [lon, lat]", details={"point": item})
    return _coordinate(item[1], item[0], item)


def _coordinate(lat: Any, lon: Any, item: Any) -> Coordinate:
    try:
        return Coordinate(float(lat), float(lon))
    except (TypeError, ValueError) as e:
        raise RouteFormatError(
            "Route point coordinates must be numbers", details={"point": item}
        ) from e


def load_route_points(path: str | Path) -> list[Coordinate]:
    """Read route points from a JSON or GeoJSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise NotFoundError(f"Route file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise RouteFormatError(f"Route file is not valid JSON: {path}") from e
    return parse_route_points(data)


class RouteSource(Protocol):
    """Supplies an already-computed route as ordered points."""

    def get_route_points(self) -> list[Coordinate]: ...


class StaticRouteSource:
    def __init__(self, points: Iterable[tuple[float, float]]):
        self._points = [Coordinate(float(lat), float(lon)) for lat, lon in points]

    def get_route_points(self) -> list[Coordinate]:
        return list(self._points)


class FileRouteSource:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get_route_points(self) -> list[Coordinate]:
        return load_route_points(self.path)

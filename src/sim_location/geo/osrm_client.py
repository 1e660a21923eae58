import logging

import httpx
import requests
from pydantic import BaseModel

from sim_location.core.exceptions import (
    NetworkError,
    ServiceUnavailableError,
    ValidationError,
)
from sim_location.core.retry import RetryConfig, with_retry_sync

from .distance import Coordinate
from .route import decode_polyline

logger = logging.getLogger(__name__)


class RouteResponse(BaseModel):
    distance_meters: float
    duration_seconds: float
    geometry: list[tuple[float, float]]
    osrm_code: str


class NoRouteFoundError(ValidationError):
    """No route found between coordinates. Inherits from ValidationError (non-retryable)."""

    pass


class OSRMServiceError(ServiceUnavailableError):
    """OSRM service error (5xx). Inherits from ServiceUnavailableError (retryable)."""

    pass


class OSRMTimeoutError(NetworkError):
    """OSRM request timeout. Inherits from NetworkError (retryable)."""

    pass


def _parse_route(data: dict) -> RouteResponse:
    if data.get("code") == "NoRoute" or not data.get("routes"):
        raise NoRouteFoundError("No route found between coordinates")

    route = data["routes"][0]
    return RouteResponse(
        distance_meters=float(route["distance"]),
        duration_seconds=float(route["duration"]),
        geometry=decode_polyline(route["geometry"]),
        osrm_code=data["code"],
    )


class OSRMClient:
    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _route_url(self, origin: tuple[float, float], destination: tuple[float, float]) -> str:
        origin_lat, origin_lon = origin
        dest_lat, dest_lon = destination
        return (
            f"{self.base_url}/route/v1/driving/"
            f"{origin_lon},{origin_lat};{dest_lon},{dest_lat}"
        )

    async def get_route(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> RouteResponse:
        """Get route between two coordinates using OSRM."""
        url = self._route_url(origin, destination)
        params = {"overview": "full", "geometries": "polyline"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)

                if response.status_code >= 500:
                    raise OSRMServiceError(f"OSRM server error: {response.status_code}")

                return _parse_route(response.json())

        except httpx.TimeoutException as e:
            raise OSRMTimeoutError(f"Request timed out after {self.timeout}s") from e
        except httpx.NetworkError as e:
            raise OSRMServiceError(f"Network error: {e}") from e

    def get_route_sync(
        self, origin: tuple[float, float], destination: tuple[float, float]
    ) -> RouteResponse:
        """Synchronous route fetching for the command line.

        Uses the requests library so no event loop is needed.
        """
        url = self._route_url(origin, destination)
        params = {"overview": "full", "geometries": "polyline"}

        try:
            response = requests.get(url, params=params, timeout=self.timeout)

            if response.status_code >= 500:
                raise OSRMServiceError(f"OSRM server error: {response.status_code}")

            return _parse_route(response.json())

        except requests.Timeout as e:
            raise OSRMTimeoutError(f"Request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise OSRMServiceError(f"Network error: {e}") from e


class OSRMRouteSource:
    """Driving route from point A to point B, computed by an OSRM server."""

    def __init__(
        self,
        client: OSRMClient,
        origin: tuple[float, float],
        destination: tuple[float, float],
        retry_config: RetryConfig | None = None,
    ):
        self._client = client
        self.origin = origin
        self.destination = destination
        self._retry_config = retry_config

    def get_route_points(self) -> list[Coordinate]:
        response = with_retry_sync(
            lambda: self._client.get_route_sync(self.origin, self.destination),
            config=self._retry_config,
            operation_name="OSRM route request",
        )
        logger.info(
            f"Route computed: {response.distance_meters:.0f}m, "
            f"{response.duration_seconds:.0f}s, {len(response.geometry)} points"
        )
        return [Coordinate(lat, lon) for lat, lon in response.geometry]

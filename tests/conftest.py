import os
from collections.abc import Callable

import pytest

from sim_location.engine.parameters import SimulationParameters
from sim_location.geo.route import Route, build_route
from sim_location.sinks.base import RecordingSink

# 0.001 degrees of longitude at the equator, in meters (haversine, R = 6371 km)
EQUATOR_SEGMENT_M = 111.19492664455873


class ManualClock:
    """Stand-in for SimulationClock whose ticks are fired by the test."""

    instances: list["ManualClock"] = []

    def __init__(self, interval_fn: Callable[[], float]):
        self.interval_fn = interval_fn
        self.callback: Callable[[], bool | None] | None = None
        self.started = False
        self.stopped = False
        self._running = False
        ManualClock.instances.append(self)

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, callback: Callable[[], bool | None]) -> None:
        self.callback = callback
        self.started = True
        self._running = True

    def stop(self, timeout: float | None = 5.0) -> None:
        self.stopped = True
        self._running = False

    def tick(self) -> bool | None:
        assert self.callback is not None
        result = self.callback()
        if result is False:
            self._running = False
        return result

    def run_until_stopped(self, limit: int = 10_000) -> int:
        count = 0
        while self._running and count < limit:
            self.tick()
            count += 1
        return count


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of settings-driven tests."""
    for key in list(os.environ):
        if key.startswith(("SIM_", "BACKEND_", "OSRM_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def equator_points() -> list[tuple[float, float]]:
    """Three points ~111m apart along the equator."""
    return [(0.0, 0.0), (0.0, 0.001), (0.0, 0.002)]


@pytest.fixture
def equator_route(equator_points) -> Route:
    return build_route(equator_points)


@pytest.fixture
def single_segment_route() -> Route:
    return build_route([(0.0, 0.0), (0.0, 0.001)])


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def parameters() -> SimulationParameters:
    """11.2 m/s: ten ticks per equator segment."""
    return SimulationParameters(speed_mps=11.2, tick_interval_seconds=1.0)


@pytest.fixture
def manual_clock_factory():
    ManualClock.instances = []
    yield ManualClock
    ManualClock.instances = []

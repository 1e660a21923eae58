"""Live simulation parameters shared between the caller and the clock thread."""

import threading

from sim_location.settings import KMH_PER_MPS, SimulationSettings


class SimulationParameters:
    """Owner-controlled settings read by the simulator on every tick.

    The caller keeps a reference and may change speed or time scale while a
    simulation runs; the next tick picks the new value up.
    """

    def __init__(
        self,
        speed_mps: float,
        tick_interval_seconds: float = 1.0,
        time_scale: float = 1.0,
        carry_over_distance: bool = False,
    ):
        if tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be positive")
        self._lock = threading.Lock()
        self._speed_mps = speed_mps
        self._tick_interval_seconds = tick_interval_seconds
        self._time_scale = time_scale
        self._carry_over_distance = carry_over_distance

    @classmethod
    def from_settings(cls, settings: SimulationSettings) -> "SimulationParameters":
        return cls(
            speed_mps=settings.speed_mps,
            tick_interval_seconds=settings.tick_interval_seconds,
            time_scale=settings.time_scale,
            carry_over_distance=settings.carry_over_distance,
        )

    @property
    def speed_mps(self) -> float:
        with self._lock:
            return self._speed_mps

    @speed_mps.setter
    def speed_mps(self, value: float) -> None:
        with self._lock:
            self._speed_mps = value

    @property
    def speed_kmh(self) -> float:
        return self.speed_mps * KMH_PER_MPS

    def set_speed_kmh(self, value: float) -> None:
        self.speed_mps = value / KMH_PER_MPS

    @property
    def tick_interval_seconds(self) -> float:
        with self._lock:
            return self._tick_interval_seconds

    @property
    def time_scale(self) -> float:
        with self._lock:
            return self._time_scale

    @time_scale.setter
    def time_scale(self, value: float) -> None:
        if value <= 0:
            raise ValueError("time_scale must be positive")
        with self._lock:
            self._time_scale = value

    @property
    def carry_over_distance(self) -> bool:
        return self._carry_over_distance

    @property
    def effective_interval_seconds(self) -> float:
        """Wall-clock period between ticks."""
        with self._lock:
            return self._tick_interval_seconds * self._time_scale

    @property
    def travel_distance_m(self) -> float:
        """Distance covered by one tick at the current speed."""
        with self._lock:
            return self._speed_mps * self._tick_interval_seconds * self._time_scale

"""LocationSink protocol and in-process sinks."""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from sim_location.geo.distance import Coordinate


@runtime_checkable
class LocationSink(Protocol):
    """Receives each simulated fix and applies it to a GPS backend."""

    def report(self, position: Coordinate) -> None: ...

    def reset(self) -> None: ...


class RecordingSink:
    """Keeps every reported fix in memory."""

    def __init__(self) -> None:
        self.positions: list[Coordinate] = []
        self.reset_count = 0

    def report(self, position: Coordinate) -> None:
        self.positions.append(position)

    def reset(self) -> None:
        self.reset_count += 1


class CallbackSink:
    """Forwards every fix to a callable, e.g. a line printer."""

    def __init__(
        self,
        callback: Callable[[Coordinate], None],
        on_reset: Callable[[], None] | None = None,
    ):
        self._callback = callback
        self._on_reset = on_reset

    def report(self, position: Coordinate) -> None:
        self._callback(position)

    def reset(self) -> None:
        if self._on_reset is not None:
            self._on_reset()

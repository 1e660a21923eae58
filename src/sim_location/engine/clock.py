"""Fixed-interval ticker running on an owned background thread."""

import logging
import threading
from collections.abc import Callable

from sim_location.core.exceptions import ClockAlreadyRunningError

logger = logging.getLogger(__name__)

TickCallback = Callable[[], bool | None]


class SimulationClock:
    """Calls a tick callback at a fixed wall-clock period.

    The period is re-read through ``interval_fn`` before every wait, so a
    time-scale change applies from the next tick on. The wait on the stop
    event is the only place cancellation is observed: ``stop()`` prevents
    any further tick but lets one already running finish, then joins.

    The callback may return ``False`` to end the clock from inside the
    loop (e.g. the route finished).
    """

    def __init__(self, interval_fn: Callable[[], float], name: str = "simulation-clock"):
        self._interval_fn = interval_fn
        self._name = name
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._ticks = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def ticks(self) -> int:
        return self._ticks

    def start(self, callback: TickCallback) -> None:
        """Start ticking in a background thread."""
        if self.is_running:
            raise ClockAlreadyRunningError("Clock already driving a simulation")

        self._stop_event.clear()
        self._ticks = 0
        self._thread = threading.Thread(
            target=self._run,
            args=(callback,),
            name=self._name,
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Cancel future ticks and wait for the thread to exit. Idempotent."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Clock thread {self._name} did not exit within {timeout}s")

    def _run(self, callback: TickCallback) -> None:
        while not self._stop_event.wait(self._interval_fn()):
            self._ticks += 1
            if callback() is False:
                self._stop_event.set()
                break
        logger.debug(f"Clock {self._name} exited after {self._ticks} ticks")

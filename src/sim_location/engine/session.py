"""A simulation session: one simulator, its clock, and the sink it feeds."""

import logging
import threading
from collections.abc import Callable
from uuid import uuid4

from sim_location.core.exceptions import SimulationError, SinkError, TransientError
from sim_location.geo.distance import Coordinate
from sim_location.geo.route import Route
from sim_location.sim_logging import log_run_context
from sim_location.sinks.base import LocationSink

from .clock import SimulationClock
from .parameters import SimulationParameters
from .simulator import LocationUpdate, RouteSimulator, SimulatorState

logger = logging.getLogger(__name__)

UpdateListener = Callable[[LocationUpdate], None]
FailureListener = Callable[[SinkError], None]


class SimulationSession:
    """Plays a route into a LocationSink at the pace set by SimulationParameters.

    Exactly one clock drives the simulator at any time: ``start()`` fully
    stops a previous clock before starting the next one. Transient sink
    failures are logged and handed to failure listeners while the route
    keeps playing; a permanent one ends the run.
    """

    def __init__(
        self,
        sink: LocationSink,
        parameters: SimulationParameters,
        simulator: RouteSimulator | None = None,
        clock_factory: Callable[[Callable[[], float]], SimulationClock] | None = None,
    ):
        self._sink = sink
        self._parameters = parameters
        self._simulator = simulator or RouteSimulator()
        self._clock_factory = clock_factory or (lambda interval_fn: SimulationClock(interval_fn))
        self._clock: SimulationClock | None = None
        self._lock = threading.RLock()
        self._finished_event = threading.Event()
        self._run_id = "-"

        self._update_listeners: list[UpdateListener] = []
        self._failure_listeners: list[FailureListener] = []
        self._finished_listeners: list[Callable[[], None]] = []

        self.updates_emitted = 0
        self.sink_failures = 0
        self.last_update: LocationUpdate | None = None

    @property
    def parameters(self) -> SimulationParameters:
        return self._parameters

    @property
    def simulator(self) -> RouteSimulator:
        return self._simulator

    @property
    def state(self) -> SimulatorState:
        return self._simulator.state

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def is_running(self) -> bool:
        return self._clock is not None and self._clock.is_running

    def on_update(self, listener: UpdateListener) -> None:
        """Register a listener called with every LocationUpdate (e.g. a map marker)."""
        self._update_listeners.append(listener)

    def on_sink_failure(self, listener: FailureListener) -> None:
        """Register a listener called once per failed sink report."""
        self._failure_listeners.append(listener)

    def on_finished(self, listener: Callable[[], None]) -> None:
        self._finished_listeners.append(listener)

    def start(self, route: Route) -> None:
        """Play ``route`` from its first point, replacing any run in progress."""
        self.stop()

        self._simulator.start(route, self._parameters)
        self._run_id = str(uuid4())
        self._finished_event.clear()
        self.updates_emitted = 0
        self.sink_failures = 0
        self.last_update = None

        with log_run_context(self._run_id):
            logger.info(
                f"Session started: points={len(route.points)}, "
                f"interval={self._parameters.effective_interval_seconds:.2f}s"
            )

        clock = self._clock_factory(lambda: self._parameters.effective_interval_seconds)
        self._clock = clock
        clock.start(self._on_tick)

    def stop(self) -> None:
        """Cancel the clock, wait for it, and return the simulator to IDLE."""
        clock = self._clock
        self._clock = None
        if clock is not None:
            clock.stop()
        with self._lock:
            self._simulator.stop()
        self._finished_event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the route finishes or the session is stopped. False on timeout."""
        return self._finished_event.wait(timeout)

    def set_location(self, position: tuple[float, float]) -> None:
        """Push a single fix to the sink. Failures propagate to the caller."""
        coordinate = Coordinate(float(position[0]), float(position[1]))
        self._sink.report(coordinate)
        logger.info(f"Location set: {coordinate.latitude:.6f},{coordinate.longitude:.6f}")

    def reset_sink(self) -> None:
        """Stop any run and tell the backend to stop mocking."""
        self.stop()
        self._sink.reset()

    def _on_tick(self) -> bool:
        with log_run_context(self._run_id), self._lock:
            update = self._simulator.tick()
            if update is None:
                return False

            self.updates_emitted += 1
            self.last_update = update
            delivered = self._report(update)
            self._notify_update(update)

            if not delivered:
                self._simulator.stop()
            if update.is_final or not delivered:
                self._finish()
                return False
            return True

    def _report(self, update: LocationUpdate) -> bool:
        """Send one fix to the sink. Returns False when the run cannot continue.

        Transient failures are skipped over. A permanent one (no booted
        simulator, missing adb path) would fail identically on every tick,
        so it ends the run after being surfaced once. Any other exception
        from a sink is wrapped in a SinkError and treated as transient.
        """
        try:
            self._sink.report(update.position)
            return True
        except TransientError as e:
            error = e if isinstance(e, SinkError) else SinkError(e.message, details=e.details)
            logger.warning(f"Location sink failed, continuing: {error.message}")
            self._notify_failure(error)
            return True
        except SimulationError as e:
            error = SinkError(e.message, details={**e.details, "permanent": True})
            logger.error(f"Location sink failed, stopping simulation: {e.message}")
            self._notify_failure(error)
            return False
        except Exception as e:
            error = SinkError(str(e), details={"error_type": type(e).__name__})
            logger.warning(f"Location sink raised {type(e).__name__}, continuing: {e}")
            self._notify_failure(error)
            return True

    def _notify_failure(self, error: SinkError) -> None:
        self.sink_failures += 1
        for listener in self._failure_listeners:
            try:
                listener(error)
            except Exception as listener_error:
                logger.error(f"Sink failure listener error: {listener_error}")

    def _notify_update(self, update: LocationUpdate) -> None:
        for listener in self._update_listeners:
            try:
                listener(update)
            except Exception as e:
                logger.error(f"Location update listener error: {e}")

    def _finish(self) -> None:
        logger.info(
            f"Session finished: updates={self.updates_emitted}, sink_failures={self.sink_failures}"
        )
        self._finished_event.set()
        for listener in self._finished_listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Finished listener error: {e}")

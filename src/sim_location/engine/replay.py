"""Headless route replay on a SimPy clock.

Runs the same RouteSimulator the live session uses, but on simulated time,
so a whole route can be previewed instantly: every fix comes back with the
simulated second at which a live run would have reported it.
"""

from collections.abc import Generator
from dataclasses import dataclass

import simpy

from sim_location.geo.route import Route

from .parameters import SimulationParameters
from .simulator import LocationUpdate, RouteSimulator


@dataclass(frozen=True)
class TimedLocationUpdate:
    sim_time_s: float
    update: LocationUpdate


def simulate_route_process(
    env: simpy.Environment,
    simulator: RouteSimulator,
    parameters: SimulationParameters,
    results: list[TimedLocationUpdate],
    max_ticks: int | None = None,
) -> Generator[simpy.Event]:
    """SimPy process ticking ``simulator`` once per interval until the route ends.

    Args:
        env: SimPy environment for timeouts
        simulator: Simulator already started on a route
        parameters: Live parameters; the interval is re-read before each wait
        results: List the timed updates are appended to
        max_ticks: Optional safety cap, e.g. for a zero speed

    Yields:
        SimPy timeout events for each tick interval
    """
    ticks = 0
    while simulator.is_running:
        if max_ticks is not None and ticks >= max_ticks:
            simulator.stop()
            return

        yield env.timeout(parameters.effective_interval_seconds)
        ticks += 1

        update = simulator.tick()
        if update is None:
            return
        results.append(TimedLocationUpdate(sim_time_s=env.now, update=update))


def replay_route(
    route: Route,
    parameters: SimulationParameters,
    max_ticks: int | None = 100_000,
) -> list[TimedLocationUpdate]:
    """Run a whole route on simulated time and return every fix."""
    env = simpy.Environment()
    simulator = RouteSimulator()
    simulator.start(route, parameters)

    results: list[TimedLocationUpdate] = []
    env.process(simulate_route_process(env, simulator, parameters, results, max_ticks))
    env.run()
    return results

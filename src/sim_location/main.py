"""
sim-location - command line entry point

Drives the route simulation engine from the terminal: pick a backend
(iOS simulator, iOS device, Android device), then set a single location,
play a route at a given speed, or preview a route without touching any
device.
"""

import argparse
import logging
import os
import sys
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sim_location.core.exceptions import SimulationError, SinkError
from sim_location.core.retry import RetryConfig
from sim_location.devices.discovery import list_booted_simulators, list_connected_devices
from sim_location.engine import SimulationParameters, SimulationSession, replay_route
from sim_location.engine.simulator import LocationUpdate
from sim_location.geo.distance import Coordinate
from sim_location.geo.osrm_client import OSRMClient, OSRMRouteSource
from sim_location.geo.route import FileRouteSource, Route, RouteSource, build_route
from sim_location.geo.segment import MoveKind
from sim_location.settings import KMH_PER_MPS, Settings, get_settings
from sim_location.sim_logging import setup_logging
from sim_location.sinks.android import AndroidSink
from sim_location.sinks.base import LocationSink
from sim_location.sinks.factory import create_sink

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_coordinate(value: str) -> Coordinate:
    """Parse ``"lat,lon"`` into a Coordinate."""
    try:
        lat, lon = (float(part) for part in value.split(","))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Expected LAT,LON, got {value!r}") from e
    return Coordinate(lat, lon)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sim-location",
        description="Spoof GPS locations on iOS simulators, iOS devices and Android devices",
    )
    parser.add_argument(
        "--backend",
        choices=["simulator", "device", "android"],
        help="Where fixes are sent (default: BACKEND_DEVICE_TYPE or simulator)",
    )
    parser.add_argument("--udid", help="Simulator or device udid to target")
    parser.add_argument("--adb-path", help="Path to the adb executable")
    parser.add_argument("--adb-device-id", help="adb serial of the Android device")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("devices", help="List booted simulators and connected iOS devices")

    set_parser = subparsers.add_parser("set", help="Set a single location")
    set_parser.add_argument("location", type=parse_coordinate, help="LAT,LON (put -- before a negative latitude)")

    for name, help_text in (
        ("simulate", "Play a route on the selected backend"),
        ("preview", "Replay a route on simulated time and print every fix"),
    ):
        route_parser = subparsers.add_parser(name, help=help_text)
        source = route_parser.add_mutually_exclusive_group(required=True)
        source.add_argument("--route", help="JSON / GeoJSON / polyline route file")
        source.add_argument(
            "--from",
            dest="origin",
            type=parse_coordinate,
            help="Route start LAT,LON (route computed by OSRM)",
        )
        route_parser.add_argument(
            "--to", dest="destination", type=parse_coordinate, help="Route end LAT,LON"
        )
        route_parser.add_argument("--speed", type=float, help="Speed in km/h")
        route_parser.add_argument("--interval", type=float, help="Seconds between fixes")
        route_parser.add_argument("--time-scale", type=float, help="Tick interval multiplier")
        route_parser.add_argument(
            "--carry-over",
            action="store_true",
            default=None,
            help="Carry distance left at a segment end into the next segment",
        )

    subparsers.add_parser("reset", help="Stop mocking and restore the real location")

    install_parser = subparsers.add_parser(
        "install-helper", help="Install the Android mock location helper app"
    )
    install_parser.add_argument("apk", help="Path to the helper APK")

    return parser


def _override(model: ModelT, updates: dict[str, Any]) -> ModelT:
    """Re-validate ``model`` with the non-None ``updates`` applied."""
    values = {key: value for key, value in updates.items() if value is not None}
    if not values:
        return model
    return type(model).model_validate({**model.model_dump(), **values})


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Layer command line flags over environment settings."""
    backend = _override(
        settings.backend,
        {
            "device_type": args.backend,
            "adb_path": args.adb_path,
            "adb_device_id": args.adb_device_id,
        },
    )
    if args.udid is not None:
        field = "device_udid" if backend.device_type == "device" else "simulator_udid"
        backend = _override(backend, {field: args.udid})

    simulation = _override(
        settings.simulation,
        {
            "speed_kmh": getattr(args, "speed", None),
            "tick_interval_seconds": getattr(args, "interval", None),
            "time_scale": getattr(args, "time_scale", None),
            "carry_over_distance": getattr(args, "carry_over", None),
            "log_level": args.log_level,
        },
    )
    return settings.model_copy(update={"backend": backend, "simulation": simulation})


def resolve_route_source(args: argparse.Namespace, settings: Settings) -> RouteSource:
    if args.route:
        return FileRouteSource(args.route)
    if args.destination is None:
        raise SimulationError("--to is required together with --from")

    client = OSRMClient(settings.osrm.base_url, timeout=settings.osrm.timeout_seconds)
    retry_config = RetryConfig(
        max_attempts=settings.osrm.max_retries + 1,
        base_delay=settings.osrm.retry_base_delay,
    )
    return OSRMRouteSource(client, args.origin, args.destination, retry_config=retry_config)


def load_route(args: argparse.Namespace, settings: Settings) -> Route:
    route = build_route(resolve_route_source(args, settings).get_route_points())
    distances = ", ".join(f"{segment.length_m:.1f}" for segment in route.segments)
    logger.info(f"Route segments (m): [{distances}]")
    return route


def format_update(update: LocationUpdate) -> str:
    marker = "finish to" if update.kind == MoveKind.SEGMENT_FINISHED else "move to"
    return (
        f"{marker} {update.position.latitude:.6f},{update.position.longitude:.6f} "
        f"segment={update.segment_index} distance={update.distance_covered_m:.2f}m"
    )


def cmd_devices(settings: Settings) -> int:
    xcrun = settings.backend.xcrun_path
    try:
        simulators = list_booted_simulators(xcrun)
    except SimulationError as e:
        print(f"Simulators: {e.message}")
    else:
        print("Booted simulators:")
        for simulator in simulators:
            print(f"  {simulator.udid}  {simulator.name}")

    try:
        devices = list_connected_devices(xcrun)
    except SimulationError as e:
        print(f"Devices: {e.message}")
    else:
        print("Connected devices:")
        for device in devices:
            print(f"  {device.udid}  {device.name}")
    return 0


def cmd_set(sink: LocationSink, settings: Settings, location: Coordinate) -> int:
    parameters = SimulationParameters.from_settings(settings.simulation)
    SimulationSession(sink, parameters).set_location(location)
    return 0


def cmd_simulate(sink: LocationSink, settings: Settings, route: Route) -> int:
    parameters = SimulationParameters.from_settings(settings.simulation)
    session = SimulationSession(sink, parameters)
    session.on_update(lambda update: print(format_update(update), flush=True))
    session.on_sink_failure(lambda error: print(f"warning: {error.message}", file=sys.stderr))

    logger.info(
        f"Simulating route: {route.total_length_m:.0f}m at "
        f"{parameters.speed_mps * KMH_PER_MPS:.1f}km/h"
    )
    session.start(route)
    try:
        while not session.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping simulation")
    finally:
        session.stop()
    return 0 if session.sink_failures == 0 else 2


def cmd_preview(settings: Settings, route: Route) -> int:
    parameters = SimulationParameters.from_settings(settings.simulation)
    results = replay_route(route, parameters)
    for timed in results:
        print(f"t={timed.sim_time_s:8.1f}s  {format_update(timed.update)}")
    print(
        f"{len(results)} fixes, {route.total_length_m:.1f}m, "
        f"{results[-1].sim_time_s if results else 0.0:.1f}s simulated"
    )
    return 0


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_overrides(get_settings(), args)
    except PydanticValidationError as e:
        parser.error(str(e))

    log_format = os.environ.get("LOG_FORMAT") or settings.simulation.log_format
    setup_logging(
        level=settings.simulation.log_level,
        json_output=log_format == "json",
        environment=os.environ.get("ENVIRONMENT", "development"),
    )

    try:
        if args.command == "devices":
            return cmd_devices(settings)

        sink = create_sink(settings.backend)
        if args.command == "set":
            return cmd_set(sink, settings, args.location)
        if args.command == "reset":
            sink.reset()
            return 0
        if args.command == "install-helper":
            if not isinstance(sink, AndroidSink):
                raise SimulationError("install-helper requires --backend android")
            sink.install_helper(args.apk)
            return 0

        route = load_route(args, settings)
        if args.command == "preview":
            return cmd_preview(settings, route)
        return cmd_simulate(sink, settings, route)

    except SinkError as e:
        logger.error(f"Backend failed: {e.message}")
        return 1
    except SimulationError as e:
        logger.error(e.message)
        return 1


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()

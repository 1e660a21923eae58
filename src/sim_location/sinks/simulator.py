"""iOS Simulator backend driven by ``xcrun simctl location``."""

import logging

from sim_location.core.exceptions import DeviceDiscoveryError, SinkError
from sim_location.devices.discovery import list_booted_simulators
from sim_location.geo.distance import Coordinate

from .process import format_coordinate, run_tool

logger = logging.getLogger(__name__)


class SimulatorSink:
    """Sets the location of one or all booted simulators.

    With no udid selected the fix goes to every booted simulator, looked up
    once per report so simulators booted mid-run are picked up.
    """

    def __init__(
        self,
        udid: str = "",
        xcrun_path: str = "/usr/bin/xcrun",
        timeout: float = 10.0,
    ):
        self.udid = udid
        self.xcrun_path = xcrun_path
        self.timeout = timeout

    def _target_udids(self) -> list[str]:
        if self.udid:
            return [self.udid]
        try:
            simulators = list_booted_simulators(self.xcrun_path, self.timeout)
        except DeviceDiscoveryError as e:
            # a failed `simctl list` may succeed on the next tick
            raise SinkError(e.message, details=e.details) from e
        return [s.udid for s in simulators]

    def report(self, position: Coordinate) -> None:
        value = f"{format_coordinate(position[0])},{format_coordinate(position[1])}"
        for udid in self._target_udids():
            run_tool(
                [self.xcrun_path, "simctl", "location", udid, "set", value],
                timeout=self.timeout,
            )

    def reset(self) -> None:
        for udid in self._target_udids():
            run_tool([self.xcrun_path, "simctl", "location", udid, "clear"], timeout=self.timeout)
        logger.info("Simulator location cleared")

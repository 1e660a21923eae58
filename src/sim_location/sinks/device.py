"""Physical iOS device backend driven by ``idevicelocation``."""

import logging

from sim_location.core.exceptions import SinkError
from sim_location.geo.distance import Coordinate

from .process import format_coordinate, run_tool

logger = logging.getLogger(__name__)

INSTALL_HINT = "Try to install: `brew install libimobiledevice`"


class DeviceSink:
    """Sets the location of a physical iOS device, or the first one connected."""

    def __init__(
        self,
        udid: str = "",
        idevicelocation_path: str = "idevicelocation",
        timeout: float = 10.0,
    ):
        self.udid = udid
        self.idevicelocation_path = idevicelocation_path
        self.timeout = timeout

    def _command(self, args: list[str]) -> list[str]:
        command = [self.idevicelocation_path]
        if self.udid:
            command += ["-u", self.udid]
        return command + args

    def report(self, position: Coordinate) -> None:
        # "--" keeps negative latitudes from being parsed as options
        args = ["--", format_coordinate(position[0]), format_coordinate(position[1])]
        try:
            run_tool(self._command(args), timeout=self.timeout)
        except SinkError as e:
            raise SinkError(f"{e.message}\n{INSTALL_HINT}", details=e.details) from e

    def reset(self) -> None:
        run_tool(self._command(["-s"]), timeout=self.timeout)
        logger.info("Device location reset")

"""Android backend: broadcasts to the mock-location helper app over ``adb``."""

import logging
from pathlib import Path

from sim_location.core.exceptions import BackendConfigurationError
from sim_location.geo.distance import Coordinate

from .process import format_coordinate, run_tool

logger = logging.getLogger(__name__)

SEND_MOCK_ACTION = "send.mock"
STOP_MOCK_ACTION = "stop.mock"


class AndroidSink:
    """Sends fixes to an Android device through the mock location helper app."""

    def __init__(self, adb_path: str, device_id: str, timeout: float = 10.0):
        self.adb_path = adb_path
        self.device_id = device_id
        self.timeout = timeout

    def _validate(self) -> None:
        if not self.device_id:
            raise BackendConfigurationError("Please specify device id")
        if not self.adb_path:
            raise BackendConfigurationError("Please specify path to adb")

    def _broadcast(self, action: str, extras: list[str] | None = None) -> None:
        self._validate()
        args = [self.adb_path, "-s", self.device_id, "shell", "am", "broadcast", "-a", action]
        run_tool(args + (extras or []), timeout=self.timeout)

    def report(self, position: Coordinate) -> None:
        lat = format_coordinate(position[0])
        lon = format_coordinate(position[1])
        self._broadcast(SEND_MOCK_ACTION, ["-e", "lat", lat, "-e", "lon", lon])

    def reset(self) -> None:
        self._broadcast(STOP_MOCK_ACTION)
        logger.info("Android mock location stopped")

    def install_helper(self, apk_path: str | Path) -> None:
        """Install the helper app that applies broadcast locations on the device."""
        self._validate()
        apk = Path(apk_path)
        if not apk.is_file():
            raise BackendConfigurationError(f"Helper APK not found: {apk}")
        # adb install prints progress on stderr, so only the exit status counts
        run_tool(
            [self.adb_path, "-s", self.device_id, "install", str(apk)],
            timeout=max(self.timeout, 120.0),
            fail_on_stderr=False,
        )
        logger.info(
            "Helper app installed. Open MockLocationForDeveloper on the phone "
            "and grant the requested permissions"
        )

"""Build the LocationSink selected in BackendSettings."""

from sim_location.settings import BackendSettings

from .android import AndroidSink
from .base import LocationSink
from .device import DeviceSink
from .simulator import SimulatorSink


def create_sink(settings: BackendSettings) -> LocationSink:
    timeout = settings.command_timeout_seconds
    if settings.device_type == "android":
        return AndroidSink(settings.adb_path, settings.adb_device_id, timeout=timeout)
    if settings.device_type == "device":
        return DeviceSink(settings.device_udid, settings.idevicelocation_path, timeout=timeout)
    return SimulatorSink(settings.simulator_udid, settings.xcrun_path, timeout=timeout)

"""Discovery of booted iOS simulators and connected iOS devices."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from sim_location.core.exceptions import DeviceDiscoveryError, NoBootedSimulatorsError, SinkError
from sim_location.sinks.process import run_tool

logger = logging.getLogger(__name__)


class Simulator(BaseModel):
    udid: str
    name: str
    state: str = "Shutdown"
    is_available: bool = Field(default=True, alias="isAvailable")
    runtime: str = ""

    @property
    def is_booted(self) -> bool:
        return self.state == "Booted"


@dataclass(frozen=True)
class Device:
    """A physical iPhone or iPad visible to xctrace."""

    udid: str
    name: str


def parse_simctl_devices(output: str) -> list[Simulator]:
    """Parse ``xcrun simctl list -j devices`` and keep booted simulators."""
    try:
        data: dict[str, Any] = json.loads(output)
        runtimes: dict[str, list[dict[str, Any]]] = data["devices"]
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise DeviceDiscoveryError("Failed to read output from simctl") from e
    if not isinstance(runtimes, dict):
        raise DeviceDiscoveryError("Failed to read output from simctl")

    booted: list[Simulator] = []
    for runtime, entries in runtimes.items():
        for entry in entries:
            try:
                simulator = Simulator.model_validate({**entry, "runtime": runtime})
            except PydanticValidationError:
                logger.debug(f"Skipping unreadable simctl entry: {entry}")
                continue
            if simulator.is_booted:
                booted.append(simulator)
    return booted


def parse_xctrace_devices(output: str) -> list[Device]:
    """Parse ``xcrun xctrace list devices`` and keep physical iPhones and iPads.

    Device lines look like ``Jane's iPhone (17.0) (00008110-001A2B3C4D5E)``;
    the udid is the last parenthesised token.
    """
    devices: list[Device] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or "Simulator" in line:
            continue
        if "iPhone" not in line and "iPad" not in line:
            continue
        udid = line.split(" ")[-1].replace("(", "").replace(")", "")
        if udid:
            devices.append(Device(udid=udid, name=line))
    return devices


def list_booted_simulators(
    xcrun_path: str = "/usr/bin/xcrun", timeout: float = 10.0
) -> list[Simulator]:
    try:
        output = run_tool(
            [xcrun_path, "simctl", "list", "-j", "devices"], timeout=timeout, fail_on_stderr=False
        )
    except SinkError as e:
        raise DeviceDiscoveryError(f"Running `simctl list` failed: {e.message}", e.details) from e

    simulators = parse_simctl_devices(output)
    if not simulators:
        raise NoBootedSimulatorsError("No simulators are currently booted")
    return simulators


def list_connected_devices(
    xcrun_path: str = "/usr/bin/xcrun", timeout: float = 30.0
) -> list[Device]:
    try:
        output = run_tool(
            [xcrun_path, "xctrace", "list", "devices"], timeout=timeout, fail_on_stderr=False
        )
    except SinkError as e:
        raise DeviceDiscoveryError(f"Running `xctrace list` failed: {e.message}", e.details) from e
    return parse_xctrace_devices(output)

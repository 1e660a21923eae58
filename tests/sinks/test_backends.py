"""Tests for the simulator, device and Android sinks and the sink factory."""

import json
import subprocess
from unittest.mock import patch

import pytest

from sim_location.core.exceptions import (
    BackendConfigurationError,
    DeviceDiscoveryError,
    NoBootedSimulatorsError,
    SinkError,
)
from sim_location.devices.discovery import Simulator
from sim_location.engine.parameters import SimulationParameters
from sim_location.engine.session import SimulationSession
from sim_location.engine.simulator import SimulatorState
from sim_location.geo.distance import Coordinate
from sim_location.settings import BackendSettings
from sim_location.sinks.android import AndroidSink
from sim_location.sinks.base import CallbackSink, LocationSink, RecordingSink
from sim_location.sinks.device import DeviceSink
from sim_location.sinks.factory import create_sink
from sim_location.sinks.simulator import SimulatorSink

RUN = "sim_location.sinks.process.subprocess.run"
APPLE_PARK = Coordinate(37.3317, -122.0307)


def completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def commands(mock_run) -> list[list[str]]:
    return [c.args[0] for c in mock_run.call_args_list]


@pytest.mark.unit
class TestInProcessSinks:
    def test_recording_sink(self):
        sink = RecordingSink()
        sink.report(APPLE_PARK)
        sink.reset()

        assert sink.positions == [APPLE_PARK]
        assert sink.reset_count == 1

    def test_callback_sink(self):
        seen: list[Coordinate] = []
        resets: list[bool] = []
        sink = CallbackSink(seen.append, on_reset=lambda: resets.append(True))

        sink.report(APPLE_PARK)
        sink.reset()

        assert seen == [APPLE_PARK]
        assert resets == [True]

    def test_callback_sink_without_reset_hook(self):
        CallbackSink(lambda position: None).reset()

    @pytest.mark.parametrize(
        "sink",
        [
            RecordingSink(),
            CallbackSink(lambda position: None),
            SimulatorSink(),
            DeviceSink(),
            AndroidSink("adb", "emulator-5554"),
        ],
    )
    def test_all_sinks_satisfy_protocol(self, sink):
        assert isinstance(sink, LocationSink)


@pytest.mark.unit
class TestSimulatorSink:
    def test_report_to_selected_simulator(self):
        sink = SimulatorSink(udid="SIM-1", xcrun_path="/usr/bin/xcrun")
        with patch(RUN, return_value=completed()) as mock_run:
            sink.report(APPLE_PARK)

        assert commands(mock_run) == [
            ["/usr/bin/xcrun", "simctl", "location", "SIM-1", "set", "37.3317000,-122.0307000"]
        ]

    def test_report_to_every_booted_simulator(self):
        booted = [
            Simulator(udid="A", name="iPhone 15", state="Booted"),
            Simulator(udid="B", name="iPad Air", state="Booted"),
        ]
        sink = SimulatorSink()
        with (
            patch("sim_location.sinks.simulator.list_booted_simulators", return_value=booted),
            patch(RUN, return_value=completed()) as mock_run,
        ):
            sink.report(APPLE_PARK)

        assert [cmd[3] for cmd in commands(mock_run)] == ["A", "B"]

    def test_failed_discovery_run_is_transient(self):
        sink = SimulatorSink()
        with patch(
            "sim_location.sinks.simulator.list_booted_simulators",
            side_effect=DeviceDiscoveryError("Running `simctl list` failed: timed out"),
        ):
            with pytest.raises(SinkError, match="simctl list") as exc_info:
                sink.report(APPLE_PARK)

        assert not isinstance(exc_info.value, DeviceDiscoveryError)

    def test_report_without_booted_simulators(self):
        sink = SimulatorSink()
        with patch(
            "sim_location.sinks.simulator.list_booted_simulators",
            side_effect=NoBootedSimulatorsError("No simulators are currently booted"),
        ):
            with pytest.raises(NoBootedSimulatorsError):
                sink.report(APPLE_PARK)

    def test_reset_clears_location(self):
        sink = SimulatorSink(udid="SIM-1")
        with patch(RUN, return_value=completed()) as mock_run:
            sink.reset()

        assert commands(mock_run) == [["/usr/bin/xcrun", "simctl", "location", "SIM-1", "clear"]]

    def test_tool_error_surfaces(self):
        sink = SimulatorSink(udid="SIM-1")
        with patch(RUN, return_value=completed(returncode=1, stderr="Invalid device")):
            with pytest.raises(SinkError, match="Invalid device"):
                sink.report(APPLE_PARK)

    def test_session_keeps_playing_through_a_failed_simctl_list(
        self, equator_route, manual_clock_factory
    ):
        booted = json.dumps(
            {"devices": {"ios": [{"udid": "SIM-1", "name": "iPhone 15", "state": "Booted"}]}}
        )
        list_calls = 0

        def fake_run(args, **kwargs):
            nonlocal list_calls
            if args[1:3] == ["simctl", "list"]:
                list_calls += 1
                if list_calls == 2:
                    raise subprocess.TimeoutExpired(cmd=args, timeout=10.0)
                return completed(stdout=booted)
            return completed()

        session = SimulationSession(
            SimulatorSink(),
            SimulationParameters(speed_mps=11.2),
            clock_factory=manual_clock_factory,
        )
        with patch(RUN, side_effect=fake_run):
            session.start(equator_route)
            ticks = manual_clock_factory.instances[-1].run_until_stopped()

        assert ticks == 20
        assert session.sink_failures == 1
        assert session.state == SimulatorState.FINISHED


@pytest.mark.unit
class TestDeviceSink:
    def test_report_with_udid(self):
        sink = DeviceSink(udid="00008110-001A", idevicelocation_path="/opt/bin/idevicelocation")
        with patch(RUN, return_value=completed()) as mock_run:
            sink.report(APPLE_PARK)

        assert commands(mock_run) == [
            [
                "/opt/bin/idevicelocation",
                "-u",
                "00008110-001A",
                "--",
                "37.3317000",
                "-122.0307000",
            ]
        ]

    def test_report_without_udid_uses_first_device(self):
        sink = DeviceSink()
        with patch(RUN, return_value=completed()) as mock_run:
            sink.report(Coordinate(-33.8688, 151.2093))

        assert commands(mock_run) == [["idevicelocation", "--", "-33.8688000", "151.2093000"]]

    def test_failure_suggests_install(self):
        sink = DeviceSink()
        with patch(RUN, side_effect=FileNotFoundError("idevicelocation")):
            with pytest.raises(SinkError) as exc_info:
                sink.report(APPLE_PARK)

        assert "brew install libimobiledevice" in exc_info.value.message

    def test_reset(self):
        sink = DeviceSink(udid="X")
        with patch(RUN, return_value=completed()) as mock_run:
            sink.reset()

        assert commands(mock_run) == [["idevicelocation", "-u", "X", "-s"]]


@pytest.mark.unit
class TestAndroidSink:
    def test_report_broadcasts_mock_location(self):
        sink = AndroidSink("/opt/adb", "emulator-5554")
        with patch(RUN, return_value=completed()) as mock_run:
            sink.report(APPLE_PARK)

        assert commands(mock_run) == [
            [
                "/opt/adb",
                "-s",
                "emulator-5554",
                "shell",
                "am",
                "broadcast",
                "-a",
                "send.mock",
                "-e",
                "lat",
                "37.3317000",
                "-e",
                "lon",
                "-122.0307000",
            ]
        ]

    def test_reset_broadcasts_stop(self):
        sink = AndroidSink("/opt/adb", "emulator-5554")
        with patch(RUN, return_value=completed()) as mock_run:
            sink.reset()

        assert commands(mock_run)[0][-2:] == ["-a", "stop.mock"]

    def test_missing_device_id_checked_first(self):
        sink = AndroidSink("", "")
        with patch(RUN) as mock_run:
            with pytest.raises(BackendConfigurationError, match="device id"):
                sink.report(APPLE_PARK)
        mock_run.assert_not_called()

    def test_missing_adb_path(self):
        sink = AndroidSink("", "emulator-5554")
        with pytest.raises(BackendConfigurationError, match="path to adb"):
            sink.reset()

    def test_install_helper(self, tmp_path):
        apk = tmp_path / "helper.apk"
        apk.write_bytes(b"PK")
        sink = AndroidSink("/opt/adb", "emulator-5554", timeout=5.0)

        with patch(RUN, return_value=completed(stderr="Performing Streamed Install")) as mock_run:
            sink.install_helper(apk)

        assert commands(mock_run) == [["/opt/adb", "-s", "emulator-5554", "install", str(apk)]]
        assert mock_run.call_args.kwargs["timeout"] == 120.0

    def test_install_helper_missing_apk(self, tmp_path):
        sink = AndroidSink("/opt/adb", "emulator-5554")
        with pytest.raises(BackendConfigurationError, match="not found"):
            sink.install_helper(tmp_path / "missing.apk")


@pytest.mark.unit
class TestCreateSink:
    def test_simulator_is_default(self):
        sink = create_sink(BackendSettings(simulator_udid="SIM-1"))
        assert isinstance(sink, SimulatorSink)
        assert sink.udid == "SIM-1"

    def test_device(self):
        sink = create_sink(BackendSettings(device_type="device", device_udid="D1"))
        assert isinstance(sink, DeviceSink)
        assert sink.udid == "D1"

    def test_android(self):
        sink = create_sink(
            BackendSettings(
                device_type="android",
                adb_path="/opt/adb",
                adb_device_id="emulator-5554",
                command_timeout_seconds=3.0,
            )
        )
        assert isinstance(sink, AndroidSink)
        assert sink.device_id == "emulator-5554"
        assert sink.timeout == 3.0

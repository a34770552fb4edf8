"""Tests for the Android emulator driver."""

import logging
from collections.abc import Iterator, Sequence
from unittest.mock import patch

import pytest

from launch_probe.drivers.android_emulator import (
    AndroidEmulatorConfig,
    AndroidEmulatorDriver,
)
from launch_probe.drivers.android_emulator.driver import (
    AndroidHandle,
    has_focus,
    intent_extras,
    launch_failure,
)
from launch_probe.errors import CaptureError, LaunchError
from launch_probe.probe import execute_probe
from launch_probe.process import CommandResult
from launch_probe.testing.commands import FakeCommandLine, command_result
from launch_probe.testing.factories import (
    PNG_BYTES,
    TargetConfigurationFactory,
    TestRunFactory,
)

PACKAGE = "com.example.signin"
ACTIVITY = ".MainActivity"
DUMPSYS_FOCUSED = (
    "WINDOW MANAGER WINDOWS (dumpsys window windows)\n"
    f"  mCurrentFocus=Window{{5e1c u0 {PACKAGE}/{PACKAGE}.MainActivity}}\n"
    f"  mFocusedApp=ActivityRecord{{a1b2 u0 {PACKAGE}/.MainActivity t12}}\n"
)
DUMPSYS_LAUNCHER = (
    "  mCurrentFocus=Window{77aa u0 com.android.launcher3/"
    "com.android.launcher3.Launcher}\n"
)
AM_START_OK = (
    f"Starting: Intent {{ cmp={PACKAGE}/{ACTIVITY} }}\n"
    "Status: ok\n"
    "LaunchState: COLD\n"
    "Complete\n"
)


def healthy_device(args: Sequence[str]) -> CommandResult:
    """Answer adb commands like a device running the app in the foreground."""
    command = tuple(args[1:])
    if command[:1] == ("-s",):
        command = command[2:]
    if command[:2] == ("shell", "pidof"):
        return command_result("3131\n")
    if command[:3] == ("shell", "am", "start"):
        return command_result(AM_START_OK)
    if command[:3] == ("shell", "dumpsys", "window"):
        return command_result(DUMPSYS_FOCUSED)
    if command[:2] == ("exec-out", "screencap"):
        return command_result(PNG_BYTES)
    return command_result()


@pytest.fixture
def config() -> AndroidEmulatorConfig:
    """Create test configuration."""
    return AndroidEmulatorConfig(package=PACKAGE, activity=ACTIVITY)


@pytest.fixture
def driver(config: AndroidEmulatorConfig) -> AndroidEmulatorDriver:
    """Create driver."""
    return AndroidEmulatorDriver(config=config)


@pytest.fixture
def commands() -> Iterator[FakeCommandLine]:
    """Replace run_command with a healthy device."""
    fake = FakeCommandLine(responder=healthy_device)
    with patch("launch_probe.drivers.android_emulator.driver.run_command", new=fake):
        yield fake


def test_has_focus() -> None:
    """Detects whether the package owns the focused window."""
    assert has_focus(DUMPSYS_FOCUSED, PACKAGE)
    assert not has_focus(DUMPSYS_LAUNCHER, PACKAGE)


def test_launch_failure() -> None:
    """Finds the error line printed by am start."""
    output = (
        "Starting: Intent { cmp=x/.Y }\n"
        "Error type 3\n"
        "Error: Activity does not exist.\n"
    )

    assert launch_failure(output) == "Error type 3"
    assert launch_failure(AM_START_OK) is None


def test_intent_extras() -> None:
    """Environment becomes string extras followed by raw launch arguments."""
    configuration = TargetConfigurationFactory.build(
        environment={"API_URL": "http://10.0.2.2"},
        launch_arguments=["--ez", "ui_test", "true"],
    )

    assert intent_extras(configuration) == [
        "--es",
        "API_URL",
        "http://10.0.2.2",
        "--ez",
        "ui_test",
        "true",
    ]
    assert intent_extras(None) == []


class TestLaunch:
    """Tests for launch."""

    async def test_cold_starts_activity(
        self, driver: AndroidEmulatorDriver, commands: FakeCommandLine
    ) -> None:
        """Force-stops, applies night mode and starts the activity."""
        configuration = TargetConfigurationFactory.build(name="dark", appearance="dark")

        handle = await driver.launch(TestRunFactory.build(configuration=configuration))

        assert handle.package == PACKAGE
        assert handle.pid == "3131"
        assert commands.calls[:3] == [
            ("adb", "shell", "cmd", "uimode", "night", "yes"),
            ("adb", "shell", "am", "force-stop", PACKAGE),
            ("adb", "shell", "am", "start", "-W", "-n", f"{PACKAGE}/{ACTIVITY}"),
        ]

    async def test_targets_configured_serial(self, commands: FakeCommandLine) -> None:
        """Passes -s serial to every adb call."""
        driver = AndroidEmulatorDriver(
            config=AndroidEmulatorConfig(
                package=PACKAGE, activity=ACTIVITY, serial="emulator-5554"
            )
        )

        await driver.launch(TestRunFactory.build())

        assert all(
            call[:3] == ("adb", "-s", "emulator-5554") for call in commands.calls
        )

    async def test_raises_when_adb_missing(self, driver: AndroidEmulatorDriver) -> None:
        """Missing adb is a launch error."""

        def missing(args: Sequence[str]) -> CommandResult:
            raise FileNotFoundError(args[0])

        with (
            patch(
                "launch_probe.drivers.android_emulator.driver.run_command",
                new=FakeCommandLine(responder=missing),
            ),
            pytest.raises(LaunchError, match="Cannot run adb"),
        ):
            await driver.launch(TestRunFactory.build())

    async def test_raises_when_activity_missing(
        self, driver: AndroidEmulatorDriver
    ) -> None:
        """An error printed by am start is a launch error."""

        def missing_activity(args: Sequence[str]) -> CommandResult:
            if args[1:4] == ("shell", "am", "start"):
                return command_result("Error: Activity class does not exist.\n")
            return healthy_device(args)

        with (
            patch(
                "launch_probe.drivers.android_emulator.driver.run_command",
                new=FakeCommandLine(responder=missing_activity),
            ),
            pytest.raises(LaunchError, match="Activity class does not exist"),
        ):
            await driver.launch(TestRunFactory.build())

    async def test_raises_when_process_not_running(
        self, driver: AndroidEmulatorDriver
    ) -> None:
        """An application that dies immediately is a launch error."""

        def no_process(args: Sequence[str]) -> CommandResult:
            if args[1:3] == ("shell", "pidof"):
                return command_result(returncode=1)
            return healthy_device(args)

        with (
            patch(
                "launch_probe.drivers.android_emulator.driver.run_command",
                new=FakeCommandLine(responder=no_process),
            ),
            pytest.raises(LaunchError, match="not running after launch"),
        ):
            await driver.launch(TestRunFactory.build())


class TestPollReady:
    """Tests for poll_ready."""

    async def test_ready_after_settle_polls(
        self, driver: AndroidEmulatorDriver, commands: FakeCommandLine
    ) -> None:
        """Requires focus for settle_polls consecutive polls."""
        handle = AndroidHandle(package=PACKAGE, pid="3131")

        assert await driver.poll_ready(handle) is False
        assert await driver.poll_ready(handle) is True

    async def test_not_ready_while_launcher_focused(
        self, driver: AndroidEmulatorDriver
    ) -> None:
        """Another focused window keeps the app not ready."""
        handle = AndroidHandle(package=PACKAGE, pid="3131", stable_polls=1)

        def launcher_focused(args: Sequence[str]) -> CommandResult:
            if args[1:4] == ("shell", "dumpsys", "window"):
                return command_result(DUMPSYS_LAUNCHER)
            return healthy_device(args)

        with patch(
            "launch_probe.drivers.android_emulator.driver.run_command",
            new=FakeCommandLine(responder=launcher_focused),
        ):
            assert await driver.poll_ready(handle) is False

        assert handle.stable_polls == 0

    async def test_not_ready_after_restart(
        self, driver: AndroidEmulatorDriver, commands: FakeCommandLine
    ) -> None:
        """A different PID means the launched process is gone."""
        handle = AndroidHandle(package=PACKAGE, pid="1000")

        assert await driver.poll_ready(handle) is False

    async def test_not_ready_when_adb_hangs(
        self, driver: AndroidEmulatorDriver, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A timed-out adb query counts as not ready."""
        handle = AndroidHandle(package=PACKAGE, pid="3131", stable_polls=1)

        def hanging_dumpsys(args: Sequence[str]) -> CommandResult:
            if args[1:4] == ("shell", "dumpsys", "window"):
                raise TimeoutError("Command did not finish within 60 seconds: adb")
            return healthy_device(args)

        with (
            patch(
                "launch_probe.drivers.android_emulator.driver.run_command",
                new=FakeCommandLine(responder=hanging_dumpsys),
            ),
            caplog.at_level(logging.WARNING),
        ):
            assert await driver.poll_ready(handle) is False

        assert handle.stable_polls == 0
        assert "Readiness check failed" in caplog.text

    async def test_hanging_adb_reports_timeout(
        self, driver: AndroidEmulatorDriver
    ) -> None:
        """Readiness queries that keep timing out end the run as a timeout."""

        def hanging_pidof(args: Sequence[str]) -> CommandResult:
            if args[1:3] == ("shell", "pidof") and len(fake.calls) > 3:
                raise TimeoutError("Command did not finish within 60 seconds: adb")
            return healthy_device(args)

        fake = FakeCommandLine(responder=hanging_pidof)
        with patch(
            "launch_probe.drivers.android_emulator.driver.run_command", new=fake
        ):
            result = await execute_probe(
                TestRunFactory.build(), driver, ready_timeout=0.1, poll_interval=0.01
            )

        assert result.status == "timeout"
        assert fake.calls[-1] == ("adb", "shell", "am", "force-stop", PACKAGE)


class TestCaptureSurface:
    """Tests for capture_surface."""

    async def test_returns_screencap(
        self, driver: AndroidEmulatorDriver, commands: FakeCommandLine
    ) -> None:
        """Returns the PNG written by screencap."""
        handle = AndroidHandle(package=PACKAGE, pid="3131")

        assert await driver.capture_surface(handle) == PNG_BYTES
        assert commands.calls[-1] == ("adb", "exec-out", "screencap", "-p")

    async def test_raises_when_application_crashed(
        self, driver: AndroidEmulatorDriver, commands: FakeCommandLine
    ) -> None:
        """Capturing an exited application is a capture error."""
        handle = AndroidHandle(package=PACKAGE, pid="1000")

        with pytest.raises(CaptureError, match="no longer running"):
            await driver.capture_surface(handle)

    async def test_raises_when_screencap_fails(
        self, driver: AndroidEmulatorDriver
    ) -> None:
        """A failing screencap is a capture error."""
        handle = AndroidHandle(package=PACKAGE, pid="3131")

        def failing_screencap(args: Sequence[str]) -> CommandResult:
            if args[1:3] == ("exec-out", "screencap"):
                return command_result(returncode=1, stderr="device offline")
            return healthy_device(args)

        with (
            patch(
                "launch_probe.drivers.android_emulator.driver.run_command",
                new=FakeCommandLine(responder=failing_screencap),
            ),
            pytest.raises(CaptureError, match="device offline"),
        ):
            await driver.capture_surface(handle)


class TestTerminate:
    """Tests for terminate."""

    async def test_force_stops_application(
        self, driver: AndroidEmulatorDriver, commands: FakeCommandLine
    ) -> None:
        """Runs am force-stop for the package."""
        await driver.terminate(AndroidHandle(package=PACKAGE, pid="3131"))

        assert commands.calls == [("adb", "shell", "am", "force-stop", PACKAGE)]

    async def test_logs_failed_force_stop(
        self, driver: AndroidEmulatorDriver, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing force-stop is logged, not raised."""
        fake = FakeCommandLine(
            responder=lambda args: command_result(returncode=1, stderr="device offline")
        )

        with (
            patch("launch_probe.drivers.android_emulator.driver.run_command", new=fake),
            caplog.at_level(logging.WARNING),
        ):
            await driver.terminate(AndroidHandle(package=PACKAGE, pid="3131"))

        assert "device offline" in caplog.text

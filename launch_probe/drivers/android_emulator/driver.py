"""Android emulator driver implementation built on adb."""

import logging
import re
import uuid
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from launch_probe.drivers.android_emulator.config import AndroidEmulatorConfig
from launch_probe.drivers.base import ApplicationDriver
from launch_probe.errors import CaptureError, LaunchError
from launch_probe.models.definition import TargetConfiguration
from launch_probe.models.run import TestRun
from launch_probe.process import CommandResult, run_command

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class AndroidHandle:
    """A launched application process on an Android device."""

    instance_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    package: str
    pid: str
    stable_polls: int = 0


def intent_extras(configuration: TargetConfiguration | None) -> Sequence[str]:
    """Intent arguments for the target configuration.

    Environment entries become string extras; launch arguments are passed to
    'am start' unchanged.
    """
    if configuration is None:
        return []
    extras: list[str] = []
    for name, value in configuration.environment.items():
        extras += ["--es", name, value]
    extras += configuration.launch_arguments
    return extras


def has_focus(dumpsys_output: str, package: str) -> bool:
    """Check whether the focused window belongs to the package."""
    pattern = re.compile(rf"mCurrentFocus=.*\b{re.escape(package)}/")
    return any(pattern.search(line) for line in dumpsys_output.splitlines())


def launch_failure(am_output: str) -> str | None:
    """Return the error line printed by 'am start', if any."""
    for line in am_output.splitlines():
        if line.startswith("Error"):
            return line.strip()
    return None


@dataclass(frozen=True, kw_only=True)
class AndroidEmulatorDriver(ApplicationDriver[AndroidHandle]):
    """Drives an installed application on an Android emulator or device."""

    config: AndroidEmulatorConfig

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: AndroidEmulatorConfig
    ) -> AsyncGenerator["AndroidEmulatorDriver", None]:
        """Create driver for the configured device."""
        yield cls(config=config)

    async def launch(self, run: TestRun) -> AndroidHandle:
        """Cold start the application's launch activity."""
        package = self.config.package
        configuration = run.configuration

        try:
            if configuration is not None and configuration.appearance:
                night = "yes" if configuration.appearance == "dark" else "no"
                result = await self.adb("shell", "cmd", "uimode", "night", night)
                if not result.ok:
                    raise LaunchError(
                        f"Failed to set night mode '{night}': {result.error_text}"
                    )
            if configuration is not None and configuration.locale:
                log.warning(
                    "Locale %s is not applied on Android devices",
                    configuration.locale,
                )

            await self.adb("shell", "am", "force-stop", package)

            log.info("Starting %s", self.config.component)
            result = await self.adb(
                "shell",
                "am",
                "start",
                "-W",
                "-n",
                self.config.component,
                *intent_extras(configuration),
            )
            if not result.ok:
                raise LaunchError(
                    f"Failed to start {self.config.component}: {result.error_text}"
                )
            if error := launch_failure(result.text):
                raise LaunchError(f"Failed to start {self.config.component}: {error}")

            pid = await self.pidof(package)
        except (OSError, TimeoutError) as e:
            raise LaunchError(f"Cannot run adb: {e}") from e

        if pid is None:
            raise LaunchError(f"{package} is not running after launch")

        return AndroidHandle(package=package, pid=pid)

    async def poll_ready(self, handle: AndroidHandle) -> bool:
        """Ready once the app window keeps focus for settle_polls polls.

        An adb call that fails to run counts as not ready.
        """
        try:
            ready = await self.is_running(handle) and await self.is_focused(handle)
        except (OSError, TimeoutError) as e:
            log.warning("Readiness check failed: %s", e)
            ready = False

        if ready:
            handle.stable_polls += 1
        else:
            handle.stable_polls = 0
        return handle.stable_polls >= self.config.settle_polls

    async def capture_surface(self, handle: AndroidHandle) -> bytes:
        """Take a PNG screenshot with screencap."""
        try:
            if not await self.is_running(handle):
                raise CaptureError(
                    f"Application {handle.package} is no longer running"
                )
            result = await self.adb("exec-out", "screencap", "-p")
        except (OSError, TimeoutError) as e:
            raise CaptureError(f"Screenshot failed: {e}") from e

        if not result.ok:
            raise CaptureError(f"Screenshot failed: {result.error_text}")
        return result.stdout

    async def terminate(self, handle: AndroidHandle) -> None:
        """Force-stop the application."""
        result = await self.adb("shell", "am", "force-stop", handle.package)
        if not result.ok:
            log.warning(
                "am force-stop %s exited with %d: %s",
                handle.package,
                result.returncode,
                result.error_text,
            )

    async def is_running(self, handle: AndroidHandle) -> bool:
        """Check whether the launched process is still the app's process."""
        return await self.pidof(handle.package) == handle.pid

    async def is_focused(self, handle: AndroidHandle) -> bool:
        """Check whether the app owns the focused window."""
        result = await self.adb("shell", "dumpsys", "window")
        return result.ok and has_focus(result.text, handle.package)

    async def pidof(self, package: str) -> str | None:
        """Return the process ID of the package, None if not running."""
        result = await self.adb("shell", "pidof", package)
        pid = result.text.strip()
        return pid if result.ok and pid else None

    async def adb(self, *args: str) -> CommandResult:
        """Run an adb command against the configured device."""
        prefix = [self.config.adb]
        if self.config.serial:
            prefix += ["-s", self.config.serial]
        return await run_command(*prefix, *args, timeout=self.config.command_timeout)

"""iOS Simulator driver implementation built on xcrun simctl."""

import asyncio
import logging
import re
import tempfile
import uuid
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from launch_probe.drivers.base import ApplicationDriver
from launch_probe.drivers.ios_simulator.config import IOSSimulatorConfig
from launch_probe.errors import CaptureError, LaunchError
from launch_probe.models.definition import TargetConfiguration
from launch_probe.models.run import TestRun
from launch_probe.process import CommandResult, run_command

log = logging.getLogger(__name__)

CHILD_ENV_PREFIX = "SIMCTL_CHILD_"


@dataclass(kw_only=True)
class SimulatorHandle:
    """A launched application process on a simulator device."""

    instance_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    device: str
    bundle_id: str
    pid: int
    stable_polls: int = 0


def launch_arguments(configuration: TargetConfiguration | None) -> Sequence[str]:
    """Arguments passed to the application for the target configuration."""
    if configuration is None:
        return []
    arguments: list[str] = []
    if configuration.locale:
        language = configuration.locale.split("_")[0]
        arguments += [
            "-AppleLanguages",
            f"({language})",
            "-AppleLocale",
            configuration.locale,
        ]
    arguments += configuration.launch_arguments
    return arguments


def child_environment(configuration: TargetConfiguration | None) -> Mapping[str, str]:
    """Environment forwarded to the application through simctl."""
    if configuration is None:
        return {}
    return {
        f"{CHILD_ENV_PREFIX}{name}": value
        for name, value in configuration.environment.items()
    }


def parse_launched_pid(output: str, bundle_id: str) -> int | None:
    """Extract the process ID from 'simctl launch' output."""
    match = re.search(rf"^{re.escape(bundle_id)}:\s*(\d+)\s*$", output, re.MULTILINE)
    return int(match.group(1)) if match else None


def is_listed(launchctl_output: str, bundle_id: str, pid: int) -> bool:
    """Check that launchctl lists the application under the given PID."""
    label = f"UIKitApplication:{bundle_id}["
    for line in launchctl_output.splitlines():
        columns = line.split()
        if len(columns) >= 3 and columns[2].startswith(label):
            return columns[0] == str(pid)
    return False


@dataclass(frozen=True, kw_only=True)
class IOSSimulatorDriver(ApplicationDriver[SimulatorHandle]):
    """Drives an installed application on an iOS Simulator."""

    config: IOSSimulatorConfig

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: IOSSimulatorConfig
    ) -> AsyncGenerator["IOSSimulatorDriver", None]:
        """Create driver for the configured simulator device."""
        yield cls(config=config)

    async def launch(self, run: TestRun) -> SimulatorHandle:
        """Launch the application, replacing any running instance."""
        device = self.config.device
        bundle_id = self.config.bundle_id
        configuration = run.configuration

        try:
            if configuration is not None and configuration.appearance:
                result = await self.simctl(
                    "ui", device, "appearance", configuration.appearance
                )
                if not result.ok:
                    raise LaunchError(
                        f"Failed to set appearance '{configuration.appearance}': "
                        f"{result.error_text}"
                    )

            log.info("Launching %s on simulator %s", bundle_id, device)
            result = await self.simctl(
                "launch",
                "--terminate-running-process",
                device,
                bundle_id,
                *launch_arguments(configuration),
                env=child_environment(configuration),
            )
        except (OSError, TimeoutError) as e:
            raise LaunchError(f"Cannot run simctl: {e}") from e

        if not result.ok:
            raise LaunchError(
                f"Failed to launch {bundle_id}: {result.returncode} {result.error_text}"
            )

        pid = parse_launched_pid(result.text, bundle_id)
        if pid is None:
            await self.terminate_application(device, bundle_id)
            raise LaunchError(f"Unexpected simctl launch output: {result.text.strip()}")

        return SimulatorHandle(device=device, bundle_id=bundle_id, pid=pid)

    async def poll_ready(self, handle: SimulatorHandle) -> bool:
        """Ready once the launched process stays listed for settle_polls polls.

        A simctl call that fails to run counts as not ready; the readiness
        timeout decides when to give up.
        """
        try:
            running = await self.is_running(handle)
        except (OSError, TimeoutError) as e:
            log.warning("Readiness check failed: %s", e)
            running = False

        if running:
            handle.stable_polls += 1
        else:
            handle.stable_polls = 0
        log.debug(
            "Process %d seen for %d consecutive poll(s)",
            handle.pid,
            handle.stable_polls,
        )
        return handle.stable_polls >= self.config.settle_polls

    async def capture_surface(self, handle: SimulatorHandle) -> bytes:
        """Take a PNG screenshot of the simulator screen."""
        try:
            if not await self.is_running(handle):
                raise CaptureError(
                    f"Application {handle.bundle_id} is no longer running"
                )

            with tempfile.TemporaryDirectory() as tmp:
                path = Path(tmp) / "screen.png"
                result = await self.simctl(
                    "io", handle.device, "screenshot", "--type=png", str(path)
                )
                if not result.ok:
                    raise CaptureError(f"Screenshot failed: {result.error_text}")
                return await asyncio.to_thread(path.read_bytes)
        except (OSError, TimeoutError) as e:
            raise CaptureError(f"Screenshot failed: {e}") from e

    async def terminate(self, handle: SimulatorHandle) -> None:
        """Terminate the application on the simulator."""
        await self.terminate_application(handle.device, handle.bundle_id)

    async def terminate_application(self, device: str, bundle_id: str) -> None:
        """Terminate the bundle on the device, logging failures."""
        try:
            result = await self.simctl("terminate", device, bundle_id)
        except (OSError, TimeoutError) as e:
            log.warning("Cannot run simctl terminate: %s", e)
            return
        if not result.ok:
            log.warning(
                "simctl terminate %s exited with %d: %s",
                bundle_id,
                result.returncode,
                result.error_text,
            )

    async def is_running(self, handle: SimulatorHandle) -> bool:
        """Check whether the launched process is still alive."""
        result = await self.simctl("spawn", handle.device, "launchctl", "list")
        if not result.ok:
            log.debug("launchctl list failed: %s", result.error_text)
            return False
        return is_listed(result.text, handle.bundle_id, handle.pid)

    async def simctl(
        self, *args: str, env: Mapping[str, str] | None = None
    ) -> CommandResult:
        """Run an 'xcrun simctl' subcommand."""
        return await run_command(
            self.config.xcrun,
            "simctl",
            *args,
            env=env,
            timeout=self.config.command_timeout,
        )

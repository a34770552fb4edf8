"""Launch probe driving one application instance through a cold start."""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from launch_probe.drivers.base import ApplicationDriver
from launch_probe.errors import CaptureError, ProbeError, ProbeStateError
from launch_probe.models.definition import TargetConfiguration
from launch_probe.models.run import (
    Artifact,
    Attachment,
    ReadyState,
    RunResult,
    TestRun,
)

log = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

type ProbeState = Literal[
    "unstarted",
    "launching",
    "awaiting_ready",
    "capturing",
    "attached",
    "reported",
    "failed",
]

TRANSITIONS: Mapping[ProbeState, frozenset[ProbeState]] = {
    "unstarted": frozenset({"launching", "failed"}),
    "launching": frozenset({"awaiting_ready", "failed"}),
    "awaiting_ready": frozenset({"capturing", "failed"}),
    "capturing": frozenset({"attached", "failed"}),
    "attached": frozenset({"reported", "failed"}),
    "reported": frozenset(),
    "failed": frozenset(),
}


@dataclass(kw_only=True)
class LaunchProbe[H]:
    """Owns the lifecycle of one application instance for one TestRun.

    Steps run strictly in the order configure, launch, await_ready, capture,
    attach, report. A failing step moves the probe to the failed state and
    re-raises; report must still be called and always tears the instance
    down. A probe is single use: create a new one for every run.
    """

    driver: ApplicationDriver[H]
    ready_timeout: float = 60
    poll_interval: float = 0.5
    state: ProbeState = "unstarted"
    run: TestRun | None = None
    _handle: H | None = field(default=None, init=False, repr=False)
    _attachment: Attachment | None = field(default=None, init=False, repr=False)
    _error: BaseException | None = field(default=None, init=False, repr=False)
    _started: float | None = field(default=None, init=False, repr=False)

    @property
    def handle(self) -> H | None:
        """Handle of the launched instance, None before a successful launch."""
        return self._handle

    def configure(
        self,
        configuration: TargetConfiguration | None = None,
        run_for_each_configuration: bool = True,
    ) -> TestRun:
        """Create the TestRun this probe executes."""
        self._require_state("unstarted")
        self.run = TestRun(
            configuration=configuration,
            run_for_each_configuration=run_for_each_configuration,
        )
        return self.run

    async def launch(self, run: TestRun) -> H:
        """Start a new application instance for the run."""
        if self.run is None:
            self.run = run
        self._require_run(run)
        self._started = time.monotonic()
        self._transition("launching")
        log.info(
            "Launching application (run=%s, configuration=%s)",
            run.run_id,
            run.configuration_name,
        )
        try:
            self._handle = await self.driver.launch(run)
        except Exception as exc:
            self._fail(exc)
            raise
        return self._handle

    async def await_ready(self, handle: H) -> ReadyState:
        """Block until the application is idle or the ready timeout passes."""
        self._transition("awaiting_ready")
        try:
            ready = await self.driver.wait_until_ready(
                handle, timeout=self.ready_timeout, poll_interval=self.poll_interval
            )
        except Exception as exc:
            self._fail(exc)
            raise
        log.info(
            "Application ready after %.2fs (%d poll(s))", ready.elapsed, ready.polls
        )
        return ready

    async def capture(self, handle: H) -> Artifact:
        """Snapshot the application surface as a PNG artifact."""
        self._transition("capturing")
        try:
            data = await self.driver.capture_surface(handle)
            if not data.startswith(PNG_SIGNATURE):
                raise CaptureError(
                    f"Captured surface is not a PNG image ({len(data)} bytes)"
                )
        except Exception as exc:
            self._fail(exc)
            raise
        log.info("Captured launch screen (%d bytes)", len(data))
        return Artifact(data=data)

    def attach(self, run: TestRun, artifact: Artifact) -> Attachment:
        """Bind the artifact to the run as the keep-always launch screen."""
        self._require_run(run)
        self._transition("attached")
        self._attachment = Attachment(run_id=run.run_id, artifact=artifact)
        return self._attachment

    async def report(self, run: TestRun) -> RunResult:
        """Tear the application down and return the run's result."""
        self._require_run(run)
        if self.state == "attached":
            self._transition("reported")
        elif self.state != "failed":
            self._fail(
                ProbeStateError(f"Run ended in state '{self.state}' before attach")
            )

        await self._teardown()

        duration = time.monotonic() - self._started if self._started else 0.0
        if self.state == "reported" and self._attachment is not None:
            return RunResult(
                run_id=run.run_id,
                configuration=run.configuration_name,
                status="success",
                duration=duration,
                state="reported",
                attachments=[self._attachment],
            )

        status = self._error.status if isinstance(self._error, ProbeError) else "error"
        return RunResult(
            run_id=run.run_id,
            configuration=run.configuration_name,
            status=status,
            duration=duration,
            state="failed",
            message=str(self._error) if self._error is not None else None,
        )

    async def abort(self, error: BaseException) -> None:
        """Fail the run and terminate the instance without reporting."""
        self._fail(error)
        await self._teardown()

    async def _teardown(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            await self.driver.terminate(handle)
        except Exception as exc:
            log.warning("Application teardown failed: %s", exc, exc_info=exc)
        else:
            log.info("Application terminated")

    def _transition(self, target: ProbeState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise ProbeStateError(f"Cannot move from '{self.state}' to '{target}'")
        self.state = target

    def _fail(self, error: BaseException) -> None:
        if self.state in {"reported", "failed"}:
            return
        self._error = error
        self.state = "failed"

    def _require_state(self, state: ProbeState) -> None:
        if self.state != state:
            raise ProbeStateError(f"Expected state '{state}', got '{self.state}'")

    def _require_run(self, run: TestRun) -> None:
        if self.run is None or self.run.run_id != run.run_id:
            raise ProbeStateError(f"Run {run.run_id} does not belong to this probe")


async def execute_probe[H](
    run: TestRun,
    driver: ApplicationDriver[H],
    ready_timeout: float = 60,
    poll_interval: float = 0.5,
) -> RunResult:
    """Run every probe step for one TestRun and return its result.

    Any failure skips the remaining steps and goes straight to report, which
    always terminates the launched instance. Cancellation also terminates the
    instance before propagating.

    Args:
        run: The run to execute
        driver: Driver for the target application
        ready_timeout: Seconds to wait for the application to become ready
        poll_interval: Seconds between readiness polls

    Returns:
        The run's result with zero or one attachment

    """
    probe = LaunchProbe(
        driver=driver,
        ready_timeout=ready_timeout,
        poll_interval=poll_interval,
        run=run,
    )
    try:
        handle = await probe.launch(run)
        await probe.await_ready(handle)
        artifact = await probe.capture(handle)
        probe.attach(run, artifact)
    except ProbeError as exc:
        log.error("Run %s failed: %s", run.run_id, exc)
    except Exception as exc:
        log.error("Run %s failed unexpectedly: %s", run.run_id, exc, exc_info=exc)
    except BaseException as exc:
        log.warning("Run %s interrupted, terminating application", run.run_id)
        await probe.abort(exc)
        raise

    return await probe.report(run)

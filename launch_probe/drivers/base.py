"""Abstract base class for application drivers."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

from launch_probe.errors import ReadyTimeoutError
from launch_probe.models.run import ReadyState, TestRun


@dataclass(frozen=True, kw_only=True)
class ApplicationDriver[H](ABC):
    """Abstract base for drivers of one kind of target application.

    Generic type H is the application handle - whatever the driver needs to
    reach the instance it launched. Every launch must return a new handle;
    handles are never shared between runs.
    """

    @abstractmethod
    async def launch(self, run: TestRun) -> H:
        """Start a new instance of the application.

        Args:
            run: The run the instance belongs to, with its target configuration

        Returns:
            Handle to the launched instance

        Raises:
            LaunchError: If the application cannot be started

        """

    @abstractmethod
    async def poll_ready(self, handle: H) -> bool:
        """Check once whether the application has reached an idle state.

        Args:
            handle: Handle returned from launch

        Returns:
            True once the application is ready, False while still starting

        """

    @abstractmethod
    async def capture_surface(self, handle: H) -> bytes:
        """Take a PNG snapshot of the application surface.

        Raises:
            CaptureError: If the surface is unavailable

        """

    @abstractmethod
    async def terminate(self, handle: H) -> None:
        """Stop the application instance and release its resources."""

    async def wait_until_ready(
        self,
        handle: H,
        timeout: float = 60,
        poll_interval: float = 0.5,
    ) -> ReadyState:
        """Wait for the application to become ready.

        The timeout bounds the whole wait: a poll still running at the
        deadline is cancelled.

        Args:
            handle: Handle returned from launch
            timeout: Maximum wait time in seconds (default: 60)
            poll_interval: Seconds between polls (default: 0.5)

        Returns:
            How long readiness took and how many polls it needed

        Raises:
            ReadyTimeoutError: If the application is not ready within timeout

        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        polls = 0

        try:
            async with asyncio.timeout_at(started + timeout):
                while True:
                    polls += 1
                    if await self.poll_ready(handle):
                        break
                    await asyncio.sleep(poll_interval)
        except TimeoutError as e:
            raise ReadyTimeoutError(
                f"Application did not become ready within {timeout} seconds"
            ) from e

        elapsed = loop.time() - started
        if elapsed > timeout:
            raise ReadyTimeoutError(
                f"Application became ready after {elapsed:.2f} seconds, "
                f"exceeding {timeout} seconds"
            )
        return ReadyState(elapsed=elapsed, polls=polls)

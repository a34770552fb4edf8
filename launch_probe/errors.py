"""Errors raised while probing an application launch.

Every ProbeError is fatal to the run it occurs in. The status attribute is
the RunResult status the error is reported as.
"""

from typing import ClassVar

from launch_probe.models.run import RunStatus


class ProbeError(Exception):
    """Base class for run-fatal probe failures."""

    status: ClassVar[RunStatus] = "error"


class LaunchError(ProbeError):
    """Raised when the application cannot be started."""

    status: ClassVar[RunStatus] = "launch_error"


class ReadyTimeoutError(ProbeError, TimeoutError):
    """Raised when the application does not become ready in time."""

    status: ClassVar[RunStatus] = "timeout"


class CaptureError(ProbeError):
    """Raised when the application surface cannot be captured."""

    status: ClassVar[RunStatus] = "capture_error"


class ProbeStateError(Exception):
    """Raised when a probe step is invoked out of order."""

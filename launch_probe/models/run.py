"""Models for a single launch probe run and what it produces."""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from launch_probe.models.definition import TargetConfiguration

LAUNCH_SCREEN_NAME = "Launch Screen"

type RunStatus = Literal[
    "success",
    "launch_error",
    "timeout",
    "capture_error",
    "error",
]

type AttachmentLifetime = Literal["keep_always"]


def new_run_id() -> str:
    """Return a fresh run identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True, kw_only=True)
class TestRun:
    """Identifies one execution of the launch probe.

    continue_after_failure is fixed to False: the first failing step aborts
    the remaining steps of the run.
    """

    __test__ = False

    run_id: str = field(default_factory=new_run_id)
    configuration: TargetConfiguration | None = None
    run_for_each_configuration: bool = True
    continue_after_failure: Literal[False] = False

    @property
    def configuration_name(self) -> str:
        """Name of the target configuration, 'default' when none is set."""
        if self.configuration is None:
            return "default"
        return self.configuration.name


@dataclass(frozen=True, kw_only=True)
class Artifact:
    """Captured visual evidence of the application surface."""

    data: bytes = field(repr=False)
    content_type: Literal["image/png"] = "image/png"
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def size(self) -> int:
        """Size of the image in bytes."""
        return len(self.data)


@dataclass(frozen=True, kw_only=True)
class Attachment:
    """An artifact bound to the run that produced it."""

    run_id: str
    artifact: Artifact
    name: str = LAUNCH_SCREEN_NAME
    lifetime: AttachmentLifetime = "keep_always"


@dataclass(frozen=True, kw_only=True)
class ReadyState:
    """Observed readiness of a launched application."""

    elapsed: float
    polls: int


@dataclass(frozen=True, kw_only=True)
class RunResult:
    """Outcome of one TestRun, carrying its attachments explicitly."""

    run_id: str
    configuration: str
    status: RunStatus
    duration: float
    state: Literal["reported", "failed"]
    attachments: Sequence[Attachment] = ()
    message: str | None = None

    @property
    def passed(self) -> bool:
        """Whether the run succeeded."""
        return self.status == "success"

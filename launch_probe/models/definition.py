"""Models for launch definitions loaded from launch.yaml files."""

import re
from collections.abc import Mapping, Sequence
from typing import Literal

from pydantic import Field, field_validator

from launch_probe.models.base import Model

DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)\s*$")
DURATION_UNITS: Mapping[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> float:
    """Convert a duration string such as '500ms', '60s' or '2m' to seconds.

    Raises:
        ValueError: If the string has no recognised unit or is not positive

    """
    match = DURATION_PATTERN.match(value)
    if match is None:
        raise ValueError(
            f"Invalid duration '{value}': expected a number followed by "
            "one of ms, s, m, h"
        )
    seconds = float(match.group(1)) * DURATION_UNITS[match.group(2)]
    if seconds <= 0:
        raise ValueError(f"Invalid duration '{value}': must be positive")
    return seconds


class TargetConfiguration(Model):
    """One target configuration the application is launched under."""

    name: str = Field(..., description="Configuration name used in reports")
    appearance: Literal["light", "dark"] | None = Field(
        default=None, description="System appearance (None keeps the current one)"
    )
    locale: str | None = Field(
        default=None, description="Locale identifier such as 'en_US'"
    )
    launch_arguments: Sequence[str] = Field(
        default_factory=list, description="Extra arguments passed at launch"
    )
    environment: Mapping[str, str] = Field(
        default_factory=dict, description="Extra environment for the application"
    )


class LaunchDefinition(Model):
    """Complete launch definition loaded from launch.yaml."""

    version: str = Field(..., description="Launch definition schema version")
    name: str = Field(..., description="Human-readable application name")
    run_for_each_configuration: bool = Field(
        default=True,
        description="Repeat the probe once per declared configuration",
    )
    ready_timeout: str = Field(
        default="60s", description="Bound on waiting for the application to idle"
    )
    poll_interval: str = Field(
        default="500ms", description="Delay between readiness polls"
    )
    configurations: Sequence[TargetConfiguration] = Field(
        default_factory=list, description="Declared target configurations"
    )

    @field_validator("ready_timeout", "poll_interval")
    @classmethod
    def _validate_duration(cls, value: str) -> str:
        parse_duration(value)
        return value

    @property
    def ready_timeout_seconds(self) -> float:
        """Readiness bound in seconds."""
        return parse_duration(self.ready_timeout)

    @property
    def poll_interval_seconds(self) -> float:
        """Readiness poll interval in seconds."""
        return parse_duration(self.poll_interval)

    def target_configurations(self) -> Sequence[TargetConfiguration | None]:
        """Return the configurations to run, one entry per TestRun.

        With run_for_each_configuration every declared configuration gets its
        own run. Otherwise a single run uses the first declared configuration,
        or the driver's defaults (None) when none is declared.
        """
        if not self.configurations:
            return [None]
        if self.run_for_each_configuration:
            return list(self.configurations)
        return [self.configurations[0]]

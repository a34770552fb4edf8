"""Orchestrator running launch probes for every target configuration."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from launch_probe.drivers.base import ApplicationDriver
from launch_probe.models.definition import LaunchDefinition
from launch_probe.models.run import RunResult, TestRun
from launch_probe.probe import execute_probe

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class LaunchOrchestrator[H]:
    """Runs launch probes one after another on a single driver."""

    driver: ApplicationDriver[H]

    def plan_runs(self, definition: LaunchDefinition) -> Sequence[TestRun]:
        """Create one fresh TestRun per configuration to probe."""
        return [
            TestRun(
                configuration=configuration,
                run_for_each_configuration=definition.run_for_each_configuration,
            )
            for configuration in definition.target_configurations()
        ]

    async def run_definition(
        self, definition: LaunchDefinition
    ) -> Sequence[RunResult]:
        """Probe the application once per planned run, sequentially.

        Runs are independent: a failed run does not stop the following ones.

        Args:
            definition: Launch definition with configurations and timings

        Returns:
            One result per run, in configuration order

        """
        runs = self.plan_runs(definition)
        log.info("Probing %s: %d run(s)", definition.name, len(runs))

        results: list[RunResult] = []
        for run in runs:
            result = await execute_probe(
                run,
                self.driver,
                ready_timeout=definition.ready_timeout_seconds,
                poll_interval=definition.poll_interval_seconds,
            )
            log.info(
                "Run completed: configuration=%s status=%s duration=%.1fs",
                result.configuration,
                result.status,
                result.duration,
            )
            results.append(result)

        return results

"""CLI entry point for the launch probe."""

import argparse
import asyncio
import hashlib
import json
import logging
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from launch_probe.definition_loader import load_launch_definition
from launch_probe.drivers.loading import load_driver_manifest
from launch_probe.models.run import RunResult
from launch_probe.orchestrator import LaunchOrchestrator
from launch_probe.sink import write_attachments

STATUS_SYMBOLS = {
    "success": "✅",
    "launch_error": "❌",
    "capture_error": "❌",
    "error": "❗",
    "timeout": "⏱️",
}


def log_results_summary(log: logging.Logger, results: Sequence[RunResult]) -> None:
    """Log a formatted summary of run results with their attachments."""
    log.info("=" * 80)
    log.info("Launch Results Summary:")
    log.info("=" * 80)

    for result in results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info(
            "%s %s: %s (%.2fs)",
            symbol,
            result.configuration,
            result.status,
            result.duration,
        )
        for attachment in result.attachments:
            log.info(
                "  Attachment: %s (%d bytes)",
                attachment.name,
                attachment.artifact.size,
            )
        if result.message:
            log.info("  Message: %s", result.message)


async def run(
    driver_key: str,
    driver_config_json: str,
    definition_path: Path,
    attachments_dir: Path | None = None,
) -> int:
    """Run the launch probe and return exit code."""
    log = logging.getLogger("launch_probe")

    log.info("Loading driver: %s", driver_key)
    manifest = load_driver_manifest(driver_key)

    config_dict = json.loads(driver_config_json)
    config = manifest.config_cls(**config_dict)

    log.info("Loading launch definition: %s", definition_path)
    definition = await load_launch_definition(definition_path)

    async with manifest.driver_factory(config) as driver:
        orchestrator = LaunchOrchestrator(driver=driver)
        results = await orchestrator.run_definition(definition)

    log_results_summary(log, results)

    written: Mapping[str, Path] = {}
    if attachments_dir is not None:
        written = write_attachments(results, attachments_dir)

    output = format_output(results, written)
    print(json.dumps(output, indent=2))

    return 0 if all(result.passed for result in results) else 1


def format_output(
    results: Sequence[RunResult], written: Mapping[str, Path] | None = None
) -> dict[str, Any]:
    """Format run results for JSON output."""
    written = written or {}
    all_results: list[dict[str, Any]] = []
    for result in results:
        path = written.get(result.run_id)
        all_results.append(
            {
                "run_id": result.run_id,
                "configuration": result.configuration,
                "status": result.status,
                "state": result.state,
                "duration": result.duration,
                "message": result.message,
                "attachments": [
                    {
                        "name": attachment.name,
                        "lifetime": attachment.lifetime,
                        "content_type": attachment.artifact.content_type,
                        "size": attachment.artifact.size,
                        "sha256": hashlib.sha256(attachment.artifact.data).hexdigest(),
                        "path": str(path) if path else None,
                    }
                    for attachment in result.attachments
                ],
            }
        )

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "success"),
        "failed": sum(1 for r in all_results if r["status"] != "success"),
        "results": all_results,
    }


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Launch an application, wait for it to idle and capture it"
    )
    parser.add_argument(
        "--driver",
        required=True,
        help="Driver key (ios-simulator, android-emulator, browser)",
    )
    parser.add_argument(
        "--driver-config",
        required=True,
        help="JSON configuration for the driver",
    )
    parser.add_argument(
        "--definition",
        type=Path,
        required=True,
        help="Path to the launch.yaml definition",
    )
    parser.add_argument(
        "--attachments-dir",
        type=Path,
        default=None,
        help="Directory receiving captured launch screens",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            driver_key=args.driver,
            driver_config_json=args.driver_config,
            definition_path=args.definition,
            attachments_dir=args.attachments_dir,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()

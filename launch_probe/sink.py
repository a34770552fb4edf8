"""Hand attachments to a directory chosen by the caller."""

import logging
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

from launch_probe.models.run import Attachment, RunResult

log = logging.getLogger(__name__)

UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9._-]+")


def attachment_filename(result: RunResult, attachment: Attachment) -> str:
    """Build a filesystem-safe file name for an attachment."""
    stem = "-".join((result.configuration, result.run_id, attachment.name))
    return UNSAFE_CHARACTERS.sub("-", stem).strip("-").lower() + ".png"


def write_attachments(
    results: Sequence[RunResult], directory: Path
) -> Mapping[str, Path]:
    """Write every attachment of the given results into directory.

    Existing files are never removed; keep-always attachments are written for
    passing and failing runs alike.

    Returns:
        Written paths keyed by run ID

    """
    directory.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}
    for result in results:
        for attachment in result.attachments:
            path = directory / attachment_filename(result, attachment)
            path.write_bytes(attachment.artifact.data)
            log.info("Wrote %s for run %s to %s", attachment.name, result.run_id, path)
            written[result.run_id] = path
    return written

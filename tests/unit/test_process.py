"""Tests for command execution."""

import asyncio
import os
from pathlib import Path

import pytest

from launch_probe.process import run_command


async def test_captures_output_and_status() -> None:
    """Returns exit status and both output streams."""
    result = await run_command("sh", "-c", "echo out; echo err >&2; exit 3")

    assert result.returncode == 3
    assert not result.ok
    assert result.text == "out\n"
    assert result.error_text == "err"


async def test_merges_extra_environment() -> None:
    """Extra environment variables reach the command."""
    result = await run_command(
        "sh", "-c", 'echo "$PROBE_VALUE"', env={"PROBE_VALUE": "42"}
    )

    assert result.ok
    assert result.text.strip() == "42"


async def test_raises_for_missing_program() -> None:
    """Missing programs raise FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        await run_command("/nonexistent/launch-probe-tool")


async def test_kills_command_after_timeout() -> None:
    """Commands running past the timeout are killed."""
    with pytest.raises(TimeoutError, match="did not finish within"):
        await run_command("sleep", "5", timeout=0.1)


async def test_kills_command_when_cancelled(tmp_path: Path) -> None:
    """Cancelling the caller kills and reaps the running command."""
    pid_file = tmp_path / "pid"

    with pytest.raises(TimeoutError):
        async with asyncio.timeout(0.5):
            await run_command("sh", "-c", f"echo $$ > {pid_file}; exec sleep 30")

    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)

"""Run command-line tools used by the drivers."""

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CommandResult:
    """Captured outcome of a finished command."""

    args: Sequence[str]
    returncode: int
    stdout: bytes = field(repr=False)
    stderr: bytes = field(repr=False)

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.returncode == 0

    @property
    def text(self) -> str:
        """Decoded standard output."""
        return self.stdout.decode(errors="replace")

    @property
    def error_text(self) -> str:
        """Decoded standard error, stripped."""
        return self.stderr.decode(errors="replace").strip()


async def run_command(
    *args: str,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run a command to completion and capture its output.

    Args:
        args: Program and arguments
        env: Extra environment variables merged over the current environment
        timeout: Seconds to wait before killing the command

    Returns:
        The command's exit status and output

    Raises:
        FileNotFoundError: If the program does not exist
        PermissionError: If the program cannot be executed
        TimeoutError: If the command does not finish within timeout

    """
    log.debug("Running command: %s", " ".join(args))
    process = await asyncio.create_subprocess_exec(
        *args,
        env={**os.environ, **env} if env else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except TimeoutError:
        await kill_process(process)
        raise TimeoutError(
            f"Command did not finish within {timeout} seconds: {args[0]}"
        ) from None
    except asyncio.CancelledError:
        await kill_process(process)
        raise

    return CommandResult(
        args=args,
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout,
        stderr=stderr,
    )


async def kill_process(process: asyncio.subprocess.Process) -> None:
    """Kill a command that is still running and reap it."""
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        log.debug("Command already exited")
    await process.wait()

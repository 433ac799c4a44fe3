from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
from dataclasses import dataclass

from ..domain import ShellTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class ShellResult:
    stdout: str
    stderr: str
    exit_code: int

    def render(self) -> str:
        return f"STDOUT:\n{self.stdout}\nSTDERR:\n{self.stderr}\nEXIT CODE: {self.exit_code}"


def _shell() -> str:
    return shutil.which("bash") or "/bin/sh"


def _kill_group(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        return
    except (AttributeError, PermissionError):
        process.kill()


async def run_shell_command(command: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> ShellResult:
    """Run ``command`` in a subshell; a non-zero exit is a result, not an error.

    Raises :class:`ShellTimeoutError` once the whole process group has been killed.
    """

    process = await asyncio.create_subprocess_exec(
        _shell(),
        "-c",
        command,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Shell command exceeded %ss, killing pid %s: %s", timeout, process.pid, command)
        _kill_group(process)
        await process.wait()
        raise ShellTimeoutError(command, timeout) from None

    return ShellResult(
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        exit_code=process.returncode if process.returncode is not None else -1,
    )

"""Thin wrapper around subprocess for the OS tools the controller drives."""

import logging
import shlex
import subprocess
from typing import Protocol

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Callable that runs an argument list and returns the completed process.

    ``FileNotFoundError`` and ``subprocess.TimeoutExpired`` propagate to the
    caller, which translates them into its own error.
    """

    def __call__(
        self,
        args: list[str],
        *,
        timeout: float | None = None,
        capture: bool = True,
    ) -> subprocess.CompletedProcess: ...


def run_command(
    args: list[str],
    *,
    timeout: float | None = None,
    capture: bool = True,
) -> subprocess.CompletedProcess:
    """Execute a command and return its result.

    Args:
        args: Program and arguments
        timeout: Seconds before the call is abandoned
        capture: Capture stdout/stderr as text. Pass False for programs that
            daemonize, so the background child does not hold our pipes open.
    """
    logger.debug("exec: %s", shlex.join(args))
    if capture:
        return subprocess.run(args, capture_output=True, text=True, timeout=timeout)
    return subprocess.run(
        args,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=timeout,
    )


def describe_failure(result: subprocess.CompletedProcess) -> str:
    """Short reason for a non-zero exit, preferring stderr."""
    stderr = (result.stderr or "").strip() if isinstance(result.stderr, str) else ""
    if stderr:
        return stderr
    return f"exit status {result.returncode}"

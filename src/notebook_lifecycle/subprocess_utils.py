"""
Subprocess execution with logging integration.

Every download, install and service command in the lifecycle goes through
``run_logged_subprocess`` so the command line and its output land in the
setup log at DEBUG level, and every command is bounded by a timeout.
"""

import logging
import os
import signal
import subprocess
from typing import List, Mapping, Optional

from .constants import DEFAULT_COMMAND_TIMEOUT, NAMESPACE
from .models import CommandResult

_default_logger = logging.getLogger(f"{NAMESPACE}.subprocess")

KILL_GRACE_SECONDS = 5


def _kill_process_group(process: "subprocess.Popen[str]") -> None:
    """Kill a timed-out command along with any children it started."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        process.kill()


def run_logged_subprocess(
    command: List[str],
    logger: Optional[logging.Logger] = None,
    operation_name: str = "",
    timeout: int = DEFAULT_COMMAND_TIMEOUT,
    env: Optional[Mapping[str, str]] = None,
    suppress_output: bool = False,
) -> CommandResult:
    """
    Execute a command, logging the command line and its output.

    Failures are reported in the returned result, never raised; callers
    decide whether a failed command is fatal.

    Args:
        command: Command and arguments to execute
        logger: Logger to write to (module logger if None)
        operation_name: Description of operation for log messages
        timeout: Seconds before the process is killed
        env: Full environment for the child (inherited if None)
        suppress_output: If True, only log command execution, not output

    Returns:
        CommandResult with success status, stdout, and error details
    """
    logger = logger or _default_logger
    log_prefix = f"{operation_name}: " if operation_name else ""

    logger.debug(f"{log_prefix}Executing: {' '.join(command)}")

    try:
        process = subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=dict(env) if env is not None else None,
            start_new_session=True,
        )

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_process_group(process)
            try:
                process.communicate(timeout=KILL_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                # A descendant left the group and still holds the pipes
                logger.warning(f"{log_prefix}Abandoning output of killed command")
            error_msg = f"Command timed out after {timeout} seconds"
            logger.debug(f"{log_prefix}Error: {error_msg}")
            return CommandResult(success=False, error=error_msg)

        if not suppress_output:
            if stdout:
                logger.debug(f"{log_prefix}Output: {stdout.strip()}")
            if stderr:
                if process.returncode == 0:
                    logger.debug(f"{log_prefix}Warnings: {stderr.strip()}")
                else:
                    logger.debug(f"{log_prefix}Errors: {stderr.strip()}")

        if process.returncode == 0:
            return CommandResult(
                success=True, stdout=stdout, returncode=process.returncode
            )
        return CommandResult(
            success=False,
            stdout=stdout,
            error=(stderr or "").strip() or f"exit status {process.returncode}",
            returncode=process.returncode,
        )

    except OSError as e:
        error_msg = str(e)
        logger.debug(f"{log_prefix}Exception: {error_msg}")
        return CommandResult(success=False, error=error_msg)


def spawn_logged_subprocess(
    command: List[str],
    logger: Optional[logging.Logger] = None,
    operation_name: str = "",
    **popen_kwargs,
) -> "subprocess.Popen[bytes]":
    """
    Start a command without waiting for it, logging the command line.

    Args:
        command: Command and arguments to execute
        logger: Logger to write to (module logger if None)
        operation_name: Description of operation for log messages
        **popen_kwargs: Arguments passed to subprocess.Popen

    Returns:
        subprocess.Popen object
    """
    logger = logger or _default_logger
    log_prefix = f"{operation_name}: " if operation_name else ""
    logger.debug(f"{log_prefix}Spawning: {' '.join(command)}")
    return subprocess.Popen(command, **popen_kwargs)

"""
Supervised background worker for the create phase.

The provisioning hook must return promptly, so the create phase runs in a
child process detached into its own session. The child's pid and process
identity are recorded in the status store before the launcher returns, which
lets ``inspect_worker`` notice a worker that died without reporting a result,
even after its pid has been reused.
"""

import logging
import subprocess
import sys
from typing import Optional

from .bootstrapper import Bootstrapper, process_identity, worker_alive
from .config import BootstrapConfig
from .constants import NAMESPACE
from .status_store import SetupStatus, SetupStatusRecord, StatusStore
from .subprocess_utils import spawn_logged_subprocess

logger = logging.getLogger(f"{NAMESPACE}.worker")

WORKER_LOST_MESSAGE = "worker exited without reporting a result"


def worker_command(force: bool = False) -> list:
    command = [sys.executable, "-m", "notebook_lifecycle", "create", "--foreground"]
    if force:
        command.append("--force")
    return command


def launch_worker(
    config: BootstrapConfig, store: StatusStore, force: bool = False
) -> Optional[SetupStatusRecord]:
    """
    Start the create phase in a detached child process.

    Args:
        config: Lifecycle configuration (the setup log path is used)
        store: Status store the child will report to
        force: Pass --force to the child

    Returns:
        The pending record saved for the child, or the existing record if
        setup is already complete

    Raises:
        BootstrapInProgressError: If a live worker already owns the run
    """
    if not Bootstrapper(config, store).check_reentry(force):
        logger.info("Setup already complete, not starting a worker")
        return store.load()

    before = store.load()
    config.log_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config.log_path, "ab") as log_file:
        process = spawn_logged_subprocess(
            worker_command(force),
            logger=logger,
            operation_name="create worker",
            stdin=subprocess.DEVNULL,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )

    pending = SetupStatusRecord(
        status=SetupStatus.PENDING,
        pid=process.pid,
        pid_identity=process_identity(process.pid),
    )

    def claim(current: Optional[SetupStatusRecord]) -> Optional[SetupStatusRecord]:
        # Anything saved since the spawn came from the child and is newer
        return pending if current == before else current

    record = store.update(claim)

    logger.info(
        f"Environment setup started in background (pid {process.pid}), "
        f"logging to {config.log_path}"
    )
    return record


def inspect_worker(store: StatusStore) -> Optional[SetupStatusRecord]:
    """
    Current setup record, with lost workers marked failed.

    Returns:
        The record, or None if setup was never started
    """
    record = store.load()
    if record is None or not record.is_active:
        return record

    def mark_lost(current: Optional[SetupStatusRecord]) -> Optional[SetupStatusRecord]:
        if current is None or not current.is_active or worker_alive(current):
            return current
        logger.warning(
            f"Setup worker {current.pid} is gone while status is "
            f"{current.status.value}"
        )
        return current.transition(SetupStatus.FAILED, error=WORKER_LOST_MESSAGE)

    return store.update(mark_lost)

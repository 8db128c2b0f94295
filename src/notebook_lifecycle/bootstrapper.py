"""
Create-phase bootstrapper.

Runs an ordered list of named steps, fail-fast. Progress is saved to the
status store before and after every step, and ``complete`` is written only
once the last step has succeeded.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Optional

from .conda import CondaManager
from .config import BootstrapConfig
from .constants import BOOT_ID_PATH, NAMESPACE, PROC_STAT_TEMPLATE
from .errors import BootstrapError, BootstrapInProgressError
from .models import CommandResult
from .status_store import SetupStatus, SetupStatusRecord, StatusStore


def pid_alive(pid: int) -> bool:
    """True if a process with this pid exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by another user
        return True
    return True


def process_identity(pid: int) -> Optional[str]:
    """
    Identify a process across pid reuse.

    Combines the kernel boot id with the process start time, so a pid
    recycled after a reboot or later in the same boot gives a different
    value.

    Returns:
        "<boot id>:<start ticks>", or None where /proc is unavailable
    """
    try:
        with open(BOOT_ID_PATH) as f:
            boot_id = f.read().strip()
        with open(PROC_STAT_TEMPLATE.format(pid=pid)) as f:
            stat = f.read()
    except OSError:
        return None

    # Fields after the parenthesised command name; starttime is field 22
    try:
        start_ticks = stat[stat.rindex(")") + 2 :].split()[19]
    except (ValueError, IndexError):
        return None
    return f"{boot_id}:{start_ticks}"


def worker_alive(record: SetupStatusRecord) -> bool:
    """
    True if the process named in the record is still the one that wrote it.

    Where the host exposes process identities, a record whose identity is
    missing or different belongs to a process that no longer exists, even
    if its pid has been handed to another process.
    """
    if record.pid is None or not pid_alive(record.pid):
        return False
    current = process_identity(record.pid)
    if current is None:
        return True
    return record.pid_identity == current


@dataclass
class BootstrapStep:
    name: str
    action: Callable[[], Optional[CommandResult]]
    skip: Callable[[], bool] = lambda: False


class Bootstrapper:
    """Installs Miniconda, creates the environment and installs packages."""

    def __init__(
        self,
        config: BootstrapConfig,
        store: StatusStore,
        conda: Optional[CondaManager] = None,
    ):
        self.config = config
        self.store = store
        self.conda = conda or CondaManager(config)
        self.logger = logging.getLogger(f"{NAMESPACE}.{__name__.split('.')[-1]}")

    def steps(self) -> List[BootstrapStep]:
        conda = self.conda
        name = self.config.kernel_name

        steps = [
            BootstrapStep(
                "download-installer", conda.download_installer, conda.is_installed
            ),
            BootstrapStep("run-installer", conda.run_installer, conda.is_installed),
            BootstrapStep("remove-installer", conda.remove_installer),
            BootstrapStep("init-shell", conda.init_shell),
            BootstrapStep(
                "create-environment",
                lambda: conda.create_environment(name, self.config.python_version),
                lambda: conda.environment_exists(name),
            ),
        ]
        for index, plan in enumerate(self.config.packages, start=1):
            steps.append(
                BootstrapStep(
                    f"install-packages:{index}",
                    lambda plan=plan: conda.install(name, plan),
                )
            )
        return steps

    def check_reentry(self, force: bool = False) -> bool:
        """
        Decide whether a run should proceed.

        Args:
            force: Re-run even when setup is already complete

        Returns:
            False if setup is already complete and not forced

        Raises:
            BootstrapInProgressError: If another live process owns the run
        """
        record = self.store.load()
        if record is None:
            return True

        if record.status == SetupStatus.COMPLETE and not force:
            return False

        if record.is_active and record.pid != os.getpid() and worker_alive(record):
            raise BootstrapInProgressError(record.pid)

        return True

    def run(self, force: bool = False) -> SetupStatusRecord:
        """
        Execute the create phase.

        Args:
            force: Re-run every step even if setup is already complete

        Returns:
            The final status record

        Raises:
            BootstrapError: If a step fails
            BootstrapInProgressError: If another worker is running
        """
        if not self.check_reentry(force):
            self.logger.info("Setup already complete, nothing to do")
            return self.store.load()

        if force:
            self.store.clear()

        pid = os.getpid()
        record = SetupStatusRecord(
            status=SetupStatus.RUNNING, pid=pid, pid_identity=process_identity(pid)
        )
        self.store.save(record)
        self.logger.info("Starting environment setup")

        for step in self.steps():
            if step.skip():
                self.logger.info(f"Skipping {step.name}: already done")
                record = record.transition(
                    SetupStatus.RUNNING,
                    current_step=None,
                    completed_steps=record.completed_steps + [step.name],
                )
                self.store.save(record)
                continue

            record = record.transition(SetupStatus.RUNNING, current_step=step.name)
            self.store.save(record)
            self.logger.info(f"Running step {step.name}")

            try:
                result = step.action()
            except OSError as e:
                result = CommandResult(success=False, error=str(e))

            if result is not None and not result.success:
                detail = result.error or "command failed"
                self.logger.error(f"Step {step.name} failed: {detail}")
                record = record.transition(
                    SetupStatus.FAILED, error=f"{step.name}: {detail}"
                )
                self.store.save(record)
                raise BootstrapError(step.name, detail)

            record = record.transition(
                SetupStatus.RUNNING,
                current_step=None,
                completed_steps=record.completed_steps + [step.name],
            )
            self.store.save(record)

        record = record.transition(SetupStatus.COMPLETE, current_step=None)
        self.store.save(record)
        self.logger.info("Environment setup complete")
        return record

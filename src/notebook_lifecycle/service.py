"""
Notebook server restart strategies.

The init system is chosen by what the host can actually do (a running
systemd, or an upstart control binary on PATH) rather than by matching
release metadata text.
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from .constants import (
    DEFAULT_COMMAND_TIMEOUT,
    JUPYTER_SERVICE_NAME,
    NAMESPACE,
    SYSTEMD_RUNTIME_DIR,
    UPSTART_CTL,
)
from .errors import ServiceRestartError
from .models import CommandResult
from .subprocess_utils import run_logged_subprocess


class InitSystem(str, Enum):
    SYSTEMD = "systemd"
    UPSTART = "upstart"
    UNKNOWN = "unknown"


def detect_init_system() -> InitSystem:
    """Detect the running init system from host capabilities."""
    if os.path.isdir(SYSTEMD_RUNTIME_DIR):
        return InitSystem.SYSTEMD
    if shutil.which(UPSTART_CTL):
        return InitSystem.UPSTART
    return InitSystem.UNKNOWN


def _privilege_prefix() -> List[str]:
    return ["sudo"] if os.geteuid() != 0 else []


class ServiceRestarter(ABC):
    """Abstract base class for notebook server restart strategies."""

    def __init__(
        self,
        service: str = JUPYTER_SERVICE_NAME,
        timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ):
        self.service = service
        self.timeout = timeout
        self.logger = logging.getLogger(f"{NAMESPACE}.{__name__.split('.')[-1]}")

    @abstractmethod
    def command(self) -> List[str]:
        """
        Command restarting the service without waiting for it to come up.

        Returns:
            Command and arguments, privilege prefix included
        """
        pass

    def restart(self) -> CommandResult:
        """
        Restart the notebook server.

        Raises:
            ServiceRestartError: If the restart command fails
        """
        self.logger.info("Restarting the Jupyter server..")
        result = run_logged_subprocess(
            self.command(),
            logger=self.logger,
            operation_name="service restart",
            timeout=self.timeout,
        )
        if not result.success:
            raise ServiceRestartError(
                f"Failed to restart {self.service}: {result.error}"
            )
        return result


class SystemdRestarter(ServiceRestarter):
    def command(self) -> List[str]:
        return _privilege_prefix() + [
            "systemctl",
            "--no-block",
            "restart",
            f"{self.service}.service",
        ]


class UpstartRestarter(ServiceRestarter):
    def command(self) -> List[str]:
        return _privilege_prefix() + [UPSTART_CTL, "restart", self.service, "--no-wait"]


class RestarterFactory:
    """Factory for creating restart strategies per init system."""

    STRATEGIES = {
        InitSystem.SYSTEMD: SystemdRestarter,
        InitSystem.UPSTART: UpstartRestarter,
    }

    @classmethod
    def create(
        cls,
        init_system: Optional[str] = None,
        timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> ServiceRestarter:
        """
        Create the restarter for an init system.

        Args:
            init_system: Init system name (detected from the host if None)
            timeout: Timeout for the restart command

        Returns:
            ServiceRestarter instance

        Raises:
            ServiceRestartError: If no strategy supports the init system
        """
        logger = logging.getLogger(__name__)

        if init_system is None:
            selected = detect_init_system()
            logger.debug(f"Detected init system: {selected.value}")
        else:
            try:
                selected = InitSystem(init_system)
            except ValueError:
                raise ServiceRestartError(f"Unknown init system '{init_system}'")

        strategy = cls.STRATEGIES.get(selected)
        if strategy is None:
            raise ServiceRestartError(
                f"No restart strategy for init system '{selected.value}'"
            )
        return strategy(timeout=timeout)

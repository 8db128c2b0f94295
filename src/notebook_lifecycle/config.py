"""
Runtime configuration for the lifecycle phases.

Defaults come from ``constants``; any ``LIFECYCLE_*`` environment variable
overrides the matching field when the configuration is built.
"""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_HOME,
    DEFAULT_INSTALLER_URL,
    DEFAULT_KERNEL_NAME,
    DEFAULT_PACKAGE_PLAN,
    DEFAULT_PYTHON_VERSION,
    ENV_PREFIX,
    ENVS_DIR_NAME,
    INSTALLER_FILE_NAME,
    LEGACY_MARKER_FILE_NAME,
    MINICONDA_DIR_NAME,
    NOTEBOOK_DIR_NAME,
    SETUP_LOG_FILE_NAME,
    STATUS_FILE_NAME,
    SUPPORTED_INIT_SYSTEMS,
    WORKING_DIR_NAME,
)
from .errors import ConfigurationError
from .models import PackageInstall


class BootstrapConfig(BaseModel):
    """Paths, versions and package plan used by both lifecycle phases."""

    home: Path = Path(DEFAULT_HOME)
    working_dir: Path = Path(DEFAULT_HOME) / NOTEBOOK_DIR_NAME / WORKING_DIR_NAME
    status_path: Path = Path(DEFAULT_HOME) / NOTEBOOK_DIR_NAME / STATUS_FILE_NAME
    marker_path: Path = Path(DEFAULT_HOME) / NOTEBOOK_DIR_NAME / LEGACY_MARKER_FILE_NAME
    log_path: Path = Path(DEFAULT_HOME) / NOTEBOOK_DIR_NAME / SETUP_LOG_FILE_NAME
    installer_url: str = DEFAULT_INSTALLER_URL
    kernel_name: str = DEFAULT_KERNEL_NAME
    python_version: str = DEFAULT_PYTHON_VERSION
    command_timeout: int = DEFAULT_COMMAND_TIMEOUT
    init_system: Optional[str] = None
    packages: List[PackageInstall] = Field(
        default_factory=lambda: [PackageInstall(**p) for p in DEFAULT_PACKAGE_PLAN]
    )

    @property
    def conda_prefix(self) -> Path:
        return self.working_dir / MINICONDA_DIR_NAME

    @property
    def conda_bin(self) -> Path:
        return self.conda_prefix / "bin"

    @property
    def conda_executable(self) -> Path:
        return self.conda_bin / "conda"

    @property
    def envs_root(self) -> Path:
        return self.conda_prefix / ENVS_DIR_NAME

    @property
    def installer_path(self) -> Path:
        return self.working_dir / INSTALLER_FILE_NAME

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BootstrapConfig":
        """
        Build configuration from defaults and LIFECYCLE_* overrides.

        Paths not overridden explicitly follow LIFECYCLE_HOME, so relocating
        the home directory relocates everything under it.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            BootstrapConfig with overrides applied

        Raises:
            ConfigurationError: If an override has an invalid value
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(f"{ENV_PREFIX}{name}")
            return value if value else None

        home = Path(get("HOME") or DEFAULT_HOME)
        notebook_dir = home / NOTEBOOK_DIR_NAME

        values: Dict[str, object] = {
            "home": home,
            "working_dir": Path(get("WORKING_DIR") or notebook_dir / WORKING_DIR_NAME),
            "status_path": Path(get("STATUS_PATH") or notebook_dir / STATUS_FILE_NAME),
            "marker_path": Path(
                get("MARKER_PATH") or notebook_dir / LEGACY_MARKER_FILE_NAME
            ),
            "log_path": Path(get("LOG_PATH") or notebook_dir / SETUP_LOG_FILE_NAME),
            "installer_url": get("INSTALLER_URL") or DEFAULT_INSTALLER_URL,
            "kernel_name": get("KERNEL_NAME") or DEFAULT_KERNEL_NAME,
            "python_version": get("PYTHON_VERSION") or DEFAULT_PYTHON_VERSION,
        }

        timeout = get("COMMAND_TIMEOUT")
        if timeout is not None:
            try:
                values["command_timeout"] = int(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"{ENV_PREFIX}COMMAND_TIMEOUT must be an integer, got '{timeout}'"
                )
            if values["command_timeout"] <= 0:
                raise ConfigurationError(
                    f"{ENV_PREFIX}COMMAND_TIMEOUT must be positive, got '{timeout}'"
                )

        init_system = get("INIT_SYSTEM")
        if init_system is not None:
            if init_system.lower() not in SUPPORTED_INIT_SYSTEMS:
                raise ConfigurationError(
                    f"{ENV_PREFIX}INIT_SYSTEM must be one of "
                    f"{', '.join(SUPPORTED_INIT_SYSTEMS)}, got '{init_system}'"
                )
            values["init_system"] = init_system.lower()

        return cls(**values)

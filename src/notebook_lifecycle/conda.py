import logging
import os
from pathlib import Path
from typing import Dict, List

from .config import BootstrapConfig
from .constants import NAMESPACE
from .models import CommandResult, PackageInstall
from .subprocess_utils import run_logged_subprocess


class CondaManager:
    """Installs Miniconda and manages the environments under its prefix."""

    def __init__(self, config: BootstrapConfig):
        self.config = config
        self.logger = logging.getLogger(f"{NAMESPACE}.{__name__.split('.')[-1]}")

    def is_installed(self) -> bool:
        return self.config.conda_executable.exists()

    def shell_env(self) -> Dict[str, str]:
        """Process environment with the Miniconda bin directory first on PATH."""
        env = dict(os.environ)
        path = env.get("PATH", "")
        conda_bin = str(self.config.conda_bin)
        env["PATH"] = f"{conda_bin}{os.pathsep}{path}" if path else conda_bin
        return env

    def env_dir(self, name: str) -> Path:
        return self.config.envs_root / name

    def environment_exists(self, name: str) -> bool:
        return self.env_dir(name).is_dir()

    def download_installer(self) -> CommandResult:
        """Fetch the installer payload into the working directory."""
        self.config.working_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Downloading installer from {self.config.installer_url}")
        return self._run(
            [
                "wget",
                "-q",
                self.config.installer_url,
                "-O",
                str(self.config.installer_path),
            ],
            "download installer",
        )

    def run_installer(self) -> CommandResult:
        """Run the installer in batch mode, updating any existing prefix."""
        self.logger.info(f"Installing Miniconda into {self.config.conda_prefix}")
        return self._run(
            [
                "bash",
                str(self.config.installer_path),
                "-b",
                "-u",
                "-p",
                str(self.config.conda_prefix),
            ],
            "run installer",
        )

    def remove_installer(self) -> None:
        self.config.installer_path.unlink(missing_ok=True)

    def init_shell(self) -> CommandResult:
        """Let conda hook itself into the user's bash profile."""
        return self._run(
            [str(self.config.conda_executable), "init", "bash"],
            "conda init",
            env=self.shell_env(),
        )

    def create_environment(self, name: str, python_version: str) -> CommandResult:
        self.logger.info(f"Creating environment {name} with python={python_version}")
        return self._run(
            [
                str(self.config.conda_executable),
                "create",
                "--yes",
                "--name",
                name,
                f"python={python_version}",
            ],
            "conda create",
            env=self.shell_env(),
        )

    def install(self, name: str, plan: PackageInstall) -> CommandResult:
        """
        Install one plan entry into the named environment.

        pip entries use the environment's own pip, which is what activating
        the environment would put first on PATH.

        Args:
            name: Target environment
            plan: Tool, package specs and optional index URL

        Returns:
            CommandResult of the install command
        """
        if not plan.packages:
            return CommandResult(success=True, stdout="No packages to install")

        self.logger.info(f"Installing into {name}: {plan.describe()}")

        command: List[str]
        if plan.tool == "conda":
            command = [
                str(self.config.conda_executable),
                "install",
                "--yes",
                "--name",
                name,
            ]
            if plan.index_url:
                command += ["--channel", plan.index_url]
            command += plan.packages
        else:
            command = [str(self.env_dir(name) / "bin" / "pip"), "install", "--quiet"]
            if plan.index_url:
                command += ["--index-url", plan.index_url]
            command += plan.packages

        return self._run(command, f"{plan.tool} install", env=self.shell_env())

    def _run(self, command: List[str], operation: str, env=None) -> CommandResult:
        return run_logged_subprocess(
            command,
            logger=self.logger,
            operation_name=operation,
            timeout=self.config.command_timeout,
            env=env,
        )

import logging
from pathlib import Path
from typing import List

from .config import BootstrapConfig
from .constants import KERNEL_DISPLAY_NAME_TEMPLATE, NAMESPACE
from .errors import KernelRegistrationError
from .subprocess_utils import run_logged_subprocess


def kernel_display_name(name: str) -> str:
    return KERNEL_DISPLAY_NAME_TEMPLATE.format(name=name)


class KernelRegistrar:
    """Registers conda environments as user-level Jupyter kernels."""

    def __init__(self, config: BootstrapConfig):
        self.config = config
        self.logger = logging.getLogger(f"{NAMESPACE}.{__name__.split('.')[-1]}")

    def list_environments(self) -> List[Path]:
        """Environment directories under the environments root, sorted by name."""
        envs_root = self.config.envs_root
        if not envs_root.is_dir():
            return []
        return sorted(
            (p for p in envs_root.iterdir() if p.is_dir() and not p.name.startswith(".")),
            key=lambda p: p.name,
        )

    def register(self, env_dir: Path) -> str:
        """
        Install a kernelspec for the environment using its own interpreter.

        Re-registering an environment overwrites its kernelspec in place.

        Args:
            env_dir: Environment directory

        Returns:
            Registered kernel name

        Raises:
            KernelRegistrationError: If the environment has no interpreter or
                ipykernel fails
        """
        name = env_dir.name
        python = env_dir / "bin" / "python"
        if not python.exists():
            raise KernelRegistrationError(name, f"no interpreter at {python}")

        display_name = kernel_display_name(name)
        self.logger.info(f"Registering kernel {name} as '{display_name}'")

        result = run_logged_subprocess(
            [
                str(python),
                "-m",
                "ipykernel",
                "install",
                "--user",
                "--name",
                name,
                "--display-name",
                display_name,
            ],
            logger=self.logger,
            operation_name="ipykernel install",
            timeout=self.config.command_timeout,
        )
        if not result.success:
            raise KernelRegistrationError(name, result.error or "ipykernel failed")
        return name

    def register_all(self) -> List[str]:
        """Register every environment, stopping at the first failure."""
        return [self.register(env_dir) for env_dir in self.list_environments()]

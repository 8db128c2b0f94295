import logging
from typing import Optional

from .config import BootstrapConfig
from .constants import NAMESPACE
from .kernels import KernelRegistrar
from .models import ActivationResult
from .service import RestarterFactory, ServiceRestarter
from .status_store import SetupStatus, StatusStore

NOT_READY_MESSAGE = (
    "Setup still in progress or not started. Check setup.log for details."
)


class Activator:
    """
    Start-phase activator.

    Safe to run before the create phase finishes: until the status store
    reports completion it only logs and returns.
    """

    def __init__(
        self,
        config: BootstrapConfig,
        store: StatusStore,
        registrar: Optional[KernelRegistrar] = None,
        restarter: Optional[ServiceRestarter] = None,
    ):
        self.config = config
        self.store = store
        self.registrar = registrar or KernelRegistrar(config)
        self._restarter = restarter
        self.logger = logging.getLogger(f"{NAMESPACE}.{__name__.split('.')[-1]}")

    @property
    def restarter(self) -> ServiceRestarter:
        if self._restarter is None:
            self._restarter = RestarterFactory.create(
                self.config.init_system, timeout=self.config.command_timeout
            )
        return self._restarter

    def run(self) -> ActivationResult:
        """
        Register kernels and restart the notebook server once setup is done.

        Returns:
            ActivationResult; ready is False when nothing was done

        Raises:
            KernelRegistrationError: If an environment fails to register
            ServiceRestartError: If the notebook server cannot be restarted
        """
        record = self.store.load()

        if record is None or record.status != SetupStatus.COMPLETE:
            if record is not None and record.status == SetupStatus.FAILED:
                self.logger.error(f"Environment setup failed: {record.error}")
            self.logger.info(NOT_READY_MESSAGE)
            return ActivationResult(ready=False, message=NOT_READY_MESSAGE)

        kernels = self.registrar.register_all()
        if not kernels:
            self.logger.warning(f"No environments found under {self.config.envs_root}")

        self.restarter.restart()

        message = f"Registered {len(kernels)} kernel(s) and restarted the notebook server"
        self.logger.info(message)
        return ActivationResult(
            ready=True, kernels=kernels, service_restarted=True, message=message
        )

"""Exceptions raised by the lifecycle phases."""


class LifecycleError(Exception):
    """Base class for all notebook lifecycle failures."""


class ConfigurationError(LifecycleError):
    """An environment override could not be parsed."""


class BootstrapError(LifecycleError):
    """A create-phase step failed."""

    def __init__(self, step: str, detail: str):
        self.step = step
        self.detail = detail
        super().__init__(f"Step '{step}' failed: {detail}")


class BootstrapInProgressError(LifecycleError):
    """Another live worker is already running the create phase."""

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Create phase already running in process {pid}")


class KernelRegistrationError(LifecycleError):
    """Registering an environment as a kernel failed."""

    def __init__(self, environment: str, detail: str):
        self.environment = environment
        self.detail = detail
        super().__init__(f"Failed to register kernel '{environment}': {detail}")


class ServiceRestartError(LifecycleError):
    """The notebook server could not be restarted."""

"""Lifecycle bootstrap for GPU notebook instances."""

from .activator import Activator
from .bootstrapper import Bootstrapper
from .config import BootstrapConfig
from .errors import (
    BootstrapError,
    BootstrapInProgressError,
    ConfigurationError,
    KernelRegistrationError,
    LifecycleError,
    ServiceRestartError,
)
from .status_store import (
    FileStatusStore,
    MemoryStatusStore,
    SetupStatus,
    SetupStatusRecord,
    StatusStore,
)

__all__ = [
    "Activator",
    "Bootstrapper",
    "BootstrapConfig",
    "BootstrapError",
    "BootstrapInProgressError",
    "ConfigurationError",
    "FileStatusStore",
    "KernelRegistrationError",
    "LifecycleError",
    "MemoryStatusStore",
    "ServiceRestartError",
    "SetupStatus",
    "SetupStatusRecord",
    "StatusStore",
]

import pytest

from notebook_lifecycle.config import BootstrapConfig
from notebook_lifecycle.models import CommandResult
from notebook_lifecycle.status_store import (
    MemoryStatusStore,
    SetupStatus,
    SetupStatusRecord,
)


@pytest.fixture
def config(tmp_path):
    """Configuration rooted in a temporary home directory."""
    return BootstrapConfig.from_env({"LIFECYCLE_HOME": str(tmp_path)})


@pytest.fixture
def memory_store():
    """Empty in-memory status store."""
    return MemoryStatusStore()


@pytest.fixture
def complete_store():
    """Status store reporting a finished create phase."""
    return MemoryStatusStore(SetupStatusRecord(status=SetupStatus.COMPLETE))


@pytest.fixture
def ok_result():
    return CommandResult(success=True, stdout="ok", returncode=0)


@pytest.fixture
def make_env(config):
    """Create a conda environment directory with an interpreter stub."""

    def _make_env(name: str):
        env_dir = config.envs_root / name
        (env_dir / "bin").mkdir(parents=True)
        (env_dir / "bin" / "python").write_text("")
        return env_dir

    return _make_env


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory: tests/unit -> unit, tests/integration -> integration."""
    for item in items:
        path = str(item.fspath)
        if "tests/unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration" in path:
            item.add_marker(pytest.mark.integration)

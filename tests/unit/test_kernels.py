"""Tests for KernelRegistrar."""

from unittest.mock import patch

import pytest

from notebook_lifecycle.errors import KernelRegistrationError
from notebook_lifecycle.kernels import KernelRegistrar, kernel_display_name
from notebook_lifecycle.models import CommandResult


@pytest.fixture
def registrar(config):
    return KernelRegistrar(config)


@pytest.fixture
def mock_run(ok_result):
    with patch("notebook_lifecycle.kernels.run_logged_subprocess") as mock:
        mock.return_value = ok_result
        yield mock


def test_kernel_display_name():
    assert kernel_display_name("tensorflow2_p39") == "Custom (tensorflow2_p39)"


class TestListEnvironments:
    """Test environment discovery."""

    def test_missing_envs_root(self, registrar):
        assert registrar.list_environments() == []

    def test_sorted_directories_only(self, registrar, config, make_env):
        make_env("zeta")
        make_env("alpha")
        (config.envs_root / ".conda_envs_dir_test").mkdir()
        (config.envs_root / "README").write_text("")

        names = [p.name for p in registrar.list_environments()]

        assert names == ["alpha", "zeta"]


class TestRegister:
    """Test kernelspec installation."""

    def test_register_uses_environment_interpreter(self, registrar, make_env, mock_run):
        env_dir = make_env("tensorflow2_p39")

        assert registrar.register(env_dir) == "tensorflow2_p39"

        assert mock_run.call_args.args[0] == [
            str(env_dir / "bin" / "python"),
            "-m",
            "ipykernel",
            "install",
            "--user",
            "--name",
            "tensorflow2_p39",
            "--display-name",
            "Custom (tensorflow2_p39)",
        ]

    def test_missing_interpreter(self, registrar, config, mock_run):
        broken = config.envs_root / "broken"
        broken.mkdir(parents=True)

        with pytest.raises(KernelRegistrationError) as exc_info:
            registrar.register(broken)

        assert exc_info.value.environment == "broken"
        mock_run.assert_not_called()

    def test_ipykernel_failure(self, registrar, make_env, mock_run):
        env_dir = make_env("env1")
        mock_run.return_value = CommandResult(
            success=False, error="No module named ipykernel"
        )

        with pytest.raises(KernelRegistrationError, match="No module named ipykernel"):
            registrar.register(env_dir)


class TestRegisterAll:
    """Test registering every environment."""

    def test_registers_each_environment_in_order(self, registrar, make_env, mock_run):
        make_env("b_env")
        make_env("a_env")

        assert registrar.register_all() == ["a_env", "b_env"]
        assert mock_run.call_count == 2

    def test_stops_at_first_failure(self, registrar, make_env, config, mock_run):
        make_env("c_env")
        (config.envs_root / "a_broken").mkdir(parents=True)

        with pytest.raises(KernelRegistrationError):
            registrar.register_all()

        mock_run.assert_not_called()

    def test_repeat_registration_yields_same_kernels(self, registrar, make_env, mock_run):
        make_env("env1")
        make_env("env2")

        assert registrar.register_all() == registrar.register_all()

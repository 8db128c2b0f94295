"""Tests for the notebook-lifecycle command line."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from notebook_lifecycle.cli import app
from notebook_lifecycle.errors import (
    BootstrapError,
    BootstrapInProgressError,
    KernelRegistrationError,
)
from notebook_lifecycle.models import ActivationResult
from notebook_lifecycle.status_store import (
    FileStatusStore,
    SetupStatus,
    SetupStatusRecord,
)

runner = CliRunner()


@pytest.fixture(autouse=True)
def lifecycle_home(tmp_path, monkeypatch):
    monkeypatch.setenv("LIFECYCLE_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def status_store(lifecycle_home):
    sagemaker = lifecycle_home / "SageMaker"
    return FileStatusStore(
        sagemaker / "setup-status.json", legacy_marker=sagemaker / "setup-complete"
    )


class TestCreate:
    """Test the create command."""

    @patch("notebook_lifecycle.cli.launch_worker")
    def test_detaches_by_default(self, mock_launch):
        result = runner.invoke(app, ["create"])

        assert result.exit_code == 0
        mock_launch.assert_called_once()
        assert mock_launch.call_args.kwargs["force"] is False

    @patch("notebook_lifecycle.cli.add_file_handler")
    @patch("notebook_lifecycle.cli._interactive", return_value=True)
    @patch("notebook_lifecycle.cli.Bootstrapper")
    def test_foreground_from_terminal_logs_to_setup_log(
        self, mock_bootstrapper, mock_interactive, mock_add_handler, lifecycle_home
    ):
        result = runner.invoke(app, ["create", "--foreground"])

        assert result.exit_code == 0
        mock_add_handler.assert_called_once_with(
            lifecycle_home / "SageMaker" / "setup.log"
        )

    @patch("notebook_lifecycle.cli.add_file_handler")
    @patch("notebook_lifecycle.cli._interactive", return_value=False)
    @patch("notebook_lifecycle.cli.Bootstrapper")
    def test_worker_does_not_add_setup_log_handler(
        self, mock_bootstrapper, mock_interactive, mock_add_handler
    ):
        result = runner.invoke(app, ["create", "--foreground"])

        assert result.exit_code == 0
        mock_add_handler.assert_not_called()

    @patch("notebook_lifecycle.cli.Bootstrapper")
    def test_foreground_runs_bootstrapper(self, mock_bootstrapper):
        result = runner.invoke(app, ["create", "--foreground", "--force"])

        assert result.exit_code == 0
        mock_bootstrapper.return_value.run.assert_called_once_with(force=True)

    @patch("notebook_lifecycle.cli.Bootstrapper")
    def test_step_failure_exits_nonzero(self, mock_bootstrapper):
        mock_bootstrapper.return_value.run.side_effect = BootstrapError(
            "run-installer", "checksum mismatch"
        )

        result = runner.invoke(app, ["create", "--foreground"])

        assert result.exit_code == 1

    @patch("notebook_lifecycle.cli.Bootstrapper")
    def test_in_progress_exits_zero(self, mock_bootstrapper):
        mock_bootstrapper.return_value.run.side_effect = BootstrapInProgressError(99)

        result = runner.invoke(app, ["create", "--foreground"])

        assert result.exit_code == 0

    def test_invalid_config_exits_nonzero(self, monkeypatch):
        monkeypatch.setenv("LIFECYCLE_COMMAND_TIMEOUT", "never")

        result = runner.invoke(app, ["create", "--foreground"])

        assert result.exit_code == 1


class TestStart:
    """Test the start command."""

    def test_not_ready_exits_zero(self):
        result = runner.invoke(app, ["start"])

        assert result.exit_code == 0

    @patch("notebook_lifecycle.cli.Activator")
    def test_ready(self, mock_activator):
        mock_activator.return_value.run.return_value = ActivationResult(
            ready=True, kernels=["env1"], service_restarted=True
        )

        result = runner.invoke(app, ["start"])

        assert result.exit_code == 0

    @patch("notebook_lifecycle.cli.Activator")
    def test_registration_failure_exits_nonzero(self, mock_activator):
        mock_activator.return_value.run.side_effect = KernelRegistrationError(
            "env1", "boom"
        )

        result = runner.invoke(app, ["start"])

        assert result.exit_code == 1


class TestStatus:
    """Test the status command."""

    def test_not_started(self):
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "Setup has not started" in result.output

    def test_complete_table(self, status_store):
        status_store.save(
            SetupStatusRecord(
                status=SetupStatus.COMPLETE, completed_steps=["download-installer"]
            )
        )

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "complete" in result.output
        assert "download-installer" in result.output

    def test_json_output(self, status_store):
        status_store.save(
            SetupStatusRecord(status=SetupStatus.FAILED, error="init-shell: denied")
        )

        result = runner.invoke(app, ["status", "--json"])

        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["status"] == "failed"
        assert payload["error"] == "init-shell: denied"

    @patch("notebook_lifecycle.worker.worker_alive", return_value=False)
    def test_lost_worker_reported_failed(self, mock_alive, status_store):
        status_store.save(SetupStatusRecord(status=SetupStatus.RUNNING, pid=31337))

        result = runner.invoke(app, ["status", "--json"])

        assert result.exit_code == 1
        assert json.loads(result.output)["status"] == "failed"
        assert status_store.load().status == SetupStatus.FAILED

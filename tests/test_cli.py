"""CLI tests via Click's CliRunner with the orchestrator mocked out."""

import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from repo_installer.cli import cli
from repo_installer.error_handling import PrerequisiteError, CloneError
from repo_installer.logging import close_logging


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("INSTALLER_SOURCE", "INSTALLER_VIRTUALENV", "INSTALLER_INSTALL_DIR", "INSTALLER_FORK",
                "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI attaches handlers to the runner's streams; drop them afterwards."""
    yield
    close_logging()


@pytest.fixture
def orchestrator_cls():
    with patch("repo_installer.cli.InstallOrchestrator") as cls:
        cls.return_value.run.return_value = {
            "repositories_synced": [{
                "repository": "https://github.com/RedHatInsights/insights-core.git",
                "local_path": "/tmp/insights/insights-core",
                "cloned": True,
                "fork_remote": "https://github.com/alice/insights-core.git",
                "fork_already_configured": False,
            }],
            "repositories_failed": [],
            "errors": [],
            "command_link": None,
            "processing_time": 1.0,
        }
        yield cls


# ---------------------------------------------------------------------------
# install
# ---------------------------------------------------------------------------

def test_install_passes_options_into_config(runner, orchestrator_cls, tmp_path):
    result = runner.invoke(cli, ["install", "-g", "alice", "-s", "-r", str(tmp_path)])

    assert result.exit_code == 0, result.output
    config = orchestrator_cls.call_args.args[0]
    assert config.install.fork_name == "alice"
    assert config.install_source is True
    assert config.use_virtualenv is False
    assert config.install.install_dir == str(tmp_path)
    assert orchestrator_cls.call_args.kwargs["verbose"] is False
    assert "fork remote added" in result.output
    assert "Installer finished." in result.output


def test_no_source_flag(runner, orchestrator_cls):
    result = runner.invoke(cli, ["install", "-n", "-r"])

    assert result.exit_code == 0, result.output
    config = orchestrator_cls.call_args.args[0]
    assert config.install_source is False


def test_verbose_flag_reaches_orchestrator(runner, orchestrator_cls, tmp_path):
    result = runner.invoke(cli, ["-v", "install", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert orchestrator_cls.call_args.kwargs["verbose"] is True


def test_failed_repositories_exit_non_zero(runner, orchestrator_cls, tmp_path):
    orchestrator_cls.return_value.run.return_value = {
        "repositories_synced": [],
        "repositories_failed": ["https://github.com/RedHatInsights/insights-cli.git"],
        "errors": ["Failed to install insights-cli (/tmp/insights-cli): git pull failed"],
        "command_link": None,
        "processing_time": 1.0,
    }

    result = runner.invoke(cli, ["install", str(tmp_path)])

    assert result.exit_code == 1
    assert "git pull failed" in result.output


def test_prerequisite_failure_exits_2(runner, orchestrator_cls, tmp_path):
    orchestrator_cls.return_value.run.side_effect = PrerequisiteError("Cannot reach github.com - cannot continue")

    result = runner.invoke(cli, ["install", str(tmp_path)])

    assert result.exit_code == 2
    assert "Cannot reach github.com" in result.output


def test_clone_failure_exits_1(runner, orchestrator_cls, tmp_path):
    orchestrator_cls.return_value.run.side_effect = CloneError(
        "Clone did not create directory", local_dir=str(tmp_path / "insights-core")
    )

    result = runner.invoke(cli, ["install", str(tmp_path)])

    assert result.exit_code == 1
    assert "insights-core" in result.output


def test_install_dir_from_environment_may_contain_comma(runner, orchestrator_cls, tmp_path, monkeypatch):
    target = tmp_path / "a,b"
    monkeypatch.setenv("INSTALLER_INSTALL_DIR", str(target))

    result = runner.invoke(cli, ["install"])

    assert result.exit_code == 0, result.output
    assert orchestrator_cls.call_args.args[0].install.install_dir == str(target)


def test_badly_typed_environment_value_is_reported(runner, orchestrator_cls, tmp_path, monkeypatch):
    monkeypatch.setenv("INSTALLER_SOURCE", "sometimes")

    result = runner.invoke(cli, ["install", str(tmp_path)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "INSTALLER_SOURCE must be true or false" in result.output
    orchestrator_cls.assert_not_called()


def test_missing_directory_in_source_mode(runner):
    result = runner.invoke(cli, ["install", "-s"])

    assert result.exit_code == 1
    assert "directory" in result.output


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

def test_config_table(runner):
    result = runner.invoke(cli, ["config"])

    assert result.exit_code == 0, result.output
    assert "[Repositories]" in result.output
    assert "insights-core[develop]" in result.output


def test_config_json_uses_file(runner, tmp_path):
    path = tmp_path / "installer.yaml"
    path.write_text("install:\n  fork_name: alice\n")

    result = runner.invoke(cli, ["--config", str(path), "config", "-f", "json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["install"]["fork_name"] == "alice"
    assert data["repositories"][0]["branch"] == "1.x"


def test_config_yaml(runner):
    result = runner.invoke(cli, ["config", "--format", "yaml"])

    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.output)["prerequisites"]["git_host"] == "github.com"


def test_invalid_config_file(runner, tmp_path):
    path = tmp_path / "installer.yaml"
    path.write_text("repositories: []\n")

    result = runner.invoke(cli, ["--config", str(path), "config"])

    assert result.exit_code == 1
    assert "At least one repository" in result.output


def test_unusable_repository_url_is_reported(runner, tmp_path):
    path = tmp_path / "installer.yaml"
    path.write_text("repositories:\n  - url: '/'\n")

    result = runner.invoke(cli, ["--config", str(path), "config"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "unusable url" in result.output

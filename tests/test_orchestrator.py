"""Tests for the install sequence with every collaborator mocked."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from repo_installer.config import AppConfig, InstallConfig, RepositoryEntry
from repo_installer.environment import PrerequisiteChecker, CommandLinker
from repo_installer.error_handling import CloneError, ConfigurationError, InstallError, VersionControlError
from repo_installer.models import SyncResult
from repo_installer.orchestrator import InstallOrchestrator
from repo_installer.repository import GitClient

REPOS = [
    RepositoryEntry(url="https://github.com/RedHatInsights/insights-core.git", branch="1.x",
                    extras="[develop]", fork_remote=True),
    RepositoryEntry(url="https://github.com/RedHatInsights/insights-cli.git"),
    RepositoryEntry(url="https://github.com/RedHatInsights/insights-plugins-demo.git"),
]


def make_config(install_dir, **install):
    install.setdefault("install_source", True)
    install.setdefault("use_virtualenv", False)
    return AppConfig(
        install=InstallConfig(install_dir=str(install_dir) if install_dir else None, **install),
        repositories=list(REPOS),
    )


def make_orchestrator(config, **kwargs):
    return InstallOrchestrator(
        config,
        checker=kwargs.pop("checker", Mock(spec=PrerequisiteChecker)),
        git_client=Mock(spec=GitClient),
        linker=kwargs.pop("linker", Mock(spec=CommandLinker)),
        **kwargs
    )


@pytest.fixture
def mock_sync():
    with patch("repo_installer.orchestrator.RepoSync") as repo_sync_cls:
        instance = repo_sync_cls.return_value
        instance.sync.side_effect = lambda spec, options: SyncResult(spec=spec)
        yield instance


@pytest.fixture
def mock_installer():
    with patch("repo_installer.orchestrator.PackageInstaller") as installer_cls:
        yield installer_cls


def test_source_install_requires_directory():
    with pytest.raises(ConfigurationError, match="directory"):
        make_orchestrator(make_config(None))


def test_remote_only_global_install_needs_no_directory():
    orchestrator = make_orchestrator(make_config(None, install_source=False))
    assert orchestrator.install_dir is None


def test_relative_directory_resolved(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    orchestrator = make_orchestrator(make_config("insights"))
    assert orchestrator.install_dir == tmp_path / "insights"


def test_all_repositories_synced_in_order(tmp_path, mock_sync, mock_installer):
    orchestrator = make_orchestrator(make_config(tmp_path, fork_name="alice"))

    results = orchestrator.run()

    synced = [c.args[0].local_dir for c in mock_sync.sync.call_args_list]
    assert synced == ["insights-core", "insights-cli", "insights-plugins-demo"]
    options = mock_sync.sync.call_args.args[1]
    assert options.fork_name == "alice"
    assert options.install_source is True
    assert len(results["repositories_synced"]) == 3
    assert results["errors"] == []


def test_prerequisites_checked_before_sync(tmp_path, mock_sync, mock_installer):
    checker = Mock(spec=PrerequisiteChecker)
    config = make_config(tmp_path)
    config.prerequisites.packages = ["libyaml-devel"]
    orchestrator = make_orchestrator(config, checker=checker)

    orchestrator.run()

    checker.check_python_version.assert_called_once_with("3.8")
    checker.check_binary.assert_any_call("git", None)
    checker.check_package.assert_called_once_with("libyaml-devel")
    checker.install_requirements.assert_called_once_with()
    checker.check_host.assert_called_once_with("github.com")


def test_preinstall_goes_to_target_interpreter(tmp_path, mock_sync, mock_installer):
    config = make_config(tmp_path)
    config.prerequisites.preinstall = ["Sphinx==1.6.1"]

    make_orchestrator(config).run()

    mock_installer.return_value.preinstall.assert_called_once_with(["Sphinx==1.6.1"], quiet=True)


def test_version_control_failure_skips_only_that_repository(tmp_path, mock_sync, mock_installer):
    def sync(spec, options):
        if spec.local_dir == "insights-cli":
            raise VersionControlError("git pull failed", local_dir=str(tmp_path / "insights-cli"))
        return SyncResult(spec=spec)

    mock_sync.sync.side_effect = sync
    linker = Mock(spec=CommandLinker)

    results = make_orchestrator(make_config(tmp_path), linker=linker).run()

    assert mock_sync.sync.call_count == 3
    assert results["repositories_failed"] == ["https://github.com/RedHatInsights/insights-cli.git"]
    assert "insights-cli" in results["errors"][0]
    assert len(results["repositories_synced"]) == 2
    linker.verify_command.assert_not_called()


def test_install_failure_is_recorded(tmp_path, mock_sync, mock_installer):
    mock_sync.sync.side_effect = InstallError("pip failed")

    results = make_orchestrator(make_config(tmp_path)).run()

    assert len(results["errors"]) == 3


def test_clone_failure_aborts_the_run(tmp_path, mock_sync, mock_installer):
    mock_sync.sync.side_effect = CloneError("clone did not create directory")

    with pytest.raises(CloneError):
        make_orchestrator(make_config(tmp_path)).run()

    assert mock_sync.sync.call_count == 1


def test_virtualenv_mode_links_command(tmp_path, mock_sync, mock_installer):
    linker = Mock(spec=CommandLinker)
    linker.verify_command.return_value = tmp_path / "bin" / "insights-cli"
    linker.link_command.return_value = Path("/home/user/bin/insights-cli")

    with patch("repo_installer.orchestrator.VirtualEnvironment") as venv_cls:
        venv_cls.return_value.ensure.return_value = tmp_path / "bin" / "python"
        results = make_orchestrator(make_config(tmp_path, use_virtualenv=True), linker=linker).run()

    mock_installer.assert_called_once_with(str(tmp_path / "bin" / "python"))
    linker.verify_command.assert_called_once_with(tmp_path, "insights-cli")
    assert results["command_link"] == "/home/user/bin/insights-cli"


def test_global_install_skips_link(tmp_path, mock_sync, mock_installer):
    linker = Mock(spec=CommandLinker)

    results = make_orchestrator(make_config(tmp_path), linker=linker).run()

    linker.verify_command.assert_not_called()
    assert results["command_link"] is None

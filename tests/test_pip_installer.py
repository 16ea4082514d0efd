"""Tests for the pip wrapper with subprocess mocked out."""

import subprocess
from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest

from repo_installer.error_handling import InstallError
from repo_installer.models import RepoSpec
from repo_installer.packages import PackageInstaller

CORE_URL = "https://github.com/RedHatInsights/insights-core.git"


@pytest.fixture
def mock_run():
    with patch("repo_installer.packages.pip_installer.subprocess.run") as run:
        run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield run


def test_editable_install_requests_extras(mock_run, tmp_path):
    path = tmp_path / "insights-core"
    path.mkdir()

    PackageInstaller("/venv/bin/python").install_editable(path, "[develop]")

    command = mock_run.call_args.args[0]
    assert command[:4] == ["/venv/bin/python", "-m", "pip", "install"]
    assert "-q" in command
    assert command[-2:] == ["-e", f"{path.resolve()}[develop]"]


def test_editable_install_without_extras_verbose(mock_run, tmp_path):
    PackageInstaller("python3").install_editable(tmp_path, None, quiet=False)

    command = mock_run.call_args.args[0]
    assert "-q" not in command
    assert command[-1] == str(tmp_path.resolve())


def test_remote_install_pins_branch_and_upgrades(mock_run):
    spec = RepoSpec(remote_url=CORE_URL, target_branch="1.x", extra_install_marker="[develop]")

    PackageInstaller("python3").install_remote(spec, spec.extra_install_marker)

    command = mock_run.call_args.args[0]
    assert "--upgrade" in command
    assert command[-1] == f"insights-core[develop] @ git+{CORE_URL}@1.x"


def test_failed_install_raises_with_stderr(mock_run, tmp_path):
    mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="ERROR: No matching distribution\n")

    with pytest.raises(InstallError) as excinfo:
        PackageInstaller("python3").install_editable(tmp_path, repository=CORE_URL)

    error = excinfo.value
    assert error.repository == CORE_URL
    assert error.operation == "install"
    assert "No matching distribution" in error.context["stderr"]


def test_timeout_raises_install_error(mock_run, tmp_path):
    mock_run.side_effect = subprocess.TimeoutExpired(cmd="pip", timeout=5)

    with pytest.raises(InstallError, match="timed out"):
        PackageInstaller("python3", timeout=5).install_editable(tmp_path)


def test_missing_interpreter_raises_install_error(mock_run, tmp_path):
    mock_run.side_effect = FileNotFoundError("no such file")

    with pytest.raises(InstallError, match="Cannot run pip"):
        PackageInstaller(Path("/missing/python")).install_editable(tmp_path)


def test_preinstall_skips_empty_list(mock_run):
    PackageInstaller("python3").preinstall([])
    mock_run.assert_not_called()


def test_preinstall_passes_requirements(mock_run):
    PackageInstaller("python3").preinstall(["Sphinx==1.6.1"])
    assert mock_run.call_args.args[0][-1] == "Sphinx==1.6.1"

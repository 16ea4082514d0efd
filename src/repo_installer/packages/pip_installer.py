"""
pip wrapper for editable and remote installs.
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..error_handling import InstallError
from ..models import RepoSpec

logger = logging.getLogger(__name__)


class PackageInstaller:
    """
    Installs packages into a target interpreter with ``python -m pip``.

    The target is the virtual environment's python when one is in use, or the
    running interpreter for a global install.
    """

    def __init__(self, python: Optional[Union[str, Path]] = None, timeout: Optional[int] = None):
        """
        Initialize package installer.

        Args:
            python: Interpreter whose environment receives the packages
            timeout: Seconds before a single pip run is abandoned
        """
        self.python = str(python or sys.executable)
        self.timeout = timeout

    def install_editable(
        self,
        path: Union[str, Path],
        extras: Optional[str] = None,
        quiet: bool = True,
        repository: Optional[str] = None
    ) -> None:
        """
        Install a working copy in development mode.

        Args:
            path: Working copy directory
            extras: Extras marker such as ``[develop]``
            quiet: Pass ``-q`` to pip
            repository: Remote URL, used for error reporting
        """
        target = f"{Path(path).resolve()}{extras or ''}"
        logger.info(f"...Installing {target} in development mode")
        self._run_pip(["-e", target], quiet, repository=repository, local_dir=str(path))

    def install_remote(self, spec: RepoSpec, extras: Optional[str] = None, quiet: bool = True) -> None:
        """
        Install a repository straight from its remote, without local source.

        The pinned branch of ``spec`` is installed and an existing install is
        upgraded.
        """
        requirement = f"{spec.local_dir}{extras or ''} @ git+{spec.remote_url}@{spec.target_branch}"
        logger.info(f"... Just installing {requirement} via pip")
        self._run_pip(["--upgrade", requirement], quiet, repository=spec.remote_url)

    def preinstall(self, requirements: Sequence[str], quiet: bool = True) -> None:
        """Install pinned requirements needed before the managed repositories."""
        if not requirements:
            return
        logger.info(f"Pre-installing {', '.join(requirements)}")
        self._run_pip(list(requirements), quiet)

    def _build_command(self, args: List[str], quiet: bool) -> List[str]:
        command = [self.python, "-m", "pip", "install"]
        if quiet:
            command.append("-q")
        return command + args

    def _run_pip(
        self,
        args: List[str],
        quiet: bool,
        repository: Optional[str] = None,
        local_dir: Optional[str] = None
    ) -> None:
        command = self._build_command(args, quiet)
        logger.debug(f"Executing: {' '.join(command)}")

        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise InstallError(
                f"pip install timed out after {self.timeout} seconds",
                repository=repository, local_dir=local_dir, operation="install", cause=e
            )
        except OSError as e:
            raise InstallError(
                f"Cannot run pip with {self.python}",
                repository=repository, local_dir=local_dir, operation="install", cause=e
            )

        if not quiet and proc.stdout:
            logger.info(proc.stdout.rstrip())

        if proc.returncode != 0:
            stderr = proc.stderr.strip()
            logger.error(f"pip install {' '.join(args)} failed: {stderr}")
            raise InstallError(
                f"pip install {' '.join(args)} failed with exit code {proc.returncode}",
                repository=repository, local_dir=local_dir, operation="install",
                context={"stderr": stderr[-2000:]} if stderr else None
            )

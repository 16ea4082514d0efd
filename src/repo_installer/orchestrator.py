"""
Orchestration of a complete install run: prerequisites, environment,
repository synchronization and the command link.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any, Optional

from .config import AppConfig
from .environment import PrerequisiteChecker, VirtualEnvironment, CommandLinker
from .error_handling import ConfigurationError, CloneError, SyncError
from .models import RepoSpec, SyncOptions
from .packages import PackageInstaller
from .repository import GitClient, RepoSync

logger = logging.getLogger(__name__)


class InstallOrchestrator:
    """
    Runs the install sequence for every configured repository.

    A CloneError stops the whole run, since later repositories usually depend
    on earlier ones. Any other sync failure is recorded and the run moves on to
    the next repository; the run then reports failure at the end.
    """

    def __init__(
        self,
        config: AppConfig,
        verbose: bool = False,
        checker: Optional[PrerequisiteChecker] = None,
        git_client: Optional[GitClient] = None,
        linker: Optional[CommandLinker] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Application configuration with CLI overrides applied
            verbose: Let pip and git print their own output
            checker: Prerequisite checker
            git_client: Version control operations
            linker: Command link helper
        """
        self.config = config
        self.verbose = verbose
        self.checker = checker or PrerequisiteChecker(
            package_manager=config.prerequisites.package_manager,
            host_timeout=config.prerequisites.host_timeout
        )
        self.git_client = git_client or GitClient()
        self.linker = linker or CommandLinker(config.install.link_dir)
        self.options: SyncOptions = config.sync_options(verbose)
        self.install_dir = self._resolve_install_dir()

        self._statistics = {
            "start_time": None,
            "end_time": None,
            "synced": [],
            "failed": [],
            "errors": []
        }

    def _resolve_install_dir(self) -> Optional[Path]:
        install_dir = self.config.install.install_dir
        if not install_dir:
            if self.config.install_source or self.config.use_virtualenv:
                raise ConfigurationError(
                    "Please supply a directory to install/update into, e.g. ~/insights/",
                    config_section="install", config_key="install_dir"
                )
            return None

        path = Path(install_dir).expanduser()
        if not path.is_absolute():
            path = Path.cwd() / path
            logger.warning(f"Got relative path - installing to '{path}'.")
        return path

    def run(self) -> Dict[str, Any]:
        """
        Execute the whole install sequence.

        Returns:
            Dictionary with the synchronized and failed repositories, errors,
            the command link and the processing time
        """
        self._statistics["start_time"] = datetime.utcnow()

        if self.options.install_source:
            logger.info(f"Installing source code into {self.install_dir}")
        else:
            logger.info("Installing as pip modules.")

        self.check_prerequisites()
        python = self.prepare_environment()

        installer = PackageInstaller(python)
        installer.preinstall(self.config.prerequisites.preinstall, quiet=not self.verbose)

        repo_sync = RepoSync(self.install_dir or Path.cwd(), self.git_client, installer)
        self.sync_repositories(repo_sync, self.config.repo_specs())

        link = None
        if not self._statistics["failed"]:
            link = self.link_command()

        self._statistics["end_time"] = datetime.utcnow()
        results = {
            "repositories_synced": self._statistics["synced"],
            "repositories_failed": self._statistics["failed"],
            "errors": self._statistics["errors"],
            "command_link": str(link) if link else None,
            "processing_time": self._calculate_processing_time()
        }
        logger.info(f"Installer finished in {results['processing_time']:.1f} seconds")
        return results

    def check_prerequisites(self) -> None:
        """Check the interpreter, commands, packages and git host; install what is missing."""
        prerequisites = self.config.prerequisites

        logger.info("Checking version of python...")
        self.checker.check_python_version(prerequisites.min_python_version)

        logger.info("Checking if required commands and packages are installed...")
        for exe, package in prerequisites.binaries.items():
            self.checker.check_binary(exe, package)
        for package in prerequisites.packages:
            self.checker.check_package(package)
        self.checker.install_requirements()

        if prerequisites.git_host and self.options.install_source:
            logger.info("Checking we can access git servers...")
            self.checker.check_host(prerequisites.git_host)

    def prepare_environment(self) -> str:
        """
        Create or reuse the virtual environment.

        Returns:
            The interpreter packages should be installed into
        """
        if not self.config.use_virtualenv:
            logger.info("Installing globally.")
            return sys.executable

        logger.info("Installing using virtualenv")
        return str(VirtualEnvironment(self.install_dir).ensure())

    def sync_repositories(self, repo_sync: RepoSync, specs: List[RepoSpec]) -> None:
        for spec in specs:
            logger.info(f"Installing {spec.name}...")
            try:
                result = repo_sync.sync(spec, self.options)
            except CloneError:
                self._statistics["failed"].append(spec.remote_url)
                raise
            except SyncError as e:
                error_msg = f"Failed to install {spec.name} ({e.local_dir or spec.remote_url}): {e.message}"
                logger.error(error_msg)
                self._statistics["errors"].append(error_msg)
                self._statistics["failed"].append(spec.remote_url)
                continue
            self._statistics["synced"].append(result.to_dict())

    def link_command(self) -> Optional[Path]:
        """Verify the installed command and link it into ``~/bin``."""
        if not self.config.use_virtualenv:
            return None

        command = self.config.install.command_name
        target = self.linker.verify_command(self.install_dir, command)
        return self.linker.link_command(target, command)

    def _calculate_processing_time(self) -> float:
        start = self._statistics["start_time"]
        end = self._statistics["end_time"]
        if start and end:
            return (end - start).total_seconds()
        return 0.0

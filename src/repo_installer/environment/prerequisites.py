"""
Host prerequisite checks and installation of missing OS packages.
"""

import logging
import os
import shutil
import subprocess
import sys
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from ..error_handling import PrerequisiteError

logger = logging.getLogger(__name__)


def parse_version(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in version.split('.') if part)


class PrerequisiteChecker:
    """
    Collects missing commands and packages, then installs them in one go.

    ``check_binary`` and ``check_package`` only record what is missing;
    ``install_requirements`` runs the package manager (through sudo when not
    root) and verifies that everything recorded is now present.
    """

    def __init__(
        self,
        package_manager: Sequence[str] = ("yum", "install", "-y"),
        host_timeout: int = 10,
        session: Optional[requests.Session] = None
    ):
        self.package_manager = list(package_manager)
        self.host_timeout = host_timeout
        self.session = session or requests.Session()
        # package name -> command it provides (None for library packages)
        self.required_packages: Dict[str, Optional[str]] = {}

    def check_python_version(self, minimum: str, version_info: Optional[Sequence[int]] = None) -> None:
        """
        Raises:
            PrerequisiteError: If the interpreter is older than ``minimum``
        """
        current = tuple(version_info or sys.version_info[:3])
        required = parse_version(minimum)
        current_str = '.'.join(str(part) for part in current)
        if current[:len(required)] < required:
            raise PrerequisiteError(
                f"Python must be at least version {minimum} (got {current_str}) - cannot install",
                requirement="python"
            )
        logger.debug(f"Python {current_str} satisfies minimum {minimum}")

    def check_binary(self, exe: str, package: Optional[str] = None) -> bool:
        """Record ``package`` (default: ``exe``) as required if ``exe`` is not on PATH."""
        if shutil.which(exe):
            return True
        package = package or exe
        logger.warning(f"Command '{exe}' not installed...")
        self.required_packages[package] = exe
        return False

    def check_package(self, package: str) -> bool:
        """Record an OS package as required if the package database lacks it."""
        if shutil.which("rpm") is None:
            logger.warning(f"rpm not available; cannot check for package '{package}'")
            return True
        if self._rpm_installed(package):
            return True
        logger.warning(f"Package '{package}' not installed...")
        self.required_packages[package] = None
        return False

    def check_host(self, host: str) -> None:
        """
        Make sure the git host answers over HTTPS.

        Raises:
            PrerequisiteError: If the host cannot be reached
        """
        try:
            response = self.session.head(f"https://{host}", timeout=self.host_timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise PrerequisiteError(
                f"Cannot reach {host} - cannot continue", requirement=host, cause=e
            )
        logger.debug(f"{host} answered with HTTP {response.status_code}")

    def install_requirements(self) -> List[str]:
        """
        Install every package recorded as missing.

        Returns:
            The packages that were installed

        Raises:
            PrerequisiteError: If the package manager fails or a package is
                still missing afterwards
        """
        if not self.required_packages:
            return []

        packages = list(self.required_packages)
        command = self.package_manager + packages
        if not self._is_root():
            logger.info("Installing required packages - sudo access required:")
            command = ["sudo"] + command
        else:
            logger.info("Installing required packages...")

        # Not captured: sudo may need to prompt for a password
        try:
            subprocess.run(command, check=False)
        except OSError as e:
            raise PrerequisiteError(
                f"Cannot run {command[0]} to install {' '.join(packages)}", cause=e
            )

        for package, exe in self.required_packages.items():
            present = shutil.which(exe) if exe else self._rpm_installed(package)
            if not present:
                raise PrerequisiteError(
                    f"{package} did not get installed - cannot continue", requirement=package
                )

        self.required_packages = {}
        return packages

    def _rpm_installed(self, package: str) -> bool:
        result = subprocess.run(
            ["rpm", "--quiet", "-q", package],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return result.returncode == 0

    @staticmethod
    def _is_root() -> bool:
        return hasattr(os, "getuid") and os.getuid() == 0

"""
Virtual environment creation for the install directory.
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import Union

from ..error_handling import PrerequisiteError

logger = logging.getLogger(__name__)


class VirtualEnvironment:
    """
    A virtual environment rooted at the install directory.

    The working copies are cloned inside the same directory, so the installed
    commands end up in ``<install_dir>/bin``.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def bin_dir(self) -> Path:
        return self.path / "bin"

    @property
    def python(self) -> Path:
        return self.bin_dir / "python"

    def exists(self) -> bool:
        return (self.bin_dir / "activate").is_file()

    def ensure(self, base_python: Union[str, Path] = sys.executable) -> Path:
        """
        Create the directory and the environment if they are missing.

        Returns:
            Path of the environment's python interpreter

        Raises:
            PrerequisiteError: If the environment cannot be created
        """
        if not self.path.is_dir():
            logger.info(f"Creating new directory '{self.path}'...")
            self.path.mkdir(parents=True)
        else:
            logger.info(f"Using existing directory '{self.path}'...")

        if self.exists():
            logger.info(f"Using existing virtualenv at {self.path}")
            return self.python

        logger.info(f"Creating new virtual environment at {self.path}")
        try:
            subprocess.run(
                [str(base_python), "-m", "venv", str(self.path)],
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise PrerequisiteError(
                f"Failed to create virtual environment at {self.path}: {(e.stderr or '').strip()}",
                requirement="venv", cause=e
            )
        return self.python

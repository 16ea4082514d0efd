"""
Post-install check for the installed command and the ~/bin convenience link.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..error_handling import InstallError

logger = logging.getLogger(__name__)


class CommandLinker:
    """Puts the installed command on the user's PATH through ``~/bin``."""

    def __init__(self, link_dir: Union[str, Path] = "~/bin", path_env: Optional[str] = None):
        self.link_dir = Path(os.path.expanduser(str(link_dir)))
        self.path_env = os.environ.get("PATH", "") if path_env is None else path_env

    def verify_command(self, install_dir: Union[str, Path], command: str) -> Path:
        """
        Raises:
            InstallError: If ``<install_dir>/bin/<command>`` does not exist
        """
        target = Path(install_dir) / "bin" / command
        if not target.exists():
            raise InstallError(
                f"Cannot find {target} - install has failed?",
                local_dir=str(install_dir), operation="verify"
            )
        return target

    def link_dir_on_path(self) -> bool:
        entries = [os.path.normpath(os.path.expanduser(p)) for p in self.path_env.split(os.pathsep) if p]
        return os.path.normpath(str(self.link_dir)) in entries

    def link_command(self, target: Union[str, Path], command: str) -> Optional[Path]:
        """
        Link ``target`` into the link directory.

        The link directory is created when it is on PATH but missing. An
        existing link is left alone.

        Returns:
            The new link, or None when nothing was linked
        """
        if self.link_dir_on_path() and not self.link_dir.is_dir():
            self.link_dir.mkdir(parents=True)
            logger.info(f"As a convenience, {self.link_dir} now exists for you")

        if not self.link_dir.is_dir():
            return None

        link = self.link_dir / command
        if link.is_symlink():
            logger.debug(f"{link} already links to {os.readlink(link)}")
            return None
        if link.exists():
            logger.warning(f"{link} exists and is not a symlink; leaving it alone")
            return None

        link.symlink_to(Path(target))
        logger.info(f"You should now be able to use '{command}' as a command!")
        return link

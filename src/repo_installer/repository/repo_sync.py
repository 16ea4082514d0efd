"""
Synchronization of a local working copy with its remote, followed by an
editable install.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..error_handling import CloneError, SyncError
from ..models import RepoSpec, SyncOptions, SyncResult, SyncState
from ..packages import PackageInstaller
from .git_client import GitClient

logger = logging.getLogger(__name__)

ORIGIN = "origin"


class RepoSync:
    """
    Brings a working copy into an installable state without losing local work.

    For an existing working copy that is on another branch, any uncommitted
    changes are stashed, the target branch is checked out, pulled and
    installed, and then the developer's branch and changes are put back.
    Running it again against an unchanged upstream changes nothing.

    Working copies live in ``base_dir``, one directory per repository named
    after the last segment of its URL.
    """

    def __init__(
        self,
        base_dir: Union[str, Path],
        git_client: Optional[GitClient] = None,
        installer: Optional[PackageInstaller] = None
    ):
        """
        Initialize the sync routine.

        Args:
            base_dir: Directory holding the working copies
            git_client: Version control operations
            installer: Package install operations
        """
        self.base_dir = Path(base_dir)
        self.git = git_client or GitClient()
        self.installer = installer or PackageInstaller()

    def local_path(self, spec: RepoSpec) -> Path:
        return self.base_dir / spec.local_dir

    def sync(self, spec: RepoSpec, options: SyncOptions) -> SyncResult:
        """
        Synchronize and install one repository.

        Args:
            spec: Repository to synchronize
            options: Run-wide flags

        Returns:
            SyncResult describing what was done

        Raises:
            CloneError: The working copy could not be created
            VersionControlError: A git step failed
            InstallError: pip failed
        """
        quiet = not options.verbose

        if not options.install_source:
            self.installer.install_remote(spec, spec.extra_install_marker, quiet=quiet)
            return SyncResult(spec=spec)

        path = self.local_path(spec)
        state = SyncState(exists=path.is_dir())
        result = SyncResult(spec=spec, local_path=path, state=state)
        # set once the corresponding step has been undone
        branch_restored = not state.exists
        changes_restored = not state.exists

        try:
            if not state.exists:
                self._clone(spec, path, quiet)
                result.cloned = True
            else:
                logger.info(f"...Updating source in {path}")
                self._reconcile(spec, path, state)

            self.git.checkout(path, spec.target_branch, quiet=quiet)
            self.git.pull(path, ORIGIN, spec.target_branch, quiet=quiet)
            self.installer.install_editable(
                path, spec.extra_install_marker, quiet=quiet, repository=spec.remote_url
            )

            if state.needs_branch_restore:
                logger.info(f"...Returning {path} to branch {state.current_branch}")
                self.git.checkout(path, state.current_branch, quiet=quiet)
            branch_restored = True

            if state.needs_unstash:
                logger.info(f"...Restoring uncommitted changes in {path}")
                self.git.stash_apply(path, state.stash_commit, drop=not options.keep_stash)
            changes_restored = True

            if options.fork_name and spec.fork_remote:
                self._register_fork(spec, path, options, result)

        except SyncError as e:
            e.repository = e.repository or spec.remote_url
            e.local_dir = e.local_dir or str(path)
            e.context.setdefault("repository", spec.remote_url)
            e.context.setdefault("local_dir", str(path))
            self._report_leftover_state(path, state, branch_restored, changes_restored)
            raise

        return result

    def _clone(self, spec: RepoSpec, path: Path, quiet: bool) -> None:
        logger.info(f"...Cloning source into {path}")
        self.git.clone(spec.remote_url, path, quiet=quiet)

        # git's exit status is not trusted on its own; the directory must exist
        if not path.is_dir():
            raise CloneError(
                f"Clone of {spec.remote_url} did not create {path}",
                repository=spec.remote_url, local_dir=str(path), operation="clone"
            )

    def _reconcile(self, spec: RepoSpec, path: Path, state: SyncState) -> None:
        """Record the developer's state and set aside anything checkout would disturb."""
        state.current_branch, _ = self.git.branch_list(path)

        if state.current_branch != spec.target_branch:
            state.needs_branch_restore = True
            state.has_uncommitted_changes = self.git.diff_nonempty(path)
            if state.has_uncommitted_changes:
                logger.info(f"...Stashing uncommitted changes on {state.current_branch}")
                state.stash_commit = self.git.stash_save(
                    path, f"repo-installer: changes on {state.current_branch}"
                )
                if state.stash_commit:
                    state.needs_unstash = True
                else:
                    logger.warning(
                        f"...Nothing could be stashed in {path} (changes inside submodules are not stashed); "
                        f"they stay in the working tree"
                    )

        current_origin = self.git.remote_get(path, ORIGIN)
        if current_origin != spec.remote_url:
            state.origin_mismatch = True
            logger.info(f"...Remote URL for '{ORIGIN}' repository set to {spec.remote_url}")
            self.git.remote_set(path, ORIGIN, spec.remote_url)

    def _register_fork(self, spec: RepoSpec, path: Path, options: SyncOptions, result: SyncResult) -> None:
        fork_url = spec.fork_url(options.canonical_organization, options.fork_name)
        if fork_url is None:
            logger.warning(
                f"{spec.remote_url} is not under {options.canonical_organization}; "
                f"not adding remote '{options.fork_name}'"
            )
            return

        result.fork_remote = fork_url
        if self.git.remote_add(path, options.fork_name, fork_url):
            result.fork_already_configured = True
            logger.info(f"...Remote '{options.fork_name}' already configured in {path}")
        else:
            logger.info(f"...Added remote '{options.fork_name}' -> {fork_url}")

    def _report_leftover_state(
        self, path: Path, state: SyncState, branch_restored: bool, changes_restored: bool
    ) -> None:
        # No rollback: tell the developer where their work is
        if state.needs_branch_restore and not branch_restored:
            logger.warning(
                f"{path} was left off your branch '{state.current_branch}'; "
                f"run 'git checkout {state.current_branch}' to return to it"
            )
        if state.needs_unstash and not changes_restored:
            logger.warning(
                f"Your uncommitted changes in {path} are saved in the git stash as {state.stash_commit}; "
                f"run 'git stash pop' on '{state.current_branch}' to restore them"
            )

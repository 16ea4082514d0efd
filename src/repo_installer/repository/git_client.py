"""
Git client used by the sync routine.

Every operation takes the working copy path explicitly; the process working
directory is never changed.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ..error_handling import CloneError, VersionControlError, RetryConfig, retry

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# git's own wording for failures of the connection rather than of the repository
NETWORK_ERROR_MARKERS = (
    "could not resolve host",
    "could not read from remote repository",
    "connection timed out",
    "connection refused",
    "connection reset",
    "operation timed out",
    "the remote end hung up unexpectedly",
    "early eof",
    "failed to connect",
    "unable to access",
    "temporary failure in name resolution",
)
NOT_NETWORK_MARKERS = (
    "repository not found",
    "does not appear to be a git repository",
    "permission denied",
    "authentication failed",
    "the requested url returned error",
)


def is_network_error(error: Exception) -> bool:
    """True for git failures worth retrying; conflicts and missing repositories are not."""
    stderr = str(getattr(error, "stderr", "") or "").lower()
    if any(marker in stderr for marker in NOT_NETWORK_MARKERS):
        return False
    return any(marker in stderr for marker in NETWORK_ERROR_MARKERS)


# clone and pull talk to the remote; only connection failures get retried
NETWORK_RETRY = RetryConfig(
    max_attempts=3, base_delay=2.0, exceptions=(GitCommandError,), retry_if=is_network_error
)


class GitClient:
    """
    Thin wrapper around GitPython for the operations the installer needs.

    GitCommandError and repository lookup failures are converted into
    VersionControlError (or CloneError for clones) naming the operation and
    the working copy, so callers deal with one error family.
    """

    def __init__(self, retry_config: RetryConfig = NETWORK_RETRY):
        self.retry_config = retry_config

    def _open(self, path: PathLike, operation: str) -> Repo:
        try:
            return Repo(str(path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise VersionControlError(
                f"{path} is not a git working copy",
                local_dir=str(path), operation=operation, cause=e
            )

    def _fail(self, path: PathLike, operation: str, error: GitCommandError) -> VersionControlError:
        stderr = (error.stderr or '').strip()
        logger.error(f"git {operation} failed in {path}: {stderr or error}")
        return VersionControlError(
            f"git {operation} failed in {path}",
            local_dir=str(path), operation=operation, cause=error
        )

    def clone(self, url: str, dest: PathLike, quiet: bool = True) -> None:
        """
        Clone ``url`` into ``dest``.

        Raises:
            CloneError: If git reports a failure
        """
        kwargs = {"quiet": True} if quiet else {}

        @retry(self.retry_config)
        def _clone():
            Repo.clone_from(url, str(dest), **kwargs)

        try:
            _clone()
        except GitCommandError as e:
            raise CloneError(
                f"Failed to clone {url} into {dest}",
                repository=url, local_dir=str(dest), operation="clone", cause=e
            )

    def branch_list(self, path: PathLike) -> Tuple[str, List[str]]:
        """
        Return the checked-out branch and all local branches.

        A detached HEAD is reported by its commit sha, which can be checked
        out again later just like a branch name.
        """
        repo = self._open(path, "branch")
        heads = [head.name for head in repo.heads]
        if repo.head.is_detached:
            return repo.head.commit.hexsha, heads
        return repo.active_branch.name, heads

    def diff_nonempty(self, path: PathLike) -> bool:
        """True when tracked files differ from the index or HEAD."""
        repo = self._open(path, "diff")
        try:
            return repo.is_dirty(index=True, working_tree=True, untracked_files=False)
        except GitCommandError as e:
            raise self._fail(path, "diff", e)

    def _stash_top(self, repo: Repo) -> Optional[str]:
        try:
            return repo.git.rev_parse("--verify", "--quiet", "refs/stash")
        except GitCommandError:
            return None

    def stash_save(self, path: PathLike, message: Optional[str] = None) -> Optional[str]:
        """
        Stash tracked changes.

        ``git stash push`` exits 0 without creating an entry when it finds
        nothing it can save (modified submodule content, for one), so the
        stash ref is compared before and after.

        Returns:
            Commit sha of the new stash entry, or None if none was created
        """
        repo = self._open(path, "stash")
        args = ["push"]
        if message:
            args.extend(["-m", message])
        before = self._stash_top(repo)
        try:
            repo.git.stash(*args)
        except GitCommandError as e:
            raise self._fail(path, "stash", e)
        after = self._stash_top(repo)
        return after if after and after != before else None

    def stash_apply(self, path: PathLike, stash_commit: Optional[str] = None, drop: bool = True) -> None:
        """
        Re-apply a stash entry, index state included.

        With ``stash_commit`` the entry with that sha is applied wherever it
        now sits in the stash list; otherwise the most recent one is. With
        ``drop`` the entry is removed once applied (``stash pop``); git keeps
        the entry if applying it conflicts.

        Raises:
            VersionControlError: If the entry is gone or cannot be applied
        """
        repo = self._open(path, "stash apply")
        args = ["pop" if drop else "apply", "--index"]
        try:
            if stash_commit:
                entries = repo.git.stash("list", "--format=%H").splitlines()
                if stash_commit not in entries:
                    raise VersionControlError(
                        f"Stash entry {stash_commit[:12]} no longer exists in {path}",
                        local_dir=str(path), operation="stash apply"
                    )
                args.append(f"stash@{{{entries.index(stash_commit)}}}")
            repo.git.stash(*args)
        except GitCommandError as e:
            raise self._fail(path, "stash apply", e)

    def remote_get(self, path: PathLike, name: str) -> Optional[str]:
        """URL of the named remote, or None when there is no such remote."""
        repo = self._open(path, "remote")
        try:
            return repo.remote(name).url
        except ValueError:
            return None

    def remote_set(self, path: PathLike, name: str, url: str) -> None:
        """Point the named remote at ``url``, creating it when missing."""
        repo = self._open(path, "remote set-url")
        try:
            if name in [remote.name for remote in repo.remotes]:
                repo.remote(name).set_url(url)
            else:
                repo.create_remote(name, url)
        except GitCommandError as e:
            raise self._fail(path, "remote set-url", e)

    def remote_add(self, path: PathLike, name: str, url: str) -> bool:
        """
        Add a remote unless one with that name exists.

        Returns:
            True if the remote already existed (nothing was changed)
        """
        repo = self._open(path, "remote add")
        if name in [remote.name for remote in repo.remotes]:
            return True
        try:
            repo.create_remote(name, url)
        except GitCommandError as e:
            raise self._fail(path, "remote add", e)
        return False

    def checkout(self, path: PathLike, branch: str, quiet: bool = True) -> None:
        repo = self._open(path, "checkout")
        args = ["-q", branch] if quiet else [branch]
        try:
            repo.git.checkout(*args)
        except GitCommandError as e:
            raise self._fail(path, "checkout", e)

    def pull(self, path: PathLike, remote: str = "origin", branch: Optional[str] = None, quiet: bool = True) -> None:
        repo = self._open(path, "pull")
        args = ["-q"] if quiet else []
        args.append(remote)
        if branch:
            args.append(branch)

        @retry(self.retry_config)
        def _pull():
            repo.git.pull(*args)

        try:
            _pull()
        except GitCommandError as e:
            raise self._fail(path, "pull", e)

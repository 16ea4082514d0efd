"""
Per-call synchronization state, options and results.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any

from .repository import RepoSpec


@dataclass(frozen=True)
class SyncOptions:
    """Flags that control a sync run. Passed explicitly to every sync call."""
    install_source: bool = True
    verbose: bool = False
    fork_name: Optional[str] = None
    canonical_organization: str = "RedHatInsights"
    keep_stash: bool = False


@dataclass
class SyncState:
    """
    What the sync routine found in an existing working copy.
    
    Computed at the start of each call and consumed before it returns.
    """
    exists: bool = False
    current_branch: Optional[str] = None
    has_uncommitted_changes: bool = False
    needs_branch_restore: bool = False
    needs_unstash: bool = False
    stash_commit: Optional[str] = None  # sha of the stash entry this call created
    origin_mismatch: bool = False


@dataclass
class SyncResult:
    """Outcome of a successful sync of one repository."""
    spec: RepoSpec
    local_path: Optional[Path] = None
    cloned: bool = False
    state: SyncState = field(default_factory=SyncState)
    fork_remote: Optional[str] = None
    fork_already_configured: bool = False
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": self.spec.remote_url,
            "local_path": str(self.local_path) if self.local_path else None,
            "cloned": self.cloned,
            "branch_restored": self.state.needs_branch_restore,
            "changes_restored": self.state.needs_unstash,
            "origin_updated": self.state.origin_mismatch,
            "fork_remote": self.fork_remote,
            "fork_already_configured": self.fork_already_configured
        }

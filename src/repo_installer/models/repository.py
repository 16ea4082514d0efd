"""
Repository description model for managed git repositories.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any


def derive_local_dir(url: str) -> str:
    """
    Derive the working copy directory name from a remote URL.
    
    The last path segment is used, with any trailing slash and ``.git``
    suffix removed. Works for https, ssh (``git@host:org/repo.git``) and
    local path URLs alike.
    
    Args:
        url: Remote repository URL
        
    Returns:
        Directory name for the working copy
    """
    url = url.rstrip('/')
    if url.endswith('.git'):
        url = url[:-4]
    
    name = url.replace(':', '/').split('/')[-1]
    if not name:
        raise ValueError(f"Cannot derive a directory name from URL: {url!r}")
    return name


def normalize_extras(extras: Optional[str]) -> Optional[str]:
    """Return extras in pip's ``[name,...]`` form, or None when empty."""
    if not extras:
        return None
    
    extras = extras.strip()
    if extras.startswith('[') and extras.endswith(']'):
        extras = extras[1:-1]
    
    names = [e.strip() for e in extras.split(',') if e.strip()]
    return f"[{','.join(names)}]" if names else None


@dataclass(frozen=True)
class RepoSpec:
    """
    Describes one repository the installer keeps in sync.
    
    Everything that used to be decided by matching on the URL (the pinned
    branch, the extras group, whether a fork remote may be added) is an
    explicit field set by whoever builds the list of repositories.
    """
    
    remote_url: str
    target_branch: str = "master"
    extra_install_marker: Optional[str] = None
    fork_remote: bool = False
    local_dir: str = field(init=False)
    
    def __post_init__(self):
        # frozen dataclass, so derived fields go through object.__setattr__
        object.__setattr__(self, 'local_dir', derive_local_dir(self.remote_url))
        object.__setattr__(self, 'extra_install_marker', normalize_extras(self.extra_install_marker))
    
    @property
    def name(self) -> str:
        """Package/directory name of the repository."""
        return self.local_dir
    
    @property
    def editable_target(self) -> str:
        """Relative install target for an editable install, extras included."""
        return f"{self.local_dir}{self.extra_install_marker or ''}"
    
    @property
    def remote_requirement(self) -> str:
        """PEP 508 requirement for installing straight from the remote."""
        return f"{self.local_dir}{self.extra_install_marker or ''} @ git+{self.remote_url}@{self.target_branch}"
    
    def fork_url(self, organization: str, fork_name: str) -> Optional[str]:
        """
        Compute the URL of a fork of this repository.
        
        The canonical organization must appear as a whole path segment of the
        remote URL (``/org/`` for https, ``:org/`` for ssh); otherwise there is
        nothing to substitute and None is returned.
        
        Args:
            organization: Canonical upstream organization, e.g. RedHatInsights
            fork_name: Account or organization that owns the fork
            
        Returns:
            Fork URL or None
        """
        for sep in ('/', ':'):
            segment = f"{sep}{organization}/"
            if segment in self.remote_url:
                return self.remote_url.replace(segment, f"{sep}{fork_name}/", 1)
        return None
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.remote_url,
            "branch": self.target_branch,
            "extras": self.extra_install_marker,
            "fork_remote": self.fork_remote,
            "local_dir": self.local_dir
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepoSpec':
        """
        Create a spec from a configuration entry.
        
        Args:
            data: Mapping with ``url`` and optional ``branch``, ``extras``
                and ``fork_remote`` keys
            
        Returns:
            RepoSpec instance
        """
        return cls(
            remote_url=data["url"],
            target_branch=data.get("branch") or "master",
            extra_install_marker=data.get("extras"),
            fork_remote=bool(data.get("fork_remote", False))
        )

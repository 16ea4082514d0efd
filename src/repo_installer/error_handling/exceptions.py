"""
Custom exceptions for the repository installer.
"""

from typing import Optional, Dict, Any


class InstallerError(Exception):
    """
    Base exception for all repository installer errors.
    
    Carries an optional error code, a context dictionary and the underlying
    exception so that the command line can report exactly what failed.
    """
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize installer error.
        
        Args:
            message: Error message
            error_code: Optional error code for categorization
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None
        }
    
    def __str__(self) -> str:
        parts = [self.message]
        
        if self.error_code:
            parts.append(f"Code: {self.error_code}")
        
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")
        
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        
        return " | ".join(parts)


class SyncError(InstallerError):
    """
    Exception for failures while synchronizing a single repository.
    
    Raised by the sync routine; the orchestrator uses the subclass to decide
    whether the whole run or only the current repository is aborted.
    """
    
    def __init__(
        self,
        message: str,
        repository: Optional[str] = None,
        local_dir: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize sync error.
        
        Args:
            message: Error message
            repository: Remote URL of the repository being synchronized
            local_dir: Working copy directory
            operation: Step that failed (clone, checkout, pull, stash, install...)
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context') or {}
        if repository:
            context['repository'] = repository
        if local_dir:
            context['local_dir'] = local_dir
        if operation:
            context['operation'] = operation
        
        kwargs['context'] = context
        super().__init__(message, **kwargs)
        
        self.repository = repository
        self.local_dir = local_dir
        self.operation = operation


class CloneError(SyncError):
    """The clone did not produce the expected working copy. Fatal for the run."""


class VersionControlError(SyncError):
    """A git command (checkout, pull, stash, remote) failed."""


class InstallError(SyncError):
    """A pip install step failed, or the installed command is missing."""


class PrerequisiteError(InstallerError):
    """
    Exception for host prerequisites that are not met.
    
    Raised for a too-old interpreter, missing OS packages that could not be
    installed, or an unreachable git host.
    """
    
    def __init__(self, message: str, requirement: Optional[str] = None, **kwargs):
        context = kwargs.get('context') or {}
        if requirement:
            context['requirement'] = requirement
        
        kwargs['context'] = context
        super().__init__(message, **kwargs)
        
        self.requirement = requirement


class ConfigurationError(InstallerError):
    """
    Exception for configuration errors.
    
    This exception is raised when there are issues with
    configuration loading, validation, or usage.
    """
    
    def __init__(
        self,
        message: str,
        config_section: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize configuration error.
        
        Args:
            message: Error message
            config_section: Configuration section with error
            config_key: Specific configuration key with error
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context') or {}
        if config_section:
            context['config_section'] = config_section
        if config_key:
            context['config_key'] = config_key
        
        kwargs['context'] = context
        super().__init__(message, **kwargs)
        
        self.config_section = config_section
        self.config_key = config_key

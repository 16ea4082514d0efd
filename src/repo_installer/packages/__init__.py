"""
Package installation through pip.
"""

from .pip_installer import PackageInstaller

__all__ = [
    "PackageInstaller"
]

"""
Repository Installer

Provisions a Python tool that is spread across several git repositories by
cloning or updating each working copy and installing it in development mode.
"""

__version__ = "0.1.0"
__author__ = "Repository Installer Team"
__description__ = "Clone, update and install git-hosted Python packages for local development"

"""
Host preparation: prerequisite checks, virtual environment and command link.
"""

from .prerequisites import PrerequisiteChecker
from .virtualenv import VirtualEnvironment
from .command_link import CommandLinker

__all__ = [
    "PrerequisiteChecker",
    "VirtualEnvironment",
    "CommandLinker"
]

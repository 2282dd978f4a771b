"""Utility modules for offline-images."""

from offline_images.utils.command import CommandResult, CommandRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
]

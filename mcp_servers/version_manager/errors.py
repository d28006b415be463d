# =============================================================================
# AGENT-OS TOOLKIT - VERSION MANAGER EXCEPTIONS
# =============================================================================
"""Exceptions raised by the version manager."""

from typing import Optional


class VersionManagerError(Exception):
    """Base exception for release errors."""
    pass


class GitError(VersionManagerError):
    """Raised when a git command fails."""

    def __init__(self, message: str, stderr: Optional[str] = None):
        self.stderr = stderr
        super().__init__(message)


class ChangelogError(VersionManagerError):
    """Raised when CHANGELOG.md is missing or has no entry for a version."""
    pass

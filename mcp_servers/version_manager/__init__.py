# =============================================================================
# AGENT-OS TOOLKIT - VERSION MANAGER PACKAGE
# =============================================================================
"""
Version manager: semantic versions, conventional commits, changelog and
release tags.
"""

from mcp_servers.version_manager.errors import (
    VersionManagerError,
    GitError,
    ChangelogError,
)
from mcp_servers.version_manager.semver import Version
from mcp_servers.version_manager.commits import (
    RawCommit,
    ConventionalCommit,
    parse_commit,
    validate_commits,
    recommend_bump,
)
from mcp_servers.version_manager.git import GitRepository
from mcp_servers.version_manager.service import VersionManagerService


__all__ = [
    "VersionManagerError",
    "GitError",
    "ChangelogError",
    "Version",
    "RawCommit",
    "ConventionalCommit",
    "parse_commit",
    "validate_commits",
    "recommend_bump",
    "GitRepository",
    "VersionManagerService",
]

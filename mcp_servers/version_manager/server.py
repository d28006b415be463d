# =============================================================================
# AGENT-OS TOOLKIT - VERSION MANAGER MCP SERVER
# =============================================================================
"""
Version Manager MCP Server

Semantic versioning, CHANGELOG.md and release tags driven by conventional
commits.

Usage:
    agent-os-version-manager
    python -m mcp_servers.version_manager.server

Environment:
    PROJECT_ROOT    Repository to release (default: current directory)
"""

import logging
import sys
from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from monitoring import AuditLogger, MetricsCollector, setup_logging
from orchestrator.config import load_config, project_root
from orchestrator.errors import ConfigError
from mcp_servers.version_manager.errors import VersionManagerError
from mcp_servers.version_manager.service import VersionManagerService

logger = logging.getLogger(__name__)


SERVER_NAME = "version-manager"


def _call(fn: Callable[..., str], *args, **kwargs) -> str:
    try:
        return fn(*args, **kwargs)
    except (VersionManagerError, ValueError) as e:
        raise ToolError(f"❌ {e}") from e


def create_server(service: VersionManagerService) -> FastMCP:
    """Build the FastMCP server around a version manager service."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool()
    def bump_version(
        bump_type: str = "auto",
        prerelease: Optional[str] = None,
        first_release: bool = False,
        dry_run: bool = False,
    ) -> str:
        """
        Bump the semantic version from conventional commits. Updates the
        version files and CHANGELOG.md, commits and creates a git tag.

        Args:
            bump_type: auto | major | minor | patch ('auto' analyzes commits)
            prerelease: Optional pre-release id: alpha | beta | rc
            first_release: Keep the current version for the first release
            dry_run: Report the next version without changing anything
        """
        return _call(service.bump_version, bump_type, prerelease, first_release, dry_run)

    @mcp.tool()
    def get_version(format: str = "json") -> str:
        """Current version of the project files and the last git tag (json | string)."""
        return _call(service.get_version, format)

    @mcp.tool()
    def validate_commits(from_ref: str = "last_tag", to_ref: str = "HEAD") -> str:
        """
        Check that commits follow the conventional commit format.

        Args:
            from_ref: Start commit or tag ('last_tag' for the last git tag)
            to_ref: End commit
        """
        return _call(service.validate_commits, from_ref, to_ref)

    @mcp.tool()
    def push_release(remote: Optional[str] = None, branch: Optional[str] = None) -> str:
        """Push the release commit and tags to the remote repository."""
        return _call(service.push_release, remote, branch)

    @mcp.tool()
    def sync_versions(version: str) -> str:
        """Write one version into package.json, pyproject.toml and __init__.py files."""
        return _call(service.sync_versions, version)

    @mcp.tool()
    def get_changelog(version: Optional[str] = None) -> str:
        """Contents of CHANGELOG.md, or the entry for one version."""
        return _call(service.get_changelog, version)

    return mcp


def main() -> None:
    """Entry point for the stdio server."""
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    log_config = config["logging"]
    setup_logging(
        level=log_config["level"],
        fmt=log_config["format"],
        log_dir=log_config["dir"],
        stream=sys.stderr,
    )

    root = project_root(config)
    release = config["release"]
    audit = AuditLogger(str(root / config["project"]["state_dir"] / "logs" / "audit.jsonl"))
    service = VersionManagerService(
        root,
        tag_prefix=release["tag_prefix"],
        remote=release["remote"],
        branch=release["branch"],
        metrics=MetricsCollector(),
        audit=audit,
    )

    logger.info(f"{SERVER_NAME} MCP server starting (project: {root})")
    create_server(service).run()


if __name__ == "__main__":
    main()

# =============================================================================
# AGENT-OS TOOLKIT - DEPLOY PACKAGE
# =============================================================================
"""
Deployment CLI wrappers exposed as MCP servers.

Servers:
    - vercel: ``vercel`` CLI (agent-os-vercel)
    - flyio: ``flyctl`` CLI (agent-os-flyio)
"""

from mcp_servers.deploy.cli import CLIError, CLIResult, CLIRunner


__all__ = [
    "CLIError",
    "CLIResult",
    "CLIRunner",
]

# =============================================================================
# AGENT-OS TOOLKIT - MCP SERVERS
# =============================================================================
"""
MCP servers shipped with the toolkit.

Servers:
    - chat_claude: Delegation of non-implementation work to Chat Claude
    - version_manager: Semantic versioning, changelog and release tags
    - deploy: Vercel and Fly.io CLI wrappers
"""

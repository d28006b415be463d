# =============================================================================
# AGENT-OS TOOLKIT - ORCHESTRATOR PACKAGE
# =============================================================================
"""
Orchestrator Package

The coordination side of the Agent-OS workflow. The implementing assistant
works through a feature's tasks.md; this package decides which task groups
it does itself, which go to a specialized subagent and which are delegated
to Chat Claude, and hands the delegated ones over.

Package Structure:
    - main.py: ``agent-os`` command line
    - config.py: YAML + environment configuration
    - routing/: tasks.md parsing, routing plan, delegation dispatch
    - skills.py: Skills catalog
    - mcp_check.py: .mcp.json verification

Usage:
    ```python
    from orchestrator.routing import load_tasks, build_plan

    plan = build_plan(load_tasks("specs/auth/tasks.md"))
    for decision in plan.ready():
        print(decision.group.name, decision.executor.value)
    ```

Environment Variables:
    - PROJECT_ROOT: Project directory (default: current directory)
    - ANTHROPIC_API_KEY: Needed only for ``agent-os delegate``

For detailed configuration, see agent-os.yaml
"""

__version__ = "1.0.0"
__author__ = "Agent-OS Toolkit"

__all__ = [
    "config",
    "errors",
    "main",
    "mcp_check",
    "routing",
    "skills",
]

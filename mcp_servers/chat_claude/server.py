# =============================================================================
# AGENT-OS TOOLKIT - CHAT CLAUDE MCP SERVER
# =============================================================================
"""
Chat Claude MCP Server

Lets the implementing assistant hand research, documentation, design,
analysis and planning work to a second Claude instance through MCP.

Usage:
    agent-os-chat-claude
    python -m mcp_servers.chat_claude.server

Environment:
    ANTHROPIC_API_KEY   Required for the anthropic provider
    PROJECT_ROOT        Project whose .agent-os/ holds the task store
"""

import logging
import sys
from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from monitoring import AuditLogger, MetricsCollector, setup_logging
from orchestrator.config import load_config, project_root
from orchestrator.errors import ConfigError
from mcp_servers.chat_claude.errors import DelegationError
from mcp_servers.chat_claude.executor import TaskExecutor
from mcp_servers.chat_claude.llm_client import LLMClient
from mcp_servers.chat_claude.service import DelegationService
from mcp_servers.chat_claude.task_manager import TaskManager

logger = logging.getLogger(__name__)


SERVER_NAME = "chat-claude"


def _call(fn: Callable[..., str], *args, **kwargs) -> str:
    try:
        return fn(*args, **kwargs)
    except DelegationError as e:
        raise ToolError(str(e)) from e


def create_server(service: DelegationService) -> FastMCP:
    """Build the FastMCP server around a delegation service."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool()
    def delegate_task(
        task_id: str,
        task_type: str,
        description: str,
        context: Optional[str] = None,
        output_format: str = "markdown",
        output_path: Optional[str] = None,
    ) -> str:
        """
        Delegate a task to Chat Claude (research, documentation, design,
        analysis or planning). Runs the task and stores the result in the
        project's .agent-os directory.

        Args:
            task_id: Unique task identifier, e.g. "oauth-research-2025-01-15"
            task_type: research | documentation | design | analysis | planning
            description: Detailed description of what to do
            context: Optional project context (stack, constraints)
            output_format: markdown | json | text
            output_path: Optional project-relative path for the result file
        """
        return _call(
            service.delegate_task,
            task_id, task_type, description,
            context=context, output_format=output_format, output_path=output_path,
        )

    @mcp.tool()
    def get_task_result(task_id: str) -> str:
        """Get the status and result of a delegated task."""
        return _call(service.get_task_result, task_id)

    @mcp.tool()
    def list_tasks(status: str = "all") -> str:
        """
        List delegated tasks with statistics.

        Args:
            status: all | pending | in_progress | completed | failed | cancelled
        """
        return _call(service.list_tasks, status)

    @mcp.tool()
    def cancel_task(task_id: str) -> str:
        """Cancel a pending or in-progress task."""
        return _call(service.cancel_task, task_id)

    @mcp.tool()
    def retry_task(task_id: str) -> str:
        """Run a failed or cancelled task again."""
        return _call(service.retry_task, task_id)

    @mcp.tool()
    def test_connection() -> str:
        """Check that the LLM API is reachable with the configured key."""
        return _call(service.test_connection)

    return mcp


def build_service(config: dict) -> DelegationService:
    """Wire the task store, LLM client and monitoring from configuration."""
    llm_config = config["llm"]
    root = project_root(config)
    state_dir = config["project"]["state_dir"]

    api_key = llm_config.get("api_key")
    if llm_config["provider"] == "openai":
        api_key = llm_config.get("openai_api_key")

    client = LLMClient(
        provider=llm_config["provider"],
        model=llm_config["model"],
        api_key=api_key or None,
    )
    executor = TaskExecutor(
        client,
        max_tokens=int(llm_config["max_tokens"]),
        temperature=float(llm_config["temperature"]),
    )
    tasks = TaskManager(root, state_dir=state_dir)
    tasks.initialize()

    audit = AuditLogger(str(root / state_dir / "logs" / "audit.jsonl"))
    return DelegationService(tasks, executor, metrics=MetricsCollector(), audit=audit)


def main() -> None:
    """Entry point for the stdio server."""
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    log_config = config["logging"]
    # stdout carries the MCP transport
    setup_logging(
        level=log_config["level"],
        fmt=log_config["format"],
        log_dir=log_config["dir"],
        stream=sys.stderr,
    )

    if config["llm"]["provider"] == "anthropic" and not config["llm"].get("api_key"):
        logger.error("ANTHROPIC_API_KEY environment variable is required")
        sys.exit(1)

    try:
        service = build_service(config)
    except (ValueError, DelegationError) as e:
        logger.error(f"Failed to start {SERVER_NAME}: {e}")
        sys.exit(1)

    logger.info(f"{SERVER_NAME} MCP server starting (project: {project_root(config)})")
    create_server(service).run()


if __name__ == "__main__":
    main()

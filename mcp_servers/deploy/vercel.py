# =============================================================================
# AGENT-OS TOOLKIT - VERCEL MCP SERVER
# =============================================================================
"""
Vercel MCP Server

Wraps the ``vercel`` CLI: deployments, projects, logs, environment
variables, domains.

Usage:
    agent-os-vercel

Environment:
    VERCEL_TOKEN    Passed to the CLI
    PROJECT_ROOT    Directory deployed by vercel_deploy
"""

import logging
import sys
from typing import List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from monitoring import AuditLogger, MetricsCollector, setup_logging
from orchestrator.config import load_config, project_root
from orchestrator.errors import ConfigError
from mcp_servers.deploy.cli import CLIError, CLIRunner

logger = logging.getLogger(__name__)


SERVER_NAME = "vercel"

ACTIONS = ("list", "add", "remove")
ENVIRONMENTS = ("production", "preview", "development")


def _choice(name: str, value: Optional[str], allowed) -> None:
    if value is not None and value not in allowed:
        raise ValueError(f"{name} must be one of {', '.join(allowed)}, got '{value}'")


class VercelTools:
    """Vercel CLI operations."""

    def __init__(self, runner: CLIRunner):
        self.runner = runner

    def list_deployments(self, project: Optional[str] = None, limit: Optional[int] = None) -> str:
        args = ["list"]
        if project:
            args.append(project)
        if limit:
            args += ["--limit", str(int(limit))]
        return self.runner.run(args).output()

    def list_projects(self) -> str:
        return self.runner.run(["projects", "list"]).output()

    def deploy(self, production: bool = False, name: Optional[str] = None) -> str:
        args = ["--yes"]
        if production:
            args.append("--prod")
        if name:
            args += ["--name", name]
        return self.runner.run(args).output()

    def logs(self, deployment: str) -> str:
        return self.runner.run(["logs", deployment]).output()

    def env(
        self,
        action: str,
        key: Optional[str] = None,
        value: Optional[str] = None,
        environment: Optional[str] = None,
    ) -> str:
        _choice("action", action, ACTIONS)
        _choice("environment", environment, ENVIRONMENTS)

        if action == "list":
            args: List[str] = ["env", "ls"]
            if environment:
                args.append(environment)
            return self.runner.run(args).output()

        if not key:
            raise ValueError(f"key is required to {action} an environment variable")

        if action == "add":
            if value is None:
                raise ValueError("value is required to add an environment variable")
            args = ["env", "add", key]
            if environment:
                args.append(environment)
            # The CLI reads the value from stdin
            return self.runner.run(args, input=value).output()

        args = ["env", "rm", key]
        if environment:
            args.append(environment)
        args.append("--yes")
        return self.runner.run(args).output()

    def domains(self, action: str, domain: Optional[str] = None) -> str:
        _choice("action", action, ACTIONS)
        if action == "list":
            return self.runner.run(["domains", "ls"]).output()
        if not domain:
            raise ValueError(f"domain is required to {action} a domain")
        if action == "add":
            return self.runner.run(["domains", "add", domain]).output()
        return self.runner.run(["domains", "rm", domain, "--yes"]).output()

    def inspect(self, deployment: str) -> str:
        return self.runner.run(["inspect", deployment]).output()


def _call(fn, *args, **kwargs) -> str:
    try:
        return fn(*args, **kwargs)
    except (CLIError, ValueError) as e:
        raise ToolError(str(e)) from e


def create_server(tools: VercelTools) -> FastMCP:
    """Build the FastMCP server around the Vercel tools."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool()
    def vercel_list_deployments(project: Optional[str] = None, limit: int = 20) -> str:
        """List Vercel deployments, optionally for one project."""
        return _call(tools.list_deployments, project, limit)

    @mcp.tool()
    def vercel_list_projects() -> str:
        """List all Vercel projects."""
        return _call(tools.list_projects)

    @mcp.tool()
    def vercel_deploy(production: bool = False, name: Optional[str] = None) -> str:
        """Deploy the project directory to Vercel (preview unless production)."""
        return _call(tools.deploy, production, name)

    @mcp.tool()
    def vercel_logs(deployment: str) -> str:
        """Get logs for a deployment URL or ID."""
        return _call(tools.logs, deployment)

    @mcp.tool()
    def vercel_env(
        action: str,
        key: Optional[str] = None,
        value: Optional[str] = None,
        environment: Optional[str] = None,
    ) -> str:
        """
        Manage environment variables.

        Args:
            action: list | add | remove
            key: Variable name (add/remove)
            value: Variable value (add)
            environment: production | preview | development
        """
        return _call(tools.env, action, key, value, environment)

    @mcp.tool()
    def vercel_domains(action: str, domain: Optional[str] = None) -> str:
        """List, add or remove domains (action: list | add | remove)."""
        return _call(tools.domains, action, domain)

    @mcp.tool()
    def vercel_inspect(deployment: str) -> str:
        """Detailed information about a deployment."""
        return _call(tools.inspect, deployment)

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

    deploy = config["deploy"]
    root = project_root(config)
    if not deploy["vercel_token"]:
        logger.warning("VERCEL_TOKEN is not set; relying on the CLI's stored login")

    runner = CLIRunner(
        "vercel",
        token_env="VERCEL_TOKEN",
        token=deploy["vercel_token"] or None,
        timeout=int(deploy["timeout"]),
        cwd=str(root),
        metrics=MetricsCollector(),
        audit=AuditLogger(str(root / config["project"]["state_dir"] / "logs" / "audit.jsonl")),
    )
    logger.info(f"{SERVER_NAME} MCP server starting")
    create_server(VercelTools(runner)).run()


if __name__ == "__main__":
    main()

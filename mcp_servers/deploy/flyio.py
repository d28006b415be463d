# =============================================================================
# AGENT-OS TOOLKIT - FLY.IO MCP SERVER
# =============================================================================
"""
Fly.io MCP Server

Wraps the ``flyctl`` CLI: apps, deploys, logs, scaling, regions, secrets,
Postgres clusters, machines and volumes.

Usage:
    agent-os-flyio

Environment:
    FLY_API_TOKEN   Passed to the CLI
    PROJECT_ROOT    Directory deployed by fly_deploy
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


SERVER_NAME = "flyio"

STRATEGIES = ("canary", "rolling", "immediate", "bluegreen")
SECRET_ACTIONS = ("list", "set", "unset")


def _with_org(args: List[str], org: Optional[str]) -> List[str]:
    return args + ["--org", org] if org else args


class FlyTools:
    """flyctl operations."""

    def __init__(self, runner: CLIRunner):
        self.runner = runner

    def _run(self, args: List[str], redact=()) -> str:
        return self.runner.run(args, redact=redact).output()

    def list_apps(self, org: Optional[str] = None) -> str:
        return self._run(_with_org(["apps", "list"], org))

    def app_status(self, app: str) -> str:
        return self._run(["status", "--app", app])

    def deploy(
        self,
        app: Optional[str] = None,
        remote_only: bool = True,
        strategy: Optional[str] = None,
    ) -> str:
        if strategy is not None and strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {', '.join(STRATEGIES)}, got '{strategy}'")
        args = ["deploy"]
        if app:
            args += ["--app", app]
        if remote_only:
            args.append("--remote-only")
        if strategy:
            args += ["--strategy", strategy]
        return self._run(args)

    def logs(self, app: str, instance: Optional[str] = None) -> str:
        # Without --no-tail flyctl streams until interrupted
        args = ["logs", "--app", app, "--no-tail"]
        if instance:
            args += ["--instance", instance]
        return self._run(args)

    def scale(self, app: str, count: int, region: Optional[str] = None) -> str:
        if int(count) < 0:
            raise ValueError(f"count must not be negative, got {count}")
        args = ["scale", "count", str(int(count)), "--app", app, "--yes"]
        if region:
            args += ["--region", region]
        return self._run(args)

    def regions(self, app: Optional[str] = None, list_available: bool = False) -> str:
        if list_available:
            return self._run(["platform", "regions"])
        if not app:
            raise ValueError("app is required unless list_available is set")
        return self._run(["regions", "list", "--app", app])

    def secrets(
        self,
        action: str,
        app: str,
        key: Optional[str] = None,
        value: Optional[str] = None,
    ) -> str:
        if action not in SECRET_ACTIONS:
            raise ValueError(f"action must be one of {', '.join(SECRET_ACTIONS)}, got '{action}'")

        if action == "list":
            return self._run(["secrets", "list", "--app", app])
        if not key:
            raise ValueError(f"key is required to {action} a secret")
        if action == "unset":
            return self._run(["secrets", "unset", key, "--app", app])

        if value is None:
            raise ValueError("value is required to set a secret")
        assignment = f"{key}={value}"
        return self._run(["secrets", "set", assignment, "--app", app], redact=(assignment,))

    def postgres_list(self, org: Optional[str] = None) -> str:
        return self._run(_with_org(["postgres", "list"], org))

    def postgres_connect(self, app: str) -> str:
        return self._run(["postgres", "connect", "--app", app])

    def machine_list(self, app: str) -> str:
        return self._run(["machine", "list", "--app", app])

    def machine_stop(self, app: str, machine_id: str) -> str:
        return self._run(["machine", "stop", machine_id, "--app", app])

    def machine_start(self, app: str, machine_id: str) -> str:
        return self._run(["machine", "start", machine_id, "--app", app])

    def volumes(self, app: str) -> str:
        return self._run(["volumes", "list", "--app", app])


def _call(fn, *args, **kwargs) -> str:
    try:
        return fn(*args, **kwargs)
    except (CLIError, ValueError) as e:
        raise ToolError(str(e)) from e


def create_server(tools: FlyTools) -> FastMCP:
    """Build the FastMCP server around the flyctl tools."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool()
    def fly_list_apps(org: Optional[str] = None) -> str:
        """List Fly.io apps, optionally for one organization."""
        return _call(tools.list_apps, org)

    @mcp.tool()
    def fly_app_status(app: str) -> str:
        """Status of an app and its machines."""
        return _call(tools.app_status, app)

    @mcp.tool()
    def fly_deploy(
        app: Optional[str] = None,
        remote_only: bool = True,
        strategy: Optional[str] = None,
    ) -> str:
        """
        Deploy the project directory.

        Args:
            app: App name (default: from fly.toml)
            remote_only: Build on Fly's remote builder
            strategy: canary | rolling | immediate | bluegreen
        """
        return _call(tools.deploy, app, remote_only, strategy)

    @mcp.tool()
    def fly_logs(app: str, instance: Optional[str] = None) -> str:
        """Recent logs of an app, optionally for one instance."""
        return _call(tools.logs, app, instance)

    @mcp.tool()
    def fly_scale(app: str, count: int, region: Optional[str] = None) -> str:
        """Set the number of machines for an app."""
        return _call(tools.scale, app, count, region)

    @mcp.tool()
    def fly_regions(app: Optional[str] = None, list_available: bool = False) -> str:
        """Regions of an app, or every available region."""
        return _call(tools.regions, app, list_available)

    @mcp.tool()
    def fly_secrets(
        action: str,
        app: str,
        key: Optional[str] = None,
        value: Optional[str] = None,
    ) -> str:
        """Manage app secrets (action: list | set | unset)."""
        return _call(tools.secrets, action, app, key, value)

    @mcp.tool()
    def fly_postgres_list(org: Optional[str] = None) -> str:
        """List Postgres clusters."""
        return _call(tools.postgres_list, org)

    @mcp.tool()
    def fly_postgres_connect(app: str) -> str:
        """Connect to a Postgres cluster."""
        return _call(tools.postgres_connect, app)

    @mcp.tool()
    def fly_machine_list(app: str) -> str:
        """List the machines of an app."""
        return _call(tools.machine_list, app)

    @mcp.tool()
    def fly_machine_stop(app: str, machine_id: str) -> str:
        """Stop a machine."""
        return _call(tools.machine_stop, app, machine_id)

    @mcp.tool()
    def fly_machine_start(app: str, machine_id: str) -> str:
        """Start a machine."""
        return _call(tools.machine_start, app, machine_id)

    @mcp.tool()
    def fly_volumes(app: str) -> str:
        """List the volumes of an app."""
        return _call(tools.volumes, app)

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
    if not deploy["fly_api_token"]:
        logger.warning("FLY_API_TOKEN is not set; relying on the CLI's stored login")

    runner = CLIRunner(
        "flyctl",
        token_env="FLY_API_TOKEN",
        token=deploy["fly_api_token"] or None,
        timeout=int(deploy["timeout"]),
        cwd=str(root),
        metrics=MetricsCollector(),
        audit=AuditLogger(str(root / config["project"]["state_dir"] / "logs" / "audit.jsonl")),
    )
    logger.info(f"{SERVER_NAME} MCP server starting")
    create_server(FlyTools(runner)).run()


if __name__ == "__main__":
    main()

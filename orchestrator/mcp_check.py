# =============================================================================
# AGENT-OS TOOLKIT - MCP CONFIGURATION CHECKS
# =============================================================================
"""
MCP Verification Module

Static checks over a project's ``.mcp.json`` plus an optional live probe
that starts each server over stdio and lists its tools.

.mcp.json format:
{
    "mcpServers": {
        "chat-claude": {
            "type": "stdio",
            "command": "agent-os-chat-claude",
            "args": [],
            "env": {"ANTHROPIC_API_KEY": "${ANTHROPIC_API_KEY}"}
        }
    }
}
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from monitoring import mask_value
from orchestrator.errors import ConfigError

logger = logging.getLogger(__name__)


SCRIPT_SUFFIXES = (".js", ".mjs", ".cjs", ".ts", ".py", ".sh")
SUPPORTED_TRANSPORTS = ("stdio",)
PROBE_TIMEOUT = 30.0

_ENV_REF_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


# =============================================================================
# REPORT
# =============================================================================


@dataclass
class CheckResult:
    """Outcome of one check for one server."""
    server: str
    check: str
    passed: bool
    detail: str = ""


@dataclass
class VerificationReport:
    """All check results for an .mcp.json file."""
    source: str
    checks: List[CheckResult] = field(default_factory=list)

    def add(self, server: str, check: str, passed: bool, detail: str = "") -> CheckResult:
        result = CheckResult(server, check, passed, detail)
        self.checks.append(result)
        return result

    @property
    def passed(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def failed(self) -> int:
        return sum(1 for c in self.checks if not c.passed)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def servers(self) -> List[str]:
        seen: List[str] = []
        for check in self.checks:
            if check.server not in seen:
                seen.append(check.server)
        return seen

    def render(self) -> str:
        lines = [f"MCP configuration: {self.source}", ""]
        for server in self.servers():
            lines.append(f"{server}:")
            for check in self.checks:
                if check.server != server:
                    continue
                mark = "✓" if check.passed else "✗"
                detail = f" ({check.detail})" if check.detail else ""
                lines.append(f"  {mark} {check.check}{detail}")
            lines.append("")
        lines.append(f"Total: {len(self.checks)}  Passed: {self.passed}  Failed: {self.failed}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "ok": self.ok,
            "passed": self.passed,
            "failed": self.failed,
            "checks": [c.__dict__ for c in self.checks],
        }


# =============================================================================
# STATIC CHECKS
# =============================================================================


def load_mcp_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read an .mcp.json file.

    Raises:
        ConfigError: Missing file, invalid JSON, or no ``mcpServers`` map
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"{path} not found")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    servers = data.get("mcpServers") if isinstance(data, dict) else None
    if not isinstance(servers, dict):
        raise ConfigError(f"{path} has no mcpServers mapping")
    return data


def _looks_like_script(arg: str) -> bool:
    if arg.startswith("-") or arg.startswith("@") or "${" in arg:
        return False
    return arg.lower().endswith(SCRIPT_SUFFIXES)


def resolve_env_value(value: str, env: Mapping[str, str]) -> Optional[str]:
    """Expand ``${VAR}`` references; None when any reference is unset."""
    missing = [name for name in _ENV_REF_PATTERN.findall(value) if not env.get(name)]
    if missing:
        return None
    return _ENV_REF_PATTERN.sub(lambda m: env[m.group(1)], value)


def _check_server(
    report: VerificationReport,
    name: str,
    server: Dict[str, Any],
    root: Path,
    env: Mapping[str, str],
    which: Callable[[str], Optional[str]],
) -> None:
    transport = server.get("type")
    if transport is not None:
        report.add(
            name, "transport", transport in SUPPORTED_TRANSPORTS,
            transport if transport in SUPPORTED_TRANSPORTS else f"unsupported type '{transport}'",
        )

    command = server.get("command")
    if not command:
        report.add(name, "command", False, "no command configured")
    else:
        location = which(command)
        report.add(name, f"command {command}", bool(location), location or "not found on PATH")

    for arg in server.get("args") or []:
        if not isinstance(arg, str) or not _looks_like_script(arg):
            continue
        script = Path(arg) if Path(arg).is_absolute() else root / arg
        report.add(name, f"script {arg}", script.is_file(),
                   "" if script.is_file() else "file not found")

    for key, raw in (server.get("env") or {}).items():
        value = resolve_env_value(str(raw), env) if raw is not None else None
        if value:
            report.add(name, f"env {key}", True, f"set ({mask_value(value)})")
        else:
            report.add(name, f"env {key}", False, "not set")


def verify_mcp_config(
    config: Dict[str, Any],
    project_root: Union[str, Path],
    env: Optional[Mapping[str, str]] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
    source: str = ".mcp.json",
) -> VerificationReport:
    """
    Run the static checks for every configured server.

    Args:
        config: Parsed .mcp.json
        project_root: Base for relative script paths
        env: Environment used to resolve ``${VAR}`` (default: os.environ)
        which: Command lookup (default: shutil.which)
        source: Label used in the report
    """
    env = os.environ if env is None else env
    root = Path(project_root)
    report = VerificationReport(source=source)

    servers = config.get("mcpServers") or {}
    if not servers:
        report.add("(config)", "servers", False, "no servers configured")
        return report

    for name, server in servers.items():
        if not isinstance(server, dict):
            report.add(name, "definition", False, "server entry must be an object")
            continue
        _check_server(report, name, server, root, env, which)

    logger.debug(f"MCP checks for {source}: {report.passed} passed, {report.failed} failed")
    return report


# =============================================================================
# LIVE PROBE
# =============================================================================


async def _list_server_tools(params: StdioServerParameters) -> List[str]:
    async with stdio_client(params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            result = await session.list_tools()
            return [tool.name for tool in result.tools]


def probe_server(
    name: str,
    server: Dict[str, Any],
    project_root: Union[str, Path],
    env: Optional[Mapping[str, str]] = None,
    timeout: float = PROBE_TIMEOUT,
) -> CheckResult:
    """Start a server over stdio, initialize a session and list its tools."""
    env = os.environ if env is None else env
    server_env = dict(env)
    for key, raw in (server.get("env") or {}).items():
        value = resolve_env_value(str(raw), env)
        if value is not None:
            server_env[key] = value

    params = StdioServerParameters(
        command=server["command"],
        args=[str(a) for a in server.get("args") or []],
        env=server_env,
        cwd=str(project_root),
    )

    try:
        tools = asyncio.run(asyncio.wait_for(_list_server_tools(params), timeout))
    except asyncio.TimeoutError:
        return CheckResult(name, "probe", False, f"no response within {timeout:.0f}s")
    except Exception as e:
        logger.debug(f"Probe of {name} failed", exc_info=True)
        return CheckResult(name, "probe", False, f"{type(e).__name__}: {e}")

    return CheckResult(name, "probe", True, f"{len(tools)} tool(s): {', '.join(tools)}")


def probe_all(
    config: Dict[str, Any],
    project_root: Union[str, Path],
    report: VerificationReport,
    env: Optional[Mapping[str, str]] = None,
) -> VerificationReport:
    """Probe every server with a command and append the results."""
    for name, server in (config.get("mcpServers") or {}).items():
        if isinstance(server, dict) and server.get("command"):
            report.checks.append(probe_server(name, server, project_root, env))
    return report

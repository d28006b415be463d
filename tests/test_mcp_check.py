"""Tests for .mcp.json verification."""

import asyncio
import json

import pytest

from orchestrator import mcp_check
from orchestrator.errors import ConfigError
from orchestrator.mcp_check import (
    VerificationReport,
    load_mcp_config,
    probe_all,
    probe_server,
    resolve_env_value,
    verify_mcp_config,
)


CONFIG = {
    "mcpServers": {
        "chat-claude": {
            "type": "stdio",
            "command": "node",
            "args": ["mcp-servers/chat-claude/index.js"],
            "env": {"ANTHROPIC_API_KEY": "${ANTHROPIC_API_KEY}"},
        },
        "vercel": {
            "command": "agent-os-vercel",
            "args": ["--verbose", "@scope/pkg"],
            "env": {"VERCEL_TOKEN": "${VERCEL_TOKEN}"},
        },
    }
}


def fake_which(command):
    return {"node": "/usr/bin/node"}.get(command)


def checks_by_name(report):
    return {(c.server, c.check): c for c in report.checks}


def test_load_mcp_config(tmp_path):
    path = tmp_path / ".mcp.json"
    path.write_text(json.dumps(CONFIG), encoding="utf-8")
    assert load_mcp_config(path) == CONFIG


@pytest.mark.parametrize("content, message", [
    (None, "not found"),
    ("{broken", "Invalid JSON"),
    ('{"servers": {}}', "no mcpServers mapping"),
    ("[]", "no mcpServers mapping"),
])
def test_load_mcp_config_errors(tmp_path, content, message):
    path = tmp_path / ".mcp.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError, match=message):
        load_mcp_config(path)


def test_resolve_env_value():
    env = {"A": "one", "B": "two", "EMPTY": ""}

    assert resolve_env_value("${A}-${B}", env) == "one-two"
    assert resolve_env_value("literal", env) == "literal"
    assert resolve_env_value("${MISSING}", env) is None
    assert resolve_env_value("${EMPTY}", env) is None


def test_verify_reports_each_check(tmp_path):
    script = tmp_path / "mcp-servers" / "chat-claude" / "index.js"
    script.parent.mkdir(parents=True)
    script.write_text("// server", encoding="utf-8")

    report = verify_mcp_config(
        CONFIG, tmp_path, env={"ANTHROPIC_API_KEY": "sk-ant-1234567890"}, which=fake_which,
    )
    checks = checks_by_name(report)

    assert checks[("chat-claude", "transport")].passed
    assert checks[("chat-claude", "command node")].detail == "/usr/bin/node"
    assert checks[("chat-claude", "script mcp-servers/chat-claude/index.js")].passed
    assert checks[("chat-claude", "env ANTHROPIC_API_KEY")].detail == "set (sk-a****7890)"

    assert not checks[("vercel", "command agent-os-vercel")].passed
    assert checks[("vercel", "env VERCEL_TOKEN")].detail == "not set"
    assert not any(c.check.startswith("script") for c in report.checks if c.server == "vercel")

    assert (report.passed, report.failed) == (4, 2)
    assert not report.ok


def test_missing_script_and_bad_transport(tmp_path):
    config = {"mcpServers": {"x": {"type": "sse", "command": "node", "args": ["server.py"]}}}
    report = verify_mcp_config(config, tmp_path, env={}, which=fake_which)
    checks = checks_by_name(report)

    assert checks[("x", "transport")].detail == "unsupported type 'sse'"
    assert checks[("x", "script server.py")].detail == "file not found"


def test_server_without_command_and_bad_entry(tmp_path):
    config = {"mcpServers": {"a": {"args": []}, "b": "agent-os-vercel"}}
    report = verify_mcp_config(config, tmp_path, env={}, which=fake_which)
    checks = checks_by_name(report)

    assert checks[("a", "command")].detail == "no command configured"
    assert checks[("b", "definition")].detail == "server entry must be an object"


def test_empty_config(tmp_path):
    report = verify_mcp_config({"mcpServers": {}}, tmp_path, env={}, which=fake_which)
    assert not report.ok
    assert report.checks[0].server == "(config)"


def test_render():
    report = VerificationReport(source=".mcp.json")
    report.add("vercel", "command vercel", True, "/usr/local/bin/vercel")
    report.add("vercel", "env VERCEL_TOKEN", False, "not set")

    assert report.render() == (
        "MCP configuration: .mcp.json\n"
        "\n"
        "vercel:\n"
        "  ✓ command vercel (/usr/local/bin/vercel)\n"
        "  ✗ env VERCEL_TOKEN (not set)\n"
        "\n"
        "Total: 2  Passed: 1  Failed: 1"
    )
    assert report.to_dict()["failed"] == 1


def test_probe_server_lists_tools(monkeypatch, tmp_path):
    seen = {}

    async def fake_list(params):
        seen["params"] = params
        return ["delegate_task", "list_tasks"]

    monkeypatch.setattr(mcp_check, "_list_server_tools", fake_list)
    result = probe_server(
        "chat-claude", CONFIG["mcpServers"]["chat-claude"], tmp_path,
        env={"ANTHROPIC_API_KEY": "sk-ant-1234567890", "PATH": "/usr/bin"},
    )

    assert result.passed
    assert result.detail == "2 tool(s): delegate_task, list_tasks"
    params = seen["params"]
    assert params.command == "node"
    assert params.env["ANTHROPIC_API_KEY"] == "sk-ant-1234567890"
    assert params.cwd == str(tmp_path)


def test_probe_server_failure(monkeypatch, tmp_path):
    async def fake_list(params):
        raise ConnectionError("server exited")

    monkeypatch.setattr(mcp_check, "_list_server_tools", fake_list)
    result = probe_server("x", {"command": "nope"}, tmp_path, env={})

    assert not result.passed
    assert result.detail == "ConnectionError: server exited"


def test_probe_server_timeout(monkeypatch, tmp_path):
    async def fake_list(params):
        await asyncio.sleep(5)

    monkeypatch.setattr(mcp_check, "_list_server_tools", fake_list)
    result = probe_server("x", {"command": "slow"}, tmp_path, env={}, timeout=0.05)

    assert not result.passed
    assert result.detail.startswith("no response within")


def test_probe_all_skips_servers_without_command(monkeypatch, tmp_path):
    async def fake_list(params):
        return []

    monkeypatch.setattr(mcp_check, "_list_server_tools", fake_list)
    config = {"mcpServers": {"a": {"command": "x"}, "b": {"args": []}}}
    report = probe_all(config, tmp_path, VerificationReport(source="t"), env={})

    assert [(c.server, c.check) for c in report.checks] == [("a", "probe")]

"""Tests for the agent-os command line."""

import json
import logging

import pytest
import structlog

from mcp_servers.chat_claude import server as chat_server
from orchestrator.main import main
from tests.conftest import FakeProvider


@pytest.fixture(autouse=True)
def project(tmp_path, monkeypatch):
    """Run every command against an empty project in tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
    for name in ("AGENT_OS_CONFIG", "LOG_DIR", "LOG_FORMAT", "SKILLS_DIR", "MCP_CONFIG", "AGENT_OS_DIR"):
        monkeypatch.delenv(name, raising=False)

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield tmp_path
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_route_text(tasks_file, capsys):
    assert main(["route", str(tasks_file)]) == 0
    out = capsys.readouterr().out

    assert out.startswith(f"Routing plan for {tasks_file}")
    assert "[ready  ] OAuth provider research -> chat-claude (research)  0/2" in out
    assert "[done   ] Database schema -> subagent:database-engineer  2/2" in out
    assert "blocked by: OAuth provider research" in out
    assert out.rstrip().endswith("1 done, 2 ready, 2 blocked")


def test_route_json(tasks_file, capsys):
    assert main(["route", str(tasks_file), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)

    assert data["summary"] == {"done": 1, "ready": 2, "blocked": 2}
    assert data["decisions"][0]["executor"] == "chat-claude"


def test_route_missing_file(tmp_path, capsys):
    assert main(["route", str(tmp_path / "nope.md")]) == 1
    assert "Error:" in capsys.readouterr().err


def test_route_reports_cycles(tmp_path, capsys):
    path = tmp_path / "tasks.md"
    path.write_text("## A [depends-on:B]\n- [ ] a\n## B [depends-on:A]\n- [ ] b\n", encoding="utf-8")

    assert main(["route", str(path)]) == 1
    assert "Dependency cycle" in capsys.readouterr().err


def test_invalid_config_file(tmp_path, capsys):
    path = tmp_path / "agent-os.yaml"
    path.write_text("- not a mapping\n", encoding="utf-8")

    assert main(["--config", str(path), "status"]) == 1
    assert "must contain a mapping" in capsys.readouterr().err


def test_status_empty(capsys):
    assert main(["status"]) == 0
    out = capsys.readouterr().out
    assert "(0 total)" in out
    assert "No tasks found." in out


def test_delegate_then_status(tasks_file, service, monkeypatch, capsys):
    monkeypatch.setattr(chat_server, "build_service", lambda config: service)

    assert main(["delegate", str(tasks_file)]) == 0
    out = capsys.readouterr().out
    assert "✓ OAuth provider research (oauth-provider-research-" in out
    assert "checklist items marked: 2" in out

    assert main(["status", "--status", "completed"]) == 0
    out = capsys.readouterr().out
    assert "1 completed" in out
    assert "result: docs" in out


def test_delegate_failure_exit_code(tasks_file, make_service, monkeypatch, capsys):
    failing = make_service(FakeProvider(error=RuntimeError("overloaded")))
    monkeypatch.setattr(chat_server, "build_service", lambda config: failing)

    assert main(["delegate", str(tasks_file), "--no-mark"]) == 1
    out = capsys.readouterr().out
    assert "✗ OAuth provider research" in out
    assert "Task failed: overloaded" in out


def test_delegate_nothing_ready(tmp_path, service, monkeypatch, capsys):
    path = tmp_path / "tasks.md"
    path.write_text("## Build [role:api-engineer]\n- [ ] x\n", encoding="utf-8")
    monkeypatch.setattr(chat_server, "build_service", lambda config: service)

    assert main(["delegate", str(path)]) == 0
    assert "No Chat Claude groups are ready." in capsys.readouterr().out


def test_verify_mcp(tmp_path, capsys):
    (tmp_path / ".mcp.json").write_text(
        json.dumps({"mcpServers": {"ghost": {"command": "agent-os-no-such-command-xyz"}}}),
        encoding="utf-8",
    )

    assert main(["verify-mcp"]) == 1
    out = capsys.readouterr().out
    assert "✗ command agent-os-no-such-command-xyz (not found on PATH)" in out
    assert "Failed: 1" in out


def test_verify_mcp_missing_file(capsys):
    assert main(["verify-mcp", "--config", "other.json"]) == 1
    assert "not found" in capsys.readouterr().err


def test_skills_commands(tmp_path, capsys):
    skills = tmp_path / "skills"
    skills.mkdir()
    (skills / "adr.md").write_text("---\ntags: docs\n---\n# ADRs\n\nOne decision per file.\n", encoding="utf-8")

    assert main(["skills", "list"]) == 0
    assert "adr" in capsys.readouterr().out

    assert main(["skills", "search", "decision"]) == 0
    assert "One decision per file.  [docs]" in capsys.readouterr().out

    assert main(["skills", "show", "adr"]) == 0
    assert capsys.readouterr().out.startswith("# ADRs")

    assert main(["skills", "show", "missing"]) == 1
    assert "Skill not found: missing" in capsys.readouterr().err

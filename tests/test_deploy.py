"""Tests for the deploy CLI runner and the Vercel / Fly.io tools."""

import json
import subprocess
import sys

import pytest

from monitoring import AuditLogger, MetricsCollector
from mcp_servers.deploy.cli import CLIError, CLIResult, CLIRunner
from mcp_servers.deploy.flyio import FlyTools
from mcp_servers.deploy.vercel import VercelTools


class FakeRunner:
    """Records invocations and returns a fixed result."""

    def __init__(self, returncode=0, stdout="ok\n", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        return subprocess.CompletedProcess(command, self.returncode, self.stdout, self.stderr)

    @property
    def last(self):
        return self.calls[-1][0]


def make_runner(executable="vercel", fake=None, **kwargs):
    fake = fake or FakeRunner()
    return CLIRunner(executable, runner=fake, environ={"PATH": "/usr/bin"}, **kwargs), fake


# =============================================================================
# CLIResult / CLIRunner
# =============================================================================


def test_result_output():
    assert CLIResult("deployed\n", "", 0).output() == "deployed"
    assert CLIResult("", "Success! Added\n", 0).output() == "Success! Added"
    assert CLIResult("", "", 0).output() == "Done."


def test_result_output_raises_on_failure():
    with pytest.raises(CLIError, match="Error: Not authorized"):
        CLIResult("", "Not authorized\n", 1).output()
    with pytest.raises(CLIError, match="Error: bad flag"):
        CLIResult("bad flag", "", 2).output()


def test_runner_passes_token_and_options():
    runner, fake = make_runner(token_env="VERCEL_TOKEN", token="tok_123456789", timeout=30, cwd="/srv/app")

    result = runner.run(["list"])

    command, kwargs = fake.calls[0]
    assert command == ["vercel", "list"]
    assert kwargs["env"] == {"PATH": "/usr/bin", "VERCEL_TOKEN": "tok_123456789"}
    assert kwargs["cwd"] == "/srv/app"
    assert kwargs["timeout"] == 30
    assert kwargs["stdin"] is subprocess.DEVNULL
    assert "input" not in kwargs
    assert result.success


def test_child_process_gets_empty_stdin():
    runner = CLIRunner(sys.executable, timeout=30)

    result = runner.run(["-c", "import sys; print(repr(sys.stdin.read()))"])

    assert result.output() == "''"


def test_runner_without_token_keeps_environment():
    runner, fake = make_runner(token_env="VERCEL_TOKEN")
    runner.run(["whoami"])
    assert "VERCEL_TOKEN" not in fake.calls[0][1]["env"]


def test_missing_executable():
    def runner(command, **kwargs):
        raise FileNotFoundError(command[0])

    result = CLIRunner("flyctl", runner=runner).run(["apps", "list"])

    assert result.returncode == 127
    with pytest.raises(CLIError, match="flyctl not found on PATH"):
        result.output()


def test_timeout():
    def runner(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    result = CLIRunner("vercel", runner=runner, timeout=5).run(["deploy"])
    assert result.returncode == 124
    assert "timed out after 5s" in result.stderr


def test_runner_records_metrics_and_redacted_audit(tmp_path):
    metrics = MetricsCollector()
    audit = AuditLogger(str(tmp_path / "audit.jsonl"))
    runner, _ = make_runner("flyctl", fake=FakeRunner(returncode=1, stderr="boom"), metrics=metrics, audit=audit)

    runner.run(["secrets", "set", "DB_URL=postgres://secret", "--app", "api"], redact=("DB_URL=postgres://secret",))

    assert metrics.get_value("cli_commands_total", tool="flyctl", result="failure") == 1
    events = [json.loads(line) for line in (tmp_path / "audit.jsonl").read_text(encoding="utf-8").splitlines()]
    assert events[0]["event_type"] == "cli_command"
    assert events[0]["args"] == ["secrets", "set", "****", "--app", "api"]
    assert events[0]["returncode"] == 1


# =============================================================================
# Vercel
# =============================================================================


@pytest.fixture
def vercel():
    runner, fake = make_runner("vercel")
    return VercelTools(runner), fake


def test_vercel_list_deployments(vercel):
    tools, fake = vercel
    tools.list_deployments("web", limit=5)
    assert fake.last == ["vercel", "list", "web", "--limit", "5"]

    tools.list_deployments()
    assert fake.last == ["vercel", "list"]


def test_vercel_deploy(vercel):
    tools, fake = vercel
    tools.deploy(production=True, name="web")
    assert fake.last == ["vercel", "--yes", "--prod", "--name", "web"]

    tools.deploy()
    assert fake.last == ["vercel", "--yes"]


def test_vercel_simple_commands(vercel):
    tools, fake = vercel
    tools.list_projects()
    assert fake.last == ["vercel", "projects", "list"]
    tools.logs("web-abc.vercel.app")
    assert fake.last == ["vercel", "logs", "web-abc.vercel.app"]
    tools.inspect("dpl_123")
    assert fake.last == ["vercel", "inspect", "dpl_123"]


def test_vercel_env(vercel):
    tools, fake = vercel

    tools.env("list", environment="production")
    assert fake.last == ["vercel", "env", "ls", "production"]

    tools.env("add", key="API_URL", value="https://api.example.com", environment="preview")
    command, kwargs = fake.calls[-1]
    assert command == ["vercel", "env", "add", "API_URL", "preview"]
    assert kwargs["input"] == "https://api.example.com"
    assert "stdin" not in kwargs

    tools.env("remove", key="API_URL")
    assert fake.last == ["vercel", "env", "rm", "API_URL", "--yes"]


@pytest.mark.parametrize("kwargs, message", [
    ({"action": "update"}, "action must be one of"),
    ({"action": "list", "environment": "staging"}, "environment must be one of"),
    ({"action": "add", "value": "x"}, "key is required"),
    ({"action": "add", "key": "K"}, "value is required"),
    ({"action": "remove"}, "key is required"),
])
def test_vercel_env_validation(vercel, kwargs, message):
    tools, fake = vercel
    with pytest.raises(ValueError, match=message):
        tools.env(**kwargs)
    assert fake.calls == []


def test_vercel_domains(vercel):
    tools, fake = vercel
    tools.domains("list")
    assert fake.last == ["vercel", "domains", "ls"]
    tools.domains("add", "example.com")
    assert fake.last == ["vercel", "domains", "add", "example.com"]
    tools.domains("remove", "example.com")
    assert fake.last == ["vercel", "domains", "rm", "example.com", "--yes"]

    with pytest.raises(ValueError, match="domain is required"):
        tools.domains("add")


def test_vercel_error_output():
    runner, _ = make_runner("vercel", fake=FakeRunner(returncode=1, stdout="", stderr="Error: No project found"))
    with pytest.raises(CLIError, match="No project found"):
        VercelTools(runner).list_deployments()


# =============================================================================
# Fly.io
# =============================================================================


@pytest.fixture
def fly():
    runner, fake = make_runner("flyctl")
    return FlyTools(runner), fake


def test_fly_apps_and_status(fly):
    tools, fake = fly
    tools.list_apps()
    assert fake.last == ["flyctl", "apps", "list"]
    tools.list_apps("acme")
    assert fake.last == ["flyctl", "apps", "list", "--org", "acme"]
    tools.app_status("api")
    assert fake.last == ["flyctl", "status", "--app", "api"]


def test_fly_deploy(fly):
    tools, fake = fly
    tools.deploy("api", strategy="bluegreen")
    assert fake.last == ["flyctl", "deploy", "--app", "api", "--remote-only", "--strategy", "bluegreen"]

    tools.deploy(remote_only=False)
    assert fake.last == ["flyctl", "deploy"]

    with pytest.raises(ValueError, match="strategy must be one of"):
        tools.deploy("api", strategy="yolo")


def test_fly_logs_do_not_tail(fly):
    tools, fake = fly
    tools.logs("api", instance="abc123")
    assert fake.last == ["flyctl", "logs", "--app", "api", "--no-tail", "--instance", "abc123"]


def test_fly_scale(fly):
    tools, fake = fly
    tools.scale("api", 3, region="fra")
    assert fake.last == ["flyctl", "scale", "count", "3", "--app", "api", "--yes", "--region", "fra"]

    with pytest.raises(ValueError, match="must not be negative"):
        tools.scale("api", -1)


def test_fly_regions(fly):
    tools, fake = fly
    tools.regions(list_available=True)
    assert fake.last == ["flyctl", "platform", "regions"]
    tools.regions("api")
    assert fake.last == ["flyctl", "regions", "list", "--app", "api"]

    with pytest.raises(ValueError, match="app is required"):
        tools.regions()


def test_fly_secrets(fly):
    tools, fake = fly
    tools.secrets("list", "api")
    assert fake.last == ["flyctl", "secrets", "list", "--app", "api"]
    tools.secrets("set", "api", key="DB_URL", value="postgres://x")
    assert fake.last == ["flyctl", "secrets", "set", "DB_URL=postgres://x", "--app", "api"]
    tools.secrets("unset", "api", key="DB_URL")
    assert fake.last == ["flyctl", "secrets", "unset", "DB_URL", "--app", "api"]

    with pytest.raises(ValueError, match="key is required"):
        tools.secrets("unset", "api")
    with pytest.raises(ValueError, match="value is required"):
        tools.secrets("set", "api", key="DB_URL")
    with pytest.raises(ValueError, match="action must be one of"):
        tools.secrets("rotate", "api")


def test_fly_postgres_machines_volumes(fly):
    tools, fake = fly
    tools.postgres_list("acme")
    assert fake.last == ["flyctl", "postgres", "list", "--org", "acme"]
    tools.postgres_connect("db")
    assert fake.last == ["flyctl", "postgres", "connect", "--app", "db"]
    tools.machine_list("api")
    assert fake.last == ["flyctl", "machine", "list", "--app", "api"]
    tools.machine_stop("api", "m1")
    assert fake.last == ["flyctl", "machine", "stop", "m1", "--app", "api"]
    tools.machine_start("api", "m1")
    assert fake.last == ["flyctl", "machine", "start", "m1", "--app", "api"]
    tools.volumes("api")
    assert fake.last == ["flyctl", "volumes", "list", "--app", "api"]

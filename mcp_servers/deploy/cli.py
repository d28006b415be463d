# =============================================================================
# AGENT-OS TOOLKIT - DEPLOY CLI RUNNER
# =============================================================================
"""
CLI Runner Module

Runs a deployment CLI (``vercel``, ``flyctl``) with an argument list and
the API token in its environment. Nothing goes through a shell, so user
supplied names and values are passed to the CLI verbatim.
"""

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

from monitoring import AuditLogger, MetricsCollector

logger = logging.getLogger(__name__)


class CLIError(Exception):
    """Raised when a CLI command exits with an error."""
    pass


@dataclass
class CLIResult:
    """Captured output of one CLI invocation."""
    stdout: str
    stderr: str
    returncode: int
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def output(self) -> str:
        """
        Text for the caller.

        Raises:
            CLIError: With ``Error: <stderr>`` when the command failed
        """
        if not self.success:
            raise CLIError(f"Error: {self.stderr.strip() or self.stdout.strip()}")
        # Some CLIs report on stderr even when they succeed
        return self.stdout.strip() or self.stderr.strip() or "Done."


class CLIRunner:
    """
    Runs one executable.

    Args:
        executable: Program name, e.g. ``flyctl``
        token_env: Environment variable that carries the API token
        token: Token value (falls back to the current environment)
        timeout: Seconds before a command is abandoned
        cwd: Working directory for commands
        runner: ``subprocess.run`` compatible callable
        metrics: Optional metrics collector
        audit: Optional audit logger
    """

    def __init__(
        self,
        executable: str,
        token_env: Optional[str] = None,
        token: Optional[str] = None,
        timeout: int = 600,
        cwd: Optional[str] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        environ: Optional[Mapping[str, str]] = None,
        metrics: Optional[MetricsCollector] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.executable = executable
        self.token_env = token_env
        self.token = token
        self.timeout = timeout
        self.cwd = cwd
        self.runner = runner
        self.environ = os.environ if environ is None else environ
        self.metrics = metrics
        self.audit = audit

    def _env(self) -> dict:
        env = dict(self.environ)
        if self.token_env and self.token:
            env[self.token_env] = self.token
        return env

    def run(
        self,
        args: Sequence[str],
        input: Optional[str] = None,
        redact: Sequence[str] = (),
    ) -> CLIResult:
        """
        Run the executable with ``args``.

        Args:
            args: Arguments after the executable name
            input: Text sent to the command's stdin
            redact: Values hidden when the command is logged

        Returns:
            CLIResult; a missing executable or a timeout is a failed result
        """
        command = [self.executable, *args]
        shown = [("****" if a in redact else a) for a in command]
        logger.info(f"Running: {' '.join(shown)}")

        # stdin is the MCP transport; a child must never read from it
        stdin_kwargs = {"input": input} if input is not None else {"stdin": subprocess.DEVNULL}

        start = time.monotonic()
        try:
            completed = self.runner(
                command,
                **stdin_kwargs,
                cwd=self.cwd,
                env=self._env(),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
            result = CLIResult(
                stdout=completed.stdout or "",
                stderr=completed.stderr or "",
                returncode=completed.returncode,
            )
        except FileNotFoundError:
            result = CLIResult("", f"{self.executable} not found on PATH", 127)
        except subprocess.TimeoutExpired:
            result = CLIResult("", f"{self.executable} timed out after {self.timeout}s", 124)
        result.duration = time.monotonic() - start

        if not result.success:
            logger.warning(f"{self.executable} exited with {result.returncode}: {result.stderr.strip()}")
        if self.metrics:
            self.metrics.record_cli_command(self.executable, result.success)
        if self.audit:
            self.audit.log_cli_command(self.executable, shown[1:], result.returncode, result.duration)
        return result

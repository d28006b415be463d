# =============================================================================
# AGENT-OS TOOLKIT - GIT REPOSITORY
# =============================================================================
"""
Git wrapper used by the version manager.

Commands run with an argument list in the project root; any non-zero exit
raises ``GitError`` carrying git's stderr.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from mcp_servers.version_manager.commits import RawCommit
from mcp_servers.version_manager.errors import GitError

logger = logging.getLogger(__name__)


# Field and record separators for git log output
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = f"--pretty=format:%H{_FIELD_SEP}%s{_FIELD_SEP}%b{_RECORD_SEP}"


def check_ref(value: str, what: str = "ref") -> str:
    """
    Reject a ref, remote or branch name git would parse as an option.

    Raises:
        GitError: Empty value or one starting with ``-``
    """
    if not value or value.startswith("-"):
        raise GitError(f"Invalid git {what} '{value}'")
    return value


class GitRepository:
    """
    A git working copy.

    Args:
        root: Repository directory
        runner: ``subprocess.run`` compatible callable
        timeout: Seconds allowed per git command
    """

    def __init__(
        self,
        root: Union[str, Path],
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        timeout: int = 60,
    ):
        self.root = Path(root)
        self.runner = runner
        self.timeout = timeout

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        command = ["git", *args]
        logger.debug(f"Running: {' '.join(command)}")
        try:
            result = self.runner(
                command,
                cwd=str(self.root),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise GitError("git not found on PATH") from None
        except subprocess.TimeoutExpired:
            raise GitError(f"git {args[0]} timed out after {self.timeout}s") from None

        if check and result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise GitError(f"git {args[0]} failed: {stderr}", stderr=stderr)
        return result

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    def last_tag(self) -> Optional[str]:
        """Most recent tag reachable from HEAD, None when there is none."""
        result = self._run("describe", "--tags", "--abbrev=0", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def tag_exists(self, name: str) -> bool:
        result = self._run("rev-parse", "-q", "--verify", f"refs/tags/{name}", check=False)
        return result.returncode == 0

    def commit_count(self, ref: str = "HEAD") -> int:
        result = self._run("rev-list", "--count", check_ref(ref), check=False)
        if result.returncode != 0:
            return 0
        return int(result.stdout.strip() or 0)

    def log(self, from_ref: Optional[str] = None, to_ref: str = "HEAD") -> List[RawCommit]:
        """Commits in ``from_ref..to_ref`` (whole history without from_ref), newest first."""
        check_ref(to_ref)
        revision = f"{check_ref(from_ref)}..{to_ref}" if from_ref else to_ref
        result = self._run("log", revision, _LOG_FORMAT)

        commits = []
        for record in result.stdout.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, subject, body = (record.split(_FIELD_SEP) + ["", ""])[:3]
            commits.append(RawCommit(sha=sha.strip(), subject=subject, body=body.strip()))
        return commits

    def remote_url(self, remote: str = "origin") -> Optional[str]:
        result = self._run("remote", "get-url", check_ref(remote, "remote"), check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    # -----------------------------------------------------------------
    # Changes
    # -----------------------------------------------------------------

    def add(self, paths: Sequence[str]) -> None:
        if paths:
            self._run("add", "--", *paths)

    def commit(self, message: str) -> None:
        self._run("commit", "-m", message)
        logger.info(f"Committed: {message}")

    def tag(self, name: str, message: str) -> None:
        """Create an annotated tag."""
        self._run("tag", "-a", check_ref(name, "tag"), "-m", message)
        logger.info(f"Tagged {name}")

    def unstage(self, paths: Sequence[str]) -> None:
        if paths:
            self._run("reset", "-q", "--", *paths)

    def undo_commit(self) -> None:
        """Drop the last commit, keeping its changes staged."""
        self._run("reset", "--soft", "HEAD~1")
        logger.info("Undid the last commit")

    def push(self, remote: str = "origin", branch: str = "main") -> None:
        self._run("push", check_ref(remote, "remote"), check_ref(branch, "branch"))

    def push_tags(self, remote: str = "origin") -> None:
        self._run("push", "--tags", check_ref(remote, "remote"))

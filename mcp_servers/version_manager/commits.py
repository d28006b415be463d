# =============================================================================
# AGENT-OS TOOLKIT - CONVENTIONAL COMMITS
# =============================================================================
"""
Conventional Commits Module

Parses commit messages of the form ``type(scope)!: subject`` and derives
the release bump they call for.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

COMMIT_TYPES = (
    "feat", "fix", "docs", "style", "refactor",
    "perf", "test", "chore", "ci", "revert",
)

_HEADER_PATTERN = re.compile(
    r"^(?P<type>" + "|".join(COMMIT_TYPES) + r")"
    r"(?:\((?P<scope>[^)]+)\))?(?P<bang>!)?: (?P<subject>.+)$"
)
_BREAKING_PATTERN = re.compile(r"^BREAKING[ -]CHANGE:\s*(?P<note>.*)$", re.MULTILINE)


@dataclass
class RawCommit:
    """A commit as read from ``git log``."""
    sha: str
    subject: str
    body: str = ""


@dataclass
class ConventionalCommit:
    """A commit whose header follows the conventional format."""
    sha: str
    type: str
    subject: str
    scope: Optional[str] = None
    breaking: bool = False
    breaking_note: str = ""
    body: str = ""

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


def parse_commit(sha: str, subject: str, body: str = "") -> Optional[ConventionalCommit]:
    """Parse a commit header; None when it is not conventional."""
    match = _HEADER_PATTERN.match(subject.strip())
    if not match:
        return None

    breaking_match = _BREAKING_PATTERN.search(body or "")
    return ConventionalCommit(
        sha=sha,
        type=match.group("type"),
        subject=match.group("subject").strip(),
        scope=match.group("scope"),
        breaking=bool(match.group("bang") or breaking_match),
        breaking_note=breaking_match.group("note").strip() if breaking_match else "",
        body=body or "",
    )


def parse_commits(commits: Iterable[RawCommit]) -> List[ConventionalCommit]:
    parsed = []
    for commit in commits:
        result = parse_commit(commit.sha, commit.subject, commit.body)
        if result is not None:
            parsed.append(result)
    return parsed


@dataclass
class ValidationReport:
    """Conventional-format check over a commit range."""
    total: int = 0
    invalid: List[RawCommit] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.invalid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "total_commits": self.total,
            "invalid_commits": len(self.invalid),
            "invalid_details": [
                {"sha": c.sha[:7], "message": c.subject} for c in self.invalid
            ],
        }

    def render(self) -> str:
        text = "📊 Commit Validation Results:\n\n"
        text += f"Total commits: {self.total}\n"
        text += f"Valid: {self.total - len(self.invalid)}\n"
        text += f"Invalid: {len(self.invalid)}\n\n"

        if self.invalid:
            text += "❌ Invalid commits (not conventional format):\n"
            for commit in self.invalid:
                text += f"  {commit.sha[:7]}: {commit.subject}\n"
            text += "\nExpected format: type(scope): description\n"
            text += f"Types: {', '.join(COMMIT_TYPES)}\n"
        else:
            text += "✅ All commits follow conventional format!\n"
        return text


def validate_commits(commits: Iterable[RawCommit]) -> ValidationReport:
    report = ValidationReport()
    for commit in commits:
        report.total += 1
        if not _HEADER_PATTERN.match(commit.subject.strip()):
            report.invalid.append(commit)
    return report


def recommend_bump(commits: Iterable[ConventionalCommit], pre_major: bool = False) -> str:
    """
    Bump implied by a set of commits.

    Breaking changes call for a major bump (minor while ``pre_major``, i.e.
    the project is still on 0.x), features for a minor bump, anything else
    for a patch.
    """
    commits = list(commits)
    if any(c.breaking for c in commits):
        return "minor" if pre_major else "major"
    if any(c.type == "feat" for c in commits):
        return "minor"
    return "patch"

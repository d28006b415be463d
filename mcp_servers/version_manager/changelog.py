# =============================================================================
# AGENT-OS TOOLKIT - CHANGELOG
# =============================================================================
"""
Changelog Module

Renders release sections from conventional commits and keeps CHANGELOG.md
newest-first, in the layout standard-version produces.
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from mcp_servers.version_manager.commits import ConventionalCommit

CHANGELOG_HEADER = (
    "# Changelog\n\n"
    "All notable changes to this project will be documented in this file. "
    "See [standard-version](https://github.com/conventional-changelog/standard-version) "
    "for commit guidelines.\n"
)

# Commit types that get a section, in display order
SECTIONS = (
    ("feat", "Features"),
    ("fix", "Bug Fixes"),
    ("perf", "Performance Improvements"),
    ("revert", "Reverts"),
)
BREAKING_TITLE = "⚠ BREAKING CHANGES"

_RELEASE_HEADING = re.compile(r"^#{2,3} \[?v?\d", re.MULTILINE)
_REMOTE_PATTERN = re.compile(
    r"^(?:https?://|ssh://git@|git@)(?P<host>[^/:]+)[/:](?P<path>.+?)(?:\.git)?/?$"
)


def _entry(commit: ConventionalCommit, text: Optional[str] = None) -> str:
    scope = f"**{commit.scope}:** " if commit.scope else ""
    return f"* {scope}{text or commit.subject} ({commit.short_sha})"


def compare_url(remote_url: Optional[str], previous_tag: str, tag: str) -> Optional[str]:
    """GitHub-style compare link for a remote, None when it cannot be built."""
    if not remote_url:
        return None
    match = _REMOTE_PATTERN.match(remote_url.strip())
    if not match:
        return None
    return f"https://{match.group('host')}/{match.group('path')}/compare/{previous_tag}...{tag}"


def render_release(
    version: str,
    commits: Iterable[ConventionalCommit],
    release_date: Optional[date] = None,
    previous_tag: Optional[str] = None,
    compare_url: Optional[str] = None,
) -> str:
    """
    Render one release section.

    Args:
        version: Released version
        commits: Conventional commits in the release
        release_date: Date shown in the heading (default: today)
        previous_tag: Tag of the previous release, used only with compare_url
        compare_url: Link for the heading

    Returns:
        Markdown section ending with a blank line
    """
    day = (release_date or date.today()).isoformat()
    if compare_url and previous_tag:
        heading = f"## [{version}]({compare_url}) ({day})"
    else:
        heading = f"## {version} ({day})"

    commits = list(commits)
    blocks: List[str] = [heading]

    breaking = [c for c in commits if c.breaking]
    if breaking:
        lines = [_entry(c, c.breaking_note or None) for c in breaking]
        blocks.append(f"### {BREAKING_TITLE}\n\n" + "\n".join(lines))

    grouped: Dict[str, List[ConventionalCommit]] = {}
    for commit in commits:
        grouped.setdefault(commit.type, []).append(commit)

    for commit_type, title in SECTIONS:
        entries = grouped.get(commit_type)
        if entries:
            blocks.append(f"### {title}\n\n" + "\n".join(_entry(c) for c in entries))

    return "\n\n".join(blocks) + "\n"


def prepend_release(path: Union[str, Path], section: str) -> None:
    """Insert a release section above the newest one, creating the file if needed."""
    path = Path(path)
    if not path.exists():
        path.write_text(CHANGELOG_HEADER + "\n" + section, encoding="utf-8")
        return

    text = path.read_text(encoding="utf-8")
    match = _RELEASE_HEADING.search(text)
    if match:
        updated = text[:match.start()] + section + "\n" + text[match.start():]
    else:
        updated = text.rstrip("\n") + "\n\n" + section
    path.write_text(updated, encoding="utf-8")


def extract_release(text: str, version: str) -> Optional[str]:
    """Section for one version, from its heading up to the next release heading."""
    heading = re.compile(
        r"^#{2,3}\s+\[?v?" + re.escape(version.lstrip("v")) + r"\]?(?=[\s(]|$)",
        re.MULTILINE,
    )
    match = heading.search(text)
    if not match:
        return None

    following = _RELEASE_HEADING.search(text, match.end())
    end = following.start() if following else len(text)
    return text[match.start():end].rstrip() + "\n"

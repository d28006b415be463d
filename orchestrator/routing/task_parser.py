# =============================================================================
# AGENT-OS TOOLKIT - TASKS.MD PARSER
# =============================================================================
"""
Task List Parser

Parses the Agent-OS ``tasks.md`` convention into task groups:

    ## OAuth provider research [delegate:chat-claude] [type:research] [output:docs/oauth.md]
    - [ ] Compare Auth0, Clerk and Supabase Auth
    - [x] Collect pricing pages

    ## Implement OAuth callback [role:api-engineer] [depends-on:oauth-provider-research]
    - [ ] Add /auth/callback route

Grammar rules:
    - Only level-2 headings (``## ``) open a group; the name runs up to the
      first ``[`` and the rest of the heading must be ``[key:value]`` tags.
    - Keys are letters, digits, ``-`` and ``_`` starting with a letter.
      Values are non-empty and cannot contain ``]``.
    - ``depends-on`` may repeat and may list several names separated by
      commas. Any other repeated key is an error.
    - Checklist items are ``- [ ]`` / ``- [x]`` lines; indentation is kept
      as a nesting depth.
    - Lines inside fenced code blocks are ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from orchestrator.errors import TaskParseError

logger = logging.getLogger(__name__)


KNOWN_TAGS = frozenset(["role", "delegate", "type", "output", "depends-on"])

_HEADING_PATTERN = re.compile(r"^##(?!#)(?:\s+(?P<rest>.*?))?\s*$")
_ITEM_PATTERN = re.compile(r"^(?P<indent>[ \t]*)-\s\[(?P<mark>[ xX])\]\s+(?P<desc>.*?)\s*$")
_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")
_FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class TaskItem:
    """A single checklist line."""
    description: str
    checked: bool
    line: int
    depth: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "checked": self.checked,
            "line": self.line,
            "depth": self.depth,
        }


@dataclass
class TaskGroup:
    """
    A ``## name [tags]`` section and its checklist.

    Attributes:
        name: Group name as written in the heading
        line: 1-based line number of the heading
        role: Subagent role from ``[role:...]``
        delegate: Delegation target from ``[delegate:...]``
        task_type: Task type from ``[type:...]``
        output: Output file from ``[output:...]``
        depends_on: Group names from ``[depends-on:...]``
        extra_tags: Tags with keys outside the known set
        items: Checklist items
        body: Other non-blank lines of the section
    """
    name: str
    line: int
    role: Optional[str] = None
    delegate: Optional[str] = None
    task_type: Optional[str] = None
    output: Optional[str] = None
    depends_on: List[str] = field(default_factory=list)
    extra_tags: Dict[str, str] = field(default_factory=dict)
    items: List[TaskItem] = field(default_factory=list)
    body: List[str] = field(default_factory=list)

    @property
    def slug(self) -> str:
        slug = _SLUG_PATTERN.sub("-", self.name.lower()).strip("-")
        return slug or f"group-{self.line}"

    @property
    def progress(self) -> Tuple[int, int]:
        """(checked, total) item counts."""
        return sum(1 for item in self.items if item.checked), len(self.items)

    @property
    def is_complete(self) -> bool:
        """True when the group has items and every one is checked."""
        done, total = self.progress
        return total > 0 and done == total

    @property
    def open_items(self) -> List[TaskItem]:
        return [item for item in self.items if not item.checked]

    def to_dict(self) -> Dict[str, Any]:
        done, total = self.progress
        return {
            "name": self.name,
            "slug": self.slug,
            "line": self.line,
            "role": self.role,
            "delegate": self.delegate,
            "type": self.task_type,
            "output": self.output,
            "depends_on": list(self.depends_on),
            "extra_tags": dict(self.extra_tags),
            "items": [item.to_dict() for item in self.items],
            "completed": done,
            "total": total,
        }


@dataclass
class TasksDocument:
    """Parsed tasks.md file."""
    source: str
    groups: List[TaskGroup] = field(default_factory=list)
    preamble: List[str] = field(default_factory=list)

    def get_group(self, name: str) -> Optional[TaskGroup]:
        """Find a group by name or slug, case-insensitively."""
        wanted = name.strip().lower()
        for group in self.groups:
            if group.name.lower() == wanted or group.slug == wanted:
                return group
        return None

    def completed_groups(self) -> List[TaskGroup]:
        return [g for g in self.groups if g.is_complete]

    def pending_groups(self) -> List[TaskGroup]:
        return [g for g in self.groups if not g.is_complete]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "groups": [g.to_dict() for g in self.groups],
        }


# =============================================================================
# HEADING / TAG PARSING
# =============================================================================


def _parse_tags(text: str, line: int, source: str) -> List[Tuple[str, str]]:
    """Parse a run of ``[key:value]`` tags separated by whitespace."""
    tags: List[Tuple[str, str]] = []
    pos = 0
    length = len(text)

    while pos < length:
        if text[pos].isspace():
            pos += 1
            continue
        if text[pos] != "[":
            raise TaskParseError(
                f"unexpected text after tags: {text[pos:]!r}", line, source
            )
        end = text.find("]", pos + 1)
        if end == -1:
            raise TaskParseError(f"unterminated tag: {text[pos:]!r}", line, source)

        inner = text[pos + 1:end]
        if ":" not in inner:
            raise TaskParseError(f"tag [{inner}] is not key:value", line, source)
        key, value = inner.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        if not _KEY_PATTERN.match(key):
            raise TaskParseError(f"invalid tag key {key!r}", line, source)
        if not value:
            raise TaskParseError(f"tag [{key}] has an empty value", line, source)
        if "[" in value:
            raise TaskParseError(f"tag [{key}] value contains '['", line, source)

        tags.append((key, value))
        pos = end + 1

    return tags


def _parse_heading(rest: str, line: int, source: str) -> TaskGroup:
    """Build a TaskGroup from the text after ``## ``."""
    bracket = rest.find("[")
    if bracket == -1:
        name, tag_text = rest.strip(), ""
    else:
        name, tag_text = rest[:bracket].strip(), rest[bracket:]

    if not name:
        raise TaskParseError("task group heading has no name", line, source)

    group = TaskGroup(name=name, line=line)
    seen: Dict[str, str] = {}

    for key, value in _parse_tags(tag_text, line, source):
        if key == "depends-on":
            for dep in value.split(","):
                dep = dep.strip()
                if dep and dep not in group.depends_on:
                    group.depends_on.append(dep)
            continue

        if key in seen:
            raise TaskParseError(
                f"duplicate tag [{key}] in group '{name}'", line, source
            )
        seen[key] = value

        if key == "role":
            group.role = value
        elif key == "delegate":
            group.delegate = value
        elif key == "type":
            group.task_type = value.lower()
        elif key == "output":
            group.output = value
        else:
            group.extra_tags[key] = value
            logger.warning(f"{source}:{line}: unknown tag [{key}] in group '{name}'")

    return group


# =============================================================================
# PUBLIC API
# =============================================================================


def parse_tasks(text: str, source: str = "<string>") -> TasksDocument:
    """
    Parse tasks.md content.

    Args:
        text: File content
        source: Name used in error messages

    Returns:
        TasksDocument with groups in file order

    Raises:
        TaskParseError: On malformed headings, tags or duplicate group names
    """
    document = TasksDocument(source=source)
    current: Optional[TaskGroup] = None
    names: Dict[str, Tuple[int, str]] = {}
    in_fence = False

    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip("\r\n")

        if _FENCE_PATTERN.match(line):
            in_fence = not in_fence
            if current is not None:
                current.body.append(line)
            continue

        if in_fence:
            if current is not None:
                current.body.append(line)
            continue

        heading = _HEADING_PATTERN.match(line)
        if heading:
            current = _parse_heading(heading.group("rest") or "", number, source)
            # Groups are looked up by name or slug, so slugs must be unique
            key = current.slug
            if key in names:
                first_line, first_name = names[key]
                raise TaskParseError(
                    f"duplicate task group '{current.name}' "
                    f"(same id as '{first_name}' on line {first_line})",
                    number,
                    source,
                )
            names[key] = (number, current.name)
            document.groups.append(current)
            continue

        item = _ITEM_PATTERN.match(line)
        if item and current is not None:
            indent = len(item.group("indent").expandtabs(4))
            current.items.append(TaskItem(
                description=item.group("desc"),
                checked=item.group("mark") in ("x", "X"),
                line=number,
                depth=indent // 2,
            ))
            continue

        if not line.strip():
            continue
        if current is None:
            document.preamble.append(line)
        else:
            current.body.append(line)

    return document


def load_tasks(path: Union[str, Path]) -> TasksDocument:
    """Read and parse a tasks.md file."""
    path = Path(path)
    with open(path, encoding="utf-8", newline="") as f:
        text = f.read()
    return parse_tasks(text, source=str(path))


def mark_group_complete(path: Union[str, Path], group_name: str) -> int:
    """
    Check every open item of a group in place.

    Only the ``[ ]`` marks of that group's items change; every other byte
    of the file, line endings included, is preserved.

    Returns:
        Number of items that were checked

    Raises:
        KeyError: If the group does not exist
    """
    path = Path(path)
    with open(path, encoding="utf-8", newline="") as f:
        text = f.read()

    document = parse_tasks(text, source=str(path))
    group = document.get_group(group_name)
    if group is None:
        raise KeyError(f"Task group not found: {group_name}")

    lines = text.splitlines(keepends=True)
    changed = 0
    for item in group.open_items:
        original = lines[item.line - 1]
        lines[item.line - 1] = original.replace("[ ]", "[x]", 1)
        changed += 1

    if changed:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write("".join(lines))
        logger.info(f"Marked {changed} item(s) complete in '{group.name}'")

    return changed

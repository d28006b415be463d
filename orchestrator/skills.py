# =============================================================================
# AGENT-OS TOOLKIT - SKILLS CATALOG
# =============================================================================
"""
Skills Catalog Module

Skills are Markdown documents under the project's ``skills/`` directory
that describe how to do one kind of work (writing an ADR, setting up auth,
...). A skill may start with YAML front matter:

    ---
    name: api-design
    description: REST endpoint conventions
    tags: [api, backend]
    ---
    # API Design
    ...

Without front matter the name is the file stem and the description is the
first paragraph of the body.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from orchestrator.errors import SkillNotFoundError

logger = logging.getLogger(__name__)


MAX_SKILL_SIZE = 1_000_000

_FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_TITLE_PATTERN = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


@dataclass
class Skill:
    """One skill document."""
    name: str
    path: Path
    title: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)
    body: str = ""

    def matches(self, query: str) -> bool:
        needle = query.lower()
        haystack = [self.name, self.title, self.description] + self.tags
        return any(needle in value.lower() for value in haystack)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "path": str(self.path),
        }


def read_skill_file(path: Path, max_size: int = MAX_SKILL_SIZE) -> Optional[str]:
    """
    Read a skill file as text.

    Returns:
        File content, or None when the file is too large
    """
    size = path.stat().st_size
    if size > max_size:
        logger.warning(f"Skipping skill file ({size} bytes, limit {max_size}): {path}")
        return None

    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return path.read_text(encoding="latin-1")


def _first_paragraph(body: str) -> str:
    paragraph: List[str] = []
    for line in body.splitlines():
        stripped = line.strip()
        if not stripped:
            if paragraph:
                break
            continue
        if stripped.startswith("#"):
            if paragraph:
                break
            continue
        paragraph.append(stripped)
    return " ".join(paragraph)


def parse_skill(path: Path, text: str) -> Skill:
    """Build a Skill from a document's text."""
    meta: Dict[str, Any] = {}
    body = text

    match = _FRONT_MATTER_PATTERN.match(text)
    if match:
        try:
            loaded = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring invalid front matter in {path}: {e}")
            loaded = None
        if isinstance(loaded, dict):
            meta = loaded
        body = text[match.end():]

    title_match = _TITLE_PATTERN.search(body)
    title = title_match.group(1) if title_match else ""

    tags = meta.get("tags") or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]
    elif not isinstance(tags, list):
        logger.warning(f"Ignoring tags in {path}: expected a list or a comma separated string")
        tags = []

    return Skill(
        name=str(meta.get("name") or path.stem),
        path=path,
        title=title,
        description=str(meta.get("description") or _first_paragraph(body)),
        tags=[str(t) for t in tags],
        body=body,
    )


class SkillCatalog:
    """
    Skills found under a directory.

    Usage:
        catalog = SkillCatalog("skills")
        for skill in catalog.search("auth"):
            print(skill.name, skill.description)
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self._skills: Optional[Dict[str, Skill]] = None

    def load(self) -> Dict[str, Skill]:
        """Scan the directory; later duplicates of a name are ignored."""
        skills: Dict[str, Skill] = {}
        if not self.root.is_dir():
            logger.debug(f"Skills directory not found: {self.root}")
            self._skills = skills
            return skills

        for path in sorted(self.root.rglob("*.md")):
            if not path.is_file():
                continue
            text = read_skill_file(path)
            if text is None:
                continue
            skill = parse_skill(path, text)
            if skill.name in skills:
                logger.warning(
                    f"Duplicate skill '{skill.name}' in {path}, "
                    f"keeping {skills[skill.name].path}"
                )
                continue
            skills[skill.name] = skill

        logger.debug(f"Loaded {len(skills)} skill(s) from {self.root}")
        self._skills = skills
        return skills

    @property
    def skills(self) -> Dict[str, Skill]:
        if self._skills is None:
            self.load()
        return self._skills

    def list(self) -> List[Skill]:
        return sorted(self.skills.values(), key=lambda s: s.name)

    def get(self, name: str) -> Skill:
        skill = self.skills.get(name)
        if skill is None:
            raise SkillNotFoundError(f"Skill not found: {name}")
        return skill

    def search(self, query: str) -> List[Skill]:
        return [skill for skill in self.list() if skill.matches(query)]

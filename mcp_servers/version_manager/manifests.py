# =============================================================================
# AGENT-OS TOOLKIT - VERSION MANIFESTS
# =============================================================================
"""
Manifest Module

Reads and writes the version recorded in a project's package files:

    package.json              {"version": "..."}
    frontend/package.json     {"version": "..."}
    backend/pyproject.toml    version = "..." in [project] or [tool.poetry]
    backend/api/__init__.py   __version__ = "..."

Files that do not exist are skipped.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from mcp_servers.version_manager.semver import Version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Manifest:
    """A file that records the project version."""
    path: str
    kind: str  # json | pyproject | python


DEFAULT_MANIFESTS = (
    Manifest("package.json", "json"),
    Manifest("frontend/package.json", "json"),
    Manifest("backend/pyproject.toml", "pyproject"),
    Manifest("backend/api/__init__.py", "python"),
)

PYPROJECT_TABLES = ("project", "tool.poetry")

_TABLE_PATTERN = re.compile(r"^\s*\[(?P<name>[^\[\]]+)\]\s*(?:#.*)?$")
_TOML_VERSION_PATTERN = re.compile(r"^(?P<prefix>\s*version\s*=\s*)(?P<q>[\"'])(?P<value>[^\"']*)(?P=q)")
_PY_VERSION_PATTERN = re.compile(r"^(?P<prefix>__version__\s*=\s*)(?P<q>[\"'])(?P<value>[^\"']*)(?P=q)", re.MULTILINE)


# =============================================================================
# FORMAT HANDLERS
# =============================================================================


def _read_json(text: str) -> Optional[str]:
    data = json.loads(text)
    value = data.get("version") if isinstance(data, dict) else None
    return str(value) if value is not None else None


def _write_json(text: str, version: str) -> Optional[str]:
    data = json.loads(text)
    if not isinstance(data, dict):
        return None
    data["version"] = version
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _find_pyproject_version(lines: List[str]) -> Optional[int]:
    """Index of the version line in [project] or [tool.poetry]."""
    table = None
    for index, line in enumerate(lines):
        table_match = _TABLE_PATTERN.match(line)
        if table_match:
            table = table_match.group("name").strip()
            continue
        if table in PYPROJECT_TABLES and _TOML_VERSION_PATTERN.match(line):
            return index
    return None


def _read_pyproject(text: str) -> Optional[str]:
    lines = text.splitlines()
    index = _find_pyproject_version(lines)
    if index is None:
        return None
    return _TOML_VERSION_PATTERN.match(lines[index]).group("value")


def _write_pyproject(text: str, version: str) -> Optional[str]:
    lines = text.splitlines(keepends=True)
    index = _find_pyproject_version(lines)
    if index is None:
        return None
    lines[index] = _TOML_VERSION_PATTERN.sub(
        lambda m: f"{m.group('prefix')}{m.group('q')}{version}{m.group('q')}",
        lines[index],
        count=1,
    )
    return "".join(lines)


def _read_python(text: str) -> Optional[str]:
    match = _PY_VERSION_PATTERN.search(text)
    return match.group("value") if match else None


def _write_python(text: str, version: str) -> Optional[str]:
    if not _PY_VERSION_PATTERN.search(text):
        return None
    return _PY_VERSION_PATTERN.sub(
        lambda m: f"{m.group('prefix')}{m.group('q')}{version}{m.group('q')}",
        text,
        count=1,
    )


READERS = {"json": _read_json, "pyproject": _read_pyproject, "python": _read_python}
WRITERS = {"json": _write_json, "pyproject": _write_pyproject, "python": _write_python}


# =============================================================================
# PUBLIC API
# =============================================================================


def read_version(root: Union[str, Path], manifest: Manifest) -> Optional[str]:
    """Version recorded in one manifest, None when absent."""
    path = Path(root) / manifest.path
    if not path.is_file():
        return None
    try:
        return READERS[manifest.kind](path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning(f"Cannot read version from {manifest.path}: {e}")
        return None


def read_versions(
    root: Union[str, Path],
    manifests: Sequence[Manifest] = DEFAULT_MANIFESTS,
) -> Dict[str, Optional[str]]:
    return {m.path: read_version(root, m) for m in manifests}


def sync_versions(
    root: Union[str, Path],
    version: str,
    manifests: Sequence[Manifest] = DEFAULT_MANIFESTS,
) -> List[str]:
    """
    Write a version into every existing manifest.

    Returns:
        Relative paths of the files that were updated

    Raises:
        ValueError: If version is not a semantic version
    """
    normalized = str(Version.parse(version))

    updated: List[str] = []
    for manifest in manifests:
        path = Path(root) / manifest.path
        if not path.is_file():
            continue
        text = path.read_text(encoding="utf-8")
        new_text = WRITERS[manifest.kind](text, normalized)
        if new_text is None:
            logger.warning(f"No version field found in {manifest.path}")
            continue
        if new_text != text:
            path.write_text(new_text, encoding="utf-8")
        updated.append(manifest.path)

    logger.info(f"Synced version {normalized} to {len(updated)} file(s)")
    return updated

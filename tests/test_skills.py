"""Tests for the skills catalog."""

import pytest

from orchestrator.errors import SkillNotFoundError
from orchestrator.skills import SkillCatalog, parse_skill, read_skill_file


API_SKILL = """\
---
name: api-design
description: REST endpoint conventions
tags: [api, backend]
---
# API Design

Use plural nouns.
"""

ADR_SKILL = """\
# Writing ADRs

Record one decision per file.
Keep it short.

## Template
...
"""


@pytest.fixture
def skills_dir(tmp_path):
    root = tmp_path / "skills"
    (root / "backend").mkdir(parents=True)
    (root / "backend" / "api.md").write_text(API_SKILL, encoding="utf-8")
    (root / "adr.md").write_text(ADR_SKILL, encoding="utf-8")
    (root / "notes.txt").write_text("not a skill", encoding="utf-8")
    return root


def test_front_matter(tmp_path):
    skill = parse_skill(tmp_path / "api.md", API_SKILL)

    assert skill.name == "api-design"
    assert skill.title == "API Design"
    assert skill.description == "REST endpoint conventions"
    assert skill.tags == ["api", "backend"]
    assert skill.body.startswith("# API Design")


def test_without_front_matter(tmp_path):
    skill = parse_skill(tmp_path / "adr.md", ADR_SKILL)

    assert skill.name == "adr"
    assert skill.title == "Writing ADRs"
    assert skill.description == "Record one decision per file. Keep it short."
    assert skill.tags == []


def test_comma_separated_tags(tmp_path):
    skill = parse_skill(tmp_path / "x.md", "---\ntags: auth, security\n---\nBody\n")
    assert skill.tags == ["auth", "security"]


@pytest.mark.parametrize("tags", ["5", "{area: auth}"])
def test_unusable_tags_are_ignored(tmp_path, tags, caplog):
    skill = parse_skill(tmp_path / "x.md", f"---\nname: x\ntags: {tags}\n---\nBody\n")

    assert skill.tags == []
    assert skill.name == "x"
    assert "Ignoring tags" in caplog.text


def test_invalid_front_matter_is_ignored(tmp_path):
    skill = parse_skill(tmp_path / "broken.md", "---\nname: [unclosed\n---\n# Title\n\nText.\n")

    assert skill.name == "broken"
    assert skill.title == "Title"
    assert skill.description == "Text."


def test_catalog_loads_recursively(skills_dir):
    catalog = SkillCatalog(skills_dir)

    assert [s.name for s in catalog.list()] == ["adr", "api-design"]
    assert catalog.get("api-design").path == skills_dir / "backend" / "api.md"


def test_catalog_get_unknown(skills_dir):
    with pytest.raises(SkillNotFoundError, match="Skill not found: nope"):
        SkillCatalog(skills_dir).get("nope")


def test_catalog_search(skills_dir):
    catalog = SkillCatalog(skills_dir)

    assert [s.name for s in catalog.search("BACKEND")] == ["api-design"]
    assert [s.name for s in catalog.search("decision")] == ["adr"]
    assert catalog.search("kubernetes") == []


def test_duplicate_names_keep_first(skills_dir):
    (skills_dir / "zz.md").write_text("---\nname: adr\n---\nOther\n", encoding="utf-8")

    skill = SkillCatalog(skills_dir).get("adr")
    assert skill.path == skills_dir / "adr.md"


def test_missing_directory(tmp_path):
    assert SkillCatalog(tmp_path / "none").list() == []


def test_oversized_file_is_skipped(tmp_path):
    path = tmp_path / "big.md"
    path.write_text("x" * 100, encoding="utf-8")

    assert read_skill_file(path, max_size=10) is None
    assert read_skill_file(path) == "x" * 100


def test_latin1_fallback(tmp_path):
    path = tmp_path / "legacy.md"
    path.write_bytes("# Caf\xe9\n".encode("latin-1"))

    assert read_skill_file(path) == "# Café\n"

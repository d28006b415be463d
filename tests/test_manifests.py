"""Tests for reading and writing versions in manifest files."""

import json

import pytest

from mcp_servers.version_manager.manifests import (
    DEFAULT_MANIFESTS,
    Manifest,
    read_version,
    read_versions,
    sync_versions,
)


PYPROJECT = """\
[build-system]
requires = ["setuptools"]
version = "9.9.9"

[project]
name = "backend"
version = "1.0.0"  # managed by releases

[tool.other]
version = "3.3.3"
"""


@pytest.fixture
def project(tmp_path):
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "app", "version": "1.0.0", "private": True}, indent=2),
        encoding="utf-8",
    )
    (tmp_path / "frontend").mkdir()
    (tmp_path / "frontend" / "package.json").write_text('{"version": "1.0.0"}', encoding="utf-8")
    (tmp_path / "backend" / "api").mkdir(parents=True)
    (tmp_path / "backend" / "pyproject.toml").write_text(PYPROJECT, encoding="utf-8")
    (tmp_path / "backend" / "api" / "__init__.py").write_text(
        '"""API."""\n\n__version__ = "1.0.0"\n', encoding="utf-8"
    )
    return tmp_path


def test_read_versions(project):
    assert read_versions(project) == {
        "package.json": "1.0.0",
        "frontend/package.json": "1.0.0",
        "backend/pyproject.toml": "1.0.0",
        "backend/api/__init__.py": "1.0.0",
    }


def test_missing_files_read_as_none(tmp_path):
    assert set(read_versions(tmp_path).values()) == {None}


def test_sync_versions_updates_every_file(project):
    updated = sync_versions(project, "v1.1.0")

    assert updated == [m.path for m in DEFAULT_MANIFESTS]
    assert set(read_versions(project).values()) == {"1.1.0"}

    package = json.loads((project / "package.json").read_text(encoding="utf-8"))
    assert package == {"name": "app", "version": "1.1.0", "private": True}
    assert (project / "package.json").read_text(encoding="utf-8").endswith("}\n")


def test_sync_pyproject_only_touches_project_table(project):
    sync_versions(project, "2.0.0")
    text = (project / "backend" / "pyproject.toml").read_text(encoding="utf-8")

    assert 'version = "2.0.0"  # managed by releases' in text
    assert 'version = "9.9.9"' in text
    assert 'version = "3.3.3"' in text


def test_poetry_table(tmp_path):
    path = tmp_path / "pyproject.toml"
    path.write_text("[tool.poetry]\nname = 'x'\nversion = '0.1.0'\n", encoding="utf-8")
    manifest = Manifest("pyproject.toml", "pyproject")

    assert read_version(tmp_path, manifest) == "0.1.0"
    sync_versions(tmp_path, "0.2.0", [manifest])
    assert "version = '0.2.0'" in path.read_text(encoding="utf-8")


def test_sync_skips_missing_files(tmp_path):
    (tmp_path / "package.json").write_text('{"version": "1.0.0"}', encoding="utf-8")
    assert sync_versions(tmp_path, "1.0.1") == ["package.json"]


def test_sync_skips_file_without_version_field(tmp_path):
    (tmp_path / "backend" / "api").mkdir(parents=True)
    (tmp_path / "backend" / "api" / "__init__.py").write_text('"""No version."""\n', encoding="utf-8")

    assert sync_versions(tmp_path, "1.0.1") == []


def test_invalid_version_writes_nothing(project):
    before = (project / "package.json").read_text(encoding="utf-8")

    with pytest.raises(ValueError):
        sync_versions(project, "1.0")
    assert (project / "package.json").read_text(encoding="utf-8") == before


def test_invalid_json_reads_as_none(tmp_path):
    (tmp_path / "package.json").write_text("{oops", encoding="utf-8")
    assert read_version(tmp_path, DEFAULT_MANIFESTS[0]) is None

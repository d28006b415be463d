"""Tests for changelog rendering and editing."""

from datetime import date

from mcp_servers.version_manager.changelog import (
    CHANGELOG_HEADER,
    compare_url,
    extract_release,
    prepend_release,
    render_release,
)
from mcp_servers.version_manager.commits import parse_commit


DAY = date(2025, 1, 15)


def commits():
    return [
        parse_commit("a" * 40, "feat(auth): add login"),
        parse_commit("b" * 40, "fix: handle empty token"),
        parse_commit("c" * 40, "docs: update readme"),
        parse_commit("d" * 40, "perf(db): batch inserts", "BREAKING CHANGE: needs Postgres 15"),
    ]


def test_render_release_sections():
    section = render_release("1.1.0", commits(), DAY)

    assert section == (
        "## 1.1.0 (2025-01-15)\n\n"
        "### ⚠ BREAKING CHANGES\n\n"
        "* **db:** needs Postgres 15 (ddddddd)\n\n"
        "### Features\n\n"
        "* **auth:** add login (aaaaaaa)\n\n"
        "### Bug Fixes\n\n"
        "* handle empty token (bbbbbbb)\n\n"
        "### Performance Improvements\n\n"
        "* **db:** batch inserts (ddddddd)\n"
    )


def test_render_release_with_compare_link():
    section = render_release(
        "1.1.0", [], DAY,
        previous_tag="v1.0.0",
        compare_url="https://github.com/acme/app/compare/v1.0.0...v1.1.0",
    )
    assert section == (
        "## [1.1.0](https://github.com/acme/app/compare/v1.0.0...v1.1.0) (2025-01-15)\n"
    )


def test_compare_url_from_remotes():
    assert compare_url("git@github.com:acme/app.git", "v1.0.0", "v1.1.0") == (
        "https://github.com/acme/app/compare/v1.0.0...v1.1.0"
    )
    assert compare_url("https://github.com/acme/app", "v1", "v2") == (
        "https://github.com/acme/app/compare/v1...v2"
    )
    assert compare_url(None, "v1", "v2") is None
    assert compare_url("/srv/git/app.git", "v1", "v2") is None


def test_prepend_creates_file(tmp_path):
    path = tmp_path / "CHANGELOG.md"
    prepend_release(path, "## 1.0.0 (2025-01-15)\n")

    assert path.read_text(encoding="utf-8") == CHANGELOG_HEADER + "\n## 1.0.0 (2025-01-15)\n"


def test_prepend_goes_above_newest_release(tmp_path):
    path = tmp_path / "CHANGELOG.md"
    path.write_text(
        "# Changelog\n\nIntro.\n\n### [1.0.1](link) (2025-01-10)\n\n* fix\n\n## 1.0.0 (2025-01-01)\n",
        encoding="utf-8",
    )

    prepend_release(path, "## 1.1.0 (2025-01-15)\n")

    text = path.read_text(encoding="utf-8")
    assert text.startswith("# Changelog\n\nIntro.\n\n## 1.1.0 (2025-01-15)\n\n### [1.0.1]")
    assert text.index("1.1.0") < text.index("1.0.1") < text.index("## 1.0.0")


def test_prepend_without_previous_releases(tmp_path):
    path = tmp_path / "CHANGELOG.md"
    path.write_text("# Changelog\n\n", encoding="utf-8")

    prepend_release(path, "## 0.1.0 (2025-01-15)\n")
    assert path.read_text(encoding="utf-8") == "# Changelog\n\n## 0.1.0 (2025-01-15)\n"


def test_extract_release():
    text = (
        "# Changelog\n\n"
        "## [1.1.0](link) (2025-01-15)\n\n### Features\n\n* a (1234567)\n\n"
        "## 1.0.0 (2025-01-01)\n\n* first\n"
    )

    assert extract_release(text, "1.1.0") == (
        "## [1.1.0](link) (2025-01-15)\n\n### Features\n\n* a (1234567)\n"
    )
    assert extract_release(text, "v1.0.0") == "## 1.0.0 (2025-01-01)\n\n* first\n"
    assert extract_release(text, "1.0") is None
    assert extract_release(text, "2.0.0") is None

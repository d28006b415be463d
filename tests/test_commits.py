"""Tests for conventional commit parsing and validation."""

from mcp_servers.version_manager.commits import (
    RawCommit,
    parse_commit,
    parse_commits,
    recommend_bump,
    validate_commits,
)


def test_parse_commit_with_scope():
    commit = parse_commit("a" * 40, "feat(auth): add OAuth login")

    assert commit.type == "feat"
    assert commit.scope == "auth"
    assert commit.subject == "add OAuth login"
    assert commit.short_sha == "aaaaaaa"
    assert not commit.breaking


def test_bang_marks_breaking():
    commit = parse_commit("b" * 40, "refactor(api)!: drop v1 endpoints")
    assert commit.breaking
    assert commit.breaking_note == ""


def test_breaking_change_footer():
    commit = parse_commit(
        "c" * 40,
        "fix: change token format",
        "Details here.\n\nBREAKING CHANGE: tokens are now JWTs",
    )
    assert commit.breaking
    assert commit.breaking_note == "tokens are now JWTs"

    hyphenated = parse_commit("d" * 40, "fix: x", "BREAKING-CHANGE: y")
    assert hyphenated.breaking_note == "y"


def test_non_conventional_headers():
    assert parse_commit("1", "Merge branch 'main'") is None
    assert parse_commit("1", "feature: not a known type") is None
    assert parse_commit("1", "fix:missing space") is None
    assert parse_commit("1", "Fix: wrong case") is None


def test_parse_commits_skips_invalid():
    commits = parse_commits([
        RawCommit("1" * 40, "feat: a"),
        RawCommit("2" * 40, "wip"),
        RawCommit("3" * 40, "docs(readme): b"),
    ])
    assert [c.type for c in commits] == ["feat", "docs"]


def test_validate_commits_reports_invalid():
    report = validate_commits([
        RawCommit("1234567890", "feat: a"),
        RawCommit("abcdef1234", "Update stuff"),
    ])

    assert not report.valid
    assert report.to_dict() == {
        "valid": False,
        "total_commits": 2,
        "invalid_commits": 1,
        "invalid_details": [{"sha": "abcdef1", "message": "Update stuff"}],
    }
    text = report.render()
    assert "Total commits: 2" in text
    assert "  abcdef1: Update stuff" in text
    assert "Expected format: type(scope): description" in text


def test_validate_commits_all_valid():
    report = validate_commits([RawCommit("1" * 40, "chore: tidy")])
    assert report.valid
    assert report.render().endswith("✅ All commits follow conventional format!\n")


def test_validate_empty_range():
    report = validate_commits([])
    assert report.valid
    assert report.total == 0


def test_recommend_bump():
    feat = parse_commit("1", "feat: a")
    fix = parse_commit("2", "fix: b")
    breaking = parse_commit("3", "feat!: c")

    assert recommend_bump([fix]) == "patch"
    assert recommend_bump([]) == "patch"
    assert recommend_bump([fix, feat]) == "minor"
    assert recommend_bump([fix, breaking]) == "major"
    assert recommend_bump([breaking], pre_major=True) == "minor"

# =============================================================================
# AGENT-OS TOOLKIT - VERSION MANAGER SERVICE
# =============================================================================
"""
Version Manager Service

Release workflow over a git repository: read the commits since the last
tag, pick the bump, write the new version into the manifests, prepend the
changelog, then commit and tag. Pushing is a separate step.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from monitoring import AuditLogger, MetricsCollector
from mcp_servers.version_manager import changelog
from mcp_servers.version_manager.commits import (
    parse_commits,
    recommend_bump,
    validate_commits,
)
from mcp_servers.version_manager.errors import ChangelogError, GitError, VersionManagerError
from mcp_servers.version_manager.git import GitRepository
from mcp_servers.version_manager.manifests import (
    DEFAULT_MANIFESTS,
    Manifest,
    read_versions,
    sync_versions,
)
from mcp_servers.version_manager.semver import BUMP_TYPES, Version

logger = logging.getLogger(__name__)


BUMP_CHOICES = ("auto",) + BUMP_TYPES
PRERELEASE_IDS = ("alpha", "beta", "rc")
CHANGELOG_FILE = "CHANGELOG.md"

# Commit range inspected when the repository has no tag yet
UNTAGGED_DEPTH = 10


@dataclass
class ReleasePlan:
    """What a bump would do."""
    current: Version
    version: Version
    bump_type: str
    tag: str
    previous_tag: Optional[str]
    commit_count: int
    section: str
    files: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": str(self.current),
            "version": str(self.version),
            "bump_type": self.bump_type,
            "tag": self.tag,
            "previous_tag": self.previous_tag,
            "commits": self.commit_count,
            "files": list(self.files),
        }


class VersionManagerService:
    """
    Release operations for one project.

    Args:
        root: Project root
        git: Repository wrapper (default: git in ``root``)
        manifests: Files that carry the version
        tag_prefix: Prefix for release tags
        remote: Default remote for push_release
        branch: Default branch for push_release
        metrics: Optional metrics collector
        audit: Optional audit logger
    """

    def __init__(
        self,
        root: Union[str, Path],
        git: Optional[GitRepository] = None,
        manifests: Sequence[Manifest] = DEFAULT_MANIFESTS,
        tag_prefix: str = "v",
        remote: str = "origin",
        branch: str = "main",
        metrics: Optional[MetricsCollector] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.root = Path(root)
        self.git = git or GitRepository(self.root)
        self.manifests = tuple(manifests)
        self.tag_prefix = tag_prefix
        self.remote = remote
        self.branch = branch
        self.metrics = metrics
        self.audit = audit

    @property
    def changelog_path(self) -> Path:
        return self.root / CHANGELOG_FILE

    def current_version(self) -> Version:
        """
        Version from the first manifest that has one, else the last tag.

        Raises:
            VersionManagerError: No version recorded anywhere
        """
        for value in read_versions(self.root, self.manifests).values():
            if value:
                return Version.parse(value)

        tag = self.git.last_tag()
        if tag:
            return Version.parse(tag[len(self.tag_prefix):] if tag.startswith(self.tag_prefix) else tag)

        raise VersionManagerError(
            "No version found in "
            + ", ".join(m.path for m in self.manifests)
            + " and no git tag"
        )

    # -----------------------------------------------------------------
    # Bump
    # -----------------------------------------------------------------

    def plan_release(
        self,
        bump_type: str = "auto",
        prerelease: Optional[str] = None,
        first_release: bool = False,
        release_date: Optional[date] = None,
    ) -> ReleasePlan:
        """Compute the next release without touching anything."""
        if bump_type not in BUMP_CHOICES:
            raise VersionManagerError(
                f"Unknown bump_type '{bump_type}'; expected one of {', '.join(BUMP_CHOICES)}"
            )
        if prerelease and prerelease not in PRERELEASE_IDS:
            raise VersionManagerError(
                f"Unknown prerelease '{prerelease}'; expected one of {', '.join(PRERELEASE_IDS)}"
            )

        current = self.current_version()
        previous_tag = self.git.last_tag()
        commits = parse_commits(self.git.log(previous_tag))

        kind = bump_type
        if kind == "auto":
            kind = recommend_bump(commits, pre_major=current.major == 0)

        version = current if first_release else current.bump(kind, prerelease)
        tag = f"{self.tag_prefix}{version}"
        if self.git.tag_exists(tag):
            raise VersionManagerError(f"Tag {tag} already exists")

        url = None
        if previous_tag:
            url = changelog.compare_url(self.git.remote_url(self.remote), previous_tag, tag)
        section = changelog.render_release(
            str(version), commits, release_date, previous_tag=previous_tag, compare_url=url
        )

        return ReleasePlan(
            current=current,
            version=version,
            bump_type="first" if first_release else kind,
            tag=tag,
            previous_tag=previous_tag,
            commit_count=len(commits),
            section=section,
        )

    def bump_version(
        self,
        bump_type: str = "auto",
        prerelease: Optional[str] = None,
        first_release: bool = False,
        dry_run: bool = False,
    ) -> str:
        plan = self.plan_release(bump_type, prerelease, first_release)

        if dry_run:
            return (
                f"Dry run: {plan.current} -> {plan.version} ({plan.bump_type})\n\n"
                f"Tag: {plan.tag}\n"
                f"Commits since {plan.previous_tag or 'start of history'}: {plan.commit_count}\n\n"
                f"{plan.section}"
            )

        touched = [m.path for m in self.manifests] + [CHANGELOG_FILE]
        snapshot = self._snapshot(touched)
        staged: List[str] = []
        committed = False
        try:
            plan.files = sync_versions(self.root, str(plan.version), self.manifests)
            changelog.prepend_release(self.changelog_path, plan.section)

            message = f"chore(release): {plan.version}"
            staged = plan.files + [CHANGELOG_FILE]
            self.git.add(staged)
            self.git.commit(message)
            committed = True
            self.git.tag(plan.tag, message)
        except GitError as e:
            logger.error(f"Release {plan.version} failed, restoring files: {e}")
            self._rollback(snapshot, staged, committed)
            raise
        except OSError as e:
            logger.error(f"Release {plan.version} failed, restoring files: {e}")
            self._rollback(snapshot, staged, committed)
            raise VersionManagerError(f"Could not write release files: {e}") from e

        logger.info(f"Released {plan.version} ({plan.bump_type})")
        if self.metrics:
            self.metrics.record_release(plan.bump_type)
        if self.audit:
            self.audit.log_release(str(plan.version), plan.bump_type, plan.files, plan.tag)

        files = "\n".join(f"  - {f}" for f in plan.files + [CHANGELOG_FILE])
        return (
            f"✅ Version bumped to {plan.version}\n\n"
            f"Previous: {plan.current}\n"
            f"Bump: {plan.bump_type}\n"
            f"Commits: {plan.commit_count}\n"
            f"Tag: {plan.tag}\n"
            f"Files:\n{files}\n\n"
            "Run push_release to publish the release."
        )

    def _snapshot(self, paths: List[str]) -> Dict[str, Optional[bytes]]:
        """Current bytes of each path, None for files that do not exist."""
        snapshot: Dict[str, Optional[bytes]] = {}
        for rel in paths:
            path = self.root / rel
            snapshot[rel] = path.read_bytes() if path.is_file() else None
        return snapshot

    def _rollback(
        self,
        snapshot: Dict[str, Optional[bytes]],
        staged: List[str],
        committed: bool,
    ) -> None:
        """Put the release files back and drop a half-made release commit."""
        for rel, content in snapshot.items():
            path = self.root / rel
            try:
                if content is None:
                    path.unlink(missing_ok=True)
                else:
                    path.write_bytes(content)
            except OSError as e:
                logger.error(f"Could not restore {rel}: {e}")

        try:
            if committed:
                self.git.undo_commit()
            self.git.unstage(staged)
        except GitError as e:
            logger.error(f"Could not reset the git index after a failed release: {e}")

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    def version_info(self) -> Dict[str, Optional[str]]:
        versions = read_versions(self.root, self.manifests)
        return {
            "root": versions.get("package.json"),
            "frontend": versions.get("frontend/package.json"),
            "backend": versions.get("backend/pyproject.toml"),
            "lastTag": self.git.last_tag() or "none",
        }

    def get_version(self, format: str = "json") -> str:
        if format not in ("json", "string"):
            raise VersionManagerError(f"Unknown format '{format}'; expected json or string")
        if format == "string":
            return str(self.current_version())
        return json.dumps(self.version_info(), indent=2)

    def _resolve_from_ref(self, from_ref: str) -> Optional[str]:
        if from_ref != "last_tag":
            return from_ref
        tag = self.git.last_tag()
        if tag:
            return tag
        if self.git.commit_count() > UNTAGGED_DEPTH:
            return f"HEAD~{UNTAGGED_DEPTH}"
        return None

    def validate_commits(self, from_ref: str = "last_tag", to_ref: str = "HEAD") -> str:
        commits = self.git.log(self._resolve_from_ref(from_ref), to_ref)
        return validate_commits(commits).render()

    def get_changelog(self, version: Optional[str] = None) -> str:
        if not self.changelog_path.is_file():
            raise ChangelogError(f"{CHANGELOG_FILE} not found")
        text = self.changelog_path.read_text(encoding="utf-8")
        if not version:
            return text

        section = changelog.extract_release(text, version)
        if section is None:
            raise ChangelogError(f"Version {version} not found in {CHANGELOG_FILE}")
        return section

    # -----------------------------------------------------------------
    # Publishing
    # -----------------------------------------------------------------

    def push_release(self, remote: Optional[str] = None, branch: Optional[str] = None) -> str:
        remote = remote or self.remote
        branch = branch or self.branch
        self.git.push(remote, branch)
        self.git.push_tags(remote)
        return f"✅ Successfully pushed to {remote}/{branch} with tags"

    def sync_versions(self, version: str) -> str:
        try:
            updated = sync_versions(self.root, version, self.manifests)
        except ValueError as e:
            raise VersionManagerError(str(e)) from e

        lines = "\n".join(f"  - {f}" for f in updated)
        return f"✅ Synced version {version} to {len(updated)} files:\n{lines}"

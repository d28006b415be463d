# =============================================================================
# AGENT-OS TOOLKIT - DELEGATED TASK STORE
# =============================================================================
"""
Task Manager Module

Persists delegated tasks so their status and results survive restarts of
the MCP server and can be read by the ``agent-os status`` command.

State is stored in ``<project_root>/.agent-os/chat-claude/tasks.json``:
{
    "tasks": {
        "oauth-research-2025-01-15": { ... task ... }
    },
    "metadata": {
        "version": "1.0",
        "created_at": "...",
        "last_updated": "..."
    }
}

Task lifecycle:

    pending     -> in_progress | cancelled
    in_progress -> completed | failed | cancelled
    failed      -> pending      (retry)
    cancelled   -> pending      (retry)
    completed   (terminal)
"""

import copy
import hashlib
import json
import logging
import shutil
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from mcp_servers.chat_claude.errors import (
    InvalidTransitionError,
    OutputPathError,
    TaskExistsError,
    TaskNotFoundError,
    TaskStoreError,
)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

class TaskStatus(Enum):
    """Possible states of a delegated task."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED},
    TaskStatus.FAILED: {TaskStatus.PENDING},
    TaskStatus.CANCELLED: {TaskStatus.PENDING},
    TaskStatus.COMPLETED: set(),
}

TASK_TYPES = ("research", "documentation", "design", "analysis", "planning")
OUTPUT_FORMATS = ("markdown", "json", "text")

RESULT_EXTENSIONS = {"markdown": ".md", "json": ".json", "text": ".txt"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DelegatedTask:
    """
    A task delegated to Chat Claude.

    ``history`` holds one ``{timestamp, from, to, reason}`` record per
    status change.
    """
    task_id: str
    task_type: str
    description: str
    context: Optional[str] = None
    output_format: str = "markdown"
    status: str = TaskStatus.PENDING.value
    attempts: int = 0
    content: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    result_filename: Optional[str] = None
    output_path: Optional[str] = None
    cancelled_at: Optional[str] = None
    history: List[Dict[str, Any]] = field(default_factory=list)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DelegatedTask":
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{k: copy.deepcopy(v) for k, v in data.items() if k in known})


# =============================================================================
# TASK MANAGER
# =============================================================================

class TaskManager:
    """
    File-based store for delegated tasks.

    Writes are atomic (temp file + replace) and serialized with a lock;
    the previous file is kept in ``backups/`` before each write.
    """

    STATE_VERSION = "1.0"

    def __init__(
        self,
        project_root: Union[str, Path],
        state_dir: str = ".agent-os",
        backup_count: int = 5,
    ):
        self.project_root = Path(project_root).resolve()
        self.store_dir = self.project_root / state_dir / "chat-claude"
        self.file_path = self.store_dir / "tasks.json"
        self.results_dir = self.store_dir / "results"
        self.backup_count = backup_count

        self.logger = logging.getLogger("mcp_servers.chat_claude.tasks")
        self._lock = threading.RLock()
        self._cache: Optional[Dict[str, Any]] = None
        self._cache_hash: Optional[str] = None

    def initialize(self) -> None:
        """Create the store directory and an empty state file if missing."""
        with self._lock:
            self.results_dir.mkdir(parents=True, exist_ok=True)
            if not self.file_path.exists():
                self._write_file({
                    "tasks": {},
                    "metadata": {
                        "version": self.STATE_VERSION,
                        "created_at": _now(),
                        "last_updated": _now(),
                    },
                })
                self.logger.info(f"Created task store: {self.file_path}")

    # -----------------------------------------------------------------
    # File access
    # -----------------------------------------------------------------

    def _read_file(self) -> Dict[str, Any]:
        """
        Read the state file, reusing the cache when unchanged.

        Callers get a copy; the cache only changes after a successful write.
        """
        with self._lock:
            if not self.file_path.exists():
                self.initialize()
            try:
                content = self.file_path.read_text(encoding="utf-8")
            except OSError as e:
                raise TaskStoreError(f"Failed to read task store: {e}") from e

            content_hash = hashlib.md5(content.encode()).hexdigest()
            if self._cache is not None and self._cache_hash == content_hash:
                return copy.deepcopy(self._cache)

            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                self.logger.error(f"Invalid JSON in task store: {e}")
                raise TaskStoreError(f"Invalid task store {self.file_path}: {e}") from e

            self._cache = data
            self._cache_hash = content_hash
            return copy.deepcopy(data)

    def _write_file(self, data: Dict[str, Any]) -> None:
        """Write the state file atomically with a backup."""
        with self._lock:
            if self.file_path.exists():
                self._create_backup()

            data["metadata"]["last_updated"] = _now()
            content = json.dumps(data, indent=2, default=str)

            self.store_dir.mkdir(parents=True, exist_ok=True)
            temp_path = self.file_path.with_suffix(".tmp")
            try:
                temp_path.write_text(content, encoding="utf-8")
                temp_path.replace(self.file_path)
            except OSError as e:
                self._cache = None
                self._cache_hash = None
                try:
                    temp_path.unlink(missing_ok=True)
                except OSError as cleanup_error:
                    self.logger.warning(f"Failed to remove {temp_path}: {cleanup_error}")
                raise TaskStoreError(f"Failed to write task store: {e}") from e

            self._cache = copy.deepcopy(data)
            self._cache_hash = hashlib.md5(content.encode()).hexdigest()

    def _create_backup(self) -> None:
        """Copy the current state file into backups/, keeping the newest N."""
        backup_dir = self.store_dir / "backups"
        backup_dir.mkdir(exist_ok=True)

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        backup_path = backup_dir / f"tasks_{timestamp}.json"

        try:
            shutil.copy2(self.file_path, backup_path)
            backups = sorted(backup_dir.glob("tasks_*.json"))
            while len(backups) > self.backup_count:
                backups.pop(0).unlink()
        except OSError as e:
            self.logger.warning(f"Failed to create backup: {e}")

    # -----------------------------------------------------------------
    # Task operations
    # -----------------------------------------------------------------

    def add_task(
        self,
        task_id: str,
        task_type: str,
        description: str,
        context: Optional[str] = None,
        output_format: str = "markdown",
        output_path: Optional[str] = None,
    ) -> DelegatedTask:
        """
        Record a new pending task.

        Raises:
            TaskExistsError: If the id is already recorded
            OutputPathError: If output_path escapes the project root
        """
        if output_path:
            self.resolve_output_path(output_path)

        with self._lock:
            data = self._read_file()
            if task_id in data["tasks"]:
                raise TaskExistsError(f"Task {task_id} already exists")

            task = DelegatedTask(
                task_id=task_id,
                task_type=task_type,
                description=description,
                context=context,
                output_format=output_format,
                output_path=output_path,
            )
            task.history.append({
                "timestamp": task.created_at,
                "from": None,
                "to": task.status,
                "reason": "created",
            })
            data["tasks"][task_id] = task.to_dict()
            self._write_file(data)

        self.logger.info(f"Task {task_id} recorded ({task_type})")
        return task

    def get_task(self, task_id: str) -> Optional[DelegatedTask]:
        data = self._read_file()
        raw = data["tasks"].get(task_id)
        return DelegatedTask.from_dict(raw) if raw else None

    def require_task(self, task_id: str) -> DelegatedTask:
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def update_task(
        self,
        task_id: str,
        status: Optional[str] = None,
        reason: str = "",
        **fields: Any,
    ) -> DelegatedTask:
        """
        Update a task, applying a lifecycle transition when ``status`` is
        given.

        Raises:
            TaskNotFoundError: Unknown task id
            InvalidTransitionError: Status change not allowed
        """
        with self._lock:
            data = self._read_file()
            raw = data["tasks"].get(task_id)
            if raw is None:
                raise TaskNotFoundError(f"Task {task_id} not found")

            for key in fields:
                if key not in DelegatedTask.__dataclass_fields__ or key in ("task_id", "history"):
                    raise ValueError(f"Unknown task field: {key}")

            task = DelegatedTask.from_dict(raw)
            now = _now()

            if status is not None and status != task.status:
                current = TaskStatus(task.status)
                target = TaskStatus(status)
                if target not in ALLOWED_TRANSITIONS[current]:
                    raise InvalidTransitionError(
                        f"Task {task_id}: cannot move from {current.value} to {target.value}"
                    )
                task.history.append({
                    "timestamp": now,
                    "from": current.value,
                    "to": target.value,
                    "reason": reason,
                })
                task.status = target.value
                if target == TaskStatus.IN_PROGRESS:
                    task.attempts += 1

            for key, value in fields.items():
                setattr(task, key, value)

            task.updated_at = now
            data["tasks"][task_id] = task.to_dict()
            self._write_file(data)
            return task

    def get_all_tasks(self, status: Optional[str] = None) -> List[DelegatedTask]:
        """All tasks, newest first, optionally filtered by status."""
        data = self._read_file()
        tasks = [DelegatedTask.from_dict(raw) for raw in data["tasks"].values()]
        if status:
            tasks = [t for t in tasks if t.status == status]
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    def get_stats(self) -> Dict[str, int]:
        stats = {"total": 0}
        stats.update({s.value: 0 for s in TaskStatus})
        for task in self.get_all_tasks():
            stats["total"] += 1
            stats[task.status] = stats.get(task.status, 0) + 1
        return stats

    # -----------------------------------------------------------------
    # Results
    # -----------------------------------------------------------------

    def resolve_output_path(self, output_path: str) -> Path:
        """
        Resolve a project-relative output path.

        Raises:
            OutputPathError: If the path leaves the project root
        """
        candidate = (self.project_root / output_path).resolve()
        try:
            candidate.relative_to(self.project_root)
        except ValueError:
            raise OutputPathError(
                f"Output path {output_path} is outside the project root"
            ) from None
        return candidate

    def store_result(
        self,
        task_id: str,
        content: str,
        output_path: Optional[str] = None,
    ) -> Path:
        """
        Write a task result to disk and record where it went.

        The default location is ``results/<task_id>.<ext>`` in the store.
        """
        task = self.require_task(task_id)
        target_path = output_path or task.output_path

        if target_path:
            path = self.resolve_output_path(target_path)
        else:
            extension = RESULT_EXTENSIONS.get(task.output_format, ".md")
            path = self.results_dir / f"{task_id}{extension}"

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

        try:
            filename = str(path.relative_to(self.project_root))
        except ValueError:
            filename = str(path)
        self.update_task(task_id, result_filename=filename)

        self.logger.info(f"Stored result for {task_id} at {filename}")
        return path

    def get_result(self, task_id: str) -> Optional[str]:
        """Read a stored result file, None when there is none."""
        task = self.get_task(task_id)
        if task is None or not task.result_filename:
            return None
        path = (self.project_root / task.result_filename).resolve()
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def health_check(self) -> Dict[str, Any]:
        try:
            stats = self.get_stats()
            return {"healthy": True, "path": str(self.file_path), "tasks": stats["total"]}
        except TaskStoreError as e:
            return {"healthy": False, "path": str(self.file_path), "error": str(e)}

# =============================================================================
# AGENT-OS TOOLKIT - DELEGATION SERVICE
# =============================================================================
"""
Delegation Service Module

Implements the Chat Claude tools on top of the task store and the executor.
Every method returns the text shown to the calling assistant; failures
raise ``DelegationError`` subclasses, which the MCP layer reports as tool
errors.
"""

import logging
import time
from typing import Optional

from monitoring import AuditLogger, LogContext, MetricsCollector
from mcp_servers.chat_claude.errors import DelegationError
from mcp_servers.chat_claude.executor import TaskExecutor
from mcp_servers.chat_claude.task_manager import (
    OUTPUT_FORMATS,
    TASK_TYPES,
    DelegatedTask,
    TaskManager,
    TaskStatus,
)

logger = logging.getLogger(__name__)


PREVIEW_CHARS = 500

STATUS_ICONS = {
    "pending": "⏳",
    "in_progress": "🔄",
    "completed": "✅",
    "failed": "❌",
    "cancelled": "🚫",
}


class DelegationService:
    """
    Chat Claude delegation operations.

    Args:
        task_manager: Persistent task store
        executor: LLM task executor
        metrics: Optional metrics collector
        audit: Optional audit logger
    """

    def __init__(
        self,
        task_manager: TaskManager,
        executor: TaskExecutor,
        metrics: Optional[MetricsCollector] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.tasks = task_manager
        self.executor = executor
        self.metrics = metrics
        self.audit = audit

    # -----------------------------------------------------------------
    # Tools
    # -----------------------------------------------------------------

    def delegate_task(
        self,
        task_id: str,
        task_type: str,
        description: str,
        context: Optional[str] = None,
        output_format: str = "markdown",
        output_path: Optional[str] = None,
    ) -> str:
        """Record a task, run it and store the result."""
        if not task_id or not task_type or not description:
            raise DelegationError("task_id, task_type, and description are required")
        if task_type not in TASK_TYPES:
            raise DelegationError(
                f"Unknown task_type '{task_type}'; expected one of {', '.join(TASK_TYPES)}"
            )
        output_format = output_format or "markdown"
        if output_format not in OUTPUT_FORMATS:
            raise DelegationError(
                f"Unknown output_format '{output_format}'; expected one of "
                f"{', '.join(OUTPUT_FORMATS)}"
            )

        task = self.tasks.add_task(
            task_id=task_id,
            task_type=task_type,
            description=description,
            context=context,
            output_format=output_format,
            output_path=output_path,
        )
        self._audit_transition(task_id, None, TaskStatus.PENDING.value, "created")
        return self._run(task)

    def retry_task(self, task_id: str) -> str:
        """Run a failed or cancelled task again."""
        task = self.tasks.require_task(task_id)
        if task.status not in (TaskStatus.FAILED.value, TaskStatus.CANCELLED.value):
            raise DelegationError(
                f"Task {task_id} is {task.status}; only failed or cancelled tasks can be retried"
            )

        previous = task.status
        task = self.tasks.update_task(
            task_id,
            status=TaskStatus.PENDING.value,
            reason="retry",
            error=None,
            content=None,
            cancelled_at=None,
        )
        self._audit_transition(task_id, previous, TaskStatus.PENDING.value, "retry")
        return self._run(task)

    def get_task_result(self, task_id: str) -> str:
        if not task_id:
            raise DelegationError("task_id is required")
        task = self.tasks.require_task(task_id)

        text = "# Task Result\n\n"
        text += f"**Task ID**: {task_id}\n"
        text += f"**Type**: {task.task_type}\n"
        text += f"**Description**: {task.description}\n"
        text += f"**Status**: {task.status}\n"
        text += f"**Attempts**: {task.attempts}\n"
        text += f"**Created**: {task.created_at}\n"
        text += f"**Updated**: {task.updated_at}\n\n"

        if task.status == TaskStatus.COMPLETED.value:
            text += f"**Result File**: {task.result_filename or 'N/A'}\n\n"
            content = task.content or self.tasks.get_result(task_id)
            if content:
                text += f"---\n\n{content}"
            else:
                text += "\n*No content available*"
        elif task.status == TaskStatus.FAILED.value:
            text += f"**Error**: {task.error}\n"
        else:
            text += f"\n*Task is {task.status}*"

        return text

    def list_tasks(self, status: str = "all") -> str:
        status = status or "all"
        valid = ("all",) + tuple(s.value for s in TaskStatus)
        if status not in valid:
            raise DelegationError(f"Unknown status '{status}'; expected one of {', '.join(valid)}")

        tasks = self.tasks.get_all_tasks(None if status == "all" else status)
        stats = self.tasks.get_stats()
        if self.metrics:
            self.metrics.set_task_counts(stats)

        text = "# Delegated Tasks\n\n"
        text += "**Statistics**:\n"
        text += f"- Total: {stats['total']}\n"
        text += f"- Pending: {stats['pending']}\n"
        text += f"- In Progress: {stats['in_progress']}\n"
        text += f"- Completed: {stats['completed']}\n"
        text += f"- Failed: {stats['failed']}\n"
        text += f"- Cancelled: {stats['cancelled']}\n\n"

        if not tasks:
            suffix = f" with status: {status}" if status != "all" else ""
            return text + f"No tasks found{suffix}.\n"

        text += "## Tasks" + (f" ({status})" if status != "all" else "") + "\n\n"
        for task in tasks:
            text += f"{STATUS_ICONS.get(task.status, '❓')} **{task.task_id}**\n"
            text += f"   Type: {task.task_type}\n"
            text += f"   Description: {task.description}\n"
            text += f"   Status: {task.status}\n"
            text += f"   Created: {task.created_at}\n"
            if task.result_filename:
                text += f"   Result: {task.result_filename}\n"
            text += "\n"
        return text

    def cancel_task(self, task_id: str) -> str:
        if not task_id:
            raise DelegationError("task_id is required")
        task = self.tasks.require_task(task_id)

        if task.status in (TaskStatus.COMPLETED.value, TaskStatus.FAILED.value,
                           TaskStatus.CANCELLED.value):
            return f"⚠️ Cannot cancel task {task_id}: already {task.status}"

        previous = task.status
        self.tasks.update_task(
            task_id,
            status=TaskStatus.CANCELLED.value,
            reason="cancelled by request",
            cancelled_at=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        )
        self._audit_transition(task_id, previous, TaskStatus.CANCELLED.value, "cancelled")
        return f"✅ Task {task_id} has been cancelled"

    def test_connection(self) -> str:
        result = self.executor.test_connection()
        if not result.success:
            raise DelegationError(f"Connection failed: {result.error}")
        return (
            f"✅ Connection successful!\n\nResponse: {result.response}\n\n"
            "The Chat Claude MCP server is properly configured and can "
            "communicate with the LLM API."
        )

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _run(self, task: DelegatedTask) -> str:
        task_id = task.task_id
        with LogContext(task_id=task_id, task_type=task.task_type):
            task = self.tasks.update_task(
                task_id, status=TaskStatus.IN_PROGRESS.value, reason="dispatched"
            )
            self._audit_transition(
                task_id, TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value, "dispatched"
            )
            logger.info(f"Delegating {task_id} ({task.task_type}, attempt {task.attempts})")

            result = self.executor.execute(task)

            # Cancellation can land from another client while the LLM call runs
            current = self.tasks.require_task(task_id)
            if current.status == TaskStatus.CANCELLED.value:
                logger.info(f"Task {task_id} was cancelled while running; result discarded")
                raise DelegationError(
                    f"Task {task_id} was cancelled while running; result discarded"
                )

            # Store the result before completing the task
            stage = "llm_call"
            path = None
            if result.success:
                try:
                    path = self.tasks.store_result(task_id, result.content or "")
                except OSError as e:
                    logger.error(f"Could not store result for {task_id}: {e}")
                    stage = "result_write"
                    result.status = TaskStatus.FAILED.value
                    result.error = f"Failed to store result: {e}"

            reason = "llm call finished" if result.success else stage.replace("_", " ") + " failed"
            self.tasks.update_task(
                task_id,
                status=result.status,
                reason=reason,
                content=result.content,
                error=result.error,
                metadata=result.metadata,
            )
            self._audit_transition(task_id, TaskStatus.IN_PROGRESS.value, result.status,
                                   result.error or "")
            self._record_metrics(task, result, stage)

            if not result.success:
                if self.audit:
                    self.audit.log_error("chat-claude", stage, result.error or "", task_id)
                raise DelegationError(f"Task failed: {result.error}")

            stored = self.tasks.require_task(task_id)
            if self.audit:
                self.audit.log_delegation(
                    task_id, task.task_type, result.status, result.duration,
                    stored.result_filename,
                )

        return self._completion_report(stored, str(path), result.metadata)

    def _completion_report(self, task: DelegatedTask, filepath: str, metadata: dict) -> str:
        usage = metadata.get("usage", {})
        content = task.content or ""
        preview = content[:PREVIEW_CHARS] + ("..." if len(content) > PREVIEW_CHARS else "")
        return (
            "✅ Task completed successfully!\n\n"
            f"**Task ID**: {task.task_id}\n"
            f"**Type**: {task.task_type}\n"
            f"**Status**: {task.status}\n\n"
            f"**Result stored at**: {filepath}\n\n"
            "**Usage**:\n"
            f"- Input tokens: {usage.get('input_tokens', 0)}\n"
            f"- Output tokens: {usage.get('output_tokens', 0)}\n\n"
            f"**Preview** (first {PREVIEW_CHARS} chars):\n"
            f"{preview}\n"
        )

    def _record_metrics(self, task: DelegatedTask, result, stage: str = "llm_call") -> None:
        cost = 0.0
        usage = result.metadata.get("usage")
        if self.metrics:
            self.metrics.record_delegation(task.task_type, result.status, result.duration)
            if usage:
                cost = self.metrics.record_llm_call(
                    result.metadata.get("model", "unknown"),
                    usage.get("input_tokens", 0),
                    usage.get("output_tokens", 0),
                )
            if not result.success:
                self.metrics.record_error("chat-claude", stage)
        if self.audit and usage:
            self.audit.log_llm_call(
                result.metadata.get("model", "unknown"),
                usage.get("input_tokens", 0),
                usage.get("output_tokens", 0),
                result.duration,
                cost,
            )

    def _audit_transition(self, task_id: str, from_state, to_state: str, reason: str) -> None:
        if self.audit:
            self.audit.log_task_transition(task_id, from_state, to_state, reason)

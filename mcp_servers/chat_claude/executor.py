# =============================================================================
# AGENT-OS TOOLKIT - DELEGATED TASK EXECUTOR
# =============================================================================
"""
Task Executor Module

Runs one delegated task against the LLM and reports the outcome. Provider
errors are turned into a ``failed`` result instead of propagating, so the
caller can always record what happened.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from mcp_servers.chat_claude.llm_client import LLMClient
from mcp_servers.chat_claude.prompts import build_system_prompt, build_user_prompt
from mcp_servers.chat_claude.task_manager import DelegatedTask, TaskStatus

logger = logging.getLogger(__name__)


CONNECTION_PROMPT = 'Hello! Please respond with "Connection successful".'


@dataclass
class ExecutionResult:
    """Outcome of one LLM round trip."""
    task_id: str
    status: str
    content: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == TaskStatus.COMPLETED.value


@dataclass
class ConnectionResult:
    success: bool
    response: Optional[str] = None
    error: Optional[str] = None


class TaskExecutor:
    """
    Sends delegated tasks to the LLM.

    Args:
        llm_client: Configured LLMClient
        max_tokens: Completion budget per task
        temperature: Sampling temperature
    """

    def __init__(
        self,
        llm_client: LLMClient,
        max_tokens: int = 8096,
        temperature: float = 0.7,
    ):
        self.llm = llm_client
        self.max_tokens = max_tokens
        self.temperature = temperature

    def execute(self, task: DelegatedTask) -> ExecutionResult:
        """Run a task; never raises for provider failures."""
        system_prompt = build_system_prompt(task.task_type, task.output_format)
        user_prompt = build_user_prompt(task.description, task.context, task.output_format)

        start = time.monotonic()
        try:
            response = self.llm.complete(
                prompt=user_prompt,
                system=system_prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.warning(f"Task {task.task_id} failed: {e}")
            return ExecutionResult(
                task_id=task.task_id,
                status=TaskStatus.FAILED.value,
                error=str(e),
                metadata={"failed_at": datetime.now(timezone.utc).isoformat()},
                duration=time.monotonic() - start,
            )

        return ExecutionResult(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED.value,
            content=response.content,
            metadata={
                "model": response.model,
                "usage": {
                    "input_tokens": response.tokens_input,
                    "output_tokens": response.tokens_output,
                },
                "stop_reason": response.finish_reason,
                "completed_at": datetime.now(timezone.utc).isoformat(),
            },
            duration=time.monotonic() - start,
        )

    def test_connection(self) -> ConnectionResult:
        """Send a trivial prompt to confirm credentials and connectivity."""
        try:
            response = self.llm.complete(prompt=CONNECTION_PROMPT, max_tokens=100)
        except Exception as e:
            return ConnectionResult(success=False, error=str(e))
        return ConnectionResult(success=True, response=response.content)

# =============================================================================
# AGENT-OS TOOLKIT - CHAT CLAUDE PACKAGE
# =============================================================================
"""
Chat Claude delegation server.

Usage:
    from mcp_servers.chat_claude import DelegationService, TaskManager

    tasks = TaskManager("/path/to/project")
    tasks.initialize()
    service = DelegationService(tasks, TaskExecutor(LLMClient()))
    print(service.delegate_task("oauth-research", "research", "Compare..."))
"""

from mcp_servers.chat_claude.errors import (
    DelegationError,
    TaskExistsError,
    TaskNotFoundError,
    InvalidTransitionError,
    TaskStoreError,
    OutputPathError,
)
from mcp_servers.chat_claude.llm_client import (
    LLMClient,
    LLMResponse,
    LLMMessage,
    BaseLLMProvider,
)
from mcp_servers.chat_claude.task_manager import (
    TaskManager,
    DelegatedTask,
    TaskStatus,
    TASK_TYPES,
    OUTPUT_FORMATS,
)
from mcp_servers.chat_claude.executor import TaskExecutor, ExecutionResult
from mcp_servers.chat_claude.service import DelegationService


__all__ = [
    "DelegationError",
    "TaskExistsError",
    "TaskNotFoundError",
    "InvalidTransitionError",
    "TaskStoreError",
    "OutputPathError",
    "LLMClient",
    "LLMResponse",
    "LLMMessage",
    "BaseLLMProvider",
    "TaskManager",
    "DelegatedTask",
    "TaskStatus",
    "TASK_TYPES",
    "OUTPUT_FORMATS",
    "TaskExecutor",
    "ExecutionResult",
    "DelegationService",
]

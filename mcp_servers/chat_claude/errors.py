# =============================================================================
# AGENT-OS TOOLKIT - CHAT CLAUDE EXCEPTIONS
# =============================================================================
"""Exceptions raised by the delegation server."""


class DelegationError(Exception):
    """Base exception for delegation errors."""
    pass


class TaskExistsError(DelegationError):
    """Raised when a task id is already recorded."""
    pass


class TaskNotFoundError(DelegationError):
    """Raised when a task id is not in the store."""
    pass


class InvalidTransitionError(DelegationError):
    """Raised when a status change is not allowed by the task lifecycle."""
    pass


class TaskStoreError(DelegationError):
    """Raised when the task store file cannot be read or written."""
    pass


class OutputPathError(DelegationError):
    """Raised when a result path escapes the project root."""
    pass

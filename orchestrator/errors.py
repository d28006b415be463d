# =============================================================================
# AGENT-OS TOOLKIT - ORCHESTRATOR EXCEPTIONS
# =============================================================================
"""Exceptions raised by the orchestrator package."""

from typing import Optional


class AgentOSError(Exception):
    """Base exception for orchestrator errors."""
    pass


class ConfigError(AgentOSError):
    """Raised when the configuration file cannot be used."""
    pass


class TaskParseError(AgentOSError):
    """Raised when tasks.md does not follow the task-list grammar."""

    def __init__(self, message: str, line: Optional[int] = None, source: str = "<string>"):
        self.line = line
        self.source = source
        location = f"{source}:{line}" if line is not None else source
        super().__init__(f"{location}: {message}")


class RoutingError(AgentOSError):
    """Raised when task groups cannot be routed (bad tags, dependencies)."""
    pass


class SkillNotFoundError(AgentOSError):
    """Raised when a skill document is not in the catalog."""
    pass

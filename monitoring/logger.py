# =============================================================================
# AGENT-OS TOOLKIT - STRUCTURED LOGGING
# =============================================================================
"""
Structured Logging Module

Provides consistent, structured logging for the CLI and the MCP servers.
Uses structlog processors on top of stdlib logging.

Features:
    - JSON or console rendering
    - Contextual information bound per delegated task
    - Sensitive data masking (API keys, deploy tokens)
    - File output with rotation
    - Audit trail logger (JSONL)

MCP servers talk JSON-RPC over stdout, so they must log with
``stream=sys.stderr``.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

import structlog
from structlog.contextvars import (
    bind_contextvars,
    get_contextvars,
    merge_contextvars,
    unbind_contextvars,
)


# =============================================================================
# SENSITIVE DATA MASKING
# =============================================================================

# Keys whose values should be masked
SENSITIVE_KEYS = frozenset([
    "token", "api_key", "password", "secret", "credential",
    "private_key", "access_token", "authorization",
    "anthropic_api_key", "openai_api_key", "vercel_token", "fly_api_token",
    "service_key",
])


def _is_sensitive(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    key_lower = key.lower().replace("-", "_")
    return any(key_lower == s or key_lower.endswith("_" + s) for s in SENSITIVE_KEYS)


def mask_value(value: Any) -> str:
    """Mask a sensitive value, keeping first/last 4 chars if long enough."""
    if not isinstance(value, str):
        return "****"
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "****"


def mask_sensitive_data(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Structlog processor that masks sensitive data in log events.

    Recursively processes dictionaries to mask values whose keys
    match known sensitive patterns.
    """

    def _process(d: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in d.items():
            if _is_sensitive(key):
                result[key] = mask_value(value)
            elif isinstance(value, dict):
                result[key] = _process(value)
            else:
                result[key] = value
        return result

    return _process(event_dict)


def mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive data in an arbitrary dict (audit events, reports)."""
    return mask_sensitive_data(None, "", data)


# =============================================================================
# JSON FORMATTER (file handler)
# =============================================================================


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for the rotating file handler.

    Extra fields come from the record (``extra=...``) or, failing that, from
    the structlog context bound with :class:`LogContext`, so stdlib module
    loggers inside a ``LogContext`` block carry ``task_id`` too.
    """

    EXTRA_FIELDS = ("task_id", "task_type", "tool", "component", "group")

    def __init__(self, mask_sensitive: bool = True):
        super().__init__()
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }

        context = get_contextvars()
        for key in self.EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is None:
                val = context.get(key)
            if val is not None:
                log_entry[key] = val

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.mask_sensitive:
            log_entry = mask_dict(log_entry)

        return json.dumps(log_entry, default=str)


# =============================================================================
# LOGGING SETUP
# =============================================================================


def setup_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    mask_sensitive: bool = True,
    stream: Optional[TextIO] = None,
    max_bytes: int = 20 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: Output format – ``"json"`` or ``"text"``.
        log_file: Explicit log file path.  Overrides *log_dir*.
        log_dir: Directory for log files.  When set (and *log_file* is
            ``None``), logs are written to ``<log_dir>/agent-os.log``.
        mask_sensitive: Mask sensitive values in logs.
        stream: Console stream (default: stderr).
        max_bytes: Max file size before rotation.
        backup_count: Number of rotated files to keep.

    Returns:
        Root logger instance.
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    console_stream = stream if stream is not None else sys.stderr

    resolved_log_file: Optional[str] = log_file
    if resolved_log_file is None and log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        resolved_log_file = str(Path(log_dir) / "agent-os.log")

    # ------------------------------------------------------------------
    # structlog (bound loggers and contextvars)
    # ------------------------------------------------------------------
    processors: list = [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if mask_sensitive:
        processors.append(mask_sensitive_data)

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=console_stream),
        cache_logger_on_first_use=False,
    )

    # ------------------------------------------------------------------
    # stdlib logging (module loggers)
    # ------------------------------------------------------------------
    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates on re-init
    root.handlers.clear()

    console = logging.StreamHandler(console_stream)
    console.setLevel(numeric_level)
    if fmt == "json":
        console.setFormatter(JSONFormatter(mask_sensitive=mask_sensitive))
    else:
        console.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root.addHandler(console)

    if resolved_log_file:
        Path(resolved_log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            resolved_log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter(mask_sensitive=mask_sensitive))
        root.addHandler(file_handler)

    # Suppress noisy third-party loggers
    for name in ("httpx", "httpcore", "anthropic", "openai", "mcp"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def get_logger(name: Optional[str] = None) -> Any:
    """Return a structlog bound logger."""
    return structlog.get_logger(name)


# =============================================================================
# LOG CONTEXT MANAGER
# =============================================================================


class LogContext:
    """
    Context manager that binds key-value pairs to all structlog events
    emitted inside the block.

    Usage::

        with LogContext(task_id="oauth-research-2025-01-15"):
            log.info("delegating")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_contextvars(*self.context.keys())


@contextmanager
def log_context(**kwargs: Any):
    """Functional alias for :class:`LogContext`."""
    with LogContext(**kwargs) as ctx:
        yield ctx


# =============================================================================
# AUDIT LOGGER
# =============================================================================


class AuditLogger:
    """
    Records structured events to a JSONL file (one JSON object per line).

    Event categories:
        - ``task_transition``: delegated task lifecycle changes
        - ``delegation``: finished delegations
        - ``llm_call``: LLM API calls
        - ``release``: version bumps and pushes
        - ``cli_command``: deploy CLI invocations
        - ``error``: failures worth a post-mortem

    Usage::

        audit = AuditLogger("./.agent-os/logs/audit.jsonl")
        audit.log_task_transition("api-research", "pending", "in_progress")
    """

    def __init__(
        self,
        output_path: str = "./.agent-os/logs/audit.jsonl",
        max_bytes: int = 50 * 1024 * 1024,
        backup_count: int = 10,
    ):
        self.output_path = str(output_path)
        # One logger per file so several audit logs never share handlers
        self._logger = logging.getLogger(f"audit.{Path(self.output_path).resolve()}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False

        if not self._logger.handlers:
            Path(self.output_path).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                self.output_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    def _write_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Write a single audit event."""
        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            **mask_dict(data),
        }
        self._logger.info(json.dumps(event, default=str))

    def log_task_transition(
        self,
        task_id: str,
        from_state: Optional[str],
        to_state: str,
        reason: str = "",
    ) -> None:
        """Log a delegated task lifecycle transition."""
        self._write_event("task_transition", {
            "task_id": task_id,
            "from_state": from_state,
            "to_state": to_state,
            "reason": reason,
        })

    def log_delegation(
        self,
        task_id: str,
        task_type: str,
        result: str,
        duration: float,
        result_path: Optional[str] = None,
    ) -> None:
        """Log a finished delegation."""
        self._write_event("delegation", {
            "task_id": task_id,
            "task_type": task_type,
            "result": result,
            "duration_seconds": round(duration, 2),
            "result_path": result_path,
        })

    def log_llm_call(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        duration: float,
        cost: float = 0.0,
    ) -> None:
        """Log an LLM API call."""
        self._write_event("llm_call", {
            "model": model,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "duration_seconds": round(duration, 2),
            "estimated_cost": round(cost, 6),
        })

    def log_release(
        self,
        version: str,
        bump_type: str,
        files: List[str],
        tag: Optional[str] = None,
    ) -> None:
        """Log a version bump."""
        self._write_event("release", {
            "version": version,
            "bump_type": bump_type,
            "files": files,
            "tag": tag,
        })

    def log_cli_command(
        self,
        tool: str,
        args: List[str],
        returncode: int,
        duration: float,
    ) -> None:
        """Log a deploy CLI invocation."""
        self._write_event("cli_command", {
            "tool": tool,
            "args": args,
            "returncode": returncode,
            "duration_seconds": round(duration, 2),
        })

    def log_error(
        self,
        component: str,
        error_type: str,
        message: str,
        task_id: Optional[str] = None,
    ) -> None:
        """Log an error event."""
        self._write_event("error", {
            "component": component,
            "error_type": error_type,
            "message": message,
            "task_id": task_id,
        })


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "setup_logging",
    "get_logger",
    "mask_sensitive_data",
    "mask_dict",
    "mask_value",
    "LogContext",
    "log_context",
    "JSONFormatter",
    "AuditLogger",
]

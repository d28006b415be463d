# =============================================================================
# AGENT-OS TOOLKIT - MONITORING PACKAGE
# =============================================================================
"""
Monitoring Package

Logging, audit trail and metrics shared by the orchestrator CLI and the
MCP servers.

Components:
    - Logger: Structured logging with structlog
    - Audit: Audit trail recording to JSONL
    - Metrics: prometheus_client collectors

Usage:
    from monitoring import setup_logging, MetricsCollector, AuditLogger

    setup_logging(level="INFO", fmt="json", stream=sys.stderr)

    metrics = MetricsCollector()
    metrics.record_delegation("research", "completed", 14.2)

    audit = AuditLogger("./.agent-os/logs/audit.jsonl")
    audit.log_task_transition("oauth-research", "pending", "in_progress")
"""

from monitoring.logger import (
    setup_logging,
    get_logger,
    AuditLogger,
    LogContext,
    log_context,
    JSONFormatter,
    mask_sensitive_data,
    mask_dict,
    mask_value,
)

from monitoring.metrics import (
    MetricsCollector,
    estimate_cost,
    LLM_PRICING,
)


__all__ = [
    # Logger
    "setup_logging",
    "get_logger",
    "AuditLogger",
    "LogContext",
    "log_context",
    "JSONFormatter",
    "mask_sensitive_data",
    "mask_dict",
    "mask_value",
    # Metrics
    "MetricsCollector",
    "estimate_cost",
    "LLM_PRICING",
]

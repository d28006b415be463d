# =============================================================================
# AGENT-OS TOOLKIT - METRICS COLLECTION
# =============================================================================
"""
Metrics Collection Module

Collects metrics for delegations, LLM usage, releases and deploy CLI calls
with ``prometheus_client``. Every collector owns its registry so several
servers (and tests) in one process never clash on metric names.

Metric Categories:
    - Delegation metrics: results, durations, tasks per status
    - LLM metrics: requests, tokens, estimated cost
    - Release metrics: version bumps by type
    - CLI metrics: deploy tool invocations
    - Errors
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)


# =============================================================================
# LLM COST ESTIMATOR
# =============================================================================

# Pricing per 1K tokens (USD) – update as providers adjust rates
LLM_PRICING: Dict[str, Dict[str, float]] = {
    # Anthropic
    "claude-opus-4-20250514": {"input": 0.015, "output": 0.075},
    "claude-sonnet-4-20250514": {"input": 0.003, "output": 0.015},
    "claude-3-5-sonnet-20241022": {"input": 0.003, "output": 0.015},
    "claude-3-5-haiku-20241022": {"input": 0.001, "output": 0.005},
    # OpenAI
    "gpt-4o": {"input": 0.005, "output": 0.015},
    "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
}

# Fallback pricing for unknown models
_DEFAULT_PRICING = {"input": 0.01, "output": 0.03}


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """
    Estimate the dollar cost of an LLM call.

    Exact model ids match first, then the longest model family the id
    starts with (a priced id without its date suffix), then the default
    rates.
    """
    rates = LLM_PRICING.get(model)
    if rates is None:
        best = ""
        for key in LLM_PRICING:
            head, _, tail = key.rpartition("-")
            family = head if tail.isdigit() else key
            if model.startswith(family) and len(family) > len(best):
                best, rates = family, LLM_PRICING[key]
    if rates is None:
        rates = _DEFAULT_PRICING

    return (input_tokens * rates["input"] + output_tokens * rates["output"]) / 1000


# =============================================================================
# METRICS COLLECTOR
# =============================================================================


class MetricsCollector:
    """
    Central metrics collector for the toolkit.

    Usage::

        metrics = MetricsCollector()
        metrics.record_delegation("research", "completed", 12.4)
        metrics.record_llm_call("claude-sonnet-4-20250514", 1500, 800)
        print(metrics.export().decode())
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._start_time = time.monotonic()

        self.delegations_total = Counter(
            "delegations_total",
            "Delegated tasks by type and result",
            ["task_type", "result"],
            registry=self.registry,
        )
        self.delegation_duration = Histogram(
            "delegation_duration_seconds",
            "Wall time of a delegation round trip",
            ["task_type"],
            buckets=[1, 5, 15, 30, 60, 120, 300, 600],
            registry=self.registry,
        )
        self.tasks_by_status = Gauge(
            "tasks_by_status",
            "Delegated tasks currently in each status",
            ["status"],
            registry=self.registry,
        )
        self.llm_requests = Counter(
            "llm_requests_total",
            "Total LLM API requests",
            ["model"],
            registry=self.registry,
        )
        self.llm_tokens = Counter(
            "llm_tokens_total",
            "Total tokens used",
            ["model", "token_type"],
            registry=self.registry,
        )
        self.llm_cost = Counter(
            "llm_cost_dollars",
            "Estimated LLM cost in dollars",
            ["model"],
            registry=self.registry,
        )
        self.releases_total = Counter(
            "releases_total",
            "Version bumps by type",
            ["bump_type"],
            registry=self.registry,
        )
        self.cli_commands = Counter(
            "cli_commands_total",
            "Deploy CLI invocations",
            ["tool", "result"],
            registry=self.registry,
        )
        self.errors_total = Counter(
            "errors_total",
            "Total errors",
            ["component", "error_type"],
            registry=self.registry,
        )

    # -- Delegation metrics ------------------------------------------------

    def record_delegation(self, task_type: str, result: str, duration: float) -> None:
        """Record a finished delegation."""
        self.delegations_total.labels(task_type=task_type, result=result).inc()
        self.delegation_duration.labels(task_type=task_type).observe(duration)

    def set_task_counts(self, stats: Dict[str, int]) -> None:
        """Mirror the task store statistics into gauges."""
        for status, count in stats.items():
            if status == "total":
                continue
            self.tasks_by_status.labels(status=status).set(count)

    # -- LLM metrics -------------------------------------------------------

    def record_llm_call(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """Record an LLM API call; returns the estimated cost."""
        self.llm_requests.labels(model=model).inc()
        self.llm_tokens.labels(model=model, token_type="input").inc(input_tokens)
        self.llm_tokens.labels(model=model, token_type="output").inc(output_tokens)

        cost = estimate_cost(model, input_tokens, output_tokens)
        self.llm_cost.labels(model=model).inc(cost)
        return cost

    # -- Release / CLI metrics ---------------------------------------------

    def record_release(self, bump_type: str) -> None:
        self.releases_total.labels(bump_type=bump_type).inc()

    def record_cli_command(self, tool: str, success: bool) -> None:
        result = "success" if success else "failure"
        self.cli_commands.labels(tool=tool, result=result).inc()

    def record_error(self, component: str, error_type: str) -> None:
        """Record an error occurrence."""
        self.errors_total.labels(component=component, error_type=error_type).inc()

    # =====================================================================
    # EXPORT / SNAPSHOT
    # =====================================================================

    def get_uptime(self) -> float:
        """Return seconds since this collector was created."""
        return time.monotonic() - self._start_time

    def export(self) -> bytes:
        """Prometheus text exposition of this collector's registry."""
        return generate_latest(self.registry)

    def get_value(self, name: str, **labels: str) -> float:
        """Current value of a sample, 0.0 when it was never recorded."""
        value = self.registry.get_sample_value(name, labels)
        return value if value is not None else 0.0

    def snapshot(self) -> Dict[str, Any]:
        """
        Return a plain dict snapshot of all counters and gauges.

        Keys are ``<sample name>{label=value,...}``.
        """
        result: Dict[str, Any] = {"uptime_seconds": round(self.get_uptime(), 1)}
        for metric in self.registry.collect():
            if metric.type == "histogram":
                continue
            for sample in metric.samples:
                if sample.name.endswith("_created"):
                    continue
                label_text = ",".join(f"{k}={v}" for k, v in sorted(sample.labels.items()))
                key = f"{sample.name}{{{label_text}}}" if label_text else sample.name
                result[key] = sample.value
        return result


__all__ = [
    "MetricsCollector",
    "estimate_cost",
    "LLM_PRICING",
]

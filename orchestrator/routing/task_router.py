# =============================================================================
# AGENT-OS TOOLKIT - TASK ROUTER
# =============================================================================
"""
Task Router Module

Classifies task groups by their tags and decides who executes them:

    [delegate:chat-claude]  -> Chat Claude (background LLM via MCP)
    [role:<name>]           -> specialized subagent <name>
    (no routing tag)        -> the orchestrator itself

The router also validates ``depends-on`` references, rejects cycles and
orders groups so every group comes after its dependencies. It only plans;
running the plan is an explicit, separate step (see ``dispatch``).
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from orchestrator.errors import RoutingError
from orchestrator.routing.task_parser import TaskGroup, TasksDocument

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

TASK_TYPES = ("research", "documentation", "design", "analysis", "planning")
DEFAULT_TASK_TYPE = "research"

CHAT_CLAUDE_ALIASES = frozenset(["chat-claude", "chat_claude", "chatclaude"])


class Executor(Enum):
    """Who performs a task group."""
    CHAT_CLAUDE = "chat-claude"
    SUBAGENT = "subagent"
    ORCHESTRATOR = "orchestrator"


class GroupState(Enum):
    """Routing-time state of a group."""
    DONE = "done"
    READY = "ready"
    BLOCKED = "blocked"


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class RouteDecision:
    """
    Routing decision for one task group.

    Attributes:
        group: The routed group
        executor: Who runs it
        target: Subagent role or delegate name, None for the orchestrator
        task_type: Delegation task type (Chat Claude only)
        task_id: Stable delegation id ``<slug>-<YYYY-MM-DD>``
        state: done / ready / blocked
        blocked_by: Unfinished dependency names
    """
    group: TaskGroup
    executor: Executor
    target: Optional[str] = None
    task_type: Optional[str] = None
    task_id: str = ""
    state: GroupState = GroupState.READY
    blocked_by: List[str] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return self.state == GroupState.READY

    def to_dict(self) -> Dict[str, Any]:
        done, total = self.group.progress
        return {
            "group": self.group.name,
            "executor": self.executor.value,
            "target": self.target,
            "task_type": self.task_type,
            "task_id": self.task_id,
            "state": self.state.value,
            "blocked_by": list(self.blocked_by),
            "depends_on": list(self.group.depends_on),
            "output": self.group.output,
            "progress": f"{done}/{total}",
        }


@dataclass
class RoutingPlan:
    """Routing decisions in dependency order."""
    source: str
    decisions: List[RouteDecision] = field(default_factory=list)

    def ready(self, executor: Optional[Executor] = None) -> List[RouteDecision]:
        """Decisions that can run now, optionally for one executor."""
        return [
            d for d in self.decisions
            if d.ready and (executor is None or d.executor == executor)
        ]

    def by_executor(self) -> Dict[Executor, List[RouteDecision]]:
        grouped: Dict[Executor, List[RouteDecision]] = {e: [] for e in Executor}
        for decision in self.decisions:
            grouped[decision.executor].append(decision)
        return grouped

    def get(self, group_name: str) -> Optional[RouteDecision]:
        wanted = group_name.lower()
        for decision in self.decisions:
            if decision.group.name.lower() == wanted or decision.group.slug == wanted:
                return decision
        return None

    def to_dict(self) -> Dict[str, Any]:
        counts = {state.value: 0 for state in GroupState}
        for decision in self.decisions:
            counts[decision.state.value] += 1
        return {
            "source": self.source,
            "summary": counts,
            "decisions": [d.to_dict() for d in self.decisions],
        }


# =============================================================================
# ROUTING
# =============================================================================


def make_task_id(group: TaskGroup, today: Optional[date] = None) -> str:
    """Delegation id for a group, e.g. ``oauth-research-2025-01-15``."""
    day = today or date.today()
    return f"{group.slug}-{day.isoformat()}"


def route_group(group: TaskGroup) -> RouteDecision:
    """
    Classify a single group by its tags.

    Raises:
        RoutingError: Unknown delegate target or task type
    """
    if group.delegate is not None:
        delegate = group.delegate.strip().lower()
        if delegate not in CHAT_CLAUDE_ALIASES:
            raise RoutingError(
                f"Group '{group.name}' (line {group.line}): unknown delegate "
                f"'{group.delegate}', expected chat-claude"
            )
        if group.role:
            logger.warning(
                f"Group '{group.name}' has both [delegate:{group.delegate}] and "
                f"[role:{group.role}]; delegating to chat-claude"
            )

        task_type = group.task_type or DEFAULT_TASK_TYPE
        if task_type not in TASK_TYPES:
            raise RoutingError(
                f"Group '{group.name}' (line {group.line}): task type '{task_type}' "
                f"must be one of {', '.join(TASK_TYPES)}"
            )
        return RouteDecision(
            group=group,
            executor=Executor.CHAT_CLAUDE,
            target="chat-claude",
            task_type=task_type,
        )

    if group.role:
        return RouteDecision(group=group, executor=Executor.SUBAGENT, target=group.role)

    return RouteDecision(group=group, executor=Executor.ORCHESTRATOR)


def _resolve_dependencies(document: TasksDocument) -> Dict[str, List[TaskGroup]]:
    """Map group name (lowercased) to the groups it depends on."""
    resolved: Dict[str, List[TaskGroup]] = {}
    for group in document.groups:
        deps: List[TaskGroup] = []
        for dep_name in group.depends_on:
            dep = document.get_group(dep_name)
            if dep is None:
                raise RoutingError(
                    f"Group '{group.name}' (line {group.line}) depends on "
                    f"unknown group '{dep_name}'"
                )
            if dep is group:
                raise RoutingError(f"Group '{group.name}' depends on itself")
            deps.append(dep)
        resolved[group.name.lower()] = deps
    return resolved


def _find_cycle(
    groups: List[TaskGroup], deps: Dict[str, List[TaskGroup]]
) -> List[str]:
    """Return one dependency cycle as a list of names, or an empty list."""
    WHITE, GREY, BLACK = 0, 1, 2
    color = {g.name.lower(): WHITE for g in groups}
    stack: List[str] = []

    def visit(group: TaskGroup) -> List[str]:
        key = group.name.lower()
        color[key] = GREY
        stack.append(group.name)
        for dep in deps[key]:
            dep_key = dep.name.lower()
            if color[dep_key] == GREY:
                start = stack.index(dep.name)
                return stack[start:] + [dep.name]
            if color[dep_key] == WHITE:
                cycle = visit(dep)
                if cycle:
                    return cycle
        stack.pop()
        color[key] = BLACK
        return []

    for group in groups:
        if color[group.name.lower()] == WHITE:
            cycle = visit(group)
            if cycle:
                return cycle
    return []


def _topological_order(
    groups: List[TaskGroup], deps: Dict[str, List[TaskGroup]]
) -> List[TaskGroup]:
    """Kahn's algorithm; ties go to the group that appears first in the file."""
    position = {g.name.lower(): index for index, g in enumerate(groups)}
    remaining = {g.name.lower(): len(deps[g.name.lower()]) for g in groups}
    dependents: Dict[str, List[str]] = {key: [] for key in remaining}
    for group in groups:
        for dep in deps[group.name.lower()]:
            dependents[dep.name.lower()].append(group.name.lower())

    heap = [position[key] for key, count in remaining.items() if count == 0]
    heapq.heapify(heap)
    ordered: List[TaskGroup] = []

    while heap:
        group = groups[heapq.heappop(heap)]
        ordered.append(group)
        for child in dependents[group.name.lower()]:
            remaining[child] -= 1
            if remaining[child] == 0:
                heapq.heappush(heap, position[child])

    return ordered


def build_plan(document: TasksDocument, today: Optional[date] = None) -> RoutingPlan:
    """
    Route every group of a document.

    Args:
        document: Parsed tasks.md
        today: Date used in delegation task ids (default: today)

    Returns:
        RoutingPlan ordered so dependencies come first

    Raises:
        RoutingError: Unknown dependency, dependency cycle, bad tags
    """
    deps = _resolve_dependencies(document)

    cycle = _find_cycle(document.groups, deps)
    if cycle:
        raise RoutingError(f"Dependency cycle: {' -> '.join(cycle)}")

    plan = RoutingPlan(source=document.source)
    for group in _topological_order(document.groups, deps):
        decision = route_group(group)
        decision.task_id = make_task_id(group, today)

        if group.is_complete:
            decision.state = GroupState.DONE
        else:
            decision.blocked_by = [
                dep.name for dep in deps[group.name.lower()] if not dep.is_complete
            ]
            decision.state = GroupState.BLOCKED if decision.blocked_by else GroupState.READY

        plan.decisions.append(decision)

    logger.debug(
        f"Routed {len(plan.decisions)} group(s) from {document.source}: "
        f"{len(plan.ready())} ready"
    )
    return plan


def describe_group(group: TaskGroup) -> str:
    """
    Delegation description for a group: its name, open checklist items
    and any notes written under the heading.
    """
    lines = [group.name, ""]
    open_items = group.open_items
    if open_items:
        lines.append("Checklist:")
        for item in open_items:
            lines.append(f"{'  ' * item.depth}- {item.description}")
    if group.body:
        lines.append("")
        lines.append("Notes:")
        lines.extend(group.body)
    return "\n".join(lines).strip()

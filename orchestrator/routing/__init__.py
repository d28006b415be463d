# =============================================================================
# AGENT-OS TOOLKIT - TASK ROUTING PACKAGE
# =============================================================================
"""
Task routing: parse tasks.md, decide who runs each group, and dispatch the
groups delegated to Chat Claude.
"""

from orchestrator.routing.task_parser import (
    TaskItem,
    TaskGroup,
    TasksDocument,
    parse_tasks,
    load_tasks,
    mark_group_complete,
)
from orchestrator.routing.task_router import (
    Executor,
    GroupState,
    RouteDecision,
    RoutingPlan,
    build_plan,
    route_group,
    make_task_id,
    describe_group,
)


__all__ = [
    "TaskItem",
    "TaskGroup",
    "TasksDocument",
    "parse_tasks",
    "load_tasks",
    "mark_group_complete",
    "Executor",
    "GroupState",
    "RouteDecision",
    "RoutingPlan",
    "build_plan",
    "route_group",
    "make_task_id",
    "describe_group",
]

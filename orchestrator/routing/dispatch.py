# =============================================================================
# AGENT-OS TOOLKIT - DELEGATION DISPATCH
# =============================================================================
"""
Dispatch Module

Sends the ready ``[delegate:chat-claude]`` groups of a routing plan to the
delegation service, one after another, and ticks their checklists in
tasks.md when the delegation succeeds.

This is a single pass over the plan. Groups unblocked by a delegation that
finished during the pass stay blocked until the next ``agent-os delegate``.
A group whose task failed or was cancelled on an earlier pass is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp_servers.chat_claude.errors import DelegationError
from mcp_servers.chat_claude.service import DelegationService
from mcp_servers.chat_claude.task_manager import TaskStatus
from orchestrator.routing.task_parser import TasksDocument, mark_group_complete
from orchestrator.routing.task_router import Executor, RoutingPlan, describe_group

logger = logging.getLogger(__name__)


# Statuses a later pass retries
RETRYABLE = (TaskStatus.FAILED.value, TaskStatus.CANCELLED.value)


@dataclass
class DispatchOutcome:
    """Result of delegating one group."""
    group: str
    task_id: str
    success: bool
    message: str
    marked_items: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group,
            "task_id": self.task_id,
            "success": self.success,
            "message": self.message,
            "marked_items": self.marked_items,
        }


def dispatch_delegated(
    plan: RoutingPlan,
    document: TasksDocument,
    service: DelegationService,
    context: Optional[str] = None,
    mark_complete: bool = True,
) -> List[DispatchOutcome]:
    """
    Delegate every ready Chat Claude group in plan order.

    Args:
        plan: Routing plan built from ``document``
        document: Parsed tasks.md (its ``source`` is the file to update)
        service: Delegation service used for each group
        context: Project context passed along with every task
        mark_complete: Tick the group's checklist on success

    Returns:
        One outcome per attempted group
    """
    tasks_path = Path(document.source)
    can_mark = mark_complete and tasks_path.is_file()
    if mark_complete and not can_mark:
        logger.warning(f"{document.source} is not a file; checklists will not be updated")

    outcomes: List[DispatchOutcome] = []
    for decision in plan.ready(Executor.CHAT_CLAUDE):
        group = decision.group
        try:
            existing = service.tasks.get_task(decision.task_id)
            if existing is not None and existing.status in RETRYABLE:
                logger.info(f"Retrying {existing.status} group '{group.name}' as {decision.task_id}")
                report = service.retry_task(decision.task_id)
            else:
                logger.info(f"Delegating group '{group.name}' as {decision.task_id}")
                report = service.delegate_task(
                    task_id=decision.task_id,
                    task_type=decision.task_type,
                    description=describe_group(group),
                    context=context,
                    output_path=group.output,
                )
        except DelegationError as e:
            logger.error(f"Delegation of '{group.name}' failed: {e}")
            outcomes.append(DispatchOutcome(group.name, decision.task_id, False, str(e)))
            continue

        marked = 0
        if can_mark:
            try:
                marked = mark_group_complete(tasks_path, group.name)
            except (OSError, KeyError) as e:
                logger.error(f"Could not tick '{group.name}' in {tasks_path}: {e}")
        outcomes.append(
            DispatchOutcome(group.name, decision.task_id, True, report, marked_items=marked)
        )

    return outcomes

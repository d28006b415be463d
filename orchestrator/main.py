# =============================================================================
# AGENT-OS TOOLKIT - COMMAND LINE ENTRY POINT
# =============================================================================
"""
Agent-OS Command Line

Entry point for the ``agent-os`` command. It reads a project's tasks.md,
shows how each task group is routed, delegates the Chat Claude groups,
reports delegated task status, checks the MCP configuration and browses
the skills catalog.

Usage:
    agent-os route specs/auth/tasks.md
    agent-os route specs/auth/tasks.md --json
    agent-os delegate specs/auth/tasks.md --context-file docs/context.md
    agent-os status --status failed
    agent-os verify-mcp --probe
    agent-os skills search auth
    agent-os --config agent-os.yaml --debug status
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from monitoring import setup_logging
from mcp_servers.chat_claude.errors import DelegationError
from mcp_servers.chat_claude.task_manager import TaskManager, TaskStatus
from orchestrator.config import load_config, project_root
from orchestrator.errors import AgentOSError
from orchestrator.mcp_check import load_mcp_config, probe_all, verify_mcp_config
from orchestrator.routing.dispatch import dispatch_delegated
from orchestrator.routing.task_parser import load_tasks
from orchestrator.routing.task_router import RoutingPlan, build_plan
from orchestrator.skills import SkillCatalog

logger = logging.getLogger(__name__)


# =============================================================================
# RENDERING
# =============================================================================


def render_plan(plan: RoutingPlan) -> str:
    """Human readable routing plan."""
    lines = [f"Routing plan for {plan.source}", ""]
    for decision in plan.decisions:
        done, total = decision.group.progress
        target = decision.executor.value
        if decision.target and decision.target != target:
            target = f"{target}:{decision.target}"
        if decision.task_type:
            target += f" ({decision.task_type})"

        line = f"[{decision.state.value:<7}] {decision.group.name} -> {target}  {done}/{total}"
        if decision.blocked_by:
            line += f"  blocked by: {', '.join(decision.blocked_by)}"
        lines.append(line)

    summary = plan.to_dict()["summary"]
    lines.append("")
    lines.append(", ".join(f"{count} {state}" for state, count in summary.items()))
    return "\n".join(lines)


def render_tasks(tasks: TaskManager, status: Optional[str]) -> str:
    stats = tasks.get_stats()
    lines = [
        "Delegated tasks: "
        + ", ".join(f"{stats[s.value]} {s.value}" for s in TaskStatus)
        + f" ({stats['total']} total)",
        "",
    ]
    records = tasks.get_all_tasks(status)
    if not records:
        lines.append("No tasks found.")
    for task in records:
        lines.append(f"{task.status:<12} {task.task_id}  [{task.task_type}]")
        if task.result_filename:
            lines.append(f"{'':<12} result: {task.result_filename}")
        if task.error:
            lines.append(f"{'':<12} error: {task.error}")
    return "\n".join(lines)


# =============================================================================
# COMMANDS
# =============================================================================


def cmd_route(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    plan = build_plan(load_tasks(args.tasks))
    if args.json:
        print(json.dumps(plan.to_dict(), indent=2))
    else:
        print(render_plan(plan))
    return 0


def cmd_delegate(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    # Imported here so the other commands do not need LLM credentials
    from mcp_servers.chat_claude.server import build_service

    document = load_tasks(args.tasks)
    plan = build_plan(document)

    context = None
    if args.context_file:
        context = Path(args.context_file).read_text(encoding="utf-8")

    try:
        service = build_service(config)
    except ValueError as e:
        raise AgentOSError(str(e)) from e

    outcomes = dispatch_delegated(
        plan, document, service, context=context, mark_complete=not args.no_mark
    )
    if not outcomes:
        print("No Chat Claude groups are ready.")
        return 0

    for outcome in outcomes:
        mark = "✓" if outcome.success else "✗"
        print(f"{mark} {outcome.group} ({outcome.task_id})")
        if outcome.success:
            print(f"  checklist items marked: {outcome.marked_items}")
        else:
            print(f"  {outcome.message}")

    return 0 if all(o.success for o in outcomes) else 1


def cmd_status(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    tasks = TaskManager(project_root(config), state_dir=config["project"]["state_dir"])
    print(render_tasks(tasks, args.status))
    return 0


def cmd_verify_mcp(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    root = project_root(config)
    path = Path(args.mcp_config or config["project"]["mcp_config"])
    if not path.is_absolute():
        path = root / path

    mcp_config = load_mcp_config(path)
    report = verify_mcp_config(mcp_config, root, source=str(path))
    if args.probe:
        probe_all(mcp_config, root, report)

    print(report.render())
    return 0 if report.ok else 1


def cmd_skills(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    skills_dir = Path(config["project"]["skills_dir"])
    if not skills_dir.is_absolute():
        skills_dir = project_root(config) / skills_dir
    catalog = SkillCatalog(skills_dir)

    if args.skills_command == "show":
        print(catalog.get(args.name).body.strip())
        return 0

    skills = catalog.search(args.query) if args.skills_command == "search" else catalog.list()
    if not skills:
        print("No skills found.")
    for skill in skills:
        tags = f"  [{', '.join(skill.tags)}]" if skill.tags else ""
        print(f"{skill.name:<24} {skill.description}{tags}")
    return 0


# =============================================================================
# CLI ARGUMENT PARSING
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agent-os",
        description="Agent-OS toolkit - task routing and MCP helpers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration file (default: agent-os.yaml)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    route = subparsers.add_parser("route", help="Show how task groups are routed")
    route.add_argument("tasks", help="Path to tasks.md")
    route.add_argument("--json", action="store_true", help="Print the plan as JSON")
    route.set_defaults(handler=cmd_route)

    delegate = subparsers.add_parser("delegate", help="Delegate ready groups to Chat Claude")
    delegate.add_argument("tasks", help="Path to tasks.md")
    delegate.add_argument("--context-file", help="File with project context for each task")
    delegate.add_argument("--no-mark", action="store_true",
                          help="Do not tick checklists in tasks.md")
    delegate.set_defaults(handler=cmd_delegate)

    status = subparsers.add_parser("status", help="List delegated tasks")
    status.add_argument("--status", choices=[s.value for s in TaskStatus], default=None)
    status.set_defaults(handler=cmd_status)

    verify = subparsers.add_parser("verify-mcp", help="Check the MCP server configuration")
    verify.add_argument("--config", dest="mcp_config", default=None,
                        help="Path to .mcp.json (default: from agent-os.yaml)")
    verify.add_argument("--probe", action="store_true",
                        help="Start each server and list its tools")
    verify.set_defaults(handler=cmd_verify_mcp)

    skills = subparsers.add_parser("skills", help="Browse the skills catalog")
    skills_sub = skills.add_subparsers(dest="skills_command", required=True)
    skills_sub.add_parser("list", help="List all skills")
    show = skills_sub.add_parser("show", help="Print one skill")
    show.add_argument("name")
    search = skills_sub.add_parser("search", help="Search skills")
    search.add_argument("query")
    skills.set_defaults(handler=cmd_skills)

    return parser


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except AgentOSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_config = config["logging"]
    setup_logging(
        level="DEBUG" if args.debug else log_config["level"],
        fmt=log_config["format"],
        log_dir=log_config["dir"],
        stream=sys.stderr,
    )

    try:
        return args.handler(args, config)
    except (AgentOSError, DelegationError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

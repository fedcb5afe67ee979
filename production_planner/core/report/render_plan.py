from __future__ import annotations

from typing import Any

from production_planner.core.model import ChainAnalysis, ExecutionGroup, ExecutionPlan, ReadySet


def _fmt(minutes: float) -> str:
    return f"{minutes:g}"


def group_to_dict(group: ExecutionGroup) -> dict[str, Any]:
    return {
        "sequence_number": group.sequence_number,
        "type": group.type,
        "estimated_minutes": group.estimated_minutes,
        "operations": group.operation_ids,
    }


def plan_to_dict(plan: ExecutionPlan) -> dict[str, Any]:
    return {
        "groups": [group_to_dict(g) for g in plan.groups],
        "total_estimated_minutes": plan.total_estimated_minutes,
        "critical_path": list(plan.critical_path),
        "critical_path_minutes": plan.critical_path_minutes,
        "parallelization_ratio": plan.parallelization_ratio,
        "unscheduled": list(plan.unscheduled),
        "cycles": [list(c) for c in plan.cycles],
        "blocked_by_missing": list(plan.blocked_by_missing),
        "missing_dependencies": {k: list(v) for k, v in sorted(plan.missing_dependencies.items())},
        "completed_ids": sorted(plan.completed_ids),
    }


def chain_analysis_to_dict(analysis: ChainAnalysis) -> dict[str, Any]:
    return {
        "critical_path": list(analysis.critical_path),
        "critical_path_minutes": analysis.critical_path_minutes,
        "near_critical": analysis.near_critical,
        "cycles_detected": analysis.cycles_detected,
        "timings": {
            oid: {
                "earliest_start": t.earliest_start,
                "earliest_finish": t.earliest_finish,
                "latest_finish": t.latest_finish,
                "slack": t.slack,
            }
            for oid, t in analysis.timings.items()
        },
    }


def ready_set_to_dict(ready_set: ReadySet) -> dict[str, Any]:
    return {
        "ready": ready_set.ids,
        "blocked": {k: list(v) for k, v in sorted(ready_set.blocked.items())},
    }


def render_plan(plan: ExecutionPlan) -> str:
    lines: list[str] = []
    for g in plan.groups:
        lines.append(
            f"Group {g.sequence_number} [{g.type}] {_fmt(g.estimated_minutes)} min: "
            + ", ".join(g.operation_ids)
        )
    if not plan.groups:
        lines.append("No groups")

    lines.append(f"Total: {_fmt(plan.total_estimated_minutes)} min")
    lines.append(
        f"Parallel groups: {plan.parallel_group_count}/{len(plan.groups)} "
        f"(ratio {plan.parallelization_ratio:.2f})"
    )
    lines.append(
        "Critical path: "
        + (" -> ".join(plan.critical_path) if plan.critical_path else "-")
        + f" ({_fmt(plan.critical_path_minutes)} min)"
    )

    if plan.unscheduled:
        lines.append("Unscheduled: " + ", ".join(plan.unscheduled))
        for cycle in plan.cycles:
            lines.append("  cycle: " + " -> ".join(cycle))
        for oid, missing in sorted(plan.missing_dependencies.items()):
            lines.append(f"  {oid} depends on unknown: {', '.join(missing)}")
        if plan.blocked_by_missing:
            lines.append("  blocked by unknown dependencies: " + ", ".join(plan.blocked_by_missing))
    return "\n".join(lines)


def render_chain_analysis(analysis: ChainAnalysis) -> str:
    lines = [
        "Critical path: "
        + (" -> ".join(analysis.critical_path) if analysis.critical_path else "-")
        + f" ({_fmt(analysis.critical_path_minutes)} min)"
    ]
    for oid, t in analysis.timings.items():
        marker = "*" if t.is_critical else " "
        lines.append(
            f"{marker} {oid}: start {_fmt(t.earliest_start)}, finish {_fmt(t.earliest_finish)}, "
            f"slack {_fmt(t.slack)}"
        )
    if analysis.cycles_detected:
        lines.append("WARN: dependency cycle detected; timings are partial")
    return "\n".join(lines)

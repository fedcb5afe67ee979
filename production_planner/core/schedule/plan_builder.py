from __future__ import annotations

import logging
from typing import AbstractSet, Optional, Sequence

from production_planner.core.config import DEFAULT_CONFIG, PlannerConfig
from production_planner.core.graph import DependencyGraph
from production_planner.core.model import ExecutionGroup, ExecutionPlan, Operation
from production_planner.core.schedule.clustering import (
    CompatibilityMatrix,
    classify_cluster,
    cluster,
    group_estimate,
)
from production_planner.core.schedule.critical_path import critical_path_for_graph
from production_planner.core.schedule.resolver import ready

logger = logging.getLogger(__name__)


def build_plan(
    operations: Sequence[Operation],
    completed_ids: Optional[AbstractSet[str]] = None,
    config: PlannerConfig = DEFAULT_CONFIG,
) -> ExecutionPlan:
    """Build an ordered execution plan.

    Repeatedly takes the ready set, clusters it, and appends one group per
    cluster. When nothing is ready but operations remain (dependency cycle or
    unknown dependency id) the loop stops and the remainder is returned in
    `unscheduled`; no exception is raised, so callers must check it.

    `completed_ids` marks operations that are already done before planning;
    they satisfy dependencies but are not placed in any group, and the critical
    path covers only the remaining work.
    """
    graph = DependencyGraph.build(operations)
    ops = [graph.operations_by_id[oid] for oid in graph.order]
    if len(ops) != len(operations):
        logger.warning(f"Ignoring {len(operations) - len(ops)} operations with duplicate ids")

    pre_completed = frozenset(oid for oid in (completed_ids or ()) if oid in graph)
    completed: set[str] = set(pre_completed)
    groups: list[ExecutionGroup] = []
    group_number = 1
    total_minutes: float = 0

    while len(completed) < len(ops):
        ready_set = ready(ops, completed)
        if not ready_set.operations:
            break

        matrix = CompatibilityMatrix(ready_set.operations, graph, config)
        for members in cluster(ready_set.operations, matrix):
            group_type = classify_cluster(members, matrix)
            estimate = group_estimate(members, group_type)
            groups.append(
                ExecutionGroup(
                    sequence_number=group_number,
                    operations=members,
                    type=group_type,
                    estimated_minutes=estimate,
                )
            )
            logger.debug(
                f"Group {group_number}: {group_type} {[op.id for op in members]} ({estimate} min)"
            )
            group_number += 1
            total_minutes += estimate
            completed.update(op.id for op in members)

    # Completed work satisfies its dependents and takes no further time.
    remaining = graph.without(pre_completed)
    unscheduled = tuple(oid for oid in remaining.order if oid not in completed)
    cycles: list[tuple[str, ...]] = []
    blocked: tuple[str, ...] = ()
    if unscheduled:
        cycles = remaining.detect_cycles()
        unreachable = remaining.transitively_blocked()
        blocked = tuple(oid for oid in unscheduled if oid in unreachable)
        logger.warning(
            f"Stopped with {len(unscheduled)} unscheduled operations "
            f"(cycles={len(cycles)}, blocked by unknown dependencies={len(blocked)})"
        )

    path, path_minutes = critical_path_for_graph(remaining)
    parallel = sum(1 for g in groups if g.type == "parallel")

    plan = ExecutionPlan(
        groups=tuple(groups),
        total_estimated_minutes=total_minutes,
        critical_path=tuple(path),
        critical_path_minutes=path_minutes,
        parallelization_ratio=parallel / len(groups) if groups else 0.0,
        unscheduled=unscheduled,
        cycles=tuple(cycles),
        blocked_by_missing=blocked,
        missing_dependencies=dict(remaining.missing),
        completed_ids=pre_completed,
    )
    logger.info(
        f"Planned {len(ops) - len(pre_completed) - len(unscheduled)} operations into "
        f"{len(groups)} groups ({parallel} parallel), total {total_minutes} minutes"
    )
    return plan

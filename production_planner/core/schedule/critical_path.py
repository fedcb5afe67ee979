"""Critical path analysis.

The chain time of an operation is its own duration plus the largest chain time
among its dependencies. The critical path is the chain ending at the operation
with the largest chain time, and it lower-bounds total completion time.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

from production_planner.core.config import DEFAULT_SLACK_TOLERANCE_MINUTES
from production_planner.core.graph import DependencyGraph
from production_planner.core.model import ChainAnalysis, ChainTiming, Operation

logger = logging.getLogger(__name__)


def longest_chain_times(operations: Sequence[Operation]) -> tuple[dict[str, float], bool]:
    """Memoized longest duration-weighted chain ending at each operation.

    Returns (chain_times, cycle_detected). A dependency that is still in
    progress when revisited closes a cycle; it contributes 0 instead of being
    walked again. Unknown dependency ids also contribute 0.
    """
    graph = DependencyGraph.build(operations)
    return _chain_times(graph)


def _chain_times(graph: DependencyGraph) -> tuple[dict[str, float], bool]:
    memo: dict[str, float] = {}
    in_progress: set[str] = set()
    cycle_detected = False

    for root in graph.order:
        if root in memo:
            continue
        best: dict[str, float] = {root: 0}
        in_progress.add(root)
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(graph.depends_on[root]))]

        while stack:
            node, deps = stack[-1]
            dep = next(deps, None)
            if dep is None:
                memo[node] = graph.operations_by_id[node].duration_minutes + best[node]
                in_progress.discard(node)
                stack.pop()
                if stack:
                    parent = stack[-1][0]
                    best[parent] = max(best[parent], memo[node])
                continue

            if dep in memo:
                best[node] = max(best[node], memo[dep])
            elif dep in in_progress:
                cycle_detected = True
                logger.warning(f"Dependency cycle through {dep} (reached from {node}); counting it as 0")
            else:
                in_progress.add(dep)
                best[dep] = 0
                stack.append((dep, iter(graph.depends_on[dep])))

    return memo, cycle_detected


def _trace_path(graph: DependencyGraph, chain: dict[str, float]) -> list[str]:
    if not graph.order:
        return []

    end = graph.order[0]
    for oid in graph.order:
        if chain[oid] > chain[end]:
            end = oid

    path = [end]
    seen = {end}
    current = end
    while True:
        nxt = None
        for dep in graph.depends_on[current]:
            if dep in seen:
                continue
            if nxt is None or chain[dep] > chain[nxt]:
                nxt = dep
        if nxt is None:
            break
        path.append(nxt)
        seen.add(nxt)
        current = nxt

    path.reverse()
    return path


def critical_path_for_graph(graph: DependencyGraph) -> tuple[list[str], float]:
    """Critical path and its length for an already built graph."""
    chain, _ = _chain_times(graph)
    path = _trace_path(graph, chain)
    return path, chain[path[-1]] if path else 0


def critical_path(operations: Sequence[Operation]) -> list[str]:
    """Ordered ids (first to last) of the longest dependency-weighted chain."""
    path, minutes = critical_path_for_graph(DependencyGraph.build(operations))
    if path:
        logger.info(f"Critical path: {len(path)} operations, {minutes} minutes")
    return path


def analyze_chains(
    operations: Sequence[Operation],
    tolerance_minutes: float = DEFAULT_SLACK_TOLERANCE_MINUTES,
) -> ChainAnalysis:
    """Critical path plus per-operation timing and slack.

    Earliest start/finish come from the forward pass. Latest finish comes from
    a backward pass over the topological order. Operations caught in or behind
    a cycle have no topological position; their latest finish falls back to the
    critical-path length.
    """
    graph = DependencyGraph.build(operations)
    chain, cycle_detected = _chain_times(graph)
    path = _trace_path(graph, chain)
    total = chain[path[-1]] if path else 0

    latest_finish: dict[str, float] = {oid: total for oid in graph.order}
    for oid in reversed(graph.topological_order()):
        for succ in graph.dependents[oid]:
            succ_latest_start = latest_finish[succ] - graph.operations_by_id[succ].duration_minutes
            latest_finish[oid] = min(latest_finish[oid], succ_latest_start)

    timings: dict[str, ChainTiming] = {}
    for oid in graph.order:
        ef = chain[oid]
        es = ef - graph.operations_by_id[oid].duration_minutes
        slack = latest_finish[oid] - ef
        timings[oid] = ChainTiming(
            operation_id=oid,
            earliest_start=es,
            earliest_finish=ef,
            latest_finish=latest_finish[oid],
            slack=slack,
            is_critical=slack <= tolerance_minutes,
        )

    return ChainAnalysis(
        critical_path=tuple(path),
        critical_path_minutes=total,
        timings=timings,
        cycles_detected=cycle_detected,
    )

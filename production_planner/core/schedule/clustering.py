"""Parallel clustering of a ready set.

Clustering is seed-based: each cluster is opened by the first unclustered
operation (input order) and collects every later unclustered operation that is
compatible with that seed. It is an approximation, not maximal-clique
extraction. Members are only compared with the seed while clustering, so a
cluster can hold pairs that are not compatible with each other; classification
re-checks every pair against the compatibility matrix and demotes such clusters
to sequential.
"""

from __future__ import annotations

import logging
from typing import Sequence

from production_planner.core.config import DEFAULT_CONFIG, PlannerConfig
from production_planner.core.graph import DependencyGraph
from production_planner.core.model import GroupType, Operation

logger = logging.getLogger(__name__)


def is_compatible(
    a: Operation,
    b: Operation,
    graph: DependencyGraph,
    config: PlannerConfig = DEFAULT_CONFIG,
) -> bool:
    """Whether two operations may physically run at the same time.

    An explicit `parallel_with` declaration on either side wins. Otherwise the
    resource types must differ, neither may depend on the other in `graph`, and
    neither may use a manual resource type.
    """
    if b.id in a.parallel_with or a.id in b.parallel_with:
        return True

    if a.resource_type == b.resource_type:
        return False
    if graph.has_edge(a.id, b.id):
        return False
    if config.is_manual(a.resource_type) or config.is_manual(b.resource_type):
        return False
    return True


class CompatibilityMatrix:
    """Symmetric pairwise compatibility over one ready set."""

    def __init__(
        self,
        operations: Sequence[Operation],
        graph: DependencyGraph,
        config: PlannerConfig = DEFAULT_CONFIG,
    ):
        self.operations = tuple(operations)
        self._index = {op.id: i for i, op in enumerate(self.operations)}
        n = len(self.operations)
        self._cells = [[False] * n for _ in range(n)]
        for i in range(n):
            for j in range(i + 1, n):
                ok = is_compatible(self.operations[i], self.operations[j], graph, config)
                self._cells[i][j] = ok
                self._cells[j][i] = ok

    def compatible(self, a: Operation, b: Operation) -> bool:
        return self._cells[self._index[a.id]][self._index[b.id]]

    def all_pairs_compatible(self, members: Sequence[Operation]) -> bool:
        for i, a in enumerate(members):
            for b in members[i + 1:]:
                if not self.compatible(a, b):
                    return False
        return True


def cluster(ready_ops: Sequence[Operation], matrix: CompatibilityMatrix) -> list[tuple[Operation, ...]]:
    """Partition the ready set into seed-based clusters, preserving input order."""
    if len(ready_ops) <= 1:
        return [tuple(ready_ops)] if ready_ops else []

    used: set[str] = set()
    clusters: list[tuple[Operation, ...]] = []

    for seed in ready_ops:
        if seed.id in used:
            continue
        used.add(seed.id)
        members = [seed]
        for other in ready_ops:
            if other.id in used:
                continue
            if matrix.compatible(seed, other):
                members.append(other)
                used.add(other.id)
        clusters.append(tuple(members))

    logger.debug(f"Clustered {len(ready_ops)} ready operations into {len(clusters)} clusters")
    return clusters


def classify_cluster(members: Sequence[Operation], matrix: CompatibilityMatrix) -> GroupType:
    if len(members) > 1 and matrix.all_pairs_compatible(members):
        return "parallel"
    if len(members) > 1:
        logger.debug(f"Demoting cluster {[op.id for op in members]} to sequential")
    return "sequential"


def group_estimate(members: Sequence[Operation], group_type: GroupType) -> float:
    if not members:
        return 0
    if group_type == "parallel":
        return max(op.duration_minutes for op in members)
    return sum(op.duration_minutes for op in members)

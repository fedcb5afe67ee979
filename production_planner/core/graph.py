"""Explicit dependency graph over an operation set.

Edges point from an operation to the operations it depends on. Ids referenced
in `dependencies` that are not part of the set are kept aside as missing
references instead of becoming edges.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import AbstractSet, Iterable, Iterator, Mapping, Sequence

from production_planner.core.model import Operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyGraph:
    order: tuple[str, ...]
    operations_by_id: dict[str, Operation]
    depends_on: dict[str, tuple[str, ...]]
    dependents: dict[str, tuple[str, ...]]
    missing: dict[str, tuple[str, ...]]

    @classmethod
    def build(cls, operations: Iterable[Operation]) -> "DependencyGraph":
        ops = list(operations)
        by_id: dict[str, Operation] = {}
        order: list[str] = []
        for op in ops:
            if op.id in by_id:
                # First definition wins; validation reports the duplicate.
                continue
            by_id[op.id] = op
            order.append(op.id)

        depends_on: dict[str, tuple[str, ...]] = {}
        dependents: dict[str, list[str]] = defaultdict(list)
        missing: dict[str, tuple[str, ...]] = {}

        for oid in order:
            known: list[str] = []
            unknown: list[str] = []
            for dep in by_id[oid].dependencies:
                if dep in by_id:
                    if dep not in known:
                        known.append(dep)
                        dependents[dep].append(oid)
                elif dep not in unknown:
                    unknown.append(dep)
            depends_on[oid] = tuple(known)
            if unknown:
                missing[oid] = tuple(unknown)
                logger.warning(f"Operation {oid} references unknown dependencies: {unknown}")

        return cls(
            order=tuple(order),
            operations_by_id=by_id,
            depends_on=depends_on,
            dependents={oid: tuple(dependents.get(oid, [])) for oid in order},
            missing=missing,
        )

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self.operations_by_id

    def has_edge(self, a: str, b: str) -> bool:
        """True when either operation directly depends on the other."""
        return b in self.depends_on.get(a, ()) or a in self.depends_on.get(b, ())

    def without(self, operation_ids: AbstractSet[str]) -> "DependencyGraph":
        """Subgraph without the given operations.

        Edges into removed operations are dropped, not recorded as missing: the
        removed work counts as already done.
        """
        order = tuple(oid for oid in self.order if oid not in operation_ids)
        return DependencyGraph(
            order=order,
            operations_by_id={oid: self.operations_by_id[oid] for oid in order},
            depends_on={oid: tuple(d for d in self.depends_on[oid] if d not in operation_ids) for oid in order},
            dependents={oid: tuple(d for d in self.dependents[oid] if d not in operation_ids) for oid in order},
            missing={oid: refs for oid, refs in self.missing.items() if oid not in operation_ids},
        )

    def detect_cycles(self) -> list[tuple[str, ...]]:
        return find_cycles(self.depends_on)

    def topological_order(self) -> list[str]:
        """Kahn's algorithm over known edges; ids stuck behind a cycle are omitted."""
        in_degree = {oid: len(self.depends_on[oid]) for oid in self.order}
        queue: deque[str] = deque(oid for oid in self.order if in_degree[oid] == 0)
        out: list[str] = []
        while queue:
            cur = queue.popleft()
            out.append(cur)
            for nxt in self.dependents.get(cur, ()):
                in_degree[nxt] -= 1
                if in_degree[nxt] == 0:
                    queue.append(nxt)
        return out

    def transitively_blocked(self) -> set[str]:
        """Ids that can never run because they (transitively) depend on a missing id."""
        q: deque[str] = deque(self.missing.keys())
        seen: set[str] = set()
        while q:
            cur = q.popleft()
            if cur in seen:
                continue
            seen.add(cur)
            for nxt in self.dependents.get(cur, ()):
                if nxt not in seen:
                    q.append(nxt)
        return seen


def find_cycles(id_to_deps: Mapping[str, Sequence[str]]) -> list[tuple[str, ...]]:
    """Return every distinct dependency cycle found by a colored DFS.

    Each cycle is closed, e.g. ("A", "B", "A"). Ids missing from `id_to_deps`
    are ignored. Iterative so that long chains do not hit the recursion limit.
    """
    WHITE, GRAY, BLACK = 0, 1, 2
    state: dict[str, int] = {nid: WHITE for nid in id_to_deps.keys()}
    emitted: set[frozenset[str]] = set()
    out: list[tuple[str, ...]] = []

    for start in id_to_deps.keys():
        if state[start] != WHITE:
            continue
        state[start] = GRAY
        stack: list[str] = [start]
        iters: list[Iterator[str]] = [iter(id_to_deps[start])]
        while iters:
            v = next(iters[-1], None)
            if v is None:
                state[stack.pop()] = BLACK
                iters.pop()
                continue
            if v not in state:
                continue
            if state[v] == GRAY:
                # cycle: v ... u -> v
                cycle = tuple(stack[stack.index(v):] + [v])
                key = frozenset(cycle)
                if key not in emitted:
                    emitted.add(key)
                    out.append(cycle)
            elif state[v] == WHITE:
                state[v] = GRAY
                stack.append(v)
                iters.append(iter(id_to_deps[v]))

    return out

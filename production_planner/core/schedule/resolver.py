from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, Sequence

from production_planner.core.model import Operation, ReadySet

logger = logging.getLogger(__name__)


def ready(operations: Sequence[Operation], completed_ids: AbstractSet[str]) -> ReadySet:
    """Return the operations whose every dependency is in `completed_ids`.

    Operations already in `completed_ids` are never returned. An operation that
    references an id outside `operations` can never become ready; it is reported
    in `ReadySet.blocked` rather than dropped silently.
    """
    known = {op.id for op in operations}

    ready_ops: list[Operation] = []
    blocked: dict[str, tuple[str, ...]] = {}
    for op in operations:
        if op.id in completed_ids:
            continue
        unknown = tuple(d for d in op.dependencies if d not in known)
        if unknown:
            blocked[op.id] = unknown
            continue
        if all(dep in completed_ids for dep in op.dependencies):
            ready_ops.append(op)

    if blocked:
        logger.debug(f"Operations blocked by unknown dependencies: {sorted(blocked)}")

    return ReadySet(operations=tuple(ready_ops), blocked=blocked)


def completed_ids_from_status(operations: Iterable[Operation]) -> set[str]:
    """Ids of operations whose externally tracked status is `completed`."""
    return {op.id for op in operations if op.status == "completed"}

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional

from production_planner.core.errors import InvalidOperationError


OperationStatus = Literal["pending", "ready", "in_progress", "completed", "blocked"]
GroupType = Literal["sequential", "parallel"]

ALLOWED_STATUSES: tuple[str, ...] = ("pending", "ready", "in_progress", "completed", "blocked")


@dataclass(frozen=True)
class Operation:
    id: str
    name: str
    duration_minutes: float
    resource_type: str
    dependencies: tuple[str, ...] = ()
    parallel_with: tuple[str, ...] = ()

    code: str = ""
    skill_required: str = ""
    status: OperationStatus = "pending"

    def __post_init__(self) -> None:
        for name in ("dependencies", "parallel_with"):
            ids = getattr(self, name)
            if isinstance(ids, str):
                raise InvalidOperationError.for_field(
                    self.id, name, "E_INVALID_TYPE", f"{name} must be a collection of ids, not a string"
                )
            # Stored as tuples so operations stay hashable.
            object.__setattr__(self, name, tuple(ids))

        if isinstance(self.duration_minutes, bool) or not math.isfinite(self.duration_minutes):
            raise InvalidOperationError.for_field(
                self.id,
                "duration_minutes",
                "E_INVALID_TYPE",
                f"duration_minutes must be a finite number, got {self.duration_minutes}",
            )
        if self.duration_minutes < 0:
            raise InvalidOperationError.for_field(
                self.id,
                "duration_minutes",
                "E_NEGATIVE_DURATION",
                f"duration_minutes must be >= 0, got {self.duration_minutes}",
            )
        if self.id in self.dependencies:
            raise InvalidOperationError.for_field(
                self.id, "dependencies", "E_SELF_DEPENDENCY", f"operation {self.id} cannot depend on itself"
            )


@dataclass(frozen=True)
class ExecutionGroup:
    sequence_number: int
    operations: tuple[Operation, ...]
    type: GroupType
    estimated_minutes: float

    @property
    def operation_ids(self) -> list[str]:
        return [op.id for op in self.operations]


@dataclass(frozen=True)
class ReadySet:
    """Resolver output.

    `operations` are the ready operations in input order. `blocked` maps the id of
    every not-yet-completed operation that references an unknown id to the
    unknown ids; those operations can never become ready.
    """

    operations: tuple[Operation, ...]
    blocked: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def ids(self) -> list[str]:
        return [op.id for op in self.operations]

    def __len__(self) -> int:
        return len(self.operations)


@dataclass(frozen=True)
class ExecutionPlan:
    groups: tuple[ExecutionGroup, ...]
    total_estimated_minutes: float
    critical_path: tuple[str, ...]
    critical_path_minutes: float
    parallelization_ratio: float
    unscheduled: tuple[str, ...] = ()

    # Diagnostics for infeasible inputs.
    cycles: tuple[tuple[str, ...], ...] = ()
    # Unscheduled ids that depend, directly or through other operations, on an unknown id.
    blocked_by_missing: tuple[str, ...] = ()
    missing_dependencies: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    completed_ids: frozenset[str] = frozenset()

    @property
    def is_complete(self) -> bool:
        return not self.unscheduled

    @property
    def parallel_group_count(self) -> int:
        return sum(1 for g in self.groups if g.type == "parallel")

    @property
    def scheduled_ids(self) -> list[str]:
        return [oid for g in self.groups for oid in g.operation_ids]

    def group_of(self, operation_id: str) -> Optional[ExecutionGroup]:
        for g in self.groups:
            if operation_id in g.operation_ids:
                return g
        return None


@dataclass(frozen=True)
class ChainTiming:
    operation_id: str
    earliest_start: float
    earliest_finish: float
    latest_finish: float
    slack: float
    is_critical: bool


@dataclass(frozen=True)
class ChainAnalysis:
    critical_path: tuple[str, ...]
    critical_path_minutes: float
    timings: Mapping[str, ChainTiming]
    cycles_detected: bool = False

    @property
    def near_critical(self) -> list[str]:
        return [oid for oid, t in self.timings.items() if t.is_critical]

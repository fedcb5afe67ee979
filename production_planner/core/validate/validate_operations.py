from __future__ import annotations

import math
from collections import Counter
from typing import Any, Optional, cast

from production_planner.core.errors import PlanValidationError, sorted_errors
from production_planner.core.model import ALLOWED_STATUSES, Operation, OperationStatus


def _is_list_of_str(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(x, str) for x in v)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_operations(doc: dict[str, Any]) -> tuple[Optional[list[Operation]], list[PlanValidationError]]:
    """Validate an operations document and build Operation objects.

    Returns (operations, errors). Operations is None when errors exist.
    Dependencies on unknown ids are not validation errors: the planner reports
    them as unscheduled and lint flags them.
    """

    file = cast(Optional[str], doc.get("__file__"))
    errors: list[PlanValidationError] = []

    schema_version = doc.get("schema_version")
    if not isinstance(schema_version, str) or not schema_version.strip():
        errors.append(
            PlanValidationError(
                code="E_REQUIRED_FIELD",
                message="schema_version is required and must be a non-empty string",
                file=file,
                path="schema_version",
            )
        )

    raw_ops = doc.get("operations")
    if not isinstance(raw_ops, list):
        errors.append(
            PlanValidationError(
                code="E_REQUIRED_FIELD",
                message="operations is required and must be an array",
                file=file,
                path="operations",
            )
        )
        return None, sorted_errors(errors)

    operations: list[Operation] = []
    seen_ids: set[str] = set()

    for i, raw in enumerate(raw_ops):
        op_path = f"operations[{i}]"
        if not isinstance(raw, dict):
            errors.append(
                PlanValidationError(
                    code="E_INVALID_TYPE",
                    message="operation must be an object",
                    file=file,
                    path=op_path,
                )
            )
            continue

        def err(code: str, message: str, field: str) -> None:
            errors.append(
                PlanValidationError(code=code, message=message, file=file, path=f"{op_path}.{field}")
            )

        oid = raw.get("id")
        if not isinstance(oid, str) or not oid.strip():
            err("E_REQUIRED_FIELD", "id is required and must be a non-empty string", "id")
            continue
        if oid in seen_ids:
            err("E_DUPLICATE_ID", f"duplicate operation id: {oid}", "id")
            continue
        seen_ids.add(oid)

        ok = True

        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            err("E_REQUIRED_FIELD", "name is required and must be a non-empty string", "name")
            ok = False

        duration = raw.get("duration_minutes")
        if not _is_number(duration):
            err("E_REQUIRED_FIELD", "duration_minutes is required and must be a number", "duration_minutes")
            ok = False
        elif not math.isfinite(duration):
            err("E_INVALID_TYPE", f"duration_minutes must be a finite number, got {duration}", "duration_minutes")
            ok = False
        elif duration < 0:
            err("E_NEGATIVE_DURATION", f"duration_minutes must be >= 0, got {duration}", "duration_minutes")
            ok = False

        resource_type = raw.get("resource_type")
        if not isinstance(resource_type, str) or not resource_type.strip():
            err("E_REQUIRED_FIELD", "resource_type is required and must be a non-empty string", "resource_type")
            ok = False

        code = raw.get("code")
        if code is not None and not isinstance(code, str):
            err("E_INVALID_TYPE", "code must be a string", "code")
            ok = False

        skill = raw.get("skill_required")
        if skill is not None and not isinstance(skill, str):
            err("E_INVALID_TYPE", "skill_required must be a string", "skill_required")
            ok = False

        deps = raw.get("dependencies")
        if deps is None:
            deps = []
        if not _is_list_of_str(deps):
            err("E_INVALID_TYPE", "dependencies must be an array of strings", "dependencies")
            ok = False
        elif oid in deps:
            err("E_SELF_DEPENDENCY", f"operation {oid} cannot depend on itself", "dependencies")
            ok = False

        parallel_with = raw.get("parallel_with")
        if parallel_with is None:
            parallel_with = []
        if not _is_list_of_str(parallel_with):
            err("E_INVALID_TYPE", "parallel_with must be an array of strings", "parallel_with")
            ok = False

        status = raw.get("status", "pending")
        if status is None:
            status = "pending"
        if not isinstance(status, str) or status not in ALLOWED_STATUSES:
            err("E_INVALID_ENUM", f"status must be one of {list(ALLOWED_STATUSES)}", "status")
            ok = False

        if not ok:
            continue

        operations.append(
            Operation(
                id=oid,
                name=cast(str, name),
                code=cast(Optional[str], code) or "",
                duration_minutes=cast(float, duration),
                resource_type=cast(str, resource_type),
                skill_required=cast(Optional[str], skill) or "",
                dependencies=tuple(cast(list[str], deps)),
                parallel_with=tuple(cast(list[str], parallel_with)),
                status=cast(OperationStatus, status),
            )
        )

    if errors:
        return None, sorted_errors(errors)
    return operations, []


def summarize_operations(operations: list[Operation]) -> str:
    counts = Counter(op.resource_type for op in operations)
    parts = [f"{rt}={counts[rt]}" for rt in sorted(counts)]
    total = sum(op.duration_minutes for op in operations)
    roots = [op.id for op in operations if not op.dependencies]
    return (
        f"OK: {len(operations)} operations ("
        + ", ".join(parts)
        + f")\nTotal work: {_fmt(total)} min\nRoots: "
        + ", ".join(roots)
    )


def _fmt(minutes: float) -> str:
    return f"{minutes:g}"


from __future__ import annotations

from typing import Any, Optional

from production_planner.core.errors import PlanLintError, sorted_errors
from production_planner.core.graph import find_cycles


# Graph-quality lint rules:
# - L_UNKNOWN_DEPENDENCY: dependency references an id outside the operation set
#   (the planner would leave the operation unscheduled)
# - L_UNKNOWN_PARALLEL_REF: parallel_with references an id outside the operation set
# - L_PARALLEL_WITH_DEPENDENCY: parallel_with names an operation linked to it by a
#   direct dependency; the two are never ready together
# - L_CYCLE_DETECTED: dependency cycle exists


def lint_operations(doc: dict[str, Any]) -> list[PlanLintError]:
    """Lint an operations document.

    Lint runs *in addition to* validation. It is allowed to operate on
    partially-invalid inputs (best effort).
    """

    file = _cast_optional_str(doc.get("__file__"))

    raw_ops = doc.get("operations")
    if not isinstance(raw_ops, list):
        # Let validator handle shape.
        return []

    id_to_index: dict[str, int] = {}
    id_to_deps: dict[str, list[str]] = {}
    id_to_parallel: dict[str, list[str]] = {}

    for i, raw in enumerate(raw_ops):
        if not isinstance(raw, dict):
            continue
        oid = raw.get("id")
        if not isinstance(oid, str) or oid in id_to_index:
            continue
        id_to_index[oid] = i
        id_to_deps[oid] = _str_list(raw.get("dependencies"))
        id_to_parallel[oid] = _str_list(raw.get("parallel_with"))

    errors: list[PlanLintError] = []

    def add(code: str, message: str, oid: str, field: str) -> None:
        errors.append(
            PlanLintError(
                code=code,
                message=message,
                file=file,
                path=f"operations[{id_to_index.get(oid, 0)}].{field}",
            )
        )

    for oid, deps in id_to_deps.items():
        for dep in deps:
            if dep not in id_to_deps:
                add("L_UNKNOWN_DEPENDENCY", f"dependencies references unknown id: {dep}", oid, "dependencies")

    for oid, partners in id_to_parallel.items():
        for other in partners:
            if other not in id_to_deps:
                add("L_UNKNOWN_PARALLEL_REF", f"parallel_with references unknown id: {other}", oid, "parallel_with")
            elif other in id_to_deps[oid] or oid in id_to_deps[other]:
                add(
                    "L_PARALLEL_WITH_DEPENDENCY",
                    f"parallel_with declares {other}, but the two are linked by a dependency",
                    oid,
                    "parallel_with",
                )

    for cycle in find_cycles(id_to_deps):
        add(
            "L_CYCLE_DETECTED",
            "dependency cycle detected: " + " -> ".join(cycle),
            cycle[-2] if len(cycle) > 1 else cycle[0],
            "dependencies",
        )

    return sorted_errors(errors)


def _str_list(v: Any) -> list[str]:
    if not isinstance(v, list):
        return []
    return [x for x in v if isinstance(x, str)]


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None

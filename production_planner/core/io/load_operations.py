from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from production_planner.core.errors import PlanLoadError


# snake_case is canonical; camelCase comes from upstream shop-floor exports.
FIELD_ALIASES: dict[str, str] = {
    "durationMinutes": "duration_minutes",
    "resourceType": "resource_type",
    "skillRequired": "skill_required",
    "parallelWith": "parallel_with",
}


def normalize_operation(raw: Any) -> Any:
    """Rename camelCase keys of one raw operation to their snake_case names.

    A snake_case key wins when both spellings are present. Non-mapping entries
    are returned unchanged for the validator to report.
    """
    if not isinstance(raw, dict):
        return raw
    out: dict[str, Any] = {}
    for key, value in raw.items():
        name = FIELD_ALIASES.get(key, key)
        if name != key and name in raw:
            continue
        out[name] = value
    return out


def load_operations(path: str) -> dict[str, Any]:
    """Load a YAML/JSON operations file.

    Returns a dict with keys: schema_version, operations, __file__.
    Operation keys are normalized to snake_case; values are not coerced, the
    validator owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise PlanLoadError(
            code="E_FILE_NOT_FOUND",
            message="operations file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:  # pragma: no cover
        raise PlanLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    if suffix in {".yaml", ".yml"}:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as e:
            raise PlanLoadError(code="E_YAML_PARSE", message=str(e), file=str(p)) from e
    elif suffix == ".json":
        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise PlanLoadError(code="E_JSON_PARSE", message=str(e), file=str(p)) from e
    else:
        raise PlanLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .yaml/.yml and .json",
            file=str(p),
        )

    if not isinstance(data, dict):
        raise PlanLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping with an operations list",
            file=str(p),
        )

    operations = data.get("operations")
    if isinstance(operations, list):
        operations = [normalize_operation(raw) for raw in operations]

    return {
        "schema_version": data.get("schema_version"),
        "operations": operations,
        "__file__": str(p),
    }

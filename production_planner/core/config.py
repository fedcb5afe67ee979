from __future__ import annotations

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml


DEFAULT_MANUAL_RESOURCE_TYPES: tuple[str, ...] = ("manual",)
# Same tolerance the floor planners used when flagging critical steps.
DEFAULT_SLACK_TOLERANCE_MINUTES: float = 5.0


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class PlannerConfig:
    manual_resource_types: tuple[str, ...] = DEFAULT_MANUAL_RESOURCE_TYPES
    slack_tolerance_minutes: float = DEFAULT_SLACK_TOLERANCE_MINUTES

    def is_manual(self, resource_type: str) -> bool:
        rt = resource_type.strip().lower()
        return any(rt == m.strip().lower() for m in self.manual_resource_types)


DEFAULT_CONFIG = PlannerConfig()


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load planner overrides from a YAML file.

    Format:
      manual_resource_types: ["manual", "hand_finish"]
      slack_tolerance_minutes: 5

    Returns only the keys present in the file, shape-checked.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"config file is not valid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("config file must be a mapping")

    unknown = sorted(set(raw.keys()) - {"manual_resource_types", "slack_tolerance_minutes"})
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(str(k) for k in unknown)}")

    out: dict[str, Any] = {}
    if "manual_resource_types" in raw:
        v = raw["manual_resource_types"]
        if not isinstance(v, list):
            raise ConfigError("manual_resource_types must be a list of strings")
        types: list[str] = []
        for item in v:
            if not isinstance(item, str) or not item.strip():
                raise ConfigError("manual_resource_types items must be non-empty strings")
            types.append(item.strip())
        out["manual_resource_types"] = tuple(types)

    if "slack_tolerance_minutes" in raw:
        v = raw["slack_tolerance_minutes"]
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v) or v < 0:
            raise ConfigError("slack_tolerance_minutes must be a non-negative number")
        out["slack_tolerance_minutes"] = float(v)

    return out


def merged_config(overrides: dict[str, Any] | None = None) -> PlannerConfig:
    """Return DEFAULT_CONFIG with optional overrides applied."""
    if not overrides:
        return DEFAULT_CONFIG
    return replace(DEFAULT_CONFIG, **overrides)


def load_and_merge(config_file: str | None) -> PlannerConfig:
    if not config_file:
        return merged_config()
    return merged_config(load_config_file(config_file))

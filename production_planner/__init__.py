"""Production execution planner.

Orders manufacturing operations into sequential/parallel execution groups and
reports the critical path.
"""

from production_planner.core.model import ExecutionGroup, ExecutionPlan, Operation
from production_planner.core.schedule.critical_path import critical_path
from production_planner.core.schedule.plan_builder import build_plan

__all__ = [
    "ExecutionGroup",
    "ExecutionPlan",
    "Operation",
    "build_plan",
    "critical_path",
]

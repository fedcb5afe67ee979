from pathlib import Path

import pytest

from production_planner.core.model import Operation


EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


def example(name: str) -> str:
    return str(EXAMPLES_DIR / name)


def op(
    oid: str,
    minutes: float = 1,
    resource: str = "machine",
    deps: tuple[str, ...] = (),
    parallel: tuple[str, ...] = (),
    status: str = "pending",
) -> Operation:
    return Operation(
        id=oid,
        name=oid.title(),
        duration_minutes=minutes,
        resource_type=resource,
        dependencies=deps,
        parallel_with=parallel,
        status=status,  # type: ignore[arg-type]
    )


@pytest.fixture
def shirt_ops() -> list[Operation]:
    return [
        op("cut", 10, "cutting"),
        op("sew", 20, "machine", deps=("cut",)),
        op("iron", 5, "press", deps=("cut",)),
        op("pack", 3, "packing", deps=("sew", "iron")),
    ]

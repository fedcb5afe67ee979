from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, TypeVar


@dataclass(frozen=True)
class PlanError(Exception):
    """Error envelope for operations files and planner inputs.

    `path` points into the operations document, e.g. `operations[2].dependencies`.
    """

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    # Which stage produced the error in CLI output.
    source = "validate"

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<operations>"
        return f"{loc}: {self.code}: {self.message}"

    def to_item(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "path": self.path,
            "severity": "error",
            "source": self.source,
        }


class PlanLoadError(PlanError):
    source = "load"


class PlanValidationError(PlanError):
    pass


class PlanLintError(PlanValidationError):
    source = "lint"


@dataclass(frozen=True)
class InvalidOperationError(PlanValidationError):
    """Raised when a single Operation is constructed with impossible values."""

    operation_id: Optional[str] = None

    @classmethod
    def for_field(cls, operation_id: str, field: str, code: str, message: str) -> "InvalidOperationError":
        return cls(
            code=code,
            message=message,
            path=f"operations[{operation_id}].{field}",
            operation_id=operation_id,
        )


E = TypeVar("E", bound=PlanError)


def sorted_errors(errors: Iterable[E]) -> list[E]:
    """Stable report order: file, then document path, then code."""
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))

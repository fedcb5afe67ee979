from __future__ import annotations

import json
import logging
from typing import NoReturn, Optional

import typer

from production_planner.core.config import ConfigError, PlannerConfig, load_and_merge
from production_planner.core.errors import PlanError, PlanLoadError, PlanValidationError, sorted_errors
from production_planner.core.io.load_operations import load_operations
from production_planner.core.lint.lint_operations import lint_operations
from production_planner.core.model import Operation
from production_planner.core.report.render_plan import (
    chain_analysis_to_dict,
    plan_to_dict,
    ready_set_to_dict,
    render_chain_analysis,
    render_plan,
)
from production_planner.core.schedule.critical_path import analyze_chains
from production_planner.core.schedule.plan_builder import build_plan
from production_planner.core.schedule.resolver import completed_ids_from_status, ready
from production_planner.core.validate.validate_operations import summarize_operations, validate_operations

app = typer.Typer(add_completion=False, no_args_is_help=True)

TOOL_NAME = "production-planner"
# Plan built, but some operations could not be placed.
EXIT_UNSCHEDULED = 3


@app.callback()
def _callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log planner decisions to stderr"),
) -> None:
    """Production execution planner CLI."""
    if not verbose:
        # Warnings still reach stderr through logging's last-resort handler.
        return

    pkg_logger = logging.getLogger("production_planner")
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG)

    def _detach() -> None:
        pkg_logger.removeHandler(handler)
        pkg_logger.setLevel(logging.NOTSET)

    ctx.call_on_close(_detach)


def _emit_json(
    command: str,
    ok: bool,
    *,
    exit_code: int,
    errors: list[PlanError],
    summary: dict | None,
) -> NoReturn:
    payload = {
        "tool": TOOL_NAME,
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": [e.to_item() for e in errors],
        "summary": summary,
    }
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _fail(command: str, format: str, errors: list[PlanError], exit_code: int) -> NoReturn:
    if format == "json":
        _emit_json(command, False, exit_code=exit_code, errors=errors, summary=None)
    _print_errors(errors)
    raise typer.Exit(code=exit_code)


def _check_format(format: str, command: str) -> None:
    if format not in ("text", "json"):
        err = PlanValidationError(
            code=f"E_{command.upper().replace('-', '_')}_UNKNOWN_FORMAT",
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _load_valid(path: str, format: str, command: str) -> list[Operation]:
    try:
        doc = load_operations(path)
    except PlanLoadError as e:
        _fail(command, format, [e], 1)

    operations, errors = validate_operations(doc)
    if errors or operations is None:
        _fail(command, format, list(errors), 2)
    return operations


def _load_config(config_file: Optional[str], format: str, command: str) -> PlannerConfig:
    try:
        return load_and_merge(config_file)
    except FileNotFoundError:
        err: PlanError = PlanLoadError(
            code="E_CONFIG_FILE_NOT_FOUND",
            message=f"config file not found: {config_file}",
            file=None,
            path="config",
        )
        _fail(command, format, [err], 1)
    except ConfigError as e:
        err = PlanValidationError(
            code="E_CONFIG_FILE_INVALID",
            message=str(e),
            file=config_file,
            path="config",
        )
        _fail(command, format, [err], 2)


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to an operations file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate an operations file."""
    _check_format(format, "validate")
    operations = _load_valid(path, format, "validate")

    if format == "text":
        typer.echo(summarize_operations(operations))
        return

    summary = {
        "operation_count": len(operations),
        "total_work_minutes": sum(op.duration_minutes for op in operations),
        "roots": [op.id for op in operations if not op.dependencies],
    }
    _emit_json("validate", True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to an operations file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Lint an operations file (graph rules beyond field validation)."""
    _check_format(format, "lint")

    try:
        doc = load_operations(path)
    except PlanLoadError as e:
        _fail("lint", format, [e], 1)

    _, validation_errors = validate_operations(doc)
    errors: list[PlanError] = [*lint_operations(doc), *validation_errors]

    if errors:
        _fail("lint", format, errors, 2)
    if format == "json":
        _emit_json("lint", True, exit_code=0, errors=[], summary=None)
    typer.echo("OK: lint passed")


@app.command("plan")
def plan(
    path: str = typer.Argument(..., help="Path to an operations file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML planner config"),
    respect_status: bool = typer.Option(
        False,
        "--respect-status",
        help="Treat operations with status=completed as already done",
    ),
) -> None:
    """Build the execution plan: ordered groups, total minutes and critical path."""
    _check_format(format, "plan")
    operations = _load_valid(path, format, "plan")
    cfg = _load_config(config, format, "plan")

    completed = completed_ids_from_status(operations) if respect_status else None
    result = build_plan(operations, completed_ids=completed, config=cfg)
    exit_code = 0 if result.is_complete else EXIT_UNSCHEDULED

    if format == "json":
        _emit_json("plan", result.is_complete, exit_code=exit_code, errors=[], summary=plan_to_dict(result))

    typer.echo(render_plan(result))
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("critical-path")
def critical_path_cmd(
    path: str = typer.Argument(..., help="Path to an operations file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML planner config"),
) -> None:
    """Report the critical path with per-operation slack."""
    _check_format(format, "critical-path")
    operations = _load_valid(path, format, "critical-path")
    cfg = _load_config(config, format, "critical-path")

    analysis = analyze_chains(operations, tolerance_minutes=cfg.slack_tolerance_minutes)
    if format == "json":
        _emit_json("critical-path", True, exit_code=0, errors=[], summary=chain_analysis_to_dict(analysis))
    typer.echo(render_chain_analysis(analysis))


@app.command("ready")
def ready_cmd(
    path: str = typer.Argument(..., help="Path to an operations file (.yaml/.yml/.json)"),
    completed: Optional[list[str]] = typer.Option(
        None,
        "--completed",
        help="Operation id treated as complete (repeatable)",
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """List operations whose dependencies are all complete."""
    _check_format(format, "ready")
    operations = _load_valid(path, format, "ready")

    result = ready(operations, set(completed or []))
    if format == "json":
        _emit_json("ready", True, exit_code=0, errors=[], summary=ready_set_to_dict(result))

    typer.echo("Ready: " + (", ".join(result.ids) if result.ids else "-"))
    for oid, missing in sorted(result.blocked.items()):
        typer.echo(f"Blocked: {oid} (unknown: {', '.join(missing)})")


def _print_errors(errors: list[PlanError]) -> None:
    for e in sorted_errors(errors):
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name=TOOL_NAME)


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()

import json
import logging

from conftest import example
from typer.testing import CliRunner

from production_planner.cli import EXIT_UNSCHEDULED, app

runner = CliRunner()


def test_cli_plan_text():
    r = runner.invoke(app, ["plan", example("shirt-line.yaml")])
    assert r.exit_code == 0, r.stdout + r.stderr
    lines = r.stdout.splitlines()
    assert lines[0] == "Group 1 [sequential] 10 min: cut"
    assert lines[1] == "Group 2 [parallel] 20 min: sew, iron"
    assert lines[2] == "Group 3 [sequential] 3 min: pack"
    assert "Total: 33 min" in r.stdout
    assert "Critical path: cut -> sew -> pack (33 min)" in r.stdout


def test_cli_plan_json():
    r = runner.invoke(app, ["plan", example("polo-line.yaml"), "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["command"] == "plan"
    assert payload["ok"] is True
    summary = payload["summary"]
    assert [g["operations"] for g in summary["groups"]] == [
        ["collar", "placket"],
        ["shoulder"],
        ["sleeve"],
        ["label"],
        ["hem"],
        ["finish"],
    ]
    assert summary["groups"][0]["type"] == "parallel"
    assert summary["total_estimated_minutes"] == 17.5
    assert summary["critical_path"] == ["collar", "shoulder", "sleeve", "hem", "finish"]
    assert summary["critical_path_minutes"] == 16
    assert summary["unscheduled"] == []


def test_cli_plan_cycle_exits_with_unscheduled_code():
    r = runner.invoke(app, ["plan", example("cycle.yaml"), "--format", "json"])
    assert r.exit_code == EXIT_UNSCHEDULED
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert payload["summary"]["unscheduled"] == ["A", "B"]
    assert len(payload["summary"]["cycles"]) == 1


def test_cli_plan_unknown_dependency_text():
    r = runner.invoke(app, ["plan", example("unknown-dep.yaml")])
    assert r.exit_code == EXIT_UNSCHEDULED
    assert "Unscheduled: sew, pack" in r.stdout
    assert "sew depends on unknown: embroider" in r.stdout
    assert "blocked by unknown dependencies: sew, pack" in r.stdout


def test_cli_plan_respect_status():
    r = runner.invoke(app, ["plan", example("partial-progress.yaml"), "--respect-status", "--format", "json"])
    assert r.exit_code == 0
    summary = json.loads(r.stdout)["summary"]
    assert [g["operations"] for g in summary["groups"]] == [["sew"], ["pack"]]
    assert summary["completed_ids"] == ["cut"]
    assert summary["total_estimated_minutes"] == 23


def test_cli_plan_with_config(tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("manual_resource_types: []\n", encoding="utf-8")
    r = runner.invoke(app, ["plan", example("polo-line.yaml"), "--config", str(cfg), "--format", "json"])
    assert r.exit_code == 0
    groups = json.loads(r.stdout)["summary"]["groups"]
    assert ["sleeve", "label"] in [g["operations"] for g in groups]


def test_cli_plan_bad_config():
    r = runner.invoke(app, ["plan", example("shirt-line.yaml"), "--config", example("invalid-config.yaml")])
    assert r.exit_code == 2
    assert "E_CONFIG_FILE_INVALID" in r.stderr

    r = runner.invoke(app, ["plan", example("shirt-line.yaml"), "--config", example("missing.yaml")])
    assert r.exit_code == 1
    assert "E_CONFIG_FILE_NOT_FOUND" in r.stderr


def test_cli_plan_verbose_logs_groups():
    r = runner.invoke(app, ["-v", "plan", example("shirt-line.yaml")])
    assert r.exit_code == 0
    assert "Total: 33 min" in r.stdout
    assert "Group 2: parallel ['sew', 'iron'] (20 min)" in r.stderr
    assert logging.getLogger("production_planner").handlers == []


def test_cli_plan_malformed_config_yaml(tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("manual_resource_types: [unclosed\n", encoding="utf-8")
    r = runner.invoke(app, ["plan", example("shirt-line.yaml"), "--config", str(cfg), "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert [e["code"] for e in payload["errors"]] == ["E_CONFIG_FILE_INVALID"]


def test_cli_plan_unknown_dependency_json_lists_blocked():
    r = runner.invoke(app, ["plan", example("unknown-dep.yaml"), "--format", "json"])
    assert r.exit_code == EXIT_UNSCHEDULED
    summary = json.loads(r.stdout)["summary"]
    assert summary["blocked_by_missing"] == ["sew", "pack"]
    assert summary["missing_dependencies"] == {"sew": ["embroider"]}

import json

from conftest import example
from typer.testing import CliRunner

from production_planner.cli import app

runner = CliRunner()


def test_cli_critical_path_text():
    r = runner.invoke(app, ["critical-path", example("shirt-line.yaml")])
    assert r.exit_code == 0
    assert r.stdout.splitlines()[0] == "Critical path: cut -> sew -> pack (33 min)"
    assert "* iron" not in r.stdout
    assert "  iron: start 10, finish 15, slack 15" in r.stdout


def test_cli_critical_path_json_with_config():
    r = runner.invoke(
        app,
        ["critical-path", example("polo-line.yaml"), "--config", example("planner-config.yaml"), "--format", "json"],
    )
    assert r.exit_code == 0
    summary = json.loads(r.stdout)["summary"]
    assert summary["critical_path_minutes"] == 16
    assert "label" not in summary["near_critical"]
    assert summary["timings"]["label"]["slack"] == 6.5


def test_cli_ready():
    r = runner.invoke(app, ["ready", example("camel-case.json"), "--completed", "1", "--format", "json"])
    assert r.exit_code == 0
    summary = json.loads(r.stdout)["summary"]
    assert summary["ready"] == ["2", "3"]
    assert summary["blocked"] == {}


def test_cli_ready_text_reports_blocked():
    r = runner.invoke(app, ["ready", example("unknown-dep.yaml"), "--completed", "cut"])
    assert r.exit_code == 0
    assert "Ready: -" in r.stdout
    assert "Blocked: sew (unknown: embroider)" in r.stdout

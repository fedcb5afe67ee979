from conftest import example

from production_planner.core.errors import PlanLoadError
from production_planner.core.io.load_operations import load_operations, normalize_operation


def test_load_yaml_success():
    doc = load_operations(example("shirt-line.yaml"))
    assert doc["schema_version"] == "0.1.0"
    assert isinstance(doc["operations"], list)
    assert doc["__file__"].endswith("shirt-line.yaml")


def test_load_json_success():
    doc = load_operations(example("camel-case.json"))
    assert len(doc["operations"]) == 4


def test_load_missing_file():
    try:
        load_operations(example("does-not-exist.yaml"))
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_format(tmp_path):
    p = tmp_path / "ops.txt"
    p.write_text("hello", encoding="utf-8")
    try:
        load_operations(str(p))
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_UNSUPPORTED_FORMAT"


def test_load_bad_yaml(tmp_path):
    p = tmp_path / "ops.yaml"
    p.write_text("operations: [unclosed\n", encoding="utf-8")
    try:
        load_operations(str(p))
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_YAML_PARSE"


def test_load_non_mapping(tmp_path):
    p = tmp_path / "ops.json"
    p.write_text("[1, 2]", encoding="utf-8")
    try:
        load_operations(str(p))
        assert False, "expected PlanLoadError"
    except PlanLoadError as e:
        assert e.code == "E_INVALID_TOP_LEVEL"


def test_load_normalizes_camel_case_keys():
    doc = load_operations(example("camel-case.json"))
    first = doc["operations"][0]
    assert "duration_minutes" in first
    assert "durationMinutes" not in first
    assert "resource_type" in first


def test_normalize_operation_prefers_snake_case():
    raw = {"id": "a", "durationMinutes": 5, "duration_minutes": 7, "parallelWith": ["b"]}
    assert normalize_operation(raw) == {"id": "a", "duration_minutes": 7, "parallel_with": ["b"]}
    assert normalize_operation("not-an-object") == "not-an-object"

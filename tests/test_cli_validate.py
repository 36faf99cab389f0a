import json
from pathlib import Path

from typer.testing import CliRunner

from workspace_rules.cli import app

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"

runner = CliRunner()


def test_cli_validate_success():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "basic-tasks.yaml")])
    assert r.exit_code == 0
    assert "OK: 5 tasks" in r.stdout
    assert "Roots: T-100, T-200" in r.stdout


def test_cli_validate_failure():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "invalid-bad-type.yaml")])
    assert r.exit_code == 2
    assert "E_INVALID_TYPE" in r.output


def test_cli_validate_missing_file():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "missing.yaml")])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output


def test_cli_validate_json_success():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "basic-tasks.yaml"), "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["command"] == "validate"
    assert payload["ok"] is True
    assert payload["errors"] == []
    assert payload["summary"]["task_count"] == 5
    assert payload["summary"]["roots"] == ["T-100", "T-200"]


def test_cli_validate_json_failure_contains_codes():
    r = runner.invoke(app, ["validate", str(EXAMPLES / "invalid-duplicate-id.yaml"), "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert {e["code"] for e in payload["errors"]} == {"E_DUPLICATE_ID"}
    assert payload["errors"][0]["source"] == "validate"


def test_cli_validate_undecodable_file(tmp_path):
    p = tmp_path / "tasks.yaml"
    p.write_bytes(b"tasks:\n  - id: \xff\xfe\n")
    r = runner.invoke(app, ["validate", str(p)])
    assert r.exit_code == 1
    assert "E_FILE_READ" in r.output


def test_cli_tree_undecodable_file(tmp_path):
    p = tmp_path / "tasks.json"
    p.write_bytes(b"\xff\xfe")
    r = runner.invoke(app, ["tree", str(p)])
    assert r.exit_code == 1
    assert "E_FILE_READ" in r.output

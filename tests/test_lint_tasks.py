from pathlib import Path

from workspace_rules.core.io.load_tasks import load_tasks
from workspace_rules.core.lint.lint_tasks import lint_tasks

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_lint_clean_file():
    assert lint_tasks(load_tasks(str(EXAMPLES / "basic-tasks.yaml"))) == []


def test_lint_detects_cycle_once():
    errors = lint_tasks(load_tasks(str(EXAMPLES / "invalid-cycle.yaml")))
    cycles = [e for e in errors if e.code == "L_CYCLE_DETECTED"]
    assert len(cycles) == 1
    assert "A -> B -> A" in cycles[0].message


def test_lint_self_parent_is_a_cycle():
    errors = lint_tasks({"tasks": [{"id": "x", "parentId": "x"}]})
    assert [e.code for e in errors] == ["L_CYCLE_DETECTED"]


def test_lint_duplicate_id():
    errors = lint_tasks(load_tasks(str(EXAMPLES / "invalid-duplicate-id.yaml")))
    assert [e.code for e in errors] == ["L_DUPLICATE_ID"]
    assert errors[0].path == "tasks[1].id"


def test_lint_dangling_parent_only_when_strict():
    doc = load_tasks(str(EXAMPLES / "dangling-parent.json"))
    assert lint_tasks(doc) == []

    errors = lint_tasks(doc, strict_parents=True)
    assert [e.code for e in errors] == ["L_DANGLING_PARENT"]
    assert "T-GONE" in errors[0].message


def test_lint_completed_quantity_out_of_range():
    doc = {
        "tasks": [
            {"id": "a", "quantity": 4, "completedQuantity": 5},
            {"id": "b", "quantity": 4, "completedQuantity": -1},
            {"id": "c", "quantity": 4, "completedQuantity": 4},
        ]
    }
    errors = lint_tasks(doc)
    assert [e.path for e in errors] == ["tasks[0].completedQuantity", "tasks[1].completedQuantity"]
    assert all(e.code == "L_COMPLETED_EXCEEDS_QUANTITY" for e in errors)


def test_lint_ignores_non_list_tasks():
    assert lint_tasks({"tasks": "nope"}) == []

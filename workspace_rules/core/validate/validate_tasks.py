from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Optional, cast

from workspace_rules.core.errors import TaskValidationError
from workspace_rules.core.model import ProgressState, Task


ALLOWED_PROGRESS_STATES: set[str] = {"todo", "doing", "blocked", "completed", "verified", "accepted"}

# document key -> Task field. Documents from the store are camelCase.
FIELD_ALIASES: dict[str, str] = {
    "id": "id",
    "name": "name",
    "parentId": "parent_id",
    "parent_id": "parent_id",
    "subtotal": "subtotal",
    "quantity": "quantity",
    "completedQuantity": "completed_quantity",
    "completed_quantity": "completed_quantity",
    "progressState": "progress_state",
    "progress_state": "progress_state",
}

NUMERIC_FIELDS: tuple[str, ...] = ("subtotal", "quantity", "completed_quantity")


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_tasks(doc: dict[str, Any]) -> tuple[Optional[list[Task]], list[TaskValidationError]]:
    """Validate a loaded task snapshot and convert it to Task records.

    Returns (tasks, errors). tasks is None when errors exist.
    """

    file = cast(Optional[str], doc.get("__file__"))
    errors: list[TaskValidationError] = []

    raw_tasks = doc.get("tasks")
    if not isinstance(raw_tasks, list):
        errors.append(
            TaskValidationError(
                code="E_REQUIRED_FIELD",
                message="tasks is required and must be an array",
                file=file,
                path="tasks",
            )
        )
        return None, errors

    tasks: list[Task] = []
    seen_ids: set[str] = set()

    for i, raw in enumerate(raw_tasks):
        task_path = f"tasks[{i}]"
        if not isinstance(raw, dict):
            errors.append(
                TaskValidationError(
                    code="E_INVALID_TYPE",
                    message="task must be an object",
                    file=file,
                    path=task_path,
                )
            )
            continue

        fields: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in raw.items():
            target = FIELD_ALIASES.get(key) if isinstance(key, str) else None
            if target is None:
                extra[str(key)] = value
            else:
                fields[target] = value

        tid = fields.get("id")
        if not isinstance(tid, str) or not tid.strip():
            errors.append(
                TaskValidationError(
                    code="E_REQUIRED_FIELD",
                    message="id is required and must be a non-empty string",
                    file=file,
                    path=f"{task_path}.id",
                )
            )
            continue

        if tid in seen_ids:
            errors.append(
                TaskValidationError(
                    code="E_DUPLICATE_ID",
                    message=f"duplicate task id: {tid}",
                    file=file,
                    path=f"{task_path}.id",
                )
            )
            continue
        seen_ids.add(tid)

        ok = True

        name = fields.get("name", "")
        if name is None:
            name = ""
        if not isinstance(name, str):
            errors.append(
                TaskValidationError(
                    code="E_INVALID_TYPE",
                    message="name must be a string",
                    file=file,
                    path=f"{task_path}.name",
                )
            )
            ok = False

        parent_id = fields.get("parent_id")
        if parent_id is not None and not isinstance(parent_id, str):
            errors.append(
                TaskValidationError(
                    code="E_INVALID_TYPE",
                    message="parentId must be a string or null",
                    file=file,
                    path=f"{task_path}.parentId",
                )
            )
            ok = False

        for fname in NUMERIC_FIELDS:
            v = fields.get(fname)
            if v is not None and not _is_number(v):
                errors.append(
                    TaskValidationError(
                        code="E_INVALID_TYPE",
                        message=f"{fname} must be a number",
                        file=file,
                        path=f"{task_path}.{fname}",
                    )
                )
                ok = False

        state = fields.get("progress_state", "todo")
        if not isinstance(state, str) or state not in ALLOWED_PROGRESS_STATES:
            errors.append(
                TaskValidationError(
                    code="E_INVALID_ENUM",
                    message=f"progressState must be one of {sorted(ALLOWED_PROGRESS_STATES)}",
                    file=file,
                    path=f"{task_path}.progressState",
                )
            )
            ok = False

        if not ok:
            continue

        tasks.append(
            Task(
                id=tid,
                name=name,
                parent_id=parent_id or None,
                subtotal=fields.get("subtotal") or 0,
                quantity=fields.get("quantity"),
                completed_quantity=fields.get("completed_quantity"),
                progress_state=cast(ProgressState, state),
                extra=extra,
            )
        )

    if errors:
        return None, _sorted(errors)
    return tasks, []


def summarize_tasks(tasks: list[Task]) -> str:
    counts = Counter([t.progress_state for t in tasks])
    ordered_states: list[str] = ["todo", "doing", "blocked", "completed", "verified", "accepted"]
    parts = [f"{s}={counts.get(s, 0)}" for s in ordered_states]
    ids = {t.id for t in tasks}
    roots = [t.id for t in tasks if not t.parent_id or t.parent_id not in ids]
    return f"OK: {len(tasks)} tasks (" + ", ".join(parts) + ")\nRoots: " + ", ".join(roots)


def _sorted(errors: Iterable[TaskValidationError]) -> list[TaskValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )

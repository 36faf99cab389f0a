from __future__ import annotations

from collections import Counter
from typing import Any, Optional

from workspace_rules.core.errors import TaskValidationError


# Task snapshot lint rules:
# - L_DUPLICATE_ID: duplicate task ids
# - L_CYCLE_DETECTED: parentId chain loops back on itself
# - L_COMPLETED_EXCEEDS_QUANTITY: completedQuantity negative or above quantity
# - L_DANGLING_PARENT: parentId references an unknown task (strict_parents only)


def lint_tasks(doc: dict[str, Any], *, strict_parents: bool = False) -> list[TaskValidationError]:
    """Lint a task snapshot.

    Runs in addition to validation and works on partially-invalid input
    (best effort). The tree builder tolerates everything reported here; lint
    exists to surface bad data before it reaches a report.
    """

    file = _cast_optional_str(doc.get("__file__"))

    raw_tasks = doc.get("tasks")
    if not isinstance(raw_tasks, list):
        return []

    id_to_index: dict[str, int] = {}
    id_to_raw: dict[str, dict[str, Any]] = {}
    ids: list[str] = []

    for i, raw in enumerate(raw_tasks):
        if not isinstance(raw, dict):
            continue
        tid = raw.get("id")
        if not isinstance(tid, str):
            continue
        ids.append(tid)
        id_to_index.setdefault(tid, i)
        id_to_raw.setdefault(tid, raw)

    errors: list[TaskValidationError] = []

    # Rule: duplicate IDs
    counts = Counter(ids)
    dupes = {k: v for k, v in counts.items() if v > 1}
    if dupes:
        seen: set[str] = set()
        for i, raw in enumerate(raw_tasks):
            if not isinstance(raw, dict):
                continue
            tid = raw.get("id")
            if not isinstance(tid, str) or tid not in dupes:
                continue
            if tid not in seen:
                seen.add(tid)
                continue
            errors.append(
                TaskValidationError(
                    code="L_DUPLICATE_ID",
                    message=f"duplicate task id: {tid} (count={dupes[tid]})",
                    file=file,
                    path=f"tasks[{i}].id",
                )
            )

    id_to_parent: dict[str, Optional[str]] = {
        tid: _parent_of(raw) for tid, raw in id_to_raw.items()
    }

    # Rule: dangling parents
    if strict_parents:
        for tid, parent in id_to_parent.items():
            if parent is not None and parent not in id_to_raw:
                errors.append(
                    TaskValidationError(
                        code="L_DANGLING_PARENT",
                        message=f"parentId references unknown task: {parent}",
                        file=file,
                        path=f"tasks[{id_to_index[tid]}].parentId",
                    )
                )

    # Rule: completed quantity within [0, quantity]
    for tid, raw in id_to_raw.items():
        quantity = raw.get("quantity")
        completed = raw.get("completedQuantity", raw.get("completed_quantity"))
        if not _is_number(completed):
            continue
        if completed < 0 or (_is_number(quantity) and completed > quantity):
            errors.append(
                TaskValidationError(
                    code="L_COMPLETED_EXCEEDS_QUANTITY",
                    message=f"completedQuantity {completed} is outside [0, {quantity}]",
                    file=file,
                    path=f"tasks[{id_to_index[tid]}].completedQuantity",
                )
            )

    # Rule: cycle detection
    for tid, msg in _detect_cycles(id_to_parent):
        errors.append(
            TaskValidationError(
                code="L_CYCLE_DETECTED",
                message=msg,
                file=file,
                path=f"tasks[{id_to_index.get(tid, 0)}].parentId",
            )
        )

    return _sorted(errors)


def _parent_of(raw: dict[str, Any]) -> Optional[str]:
    parent = raw.get("parentId", raw.get("parent_id"))
    return parent if isinstance(parent, str) and parent else None


def _detect_cycles(id_to_parent: dict[str, Optional[str]]) -> list[tuple[str, str]]:
    # Each task has at most one parent, so following the chain from every
    # unvisited task finds each cycle exactly once.
    done: set[str] = set()
    out: list[tuple[str, str]] = []

    for start in id_to_parent:
        if start in done:
            continue
        chain: list[str] = []
        on_chain: set[str] = set()
        cur: Optional[str] = start
        while cur is not None and cur in id_to_parent and cur not in done:
            if cur in on_chain:
                cycle = chain[chain.index(cur):] + [cur]
                out.append((cur, "parent cycle detected: " + " -> ".join(cycle)))
                break
            chain.append(cur)
            on_chain.add(cur)
            cur = id_to_parent[cur]
        done.update(chain)

    return out


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _sorted(errors: list[TaskValidationError]) -> list[TaskValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None

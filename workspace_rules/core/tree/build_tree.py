"""Work-breakdown tree builder.

Turns a flat snapshot of parent-pointer tasks into a forest of TaskNode
objects with WBS numbers, descendant subtotal sums and progress. Pure: the id
map and ancestor paths live only for the duration of one call.
"""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Iterator, Optional, Sequence

from workspace_rules.core.model import Task, TaskNode


logger = logging.getLogger(__name__)

# A task is quantity-tracked when its quantity exceeds this threshold.
MULTI_QUANTITY_THRESHOLD = 1
DEFAULT_QUANTITY = 1
FULL_PROGRESS = 100
COMPLETED_STATES: frozenset[str] = frozenset({"completed", "verified", "accepted"})


def build_task_tree(tasks: Sequence[Task]) -> list[TaskNode]:
    """Build the WBS forest for ``tasks``.

    Never raises for malformed data:

    - a ``parent_id`` that does not resolve makes the task a root;
    - a child already on its ancestor path is skipped (logged, contributes 0);
    - tasks stranded behind a parent cycle are attached under an extra root
      taken from the cycle itself, so every task is emitted exactly once.
    """

    if not tasks:
        return []

    nodes_by_id: dict[str, TaskNode] = {}
    ordered: list[TaskNode] = []
    for t in tasks:
        if t.id in nodes_by_id:
            logger.warning("Duplicate task id ignored: %s", t.id)
            continue
        node = TaskNode(task=t)
        nodes_by_id[t.id] = node
        ordered.append(node)

    children_by_parent: dict[str, list[TaskNode]] = defaultdict(list)
    root_nodes: list[TaskNode] = []
    for node in ordered:
        parent_id = node.task.parent_id
        if parent_id and parent_id in nodes_by_id:
            children_by_parent[parent_id].append(node)
        else:
            root_nodes.append(node)

    placed: set[str] = set()
    roots: list[TaskNode] = []

    for node in root_nodes:
        _build(node, f"{len(roots) + 1}", children_by_parent, placed)
        roots.append(node)

    for node in ordered:
        if node.id in placed:
            continue
        entry = _cycle_entry(node, nodes_by_id)
        logger.warning(
            "Circular dependency detected in tasks: %s has no root; attaching at %s",
            node.id,
            entry.id,
        )
        _build(entry, f"{len(roots) + 1}", children_by_parent, placed)
        roots.append(entry)

    return roots


def iter_task_tree(roots: Sequence[TaskNode]) -> Iterator[tuple[int, TaskNode]]:
    """Yield ``(depth, node)`` pairs in pre-order."""
    stack: list[tuple[int, TaskNode]] = [(0, n) for n in reversed(roots)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        for child in reversed(node.children):
            stack.append((depth + 1, child))


def summarize_tree(roots: Sequence[TaskNode]) -> str:
    count = sum(1 for _ in iter_task_tree(roots))
    total = sum(r.subtotal + r.descendant_sum for r in roots)
    overall = _weighted_progress(roots) if roots else 0
    return (
        f"OK: {count} tasks, {len(roots)} roots"
        f"\nTotal: {format_number(total)}"
        f"\nProgress: {overall}%"
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _build(
    root: TaskNode,
    root_no: str,
    children_by_parent: dict[str, list[TaskNode]],
    placed: set[str],
) -> None:
    # Pre-order pass assigns numbers and children; post-order pass aggregates.
    visit_order: list[TaskNode] = []
    stack: list[tuple[TaskNode, str, frozenset[str]]] = [(root, root_no, frozenset())]

    while stack:
        node, wbs_no, path = stack.pop()
        node.wbs_no = wbs_no
        placed.add(node.id)
        visit_order.append(node)

        inner_path = path | {node.id}
        numbered: list[tuple[str, TaskNode]] = []
        for i, child in enumerate(children_by_parent.get(node.id, []), start=1):
            if child.id in inner_path:
                logger.warning("Circular dependency detected in tasks: %s", child.id)
                continue
            numbered.append((f"{wbs_no}.{i}", child))

        node.children = [child for _, child in numbered]
        for child_no, child in reversed(numbered):
            stack.append((child, child_no, inner_path))

    for node in reversed(visit_order):
        _aggregate(node)


def _aggregate(node: TaskNode) -> None:
    node.descendant_sum = sum(c.subtotal + c.descendant_sum for c in node.children)

    if not node.children:
        node.progress = _leaf_progress(node.task)
    else:
        node.progress = _weighted_progress(node.children)


def _leaf_progress(task: Task) -> int:
    quantity = task.quantity if task.quantity is not None else DEFAULT_QUANTITY
    if quantity > MULTI_QUANTITY_THRESHOLD:
        completed = task.completed_quantity or 0
        return max(0, min(FULL_PROGRESS, round_half_up(completed / quantity * FULL_PROGRESS)))
    return FULL_PROGRESS if task.progress_state in COMPLETED_STATES else 0


def _weighted_progress(nodes: Sequence[TaskNode]) -> int:
    # Weighted by each node's own subtotal, not its descendant sum.
    total = sum(n.subtotal for n in nodes)
    if total > 0:
        return round_half_up(sum(n.progress * n.subtotal for n in nodes) / total)
    return FULL_PROGRESS if all(n.progress == FULL_PROGRESS for n in nodes) else 0


def _cycle_entry(node: TaskNode, nodes_by_id: dict[str, TaskNode]) -> TaskNode:
    """Walk parent pointers from ``node`` and return the first repeated node."""
    seen: set[str] = set()
    cur: Optional[TaskNode] = node
    while cur is not None and cur.id not in seen:
        seen.add(cur.id)
        parent_id = cur.task.parent_id
        cur = nodes_by_id.get(parent_id) if parent_id else None
    return cur if cur is not None else node


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)

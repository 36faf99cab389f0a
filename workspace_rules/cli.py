from __future__ import annotations

from collections import Counter
import json
import os
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from workspace_rules.core.config import SettingsConfigError, configure_logging, load_and_merge
from workspace_rules.core.errors import (
    TaskLoadError,
    TaskValidationError,
    UnknownTierError,
    WorkspaceError,
)
from workspace_rules.core.io.load_tasks import load_tasks
from workspace_rules.core.lint.lint_tasks import lint_tasks
from workspace_rules.core.model import TaskNode
from workspace_rules.core.schedule.schedule_rules import (
    allowed_transitions,
    can_transition_schedule_status,
)
from workspace_rules.core.skill.skill_tier import (
    TIER_DEFINITIONS,
    get_tier_definition,
    resolve_skill_tier,
    tier_satisfies,
)
from workspace_rules.core.tree.build_tree import (
    build_task_tree,
    format_number,
    iter_task_tree,
    summarize_tree,
)
from workspace_rules.core.validate.validate_tasks import summarize_tasks, validate_tasks

LOG_LEVEL_ENV = "WORKSPACE_RULES_LOG_LEVEL"

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def _callback(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (overrides env and settings file)"
    ),
    settings_file: Optional[str] = typer.Option(
        None, "--settings-file", help="Optional YAML settings file"
    ),
) -> None:
    """Workspace rules CLI: task trees, schedule transitions, skill tiers."""
    try:
        settings = load_and_merge(settings_file)
    except FileNotFoundError:
        _print_errors(
            [
                TaskLoadError(
                    code="E_SETTINGS_FILE_NOT_FOUND",
                    message=f"settings file not found: {settings_file}",
                    path="settings_file",
                )
            ]
        )
        raise typer.Exit(code=1)
    except (OSError, UnicodeDecodeError) as e:
        _print_errors(
            [
                TaskLoadError(
                    code="E_SETTINGS_FILE_READ",
                    message=f"cannot read settings file {settings_file}: {e}",
                    path="settings_file",
                )
            ]
        )
        raise typer.Exit(code=1)
    except SettingsConfigError as e:
        _print_errors(
            [
                TaskValidationError(
                    code="E_SETTINGS_FILE_INVALID",
                    message=str(e),
                    path="settings_file",
                )
            ]
        )
        raise typer.Exit(code=2)

    level = log_level or os.getenv(LOG_LEVEL_ENV) or settings["log_level"]
    configure_logging(level)
    ctx.obj = settings


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a task file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a task snapshot file."""
    _check_format(format, "E_VALIDATE_UNKNOWN_FORMAT")

    def _emit_json(ok: bool, *, exit_code: int, errors: list[WorkspaceError], summary: dict | None) -> None:
        payload = {
            "tool": "workspace-rules",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        doc = load_tasks(path)
    except TaskLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    tasks, errors = validate_tasks(doc)
    if errors:
        if format == "json":
            _emit_json(False, exit_code=2, errors=list(errors), summary=None)
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    assert tasks is not None

    if format == "text":
        typer.echo(summarize_tasks(tasks))
        return

    counts = Counter([t.progress_state for t in tasks])
    summary = {
        "task_count": len(tasks),
        "state_counts": {k: int(v) for k, v in counts.items()},
        "roots": [r.id for r in build_task_tree(tasks)],
    }
    _emit_json(True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path to a task file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    strict_parents: Optional[bool] = typer.Option(
        None,
        "--strict-parents/--lenient-parents",
        help="Report parentId values that do not resolve (default from settings)",
    ),
) -> None:
    """Lint a task snapshot (cycles, duplicates, quantities, dangling parents)."""
    _check_format(format, "E_LINT_UNKNOWN_FORMAT")
    settings: dict[str, Any] = ctx.obj or {}
    strict = settings.get("strict_parents", False) if strict_parents is None else strict_parents

    def _emit_json(ok: bool, errors: list[WorkspaceError], exit_code: int) -> None:
        payload = {
            "tool": "workspace-rules",
            "command": "lint",
            "strict_parents": strict,
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        doc = load_tasks(path)
    except TaskLoadError as e:
        if format == "json":
            _emit_json(False, [e], 1)
        _print_errors([e])
        raise typer.Exit(code=1)

    lint_errors = lint_tasks(doc, strict_parents=strict)
    _, validation_errors = validate_tasks(doc)
    # The duplicate-id check runs in both passes; keep the lint finding.
    validation_errors = [e for e in validation_errors if e.code != "E_DUPLICATE_ID"]
    errors: list[WorkspaceError] = list(lint_errors) + list(validation_errors)

    if format == "text":
        if errors:
            _print_errors(errors)
            raise typer.Exit(code=2)
        typer.echo("OK: lint passed")
        return

    if errors:
        _emit_json(False, errors, 2)
    _emit_json(True, [], 0)


@app.command("tree")
def tree(
    path: str = typer.Argument(..., help="Path to a task file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Build the WBS tree: numbering, subtotal roll-up and progress."""
    _check_format(format, "E_TREE_UNKNOWN_FORMAT")

    try:
        doc = load_tasks(path)
    except TaskLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    tasks, errors = validate_tasks(doc)
    if errors or tasks is None:
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    roots = build_task_tree(tasks)

    if format == "json":
        payload = {
            "tool": "workspace-rules",
            "command": "tree",
            "workspace_id": doc.get("workspace_id"),
            "roots": [_node_to_dict(r) for r in roots],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    table = Table(title="WBS")
    table.add_column("WBS", no_wrap=True)
    table.add_column("ID", no_wrap=True)
    table.add_column("Name")
    table.add_column("Subtotal", justify="right", no_wrap=True)
    table.add_column("Descendants", justify="right", no_wrap=True)
    table.add_column("Progress", justify="right", no_wrap=True)
    for depth, node in iter_task_tree(roots):
        table.add_row(
            node.wbs_no,
            Text(node.id),
            Text("  " * depth + node.task.name),
            format_number(node.subtotal),
            format_number(node.descendant_sum),
            f"{node.progress}%",
        )
    Console().print(table)
    typer.echo(summarize_tree(roots))


@app.command("schedule-check")
def schedule_check(
    current: str = typer.Argument(..., help="Current status: PROPOSAL|OFFICIAL|REJECTED"),
    next: str = typer.Argument(..., help="Requested status"),
) -> None:
    """Check whether a schedule item may move from CURRENT to NEXT."""
    if can_transition_schedule_status(current, next):
        typer.echo(f"OK: {current} -> {next}")
        return

    allowed = allowed_transitions(current)
    hint = ", ".join(allowed) if allowed else "none"
    _print_errors(
        [
            TaskValidationError(
                code="E_INVALID_TRANSITION",
                message=f"invalid transition {current} → {next} (allowed from {current}: {hint})",
                path="status",
            )
        ]
    )
    raise typer.Exit(code=2)


@app.command("tier")
def tier(xp: float = typer.Argument(..., help="Experience points")) -> None:
    """Resolve the skill tier for an XP value."""
    d = get_tier_definition(resolve_skill_tier(xp))
    typer.echo(f"{d.tier} (rank {d.rank}, {d.label})")


@app.command("tiers")
def tiers() -> None:
    """List the tier table."""
    typer.echo("Tiers:")
    for d in TIER_DEFINITIONS:
        upper = f"{d.max_xp}" if d.rank < len(TIER_DEFINITIONS) else "+"
        typer.echo(f"- {d.rank} {d.tier}: {d.min_xp}..{upper}")


@app.command("tier-satisfies")
def tier_satisfies_cmd(
    granted: str = typer.Argument(..., help="Granted tier id"),
    minimum: str = typer.Argument(..., help="Minimum required tier id"),
) -> None:
    """Exit 0 when GRANTED meets the MINIMUM tier, 2 otherwise."""
    try:
        ok = tier_satisfies(granted, minimum)
    except UnknownTierError as e:
        _print_errors([e])
        raise typer.Exit(code=2)

    if not ok:
        typer.echo(f"NO: {granted} does not satisfy {minimum}")
        raise typer.Exit(code=2)
    typer.echo(f"OK: {granted} satisfies {minimum}")


def _check_format(format: str, code: str) -> None:
    if format not in ("text", "json"):
        err = TaskValidationError(
            code=code,
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _to_item(e: WorkspaceError) -> dict:
    if isinstance(e, TaskLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    else:
        source = "validate"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _node_to_dict(node: TaskNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "name": node.task.name,
        "wbsNo": node.wbs_no,
        "subtotal": node.subtotal,
        "descendantSum": node.descendant_sum,
        "progress": node.progress,
        "children": [_node_to_dict(c) for c in node.children],
    }


def _print_errors(errors: list[WorkspaceError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="workspace-rules")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()

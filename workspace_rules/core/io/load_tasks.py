from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from workspace_rules.core.errors import TaskLoadError


def load_tasks(path: str) -> dict[str, Any]:
    """Load a YAML/JSON task snapshot.

    Returns a dict with keys: workspace_id, tasks, __file__.
    Does not coerce types; the validator owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise TaskLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TaskLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise TaskLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except TaskLoadError:
        raise
    except (yaml.YAMLError, ValueError) as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise TaskLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise TaskLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object with a tasks list",
            file=str(p),
        )

    workspace_id = data.get("workspaceId", data.get("workspace_id"))
    return {
        "workspace_id": workspace_id,
        "tasks": data.get("tasks"),
        "__file__": str(p),
    }

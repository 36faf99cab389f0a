from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml


DEFAULT_SETTINGS: dict[str, Any] = {
    "log_level": "WARNING",
    # Report parentId values that do not resolve. The tree builder still
    # treats such tasks as roots either way.
    "strict_parents": False,
}

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SettingsConfigError(ValueError):
    pass


def load_settings_file(path: str | Path) -> dict[str, Any]:
    """Load settings overrides from a YAML file.

    Format:
      log_level: INFO
      strict_parents: true

    Unknown keys and wrongly-typed values are rejected.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SettingsConfigError(f"settings file is not valid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SettingsConfigError("settings file must be a mapping of name -> value")

    out: dict[str, Any] = {}
    for k, v in raw.items():
        if k not in DEFAULT_SETTINGS:
            raise SettingsConfigError(
                f"unknown setting '{k}' (choose from: {', '.join(sorted(DEFAULT_SETTINGS))})"
            )
        if k == "log_level":
            if not isinstance(v, str) or v.strip().upper() not in LOG_LEVELS:
                raise SettingsConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
            v = v.strip().upper()
        elif k == "strict_parents" and not isinstance(v, bool):
            raise SettingsConfigError("strict_parents must be true or false")
        out[k] = v
    return out


def merged_settings(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    merged = dict(DEFAULT_SETTINGS)
    if overrides:
        merged.update(overrides)
    return merged


def load_and_merge(settings_file: str | None) -> dict[str, Any]:
    if not settings_file:
        return merged_settings()
    return merged_settings(load_settings_file(settings_file))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

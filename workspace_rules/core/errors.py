from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class WorkspaceError(Exception):
    """Base error envelope. Validators return these; use cases raise them."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<workspace>"
        return f"{loc}: {self.code}: {self.message}"


class TaskLoadError(WorkspaceError):
    pass


class TaskValidationError(WorkspaceError):
    pass


class ScheduleTransitionError(WorkspaceError):
    pass


class UnknownTierError(WorkspaceError):
    pass

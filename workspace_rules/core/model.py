from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional


ProgressState = Literal["todo", "doing", "blocked", "completed", "verified", "accepted"]
ScheduleStatus = Literal["PROPOSAL", "OFFICIAL", "REJECTED"]
SkillTier = Literal[
    "apprentice",
    "journeyman",
    "expert",
    "artisan",
    "grandmaster",
    "legendary",
    "titan",
]


@dataclass(frozen=True)
class Task:
    id: str
    name: str = ""
    parent_id: Optional[str] = None
    subtotal: float = 0
    quantity: Optional[float] = None
    completed_quantity: Optional[float] = None
    progress_state: ProgressState = "todo"

    # Unknown document fields; never read by the tree builder.
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TaskNode:
    task: Task
    children: list[TaskNode] = field(default_factory=list)
    descendant_sum: float = 0
    wbs_no: str = ""
    progress: int = 0

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def subtotal(self) -> float:
        return self.task.subtotal or 0


@dataclass(frozen=True)
class ScheduleItem:
    id: str
    account_id: str
    workspace_id: str
    title: str
    status: ScheduleStatus = "PROPOSAL"


@dataclass(frozen=True)
class TierDefinition:
    tier: SkillTier
    rank: int
    label: str
    min_xp: int  # inclusive
    max_xp: int  # exclusive, except the top tier which is open-ended
    color: str


@dataclass(frozen=True)
class SkillGrant:
    tag_slug: str
    tier: SkillTier
    tag_id: Optional[str] = None


@dataclass(frozen=True)
class SkillRequirement:
    tag_slug: str
    minimum_tier: SkillTier
    quantity: int = 1
    tag_id: Optional[str] = None

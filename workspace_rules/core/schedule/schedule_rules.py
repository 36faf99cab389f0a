from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from workspace_rules.core.errors import ScheduleTransitionError
from workspace_rules.core.model import ScheduleItem, ScheduleStatus


logger = logging.getLogger(__name__)

# current status -> statuses it may move to. REJECTED is terminal.
VALID_STATUS_TRANSITIONS: dict[str, tuple[ScheduleStatus, ...]] = {
    "PROPOSAL": ("OFFICIAL", "REJECTED"),
    "OFFICIAL": ("REJECTED",),
    "REJECTED": (),
}

UpdateStatusFn = Callable[[str, str, ScheduleStatus], None]


def can_transition_schedule_status(current: str, next: str) -> bool:
    return next in VALID_STATUS_TRANSITIONS.get(current, ())


def allowed_transitions(current: str) -> list[ScheduleStatus]:
    return list(VALID_STATUS_TRANSITIONS.get(current, ()))


def approve_schedule_item(item: ScheduleItem, update_status: UpdateStatusFn) -> ScheduleItem:
    """Move a proposal to OFFICIAL, persisting through ``update_status``.

    Raises ScheduleTransitionError without touching persistence when the
    item's current status does not allow approval.
    """
    return _transition(item, "OFFICIAL", "approve", update_status)


def reject_schedule_item(item: ScheduleItem, update_status: UpdateStatusFn) -> ScheduleItem:
    """Move a PROPOSAL or OFFICIAL item to REJECTED."""
    return _transition(item, "REJECTED", "reject", update_status)


def _transition(
    item: ScheduleItem,
    next: ScheduleStatus,
    verb: str,
    update_status: UpdateStatusFn,
) -> ScheduleItem:
    if not can_transition_schedule_status(item.status, next):
        raise ScheduleTransitionError(
            code="E_INVALID_TRANSITION",
            message=f"Cannot {verb}: invalid transition {item.status} → {next}",
            path=f"schedule_items[{item.id}].status",
        )

    update_status(item.account_id, item.id, next)
    logger.info("Schedule item %s: %s -> %s", item.id, item.status, next)
    return replace(item, status=next)

"""Seven-tier proficiency scale.

Tier is always derived from XP with resolve_skill_tier(); nothing stores it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from workspace_rules.core.errors import UnknownTierError
from workspace_rules.core.model import SkillGrant, SkillRequirement, SkillTier, TierDefinition


TIER_DEFINITIONS: tuple[TierDefinition, ...] = (
    TierDefinition("apprentice", 1, "Apprentice", 0, 75, "#CCEDEB"),
    TierDefinition("journeyman", 2, "Journeyman", 75, 150, "#A2C7C7"),
    TierDefinition("expert", 3, "Expert", 150, 225, "#78A1A3"),
    TierDefinition("artisan", 4, "Artisan", 225, 300, "#4D7A7F"),
    TierDefinition("grandmaster", 5, "Grandmaster", 300, 375, "#23545B"),
    TierDefinition("legendary", 6, "Legendary", 375, 450, "#17393E"),
    TierDefinition("titan", 7, "Titan", 450, 525, "#0A1F21"),
)

_TIER_BY_ID: dict[str, TierDefinition] = {d.tier: d for d in TIER_DEFINITIONS}

SKILL_XP_MIN = 0
SKILL_XP_MAX = 525


@dataclass(frozen=True)
class XpChange:
    new_xp: float
    xp_delta: float


def get_tier_definition(tier: str) -> TierDefinition:
    d = _TIER_BY_ID.get(tier)
    if d is None:
        raise UnknownTierError(
            code="E_UNKNOWN_TIER",
            message=f'Unknown SkillTier: "{tier}" (choose one of: {", ".join(_TIER_BY_ID)})',
            path="tier",
        )
    return d


def resolve_skill_tier(xp: float) -> SkillTier:
    for d in TIER_DEFINITIONS:
        if xp < d.max_xp:
            return d.tier
    return "titan"


get_tier = resolve_skill_tier


def get_tier_rank(tier: str) -> int:
    return get_tier_definition(tier).rank


def tier_satisfies(granted_tier: str, minimum_tier: str) -> bool:
    """A higher (or equal) tier always satisfies a lower minimum."""
    return get_tier_rank(granted_tier) >= get_tier_rank(minimum_tier)


def grant_satisfies_requirement(
    grants: Iterable[SkillGrant], requirement: SkillRequirement
) -> bool:
    """Return True if any grant meets the requirement's skill and tier.

    Matches on tag_slug, falling back to tag_id when both sides carry one.
    Headcount (requirement.quantity) is not checked here.
    """
    minimum_rank = get_tier_rank(requirement.minimum_tier)
    for g in grants:
        slug_match = g.tag_slug == requirement.tag_slug
        id_match = (
            requirement.tag_id is not None
            and g.tag_id is not None
            and g.tag_id == requirement.tag_id
        )
        if (slug_match or id_match) and get_tier_rank(g.tier) >= minimum_rank:
            return True
    return False


def clamp_xp(xp: float) -> float:
    return max(SKILL_XP_MIN, min(SKILL_XP_MAX, xp))


def apply_xp_delta(old_xp: float, delta: float) -> XpChange:
    """Apply a signed XP delta, clamped to [SKILL_XP_MIN, SKILL_XP_MAX].

    ``xp_delta`` is the delta actually applied, which is what a ledger entry
    should record.
    """
    new_xp = clamp_xp(old_xp + delta)
    return XpChange(new_xp=new_xp, xp_delta=new_xp - old_xp)

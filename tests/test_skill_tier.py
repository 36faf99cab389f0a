import pytest

from workspace_rules.core.errors import UnknownTierError
from workspace_rules.core.model import SkillGrant, SkillRequirement
from workspace_rules.core.skill.skill_tier import (
    SKILL_XP_MAX,
    TIER_DEFINITIONS,
    apply_xp_delta,
    get_tier,
    get_tier_definition,
    get_tier_rank,
    grant_satisfies_requirement,
    resolve_skill_tier,
    tier_satisfies,
)


def test_resolve_tier_boundaries():
    assert resolve_skill_tier(0) == "apprentice"
    assert resolve_skill_tier(74.9) == "apprentice"
    assert resolve_skill_tier(75) == "journeyman"
    assert resolve_skill_tier(449) == "legendary"
    assert resolve_skill_tier(450) == "titan"
    assert resolve_skill_tier(1000) == "titan"


def test_resolve_tier_below_range():
    assert resolve_skill_tier(-20) == "apprentice"


def test_get_tier_is_alias():
    assert get_tier(200) == resolve_skill_tier(200) == "expert"


def test_table_is_contiguous_and_ranked():
    for lower, upper in zip(TIER_DEFINITIONS, TIER_DEFINITIONS[1:]):
        assert lower.max_xp == upper.min_xp
        assert upper.rank == lower.rank + 1
    assert TIER_DEFINITIONS[-1].max_xp == SKILL_XP_MAX


def test_tier_rank_and_satisfies():
    assert get_tier_rank("apprentice") == 1
    assert get_tier_rank("titan") == 7
    assert tier_satisfies("expert", "journeyman") is True
    assert tier_satisfies("expert", "expert") is True
    assert tier_satisfies("apprentice", "expert") is False


def test_unknown_tier_is_a_hard_error():
    with pytest.raises(UnknownTierError) as exc:
        get_tier_definition("wizard")
    assert exc.value.code == "E_UNKNOWN_TIER"


def test_grant_matches_by_slug_and_tier():
    grants = [SkillGrant(tag_slug="welding", tier="artisan")]
    assert grant_satisfies_requirement(grants, SkillRequirement("welding", "expert")) is True
    assert grant_satisfies_requirement(grants, SkillRequirement("welding", "titan")) is False
    assert grant_satisfies_requirement(grants, SkillRequirement("masonry", "apprentice")) is False


def test_grant_matches_by_tag_id_fallback():
    grants = [SkillGrant(tag_slug="old-slug", tier="expert", tag_id="tag-9")]
    req = SkillRequirement("new-slug", "journeyman", tag_id="tag-9")
    assert grant_satisfies_requirement(grants, req) is True
    assert grant_satisfies_requirement(grants, SkillRequirement("new-slug", "journeyman")) is False


def test_apply_xp_delta_clamps_and_reports_applied_delta():
    up = apply_xp_delta(500, 100)
    assert up.new_xp == SKILL_XP_MAX
    assert up.xp_delta == 25

    down = apply_xp_delta(30, -50)
    assert down.new_xp == 0
    assert down.xp_delta == -30

    plain = apply_xp_delta(100, 60)
    assert plain.new_xp == 160
    assert resolve_skill_tier(plain.new_xp) == "expert"

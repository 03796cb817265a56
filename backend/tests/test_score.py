import pytest

from collabmatch.core.schemas import MatchReasons, MatchResult, MatchTier
from collabmatch.core.utils import round_half_up
from collabmatch.pipeline.score import (
    describe_match,
    dream_brand_match,
    filter_golden_matches,
    hybrid_match_score,
    is_golden_match,
    match_tier,
    rule_based_score,
    semantic_score,
)


def test_full_rule_match_scores_100_and_hybrid_equals_rule(make_brief, make_creator) -> None:
    result = hybrid_match_score(make_brief(), make_creator(), brief_embedding=None, brand_name="Acme")
    assert result.rule_score == 100
    assert result.semantic_score == 0
    assert result.score == 100
    assert result.tier == MatchTier.GOLDEN
    assert not result.is_dream_brand


def test_budget_above_ceiling_loses_ten_points(make_brief, make_creator) -> None:
    result = hybrid_match_score(make_brief(), make_creator(min_budget=600), None)
    assert result.rule_score == 90
    assert result.score == 90
    assert result.reasons.budget is False


def test_not_seeking_loses_25(make_brief, make_creator) -> None:
    score, _ = rule_based_score(make_brief(), make_creator(actively_seeking=False))
    assert score == 75


def test_niche_matches_substring_either_way(make_brief, make_creator) -> None:
    brief = make_brief(target_niches=["Fitness & Wellness"])
    score, reasons = rule_based_score(brief, make_creator(niche="fitness"))
    assert reasons.niche
    assert score == 100

    score, reasons = rule_based_score(brief, make_creator(niche="beauty"))
    assert not reasons.niche
    assert score == 75


def test_no_niche_requirement_is_automatic_match(make_brief, make_creator) -> None:
    _, reasons = rule_based_score(make_brief(target_niches=[]), make_creator(niche=None))
    assert reasons.niche


@pytest.mark.parametrize(
    "followers,points",
    [
        (50_000, 20),
        (8_500, 10),
        (115_000, 10),
        (7_000, 0),
        (125_000, 0),
    ],
)
def test_follower_band_with_partial_credit(make_brief, make_creator, followers, points) -> None:
    base, _ = rule_based_score(make_brief(), make_creator(follower_count=0))
    score, _ = rule_based_score(make_brief(), make_creator(follower_count=followers))
    assert score - base == points


def test_follower_tolerance_is_configurable(make_brief, make_creator) -> None:
    creator = make_creator(follower_count=9_000)
    tight, _ = rule_based_score(make_brief(), creator, {"follower_tolerance": 0.05})
    loose, _ = rule_based_score(make_brief(), creator, {"follower_tolerance": 0.2})
    assert loose - tight == 10


@pytest.mark.parametrize("rate,points", [(3.0, 15), (2.0, 15), (1.7, 8), (1.5, 0), (None, 0)])
def test_engagement_partial_credit(make_brief, make_creator, rate, points) -> None:
    base, _ = rule_based_score(make_brief(min_engagement_rate=2.0), make_creator(engagement_rate=0.0))
    score, _ = rule_based_score(make_brief(min_engagement_rate=2.0), make_creator(engagement_rate=rate))
    assert score - base == points


def test_missing_brief_bounds_are_open(make_brief, make_creator) -> None:
    brief = make_brief(min_followers=None, max_followers=None, min_engagement_rate=None, budget_max=None)
    creator = make_creator(follower_count=None, engagement_rate=None, min_budget=99_999)
    score, reasons = rule_based_score(brief, creator)
    assert reasons.followers and reasons.engagement and reasons.budget
    assert score == 100


def test_campaign_type_overlap(make_brief, make_creator) -> None:
    _, reasons = rule_based_score(make_brief(), make_creator(preferred_campaign_types=["story"]))
    assert not reasons.campaign_type
    _, reasons = rule_based_score(make_brief(), make_creator(preferred_campaign_types=[]))
    assert reasons.campaign_type


def test_semantic_score_remaps_similarity_window() -> None:
    assert semantic_score(None, [1.0, 0.0]) == 0
    assert semantic_score([1.0, 0.0], None) == 0
    assert semantic_score([1.0, 0.0], [1.0, 0.0]) == 100
    assert semantic_score([1.0, 0.0], [0.0, 1.0]) == 0
    assert semantic_score([1.0, 0.0], [-1.0, 0.0]) == 0
    # cos = 0.8 -> (0.8 - 0.5) * 200 = 60
    assert semantic_score([1.0, 0.0], [0.8, 0.6]) == 60


def test_semantic_window_is_configurable() -> None:
    # cos = 0.8 on a [0.6, 1.0] window -> 50
    assert semantic_score([1.0, 0.0], [0.8, 0.6], {"semantic_floor": 0.6, "semantic_ceiling": 1.0}) == 50


def test_hybrid_blends_semantic_and_rule(make_brief, make_creator) -> None:
    creator = make_creator(min_budget=600, embedding=[0.8, 0.6])
    result = hybrid_match_score(make_brief(), creator, [1.0, 0.0])
    # 0.6 * 60 + 0.4 * 90 = 72
    assert result.semantic_score == 60
    assert result.rule_score == 90
    assert result.score == 72
    assert result.tier == MatchTier.GREAT
    assert result.reasons.semantic is True


def test_semantic_reason_needs_more_than_threshold(make_brief, make_creator) -> None:
    # cos = 0.75 -> 50, not above 50
    creator = make_creator(embedding=[0.75, (1 - 0.75 ** 2) ** 0.5])
    result = hybrid_match_score(make_brief(), creator, [1.0, 0.0])
    assert result.semantic_score == 50
    assert result.reasons.semantic is False


def test_creator_without_embedding_scores_rule_only(make_brief, make_creator) -> None:
    result = hybrid_match_score(make_brief(), make_creator(min_budget=600, embedding=None), [1.0, 0.0])
    assert result.semantic_score == 0
    assert result.score == result.rule_score


def test_dream_brand_boost_clamps_at_100(make_brief, make_creator) -> None:
    # rule 80 (budget fails, followers partial), semantic 80 (cos 0.9)
    # pre-boost 0.6 * 80 + 0.4 * 80 = 80 -> x1.5 = 120 -> 100
    creator = make_creator(
        niche="cooking",
        follower_count=9_000,
        min_budget=600,
        preferred_campaign_types=["reel"],
        dream_brands=["LiftShake Co"],
        embedding=[0.9, (1 - 0.81) ** 0.5],
    )
    brief = make_brief(target_niches=[])
    plain = hybrid_match_score(brief, creator, [1.0, 0.0], brand_name="Other")
    boosted = hybrid_match_score(brief, creator, [1.0, 0.0], brand_name="liftshake")
    assert plain.score == 80
    assert boosted.score == 100
    assert boosted.is_dream_brand and boosted.reasons.dream_brand


def test_dream_brand_boost_below_cap(make_brief, make_creator) -> None:
    creator = make_creator(actively_seeking=False, niche="gaming", dream_brands=["Acme"])
    plain = hybrid_match_score(make_brief(), creator, None, brand_name="Zenith")
    boosted = hybrid_match_score(make_brief(), creator, None, brand_name="ACME")
    assert plain.score == 50
    assert boosted.score == 75


def test_dream_brand_match_rules() -> None:
    assert dream_brand_match("Nike", ["nike running"])
    assert dream_brand_match("  Nike Running ", ["nike"])
    assert not dream_brand_match("", ["nike"])
    assert not dream_brand_match(None, ["nike"])
    assert not dream_brand_match("Nike", [])
    assert not dream_brand_match("Nike", ["Adidas"])


def test_halves_round_up(make_brief, make_creator) -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(34.5) == 35
    # rule 23 (partial engagement 8 + budget 10 + type 5), boosted x1.5 = 34.5
    creator = make_creator(
        actively_seeking=False,
        niche="gaming",
        follower_count=500,
        engagement_rate=1.7,
        dream_brands=["Acme"],
    )
    result = hybrid_match_score(make_brief(), creator, None, brand_name="Acme")
    assert result.rule_score == 23
    assert result.score == 35


def test_scores_always_within_bounds(make_brief, make_creator) -> None:
    briefs = [make_brief(), make_brief(target_niches=[], budget_max=None), make_brief(min_followers=0)]
    creators = [
        make_creator(),
        make_creator(actively_seeking=False, niche=None, follower_count=0, engagement_rate=0.0),
        make_creator(dream_brands=["Brand"], embedding=[1.0, 0.0]),
    ]
    for b in briefs:
        for c in creators:
            r = hybrid_match_score(b, c, [1.0, 0.0], brand_name="Brand")
            assert 0 <= r.score <= 100
            assert 0 <= r.rule_score <= 100
            assert 0 <= r.semantic_score <= 100


@pytest.mark.parametrize(
    "score,tier",
    [(100, MatchTier.GOLDEN), (85, MatchTier.GOLDEN), (84, MatchTier.GREAT), (70, MatchTier.GREAT),
     (69, MatchTier.GOOD), (50, MatchTier.GOOD), (49, MatchTier.FAIR), (0, MatchTier.FAIR)],
)
def test_tiers(score, tier) -> None:
    assert match_tier(score) == tier


def _result(score: int, **reasons) -> MatchResult:
    return MatchResult(
        creator_id=f"c{score}",
        score=score,
        semantic_score=0,
        rule_score=score,
        reasons=MatchReasons(**reasons),
        tier=match_tier(score),
        is_dream_brand=reasons.get("dream_brand", False),
    )


def test_golden_helpers() -> None:
    results = [_result(90), _result(85), _result(84)]
    assert is_golden_match(results[1])
    assert not is_golden_match(results[2])
    assert [r.score for r in filter_golden_matches(results)] == [90, 85]


def test_describe_match() -> None:
    assert describe_match(_result(10)) == "Potential match based on your profile"
    text = describe_match(_result(95, dream_brand=True, semantic=True, niche=True, engagement=True, budget=True))
    assert text == (
        "This is a dream brand for you!. Great content fit based on your style. Matches your niche. "
        "Your engagement rate meets requirements. Budget aligns with your expectations"
    )

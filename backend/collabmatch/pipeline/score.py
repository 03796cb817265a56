# backend/collabmatch/pipeline/score.py
"""
Scoring: rule-based criteria + semantic similarity -> hybrid score (+ dream-brand boost).

Entry:
    hybrid_match_score(brief, creator, brief_embedding, brand_name, options) -> MatchResult
    run_score(state) -> state   (stage 2: re-check availability, score, rank, truncate)

Rule table (0-100, additive, capped):
    actively seeking 25 | niche 25 | followers 20 (10 partial) | engagement 15 (8 partial)
    budget 10 | campaign type 5
Hybrid = 0.6 * semantic + 0.4 * rule when a semantic score exists, else rule only.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from collabmatch.core.config import DEFAULT_OPTIONS
from collabmatch.core.embeddings import cosine_similarity
from collabmatch.core.errors import DimensionMismatch
from collabmatch.core.schemas import Brief, CreatorProfile, MatchReasons, MatchRecord, MatchResult, MatchTier
from collabmatch.core.utils import clamp, either_contains, norm, round_half_up

from .availability import check_for_brief

if TYPE_CHECKING:
    from .state import MatchRunState

logger = logging.getLogger("collabmatch.pipeline")

# --------- tiers ----------
GOLDEN_MIN_SCORE = 85
TIER_THRESHOLDS: Tuple[Tuple[int, MatchTier], ...] = (
    (GOLDEN_MIN_SCORE, MatchTier.GOLDEN),
    (70, MatchTier.GREAT),
    (50, MatchTier.GOOD),
)


def match_tier(score: int) -> MatchTier:
    for floor, tier in TIER_THRESHOLDS:
        if score >= floor:
            return tier
    return MatchTier.FAIR


def is_golden_match(result: Union[MatchResult, MatchRecord]) -> bool:
    return result.score >= GOLDEN_MIN_SCORE


def filter_golden_matches(results: Iterable[MatchResult]) -> List[MatchResult]:
    return [r for r in results if is_golden_match(r)]


def _opt(options: Optional[Dict[str, Any]], key: str) -> Any:
    if options and key in options:
        return options[key]
    return DEFAULT_OPTIONS[key]


# ---------- 1) Rule-based ----------
def rule_based_score(
    brief: Brief,
    creator: CreatorProfile,
    options: Optional[Dict[str, Any]] = None,
) -> Tuple[int, MatchReasons]:
    tolerance = float(_opt(options, "follower_tolerance"))
    partial_ratio = float(_opt(options, "engagement_partial_ratio"))

    score = 0
    reasons = MatchReasons()

    if creator.actively_seeking:
        score += 25

    # niche: no requirement = auto match
    if not brief.target_niches:
        score += 25
        reasons.niche = True
    elif creator.niche and any(either_contains(creator.niche, n) for n in brief.target_niches):
        score += 25
        reasons.niche = True

    followers = creator.follower_count or 0
    lo = brief.min_followers or 0
    hi = brief.max_followers or math.inf
    if lo <= followers <= hi:
        score += 20
        reasons.followers = True
    elif lo * (1 - tolerance) <= followers <= hi * (1 + tolerance):
        score += 10
        reasons.followers = True

    engagement = creator.engagement_rate or 0.0
    floor = brief.min_engagement_rate or 0.0
    if engagement >= floor:
        score += 15
        reasons.engagement = True
    elif engagement >= floor * partial_ratio:
        score += 8
        reasons.engagement = True

    creator_min = creator.min_budget or 0.0
    ceiling = brief.budget_max or math.inf
    if ceiling >= creator_min:
        score += 10
        reasons.budget = True

    if not creator.preferred_campaign_types:
        score += 5
        reasons.campaign_type = True
    elif set(brief.campaign_types) & set(creator.preferred_campaign_types):
        score += 5
        reasons.campaign_type = True

    return min(100, score), reasons


# ---------- 2) Semantic ----------
def semantic_score(
    brief_embedding: Optional[Sequence[float]],
    creator_embedding: Optional[Sequence[float]],
    options: Optional[Dict[str, Any]] = None,
) -> int:
    """Remap cosine similarity from [floor, ceiling] onto [0, 100]; 0 when either vector is missing."""
    if not brief_embedding or not creator_embedding:
        return 0
    floor = float(_opt(options, "semantic_floor"))
    ceiling = float(_opt(options, "semantic_ceiling"))
    if ceiling <= floor:
        raise ValueError("semantic_ceiling must be greater than semantic_floor")
    sim = cosine_similarity(brief_embedding, creator_embedding)
    raw = (sim - floor) / (ceiling - floor) * 100.0
    return round_half_up(clamp(raw, 0.0, 100.0))


# ---------- 3) Dream brand ----------
def dream_brand_match(brand_name: Optional[str], dream_brands: Optional[Sequence[str]]) -> bool:
    if not norm(brand_name) or not dream_brands:
        return False
    return any(either_contains(brand_name, d) for d in dream_brands)


# ---------- 4) Hybrid ----------
def hybrid_match_score(
    brief: Brief,
    creator: CreatorProfile,
    brief_embedding: Optional[Sequence[float]],
    brand_name: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
) -> MatchResult:
    weights = dict(DEFAULT_OPTIONS["weights"])
    weights.update(_opt(options, "weights") or {})
    multiplier = float(_opt(options, "dream_brand_multiplier"))
    semantic_threshold = int(_opt(options, "semantic_match_threshold"))

    rule, reasons = rule_based_score(brief, creator, options)
    semantic = semantic_score(brief_embedding, creator.embedding, options)
    is_dream = dream_brand_match(brand_name, creator.dream_brands)

    if semantic > 0:
        blended = weights["semantic"] * semantic + weights["rule"] * rule
    else:
        # no usable vectors: pure rule-based fallback
        blended = float(rule)

    if is_dream:
        blended *= multiplier

    hybrid = round_half_up(clamp(blended, 0.0, 100.0))

    reasons.semantic = semantic > semantic_threshold
    reasons.dream_brand = is_dream

    return MatchResult(
        creator_id=creator.id,
        score=hybrid,
        semantic_score=semantic,
        rule_score=rule,
        reasons=reasons,
        is_dream_brand=is_dream,
        tier=match_tier(hybrid),
    )


# ---------- 5) Narrative ----------
def describe_match(result: Union[MatchResult, MatchRecord]) -> str:
    """Short creator-facing explanation of why an opportunity was surfaced."""
    parts: List[str] = []
    if result.is_dream_brand:
        parts.append("This is a dream brand for you!")
    if result.reasons.semantic:
        parts.append("Great content fit based on your style")
    if result.reasons.niche:
        parts.append("Matches your niche")
    if result.reasons.engagement:
        parts.append("Your engagement rate meets requirements")
    if result.reasons.budget:
        parts.append("Budget aligns with your expectations")
    if not parts:
        parts.append("Potential match based on your profile")
    return ". ".join(parts)


# ---------- 6) Stage entry ----------
def run_score(state: "MatchRunState") -> "MatchRunState":
    """
    Score every candidate in state["candidates"] and write the ranked list to state["results"].
    Candidates that fail the availability re-check are skipped.
    """
    brief = state["brief"]
    opts = state["options"]
    brief_vec = state.get("brief_embedding")
    brand_name = state.get("brand_name")

    results: List[MatchResult] = []
    skipped = 0
    for creator in state.get("candidates", []):
        if not check_for_brief(creator, brief).is_available:
            skipped += 1
            continue
        try:
            result = hybrid_match_score(brief, creator, brief_vec, brand_name, opts)
        except DimensionMismatch as e:
            logger.warning("[score] creator %s: %s; scoring on rules only", creator.id, e)
            state["audit"].append(f"creator {creator.id}: embedding dimension mismatch")
            result = hybrid_match_score(brief, creator, None, brand_name, opts)
        results.append(result)

    min_score = int(opts.get("min_score") or 0)
    max_matches = int(opts.get("max_matches") or DEFAULT_OPTIONS["max_matches"])
    kept = [r for r in results if r.score >= min_score]
    kept.sort(key=lambda r: (-r.score, r.creator_id))

    state["results"] = kept[:max_matches]
    state["audit"].append(
        f"scored={len(results)} skipped={skipped} kept={len(state['results'])}"
    )
    return state


__all__ = [
    "GOLDEN_MIN_SCORE",
    "match_tier",
    "is_golden_match",
    "filter_golden_matches",
    "rule_based_score",
    "semantic_score",
    "dream_brand_match",
    "hybrid_match_score",
    "describe_match",
    "run_score",
]

# backend/collabmatch/pipeline/availability.py
"""
Availability gate: can this creator take on this brief at all?

Entry:
    check_creator_availability(creator, budget_ceiling, campaign_types) -> AvailabilityResult
    filter_available(creators, brief) -> [creator, ...]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from collabmatch.core.schemas import Brief, CreatorProfile


@dataclass(frozen=True)
class AvailabilityResult:
    is_available: bool
    is_seeking: bool
    has_capacity: bool
    meets_budget: bool
    matches_campaign_type: bool
    reasons: List[str] = field(default_factory=list)


def _fmt_money(x: float) -> str:
    return f"${int(x)}" if float(x).is_integer() else f"${x:.2f}"


def check_creator_availability(
    creator: CreatorProfile,
    budget_ceiling: Optional[float],
    campaign_types: Sequence[str],
) -> AvailabilityResult:
    reasons: List[str] = []

    is_seeking = creator.actively_seeking is True
    if not is_seeking:
        reasons.append("Creator is not actively seeking partnerships")

    capacity = creator.effective_capacity
    current = creator.current_partnerships
    has_capacity = current < capacity
    if not has_capacity:
        reasons.append(f"Creator at full capacity ({current}/{capacity} partnerships)")

    meets_budget = True
    if creator.min_budget is not None and budget_ceiling is not None:
        meets_budget = budget_ceiling >= creator.min_budget
        if not meets_budget:
            reasons.append(f"Budget below creator minimum ({_fmt_money(creator.min_budget)})")

    # empty preference list = accepts any campaign type
    matches_type = True
    if creator.preferred_campaign_types:
        matches_type = bool(set(campaign_types) & set(creator.preferred_campaign_types))
        if not matches_type:
            reasons.append("Campaign type not in creator preferences")

    return AvailabilityResult(
        is_available=is_seeking and has_capacity and meets_budget and matches_type,
        is_seeking=is_seeking,
        has_capacity=has_capacity,
        meets_budget=meets_budget,
        matches_campaign_type=matches_type,
        reasons=reasons,
    )


def check_for_brief(creator: CreatorProfile, brief: Brief) -> AvailabilityResult:
    return check_creator_availability(creator, brief.budget_max, brief.campaign_types)


def filter_available(creators: Iterable[CreatorProfile], brief: Brief) -> List[CreatorProfile]:
    return [c for c in creators if check_for_brief(c, brief).is_available]


__all__ = [
    "AvailabilityResult",
    "check_creator_availability",
    "check_for_brief",
    "filter_available",
]

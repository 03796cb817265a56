# backend/collabmatch/partnerships/health.py
"""
Partnership health: progress, deadlines, stalls and (when relay data exists) responsiveness.

Classification only ever escalates: healthy < needs_attention < at_risk.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from collabmatch.core.errors import NotFound
from collabmatch.core.schemas import HealthStatus, Partnership, PartnershipHealthMetrics, PartnershipStatus
from collabmatch.core.utils import ensure_aware, round_half_up, utcnow, whole_days_between
from collabmatch.db.store import Store

STALLED_NEGOTIATION_DAYS = 7
STALLED_EXECUTION_DAYS = 30
STALLED_EXECUTION_PROGRESS = 50
STALLED_REVIEW_DAYS = 5
SLOW_COMMUNICATION_SCORE = 50

# at_risk outranks needs_attention; a later, milder rule never lowers the status
_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.NEEDS_ATTENTION: 1,
    HealthStatus.AT_RISK: 2,
}


def _escalate(current: HealthStatus, candidate: HealthStatus) -> HealthStatus:
    return candidate if _SEVERITY[candidate] > _SEVERITY[current] else current


def deliverable_progress(partnership: Partnership) -> int:
    total = sum(d.quantity for d in partnership.deliverables)
    if total <= 0:
        return 0
    done = sum(min(d.completed, d.quantity) for d in partnership.deliverables)
    return round_half_up(done / total * 100)


def communication_score(response_times: Optional[Sequence[float]]) -> Optional[int]:
    """100 minus two points per hour of average response time, floored at 0."""
    samples = [float(x) for x in (response_times or []) if x is not None]
    if not samples:
        return None
    avg_minutes = sum(samples) / len(samples)
    return max(0, round_half_up(100 - (avg_minutes / 60) * 2))


def evaluate_health(
    partnership: Partnership,
    response_times: Optional[Sequence[float]] = None,
    now: Optional[datetime] = None,
) -> PartnershipHealthMetrics:
    now = ensure_aware(now or utcnow())
    reasons: List[str] = []
    health = HealthStatus.HEALTHY

    days_active = whole_days_between(partnership.created_at, now)
    progress = deliverable_progress(partnership)

    overdue = [
        d for d in partnership.deliverables
        if d.due_date is not None and d.completed < d.quantity and ensure_aware(d.due_date) < now
    ]
    on_time: Optional[bool] = None
    if overdue:
        on_time = False
        reasons.append(f"{len(overdue)} overdue deliverable(s)")
        health = _escalate(health, HealthStatus.AT_RISK)
    elif any(d.due_date is not None for d in partnership.deliverables):
        on_time = True

    status = partnership.status
    if status == PartnershipStatus.NEGOTIATING and days_active > STALLED_NEGOTIATION_DAYS:
        reasons.append("Partnership still in negotiation after 7+ days")
        health = _escalate(health, HealthStatus.NEEDS_ATTENTION)

    if (
        status == PartnershipStatus.ACTIVE
        and days_active > STALLED_EXECUTION_DAYS
        and progress < STALLED_EXECUTION_PROGRESS
    ):
        reasons.append("Low deliverable progress after 30+ days")
        health = _escalate(health, HealthStatus.AT_RISK)

    if status == PartnershipStatus.CONTENT_PENDING and partnership.content_submitted_at is not None:
        if whole_days_between(partnership.content_submitted_at, now) > STALLED_REVIEW_DAYS:
            reasons.append("Content pending review for 5+ days")
            health = _escalate(health, HealthStatus.NEEDS_ATTENTION)

    comm = communication_score(response_times)
    if comm is not None and comm < SLOW_COMMUNICATION_SCORE:
        reasons.append("Slow communication response times")
        health = _escalate(health, HealthStatus.NEEDS_ATTENTION)

    if not reasons:
        reasons.append("Partnership is progressing well")

    return PartnershipHealthMetrics(
        days_active=days_active,
        deliverable_progress=progress,
        communication_score=comm,
        on_time_delivery=on_time,
        overall_health=health,
        health_reasons=reasons,
    )


def get_partnership_health(
    store: Store,
    partnership_id: str,
    now: Optional[datetime] = None,
) -> PartnershipHealthMetrics:
    partnership = store.get_partnership(partnership_id)
    if partnership is None:
        raise NotFound("partnership", partnership_id)
    samples = store.response_time_samples(partnership.match_id) if partnership.match_id else []
    return evaluate_health(partnership, samples, now=now)


__all__ = [
    "deliverable_progress",
    "communication_score",
    "evaluate_health",
    "get_partnership_health",
]

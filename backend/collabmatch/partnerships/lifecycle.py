# backend/collabmatch/partnerships/lifecycle.py
"""
Partnership state machine. Pure: nothing here touches storage.

    negotiating -> active | cancelled
    active -> content_pending | cancelled
    content_pending -> review | active | cancelled
    review -> completed | content_pending | cancelled
    completed, cancelled: terminal
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from collabmatch.core.errors import InvalidRating, InvalidTransition
from collabmatch.core.schemas import Partnership, PartnershipStatus
from collabmatch.core.utils import utcnow

S = PartnershipStatus

ALLOWED_TRANSITIONS: dict[PartnershipStatus, set[PartnershipStatus]] = {
    S.NEGOTIATING: {S.ACTIVE, S.CANCELLED},
    S.ACTIVE: {S.CONTENT_PENDING, S.CANCELLED},
    S.CONTENT_PENDING: {S.REVIEW, S.ACTIVE, S.CANCELLED},
    S.REVIEW: {S.COMPLETED, S.CONTENT_PENDING, S.CANCELLED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset({S.COMPLETED, S.CANCELLED})


def can_transition(current: PartnershipStatus, requested: PartnershipStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, set())


def ensure_transition(current: PartnershipStatus, requested: PartnershipStatus) -> None:
    if not can_transition(current, requested):
        raise InvalidTransition(S(current).value, S(requested).value)


def apply_transition(
    partnership: Partnership,
    requested: PartnershipStatus,
    now: Optional[datetime] = None,
    notes: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Tuple[Partnership, bool]:
    """
    Validate and apply one status change to a copy of `partnership`.

    Returns (updated, release_capacity). release_capacity is True when the
    partnership enters a terminal state, i.e. the creator's slot frees up.
    The input partnership is never modified.
    """
    requested = S(requested)
    ensure_transition(partnership.status, requested)
    now = now or utcnow()

    updates: Dict[str, Any] = {"status": requested, "updated_at": now}
    if requested == S.COMPLETED and partnership.completed_at is None:
        updates["completed_at"] = now
    if notes:
        updates["notes"] = notes
    if extra:
        updates.update(extra)

    return partnership.model_copy(update=updates), requested in TERMINAL_STATUSES


def validate_rating(value: Any) -> int:
    """Ratings are whole numbers 1-5."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRating(value)
    if not 1 <= value <= 5 or value != int(value):
        raise InvalidRating(value)
    return int(value)


__all__ = [
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "can_transition",
    "ensure_transition",
    "apply_transition",
    "validate_rating",
]

# backend/collabmatch/partnerships/service.py
"""
Partnership operations on top of the lifecycle rules and the Store.

Every status-changing write is compare-and-swap on the status read just before
it; a lost race surfaces as ConcurrentModification and nothing is written.
Capacity is reserved when the partnership is created and released once when it
enters a terminal state.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import pydantic

from collabmatch.core.config import MAX_CAPACITY, MIN_CAPACITY
from collabmatch.core.errors import NotFound, ValidationError
from collabmatch.core.schemas import (
    CreatorProfile,
    Deliverable,
    Partnership,
    PartnershipStats,
    PartnershipStatus,
    PartyRole,
)
from collabmatch.core.utils import clean_list, utcnow
from collabmatch.db.store import Store

from .lifecycle import TERMINAL_STATUSES, apply_transition, validate_rating

logger = logging.getLogger("collabmatch.partnerships")

DeliverableInput = Union[Deliverable, Dict[str, Any]]


# --- helpers -------------------------------------------------------------------

def _load(store: Store, partnership_id: str) -> Partnership:
    p = store.get_partnership(partnership_id)
    if p is None:
        raise NotFound("partnership", partnership_id)
    return p


def _parse_deliverables(items: Optional[Sequence[DeliverableInput]]) -> List[Deliverable]:
    try:
        return [d if isinstance(d, Deliverable) else Deliverable.model_validate(d) for d in (items or [])]
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid deliverable: {e}") from e


def _change_status(
    store: Store,
    partnership: Partnership,
    requested: PartnershipStatus,
    now: Optional[datetime] = None,
    notes: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Partnership:
    updated, release = apply_transition(partnership, requested, now=now, notes=notes, extra=extra)
    saved = store.update_partnership(updated, expected_status=partnership.status, release_capacity=release)
    logger.info(
        "[partnership] %s: %s -> %s%s",
        partnership.id, partnership.status.value, saved.status.value,
        " (capacity released)" if release else "",
    )
    return saved


def _touch(store: Store, partnership: Partnership, updates: Dict[str, Any], now: Optional[datetime] = None) -> Partnership:
    """Non-status write, still guarded on the status we read."""
    updates = dict(updates)
    updates["updated_at"] = now or utcnow()
    updated = partnership.model_copy(update=updates)
    return store.update_partnership(updated, expected_status=partnership.status)


# --- creation + reads ----------------------------------------------------------

def create_partnership(
    store: Store,
    brand_id: str,
    creator_id: str,
    match_id: Optional[str] = None,
    agreed_rate: Optional[float] = None,
    deliverables: Optional[Sequence[DeliverableInput]] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Partnership:
    """
    Open a partnership in `negotiating` and reserve one of the creator's slots.
    Raises CapacityExceeded when the creator is already full.
    """
    if not (brand_id or "").strip() or not (creator_id or "").strip():
        raise ValidationError("brand_id and creator_id are required")
    if agreed_rate is not None and agreed_rate < 0:
        raise ValidationError("agreed_rate must be >= 0", details={"agreed_rate": agreed_rate})

    now = now or utcnow()
    partnership = Partnership(
        match_id=match_id,
        brand_id=brand_id,
        creator_id=creator_id,
        agreed_rate=agreed_rate,
        deliverables=_parse_deliverables(deliverables),
        status=PartnershipStatus.NEGOTIATING,
        notes=notes,
        created_at=now,
        updated_at=now,
    )
    saved = store.insert_partnership(partnership)
    logger.info("[partnership] created %s brand=%s creator=%s", saved.id, brand_id, creator_id)
    return saved


def get_partnership(store: Store, partnership_id: str) -> Partnership:
    return _load(store, partnership_id)


def get_partnership_by_match(store: Store, match_id: str) -> Optional[Partnership]:
    return store.get_partnership_by_match(match_id)


def list_partnerships(
    store: Store,
    user_id: str,
    role: PartyRole,
    statuses: Optional[Iterable[PartnershipStatus]] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Partnership]:
    if offset < 0:
        raise ValidationError("offset must be >= 0")
    return store.list_partnerships(user_id, PartyRole(role), statuses=statuses, limit=limit, offset=offset)


def partnership_stats(store: Store, user_id: str, role: PartyRole) -> PartnershipStats:
    """
    Counts by outcome plus the average rating this party received, to one decimal.
    Brands are averaged over brand_rating, creators over creator_rating.
    """
    role = PartyRole(role)
    rows = store.list_partnerships(user_id, role)
    ratings = [
        (p.brand_rating if role == PartyRole.BRAND else p.creator_rating)
        for p in rows
    ]
    ratings = [r for r in ratings if r is not None]
    avg = round(sum(ratings) / len(ratings), 1) if ratings else None
    return PartnershipStats(
        total=len(rows),
        active=sum(1 for p in rows if p.status not in TERMINAL_STATUSES),
        completed=sum(1 for p in rows if p.status == PartnershipStatus.COMPLETED),
        cancelled=sum(1 for p in rows if p.status == PartnershipStatus.CANCELLED),
        avg_rating=avg,
    )


# --- status ------------------------------------------------------------------

def transition_status(
    store: Store,
    partnership_id: str,
    new_status: PartnershipStatus,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Partnership:
    p = _load(store, partnership_id)
    return _change_status(store, p, PartnershipStatus(new_status), now=now, notes=notes)


def submit_content(store: Store, partnership_id: str, now: Optional[datetime] = None) -> Partnership:
    p = _load(store, partnership_id)
    extra = {"content_submitted_at": p.content_submitted_at or now or utcnow()}
    return _change_status(store, p, PartnershipStatus.CONTENT_PENDING, now=now, extra=extra)


def approve_content(store: Store, partnership_id: str, now: Optional[datetime] = None) -> Partnership:
    p = _load(store, partnership_id)
    extra = {"content_approved_at": p.content_approved_at or now or utcnow()}
    return _change_status(store, p, PartnershipStatus.REVIEW, now=now, extra=extra)


def complete_partnership(
    store: Store,
    partnership_id: str,
    brand_rating: Optional[int] = None,
    creator_rating: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Partnership:
    """review -> completed, recording either rating; ratings are checked before anything is written."""
    extra: Dict[str, Any] = {}
    if brand_rating is not None:
        extra["brand_rating"] = validate_rating(brand_rating)
    if creator_rating is not None:
        extra["creator_rating"] = validate_rating(creator_rating)
    p = _load(store, partnership_id)
    return _change_status(store, p, PartnershipStatus.COMPLETED, now=now, extra=extra)


def mark_payment_sent(
    store: Store,
    partnership_id: str,
    complete_after_payment: bool = False,
    creator_rating: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Partnership:
    """
    Stamp payment without touching status. Repeated calls keep the first timestamp.
    With complete_after_payment, a partnership whose content was approved and that
    sits in `review` is completed in the same call.
    """
    if creator_rating is not None:
        validate_rating(creator_rating)
    now = now or utcnow()
    p = _load(store, partnership_id)
    if p.is_terminal:
        raise ValidationError(
            "Cannot mark payment for completed/cancelled partnership",
            details={"partnership_id": p.id, "status": p.status.value},
        )

    if p.payment_sent_at is None:
        p = _touch(store, p, {"payment_sent_at": now}, now=now)
        logger.info("[partnership] %s: payment sent", p.id)

    if complete_after_payment:
        if p.content_approved_at is not None and p.status == PartnershipStatus.REVIEW:
            return complete_partnership(store, p.id, creator_rating=creator_rating, now=now)
        logger.info("[partnership] %s: payment marked, completion skipped (status %s)", p.id, p.status.value)
    return p


def rate(
    store: Store,
    partnership_id: str,
    rating_type: PartyRole,
    rating: int,
    now: Optional[datetime] = None,
) -> Partnership:
    """
    Set one rating, independent of status.
    rating_type "brand" writes brand_rating (the creator rating the brand),
    "creator" writes creator_rating (the brand rating the creator).
    """
    value = validate_rating(rating)
    column = "brand_rating" if PartyRole(rating_type) == PartyRole.BRAND else "creator_rating"
    p = _load(store, partnership_id)
    return _touch(store, p, {column: value}, now=now)


# --- deliverables ----------------------------------------------------------------

def update_deliverables(
    store: Store,
    partnership_id: str,
    deliverables: Sequence[DeliverableInput],
    now: Optional[datetime] = None,
) -> Partnership:
    items = _parse_deliverables(deliverables)
    p = _load(store, partnership_id)
    return _touch(store, p, {"deliverables": items}, now=now)


def mark_deliverable_complete(
    store: Store,
    partnership_id: str,
    deliverable_id: str,
    completed_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Partnership:
    """Set one deliverable's completed count (default: all of it), clamped into [0, quantity]."""
    p = _load(store, partnership_id)
    items: List[Deliverable] = []
    found = False
    for d in p.deliverables:
        if d.id == deliverable_id:
            found = True
            target = d.quantity if completed_count is None else int(completed_count)
            d = d.model_copy(update={"completed": max(0, min(target, d.quantity))})
        items.append(d)
    if not found:
        raise NotFound("deliverable", deliverable_id)
    return _touch(store, p, {"deliverables": items}, now=now)


# --- creator availability ----------------------------------------------------------

def update_creator_availability(
    store: Store,
    creator_id: str,
    actively_seeking: Optional[bool] = None,
    partnership_capacity: Optional[int] = None,
    min_budget: Optional[float] = None,
    preferred_campaign_types: Optional[Sequence[str]] = None,
) -> CreatorProfile:
    """Only provided fields change; capacity is clamped to [1, 10] and min budget floored at 0."""
    values: Dict[str, Any] = {}
    if actively_seeking is not None:
        values["actively_seeking"] = bool(actively_seeking)
    if partnership_capacity is not None:
        values["partnership_capacity"] = min(max(MIN_CAPACITY, int(partnership_capacity)), MAX_CAPACITY)
    if min_budget is not None:
        values["min_budget"] = max(0.0, float(min_budget))
    if preferred_campaign_types is not None:
        values["preferred_campaign_types"] = clean_list(preferred_campaign_types)
    return store.update_creator_availability(creator_id, values)


__all__ = [
    "create_partnership",
    "get_partnership",
    "get_partnership_by_match",
    "list_partnerships",
    "partnership_stats",
    "transition_status",
    "submit_content",
    "approve_content",
    "complete_partnership",
    "mark_payment_sent",
    "rate",
    "update_deliverables",
    "mark_deliverable_complete",
    "update_creator_availability",
]

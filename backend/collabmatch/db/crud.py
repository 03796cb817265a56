# backend/collabmatch/db/crud.py
"""
Tiny row <-> schema mappers.
The store works in ORM rows; everything above it works in pydantic schemas.
JSON columns are written with model_dump(mode="json") so datetimes survive the round trip.
"""

from __future__ import annotations

from typing import Any, Dict, List

from collabmatch.core.schemas import (
    Brief,
    CreatorProfile,
    Deliverable,
    MatchReasons,
    MatchRecord,
    MatchResult,
    Partnership,
)
from collabmatch.core.utils import new_id, parse_when

from .models import BriefMatchRow, BriefRow, CreatorRow, PartnershipRow


# ----------------- Briefs -----------------

def brief_from_row(row: BriefRow) -> Brief:
    return Brief(
        id=row.id,
        brand_id=row.brand_id,
        title=row.title or "",
        description=row.description or "",
        product_name=row.product_name,
        product_description=row.product_description,
        target_niches=row.target_niches or [],
        min_followers=row.min_followers,
        max_followers=row.max_followers,
        min_engagement_rate=row.min_engagement_rate,
        budget_min=row.budget_min,
        budget_max=row.budget_max,
        campaign_types=row.campaign_types or [],
        embedding=row.embedding,
        status=row.status,
    )


def brief_values(brief: Brief) -> Dict[str, Any]:
    return brief.model_dump(mode="json")


# ----------------- Creators -----------------

def creator_from_row(row: CreatorRow) -> CreatorProfile:
    return CreatorProfile(
        id=row.id,
        full_name=row.full_name,
        handle=row.handle,
        bio=row.bio,
        niche=row.niche,
        follower_count=row.follower_count,
        engagement_rate=row.engagement_rate,
        actively_seeking=bool(row.actively_seeking),
        partnership_capacity=row.partnership_capacity,
        current_partnerships=row.current_partnerships,
        min_budget=row.min_budget,
        preferred_campaign_types=row.preferred_campaign_types or [],
        dream_brands=row.dream_brands or [],
        past_brands=row.past_brands or [],
        embedding=row.embedding,
    )


def creator_values(creator: CreatorProfile) -> Dict[str, Any]:
    data = creator.model_dump(mode="json")
    data["partnership_capacity"] = creator.effective_capacity
    return data


# ----------------- Matches -----------------

def match_row(brief_id: str, result: MatchResult, created_at) -> BriefMatchRow:
    return BriefMatchRow(
        id=new_id("match"),
        brief_id=brief_id,
        creator_id=result.creator_id,
        score=result.score,
        semantic_score=result.semantic_score,
        rule_score=result.rule_score,
        reasons=result.reasons.model_dump(),
        tier=result.tier.value,
        is_dream_brand=result.is_dream_brand,
        creator_response="pending",
        created_at=created_at,
    )


def match_record_from_row(row: BriefMatchRow) -> MatchRecord:
    return MatchRecord(
        id=row.id,
        brief_id=row.brief_id,
        creator_id=row.creator_id,
        score=row.score,
        semantic_score=row.semantic_score,
        rule_score=row.rule_score,
        reasons=MatchReasons(**(row.reasons or {})),
        tier=row.tier,
        is_dream_brand=bool(row.is_dream_brand),
        creator_response=row.creator_response,
        created_at=parse_when(row.created_at),
    )


# ----------------- Partnerships -----------------

def deliverables_to_json(items: List[Deliverable]) -> List[Dict[str, Any]]:
    return [d.model_dump(mode="json") for d in items]


def partnership_from_row(row: PartnershipRow) -> Partnership:
    return Partnership(
        id=row.id,
        match_id=row.match_id,
        brand_id=row.brand_id,
        creator_id=row.creator_id,
        agreed_rate=row.agreed_rate,
        deliverables=[Deliverable(**d) for d in (row.deliverables or [])],
        status=row.status,
        content_submitted_at=row.content_submitted_at,
        content_approved_at=row.content_approved_at,
        payment_sent_at=row.payment_sent_at,
        completed_at=row.completed_at,
        brand_rating=row.brand_rating,
        creator_rating=row.creator_rating,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def partnership_values(p: Partnership) -> Dict[str, Any]:
    """Column values for an INSERT/UPDATE (id excluded)."""
    return {
        "match_id": p.match_id,
        "brand_id": p.brand_id,
        "creator_id": p.creator_id,
        "agreed_rate": p.agreed_rate,
        "deliverables": deliverables_to_json(p.deliverables),
        "status": p.status.value,
        "content_submitted_at": p.content_submitted_at,
        "content_approved_at": p.content_approved_at,
        "payment_sent_at": p.payment_sent_at,
        "completed_at": p.completed_at,
        "brand_rating": p.brand_rating,
        "creator_rating": p.creator_rating,
        "notes": p.notes,
        "created_at": p.created_at,
        "updated_at": p.updated_at,
    }



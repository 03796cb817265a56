# backend/collabmatch/db/models.py
"""
SQLAlchemy ORM models.
- BrandRow / CreatorRow / BriefRow: matching inputs
- BriefMatchRow: immutable match record per (run, creator); only creator_response moves later
- PartnershipRow: lifecycle state, deliverables kept as a JSON list of Deliverable dicts
- RelayMessageRow: relayed brand<->creator messages, read for response-time samples
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base


class BrandRow(Base):
    __tablename__ = "brands"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<BrandRow id={self.id} company_name={self.company_name!r}>"


class CreatorRow(Base):
    __tablename__ = "creators"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    handle: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    niche: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)

    follower_count: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    engagement_rate: Mapped[float | None] = mapped_column(Float, nullable=True)

    # availability
    actively_seeking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    partnership_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    current_partnerships: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    preferred_campaign_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    availability_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    dream_brands: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    past_brands: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    embedding: Mapped[Any] = mapped_column(JSON, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<CreatorRow id={self.id} niche={self.niche!r} current={self.current_partnerships}/{self.partnership_capacity}>"


class BriefRow(Base):
    __tablename__ = "campaign_briefs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    brand_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    product_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    target_niches: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    campaign_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    min_followers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_followers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_engagement_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    budget_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    budget_max: Mapped[float | None] = mapped_column(Float, nullable=True)

    embedding: Mapped[Any] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<BriefRow id={self.id} brand_id={self.brand_id} status={self.status}>"


class BriefMatchRow(Base):
    __tablename__ = "brief_matches"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    brief_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    creator_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    # outcomes
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    semantic_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rule_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reasons: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    tier: Mapped[str] = mapped_column(String(16), nullable=False, default="fair")
    is_dream_brand: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    creator_response: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<BriefMatchRow id={self.id} brief_id={self.brief_id} creator_id={self.creator_id} score={self.score}>"


class PartnershipRow(Base):
    __tablename__ = "partnerships"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    match_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    brand_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    creator_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    agreed_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    deliverables: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(24), nullable=False, default="negotiating", index=True)

    # milestones (set once)
    content_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    content_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    brand_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    creator_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<PartnershipRow id={self.id} status={self.status} creator_id={self.creator_id}>"


class RelayMessageRow(Base):
    __tablename__ = "relayed_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    match_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    sender_role: Mapped[str | None] = mapped_column(String(16), nullable=True)
    response_time_minutes: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

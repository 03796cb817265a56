# backend/collabmatch/core/schemas.py
"""
Pydantic domain types shared by the pipeline, the partnership service, the store and the API.

Loosely-typed bags from the old JSON columns are fixed shapes here:
- Deliverable.type is an enum, MatchReasons is a struct with one bool per criterion
- embeddings are parsed once (list or JSON string) at the model boundary
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import DEFAULT_CAPACITY
from .utils import clean_list, new_id, parse_vector, parse_when, utcnow


# ---------- enums -----------------------------------------------------------

class BriefStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"


class DeliverableType(str, Enum):
    POST = "post"
    STORY = "story"
    REEL = "reel"
    UGC = "ugc"
    OTHER = "other"


class PartnershipStatus(str, Enum):
    NEGOTIATING = "negotiating"
    ACTIVE = "active"
    CONTENT_PENDING = "content_pending"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MatchTier(str, Enum):
    GOLDEN = "golden"
    GREAT = "great"
    GOOD = "good"
    FAIR = "fair"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    AT_RISK = "at_risk"
    NEEDS_ATTENTION = "needs_attention"


class PartyRole(str, Enum):
    BRAND = "brand"
    CREATOR = "creator"


# ---------- matching inputs -------------------------------------------------

class Brief(BaseModel):
    """A brand's campaign specification."""

    id: str
    brand_id: str
    title: str = ""
    description: str = ""
    product_name: Optional[str] = None
    product_description: Optional[str] = None
    target_niches: List[str] = Field(default_factory=list)
    min_followers: Optional[int] = Field(default=None, ge=0)
    max_followers: Optional[int] = Field(default=None, ge=0)
    min_engagement_rate: Optional[float] = Field(default=None, ge=0)
    budget_min: Optional[float] = Field(default=None, ge=0)
    budget_max: Optional[float] = Field(default=None, ge=0)
    campaign_types: List[str] = Field(default_factory=list)
    embedding: Optional[List[float]] = None
    status: BriefStatus = BriefStatus.ACTIVE

    @field_validator("target_niches", "campaign_types", mode="before")
    @classmethod
    def _clean_sets(cls, v: Any) -> List[str]:
        return clean_list(v)

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_embedding(cls, v: Any) -> Optional[List[float]]:
        return parse_vector(v)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Brief":
        if self.min_followers is not None and self.max_followers is not None:
            if self.min_followers > self.max_followers:
                raise ValueError("min_followers must be <= max_followers")
        if self.budget_min is not None and self.budget_max is not None:
            if self.budget_min > self.budget_max:
                raise ValueError("budget_min must be <= budget_max")
        return self


class CreatorProfile(BaseModel):
    id: str
    full_name: Optional[str] = None
    handle: Optional[str] = None
    bio: Optional[str] = None
    niche: Optional[str] = None
    follower_count: Optional[int] = Field(default=None, ge=0)
    engagement_rate: Optional[float] = Field(default=None, ge=0)
    actively_seeking: bool = True
    partnership_capacity: int = Field(default=DEFAULT_CAPACITY, ge=0)
    current_partnerships: int = Field(default=0, ge=0)
    min_budget: Optional[float] = Field(default=None, ge=0)
    preferred_campaign_types: List[str] = Field(default_factory=list)
    dream_brands: List[str] = Field(default_factory=list)
    past_brands: List[str] = Field(default_factory=list)
    embedding: Optional[List[float]] = None

    @field_validator("partnership_capacity", "current_partnerships", mode="before")
    @classmethod
    def _none_counts(cls, v: Any, info) -> Any:
        if v is None:
            return DEFAULT_CAPACITY if info.field_name == "partnership_capacity" else 0
        return v

    @field_validator("preferred_campaign_types", "dream_brands", "past_brands", mode="before")
    @classmethod
    def _clean_sets(cls, v: Any) -> List[str]:
        return clean_list(v)

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_embedding(cls, v: Any) -> Optional[List[float]]:
        return parse_vector(v)

    @property
    def effective_capacity(self) -> int:
        # a stored 0 means "never configured", same as missing
        return self.partnership_capacity or DEFAULT_CAPACITY


class CreatorPoolQuery(BaseModel):
    """Storage-level pre-filter that bounds the candidate set before scoring."""

    budget_ceiling: Optional[float] = None
    campaign_types: List[str] = Field(default_factory=list)
    min_followers: Optional[int] = None
    max_followers: Optional[int] = None
    min_engagement_rate: Optional[float] = None

    @classmethod
    def for_brief(cls, brief: Brief) -> "CreatorPoolQuery":
        return cls(
            budget_ceiling=brief.budget_max,
            campaign_types=brief.campaign_types,
            min_followers=brief.min_followers,
            max_followers=brief.max_followers,
            min_engagement_rate=brief.min_engagement_rate,
        )


# ---------- matching outputs ------------------------------------------------

class MatchReasons(BaseModel):
    niche: bool = False
    followers: bool = False
    engagement: bool = False
    budget: bool = False
    campaign_type: bool = False
    semantic: bool = False
    dream_brand: bool = False


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    creator_id: str
    score: int = Field(ge=0, le=100)
    semantic_score: int = Field(ge=0, le=100)
    rule_score: int = Field(ge=0, le=100)
    reasons: MatchReasons
    is_dream_brand: bool = False
    tier: MatchTier = MatchTier.FAIR


class MatchRecord(BaseModel):
    id: str
    brief_id: str
    creator_id: str
    score: int
    semantic_score: int
    rule_score: int
    reasons: MatchReasons
    tier: MatchTier
    is_dream_brand: bool = False
    creator_response: str = "pending"
    created_at: datetime = Field(default_factory=utcnow)


class MatchRunSummary(BaseModel):
    run_id: str
    brief_id: str
    match_count: int
    golden_count: int
    semantic_enabled: bool
    matches: List[MatchResult] = Field(default_factory=list)


# ---------- partnerships ----------------------------------------------------

class Deliverable(BaseModel):
    id: str = Field(default_factory=lambda: new_id("del"))
    type: DeliverableType = DeliverableType.POST
    description: Optional[str] = None
    quantity: int = Field(default=1, gt=0)
    completed: int = Field(default=0, ge=0)
    due_date: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _fill_id(cls, v: Any) -> str:
        return v or new_id("del")

    @field_validator("completed", mode="before")
    @classmethod
    def _none_completed(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due(cls, v: Any) -> Optional[datetime]:
        return parse_when(v)

    @model_validator(mode="after")
    def _clamp_completed(self) -> "Deliverable":
        if self.completed > self.quantity:
            self.completed = self.quantity
        return self


class Partnership(BaseModel):
    id: str = Field(default_factory=new_id)
    match_id: Optional[str] = None
    brand_id: str
    creator_id: str
    agreed_rate: Optional[float] = Field(default=None, ge=0)
    deliverables: List[Deliverable] = Field(default_factory=list)
    status: PartnershipStatus = PartnershipStatus.NEGOTIATING
    content_submitted_at: Optional[datetime] = None
    content_approved_at: Optional[datetime] = None
    payment_sent_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    # brand_rating: the creator's rating of the brand; creator_rating: the brand's rating of the creator
    brand_rating: Optional[int] = Field(default=None, ge=1, le=5)
    creator_rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator(
        "content_submitted_at", "content_approved_at", "payment_sent_at",
        "completed_at", "created_at", "updated_at", mode="before",
    )
    @classmethod
    def _aware(cls, v: Any) -> Any:
        return parse_when(v) if v is not None else v

    @property
    def is_terminal(self) -> bool:
        return self.status in (PartnershipStatus.COMPLETED, PartnershipStatus.CANCELLED)


class PartnershipHealthMetrics(BaseModel):
    days_active: int
    deliverable_progress: int = Field(ge=0, le=100)
    communication_score: Optional[int] = None
    on_time_delivery: Optional[bool] = None
    overall_health: HealthStatus = HealthStatus.HEALTHY
    health_reasons: List[str] = Field(default_factory=list)


class PartnershipStats(BaseModel):
    total: int = 0
    active: int = 0
    completed: int = 0
    cancelled: int = 0
    avg_rating: Optional[float] = None


__all__ = [
    "BriefStatus",
    "DeliverableType",
    "PartnershipStatus",
    "MatchTier",
    "HealthStatus",
    "PartyRole",
    "Brief",
    "CreatorProfile",
    "CreatorPoolQuery",
    "MatchReasons",
    "MatchResult",
    "MatchRecord",
    "MatchRunSummary",
    "Deliverable",
    "Partnership",
    "PartnershipHealthMetrics",
    "PartnershipStats",
]

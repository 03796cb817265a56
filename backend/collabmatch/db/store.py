# backend/collabmatch/db/store.py
"""
Store abstraction consumed by the matching pipeline and the partnership service.

`Store` is the protocol; `SqlStore` is the SQLAlchemy implementation. Callers
inject a store instead of reaching for a module-level client, so tests can
bind one to an in-memory SQLite engine.

Counter updates are single UPDATE statements (no read-modify-write):
- reserve_capacity: current = current + 1 WHERE current < capacity
- release_capacity: current = current - 1 WHERE current > 0
Partnership writes are compare-and-swap on the status the caller last read.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from collabmatch.core.errors import (
    CapacityExceeded,
    CollabError,
    ConcurrentModification,
    NotFound,
    PersistenceError,
)
from collabmatch.core.schemas import (
    Brief,
    CreatorPoolQuery,
    CreatorProfile,
    MatchRecord,
    MatchResult,
    Partnership,
    PartnershipStatus,
    PartyRole,
)
from collabmatch.core.config import DEFAULT_CAPACITY
from collabmatch.core.utils import utcnow

from . import crud
from .models import BrandRow, BriefMatchRow, BriefRow, CreatorRow, PartnershipRow, RelayMessageRow
from .session import session_scope

logger = logging.getLogger("collabmatch.store")

# a stored 0 (or NULL) means "never configured"
_CAPACITY = func.coalesce(func.nullif(CreatorRow.partnership_capacity, 0), DEFAULT_CAPACITY)


class Store(Protocol):
    # briefs / brands
    def get_brief(self, brief_id: str) -> Optional[Brief]: ...
    def save_brief(self, brief: Brief) -> Brief: ...
    def save_brief_embedding(self, brief_id: str, embedding: Sequence[float]) -> None: ...
    def get_brand_name(self, brand_id: str) -> Optional[str]: ...
    def save_brand(self, brand_id: str, company_name: Optional[str]) -> None: ...

    # creators
    def get_creator(self, creator_id: str) -> Optional[CreatorProfile]: ...
    def save_creator(self, creator: CreatorProfile) -> CreatorProfile: ...
    def save_creator_embedding(self, creator_id: str, embedding: Sequence[float]) -> None: ...
    def update_creator_availability(self, creator_id: str, values: Dict[str, object]) -> CreatorProfile: ...
    def fetch_candidate_creators(self, query: CreatorPoolQuery) -> List[CreatorProfile]: ...

    # matches
    def save_matches(self, brief_id: str, results: Sequence[MatchResult]) -> List[MatchRecord]: ...
    def list_matches(self, brief_id: str) -> List[MatchRecord]: ...

    # partnerships
    def insert_partnership(self, partnership: Partnership) -> Partnership: ...
    def get_partnership(self, partnership_id: str) -> Optional[Partnership]: ...
    def get_partnership_by_match(self, match_id: str) -> Optional[Partnership]: ...
    def list_partnerships(
        self,
        user_id: str,
        role: PartyRole,
        statuses: Optional[Iterable[PartnershipStatus]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Partnership]: ...
    def update_partnership(
        self,
        partnership: Partnership,
        expected_status: PartnershipStatus,
        release_capacity: bool = False,
    ) -> Partnership: ...

    # relay metrics
    def response_time_samples(self, match_id: str) -> List[float]: ...


class SqlStore:
    """SQLAlchemy-backed Store. Every public method runs in its own transaction."""

    def __init__(self, factory: Optional[sessionmaker[Session]] = None) -> None:
        self._factory = factory

    # --- plumbing -------------------------------------------------------------

    def _read(self, fn):
        try:
            with session_scope(self._factory) as s:
                return fn(s)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Storage read failed: {e}") from e

    def _write(self, fn, what: str):
        try:
            with session_scope(self._factory) as s:
                return fn(s)
        except CollabError:
            raise
        except SQLAlchemyError as e:
            logger.error("[store] %s failed: %s", what, e)
            raise PersistenceError(f"{what} failed: {e}") from e

    # --- briefs / brands ------------------------------------------------------

    def get_brief(self, brief_id: str) -> Optional[Brief]:
        def q(s: Session):
            row = s.get(BriefRow, brief_id)
            return crud.brief_from_row(row) if row else None
        return self._read(q)

    def save_brief(self, brief: Brief) -> Brief:
        def w(s: Session):
            s.merge(BriefRow(**crud.brief_values(brief)))
            return brief
        return self._write(w, "Saving brief")

    def save_brief_embedding(self, brief_id: str, embedding: Sequence[float]) -> None:
        def w(s: Session):
            res = s.execute(update(BriefRow).where(BriefRow.id == brief_id).values(embedding=list(embedding)))
            if res.rowcount == 0:
                raise NotFound("brief", brief_id)
        self._write(w, "Saving brief embedding")

    def get_brand_name(self, brand_id: str) -> Optional[str]:
        def q(s: Session):
            row = s.get(BrandRow, brand_id)
            return row.company_name if row else None
        return self._read(q)

    def save_brand(self, brand_id: str, company_name: Optional[str]) -> None:
        self._write(lambda s: s.merge(BrandRow(id=brand_id, company_name=company_name)), "Saving brand")

    # --- creators -------------------------------------------------------------

    def get_creator(self, creator_id: str) -> Optional[CreatorProfile]:
        def q(s: Session):
            row = s.get(CreatorRow, creator_id)
            return crud.creator_from_row(row) if row else None
        return self._read(q)

    def save_creator(self, creator: CreatorProfile) -> CreatorProfile:
        def w(s: Session):
            s.merge(CreatorRow(**crud.creator_values(creator)))
            return creator
        return self._write(w, "Saving creator")

    def save_creator_embedding(self, creator_id: str, embedding: Sequence[float]) -> None:
        def w(s: Session):
            res = s.execute(update(CreatorRow).where(CreatorRow.id == creator_id).values(embedding=list(embedding)))
            if res.rowcount == 0:
                raise NotFound("creator", creator_id)
        self._write(w, "Saving creator embedding")

    def update_creator_availability(self, creator_id: str, values: Dict[str, object]) -> CreatorProfile:
        def w(s: Session):
            row = s.get(CreatorRow, creator_id)
            if row is None:
                raise NotFound("creator", creator_id)
            for k, v in values.items():
                setattr(row, k, v)
            row.availability_updated_at = utcnow()
            s.flush()
            return crud.creator_from_row(row)
        return self._write(w, "Updating creator availability")

    def fetch_candidate_creators(self, query: CreatorPoolQuery) -> List[CreatorProfile]:
        def q(s: Session):
            stmt = select(CreatorRow).where(
                CreatorRow.actively_seeking.is_(True),
                CreatorRow.current_partnerships < _CAPACITY,
            )
            if query.min_followers is not None:
                stmt = stmt.where(CreatorRow.follower_count >= query.min_followers)
            if query.max_followers is not None:
                stmt = stmt.where(CreatorRow.follower_count <= query.max_followers)
            if query.min_engagement_rate is not None:
                stmt = stmt.where(CreatorRow.engagement_rate >= query.min_engagement_rate)
            if query.budget_ceiling is not None:
                stmt = stmt.where(or_(CreatorRow.min_budget.is_(None), CreatorRow.min_budget <= query.budget_ceiling))
            rows = s.execute(stmt.order_by(CreatorRow.id)).scalars().all()
            wanted = set(query.campaign_types)
            out: List[CreatorProfile] = []
            for row in rows:
                # JSON membership is not portable SQL, so the type preference is checked here
                preferred = set(row.preferred_campaign_types or [])
                if preferred and not (preferred & wanted):
                    continue
                out.append(crud.creator_from_row(row))
            return out
        return self._read(q)

    # --- matches --------------------------------------------------------------

    def save_matches(self, brief_id: str, results: Sequence[MatchResult]) -> List[MatchRecord]:
        if not results:
            return []

        def w(s: Session):
            now = utcnow()
            rows = [crud.match_row(brief_id, r, now) for r in results]
            s.add_all(rows)
            s.flush()
            return [crud.match_record_from_row(r) for r in rows]
        return self._write(w, "Saving brief matches")

    def list_matches(self, brief_id: str) -> List[MatchRecord]:
        def q(s: Session):
            stmt = (
                select(BriefMatchRow)
                .where(BriefMatchRow.brief_id == brief_id)
                .order_by(desc(BriefMatchRow.score), BriefMatchRow.creator_id)
            )
            return [crud.match_record_from_row(r) for r in s.execute(stmt).scalars().all()]
        return self._read(q)

    # --- partnerships ---------------------------------------------------------

    def insert_partnership(self, partnership: Partnership) -> Partnership:
        def w(s: Session):
            res = s.execute(
                update(CreatorRow)
                .where(
                    CreatorRow.id == partnership.creator_id,
                    CreatorRow.current_partnerships < _CAPACITY,
                )
                .values(current_partnerships=CreatorRow.current_partnerships + 1)
            )
            if res.rowcount == 0:
                if s.get(CreatorRow, partnership.creator_id) is None:
                    raise NotFound("creator", partnership.creator_id)
                raise CapacityExceeded(partnership.creator_id)
            s.add(PartnershipRow(id=partnership.id, **crud.partnership_values(partnership)))
            return partnership
        return self._write(w, "Creating partnership")

    def get_partnership(self, partnership_id: str) -> Optional[Partnership]:
        def q(s: Session):
            row = s.get(PartnershipRow, partnership_id)
            return crud.partnership_from_row(row) if row else None
        return self._read(q)

    def get_partnership_by_match(self, match_id: str) -> Optional[Partnership]:
        def q(s: Session):
            stmt = select(PartnershipRow).where(PartnershipRow.match_id == match_id).limit(1)
            row = s.execute(stmt).scalars().first()
            return crud.partnership_from_row(row) if row else None
        return self._read(q)

    def list_partnerships(
        self,
        user_id: str,
        role: PartyRole,
        statuses: Optional[Iterable[PartnershipStatus]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Partnership]:
        column = PartnershipRow.brand_id if role == PartyRole.BRAND else PartnershipRow.creator_id

        def q(s: Session):
            stmt = select(PartnershipRow).where(column == user_id)
            if statuses:
                stmt = stmt.where(PartnershipRow.status.in_([PartnershipStatus(x).value for x in statuses]))
            stmt = stmt.order_by(desc(PartnershipRow.created_at), PartnershipRow.id)
            if offset:
                stmt = stmt.offset(offset)
            if limit:
                stmt = stmt.limit(max(1, min(limit, 500)))
            return [crud.partnership_from_row(r) for r in s.execute(stmt).scalars().all()]
        return self._read(q)

    def update_partnership(
        self,
        partnership: Partnership,
        expected_status: PartnershipStatus,
        release_capacity: bool = False,
    ) -> Partnership:
        def w(s: Session):
            res = s.execute(
                update(PartnershipRow)
                .where(
                    PartnershipRow.id == partnership.id,
                    PartnershipRow.status == expected_status.value,
                )
                .values(**crud.partnership_values(partnership))
            )
            if res.rowcount == 0:
                if s.get(PartnershipRow, partnership.id) is None:
                    raise NotFound("partnership", partnership.id)
                raise ConcurrentModification(partnership.id, expected_status.value)
            if release_capacity:
                s.execute(
                    update(CreatorRow)
                    .where(CreatorRow.id == partnership.creator_id, CreatorRow.current_partnerships > 0)
                    .values(current_partnerships=CreatorRow.current_partnerships - 1)
                )
            return partnership
        return self._write(w, "Updating partnership")

    # --- relay metrics --------------------------------------------------------

    def response_time_samples(self, match_id: str) -> List[float]:
        def q(s: Session):
            stmt = select(RelayMessageRow.response_time_minutes).where(
                RelayMessageRow.match_id == match_id,
                RelayMessageRow.response_time_minutes.is_not(None),
            )
            return [float(v) for v in s.execute(stmt).scalars().all()]
        return self._read(q)

    def record_relay_message(self, match_id: str, response_time_minutes: Optional[float], sender_role: Optional[str] = None) -> None:
        self._write(
            lambda s: s.add(RelayMessageRow(
                match_id=match_id,
                sender_role=sender_role,
                response_time_minutes=response_time_minutes,
            )),
            "Recording relay message",
        )


__all__ = ["Store", "SqlStore"]

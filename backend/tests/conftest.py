import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from collabmatch.core.errors import EmbeddingUnavailable
from collabmatch.core.schemas import Brief, CreatorProfile
from collabmatch.db import session as db_session
from collabmatch.db.store import SqlStore

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


class StubEmbeddingProvider:
    """Deterministic provider: returns a preset vector, or raises when told to fail."""

    def __init__(self, vector: Optional[List[float]] = None, fail: bool = False, delay: float = 0.0) -> None:
        self.vector = vector if vector is not None else [1.0, 0.0, 0.0]
        self.fail = fail
        self.delay = delay
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.delay:
            import time

            time.sleep(self.delay)
        if self.fail:
            raise EmbeddingUnavailable("quota exceeded")
        return list(self.vector)


@pytest.fixture()
def session_factory() -> Iterator[sessionmaker[Session]]:
    factory = db_session.configure("sqlite://")
    db_session.ensure_tables()
    yield factory


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> SqlStore:
    return SqlStore(session_factory)


@pytest.fixture()
def provider() -> StubEmbeddingProvider:
    return StubEmbeddingProvider()


@pytest.fixture()
def make_brief() -> Callable[..., Brief]:
    def _make(**overrides) -> Brief:
        data: Dict = {
            "id": "brief-1",
            "brand_id": "brand-1",
            "title": "Spring protein launch",
            "description": "Short-form workout content featuring our new shake",
            "product_name": "LiftShake",
            "target_niches": ["fitness"],
            "min_followers": 10_000,
            "max_followers": 100_000,
            "min_engagement_rate": 2.0,
            "budget_max": 500,
            "campaign_types": ["reel"],
        }
        data.update(overrides)
        return Brief(**data)

    return _make


@pytest.fixture()
def make_creator() -> Callable[..., CreatorProfile]:
    def _make(**overrides) -> CreatorProfile:
        data: Dict = {
            "id": "creator-1",
            "full_name": "Sam Rivera",
            "bio": "Strength coach sharing home workouts",
            "niche": "fitness",
            "follower_count": 50_000,
            "engagement_rate": 3.0,
            "actively_seeking": True,
            "min_budget": 300,
            "preferred_campaign_types": ["reel", "post"],
        }
        data.update(overrides)
        return CreatorProfile(**data)

    return _make


@pytest.fixture()
def days_ago() -> Callable[[float], datetime]:
    return lambda n: NOW - timedelta(days=n)


@pytest.fixture()
def client(store: SqlStore, provider: StubEmbeddingProvider) -> Iterator[TestClient]:
    from collabmatch.main import app, get_embedding_provider, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_embedding_provider] = lambda: provider
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

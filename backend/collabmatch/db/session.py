# backend/collabmatch/db/session.py
"""
SQLAlchemy session/engine bootstrap.
- Reads DATABASE_URL from core.config (env, defaults to a local SQLite file).
- Exposes: Base, build_engine(), session_factory(), session_scope(), ensure_tables().
- Engines are built on demand so tests can point the app at an in-memory database.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from collabmatch.core.config import DATABASE_URL, DB_ECHO

logger = logging.getLogger("collabmatch.db")

# --- SQLAlchemy base ---------------------------------------------------------

class Base(DeclarativeBase):
    pass

# --- engine & session --------------------------------------------------------

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker[Session]] = None


def build_engine(url: str = DATABASE_URL, echo: bool = DB_ECHO) -> Engine:
    """
    Create an engine for `url`.
    In-memory SQLite gets a StaticPool so every session sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, future=True, **kwargs)
    return create_engine(url, echo=echo, pool_pre_ping=True, future=True)


def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False)


def configure(url: str = DATABASE_URL, echo: bool = DB_ECHO) -> sessionmaker[Session]:
    """(Re)bind the module-level engine + session factory."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = build_engine(url, echo)
    _SessionLocal = session_factory(_engine)
    logger.info("[db] engine bound to %s", _engine.url.render_as_string(hide_password=True))
    return _SessionLocal


def get_session_factory() -> sessionmaker[Session]:
    if _SessionLocal is None:
        return configure()
    return _SessionLocal

# --- helpers ----------------------------------------------------------------

@contextmanager
def session_scope(factory: Optional[sessionmaker[Session]] = None) -> Iterator[Session]:
    """
    Context manager for a DB session: commit on success, rollback on error.
    Example:
        with session_scope() as s:
            s.add(obj)
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def ensure_tables(engine: Optional[Engine] = None) -> None:
    """
    Create tables if needed. Import models lazily to avoid circulars.
    """
    from . import models  # noqa: F401

    if engine is None:
        get_session_factory()
        engine = _engine
    Base.metadata.create_all(bind=engine)


__all__ = [
    "Base",
    "build_engine",
    "session_factory",
    "configure",
    "get_session_factory",
    "session_scope",
    "ensure_tables",
]

# backend/collabmatch/pipeline/orchestrator.py
"""
Glue for the brief -> creators matching pipeline.

Stages:
  1) ingest.run_ingest   -> brand name, brief embedding (rule-only fallback on EmbeddingUnavailable)
  2) store pre-filter    -> candidate pool (seeking, capacity, follower/engagement/budget bounds)
  3) score.run_score     -> availability re-check, hybrid scoring, rank, truncate

Public entry:
  match_brief_to_creators(brief, store, provider=None, options=None) -> [MatchResult, ...]
  process_brief_matching(brief_id, store, provider=None, options=None) -> MatchRunSummary
  refresh_creator_embedding(creator_id, store, provider, timeout_seconds=None) -> vector | None

The store and the embedding provider are passed in; this module holds no clients of its own.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from collabmatch.core.config import DEFAULT_OPTIONS
from collabmatch.core.embeddings import EmbeddingProvider, build_creator_embedding_text, embed_with_timeout
from collabmatch.core.errors import NotFound, ValidationError
from collabmatch.core.schemas import Brief, BriefStatus, CreatorPoolQuery, MatchResult, MatchRunSummary
from collabmatch.db.store import Store

from .ingest import run_ingest
from .score import filter_golden_matches, run_score
from .state import MatchRunState, new_state

logger = logging.getLogger("collabmatch.pipeline")

MIN_CREATOR_TEXT_LENGTH = 10


def _run(
    brief: Brief,
    store: Store,
    provider: Optional[EmbeddingProvider],
    options: Optional[Dict[str, Any]],
) -> MatchRunState:
    state = new_state(brief, options)

    # Stage 1: brand + brief embedding
    state = run_ingest(state, store, provider)

    # Stage 2: candidate pool from storage
    state["candidates"] = store.fetch_candidate_creators(CreatorPoolQuery.for_brief(brief))

    # Stage 3: score + rank
    state = run_score(state)

    logger.info(
        "[match] run=%s brief=%s candidates=%d matches=%d semantic=%s",
        state["run_id"], brief.id, len(state["candidates"]), len(state["results"]),
        state["flags"]["semantic_enabled"],
    )
    return state


def match_brief_to_creators(
    brief: Brief,
    store: Store,
    provider: Optional[EmbeddingProvider] = None,
    options: Optional[Dict[str, Any]] = None,
) -> List[MatchResult]:
    """
    Rank available creators for one brief.
    Never fails because of the semantic layer; a degraded run is rule-only.
    """
    return _run(brief, store, provider, options)["results"]


def process_brief_matching(
    brief_id: str,
    store: Store,
    provider: Optional[EmbeddingProvider] = None,
    options: Optional[Dict[str, Any]] = None,
) -> MatchRunSummary:
    """Load an active brief, match it, and persist every result in one batch."""
    brief = store.get_brief(brief_id)
    if brief is None:
        raise NotFound("brief", brief_id)
    if brief.status != BriefStatus.ACTIVE:
        raise ValidationError(
            f"Brief {brief_id} is not active (status '{brief.status.value}')",
            details={"brief_id": brief_id, "status": brief.status.value},
        )

    state = _run(brief, store, provider, options)
    results = state["results"]
    store.save_matches(brief.id, results)

    return MatchRunSummary(
        run_id=state["run_id"],
        brief_id=brief.id,
        match_count=len(results),
        golden_count=len(filter_golden_matches(results)),
        semantic_enabled=state["flags"]["semantic_enabled"],
        matches=results,
    )


def refresh_creator_embedding(
    creator_id: str,
    store: Store,
    provider: EmbeddingProvider,
    timeout_seconds: Optional[float] = None,
) -> Optional[List[float]]:
    """
    Recompute and store a creator's profile vector.
    Returns None (and stores nothing) when the profile has too little text to embed.
    EmbeddingUnavailable propagates: there is no rule-only fallback for a refresh.
    """
    creator = store.get_creator(creator_id)
    if creator is None:
        raise NotFound("creator", creator_id)

    text = build_creator_embedding_text(creator)
    if len(text) < MIN_CREATOR_TEXT_LENGTH:
        logger.info("[embed] creator %s: not enough profile text to embed", creator_id)
        return None

    timeout = timeout_seconds if timeout_seconds is not None else DEFAULT_OPTIONS["embedding_timeout_seconds"]
    vec = embed_with_timeout(provider, text, float(timeout))
    store.save_creator_embedding(creator_id, vec)
    return vec


__all__ = [
    "match_brief_to_creators",
    "process_brief_matching",
    "refresh_creator_embedding",
]

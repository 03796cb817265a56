# backend/collabmatch/pipeline/ingest.py
"""
Stage 1: everything the scorer needs that is not on the creator rows.
- brand name (option override, else store lookup) for dream-brand checks
- brief embedding (stored vector, else a fresh one through the timeout wrapper)

The semantic layer is best-effort: any EmbeddingUnavailable degrades the run
to rule-only scoring instead of failing it.
"""

from __future__ import annotations

import logging
from typing import Optional

from collabmatch.core.embeddings import EmbeddingProvider, build_brief_embedding_text, embed_with_timeout
from collabmatch.core.errors import CollabError, EmbeddingUnavailable
from collabmatch.db.store import Store

from .state import MatchRunState

logger = logging.getLogger("collabmatch.pipeline")


def _resolve_brand_name(state: MatchRunState, store: Store) -> Optional[str]:
    override = state["options"].get("brand_name")
    if override is not None:
        return override
    return store.get_brand_name(state["brief"].brand_id)


def _resolve_brief_embedding(state: MatchRunState, store: Store, provider: Optional[EmbeddingProvider]):
    brief = state["brief"]
    opts = state["options"]

    if brief.embedding:
        return brief.embedding
    if provider is None:
        state["audit"].append("no embedding provider configured; rule-only")
        return None

    text = build_brief_embedding_text(brief)
    if not text:
        state["audit"].append("brief has no text to embed; rule-only")
        return None

    try:
        vec = embed_with_timeout(provider, text, float(opts["embedding_timeout_seconds"]))
    except EmbeddingUnavailable as e:
        logger.warning("[ingest] brief %s: semantic matching unavailable, falling back to rules: %s", brief.id, e)
        state["audit"].append(f"embedding unavailable: {e}")
        return None

    state["flags"]["embedding_fresh"] = True
    if opts.get("persist_brief_embedding", True):
        try:
            store.save_brief_embedding(brief.id, vec)
        except CollabError as e:
            # the run keeps the in-memory vector either way
            logger.warning("[ingest] brief %s: embedding write-back failed: %s", brief.id, e)
            state["audit"].append(f"embedding write-back failed: {e}")
    return vec


def run_ingest(state: MatchRunState, store: Store, provider: Optional[EmbeddingProvider]) -> MatchRunState:
    state["brand_name"] = _resolve_brand_name(state, store)

    if state["options"].get("use_semantic_matching", True):
        state["brief_embedding"] = _resolve_brief_embedding(state, store, provider)
    else:
        state["audit"].append("semantic matching disabled by options")
        state["brief_embedding"] = None

    state["flags"]["semantic_enabled"] = bool(state["brief_embedding"])
    return state


__all__ = ["run_ingest"]

# backend/collabmatch/pipeline/state.py
"""
Per-run STATE for one brief matching run.

Each stage reads what it needs from the state and writes its own section:
  ingest  -> brand_name, brief_embedding, flags.semantic_enabled
  score   -> candidates, results, audit
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, TypedDict

from collabmatch.core.config import merge_options
from collabmatch.core.schemas import Brief, CreatorProfile, MatchResult

logger = logging.getLogger("collabmatch.pipeline")


class MatchRunState(TypedDict, total=False):
    run_id: str
    options: Dict[str, Any]
    brief: Brief
    brand_name: Optional[str]
    brief_embedding: Optional[List[float]]
    candidates: List[CreatorProfile]
    results: List[MatchResult]
    audit: List[str]
    flags: Dict[str, Any]


def new_state(brief: Brief, options: Optional[Dict[str, Any]] = None) -> MatchRunState:
    st: MatchRunState = {
        "run_id": uuid.uuid4().hex[:12],
        "options": merge_options(options),
        "brief": brief,
        "brand_name": None,
        "brief_embedding": None,
        "candidates": [],
        "results": [],
        "audit": [],
        "flags": {
            "semantic_enabled": False,
            "embedding_fresh": False,
        },
    }
    logger.debug("[state] run_id=%s brief=%s", st["run_id"], brief.id)
    return st


__all__ = ["MatchRunState", "new_state"]

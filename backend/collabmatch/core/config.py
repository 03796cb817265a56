# backend/collabmatch/core/config.py
"""
Central config & environment helpers.
- Loads env (.env) early
- Exposes the Gemini key resolver, DB/logging settings and the embedding model name
- Holds DEFAULT_OPTIONS used by the matching pipeline (every tuned constant lives here)
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load .env once for the whole app
load_dotenv(override=False)

# --- API keys ---------------------------------------------------------------

def get_gemini_api_key() -> str:
    """
    Returns the Gemini API key.
    Raises RuntimeError if missing.
    """
    key = (
        os.getenv("GEMINI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
        or os.getenv("GEMINI_APIKEY")
        or ""
    ).strip()

    if not key:
        raise RuntimeError(
            "Missing Gemini key. Set GEMINI_API_KEY (or GOOGLE_API_KEY) in your environment."
        )

    # Ensure downstream libs see the same key
    os.environ["GOOGLE_API_KEY"] = key
    os.environ["GEMINI_API_KEY"] = key
    # Avoid ADC confusion in server envs
    os.environ.pop("GOOGLE_APPLICATION_CREDENTIALS", None)

    return key


# --- Service settings -------------------------------------------------------

def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}")


DATABASE_URL: str = (os.getenv("DATABASE_URL") or "sqlite:///./collabmatch.db").strip()
DB_ECHO: bool = (os.getenv("DB_ECHO") or "false").lower() == "true"
LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
EMBEDDING_MODEL: str = (os.getenv("EMBEDDING_MODEL") or "models/text-embedding-004").strip()
EMBEDDING_TIMEOUT_SECONDS: float = _env_float("EMBEDDING_TIMEOUT_SECONDS", 10.0)


def allowed_origins() -> List[str]:
    defaults = {
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    }
    extra = {o.strip() for o in (os.getenv("ALLOWED_ORIGINS") or "").split(",") if o.strip()}
    return sorted(defaults | extra)


# --- Matching options --------------------------------------------------------

DEFAULT_CAPACITY = 3
MIN_CAPACITY = 1
MAX_CAPACITY = 10

DEFAULT_OPTIONS: Dict[str, Any] = {
    # output shaping
    "min_score": 0,          # calibration phase: surface every match, even weak ones
    "max_matches": 50,
    "use_semantic_matching": True,
    "brand_name": None,      # overrides the store lookup for dream-brand checks

    # hybrid blend (semantic + rule = 1.0)
    "weights": {
        "semantic": 0.6,
        "rule": 0.4,
    },
    "dream_brand_multiplier": 1.5,

    # rule-based partial credit
    "follower_tolerance": 0.2,          # follower band widened by 20% each side
    "engagement_partial_ratio": 0.8,    # partial engagement credit at 80% of the floor

    # semantic remap window: similarity <= floor scores 0, == ceiling scores 100
    "semantic_floor": 0.5,
    "semantic_ceiling": 1.0,
    "semantic_match_threshold": 50,

    # external calls
    "embedding_timeout_seconds": EMBEDDING_TIMEOUT_SECONDS,
    "persist_brief_embedding": True,
}


def merge_options(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Overlay user options on top of DEFAULT_OPTIONS (shallow, nested weights merged)."""
    base = dict(DEFAULT_OPTIONS)
    base["weights"] = dict(DEFAULT_OPTIONS["weights"])
    if not user:
        return base
    for k, v in user.items():
        if v is None and k != "brand_name":
            continue
        if k == "weights" and isinstance(v, dict):
            w = dict(base["weights"])
            w.update(v)
            base["weights"] = w
        else:
            base[k] = v
    return base


__all__ = [
    "get_gemini_api_key",
    "allowed_origins",
    "merge_options",
    "DATABASE_URL",
    "DB_ECHO",
    "LOG_LEVEL",
    "EMBEDDING_MODEL",
    "EMBEDDING_TIMEOUT_SECONDS",
    "DEFAULT_CAPACITY",
    "MIN_CAPACITY",
    "MAX_CAPACITY",
    "DEFAULT_OPTIONS",
]

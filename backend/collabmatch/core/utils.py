# backend/collabmatch/core/utils.py
"""
Generic helpers used across the pipeline and the partnership service.

Includes:
- id generation
- timezone-aware clock + lenient date parsing (dateutil)
- whole-day math
- half-up rounding / clamping (scores are always integers in [0, 100])
- lightweight string normalization for niche / brand comparisons
"""

from __future__ import annotations

import json
import math
import uuid
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, List, Optional

from dateutil import parser as date_parser

# -------- ids ---------------------------------------------------------------

def new_id(prefix: str = "") -> str:
    """Short random id, e.g. 'del-3f9a1c2b7e40'."""
    ident = uuid.uuid4().hex[:12]
    return f"{prefix}-{ident}" if prefix else ident

# -------- time --------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def ensure_aware(dt: datetime) -> datetime:
    """Naive datetimes are treated as UTC (SQLite drops tzinfo on the way back)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt

def parse_when(value: Any) -> Optional[datetime]:
    """
    Accept datetime / date / ISO-ish string / None and return an aware datetime.
    Bare dates resolve to midnight UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return ensure_aware(date_parser.isoparse(value.strip()))
        except ValueError:
            return ensure_aware(date_parser.parse(value.strip()))
    raise TypeError(f"Unsupported date value: {value!r}")

def whole_days_between(start: datetime, end: datetime) -> int:
    """Floor of (end - start) in days; negative spans floor towards -inf like the clock does."""
    delta = ensure_aware(end) - ensure_aware(start)
    return math.floor(delta.total_seconds() / 86400)

# -------- numbers -----------------------------------------------------------

def round_half_up(x: float) -> int:
    """Math.round semantics (0.5 -> 1, 2.5 -> 3), unlike Python's banker's rounding."""
    return int(math.floor(x + 0.5))

def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))

# -------- strings -----------------------------------------------------------

def norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()

def either_contains(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive substring match in either direction; blanks never match."""
    na, nb = norm(a), norm(b)
    if not na or not nb:
        return False
    return na in nb or nb in na

def clean_list(values: Optional[Iterable[Any]]) -> List[str]:
    """Drop blanks/duplicates while keeping first-seen order."""
    out: List[str] = []
    seen = set()
    for v in values or []:
        s = str(v).strip()
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out

def parse_vector(value: Any) -> Optional[List[float]]:
    """
    Embeddings arrive either as a list or as a JSON-encoded string (how some stores keep them).
    Anything unparsable is treated as 'no embedding'.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return None
    if not isinstance(value, (list, tuple)) or not value:
        return None
    try:
        return [float(x) for x in value]
    except (TypeError, ValueError):
        return None


__all__ = [
    "new_id",
    "utcnow",
    "ensure_aware",
    "parse_when",
    "whole_days_between",
    "round_half_up",
    "clamp",
    "norm",
    "either_contains",
    "clean_list",
    "parse_vector",
]

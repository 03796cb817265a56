# backend/collabmatch/core/errors.py
"""
Error taxonomy shared by the matching pipeline, the partnership service and the API.

ValidationError       bad input, rejected before any write
InvalidTransition     lifecycle violation, partnership untouched
NotFound              unknown brief / creator / partnership / deliverable
EmbeddingUnavailable  embedding provider failed or timed out (recovered by the pipeline)
PersistenceError      storage write failed, nothing committed
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CollabError(Exception):
    error_code = "collab_error"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


class ValidationError(CollabError):
    error_code = "validation_error"


class DimensionMismatch(ValidationError):
    error_code = "dimension_mismatch"

    def __init__(self, left: int, right: int) -> None:
        super().__init__(
            f"Embeddings must have the same length ({left} != {right})",
            details={"left": left, "right": right},
        )
        self.left = left
        self.right = right


class InvalidRating(ValidationError):
    error_code = "invalid_rating"

    def __init__(self, value: Any) -> None:
        super().__init__("Rating must be between 1 and 5", details={"rating": value})
        self.value = value


class CapacityExceeded(ValidationError):
    error_code = "capacity_exceeded"

    def __init__(self, creator_id: str) -> None:
        super().__init__(
            f"Creator {creator_id} has no free partnership capacity",
            details={"creator_id": creator_id},
        )
        self.creator_id = creator_id


class InvalidTransition(CollabError):
    error_code = "invalid_transition"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot transition from '{current}' to '{requested}'",
            details={"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


class NotFound(CollabError):
    error_code = "not_found"

    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(f"{kind.capitalize()} not found: {ident}", details={"kind": kind, "id": ident})
        self.kind = kind
        self.ident = ident


class EmbeddingUnavailable(CollabError):
    error_code = "embedding_unavailable"


class PersistenceError(CollabError):
    error_code = "persistence_error"


class ConcurrentModification(PersistenceError):
    error_code = "concurrent_modification"

    def __init__(self, partnership_id: str, expected_status: str) -> None:
        super().__init__(
            f"Partnership {partnership_id} changed concurrently (expected status '{expected_status}')",
            details={"partnership_id": partnership_id, "expected_status": expected_status},
        )


__all__ = [
    "CollabError",
    "ValidationError",
    "DimensionMismatch",
    "InvalidRating",
    "CapacityExceeded",
    "InvalidTransition",
    "NotFound",
    "EmbeddingUnavailable",
    "PersistenceError",
    "ConcurrentModification",
]

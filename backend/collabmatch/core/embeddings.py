# backend/collabmatch/core/embeddings.py
"""
Gemini embeddings + tiny helpers.
- cosine_similarity: the only vector math the matcher needs
- EmbeddingProvider: what the pipeline consumes (embed(text) -> vector)
- LangChainEmbeddingProvider: wraps any LangChain `Embeddings`; the default is
  GoogleGenerativeAIEmbeddings ("models/text-embedding-004"), built lazily so
  importing this module never needs an API key
- embed_with_timeout: bounded wait around the provider call
- build_*_embedding_text: text the brief / creator vectors are computed from
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from langchain_core.embeddings import Embeddings

from .config import EMBEDDING_MODEL, get_gemini_api_key
from .errors import DimensionMismatch, EmbeddingUnavailable
from .schemas import Brief, CreatorProfile


# ---- Vector math ------------------------------------------------------------

def cosine_similarity(u: Sequence[float], v: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1] for two equal-length vectors."""
    if len(u) != len(v):
        raise DimensionMismatch(len(u), len(v))
    dot = sum(a * b for a, b in zip(u, v))
    nu = math.sqrt(sum(a * a for a in u))
    nv = math.sqrt(sum(b * b for b in v))
    if nu == 0 or nv == 0:
        return 0.0
    return dot / (nu * nv)

# ---- Providers ----------------------------------------------------------------

@runtime_checkable
class EmbeddingProvider(Protocol):
    def embed(self, text: str) -> List[float]:
        ...


class LangChainEmbeddingProvider:
    """
    Adapter from a LangChain `Embeddings` model to EmbeddingProvider.
    Any failure of the underlying client surfaces as EmbeddingUnavailable.
    """

    def __init__(self, model: Optional[Embeddings] = None, model_name: str = EMBEDDING_MODEL) -> None:
        self._model = model
        self.model_name = model_name

    def _handle(self) -> Embeddings:
        if self._model is None:
            # needs GEMINI_API_KEY
            from langchain_google_genai import GoogleGenerativeAIEmbeddings

            self._model = GoogleGenerativeAIEmbeddings(
                model=self.model_name,
                google_api_key=get_gemini_api_key(),
            )
        return self._model

    def embed(self, text: str) -> List[float]:
        text = (text or "").strip()
        if not text:
            raise EmbeddingUnavailable("Cannot generate embedding for empty text")
        try:
            vec = self._handle().embed_query(text)
        except EmbeddingUnavailable:
            raise
        except Exception as e:
            raise EmbeddingUnavailable(f"Embedding provider failed: {e}") from e
        return [float(x) for x in vec]


def embed_with_timeout(provider: EmbeddingProvider, text: str, timeout_seconds: float) -> List[float]:
    """
    Run provider.embed on a worker thread and stop waiting after `timeout_seconds`.
    The worker is not killed on timeout; its late result is simply dropped.
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="embed")
    try:
        future = pool.submit(provider.embed, text)
        try:
            return future.result(timeout=timeout_seconds)
        except FutureTimeout as e:
            raise EmbeddingUnavailable(f"Embedding request timed out after {timeout_seconds}s") from e
        except EmbeddingUnavailable:
            raise
        except Exception as e:
            raise EmbeddingUnavailable(f"Embedding provider failed: {e}") from e
    finally:
        pool.shutdown(wait=False)

# ---- Embedding text ---------------------------------------------------------

def build_brief_embedding_text(brief: Brief) -> str:
    parts: List[str] = [brief.title, brief.description]
    if brief.product_name:
        parts.append(f"Product: {brief.product_name}")
    if brief.product_description:
        parts.append(brief.product_description)
    if brief.target_niches:
        parts.append(f"Looking for creators in: {', '.join(brief.target_niches)}")
    if brief.campaign_types:
        parts.append(f"Campaign type: {', '.join(brief.campaign_types)}")
    return ". ".join(p.strip() for p in parts if p and p.strip())


def follower_tier(count: int) -> str:
    if count < 10_000:
        return "nano"
    if count < 50_000:
        return "micro"
    if count < 500_000:
        return "mid-tier"
    return "macro"


def build_creator_embedding_text(creator: CreatorProfile) -> str:
    parts: List[str] = []
    if creator.bio:
        parts.append(creator.bio)
    if creator.niche:
        parts.append(f"Niche: {creator.niche}")
    if creator.past_brands:
        parts.append(f"Past brand collaborations: {', '.join(creator.past_brands)}")
    if creator.dream_brands:
        parts.append(f"Interested in working with: {', '.join(creator.dream_brands)}")
    if creator.follower_count:
        parts.append(f"{follower_tier(creator.follower_count)} creator with {creator.follower_count:,} followers")
    return ". ".join(p.strip() for p in parts if p and p.strip())


__all__ = [
    "cosine_similarity",
    "EmbeddingProvider",
    "LangChainEmbeddingProvider",
    "embed_with_timeout",
    "build_brief_embedding_text",
    "build_creator_embedding_text",
    "follower_tier",
]

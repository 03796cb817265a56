import pytest

from collabmatch.core.embeddings import (
    LangChainEmbeddingProvider,
    build_brief_embedding_text,
    build_creator_embedding_text,
    cosine_similarity,
    embed_with_timeout,
    follower_tier,
)
from collabmatch.core.errors import DimensionMismatch, EmbeddingUnavailable, ValidationError

from conftest import StubEmbeddingProvider


def test_identical_vectors_have_similarity_one() -> None:
    assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)


def test_orthogonal_and_opposite_vectors() -> None:
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


def test_zero_vector_yields_zero() -> None:
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


def test_length_mismatch_is_a_validation_error() -> None:
    with pytest.raises(DimensionMismatch) as exc:
        cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])
    assert isinstance(exc.value, ValidationError)
    assert exc.value.details == {"left": 2, "right": 3}


def test_similarity_is_symmetric() -> None:
    a, b = [0.3, -0.2, 0.9], [0.1, 0.4, 0.5]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
    assert -1.0 <= cosine_similarity(a, b) <= 1.0


def test_brief_embedding_text_joins_present_parts(make_brief) -> None:
    brief = make_brief(product_description="Plant protein, 20g per scoop", campaign_types=["reel", "ugc"])
    text = build_brief_embedding_text(brief)
    assert text == (
        "Spring protein launch. Short-form workout content featuring our new shake. "
        "Product: LiftShake. Plant protein, 20g per scoop. "
        "Looking for creators in: fitness. Campaign type: reel, ugc"
    )


def test_creator_embedding_text_mentions_tier(make_creator) -> None:
    creator = make_creator(past_brands=["Gymshark"], dream_brands=["Nike"])
    text = build_creator_embedding_text(creator)
    assert text.startswith("Strength coach sharing home workouts. Niche: fitness")
    assert "Past brand collaborations: Gymshark" in text
    assert "Interested in working with: Nike" in text
    assert text.endswith("mid-tier creator with 50,000 followers")


@pytest.mark.parametrize(
    "count,tier",
    [(9_999, "nano"), (10_000, "micro"), (49_999, "micro"), (50_000, "mid-tier"), (500_000, "macro")],
)
def test_follower_tier_boundaries(count: int, tier: str) -> None:
    assert follower_tier(count) == tier


def test_embed_with_timeout_returns_vector() -> None:
    provider = StubEmbeddingProvider(vector=[0.5, 0.5])
    assert embed_with_timeout(provider, "hello", 1.0) == [0.5, 0.5]


def test_embed_with_timeout_raises_unavailable_on_slow_provider() -> None:
    provider = StubEmbeddingProvider(delay=0.5)
    with pytest.raises(EmbeddingUnavailable):
        embed_with_timeout(provider, "hello", 0.05)


def test_embed_with_timeout_wraps_unexpected_errors() -> None:
    class Boom:
        def embed(self, text):
            raise RuntimeError("socket closed")

    with pytest.raises(EmbeddingUnavailable, match="socket closed"):
        embed_with_timeout(Boom(), "hello", 1.0)


def test_langchain_provider_wraps_model_failures() -> None:
    class BrokenModel:
        def embed_query(self, text):
            raise ConnectionError("network down")

    provider = LangChainEmbeddingProvider(model=BrokenModel())
    with pytest.raises(EmbeddingUnavailable):
        provider.embed("some brief text")


def test_langchain_provider_rejects_empty_text() -> None:
    class Model:
        def embed_query(self, text):
            return [1, 2, 3]

    provider = LangChainEmbeddingProvider(model=Model())
    assert provider.embed("abc") == [1.0, 2.0, 3.0]
    with pytest.raises(EmbeddingUnavailable):
        provider.embed("   ")

import math

import pytest
from fakes import make_item

from api.v1.search.index import SearchCandidate
from api.v1.search.reranker import Reranker, comparison_text, relevance_label


def candidates_for(*items, distance: float = 0.5) -> list[SearchCandidate]:
    return [SearchCandidate(item=item, distance=distance) for item in items]


@pytest.fixture
def reranker(embedder, test_settings):
    return Reranker(embedder, test_settings)


@pytest.mark.parametrize(
    "score,label",
    [
        (0.95, "Highly Relevant"),
        (0.9, "Highly Relevant"),
        (0.85, "Very Relevant"),
        (0.75, "Relevant"),
        (0.65, "Somewhat Relevant"),
        (0.5, "Marginally Relevant"),
        (0.0, "Marginally Relevant"),
    ],
)
def test_relevance_label(score, label):
    assert relevance_label(score) == label


def test_comparison_text_joins_and_truncates():
    item = make_item(title="Title", description="Summary", content="x" * 600)

    text = comparison_text(item, 512)
    assert text.startswith("Title Summary x")
    assert len(text) == 512


async def test_empty_candidates(reranker):
    assert await reranker.rerank("transformer", []) == []


async def test_scores_thresholds_and_orders(reranker):
    exact = make_item("Transformer architecture")
    partial = make_item("Transformer notes", content_type="note")
    unrelated = make_item("Pasta recipe", content_type="note")
    empty = make_item(content_type="bookmark")

    ranked = await reranker.rerank(
        "transformer architecture", candidates_for(unrelated, partial, empty, exact)
    )

    assert [r.item for r in ranked] == [exact, partial]
    assert ranked[0].similarity_score == pytest.approx(1.0)
    assert ranked[0].relevance_label == "Highly Relevant"
    assert ranked[1].similarity_score == pytest.approx(0.5)
    assert ranked[1].relevance_label == "Marginally Relevant"


async def test_type_boost_reorders_but_does_not_change_labels(reranker):
    article = make_item("Transformer architecture")
    video = make_item(
        "Transformer transformer architecture architecture attention", content_type="video"
    )

    ranked = await reranker.rerank("transformer video", candidates_for(article, video))

    assert [r.item for r in ranked] == [video, article]
    assert ranked[0].similarity_score == pytest.approx(2 / 3)
    assert ranked[0].boosted_score == pytest.approx(0.8)
    assert ranked[0].relevance_label == "Somewhat Relevant"
    assert ranked[1].similarity_score == pytest.approx(1 / math.sqrt(2))
    assert ranked[1].boosted_score == ranked[1].similarity_score


async def test_boost_never_rescues_weak_match(reranker):
    weak_video = make_item(
        "transformer architecture attention model models scaling production inference storage",
        content_type="video",
    )

    ranked = await reranker.rerank("transformer video", candidates_for(weak_video))

    assert ranked == []


async def test_top_k_limits_output(reranker):
    titles = [
        "transformer",
        "transformer architecture",
        "transformer attention",
        "transformer architecture attention",
        "transformer scaling",
        "transformer model",
        "architecture",
        "pasta recipe",
        "garden",
        "transformer architecture inference",
    ]
    items = [make_item(title) for title in titles]

    ranked = await reranker.rerank("transformer architecture", candidates_for(*items), top_k=5)

    assert len(ranked) <= 5
    assert all(r.similarity_score >= 0.35 for r in ranked)
    boosted = [r.boosted_score for r in ranked]
    assert boosted == sorted(boosted, reverse=True)


async def test_survivors_do_not_depend_on_boost(embedder, test_settings):
    items = [
        make_item("transformer", content_type="video"),
        make_item("transformer architecture attention storage", content_type="video"),
        make_item("transformer architecture"),
        make_item("garden"),
    ]
    boosted = Reranker(embedder, test_settings)
    unboosted = Reranker(embedder, test_settings.model_copy(update={"rerank_type_boost": 1.0}))

    with_boost = await boosted.rerank("transformer video", candidates_for(*items), top_k=10)
    without_boost = await unboosted.rerank("transformer video", candidates_for(*items), top_k=10)

    assert {r.item.id for r in with_boost} == {r.item.id for r in without_boost}


async def test_equal_scores_keep_candidate_order(reranker):
    first = make_item("transformer")
    second = make_item("transformer")

    ranked = await reranker.rerank("transformer", candidates_for(first, second))

    assert [r.item for r in ranked] == [first, second]


async def test_failure_returns_original_candidates(reranker, monkeypatch):
    async def broken(text):
        raise RuntimeError("embedding backend down")

    monkeypatch.setattr(reranker.embedder, "embed", broken)
    items = [make_item("pasta"), make_item("transformer")]
    candidates = [
        SearchCandidate(item=items[0], distance=0.1),
        SearchCandidate(item=items[1], distance=0.2),
    ]

    ranked = await reranker.rerank("transformer", candidates, top_k=1)

    assert [r.item for r in ranked] == items
    assert [r.distance for r in ranked] == [0.1, 0.2]
    assert all(r.similarity_score is None for r in ranked)
    assert all(r.relevance_label is None for r in ranked)


async def test_each_candidate_is_embedded(reranker, vectorizer):
    items = [make_item(f"transformer {word}") for word in ("storage", "scaling", "inference")]

    await reranker.rerank("transformer", candidates_for(*items))

    assert set(vectorizer.calls) == {
        "transformer",
        "transformer storage",
        "transformer scaling",
        "transformer inference",
    }


async def test_symbol_only_candidate_scores_zero(reranker, vectorizer):
    unrelated = make_item("Pasta recipe", content_type="note")
    symbols = make_item("★★★", tags=["garden"])
    exact = make_item("Transformer architecture")

    ranked = await reranker.rerank(
        "transformer architecture", candidates_for(unrelated, symbols, exact)
    )

    assert [r.item for r in ranked] == [exact]
    assert ranked[0].similarity_score == pytest.approx(1.0)
    assert ranked[0].relevance_label == "Highly Relevant"
    assert "★★★" not in vectorizer.calls

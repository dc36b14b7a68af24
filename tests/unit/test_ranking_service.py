from unittest.mock import AsyncMock

import pytest

from app.features.ready_plans.pipeline.ranking.service import (
    RankingService,
    cosine_similarity,
    parse_vector,
)

REPO = "app.features.ready_plans.pipeline.ranking.service.RankingRepository"


def _vectors(v2: dict, v1: dict):
    async def _fetch(table, column, user_ids):
        return v2 if table == "digital_dna_v2" else v1

    return _fetch


def test_cosine_similarity():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([1, 2], [1]) == 0.0
    assert cosine_similarity([0, 0], [1, 1]) == 0.0


def test_parse_vector_accepts_lists_and_text():
    assert parse_vector([1, 2]) == [1.0, 2.0]
    assert parse_vector("[0.5, 0.25]") == [0.5, 0.25]
    assert parse_vector("not a vector") == []
    assert parse_vector(None) == []


def test_parse_vector_with_non_numeric_elements_reads_as_missing():
    assert parse_vector(["0.1", "abc"]) == []
    assert parse_vector("[0.1, null]") == []
    assert parse_vector('[0.1, {"x": 1}]') == []
    assert parse_vector(("1", "2")) == [1.0, 2.0]


@pytest.mark.asyncio
async def test_v2_vectors_take_precedence_and_result_is_sorted(monkeypatch):
    monkeypatch.setattr(
        f"{REPO}.fetch_candidate_profiles",
        AsyncMock(
            return_value=[
                {"id": "a", "interests": [], "school": None},
                {"id": "b", "interests": [], "school": None},
            ]
        ),
    )
    monkeypatch.setattr(
        f"{REPO}.fetch_dna_vectors",
        _vectors(
            v2={"me": [1, 0], "a": [0, 1], "b": [1, 0]},
            v1={"me": [1, 0], "a": [1, 0], "b": [0, 1]},
        ),
    )

    ranked = await RankingService().rank_connections("me", ["a", "b"], {"interests": []})

    assert [c.id for c in ranked] == ["b", "a"]
    assert ranked[0].similarity == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_falls_back_to_v1_then_interest_overlap(monkeypatch):
    monkeypatch.setattr(
        f"{REPO}.fetch_candidate_profiles",
        AsyncMock(
            return_value=[
                {"id": "a", "interests": ["jazz", "film"], "school": None},
                {"id": "b", "interests": ["chess"], "school": None},
            ]
        ),
    )
    monkeypatch.setattr(
        f"{REPO}.fetch_dna_vectors",
        _vectors(v2={}, v1={"me": [1, 1], "b": [1, 1]}),
    )

    ranked = await RankingService().rank_connections(
        "me", ["a", "b"], {"interests": ["jazz", "hiking"]}
    )

    by_id = {c.id: c for c in ranked}
    assert by_id["b"].similarity == pytest.approx(1.0)
    # 1 shared of 3 distinct interests
    assert by_id["a"].similarity == pytest.approx(1 / 3)
    assert by_id["a"].shared_interests == ["jazz"]


@pytest.mark.asyncio
async def test_same_school_bonus(monkeypatch):
    monkeypatch.setattr(
        f"{REPO}.fetch_candidate_profiles",
        AsyncMock(
            return_value=[
                {"id": "a", "interests": [], "school": "State"},
                {"id": "b", "interests": [], "school": "Tech"},
            ]
        ),
    )
    monkeypatch.setattr(f"{REPO}.fetch_dna_vectors", _vectors(v2={}, v1={}))

    ranked = await RankingService().rank_connections("me", ["a", "b"], {"school": "State"})

    assert ranked[0].id == "a"
    assert ranked[0].similarity == pytest.approx(0.1)
    assert ranked[1].similarity == 0.0


@pytest.mark.asyncio
async def test_no_profiles_yields_no_candidates(monkeypatch):
    monkeypatch.setattr(f"{REPO}.fetch_candidate_profiles", AsyncMock(return_value=[]))

    assert await RankingService().rank_connections("me", ["a"], None) == []

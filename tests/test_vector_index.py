from unittest.mock import MagicMock

import pytest

from persistence_operations import InMemoryTabRepository
from search_operations.core.search_ops_exceptions import VectorSearchError
from search_operations.indexes import InMemoryVectorIndex, MilvusVectorIndex
from search_operations.search.semantic import VectorSearch

from conftest import make_tab


@pytest.mark.asyncio
async def test_in_memory_index_orders_by_distance_and_applies_cutoff(repository):
    index = InMemoryVectorIndex(repository)

    matches = await index.query([1.0, 0.0, 0.0], "user_001", limit=10, max_distance=0.7)

    assert [m.tab_id for m in matches] == ["stripe", "paypal"]
    assert matches[0].distance == pytest.approx(0.0)
    assert matches[1].distance == pytest.approx(0.2)


@pytest.mark.asyncio
async def test_in_memory_index_ignores_tabs_without_embeddings():
    repository = InMemoryTabRepository([
        make_tab("embedded", embedding=[0.0, 1.0]),
        make_tab("pending"),
    ])

    matches = await InMemoryVectorIndex(repository).query([0.0, 1.0], "user_001", limit=5)

    assert [m.tab_id for m in matches] == ["embedded"]


@pytest.mark.asyncio
async def test_in_memory_index_skips_tabs_with_other_dimension():
    repository = InMemoryTabRepository([
        make_tab("stale", embedding=[1.0, 0.0]),
        make_tab("fresh", embedding=[1.0, 0.0, 0.0]),
    ])

    matches = await InMemoryVectorIndex(repository).query([1.0, 0.0, 0.0], "user_001", limit=5)

    assert [m.tab_id for m in matches] == ["fresh"]


@pytest.mark.asyncio
async def test_vector_search_scores_by_similarity(repository):
    search = VectorSearch(InMemoryVectorIndex(repository))

    hits = await search.search_by_vector([1.0, 0.0, 0.0], "user_001", limit=1)

    assert [h.tab_id for h in hits] == ["stripe"]
    assert hits[0].score == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_vector_search_without_embedding_returns_nothing(repository):
    search = VectorSearch(InMemoryVectorIndex(repository))

    assert await search.search_by_vector(None, "user_001", limit=5) == []


@pytest.mark.asyncio
async def test_milvus_index_converts_similarity_to_distance():
    client = MagicMock()
    client.search.return_value = [[
        {"id": "row-1", "distance": 0.95, "entity": {"tab_id": "stripe"}},
        {"id": "row-2", "distance": 0.5, "entity": {"tab_id": "paypal"}},
        {"id": "row-3", "distance": 0.2, "entity": {"tab_id": "recipes"}},
    ]]
    index = MilvusVectorIndex(collection_name="tabs", client=client)

    matches = await index.query([1.0, 0.0], "user_001", limit=3)

    assert [m.tab_id for m in matches] == ["stripe", "paypal"]
    assert matches[0].distance == pytest.approx(0.05)
    kwargs = client.search.call_args.kwargs
    assert kwargs["collection_name"] == "tabs"
    assert kwargs["filter"] == 'owner_id == "user_001" and status != "discarded"'
    assert kwargs["limit"] == 3


@pytest.mark.asyncio
async def test_milvus_failure_raises_vector_search_error():
    client = MagicMock()
    client.search.side_effect = RuntimeError("collection not loaded")
    index = MilvusVectorIndex(client=client)

    with pytest.raises(VectorSearchError):
        await index.query([1.0, 0.0], "user_001", limit=3)


@pytest.mark.asyncio
async def test_milvus_index_upserts_only_embedded_tabs():
    client = MagicMock()
    index = MilvusVectorIndex(client=client)

    await index.index_tab(make_tab("pending"))
    await index.index_tab(make_tab("t1", embedding=[0.1, 0.2]))
    await index.remove_tab("t1")

    client.upsert.assert_called_once()
    row = client.upsert.call_args.kwargs["data"][0]
    assert row["tab_id"] == "t1"
    assert row["embedding"] == [0.1, 0.2]
    assert client.delete.call_args.kwargs["filter"] == 'tab_id == "t1"'

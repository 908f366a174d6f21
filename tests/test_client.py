import pytest

from client import TabOpsClient
from config import TabOpsSettings
from persistence_operations import InMemoryTabRepository
from search_operations import InvalidSearchParametersError
from tab_ops_exceptions import ConfigurationError

from conftest import (
    FakeAIProvider,
    FakeContentProvider,
    FakeEmbeddingProvider,
    FakeScreenshotProvider,
    make_tab,
)


def build_client(monkeypatch, **overrides):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    repository = InMemoryTabRepository([
        make_tab("t1", url="https://stripe.com/docs"),
        make_tab("t2", url="https://cooking.example.com/pasta"),
    ])
    components = {
        "repository": repository,
        "embedding_provider": FakeEmbeddingProvider(),
        "content_provider": FakeContentProvider(),
        "screenshot_provider": FakeScreenshotProvider(),
        "ai_provider": FakeAIProvider(),
    }
    components.update(overrides)
    return TabOpsClient(TabOpsSettings(), **components)


@pytest.mark.asyncio
async def test_enriched_tabs_become_searchable(monkeypatch):
    client = build_client(monkeypatch)

    report = await client.process_batch(["t1", "t2"], "user_001", import_batch_id="import-1")
    response = await client.search("extracted", "user_001")

    assert report.to_dict()["successful"] == 2
    assert set(response.ids) == {"t1", "t2"}
    assert response.to_dict()["searchMode"] == "hybrid"
    assert (await client.get_embedding_stats("user_001"))["percentage"] == 100.0
    await client.close()


@pytest.mark.asyncio
async def test_search_parameter_errors(monkeypatch):
    client = build_client(monkeypatch)

    with pytest.raises(InvalidSearchParametersError):
        await client.search("stripe", "user_001", blend=1.0, vector_weight=0.5)
    with pytest.raises(InvalidSearchParametersError):
        await client.search("stripe", "user_001", blend=3.0)
    with pytest.raises(InvalidSearchParametersError):
        await client.search("stripe", "")
    await client.close()


@pytest.mark.asyncio
async def test_background_submission_and_health(monkeypatch):
    client = build_client(monkeypatch)

    report = await client.submit_background(["t1"], "user_001", "embeddings")
    health = await client.health_check()

    assert report.successful == 1
    assert health["worker_pool"]["completed"] == 1
    assert "gemini" in health["rate_limiters"]
    await client.close()
    assert client.worker_pool.get_stats()["closed"] is True


@pytest.mark.asyncio
async def test_regenerate_all_and_backfill(monkeypatch):
    client = build_client(monkeypatch)

    report = await client.regenerate_all("user_001", "screenshots")
    backfilled = await client.update_missing_embeddings("user_001")

    assert report.processed == 2
    assert backfilled == 2
    await client.close()


@pytest.mark.asyncio
async def test_without_api_key_no_gemini_providers_are_built(monkeypatch):
    client = build_client(monkeypatch, embedding_provider=None, ai_provider=None)

    assert client.embedding_provider is None
    assert client.ai_provider is None
    assert client.screenshot_provider is not None
    await client.close()


def test_invalid_config_type():
    with pytest.raises(ConfigurationError):
        TabOpsClient(config=42)

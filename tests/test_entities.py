from datetime import datetime, timezone

import pytest

from persistence_operations import (
    InMemoryTabRepository,
    TabStatus,
    TabUpdates,
    extract_domain,
    tab_from_row,
)
from tab_ops_exceptions import ValidationError

from conftest import make_tab


def test_tab_from_camel_case_row():
    tab = tab_from_row({
        "id": 42,
        "userId": "user_001",
        "url": "https://www.stripe.com/docs",
        "screenshotUrl": "https://cdn.example.com/s.png",
        "embeddingVector": "[0.1, 0.2]",
        "dateAdded": datetime(2024, 1, 5, tzinfo=timezone.utc),
        "status": "kept",
    })

    assert tab.id == "42"
    assert tab.owner_id == "user_001"
    assert tab.domain == "stripe.com"
    assert tab.screenshot_url == "https://cdn.example.com/s.png"
    assert tab.embedding == [0.1, 0.2]
    assert tab.status == TabStatus.KEPT
    assert tab.date_added.year == 2024


@pytest.mark.parametrize("raw, expected", [
    ('["finance", "docs"]', ["finance", "docs"]),
    ("finance, docs", ["finance", "docs"]),
    ([{"name": "finance"}, {"name": "finance"}], ["finance"]),
    ([{"tag": {"name": "docs"}}], ["docs"]),
    (None, []),
])
def test_tag_shapes_are_normalized(raw, expected):
    tab = tab_from_row({"id": "t1", "owner_id": "u1", "url": "https://a.com", "tags": raw})

    assert tab.tags == expected


def test_extract_domain():
    assert extract_domain("https://www.github.com/docs") == "github.com"
    assert extract_domain("") == ""


def test_updates_only_carry_fields_that_were_set():
    updates = TabUpdates(summary="Payments platform", category=None)

    assert updates.as_fields() == {"summary": "Payments platform", "category": None}
    assert not updates.is_empty()
    assert TabUpdates().is_empty()


@pytest.mark.asyncio
async def test_partial_update_leaves_other_fields_untouched():
    repository = InMemoryTabRepository([make_tab("t1", title="Original", summary="Old")])

    affected = await repository.update_tab("t1", TabUpdates(summary="New"))

    tab = repository.get("t1")
    assert affected == 1
    assert tab.title == "Original"
    assert tab.summary == "New"
    assert tab.updated_at is not None


@pytest.mark.asyncio
async def test_update_of_missing_tab_affects_zero_rows():
    repository = InMemoryTabRepository()

    assert await repository.update_tab("gone", TabUpdates(summary="x")) == 0
    assert await repository.update_tab("gone", TabUpdates()) == 0


@pytest.mark.asyncio
async def test_get_tabs_by_ids_is_owner_scoped(repository):
    tabs = await repository.get_tabs_by_ids(["stripe", "other-owner", "unknown"], "user_001")

    assert [t.id for t in tabs] == ["stripe"]


@pytest.mark.asyncio
async def test_list_tabs_without_embeddings():
    repository = InMemoryTabRepository([
        make_tab("a"),
        make_tab("b", embedding=[1.0]),
        make_tab("c"),
    ])

    pending = await repository.list_tabs_without_embeddings("user_001", limit=1)

    assert [t.id for t in pending] == ["a"]


@pytest.mark.asyncio
async def test_add_tabs_rejects_empty_id():
    with pytest.raises(ValidationError):
        await InMemoryTabRepository().add_tabs([make_tab("")])

"""Unit tests for InMemoryDocumentStore."""

import pytest

from infrastructure.document_store import InMemoryDocumentStore
from shared_kernel.persistence import AnyOf, DocumentStore


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


async def _seed(store: InMemoryDocumentStore) -> None:
    for record_id, tenant_id in (("r1", "T1"), ("r2", "T1"), ("r3", "T2")):
        await store.insert(
            "buildings",
            {"id": record_id, "tenant_id": tenant_id, "version": 0, "name": record_id},
        )


class TestInMemoryDocumentStore:
    """Tests for filtering, conditional updates, and copying."""

    def test_satisfies_port(self, store):
        assert isinstance(store, DocumentStore)

    @pytest.mark.asyncio
    async def test_find_filters_and_orders(self, store):
        await _seed(store)

        records = await store.find("buildings", {"tenant_id": "T1"}, order_by="id")

        assert [record["id"] for record in records] == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_find_with_any_of_and_limit(self, store):
        await _seed(store)

        records = await store.find(
            "buildings", {"id": AnyOf.of(["r1", "r3"])}, order_by="id", limit=1
        )

        assert [record["id"] for record in records] == ["r1"]

    @pytest.mark.asyncio
    async def test_missing_field_matches_none(self, store):
        await _seed(store)

        assert await store.count("buildings", {"floor_id": None}) == 3

    @pytest.mark.asyncio
    async def test_duplicate_id_is_rejected(self, store):
        await _seed(store)

        with pytest.raises(ValueError):
            await store.insert("buildings", {"id": "r1", "version": 0})

    @pytest.mark.asyncio
    async def test_update_many_is_conditional_and_bumps_version(self, store):
        await _seed(store)

        stale = await store.update_many(
            "buildings", {"id": "r1", "version": 5}, {"name": "x"}
        )
        current = await store.update_many(
            "buildings", {"id": "r1", "version": 0}, {"name": "x"}
        )
        record = (await store.find("buildings", {"id": "r1"}))[0]

        assert (stale, current) == (0, 1)
        assert record["version"] == 1
        assert record["name"] == "x"

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store):
        await _seed(store)

        record = (await store.find("buildings", {"id": "r1"}))[0]
        record["name"] = "mutated"

        stored = (await store.find("buildings", {"id": "r1"}))[0]
        assert stored["name"] == "r1"

    @pytest.mark.asyncio
    async def test_checkpoint_is_counted(self, store):
        await store.checkpoint()
        assert store.checkpoints == 1

"""Unit tests for SqlDocumentStore.

The session is mocked and the captured statements are compiled with the
PostgreSQL dialect, so no database is needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from infrastructure.document_store import RecordModel, SqlDocumentStore
from shared_kernel.persistence import AnyOf


def _sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


@pytest.fixture
def session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sql_store(session) -> SqlDocumentStore:
    return SqlDocumentStore(session)


class TestRecordModel:
    def test_from_record_splits_columns_and_data(self):
        model = RecordModel.from_record(
            "buildings",
            {"id": "B1", "tenant_id": "T1", "version": 2, "name": "North"},
        )

        assert model.collection == "buildings"
        assert model.tenant_id == "T1"
        assert model.version == 2
        assert model.data == {"name": "North"}

    def test_to_record_merges_data(self):
        model = RecordModel(
            collection="tenants",
            id="T1",
            tenant_id=None,
            version=0,
            is_deleted=False,
            data={"name": "Acme"},
        )

        record = model.to_record()

        assert record["name"] == "Acme"
        assert record["id"] == "T1"
        assert "tenant_id" not in record


class TestSqlDocumentStore:
    """Tests for the statements the store issues."""

    @pytest.mark.asyncio
    async def test_find_uses_columns_and_jsonb(self, sql_store, session):
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        session.execute.return_value = result

        await sql_store.find(
            "buildings",
            {"tenant_id": "T1", "is_deleted": False, "site_id": "S1"},
            order_by="id",
            limit=10,
        )

        sql = _sql(session.execute.await_args.args[0])
        assert "records.collection = " in sql
        assert "records.tenant_id = " in sql
        assert "records.is_deleted = " in sql
        assert "records.data @> " in sql
        assert "ORDER BY records.id" in sql
        assert "LIMIT" in sql

    @pytest.mark.asyncio
    async def test_find_with_empty_any_of_matches_nothing(self, sql_store, session):
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        session.execute.return_value = result

        await sql_store.find("buildings", {"id": AnyOf.of([])})

        assert "false" in _sql(session.execute.await_args.args[0])

    @pytest.mark.asyncio
    async def test_update_many_is_one_conditional_statement(self, sql_store, session):
        session.execute.return_value = MagicMock(rowcount=1)

        matched = await sql_store.update_many(
            "buildings", {"id": "B1", "version": 3}, {"name": "North Tower"}
        )

        assert matched == 1
        session.execute.assert_awaited_once()
        sql = _sql(session.execute.await_args.args[0])
        assert sql.startswith("UPDATE records SET")
        assert "version=(records.version + " in sql
        assert "records.data || " in sql
        assert "records.version = " in sql

    @pytest.mark.asyncio
    async def test_insert_flushes_without_commit(self, sql_store, session):
        record = await sql_store.insert(
            "buildings", {"id": "B1", "tenant_id": "T1", "version": 0, "name": "N"}
        )

        session.add.assert_called_once()
        session.flush.assert_awaited_once()
        session.commit.assert_not_awaited()
        assert record["name"] == "N"

    @pytest.mark.asyncio
    async def test_checkpoint_commits(self, sql_store, session):
        await sql_store.checkpoint()

        session.commit.assert_awaited_once()


class TestExternalIds:
    """Agnostic collections keep ids issued by identity providers."""

    IDP_SUBJECT = "auth0|65f1c2d3e4f5a6b7c8d9e0f1a2b3c4d5e6f7a8b9"

    def test_id_column_fits_identity_provider_subjects(self):
        ddl = str(CreateTable(RecordModel.__table__).compile(dialect=postgresql.dialect()))

        assert "id VARCHAR(255) NOT NULL" in ddl
        assert len(self.IDP_SUBJECT) <= RecordModel.__table__.c.id.type.length

    @pytest.mark.asyncio
    async def test_insert_keeps_long_actor_id(self, sql_store, session):
        record = await sql_store.insert(
            "actors",
            {
                "id": self.IDP_SUBJECT,
                "version": 0,
                "is_deleted": False,
                "home_tenant_id": "01ARZ3NDEKTSV4RRFFQ69G5FAV",
            },
        )

        model = session.add.call_args.args[0]
        assert model.id == self.IDP_SUBJECT
        assert model.tenant_id is None
        assert record["id"] == self.IDP_SUBJECT
        session.flush.assert_awaited_once()

"""PostgreSQL implementation of the DocumentStore port.

Filters on first-class columns become column predicates; any other field is
matched inside the JSONB ``data`` column. ``update_many`` is a single UPDATE
statement, so the version check in its WHERE clause and the version bump in
its SET clause are atomic with respect to concurrent writers.

The store shares the caller's session and never commits on its own.
``checkpoint`` is the only place a commit happens.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, false, func, literal, or_, select, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import utc_now
from infrastructure.document_store.models import COLUMN_FIELDS, RecordModel
from shared_kernel.persistence.ports import AnyOf, Filters, Record


def _column_condition(column: Any, expected: Any) -> ColumnElement[bool]:
    if isinstance(expected, AnyOf):
        if not expected.values:
            return false()
        return column.in_(expected.values)
    if expected is None:
        return column.is_(None)
    return column == expected


def _data_condition(key: str, expected: Any) -> ColumnElement[bool]:
    if isinstance(expected, AnyOf):
        if not expected.values:
            return false()
        return or_(*(_data_condition(key, value) for value in expected.values))
    if expected is None:
        # ->> yields NULL for both a missing key and a JSON null
        return RecordModel.data[key].astext.is_(None)
    return RecordModel.data.contains({key: expected})


class SqlDocumentStore:
    """DocumentStore backed by the records table.

    Args:
        session: The SQLAlchemy async session owned by the caller
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _conditions(
        self, collection: str, filters: Filters
    ) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [
            RecordModel.collection == collection
        ]
        for key, expected in filters.items():
            if key in COLUMN_FIELDS:
                conditions.append(
                    _column_condition(getattr(RecordModel, key), expected)
                )
            else:
                conditions.append(_data_condition(key, expected))
        return conditions

    async def find(
        self,
        collection: str,
        filters: Filters,
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        stmt = select(RecordModel).where(*self._conditions(collection, filters))
        if order_by is not None:
            if order_by in COLUMN_FIELDS:
                stmt = stmt.order_by(getattr(RecordModel, order_by))
            else:
                stmt = stmt.order_by(RecordModel.data[order_by].astext)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return [model.to_record() for model in result.scalars().all()]

    async def insert(self, collection: str, record: Record) -> Record:
        model = RecordModel.from_record(collection, record)
        self._session.add(model)
        await self._session.flush()
        return model.to_record()

    async def update_many(
        self,
        collection: str,
        filters: Filters,
        changes: Mapping[str, Any],
    ) -> int:
        column_changes = {
            key: value for key, value in changes.items() if key in COLUMN_FIELDS
        }
        data_changes = {
            key: value for key, value in changes.items() if key not in COLUMN_FIELDS
        }

        values: dict[str, Any] = {
            **column_changes,
            "version": RecordModel.version + 1,
            "updated_at": utc_now(),
        }
        if data_changes:
            values["data"] = RecordModel.data.op("||")(
                literal(data_changes, type_=JSONB)
            )

        stmt = (
            update(RecordModel)
            .where(*self._conditions(collection, filters))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    async def count(self, collection: str, filters: Filters) -> int:
        stmt = (
            select(func.count())
            .select_from(RecordModel)
            .where(*self._conditions(collection, filters))
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def checkpoint(self) -> None:
        await self._session.commit()

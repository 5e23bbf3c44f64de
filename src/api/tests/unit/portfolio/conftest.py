"""Portfolio test fixtures: services over the in-memory store."""

from dataclasses import dataclass
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from portfolio.application.cascade_engine import CascadeDeletionEngine
from portfolio.application.observability import CascadeProbe, VersionGuardProbe
from portfolio.application.record_service import RecordService
from portfolio.application.version_guard import VersionConflictGuard
from portfolio.domain.hierarchy import EntityType
from portfolio.infrastructure.pending_file_tag_repository import (
    PendingFileTagRepository,
)
from shared_kernel.persistence import Record

DELETED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@dataclass
class PortfolioTree:
    """Customer > site > two buildings, a floor in the first, an asset on it."""

    customer: Record
    site: Record
    building_1: Record
    building_2: Record
    floor: Record
    asset: Record


@pytest.fixture
def deleted_at() -> datetime:
    return DELETED_AT


@pytest.fixture
def mock_cascade_probe():
    """Mock CascadeProbe."""
    return MagicMock(spec=CascadeProbe)


@pytest.fixture
def mock_version_guard_probe():
    """Mock VersionGuardProbe."""
    return MagicMock(spec=VersionGuardProbe)


@pytest.fixture
def pending_tags(scoped_store) -> PendingFileTagRepository:
    return PendingFileTagRepository(scoped_store)


@pytest.fixture
def cascade_engine(scoped_store, file_storage, pending_tags, mock_cascade_probe):
    """Cascade engine with a fixed clock."""
    return CascadeDeletionEngine(
        store=scoped_store,
        file_storage=file_storage,
        pending_tags=pending_tags,
        retention_days=30,
        probe=mock_cascade_probe,
        clock=lambda: DELETED_AT,
    )


@pytest.fixture
def version_guard(scoped_store, mock_version_guard_probe):
    return VersionConflictGuard(store=scoped_store, probe=mock_version_guard_probe)


@pytest.fixture
def record_service(scoped_store, version_guard, cascade_engine):
    return RecordService(
        store=scoped_store,
        version_guard=version_guard,
        cascade_engine=cascade_engine,
    )


@pytest_asyncio.fixture
async def tree(scoped_store, acting_in, tenant_a) -> PortfolioTree:
    """Seed a small portfolio in tenant A."""

    async def create(entity_type: EntityType, **fields) -> Record:
        return await scoped_store.create(entity_type.collection, fields)

    with acting_in(tenant_a):
        customer = await create(EntityType.CUSTOMER, name="Acme Holdings")
        site = await create(EntityType.SITE, name="Campus", customer_id=customer["id"])
        ancestors = {"customer_id": customer["id"], "site_id": site["id"]}
        building_1 = await create(EntityType.BUILDING, name="North", **ancestors)
        building_2 = await create(EntityType.BUILDING, name="South", **ancestors)
        floor = await create(
            EntityType.FLOOR, name="Level 1", building_id=building_1["id"], **ancestors
        )
        asset = await create(
            EntityType.ASSET,
            name="Chiller",
            building_id=building_1["id"],
            floor_id=floor["id"],
            files=[{"bucket_ref": "assets", "object_key": "chiller/manual.pdf"}],
            **ancestors,
        )

    return PortfolioTree(customer, site, building_1, building_2, floor, asset)

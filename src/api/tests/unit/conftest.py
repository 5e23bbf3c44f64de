"""Unit test fixtures with in-memory collaborators."""

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from unittest.mock import MagicMock

import pytest

from infrastructure.document_store import InMemoryDocumentStore
from portfolio import dependencies as portfolio_dependencies
from portfolio.infrastructure.memory_file_storage import InMemoryFileStorage
from shared_kernel.request_context import RequestContext, bound_context
from shared_kernel.scoping import CollectionRegistry, ScopingProbe, TenantScopedStore
from tenancy import dependencies as tenancy_dependencies

TENANT_A = "01ARZ3NDEKTSV4RRFFQ69G5FAA"
TENANT_B = "01ARZ3NDEKTSV4RRFFQ69G5FBB"

ActingIn = Callable[..., AbstractContextManager[RequestContext]]


@pytest.fixture
def tenant_a() -> str:
    return TENANT_A


@pytest.fixture
def tenant_b() -> str:
    return TENANT_B


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
    )


@pytest.fixture
def registry() -> CollectionRegistry:
    """Registry with every collection the application registers."""
    registry = CollectionRegistry()
    tenancy_dependencies.register_collections(registry)
    portfolio_dependencies.register_collections(registry)
    return registry


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def mock_scoping_probe():
    """Mock ScopingProbe."""
    return MagicMock(spec=ScopingProbe)


@pytest.fixture
def scoped_store(memory_store, registry, mock_scoping_probe) -> TenantScopedStore:
    """Tenant-scoped store over the in-memory store."""
    return TenantScopedStore(memory_store, registry, mock_scoping_probe)


@pytest.fixture
def file_storage() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture
def acting_in() -> ActingIn:
    """Factory binding a request context for the enclosed block.

    Usage:
        with acting_in(TENANT_A):
            ...
    """

    @contextmanager
    def _acting_in(
        tenant_id: str | None,
        actor_id: str | None = "actor-1",
        privileged: bool = False,
        bypass: bool = False,
    ) -> Iterator[RequestContext]:
        context = RequestContext(
            tenant_id=tenant_id,
            actor_id=actor_id,
            is_privileged_actor=privileged,
            bypass_tenant_filter=bypass,
        )
        with bound_context(context):
            yield context

    return _acting_in

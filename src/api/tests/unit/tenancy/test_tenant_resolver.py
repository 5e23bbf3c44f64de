"""Unit tests for TenantResolver."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from shared_kernel.errors import (
    ContextNotBoundError,
    InvalidTenantId,
    NoTenantAssociation,
    TenantIdRequired,
    TenantInactive,
    TenantNotFound,
    TenantSuspended,
)
from shared_kernel.request_context import RequestContext, bound_context, get_context
from tenancy.application.observability import TenantResolutionProbe
from tenancy.application.tenant_resolver import TenantResolver
from tenancy.domain.aggregates import ActorProfile, Tenant
from tenancy.domain.value_objects import AuthenticatedActor, TenantId, TenantStatus
from tenancy.infrastructure.actor_repository import ActorRepository
from tenancy.infrastructure.tenant_repository import TenantRepository
from tenancy.ports.repositories import IActorRepository, ITenantRepository

SUSPENDED_TENANT = "01ARZ3NDEKTSV4RRFFQ69G5FCC"
CANCELLED_TENANT = "01ARZ3NDEKTSV4RRFFQ69G5FDD"
UNKNOWN_TENANT = "01ARZ3NDEKTSV4RRFFQ69G5FEE"


@pytest.fixture
def mock_resolution_probe():
    """Mock TenantResolutionProbe."""
    return MagicMock(spec=TenantResolutionProbe)


@pytest_asyncio.fixture
async def directory(scoped_store, tenant_a, tenant_b):
    """Tenants in every relevant status and actors pointing at them."""
    tenants = TenantRepository(store=scoped_store)
    actors = ActorRepository(store=scoped_store)

    for tenant_id, status in (
        (tenant_a, TenantStatus.ACTIVE),
        (tenant_b, TenantStatus.TRIAL),
        (SUSPENDED_TENANT, TenantStatus.SUSPENDED),
        (CANCELLED_TENANT, TenantStatus.CANCELLED),
    ):
        await tenants.save(Tenant(id=TenantId(tenant_id), name=status.value, status=status))

    await actors.save(ActorProfile(id="alice", home_tenant_id=TenantId(tenant_a)))
    await actors.save(ActorProfile(id="sam", home_tenant_id=TenantId(SUSPENDED_TENANT)))
    await actors.save(ActorProfile(id="carl", home_tenant_id=TenantId(CANCELLED_TENANT)))
    await actors.save(ActorProfile(id="nomad"))
    return tenants, actors


@pytest.fixture
def resolver(directory, mock_resolution_probe):
    tenants, actors = directory
    return TenantResolver(
        tenant_repository=tenants,
        actor_repository=actors,
        probe=mock_resolution_probe,
    )


async def _resolve(resolver, actor, target=None) -> RequestContext:
    with bound_context(RequestContext()):
        await resolver.resolve(actor, target)
        return get_context()


class TestOrdinaryActors:
    """Ordinary actors always act in their home tenant."""

    @pytest.mark.asyncio
    async def test_resolves_home_tenant(self, resolver, tenant_a, mock_resolution_probe):
        context = await _resolve(resolver, AuthenticatedActor(id="alice"))

        assert context.tenant_id == tenant_a
        assert context.actor_id == "alice"
        assert context.bypass_tenant_filter is False
        mock_resolution_probe.tenant_resolved_from_home.assert_called_once_with(
            tenant_a, "alice"
        )

    @pytest.mark.asyncio
    async def test_target_tenant_is_ignored(
        self, resolver, tenant_a, tenant_b, mock_resolution_probe
    ):
        context = await _resolve(resolver, AuthenticatedActor(id="alice"), tenant_b)

        assert context.tenant_id == tenant_a
        mock_resolution_probe.target_tenant_ignored.assert_called_once_with(
            tenant_b, "alice"
        )

    @pytest.mark.asyncio
    async def test_actor_without_home_tenant(self, resolver):
        with pytest.raises(NoTenantAssociation):
            await _resolve(resolver, AuthenticatedActor(id="nomad"))

    @pytest.mark.asyncio
    async def test_unknown_actor_has_no_tenant(self, resolver):
        with pytest.raises(NoTenantAssociation):
            await _resolve(resolver, AuthenticatedActor(id="stranger"))

    @pytest.mark.asyncio
    async def test_suspended_home_tenant(self, resolver, mock_resolution_probe):
        with pytest.raises(TenantSuspended):
            await _resolve(resolver, AuthenticatedActor(id="sam"))

        mock_resolution_probe.tenant_access_refused.assert_called_once_with(
            SUSPENDED_TENANT, "sam", "suspended"
        )

    @pytest.mark.asyncio
    async def test_cancelled_home_tenant_is_inactive(self, resolver):
        with pytest.raises(TenantInactive):
            await _resolve(resolver, AuthenticatedActor(id="carl"))

    @pytest.mark.asyncio
    async def test_failed_resolution_leaves_tenant_unbound(self, resolver):
        context = RequestContext()
        with bound_context(context):
            with pytest.raises(TenantSuspended):
                await resolver.resolve(AuthenticatedActor(id="sam"))

        assert context.tenant_id is None


class TestPrivilegedActors:
    """Privileged actors must name a target tenant."""

    @pytest.mark.asyncio
    async def test_missing_target_is_rejected(self, resolver, mock_resolution_probe):
        with pytest.raises(TenantIdRequired):
            await _resolve(resolver, AuthenticatedActor(id="ops", is_privileged=True))

        mock_resolution_probe.target_tenant_missing.assert_called_once_with("ops")

    @pytest.mark.asyncio
    async def test_target_is_bound_with_bypass(self, resolver, tenant_b):
        context = await _resolve(
            resolver, AuthenticatedActor(id="ops", is_privileged=True), tenant_b
        )

        assert context.tenant_id == tenant_b
        assert context.is_privileged_actor is True
        assert context.bypass_tenant_filter is True

    @pytest.mark.asyncio
    async def test_target_is_case_insensitive(self, resolver, tenant_b):
        context = await _resolve(
            resolver,
            AuthenticatedActor(id="ops", is_privileged=True),
            tenant_b.lower(),
        )

        assert context.tenant_id == tenant_b

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["not-a-ulid", "01ARZ3NDEKTSV4RRFFQ69G5FA"])
    async def test_malformed_target(self, resolver, target):
        with pytest.raises(InvalidTenantId):
            await _resolve(
                resolver, AuthenticatedActor(id="ops", is_privileged=True), target
            )

    @pytest.mark.asyncio
    async def test_unknown_target(self, resolver):
        with pytest.raises(TenantNotFound):
            await _resolve(
                resolver,
                AuthenticatedActor(id="ops", is_privileged=True),
                UNKNOWN_TENANT,
            )

    @pytest.mark.asyncio
    async def test_suspended_target(self, resolver):
        with pytest.raises(TenantSuspended):
            await _resolve(
                resolver,
                AuthenticatedActor(id="ops", is_privileged=True),
                SUSPENDED_TENANT,
            )


class TestAnonymousAndUnbound:
    """Tests for requests without an actor or a context."""

    @pytest.mark.asyncio
    async def test_anonymous_request_is_skipped(self, resolver, mock_resolution_probe):
        context = RequestContext()
        with bound_context(context):
            result = await resolver.resolve(None, None)

        assert result is None
        assert context.tenant_id is None
        mock_resolution_probe.unauthenticated_request_skipped.assert_called_once()

    @pytest.mark.asyncio
    async def test_resolution_requires_bound_context(self, resolver):
        with pytest.raises(ContextNotBoundError):
            await resolver.resolve(AuthenticatedActor(id="alice"))


class TestDirectoryRepositories:
    """The directory repositories implement exactly their ports."""

    def test_repositories_satisfy_their_ports(self, scoped_store):
        assert isinstance(TenantRepository(store=scoped_store), ITenantRepository)
        assert isinstance(ActorRepository(store=scoped_store), IActorRepository)

    def test_tenant_port_is_lookup_only(self):
        public = {name for name in vars(ITenantRepository) if not name.startswith("_")}
        assert public == {"save", "get_by_id"}

    @pytest.mark.asyncio
    async def test_actor_keyed_by_identity_provider_subject_resolves(
        self, resolver, directory, tenant_a
    ):
        _, actors = directory
        subject = "auth0|65f1c2d3e4f5a6b7c8d9e0f1a2b3c4d5e6f7a8b9"
        await actors.save(ActorProfile(id=subject, home_tenant_id=TenantId(tenant_a)))

        context = await _resolve(resolver, AuthenticatedActor(id=subject))

        assert context.tenant_id == tenant_a
        assert context.actor_id == subject

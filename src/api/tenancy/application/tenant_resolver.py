"""Tenant resolution for authenticated actors.

Runs before any business logic, inside a bound request context. Ordinary
actors always act within their home tenant; any target tenant they send is
ignored. Privileged actors must name a target tenant on every request and
receive the bypass capability once it is bound.
"""

from __future__ import annotations

from shared_kernel.errors import (
    InvalidTenantId,
    NoTenantAssociation,
    TenantIdRequired,
    TenantInactive,
    TenantNotFound,
    TenantSuspended,
)
from shared_kernel.request_context import (
    RequestContext,
    get_context,
    grant_bypass,
    set_actor,
    set_tenant,
)
from tenancy.application.observability import (
    DefaultTenantResolutionProbe,
    TenantResolutionProbe,
)
from tenancy.domain.aggregates import Tenant
from tenancy.domain.value_objects import AuthenticatedActor, TenantId, TenantStatus
from tenancy.ports.repositories import IActorRepository, ITenantRepository


class TenantResolver:
    """Turns an authenticated actor into an effective tenant.

    Args:
        tenant_repository: Tenant directory
        actor_repository: Actor directory holding home tenants
        probe: Optional domain probe for observability
    """

    def __init__(
        self,
        tenant_repository: ITenantRepository,
        actor_repository: IActorRepository,
        probe: TenantResolutionProbe | None = None,
    ) -> None:
        self._tenants = tenant_repository
        self._actors = actor_repository
        self._probe = probe or DefaultTenantResolutionProbe()

    async def resolve(
        self,
        actor: AuthenticatedActor | None,
        target_tenant_id: str | None = None,
    ) -> RequestContext | None:
        """Resolve and bind the tenant for the current request context.

        Args:
            actor: The authenticated actor, or None for anonymous requests
            target_tenant_id: Raw target tenant from the request, if any

        Returns:
            The populated request context, or None when resolution was
            skipped for an anonymous request.

        Raises:
            NoTenantAssociation: Ordinary actor without a home tenant
            TenantIdRequired: Privileged actor without a target tenant
            InvalidTenantId: Target tenant is not a valid ULID
            TenantNotFound: Resolved tenant does not exist
            TenantSuspended: Resolved tenant is suspended
            TenantInactive: Resolved tenant is otherwise not accessible
            ContextNotBoundError: Called outside a bound request context
        """
        if actor is None:
            self._probe.unauthenticated_request_skipped()
            return None

        set_actor(actor.id, actor.is_privileged)

        if actor.is_privileged:
            tenant_id = self._parse_target(target_tenant_id, actor.id)
            tenant = await self._load_accessible(tenant_id, actor.id)
            set_tenant(tenant.id.value)
            grant_bypass()
            self._probe.tenant_resolved_from_target(tenant.id.value, actor.id)
        else:
            if target_tenant_id is not None:
                self._probe.target_tenant_ignored(target_tenant_id, actor.id)
            profile = await self._actors.get_by_id(actor.id)
            if profile is None or profile.home_tenant_id is None:
                self._probe.no_tenant_association(actor.id)
                raise NoTenantAssociation()
            tenant = await self._load_accessible(profile.home_tenant_id, actor.id)
            set_tenant(tenant.id.value)
            self._probe.tenant_resolved_from_home(tenant.id.value, actor.id)

        return get_context()

    def _parse_target(self, raw_value: str | None, actor_id: str) -> TenantId:
        if raw_value is None or not raw_value.strip():
            self._probe.target_tenant_missing(actor_id)
            raise TenantIdRequired()
        try:
            return TenantId.from_string(raw_value)
        except ValueError:
            self._probe.invalid_tenant_id_format(raw_value, actor_id)
            raise InvalidTenantId(
                message=f"Target tenant must be a valid ULID, got: '{raw_value}'"
            ) from None

    async def _load_accessible(self, tenant_id: TenantId, actor_id: str) -> Tenant:
        tenant = await self._tenants.get_by_id(tenant_id)
        if tenant is None:
            self._probe.tenant_not_found(tenant_id.value, actor_id)
            raise TenantNotFound(details={"tenantId": tenant_id.value})

        if not tenant.grants_access:
            self._probe.tenant_access_refused(
                tenant_id.value, actor_id, tenant.status.value
            )
            if tenant.status is TenantStatus.SUSPENDED:
                raise TenantSuspended()
            raise TenantInactive()

        return tenant

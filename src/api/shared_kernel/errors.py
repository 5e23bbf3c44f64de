"""Structured error taxonomy shared by every bounded context.

Each error carries a stable machine-readable ``code``, the HTTP-equivalent
``status_code`` the boundary layer should answer with, a human-readable
message, and optional ``details``. None of these are retried by the core;
retries belong to the caller.
"""

from __future__ import annotations

from typing import Any


class TenancyError(Exception):
    """Base class for all structured errors raised by the data-access core."""

    code: str = "TENANCY_ERROR"
    status_code: int = 500
    default_message: str = "Tenancy error"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details: dict[str, Any] = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a JSON-compatible response body."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


# Context errors


class TenantContextMissing(TenancyError):
    """Raised when a scoped data access runs without a bound tenant.

    The access fails closed rather than running unscoped.
    """

    code = "TENANT_CONTEXT_MISSING"
    status_code = 500
    default_message = "Tenant context required for scoped data access"


class ContextNotBoundError(TenancyError):
    """Raised when the request context is mutated outside of an active run."""

    code = "CONTEXT_NOT_BOUND"
    status_code = 500
    default_message = "No request context is bound to the current operation"


class ContextRebindError(TenancyError):
    """Raised when an identity already bound to the context is rebound to another."""

    code = "CONTEXT_REBIND"
    status_code = 500
    default_message = "Identity is already bound for this operation"


# Resolution errors


class NoTenantAssociation(TenancyError):
    """Raised when an ordinary actor has no home tenant."""

    code = "NO_TENANT"
    status_code = 403
    default_message = (
        "User is not associated with any tenant. "
        "Please contact your administrator."
    )


class TenantNotFound(TenancyError):
    code = "TENANT_NOT_FOUND"
    status_code = 404
    default_message = "Tenant not found"


class TenantInactive(TenancyError):
    code = "TENANT_INACTIVE"
    status_code = 403
    default_message = (
        "Your tenant account has been deactivated. Please contact support."
    )


class TenantSuspended(TenancyError):
    code = "TENANT_SUSPENDED"
    status_code = 403
    default_message = (
        "Your tenant account has been suspended. "
        "Please contact support to resolve this issue."
    )


class TenantIdRequired(TenancyError):
    """Raised when a privileged actor omits the explicit target tenant."""

    code = "TENANT_ID_REQUIRED"
    status_code = 400
    default_message = (
        "Privileged actors must provide an explicit target tenant "
        "to access tenant data"
    )


class InvalidTenantId(TenancyError):
    code = "INVALID_TENANT_ID"
    status_code = 400
    default_message = "Tenant identifier is not a valid ULID"


# Scoping errors


class CrossTenantAccessDenied(TenancyError):
    """Raised when a query names a tenant other than the bound one."""

    code = "CROSS_TENANT_ACCESS"
    status_code = 403
    default_message = "Query tenant does not match the bound tenant context"


class BypassNotPermitted(TenancyError):
    code = "BYPASS_NOT_PERMITTED"
    status_code = 403
    default_message = "Tenant filter bypass is not permitted for this operation"


class UnregisteredCollection(TenancyError):
    code = "UNREGISTERED_COLLECTION"
    status_code = 500
    default_message = "Collection is not registered as scoped or tenant-agnostic"


class ImmutableFieldViolation(TenancyError):
    code = "IMMUTABLE_FIELD"
    status_code = 400
    default_message = "Attempted to modify an immutable field"


class InvalidHierarchyReference(TenancyError):
    code = "INVALID_PARENT"
    status_code = 400
    default_message = "Parent reference is missing or does not exist"


# Versioning errors


class PreconditionRequired(TenancyError):
    code = "PRECONDITION_REQUIRED"
    status_code = 428
    default_message = (
        "Precondition required. Include If-Match header or version in "
        "request body for concurrent write safety."
    )


class InvalidVersionToken(TenancyError):
    code = "INVALID_ETAG_FORMAT"
    status_code = 400
    default_message = 'Invalid If-Match header format. Expected W/"v{version}"'


class VersionConflict(TenancyError):
    """Raised when the client's version does not match the stored version.

    Recoverable by the caller through re-fetch and re-apply.
    """

    code = "VERSION_CONFLICT"
    status_code = 409
    default_message = (
        "Version conflict. The resource was modified by another user. "
        "Please refresh and try again."
    )

    def __init__(
        self,
        resource: str,
        resource_id: str,
        client_version: int,
        current_version: int,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.client_version = client_version
        self.current_version = current_version
        super().__init__(
            details={
                "resource": resource,
                "id": resource_id,
                "clientVersion": client_version,
                "currentVersion": current_version,
            }
        )


class NotFound(TenancyError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"

    def __init__(self, resource: str, resource_id: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            message=f"{resource} {resource_id} not found",
            details={"resource": resource, "id": resource_id},
        )


# Cascade errors


class CascadeIncomplete(TenancyError):
    """Raised when a cascade stops partway; carries the progress report."""

    code = "CASCADE_INCOMPLETE"
    status_code = 500
    default_message = "Cascade deletion did not complete"

    def __init__(self, report: Any, cause: str) -> None:
        self.report = report
        super().__init__(
            message=f"Cascade deletion did not complete: {cause}",
            details={"report": report.as_dict()},
        )

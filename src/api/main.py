"""Main FastAPI application entry point.

Run with: uvicorn main:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from infrastructure.database.dependencies import (
    close_database_connections,
    ensure_schema,
)
from infrastructure.dependencies import get_collection_registry
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import get_file_storage_settings, get_settings
from infrastructure.version import __version__
from portfolio import dependencies as portfolio_dependencies
from portfolio.presentation import router as records_router
from shared_kernel.errors import TenancyError
from shared_kernel.middleware import RequestContextMiddleware
from tenancy import dependencies as tenancy_dependencies

_probe = DefaultStartupProbe()


def register_collections() -> None:
    """Register every bounded context's collections with the shared registry."""
    registry = get_collection_registry()
    tenancy_dependencies.register_collections(registry)
    portfolio_dependencies.register_collections(registry)
    _probe.collections_registered(
        scoped=sorted(registry.scoped_collections),
        agnostic=sorted(registry.agnostic_collections),
    )


@asynccontextmanager
async def tenantcore_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Schema creation for the postgres store backend
    - File tag reconciler start and graceful stop
    - Database engine disposal on shutdown
    """
    configure_logging()
    settings = get_settings()
    _probe.application_starting(
        app_name=settings.app_name,
        version=__version__,
        store_backend=settings.store.backend,
    )

    if settings.store.backend == "postgres":
        await ensure_schema()

    reconciler = None
    if get_file_storage_settings().reconciler_enabled:
        reconciler = portfolio_dependencies.create_file_tag_reconciler()
        await reconciler.start()
    else:
        _probe.reconciler_disabled()

    try:
        yield
    finally:
        if reconciler is not None:
            await reconciler.stop()
        await close_database_connections()
        _probe.application_stopped()


async def tenancy_error_handler(request: Request, exc: TenancyError) -> JSONResponse:
    """Render a TenancyError as its JSON body and status code."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


register_collections()

app = FastAPI(
    title="Tenantcore API",
    description="Multi-tenant data-access core for building portfolios",
    version=__version__,
    lifespan=tenantcore_lifespan,
)

app.add_middleware(RequestContextMiddleware)
app.add_exception_handler(TenancyError, tenancy_error_handler)

app.include_router(records_router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}

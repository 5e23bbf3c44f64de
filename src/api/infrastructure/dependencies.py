"""Shared infrastructure dependencies.

Provides the document store and the tenant-scoped wrapper around it.
Does NOT import from bounded contexts to maintain DDD boundaries: each
context registers its own collections into the shared registry.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from infrastructure.database.dependencies import get_sessionmaker
from infrastructure.document_store import InMemoryDocumentStore, SqlDocumentStore
from infrastructure.settings import get_store_settings
from shared_kernel.persistence import DocumentStore
from shared_kernel.scoping import (
    CollectionRegistry,
    DefaultScopingProbe,
    ScopingProbe,
    TenantScopedStore,
)


@lru_cache
def get_collection_registry() -> CollectionRegistry:
    """Get the application-wide collection registry (singleton).

    Starts empty. Bounded contexts register their collections at startup;
    accessing anything unregistered fails.
    """
    return CollectionRegistry()


@lru_cache
def get_memory_store() -> InMemoryDocumentStore:
    """Get the process-wide in-memory store (singleton)."""
    return InMemoryDocumentStore()


@asynccontextmanager
async def open_document_store() -> AsyncIterator[DocumentStore]:
    """Open a unit of work on the configured store backend.

    For postgres the unit of work is one session; anything not
    checkpointed is rolled back when it closes.
    """
    if get_store_settings().backend == "memory":
        yield get_memory_store()
        return

    async with get_sessionmaker()() as session:
        yield SqlDocumentStore(session)


@asynccontextmanager
async def open_scoped_store() -> AsyncIterator[TenantScopedStore]:
    """Open a unit of work and wrap it in the tenant-scoped store."""
    async with open_document_store() as store:
        yield TenantScopedStore(store, get_collection_registry())


async def get_document_store() -> AsyncGenerator[DocumentStore, None]:
    """Provide the document store for one request (FastAPI dependency)."""
    async with open_document_store() as store:
        yield store


def get_scoping_probe() -> ScopingProbe:
    return DefaultScopingProbe()


def get_scoped_store(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    probe: Annotated[ScopingProbe, Depends(get_scoping_probe)],
) -> TenantScopedStore:
    """Get the tenant-scoped store for this request.

    FastAPI caches the result per request, so every service in a request
    shares one unit of work.
    """
    return TenantScopedStore(store, get_collection_registry(), probe)

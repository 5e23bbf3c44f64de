"""Database infrastructure - shared connection primitives."""

from infrastructure.database.engines import build_async_url, create_write_engine
from infrastructure.database.models import Base, TimestampMixin

__all__ = [
    "Base",
    "TimestampMixin",
    "build_async_url",
    "create_write_engine",
]

"""Document store adapters for the persistence port."""

from infrastructure.document_store.memory_store import InMemoryDocumentStore
from infrastructure.document_store.models import RecordModel
from infrastructure.document_store.sql_store import SqlDocumentStore

__all__ = [
    "InMemoryDocumentStore",
    "RecordModel",
    "SqlDocumentStore",
]

"""
Storage Package.

This package manages all data persistence behind the
document store contract.

Modules:
- document_store: Store contract, batches, in-memory store
- sql_document_store: SQLAlchemy-backed store
- database: Connection management
- models/: ORM models
- repositories/: Data access layer
"""

from storage.document_store import (
    ArrayUnion,
    DocumentStore,
    InMemoryDocumentStore,
    WriteBatch,
    WriteKind,
    WriteOperation,
    document_path,
)
from storage.sql_document_store import SqlDocumentStore


__all__ = [
    "ArrayUnion",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "WriteBatch",
    "WriteKind",
    "WriteOperation",
    "document_path",
]

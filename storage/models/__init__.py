"""
Storage Models Package.

ORM models backing the SQL document store.

============================================================
MODEL ORGANIZATION
============================================================
- base.py: Declarative base and timestamp mixin
- documents.py: StoredDocument (one row per document path)

============================================================
"""

from storage.models.base import Base, TimestampMixin
from storage.models.documents import StoredDocument


__all__ = [
    "Base",
    "TimestampMixin",
    "StoredDocument",
]

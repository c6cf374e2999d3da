"""
Document Store ORM Model.

============================================================
PURPOSE
============================================================
Stores hierarchical documents (collection/doc/collection/doc)
in one relational table, so the market data layout

    marketData/{dateTag}/stocks/{symbol}
    trends/{symbol}/history/{dateTag}

can live in PostgreSQL or SQLite behind the document store
contract.

============================================================
KEYS
============================================================
- path: full document path, primary key
- collection_path: parent collection path, indexed for
  listing a collection's documents
- document_id: last path segment

============================================================
"""

from typing import Any, Dict

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, TimestampMixin


class StoredDocument(Base, TimestampMixin):
    """One document of the document store."""

    __tablename__ = "documents"

    path: Mapped[str] = mapped_column(
        String(512),
        primary_key=True,
        comment="Full document path, e.g. marketData/7Feb2026/stocks/CRDB",
    )

    collection_path: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Parent collection path, e.g. marketData/7Feb2026/stocks",
    )

    document_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Last path segment",
    )

    data: Mapped[Dict[str, Any]] = mapped_column(
        nullable=False,
        default=dict,
        comment="Document body (JSON)",
    )

    __table_args__ = (
        Index("idx_documents_collection", "collection_path", "document_id"),
    )

    def __repr__(self) -> str:
        return f"<StoredDocument {self.path}>"

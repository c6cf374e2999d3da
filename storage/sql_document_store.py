"""
Storage - SQL Document Store.

============================================================
RESPONSIBILITY
============================================================
Implements the DocumentStore contract on one relational
table (storage/models/documents.py).

- One batch == one database transaction
- CREATE on an existing row -> DuplicateRecordError
- UPDATE on a missing row -> RecordNotFoundError
- Engine failures -> TransactionError, batch rolled back

============================================================
"""

import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from core.constants import DEFAULT_MAX_BATCH_OPERATIONS
from storage.database import (
    DatabasePersistenceError,
    create_all_tables,
    create_database_engine,
    get_session_factory,
    transaction_scope,
)
from storage.document_store import (
    DocumentStore,
    WriteKind,
    WriteOperation,
    apply_write,
    split_path,
)
from storage.models import StoredDocument
from storage.repositories.exceptions import (
    ConnectionError,
    DuplicateRecordError,
    RecordNotFoundError,
    RepositoryException,
    TransactionError,
)


logger = logging.getLogger(__name__)


class SqlDocumentStore(DocumentStore):
    """
    Document store backed by SQLAlchemy.

    Usage:
        engine = create_database_engine()
        create_all_tables(engine)
        store = SqlDocumentStore(get_session_factory(engine))
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS,
    ) -> None:
        super().__init__(max_batch_operations)
        self._session_factory = session_factory

    # =========================================================
    # READS
    # =========================================================

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            with self._session_factory() as session:
                row = session.get(StoredDocument, path)
                return dict(row.data) if row is not None else None
        except SQLAlchemyError as e:
            raise self._read_error("get", e) from e

    def list_collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        stmt = (
            select(StoredDocument)
            .where(StoredDocument.collection_path == collection_path)
            .order_by(StoredDocument.document_id)
        )
        try:
            with self._session_factory() as session:
                return {
                    row.document_id: dict(row.data)
                    for row in session.scalars(stmt)
                }
        except SQLAlchemyError as e:
            raise self._read_error("list_collection", e) from e

    def _read_error(self, operation: str, error: SQLAlchemyError) -> RepositoryException:
        logger.error(f"[{self.name}] {operation} failed: {error}")
        if isinstance(error, OperationalError):
            return ConnectionError(
                repository_name=self.name,
                operation=operation,
                original_error=str(error),
            )
        return RepositoryException(
            message=str(error),
            repository_name=self.name,
            operation=operation,
        )

    # =========================================================
    # WRITES
    # =========================================================

    def commit(self, operations: Iterable[WriteOperation]) -> None:
        ops = list(operations)
        self._check_batch_size(ops)

        try:
            with transaction_scope(self._session_factory) as session:
                for op in ops:
                    self._apply(session, op)
        except DatabasePersistenceError as e:
            raise TransactionError(
                repository_name=self.name,
                operation="commit",
                phase="commit",
                original_error=str(e),
            ) from e

        logger.debug(f"[{self.name}] committed {len(ops)} operations")

    def _apply(self, session: Session, op: WriteOperation) -> None:
        row = session.get(StoredDocument, op.path)

        if op.kind == WriteKind.CREATE and row is not None:
            raise DuplicateRecordError(self.name, op.path)
        if op.kind == WriteKind.UPDATE and row is None:
            raise RecordNotFoundError(self.name, op.path)

        body = apply_write(dict(row.data) if row is not None else None, op)

        if row is not None:
            # Reassign so the JSON column is flagged dirty
            row.data = body
            return

        collection_path, document_id = split_path(op.path)
        session.add(StoredDocument(
            path=op.path,
            collection_path=collection_path,
            document_id=document_id,
            data=body,
        ))
        try:
            session.flush()
        except IntegrityError as e:
            # Another writer inserted the same path first
            raise DuplicateRecordError(self.name, op.path) from e


def create_sql_document_store(
    database_url: Optional[str] = None,
    max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS,
    create_tables: bool = True,
) -> SqlDocumentStore:
    """
    Build a store on its own engine.

    Args:
        database_url: Explicit URL, defaults to DATABASE_URL
        max_batch_operations: Batch size limit
        create_tables: Create the documents table if missing
    """
    engine = create_database_engine(database_url)
    if create_tables:
        create_all_tables(engine)
    return SqlDocumentStore(get_session_factory(engine), max_batch_operations)

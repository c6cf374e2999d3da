"""
Base Repository Class.

============================================================
PURPOSE
============================================================
Provides common functionality for document repositories:
- Store injection
- Chunked batch commits bounded by the store's batch limit
- Error logging
- Logging setup

============================================================
USAGE
============================================================
All domain repositories inherit from BaseRepository.
The document store is injected via constructor.

============================================================
"""

import logging
from abc import ABC
from typing import Any, Dict, List, Optional, Sequence

from storage.document_store import DocumentStore, WriteOperation


class BaseRepository(ABC):
    """
    Abstract base class for all repositories.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    - Provides read helpers over the store
    - Splits large write sets into store-sized batches
    - Manages logging for all operations

    ============================================================
    USAGE
    ============================================================
    class MyRepository(BaseRepository):
        def __init__(self, store: DocumentStore):
            super().__init__(store, "MyRepository")

    ============================================================
    """

    def __init__(self, store: DocumentStore, repository_name: str) -> None:
        """
        Initialize the repository.

        Args:
            store: Document store (injected)
            repository_name: Name for logging and error messages
        """
        self._store = store
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    @property
    def store(self) -> DocumentStore:
        """Get the document store."""
        return self._store

    @property
    def repository_name(self) -> str:
        """Get the repository name."""
        return self._repository_name

    # =========================================================
    # PROTECTED HELPER METHODS
    # =========================================================

    def _get(self, path: str) -> Optional[Dict[str, Any]]:
        return self._store.get(path)

    def _list(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        return self._store.list_collection(collection_path)

    def _chunk(self, operations: Sequence[WriteOperation]) -> List[List[WriteOperation]]:
        """Split operations into chunks of at most max_batch_operations."""
        size = self._store.max_batch_operations
        return [
            list(operations[i:i + size])
            for i in range(0, len(operations), size)
        ]

    def _log_error(self, error: Exception, operation: str, context: Optional[dict] = None) -> None:
        context = context or {}
        self._logger.error(
            f"Store error in {operation}: {error}",
            extra={"context": context},
        )

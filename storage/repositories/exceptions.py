"""
Repository Layer Exceptions.

============================================================
PURPOSE
============================================================
Defines storage exceptions for the document store and the
repositories built on it. Engine errors (SQLAlchemy) are
caught at the store boundary and re-raised as these.

============================================================
USAGE
============================================================
Stores raise repository exceptions with context.
Writers translate them into pipeline errors (PersistError).

============================================================
"""

from typing import Any, Optional


class RepositoryException(Exception):
    """
    Base exception for all storage operations.

    Business layers can catch this for generic error handling.
    """

    def __init__(
        self,
        message: str,
        repository_name: str,
        operation: str,
        details: Optional[dict] = None
    ) -> None:
        self.message = message
        self.repository_name = repository_name
        self.operation = operation
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return f"[{self.repository_name}] {self.operation}: {self.message}"


class RecordNotFoundError(RepositoryException):
    """
    Raised when a document required by an update does not exist.
    """

    def __init__(
        self,
        repository_name: str,
        path: str,
        operation: str = "update"
    ) -> None:
        super().__init__(
            message=f"Document {path} not found",
            repository_name=repository_name,
            operation=operation,
            details={"path": path}
        )
        self.path = path


class DuplicateRecordError(RepositoryException):
    """
    Raised when a create targets a document that already exists.
    """

    def __init__(
        self,
        repository_name: str,
        path: str
    ) -> None:
        super().__init__(
            message=f"Document {path} already exists",
            repository_name=repository_name,
            operation="create",
            details={"path": path}
        )
        self.path = path


class ConnectionError(RepositoryException):
    """
    Raised when the backing database cannot be reached.
    """

    def __init__(
        self,
        repository_name: str,
        operation: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Database connection failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )


class TransactionError(RepositoryException):
    """
    Raised when a batch commit fails; nothing of the batch is kept.
    """

    def __init__(
        self,
        repository_name: str,
        operation: str,
        phase: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Transaction {phase} failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"phase": phase, "original_error": original_error}
        )
        self.phase = phase


class ValidationError(RepositoryException):
    """
    Raised when a document path or body is not storable.
    """

    def __init__(
        self,
        repository_name: str,
        operation: str,
        field: str,
        reason: str,
        value: Any = None
    ) -> None:
        super().__init__(
            message=f"Validation failed for {field}: {reason}",
            repository_name=repository_name,
            operation=operation,
            details={"field": field, "reason": reason, "value": str(value)}
        )
        self.field = field
        self.reason = reason

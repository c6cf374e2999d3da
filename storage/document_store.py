"""
Storage - Document Store Contract.

============================================================
RESPONSIBILITY
============================================================
Hierarchical document storage with batched, atomic writes.

- Documents addressed by '/'-joined paths
  (collection/doc/collection/doc)
- Batches of create / set / merge / update operations
- Each batch commits all-or-nothing
- Merge supports array-union of list fields

============================================================
DESIGN PRINCIPLES
============================================================
- The store is a collaborator, injected into writers
- Batch size is bounded by max_batch_operations
- CREATE fails if the document exists (commit marker)
- UPDATE fails if the document does not exist

============================================================
IMPLEMENTATIONS
============================================================
- InMemoryDocumentStore: this module, tests and dry runs
- SqlDocumentStore: storage/sql_document_store.py

============================================================
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.constants import DEFAULT_MAX_BATCH_OPERATIONS
from storage.repositories.exceptions import (
    DuplicateRecordError,
    RecordNotFoundError,
    ValidationError,
)


logger = logging.getLogger(__name__)


# ============================================================
# WRITE OPERATIONS
# ============================================================

class WriteKind(Enum):
    """Kind of a single batched write."""
    CREATE = "create"
    SET = "set"
    MERGE = "merge"
    UPDATE = "update"


@dataclass(frozen=True)
class ArrayUnion:
    """Field transform: append values missing from a list field."""
    values: Tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class WriteOperation:
    """One write of a batch."""
    kind: WriteKind
    path: str
    data: Dict[str, Any] = field(default_factory=dict)


def document_path(*segments: str) -> str:
    """
    Join path segments into a document path.

    Raises:
        ValidationError: on an empty segment or one containing '/'
    """
    for segment in segments:
        if not segment or "/" in segment:
            raise ValidationError(
                repository_name="DocumentStore",
                operation="path",
                field="segment",
                reason="segments must be non-empty and must not contain '/'",
                value=segment,
            )
    return "/".join(segments)


def split_path(path: str) -> Tuple[str, str]:
    """Split a document path into (collection_path, document_id)."""
    parts = path.split("/")
    if len(parts) < 2 or len(parts) % 2 != 0 or not all(parts):
        raise ValidationError(
            repository_name="DocumentStore",
            operation="path",
            field="path",
            reason="document paths have an even number of non-empty segments",
            value=path,
        )
    return "/".join(parts[:-1]), parts[-1]


def _resolve(value: Any, current: Any = None) -> Any:
    """Resolve field transforms against the current field value."""
    if isinstance(value, ArrayUnion):
        merged = list(current) if isinstance(current, list) else []
        for item in value.values:
            if item not in merged:
                merged.append(item)
        return merged
    if isinstance(value, dict):
        base = current if isinstance(current, dict) else {}
        return {key: _resolve(item, base.get(key)) for key, item in value.items()}
    return copy.deepcopy(value)


def _merge(existing: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(existing)
    for key, value in data.items():
        current = result.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            result[key] = _merge(current, value)
        else:
            result[key] = _resolve(value, current)
    return result


def apply_write(existing: Optional[Dict[str, Any]], op: WriteOperation) -> Dict[str, Any]:
    """
    Compute a document body after applying one write.

    Existence checks (CREATE on existing, UPDATE on missing)
    belong to the store; this only computes the new body.
    """
    if op.kind in (WriteKind.CREATE, WriteKind.SET):
        return _resolve(op.data)
    return _merge(existing or {}, op.data)


# ============================================================
# BATCH
# ============================================================

class WriteBatch:
    """
    Accumulates writes and commits them atomically.

    Usage:
        batch = store.batch()
        batch.set("marketData/7Feb2026/stocks/CRDB", record)
        batch.merge("config/app", {"availableDates": ArrayUnion("7Feb2026")})
        batch.commit()
    """

    def __init__(self, store: "DocumentStore") -> None:
        self._store = store
        self._operations: List[WriteOperation] = []

    def _add(self, kind: WriteKind, path: str, data: Dict[str, Any]) -> "WriteBatch":
        split_path(path)
        self._operations.append(WriteOperation(kind=kind, path=path, data=dict(data)))
        return self

    def create(self, path: str, data: Dict[str, Any]) -> "WriteBatch":
        return self._add(WriteKind.CREATE, path, data)

    def set(self, path: str, data: Dict[str, Any]) -> "WriteBatch":
        return self._add(WriteKind.SET, path, data)

    def merge(self, path: str, data: Dict[str, Any]) -> "WriteBatch":
        return self._add(WriteKind.MERGE, path, data)

    def update(self, path: str, data: Dict[str, Any]) -> "WriteBatch":
        return self._add(WriteKind.UPDATE, path, data)

    @property
    def operations(self) -> List[WriteOperation]:
        return list(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def commit(self) -> int:
        """Commit all operations; returns the number written."""
        if not self._operations:
            return 0
        self._store.commit(self._operations)
        return len(self._operations)


# ============================================================
# STORE CONTRACT
# ============================================================

class DocumentStore(ABC):
    """Abstract document store."""

    def __init__(self, max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS) -> None:
        if max_batch_operations < 1:
            raise ValueError("max_batch_operations must be >= 1")
        self._max_batch_operations = max_batch_operations

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def max_batch_operations(self) -> int:
        return self._max_batch_operations

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def exists(self, path: str) -> bool:
        return self.get(path) is not None

    @abstractmethod
    def get(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the document body, or None if absent."""
        pass

    @abstractmethod
    def list_collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        """Return {document_id: body} for the direct children of a collection."""
        pass

    @abstractmethod
    def commit(self, operations: Iterable[WriteOperation]) -> None:
        """Apply operations all-or-nothing."""
        pass

    def _check_batch_size(self, operations: List[WriteOperation]) -> None:
        if len(operations) > self._max_batch_operations:
            raise ValidationError(
                repository_name=self.name,
                operation="commit",
                field="operations",
                reason=f"batch exceeds {self._max_batch_operations} operations",
                value=len(operations),
            )


# ============================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================

class InMemoryDocumentStore(DocumentStore):
    """
    Dictionary-backed store.

    A commit is applied to a copy of the touched documents and
    swapped in only when every operation succeeded.
    """

    def __init__(self, max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS) -> None:
        super().__init__(max_batch_operations)
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.commit_count = 0

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._documents.get(path)
            return copy.deepcopy(document) if document is not None else None

    def list_collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        prefix = collection_path + "/"
        with self._lock:
            return {
                path[len(prefix):]: copy.deepcopy(body)
                for path, body in self._documents.items()
                if path.startswith(prefix) and "/" not in path[len(prefix):]
            }

    def commit(self, operations: Iterable[WriteOperation]) -> None:
        ops = list(operations)
        self._check_batch_size(ops)

        with self._lock:
            staged: Dict[str, Optional[Dict[str, Any]]] = {}
            for op in ops:
                existing = staged[op.path] if op.path in staged else self._documents.get(op.path)
                if op.kind == WriteKind.CREATE and existing is not None:
                    raise DuplicateRecordError(self.name, op.path)
                if op.kind == WriteKind.UPDATE and existing is None:
                    raise RecordNotFoundError(self.name, op.path)
                staged[op.path] = apply_write(existing, op)

            self._documents.update(staged)
            self.commit_count += 1

        logger.debug(f"[{self.name}] committed {len(ops)} operations")

    def paths(self) -> List[str]:
        """All stored document paths, sorted."""
        with self._lock:
            return sorted(self._documents)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

"""
Live Price Repository.

============================================================
PURPOSE
============================================================
Persists intraday live feed snapshots.

    livePrices/{snapshotId}   one snapshot, quotes sorted by symbol
    liveQuotes/{symbol}       latest quote per symbol (merge)

The snapshot id is the UTC minute bucket of the fetch time
(e.g. 20260207T1015). The snapshot document is created last
so an existing snapshot means the minute was fully written.

============================================================
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from core.clock import ClockProtocol, SystemClock
from core.constants import LIVE_PRICES_COLLECTION, LIVE_QUOTES_COLLECTION
from core.exceptions import PersistError
from data_ingestion.types import IngestionStatus, LiveQuote
from storage.document_store import DocumentStore, WriteKind, WriteOperation, document_path
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import DuplicateRecordError, RepositoryException


SNAPSHOT_ID_FORMAT = "%Y%m%dT%H%M"


def snapshot_id_for(moment: datetime) -> str:
    """Minute-bucket id of a timestamp, in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(SNAPSHOT_ID_FORMAT)


@dataclass(frozen=True)
class SnapshotResult:
    """Outcome of one snapshot write."""
    status: IngestionStatus
    snapshot_id: str
    quote_count: int = 0


class LivePriceRepository(BaseRepository):
    """Snapshot writer and latest-quote reader for the live feed."""

    def __init__(self, store: DocumentStore, clock: Optional[ClockProtocol] = None) -> None:
        super().__init__(store, "LivePriceRepository")
        self._clock = clock or SystemClock()

    def current_snapshot_id(self) -> str:
        return snapshot_id_for(self._clock.now())

    def snapshot_exists(self, snapshot_id: str) -> bool:
        try:
            return self._store.exists(document_path(LIVE_PRICES_COLLECTION, snapshot_id))
        except RepositoryException as e:
            self._log_error(e, "snapshot_exists", {"snapshot_id": snapshot_id})
            raise PersistError(
                f"Existence check failed: {e.message}",
                stage="checking_existing",
                cause=e,
            ) from e

    def save_snapshot(self, snapshot_id: str, quotes: Sequence[LiveQuote]) -> SnapshotResult:
        """
        Write the latest quotes and the snapshot document.

        Raises:
            PersistError: on store failure
        """
        fetched_at = self._clock.format_iso()
        ordered = sorted(quotes, key=lambda quote: quote.symbol)

        operations: List[WriteOperation] = [
            WriteOperation(
                WriteKind.MERGE,
                document_path(LIVE_QUOTES_COLLECTION, quote.symbol),
                {**quote.to_document(), "updatedAt": fetched_at, "snapshotId": snapshot_id},
            )
            for quote in ordered
        ]
        operations.append(WriteOperation(
            WriteKind.CREATE,
            document_path(LIVE_PRICES_COLLECTION, snapshot_id),
            {
                "snapshotId": snapshot_id,
                "fetchedAt": fetched_at,
                "quoteCount": len(ordered),
                "quotes": [quote.to_document() for quote in ordered],
            },
        ))

        committed = 0
        for batch in self._chunk(operations):
            try:
                self._store.commit(batch)
            except DuplicateRecordError:
                self._logger.warning(f"Live snapshot {snapshot_id} was written by a concurrent run")
                return SnapshotResult(status=IngestionStatus.ALREADY_EXISTS, snapshot_id=snapshot_id)
            except RepositoryException as e:
                self._log_error(e, "save_snapshot", {"snapshot_id": snapshot_id})
                raise PersistError(
                    f"Persist failed: {e.message}",
                    batches_committed=committed,
                    cause=e,
                ) from e
            committed += 1

        self._logger.info(f"Persist {LIVE_QUOTES_COLLECTION}: written={len(ordered)}")
        self._logger.info(f"Persist {LIVE_PRICES_COLLECTION}: written=1")
        return SnapshotResult(
            status=IngestionStatus.CREATED,
            snapshot_id=snapshot_id,
            quote_count=len(ordered),
        )

    def latest_quotes(self) -> Dict[str, Dict[str, Any]]:
        return self._list(LIVE_QUOTES_COLLECTION)

    def get_snapshot(self, snapshot_id: str) -> Optional[Dict[str, Any]]:
        return self._get(document_path(LIVE_PRICES_COLLECTION, snapshot_id))

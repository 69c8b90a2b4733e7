"""
Ingestion cycle orchestration.

The external scheduler calls run_ingestion_cycle() (or ingest_batch() when it
already has normalized records). Only one ingestion runs at a time per
process; a run that arrives while another is in flight is dropped and picked
up by the next scheduled cycle.
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from bci_tracker.database import upsert_records
from bci_tracker.models import Record, UpsertSummary
from bci_tracker.normalizer import normalize_record
from util.logging_util import log_upsert_summary, setup_logger

logger = setup_logger(__name__)

# Feed adapter: returns raw item dicts (or Records) for one external source
Fetcher = Callable[[], Iterable]

_ingestion_lock = threading.Lock()


class IngestionStatus(Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class IngestionResult:
    status: IngestionStatus
    summary: UpsertSummary = field(default_factory=UpsertSummary)
    records_received: int = 0
    failed_fetchers: List[str] = field(default_factory=list)
    error: Optional[str] = None


def is_ingestion_running() -> bool:
    return _ingestion_lock.locked()


def _fetcher_name(fetcher: Fetcher) -> str:
    return getattr(fetcher, "__name__", None) or repr(fetcher)


def collect_records(fetchers: Iterable[Fetcher]) -> tuple[List[Record], List[str]]:
    """
    Call every feed adapter and normalize what they return.

    An adapter that raises is logged and skipped; the others still contribute.

    Returns (records, names of the adapters that failed).
    """
    records = []
    failed = []
    for fetcher in fetchers:
        name = _fetcher_name(fetcher)
        try:
            items = list(fetcher() or [])
        except Exception as e:
            logger.error(f"Feed adapter {name} failed: {e}")
            failed.append(name)
            continue

        normalized = [r for r in (normalize_record(item) for item in items) if r is not None]
        if len(normalized) < len(items):
            logger.warning(f"{name}: dropped {len(items) - len(normalized)} unreadable item(s)")
        logger.info(f"{name}: {len(normalized)} record(s)")
        records.extend(normalized)
    return records, failed


def _ingest(records: List[Record]) -> IngestionResult:
    start = time.perf_counter()
    try:
        summary = upsert_records(records)
    except SQLAlchemyError as e:
        logger.error(f"Ingestion failed, batch of {len(records)} rolled back: {e}")
        return IngestionResult(
            status=IngestionStatus.FAILED,
            records_received=len(records),
            error=str(e),
        )
    except Exception as e:
        logger.exception(f"Ingestion failed unexpectedly, batch of {len(records)} rolled back: {e}")
        return IngestionResult(
            status=IngestionStatus.FAILED,
            records_received=len(records),
            error=str(e),
        )

    log_upsert_summary(logger, summary, (time.perf_counter() - start) * 1000)
    return IngestionResult(
        status=IngestionStatus.SUCCEEDED,
        summary=summary,
        records_received=len(records),
    )


def ingest_batch(records: Iterable[Record]) -> IngestionResult:
    """Upsert and classify one batch of normalized records as an exclusive unit."""
    if not _ingestion_lock.acquire(blocking=False):
        logger.warning("Ingestion already in progress, dropping this batch")
        return IngestionResult(status=IngestionStatus.SKIPPED)
    try:
        return _ingest(list(records))
    finally:
        _ingestion_lock.release()


def run_ingestion_cycle(fetchers: Iterable[Fetcher]) -> IngestionResult:
    """
    Run one full ingestion cycle: fetch from every adapter, then ingest.

    Returns SKIPPED without calling any adapter if a cycle is already running.
    """
    if not _ingestion_lock.acquire(blocking=False):
        logger.warning("Ingestion already in progress, skipping this cycle")
        return IngestionResult(status=IngestionStatus.SKIPPED)
    try:
        logger.info("Starting ingestion cycle")
        records, failed = collect_records(fetchers)
        result = _ingest(records)
        result.failed_fetchers = failed
        logger.info(f"Ingestion cycle {result.status.value}: {len(records)} record(s) received")
        return result
    finally:
        _ingestion_lock.release()

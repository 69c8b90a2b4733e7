"""
Rule-based auto-classification of records into collections.
"""

import time
from typing import Iterable, List, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from bci_tracker.models import AddedBy, Collection, Record
from bci_tracker.orm_models import (
    CollectionItemORM,
    CollectionORM,
    RecordORM,
    collection_orm_to_dataclass,
)
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def classification_text(title: str, abstract: str) -> str:
    return f"{title or ''} {abstract or ''}".lower()


def matches_rules(text: str, rules: Sequence[str]) -> bool:
    """True if any rule occurs in the (already lowercased) text."""
    return any(rule.lower() in text for rule in rules if rule)


def match_collections(record: Record, collections: Iterable[Collection]) -> List[Collection]:
    """Return the collections whose rules match the record."""
    text = classification_text(record.title, record.abstract)
    return [c for c in collections if c.rules and matches_rules(text, c.rules)]


def classify_records(session: Session, records: Sequence[RecordORM]) -> int:
    """
    Add `auto` memberships for every rule match, inside the caller's session.

    Existing memberships (auto or manual) are left untouched. A collection
    whose rules cannot be evaluated is logged and skipped.

    Args:
        session: Open session; the caller owns the transaction.
        records: Persisted (flushed) records to classify.

    Returns:
        Number of memberships created.
    """
    if not records:
        return 0

    stmt = select(CollectionORM).where(CollectionORM.rules.is_not(None))
    collections = [collection_orm_to_dataclass(orm) for orm in session.execute(stmt).scalars()]
    if not collections:
        return 0

    texts = {orm.id: classification_text(orm.title, orm.abstract) for orm in records}
    now = int(time.time())
    added = 0

    for collection in collections:
        try:
            matched_ids = [
                record_id for record_id, text in texts.items()
                if matches_rules(text, collection.rules)
            ]
        except (AttributeError, TypeError) as e:
            logger.error(f"Skipping collection '{collection.name}': bad rules {collection.rules!r}: {e}")
            continue

        if not matched_ids:
            continue

        existing_stmt = select(CollectionItemORM.record_id).where(
            CollectionItemORM.collection_id == collection.id,
            CollectionItemORM.record_id.in_(matched_ids),
        )
        existing = set(session.execute(existing_stmt).scalars().all())

        for record_id in matched_ids:
            if record_id in existing:
                continue
            session.add(CollectionItemORM(
                collection_id=collection.id,
                record_id=record_id,
                added_by=AddedBy.AUTO.value,
                added_at=now,
            ))
            added += 1

    if added:
        session.flush()
        logger.debug(f"Created {added} auto collection memberships")
    return added

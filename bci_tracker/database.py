"""
Database operations for the BCI tracker.

Uses SQLAlchemy ORM for database access. The public API uses dataclass models
from models.py, with conversion to/from ORM models handled internally.
"""

import time
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import delete, func, select

from bci_tracker.classifier import classify_records
from bci_tracker.constants import DEFAULT_COLLECTION_ICON, DEFAULT_PAGE_SIZE, DEFAULT_TRENDING_TOP_N
from bci_tracker.db_engine import get_engine, get_session
from bci_tracker.models import (
    AddedBy,
    Category,
    Collection,
    CollectionItem,
    KeywordCount,
    Page,
    QueryFilters,
    Record,
    SortMode,
    Stats,
    Subscriber,
    UpsertSummary,
)
from bci_tracker.normalizer import coerce_category
from bci_tracker.orm_models import (
    Base,
    CollectionItemORM,
    CollectionORM,
    RecordORM,
    SubscriberORM,
    apply_record_fields,
    collection_orm_to_dataclass,
    record_orm_to_dataclass,
    subscriber_orm_to_dataclass,
)
from bci_tracker.presets import load_preset_collections, normalize_rules
from bci_tracker.query import (
    build_conditions,
    clamp_page,
    clamp_page_size,
    has_more,
    offset_for,
    order_by,
    resolve_category,
)
from bci_tracker.scoring import parse_record_date, score_record
from bci_tracker.trends import count_keywords
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def init_db():
    """Initialize the database schema and seed the preset collections."""
    engine = get_engine()
    Base.metadata.create_all(engine)
    seed_preset_collections(load_preset_collections())


def seed_preset_collections(presets: Iterable[Collection]) -> int:
    """Insert preset collections that do not exist yet (matched by name).

    Returns the number of collections created.
    """
    created = 0
    now = int(time.time())
    with get_session() as session:
        for preset in presets:
            stmt = select(CollectionORM).where(CollectionORM.name == preset.name)
            if session.execute(stmt).scalar_one_or_none() is not None:
                continue
            session.add(CollectionORM(
                name=preset.name,
                icon=preset.icon,
                rules=normalize_rules(preset.rules),
                is_preset=True,
                created_at=now,
            ))
            created += 1
    if created:
        logger.info(f"Seeded {created} preset collection(s)")
    return created


# Records


def _sort_key(date: str) -> Optional[str]:
    published = parse_record_date(date)
    if published is None:
        return None
    return published.isoformat(timespec="seconds")


def upsert_records(records: Iterable[Record]) -> UpsertSummary:
    """
    Insert or update a batch of records by URL, in a single transaction.

    Each record is re-scored before it is written. An existing row keeps its
    id and first-seen time; every other field is overwritten. Records without
    a URL are skipped, records without a title are rejected; neither stops the
    rest of the batch. Written records are auto-classified in the same
    transaction. A database error rolls back the whole batch and propagates.
    """
    summary = UpsertSummary()
    now = int(time.time())

    with get_session() as session:
        written: Dict[str, RecordORM] = {}

        for record in records:
            url = (record.url or "").strip()
            if not url:
                summary.skipped += 1
                logger.debug(f"Skipping record without URL: {record.title!r}")
                continue

            title = (record.title or "").strip()
            if not title:
                summary.rejected += 1
                logger.warning(f"Rejecting record without title: {url}")
                continue

            record = replace(
                record,
                url=url,
                title=title,
                category=coerce_category(record.category),
            )
            score, level = score_record(record)
            record = replace(record, importance=score, importance_level=level)

            orm = written.get(url)
            if orm is None:
                stmt = select(RecordORM).where(RecordORM.url == url)
                orm = session.execute(stmt).scalar_one_or_none()

            if orm is None:
                orm = RecordORM(url=url, fetched_at=now)
                session.add(orm)
                summary.inserted += 1
            else:
                summary.updated += 1

            apply_record_fields(orm, record, _sort_key(record.date))
            orm.updated_at = now
            written[url] = orm

        session.flush()
        summary.memberships_added = classify_records(session, list(written.values()))

    return summary


def auto_classify(records: Iterable[Record]) -> int:
    """Classify already-stored records (looked up by URL) into collections.

    Returns the number of memberships created.
    """
    urls = {r.url.strip() for r in records if r.url and r.url.strip()}
    if not urls:
        return 0

    with get_session() as session:
        stmt = select(RecordORM).where(RecordORM.url.in_(urls))
        orms = session.execute(stmt).scalars().all()
        return classify_records(session, orms)


def get_record_by_url(url: str) -> Optional[Record]:
    """Get a record by its URL."""
    with get_session() as session:
        stmt = select(RecordORM).where(RecordORM.url == url)
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            return None
        return record_orm_to_dataclass(orm)


def get_record_by_id(record_id: int) -> Optional[Record]:
    """Get a record by its database ID."""
    with get_session() as session:
        orm = session.get(RecordORM, record_id)
        if orm is None:
            return None
        return record_orm_to_dataclass(orm)


def query_records(
    filters: Optional[QueryFilters] = None,
    sort: Union[SortMode, str, None] = SortMode.IMPORTANCE,
    page=1,
    page_size=DEFAULT_PAGE_SIZE,
) -> Page[Record]:
    """
    Filtered, sorted, paginated view over the records.

    Out-of-range paging values are clamped. `total` counts every match,
    not just the returned page.
    """
    page = clamp_page(page)
    page_size = clamp_page_size(page_size)
    conditions = build_conditions(filters)

    with get_session() as session:
        count_stmt = select(func.count()).select_from(RecordORM).where(*conditions)
        total = session.execute(count_stmt).scalar_one()

        stmt = (
            select(RecordORM)
            .where(*conditions)
            .order_by(*order_by(sort))
            .limit(page_size)
            .offset(offset_for(page, page_size))
        )
        items = [record_orm_to_dataclass(orm) for orm in session.execute(stmt).scalars()]

    return Page(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        has_more=has_more(total, page, page_size),
    )


def get_stats() -> Stats:
    """Total and per-category record counts."""
    with get_session() as session:
        stmt = select(RecordORM.category, func.count()).group_by(RecordORM.category)
        counts = {category: count for category, count in session.execute(stmt).all()}

    return Stats(
        total=sum(counts.values()),
        journals=counts.get(Category.JOURNAL.value, 0),
        preprints=counts.get(Category.PREPRINT.value, 0),
        news=counts.get(Category.NEWS.value, 0),
    )


def distinct_providers(category: Union[Category, str, None] = None) -> List[str]:
    """Sorted, non-empty provider names, optionally for one category."""
    with get_session() as session:
        stmt = select(RecordORM.provider).distinct().where(RecordORM.provider != "")
        category_value = resolve_category(category)
        if category_value is not None:
            stmt = stmt.where(RecordORM.category == category_value)
        stmt = stmt.order_by(RecordORM.provider.asc())
        return list(session.execute(stmt).scalars().all())


def records_since(hours_ago: float, now: Optional[float] = None) -> List[Record]:
    """Records first seen in the last `hours_ago` hours, most important first."""
    since = int((now if now is not None else time.time()) - hours_ago * 3600)
    with get_session() as session:
        stmt = (
            select(RecordORM)
            .where(RecordORM.fetched_at >= since)
            .order_by(RecordORM.importance.desc(), RecordORM.id.asc())
        )
        return [record_orm_to_dataclass(orm) for orm in session.execute(stmt).scalars()]


def trending_keywords(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    top_n: int = DEFAULT_TRENDING_TOP_N,
) -> List[KeywordCount]:
    """Most-mentioned vocabulary terms among records in the date range."""
    conditions = build_conditions(QueryFilters(date_from=date_from, date_to=date_to))
    with get_session() as session:
        stmt = select(RecordORM.title, RecordORM.abstract).where(*conditions)
        rows = session.execute(stmt).all()
    return count_keywords(((title, abstract) for title, abstract in rows), top_n=top_n)


# Subscribers


def add_subscriber(email: str, name: str = "") -> Subscriber:
    """Subscribe an email, or reactivate and rename an existing subscriber."""
    email = (email or "").strip()
    if not email:
        raise ValueError("Subscriber email must not be empty")

    with get_session() as session:
        stmt = select(SubscriberORM).where(SubscriberORM.email == email)
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            orm = SubscriberORM(
                email=email,
                name=name or "",
                active=True,
                created_at=int(time.time()),
            )
            session.add(orm)
        else:
            orm.name = name or ""
            orm.active = True
        session.flush()
        return subscriber_orm_to_dataclass(orm)


def remove_subscriber(email: str) -> bool:
    """Deactivate a subscriber. Returns False if the email is unknown."""
    with get_session() as session:
        stmt = select(SubscriberORM).where(SubscriberORM.email == (email or "").strip())
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            return False
        orm.active = False
        return True


def list_active_subscribers() -> List[Subscriber]:
    """Active subscribers in subscription order."""
    with get_session() as session:
        stmt = (
            select(SubscriberORM)
            .where(SubscriberORM.active.is_(True))
            .order_by(SubscriberORM.created_at.asc(), SubscriberORM.id.asc())
        )
        return [subscriber_orm_to_dataclass(orm) for orm in session.execute(stmt).scalars()]


# Collections


def _collections_with_counts_stmt():
    return (
        select(CollectionORM, func.count(CollectionItemORM.id))
        .outerjoin(CollectionItemORM, CollectionItemORM.collection_id == CollectionORM.id)
        .group_by(CollectionORM.id)
    )


def list_collections() -> List[Collection]:
    """All collections with their item counts, presets first."""
    with get_session() as session:
        stmt = _collections_with_counts_stmt().order_by(
            CollectionORM.is_preset.desc(),
            CollectionORM.created_at.asc(),
            CollectionORM.id.asc(),
        )
        return [
            collection_orm_to_dataclass(orm, item_count)
            for orm, item_count in session.execute(stmt).all()
        ]


def get_collection(collection_id: int) -> Optional[Collection]:
    """Get a collection by ID, with its item count."""
    with get_session() as session:
        stmt = _collections_with_counts_stmt().where(CollectionORM.id == collection_id)
        row = session.execute(stmt).one_or_none()
        if row is None:
            return None
        orm, item_count = row
        return collection_orm_to_dataclass(orm, item_count)


def collection_items(collection_id: int, page=1, page_size=DEFAULT_PAGE_SIZE) -> Page[CollectionItem]:
    """Records in a collection, most important first."""
    page = clamp_page(page)
    page_size = clamp_page_size(page_size)

    with get_session() as session:
        count_stmt = select(func.count()).select_from(CollectionItemORM).where(
            CollectionItemORM.collection_id == collection_id
        )
        total = session.execute(count_stmt).scalar_one()

        stmt = (
            select(RecordORM, CollectionItemORM.added_by, CollectionItemORM.added_at)
            .join(CollectionItemORM, CollectionItemORM.record_id == RecordORM.id)
            .where(CollectionItemORM.collection_id == collection_id)
            .order_by(*order_by(SortMode.IMPORTANCE))
            .limit(page_size)
            .offset(offset_for(page, page_size))
        )
        items = [
            CollectionItem(
                record=record_orm_to_dataclass(orm),
                added_by=AddedBy(added_by),
                added_at=added_at,
            )
            for orm, added_by, added_at in session.execute(stmt).all()
        ]

    return Page(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        has_more=has_more(total, page, page_size),
    )


def add_to_collection(collection_id: int, record_id: int, added_by: AddedBy = AddedBy.MANUAL) -> bool:
    """Add a record to a collection.

    Returns False if the membership already exists or either side is missing.
    """
    with get_session() as session:
        if session.get(CollectionORM, collection_id) is None:
            logger.warning(f"Cannot add record {record_id}: no collection {collection_id}")
            return False
        if session.get(RecordORM, record_id) is None:
            logger.warning(f"Cannot add to collection {collection_id}: no record {record_id}")
            return False

        stmt = select(CollectionItemORM).where(
            CollectionItemORM.collection_id == collection_id,
            CollectionItemORM.record_id == record_id,
        )
        if session.execute(stmt).scalar_one_or_none() is not None:
            return False

        session.add(CollectionItemORM(
            collection_id=collection_id,
            record_id=record_id,
            added_by=added_by.value,
            added_at=int(time.time()),
        ))
        return True


def remove_from_collection(collection_id: int, record_id: int) -> bool:
    """Remove a record from a collection. Returns False if it was not a member."""
    with get_session() as session:
        stmt = delete(CollectionItemORM).where(
            CollectionItemORM.collection_id == collection_id,
            CollectionItemORM.record_id == record_id,
        )
        return session.execute(stmt).rowcount > 0


def create_collection(
    name: str,
    icon: str = DEFAULT_COLLECTION_ICON,
    rules: Optional[List[str]] = None,
) -> Collection:
    """Create a custom collection. Raises ValueError for a blank or taken name."""
    name = (name or "").strip()
    if not name:
        raise ValueError("Collection name must not be empty")

    with get_session() as session:
        stmt = select(CollectionORM).where(CollectionORM.name == name)
        if session.execute(stmt).scalar_one_or_none() is not None:
            raise ValueError(f"Collection '{name}' already exists")

        orm = CollectionORM(
            name=name,
            icon=icon or DEFAULT_COLLECTION_ICON,
            rules=normalize_rules(rules),
            is_preset=False,
            created_at=int(time.time()),
        )
        session.add(orm)
        session.flush()
        return collection_orm_to_dataclass(orm)


def delete_collection(collection_id: int) -> bool:
    """Delete a custom collection and its memberships.

    Preset collections are never deleted; returns False for them and for
    unknown IDs.
    """
    with get_session() as session:
        orm = session.get(CollectionORM, collection_id)
        if orm is None:
            return False
        if orm.is_preset:
            logger.warning(f"Refusing to delete preset collection '{orm.name}'")
            return False

        session.execute(
            delete(CollectionItemORM).where(CollectionItemORM.collection_id == collection_id)
        )
        session.delete(orm)
        return True

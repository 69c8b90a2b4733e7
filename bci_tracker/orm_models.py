"""
SQLAlchemy ORM models for the BCI tracker.

These models are internal to the database layer. The public interface
uses the dataclass models from models.py.
"""

import json
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from bci_tracker.models import (
    AddedBy,
    Category,
    Collection,
    ImportanceLevel,
    Record,
    Subscriber,
)


class JSONEncodedList(TypeDecorator):
    """Represents a list as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[List], dialect) -> Optional[str]:
        if value is None or value == []:
            return None
        return json.dumps(value, ensure_ascii=False)

    def process_result_value(self, value: Optional[str], dialect) -> List:
        if value is None:
            return []
        return json.loads(value)


class Base(DeclarativeBase):
    pass


class RecordORM(Base):
    """SQLAlchemy model for records table."""

    __tablename__ = "records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    title_translated: Mapped[str] = mapped_column(Text, default="")
    authors: Mapped[str] = mapped_column(Text, default="")
    source: Mapped[str] = mapped_column(Text, default="")
    # Free-form date as delivered by the feed
    date: Mapped[str] = mapped_column(Text, default="")
    # Parsed form of `date` (ISO 8601, UTC) used for ordering; NULL when unparseable
    published_at: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    abstract: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(Text, default="")
    provider: Mapped[str] = mapped_column(Text, default="")
    importance: Mapped[int] = mapped_column(Integer, default=0)
    importance_level: Mapped[str] = mapped_column(Text, default=ImportanceLevel.LOW.value)
    fetched_at: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_records_category", "category"),
        Index("idx_records_provider", "provider"),
        Index("idx_records_date", "date"),
        Index("idx_records_published_at", "published_at"),
        Index("idx_records_importance", "importance"),
        Index("idx_records_fetched_at", "fetched_at"),
    )


class SubscriberORM(Base):
    """SQLAlchemy model for subscribers table."""

    __tablename__ = "subscribers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, default="")
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)


class CollectionORM(Base):
    """SQLAlchemy model for collections table."""

    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    icon: Mapped[str] = mapped_column(Text, default="")
    rules: Mapped[List[str]] = mapped_column(JSONEncodedList, nullable=True)
    is_preset: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)


class CollectionItemORM(Base):
    """SQLAlchemy model for collection_items table."""

    __tablename__ = "collection_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("collections.id"), nullable=False
    )
    record_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("records.id"), nullable=False
    )
    added_by: Mapped[str] = mapped_column(Text, default=AddedBy.AUTO.value)
    added_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("collection_id", "record_id", name="uq_collection_record"),
        Index("idx_collection_items_record", "record_id"),
    )


# Conversion functions between ORM models and dataclasses


def record_orm_to_dataclass(orm: RecordORM) -> Record:
    """Convert a RecordORM instance to a Record dataclass."""
    return Record(
        id=orm.id,
        url=orm.url,
        title=orm.title,
        title_translated=orm.title_translated or "",
        authors=orm.authors or "",
        source=orm.source or "",
        date=orm.date or "",
        abstract=orm.abstract or "",
        category=Category(orm.category or ""),
        provider=orm.provider or "",
        importance=orm.importance or 0,
        importance_level=ImportanceLevel(orm.importance_level or ImportanceLevel.LOW.value),
        fetched_at=orm.fetched_at,
        updated_at=orm.updated_at,
    )


def apply_record_fields(orm: RecordORM, record: Record, published_at: Optional[str]) -> None:
    """Overwrite every descriptive and derived column of `orm` from `record`.

    Identity (`id`, `url`) and `fetched_at` are left alone.
    """
    orm.title = record.title
    orm.title_translated = record.title_translated or ""
    orm.authors = record.authors or ""
    orm.source = record.source or ""
    orm.date = record.date or ""
    orm.published_at = published_at
    orm.abstract = record.abstract or ""
    orm.category = record.category.value
    orm.provider = record.provider or ""
    orm.importance = record.importance
    orm.importance_level = record.importance_level.value


def subscriber_orm_to_dataclass(orm: SubscriberORM) -> Subscriber:
    """Convert a SubscriberORM instance to a Subscriber dataclass."""
    return Subscriber(
        id=orm.id,
        email=orm.email,
        name=orm.name or "",
        active=bool(orm.active),
        created_at=orm.created_at,
    )


def collection_orm_to_dataclass(orm: CollectionORM, item_count: int = 0) -> Collection:
    """Convert a CollectionORM instance to a Collection dataclass."""
    return Collection(
        id=orm.id,
        name=orm.name,
        icon=orm.icon or "",
        rules=list(orm.rules or []),
        is_preset=bool(orm.is_preset),
        created_at=orm.created_at,
        item_count=item_count,
    )

"""
Data models for the BCI tracker.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class Category(Enum):
    JOURNAL = "journal"
    PREPRINT = "preprint"
    NEWS = "news"
    UNSPECIFIED = ""


class ImportanceLevel(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AddedBy(Enum):
    AUTO = "auto"
    MANUAL = "manual"


class SortMode(Enum):
    IMPORTANCE = "importance"
    DATE = "date"


@dataclass
class Record:
    """A content item (journal article, preprint or news story), keyed by URL."""
    url: str
    title: str
    title_translated: str = ""
    authors: str = ""
    source: str = ""
    date: str = ""
    abstract: str = ""
    category: Category = Category.UNSPECIFIED
    provider: str = ""
    importance: int = 0
    importance_level: ImportanceLevel = ImportanceLevel.LOW
    id: Optional[int] = None
    fetched_at: int = 0
    updated_at: int = 0


@dataclass
class Subscriber:
    """Briefing recipient. Unsubscribing clears `active`, the row is kept."""
    email: str
    name: str = ""
    active: bool = True
    created_at: int = 0
    id: Optional[int] = None


@dataclass
class Collection:
    """Named grouping of records, filled by rule matching or by hand."""
    name: str
    icon: str
    rules: List[str] = field(default_factory=list)
    is_preset: bool = False
    created_at: int = 0
    id: Optional[int] = None
    item_count: int = 0


@dataclass
class CollectionItem:
    """A record as seen through one of its collection memberships."""
    record: Record
    added_by: AddedBy
    added_at: int


@dataclass
class QueryFilters:
    """Optional, AND-combined record filters."""
    category: Optional[str] = None
    source: Optional[str] = None
    query: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int
    has_more: bool


@dataclass
class Stats:
    total: int
    journals: int
    preprints: int
    news: int


@dataclass
class KeywordCount:
    keyword: str
    count: int


@dataclass
class UpsertSummary:
    """Per-batch outcome of an upsert."""
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    rejected: int = 0
    memberships_added: int = 0

    @property
    def written(self) -> int:
        return self.inserted + self.updated

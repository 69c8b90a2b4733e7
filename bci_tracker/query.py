"""
Filter, sort and pagination building blocks for record queries.

Callers pass loosely-typed request values; everything here clamps or falls
back to defaults instead of raising.
"""

from typing import Any, List, Optional, Union

from sqlalchemy import or_

from bci_tracker.constants import (
    ALL_CATEGORIES,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
)
from bci_tracker.models import Category, QueryFilters, SortMode
from bci_tracker.orm_models import RecordORM


def _coerce_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def clamp_page(page: Any) -> int:
    """1-indexed page number; anything invalid or below 1 becomes 1.

    Huge page numbers are capped so the OFFSET stays bindable; such pages are
    empty anyway.
    """
    return min(MAX_PAGE, max(1, _coerce_int(page) or 1))


def clamp_page_size(page_size: Any) -> int:
    """Page size bounded to [1, 200]; missing, zero or non-numeric means 50."""
    size = _coerce_int(page_size) or DEFAULT_PAGE_SIZE
    return min(MAX_PAGE_SIZE, max(MIN_PAGE_SIZE, size))


def resolve_sort(sort: Union[SortMode, str, None]) -> SortMode:
    """Only an explicit date sort orders by date; everything else is importance."""
    if isinstance(sort, SortMode):
        return sort
    if isinstance(sort, str) and sort.strip().lower() == SortMode.DATE.value:
        return SortMode.DATE
    return SortMode.IMPORTANCE


def resolve_category(category: Union[Category, str, None]) -> Optional[str]:
    """Stored category value to filter on, or None when the filter is off."""
    if isinstance(category, Category):
        return category.value
    if not category or category == ALL_CATEGORIES:
        return None
    return category


def build_conditions(filters: Optional[QueryFilters]) -> List:
    """Translate filters into SQLAlchemy WHERE clauses (AND-combined)."""
    if filters is None:
        return []

    conditions = []

    category = resolve_category(filters.category)
    if category is not None:
        conditions.append(RecordORM.category == category)

    if filters.source:
        conditions.append(RecordORM.provider == filters.source)

    if filters.query:
        q = filters.query
        conditions.append(or_(
            RecordORM.title.icontains(q, autoescape=True),
            RecordORM.title_translated.icontains(q, autoescape=True),
            RecordORM.abstract.icontains(q, autoescape=True),
            RecordORM.authors.icontains(q, autoescape=True),
        ))

    # Date bounds compare the raw strings, so ISO dates order correctly
    if filters.date_from:
        conditions.append(RecordORM.date >= filters.date_from)
    if filters.date_to:
        conditions.append(RecordORM.date <= filters.date_to)

    return conditions


def order_by(sort: Union[SortMode, str, None]) -> List:
    """ORDER BY clauses for a sort mode.

    Records without a parseable date come after all dated records, and the
    id makes the order total so pages never overlap.
    """
    undated_last = RecordORM.published_at.is_(None).asc()
    by_date = RecordORM.published_at.desc()
    by_importance = RecordORM.importance.desc()

    if resolve_sort(sort) == SortMode.DATE:
        return [undated_last, by_date, by_importance, RecordORM.id.asc()]
    return [by_importance, undated_last, by_date, RecordORM.id.asc()]


def offset_for(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def has_more(total: int, page: int, page_size: int) -> bool:
    return offset_for(page, page_size) + page_size < total

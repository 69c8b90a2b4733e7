"""
Daily briefing content selection.

Picks what goes into the briefing; rendering and delivery are done by the
caller.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from bci_tracker.constants import (
    BRIEFING_HIGHLIGHT_MIN_SCORE,
    BRIEFING_SECTION_SIZE,
    BRIEFING_TRENDING_TOP_N,
    BRIEFING_WINDOW_HOURS,
)
from bci_tracker.database import list_active_subscribers, records_since, trending_keywords
from bci_tracker.models import Category, ImportanceLevel, KeywordCount, Record
from util.logging_util import setup_logger

logger = setup_logger(__name__)


@dataclass
class Briefing:
    record_count: int
    highlights: List[Record] = field(default_factory=list)
    journals: List[Record] = field(default_factory=list)
    preprints: List[Record] = field(default_factory=list)
    news: List[Record] = field(default_factory=list)
    trending: List[KeywordCount] = field(default_factory=list)


@dataclass
class BriefingPlan:
    recipients: List[str]
    briefing: Optional[Briefing] = None
    skip_reason: Optional[str] = None


def _is_highlight(record: Record) -> bool:
    return (
        record.importance_level == ImportanceLevel.CRITICAL
        or record.importance >= BRIEFING_HIGHLIGHT_MIN_SCORE
    )


def select_briefing(records: List[Record], trending: List[KeywordCount]) -> Briefing:
    """Split records (already most-important first) into briefing sections."""

    def top(category: Category) -> List[Record]:
        return [r for r in records if r.category == category][:BRIEFING_SECTION_SIZE]

    return Briefing(
        record_count=len(records),
        highlights=[r for r in records if _is_highlight(r)][:BRIEFING_SECTION_SIZE],
        journals=top(Category.JOURNAL),
        preprints=top(Category.PREPRINT),
        news=top(Category.NEWS),
        trending=list(trending),
    )


def build_briefing(hours: float = BRIEFING_WINDOW_HOURS, now: Optional[float] = None) -> Optional[Briefing]:
    """Briefing over records first seen in the last `hours`, or None if there are none."""
    records = records_since(hours, now=now)
    if not records:
        return None
    trending = trending_keywords(top_n=BRIEFING_TRENDING_TOP_N)
    return select_briefing(records, trending)


def plan_briefing(hours: float = BRIEFING_WINDOW_HOURS, now: Optional[float] = None) -> BriefingPlan:
    """Decide whether a briefing should go out, and to whom."""
    recipients = [s.email for s in list_active_subscribers()]
    if not recipients:
        logger.info("No subscribers, skipping briefing")
        return BriefingPlan(recipients=[], skip_reason="no subscribers")

    briefing = build_briefing(hours, now=now)
    if briefing is None:
        logger.info(f"No new records in the last {hours}h, skipping briefing")
        return BriefingPlan(recipients=recipients, skip_reason="no new records")

    logger.info(f"Briefing ready: {briefing.record_count} record(s) for {len(recipients)} subscriber(s)")
    return BriefingPlan(recipients=recipients, briefing=briefing)

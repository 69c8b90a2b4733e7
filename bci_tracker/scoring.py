"""
Importance scoring for records.

A record's score (0-100) combines three signals:
  - source authority (35%): how reputable the outlet or provider is
  - recency (25%): how long ago the record was published
  - keyword relevance (40%): weighted BCI milestone/company/technique patterns
"""

import re
from datetime import datetime, timezone
from typing import Optional, Tuple

from dateutil import parser as date_parser

from bci_tracker.models import ImportanceLevel, Record

# Signal weights, in percent
AUTHORITY_WEIGHT = 35
RECENCY_WEIGHT = 25
KEYWORD_WEIGHT = 40

DEFAULT_AUTHORITY = 40
NEUTRAL_RECENCY = 50
MAX_KEYWORD_SCORE = 100

# Checked in order; the first name contained in the source or provider wins.
SOURCE_AUTHORITY: Tuple[Tuple[str, int], ...] = (
    ("Nature", 95),
    ("Nature Neuroscience", 95),
    ("Nature BMI", 95),
    ("Nature Medicine", 95),
    ("Nature Materials", 95),
    ("Nature Biotechnology", 95),
    ("Science", 93),
    ("Science Translational Medicine", 92),
    ("The Lancet Neurology", 92),
    ("The Lancet", 91),
    ("PNAS", 88),
    ("Cell", 90),
    ("Neuron (Cell)", 90),
    ("NEJM", 95),
    ("PubMed", 70),
    ("arXiv", 60),
    ("Google News", 50),
)

# (max age in hours, score); an age equal to a bound falls in that bucket
RECENCY_BUCKETS: Tuple[Tuple[float, int], ...] = (
    (6, 100),
    (24, 90),
    (72, 80),
    (168, 65),
    (720, 45),
)
STALE_RECENCY = 25

# Fills in whatever a partial date like "2024" or "March 2024" leaves out
_MISSING_DATE_PARTS = datetime(1970, 1, 1)

_KEYWORD_PATTERNS = (
    # core technology
    (r"brain[-\s]?computer\s+interface", 15),
    (r"brain[-\s]?machine\s+interface", 15),
    (r"brain[-\s]?spine\s+interface", 15),
    (r"\bBCI\b", 12),
    (r"neural\s+(interface|implant|prosthe)", 12),
    (r"deep\s+brain\s+stimulation", 10),
    # milestones
    (r"first[-\s]in[-\s]human", 20),
    (r"FDA\s+(clearance|approval|approved|clears)", 20),
    (r"clinical\s+trial", 12),
    (r"breakthrough", 10),
    (r"first\s+(ever|time|demonstration)", 10),
    (r"human\s+trial", 15),
    (r"restores?\s+(walking|speech|movement|vision|hearing)", 15),
    # companies
    (r"Neuralink", 18),
    (r"Synchron", 15),
    (r"Blackrock\s+Neurotech", 14),
    (r"Paradromics", 14),
    (r"Precision\s+Neuroscience", 13),
    (r"Kernel", 10),
    (r"CTRL[-\s]?Labs", 10),
    # funding
    (r"DARPA", 12),
    (r"NIH", 8),
    (r"\$\d+\s*[MB]", 10),
    # techniques
    (r"wireless", 5),
    (r"high[-\s]?density", 5),
    (r"real[-\s]?time", 4),
    (r"non[-\s]?invasive", 5),
    (r"closed[-\s]?loop", 5),
    (r"decoder|decoding", 5),
    (r"speech\s+decod", 8),
    (r"motor\s+(cortex|control|intention)", 6),
    (r"paralyz|tetraplegia|quadriplegia", 8),
    (r"spinal\s+cord", 6),
    (r"electrode\s+array", 5),
    (r"graphene|flexible\s+electrode", 5),
    (r"optogenetic", 5),
    (r"transformer|foundation\s+model", 4),
)

KEYWORD_RULES: Tuple[Tuple[re.Pattern, int], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), weight) for pattern, weight in _KEYWORD_PATTERNS
)

# (minimum score, level), highest tier first
LEVEL_THRESHOLDS: Tuple[Tuple[int, ImportanceLevel], ...] = (
    (70, ImportanceLevel.CRITICAL),
    (50, ImportanceLevel.HIGH),
    (30, ImportanceLevel.MEDIUM),
)


def parse_record_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a free-form feed date into an aware UTC datetime.

    Returns None for empty or unparseable values. Naive dates are taken as UTC,
    and a missing month or day means January 1st (so "2024" is 2024-01-01).
    """
    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value, default=_MISSING_DATE_PARTS)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        # Includes offsets of a day or more, which datetime cannot represent
        return None


def source_authority(source: str, provider: str = "") -> int:
    """Authority of the outlet, falling back to the provider, 0-100."""
    source = source or ""
    provider = provider or ""
    for name, authority in SOURCE_AUTHORITY:
        if name in source or name in provider:
            return authority
    return DEFAULT_AUTHORITY


def recency_score(date: Optional[str], now: Optional[datetime] = None) -> int:
    """Step-function freshness score from the record's date."""
    published = parse_record_date(date)
    if published is None:
        return NEUTRAL_RECENCY

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    hours_since = (now - published).total_seconds() / 3600

    for max_hours, score in RECENCY_BUCKETS:
        if hours_since <= max_hours:
            return score
    return STALE_RECENCY


def keyword_score(text: str) -> int:
    """Sum of the weights of every matching keyword rule, capped at 100."""
    total = sum(weight for pattern, weight in KEYWORD_RULES if pattern.search(text))
    return min(total, MAX_KEYWORD_SCORE)


def importance_level(score: int) -> ImportanceLevel:
    """Map a 0-100 score to its tier. Each tier's lower bound is inclusive."""
    for minimum, level in LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return ImportanceLevel.LOW


def score_importance(record: Record, now: Optional[datetime] = None) -> int:
    """
    Compute the importance score of a record.

    Args:
        record: The record to score. Only its current field values are read.
        now: Reference time for recency; defaults to the current UTC time.

    Returns:
        Integer score in [0, 100].
    """
    authority = source_authority(record.source, record.provider)
    recency = recency_score(record.date, now)
    keywords = keyword_score(f"{record.title or ''} {record.abstract or ''}")

    # Integer percentages keep the half-up rounding exact
    weighted = (
        AUTHORITY_WEIGHT * authority
        + RECENCY_WEIGHT * recency
        + KEYWORD_WEIGHT * keywords
    )
    score = (weighted + 50) // 100
    return max(0, min(100, score))


def score_record(record: Record, now: Optional[datetime] = None) -> Tuple[int, ImportanceLevel]:
    """Score a record and return (score, level) without modifying it."""
    score = score_importance(record, now)
    return score, importance_level(score)

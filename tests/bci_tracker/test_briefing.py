"""Tests for briefing content selection."""

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine

from bci_tracker import db_engine
from bci_tracker.briefing import build_briefing, plan_briefing, select_briefing
from bci_tracker.models import Category, ImportanceLevel, KeywordCount, Record
from bci_tracker.orm_models import Base

NOW = 1_700_000_000


@pytest.fixture
def temp_db():
    """Create a temporary in-memory database for testing."""
    test_engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(test_engine)
    db_engine.set_engine(test_engine)
    yield test_engine
    db_engine.reset_engine()


def scored(url, importance, category=Category.NEWS, level=ImportanceLevel.LOW):
    return Record(url=url, title=url, importance=importance, importance_level=level, category=category)


class TestSelectBriefing:
    """Tests for select_briefing."""

    def test_sections(self):
        records = [
            scored("j1", 80, Category.JOURNAL, ImportanceLevel.CRITICAL),
            scored("n1", 65, Category.NEWS, ImportanceLevel.HIGH),
            scored("p1", 40, Category.PREPRINT, ImportanceLevel.MEDIUM),
            scored("n2", 20, Category.NEWS),
        ]
        trending = [KeywordCount("BCI", 3)]

        briefing = select_briefing(records, trending)

        assert briefing.record_count == 4
        assert [r.url for r in briefing.highlights] == ["j1", "n1"]
        assert [r.url for r in briefing.journals] == ["j1"]
        assert [r.url for r in briefing.preprints] == ["p1"]
        assert [r.url for r in briefing.news] == ["n1", "n2"]
        assert briefing.trending == trending

    def test_sections_capped(self):
        records = [scored(f"n{i}", 90, Category.NEWS, ImportanceLevel.CRITICAL) for i in range(8)]
        briefing = select_briefing(records, [])
        assert len(briefing.news) == 5
        assert len(briefing.highlights) == 5


class TestBuildBriefing:
    """Tests for build_briefing and plan_briefing."""

    def test_no_records(self, temp_db):
        assert build_briefing(now=NOW) is None

    def test_builds_from_recent_records(self, temp_db):
        from bci_tracker.database import upsert_records

        with patch("time.time", return_value=NOW - 3600):
            upsert_records([
                Record(url="https://example.com/1", title="Neuralink FDA approval", category=Category.NEWS),
                Record(url="https://example.com/2", title="EEG study", category=Category.JOURNAL),
            ])

        briefing = build_briefing(now=NOW)

        assert briefing.record_count == 2
        assert briefing.news[0].url == "https://example.com/1"
        assert {kc.keyword for kc in briefing.trending} >= {"Neuralink", "FDA", "EEG"}

    def test_plan_without_subscribers(self, temp_db):
        plan = plan_briefing(now=NOW)
        assert plan.recipients == []
        assert plan.skip_reason == "no subscribers"

    def test_plan_without_records(self, temp_db):
        from bci_tracker.database import add_subscriber

        add_subscriber("a@example.com")
        plan = plan_briefing(now=NOW)

        assert plan.recipients == ["a@example.com"]
        assert plan.briefing is None
        assert plan.skip_reason == "no new records"

    def test_plan_ready(self, temp_db):
        from bci_tracker.database import add_subscriber, remove_subscriber, upsert_records

        add_subscriber("a@example.com")
        add_subscriber("b@example.com")
        remove_subscriber("b@example.com")
        with patch("time.time", return_value=NOW - 60):
            upsert_records([Record(url="https://example.com/1", title="Synchron update")])

        plan = plan_briefing(now=NOW)

        assert plan.recipients == ["a@example.com"]
        assert plan.skip_reason is None
        assert plan.briefing.record_count == 1

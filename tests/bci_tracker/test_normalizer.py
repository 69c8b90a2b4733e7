"""Tests for raw feed item normalization."""

from bci_tracker.models import Category, Record
from bci_tracker.normalizer import (
    clean_text,
    coerce_category,
    normalize_record,
    truncate,
)


class TestNormalizeRecord:
    """Tests for normalize_record."""

    def test_canonical_keys(self):
        record = normalize_record({
            "url": "https://arxiv.org/abs/2401.12345",
            "title": "Neural decoding with transformers",
            "titleZh": "基于Transformer的神经解码",
            "authors": "Alice Brown, Bob Green",
            "source": "arXiv",
            "date": "2024-01-20",
            "abstract": "We decode motor intention.",
            "category": "preprint",
            "provider": "arXiv",
        })

        assert record == Record(
            url="https://arxiv.org/abs/2401.12345",
            title="Neural decoding with transformers",
            title_translated="基于Transformer的神经解码",
            authors="Alice Brown, Bob Green",
            source="arXiv",
            date="2024-01-20",
            abstract="We decode motor intention.",
            category=Category.PREPRINT,
            provider="arXiv",
        )

    def test_rss_style_keys(self):
        record = normalize_record(
            {
                "link": "https://www.nature.com/articles/s41586-023-06377-x",
                "title": "A speech neuroprosthesis",
                "published": "Wed, 23 Aug 2023 00:00:00 GMT",
                "summary": "Decoding speech from cortex.",
                "authors": [{"name": "Metzger SL"}, {"name": "Chang EF"}],
            },
            provider="Nature RSS",
            category=Category.JOURNAL,
        )

        assert record.url == "https://www.nature.com/articles/s41586-023-06377-x"
        assert record.date == "Wed, 23 Aug 2023 00:00:00 GMT"
        assert record.abstract == "Decoding speech from cortex."
        assert record.authors == "Metzger SL, Chang EF"
        assert record.provider == "Nature RSS"
        assert record.category == Category.JOURNAL

    def test_item_values_win_over_defaults(self):
        record = normalize_record(
            {"url": "u", "title": "t", "category": "news", "provider": "Google News"},
            provider="fallback",
            category=Category.JOURNAL,
        )
        assert record.provider == "Google News"
        assert record.category == Category.NEWS

    def test_author_list_of_strings(self):
        record = normalize_record({"url": "u", "title": "t", "authors": [" A ", "", "B"]})
        assert record.authors == "A, B"

    def test_html_is_stripped(self):
        record = normalize_record({
            "url": "u",
            "title": "t",
            "description": "<p>Flexible   electrode\n arrays</p>",
        })
        assert "<" not in record.abstract
        assert "Flexible electrode arrays" in record.abstract

    def test_long_abstract_truncated(self):
        record = normalize_record({"url": "u", "title": "t", "abstract": "x" * 500})
        assert record.abstract == "x" * 300 + "…"

    def test_missing_fields_are_empty(self):
        record = normalize_record({})
        assert record.url == ""
        assert record.title == ""
        assert record.category == Category.UNSPECIFIED

    def test_record_passthrough(self):
        original = Record(url="u", title="t")
        assert normalize_record(original) is original

    def test_unreadable_input(self):
        assert normalize_record(None) is None
        assert normalize_record("https://example.com") is None


class TestHelpers:
    """Tests for helper functions."""

    def test_coerce_category(self):
        assert coerce_category("Journal") == Category.JOURNAL
        assert coerce_category(Category.NEWS) == Category.NEWS
        assert coerce_category("blog") == Category.UNSPECIFIED
        assert coerce_category(None) == Category.UNSPECIFIED

    def test_clean_text_plain(self):
        assert clean_text("  two\n\nlines ") == "two lines"
        assert clean_text(None) == ""

    def test_truncate_short(self):
        assert truncate("short", 10) == "short"
        assert truncate("exactly10!", 10) == "exactly10!"
        assert truncate("longer than ten", 10) == "longer tha…"

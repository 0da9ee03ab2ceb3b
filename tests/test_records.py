"""Tests for records.py -- catalog work -> AudiobookRecord, book enrichment."""

import pytest

from audiobook_matcher.api.schemas import AudnexusBook, AudnexusChapters
from audiobook_matcher.models import AudiobookRecord, MatchMethod
from audiobook_matcher.records import (
    compute_duration,
    enrich,
    google_hint,
    to_audiobook_record,
)

from tests.conftest import make_record


def _book(**fields):
    return AudnexusBook.model_validate({"asin": "B001", "title": "Book", **fields})


class TestComputeDuration:
    def test_prefers_book_minutes(self):
        chapters = AudnexusChapters.model_validate({"runtimeLengthMs": 1})
        d = compute_duration(_book(runtimeLengthMin=90), chapters)
        assert (d.ms, d.minutes, d.hours) == (5_400_000, 90, 1.5)

    def test_book_seconds(self):
        d = compute_duration(_book(runtimeLengthSec=7200))
        assert (d.ms, d.minutes, d.hours) == (7_200_000, 120, 2.0)

    def test_chapter_ms(self):
        chapters = AudnexusChapters.model_validate({"runtimeLengthMs": 3_690_000})
        d = compute_duration(_book(), chapters)
        assert (d.ms, d.minutes, d.hours) == (3_690_000, 62, 1.0)

    def test_chapter_seconds(self):
        chapters = AudnexusChapters.model_validate({"runtimeLengthSec": 600})
        d = compute_duration(_book(), chapters)
        assert (d.ms, d.minutes, d.hours) == (600_000, 10, 0.2)

    def test_nothing_available(self):
        assert compute_duration(_book()) is None


class TestToAudiobookRecord:
    def test_minimal_work(self):
        record = to_audiobook_record(_book())
        assert record.has_match is True
        assert record.external_id == "B001"
        assert record.narrators == ()
        assert record.genres == ()
        assert record.total_duration_ms is None
        assert record.chapter_count is None

    def test_chapter_count_from_subresource(self):
        chapters = AudnexusChapters.model_validate(
            {"chapters": [{"title": "1"}, {"title": "2"}, {"title": "3"}]}
        )
        record = to_audiobook_record(_book(), chapters)
        assert record.chapter_count == 3

    def test_match_method_passed_through(self):
        record = to_audiobook_record(_book(), match_method=MatchMethod.KEYWORD_SEARCH)
        assert record.match_method == "KeywordSearch"


class TestRecordInvariant:
    def test_match_requires_id(self):
        with pytest.raises(ValueError):
            AudiobookRecord(has_match=True, match_method=MatchMethod.KEYWORD_SEARCH)

    def test_to_dict(self):
        data = make_record("B001", narrators=("N",)).to_dict()
        assert data["external_id"] == "B001"
        assert data["narrators"] == ("N",)


class TestEnrich:
    def test_returns_new_dict(self):
        book = {"title": "Fishing", "authors": ["A. Author"]}
        record = make_record("B001")
        enriched = enrich(book, record)
        assert enriched is not book
        assert enriched["audiobook_data"] is record
        assert "audiobook_data" not in book


class TestGoogleHint:
    def test_no_hints(self):
        assert google_hint({"title": "x"}) is None

    def test_marked_as_audiobook(self):
        hint = google_hint({"google_audiobook_hints": {"marked_as_audiobook": True}})
        assert hint["suggests_audiobook"] is True
        assert hint["reason"] == "Google Books marks this as an audiobook"

    def test_high_confidence_text_to_speech(self):
        hint = google_hint(
            {
                "google_audiobook_hints": {
                    "confidence": "high",
                    "text_to_speech_allowed": True,
                }
            }
        )
        assert hint["reason"] == "Google Books allows text-to-speech"

    def test_low_confidence_ignored(self):
        assert google_hint({"google_audiobook_hints": {"confidence": "low"}}) is None

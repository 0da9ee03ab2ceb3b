"""Turn catalog work records into AudiobookRecords and attach them to books."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from .api.schemas import AudnexusBook, AudnexusChapters
from .models import AudiobookRecord, MatchMethod

log = logger.bind(stage="records")


@dataclass(frozen=True)
class Duration:
    ms: int
    minutes: int
    hours: float

    @classmethod
    def from_ms(cls, ms: int) -> "Duration":
        return cls(ms=ms, minutes=round(ms / 60_000), hours=round(ms / 3_600_000, 1))

    @classmethod
    def from_minutes(cls, minutes: int) -> "Duration":
        return cls(ms=minutes * 60_000, minutes=minutes, hours=round(minutes / 60, 1))


def compute_duration(
    book: AudnexusBook,
    chapters: AudnexusChapters | None = None,
) -> Duration | None:
    """Duration from the most direct source available.

    Order: work minutes, work seconds, chapter runtime ms, chapter runtime seconds.
    """
    if book.runtime_length_min:
        return Duration.from_minutes(book.runtime_length_min)
    if book.runtime_length_sec:
        return Duration.from_ms(book.runtime_length_sec * 1000)
    if chapters is not None:
        if chapters.runtime_length_ms:
            return Duration.from_ms(chapters.runtime_length_ms)
        if chapters.runtime_length_sec:
            return Duration.from_ms(chapters.runtime_length_sec * 1000)
    return None


def to_audiobook_record(
    book: AudnexusBook,
    chapters: AudnexusChapters | None = None,
    match_method: str = MatchMethod.DIRECT_LOOKUP,
) -> AudiobookRecord:
    """Map a catalog work (plus optional chapter data) to the canonical record."""
    duration = compute_duration(book, chapters)
    if duration is None:
        log.debug(f"No duration data for {book.asin}")

    chapter_count = None
    if chapters is not None and chapters.chapters is not None:
        chapter_count = len(chapters.chapters)

    return AudiobookRecord(
        has_match=True,
        match_method=match_method,
        external_id=book.asin,
        title=book.title,
        narrators=tuple(n.name for n in book.narrators if n.name),
        total_duration_ms=duration.ms if duration else None,
        total_duration_minutes=duration.minutes if duration else None,
        total_duration_hours=duration.hours if duration else None,
        chapter_count=chapter_count,
        publisher=book.publisher_name,
        description=book.description,
        summary=book.summary,
        copyright=str(book.copyright) if book.copyright is not None else None,
        rating=book.rating,
        release_date=book.release_date,
        isbn=book.isbn,
        language=book.language,
        is_adult=book.is_adult,
        format_type=book.format_type,
        image=book.image,
        genres=tuple(g.name for g in book.genres if g.name),
        authors=tuple(a.name for a in book.authors if a.name),
        author_found=True,
    )


def google_hint(book: Mapping[str, Any]) -> dict[str, Any] | None:
    """Summarize a book's search-engine audiobook hints, if they suggest one exists."""
    hints = book.get("google_audiobook_hints") or {}
    if not (hints.get("marked_as_audiobook") or hints.get("confidence") == "high"):
        return None

    if hints.get("marked_as_audiobook"):
        reason = "Google Books marks this as an audiobook"
    elif hints.get("text_to_speech_allowed"):
        reason = "Google Books allows text-to-speech"
    else:
        reason = "Google Books has audiobook links"
    return {
        "suggests_audiobook": True,
        "confidence": hints.get("confidence"),
        "reason": reason,
        "message": (
            "Google Books suggests this may have an audiobook version, but it "
            "wasn't found in the audiobook catalogs. It might be available on "
            "Google Play Books or other platforms."
        ),
    }


def enrich(book: Mapping[str, Any], record: AudiobookRecord) -> dict[str, Any]:
    """New book dict with record attached as audiobook_data. The input is untouched."""
    return {**book, "audiobook_data": record}

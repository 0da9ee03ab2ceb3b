"""Core enums and record types for the audiobook matcher.

Enums:
    MatchMethod     -- Which strategy (or terminal state) produced a result.
    CandidateSource -- Which catalog a candidate came from.
    ErrorCategory   -- Error classification for upstream failures
                       (transient, permanent, not_found).

Records are frozen dataclasses: created once per invocation and never
mutated. Use dataclasses.replace() to derive a changed copy.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class MatchMethod(StrEnum):
    KEYWORD_SEARCH = "KeywordSearch"
    ISBN_LOOKUP = "IsbnLookup"
    AUTHOR_CATALOG = "AuthorCatalogMatch"
    AUTHOR_VARIATIONS = "AuthorNameVariations"
    KEYWORD_ONLY = "KeywordOnly"
    DIRECT_LOOKUP = "DirectLookup"
    AUTHOR_ONLY = "AuthorOnly"
    NO_MATCH = "NoMatch"
    CANCELLED = "Cancelled"


class CandidateSource(StrEnum):
    KEYWORD_SEARCH = "KeywordSearch"
    AUTHOR_CATALOG = "AuthorCatalog"


class ErrorCategory(StrEnum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SearchTarget:
    """What the caller is looking for. Normalized forms are derived, never stored."""

    title: str
    author: str
    isbn: str | None = None


@dataclass(frozen=True)
class Candidate:
    """One catalog hit with its relevance score against a SearchTarget."""

    external_id: str
    title: str
    authors: tuple[str, ...] = ()
    narrator: str | None = None
    score: float = 0.0
    origin_source: CandidateSource = CandidateSource.KEYWORD_SEARCH
    is_audio_product: bool = False


@dataclass(frozen=True)
class AuthorProfile:
    external_id: str
    name: str
    description: str | None = None
    image: str | None = None
    genres: tuple[str, ...] = ()
    known_works: tuple[Candidate, ...] = ()


@dataclass(frozen=True)
class AudiobookRecord:
    """Canonical audiobook result handed back to the caller.

    has_match=True always carries a non-empty external_id. Non-matches
    (author-only, no-match, cancelled) explain themselves through
    message/suggestion/limitation_note.
    """

    has_match: bool
    match_method: str
    external_id: str | None = None
    title: str | None = None
    narrators: tuple[str, ...] = ()
    total_duration_ms: int | None = None
    total_duration_minutes: int | None = None
    total_duration_hours: float | None = None
    chapter_count: int | None = None
    publisher: str | None = None
    description: str | None = None
    summary: str | None = None
    copyright: str | None = None
    rating: str | None = None
    release_date: str | None = None
    isbn: str | None = None
    language: str | None = None
    is_adult: bool | None = None
    format_type: str | None = None
    image: str | None = None
    genres: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    match_confidence: float | None = None
    limitation_note: str | None = None
    author_found: bool = False
    author: AuthorProfile | None = None
    message: str | None = None
    suggestion: str | None = None
    cancelled: bool = False
    google_hint: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.has_match and not self.external_id:
            raise ValueError("A matched AudiobookRecord requires an external_id")

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for json.dumps (nested profile included, None fields kept)."""
        return asdict(self)


@dataclass(frozen=True)
class StrategyResult:
    """Outcome of one strategy attempt, folded by the orchestrator."""

    record: AudiobookRecord | None = None
    candidates: tuple[Candidate, ...] = ()
    author: AuthorProfile | None = None

    @property
    def resolved(self) -> bool:
        return self.record is not None and self.record.has_match


@dataclass(frozen=True)
class SelectionResult:
    """Ranked candidates for manual selection plus any author profile found."""

    candidates: list[AudiobookRecord] = field(default_factory=list)
    author: AuthorProfile | None = None
    message: str = ""
    suggestion: str | None = None
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "author": asdict(self.author) if self.author else None,
            "message": self.message,
            "suggestion": self.suggestion,
            "cancelled": self.cancelled,
        }

"""Relevance scoring, best-match selection, and deduplication.

Pure functions over the matcher's own records; no I/O. The relevance
score combines title similarity (60 max), author similarity (40 max), a
sequel-number adjustment (+10/-5/-10), and a +5 audio-format bonus.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol, TypeVar

from loguru import logger

from ..models import AudiobookRecord, Candidate, SearchTarget
from ..normalize import (
    first_number,
    normalize_author,
    normalize_title,
    significant_words,
)

log = logger.bind(stage="search")

TITLE_EXACT = 60
TITLE_CONTAINS = 45
TITLE_OVERLAP = 30
AUTHOR_EXACT = 40
AUTHOR_CONTAINS = 30
AUTHOR_OVERLAP = 20
AUDIO_BONUS = 5


class _Named(Protocol):
    name: str


N = TypeVar("N", bound=_Named)
T = TypeVar("T")


def _contains_either(a: str, b: str) -> bool:
    return bool(a and b) and (a in b or b in a)


def _overlap_ratio(target_words: list[str], other_words: list[str]) -> float:
    """Fraction of target_words that appear (as substring either way) in other_words."""
    if not target_words:
        return 0.0
    common = [
        w for w in target_words if any(_contains_either(w, o) for o in other_words)
    ]
    return len(common) / len(target_words)


def title_score(candidate_title: str, target_title: str) -> float:
    cand = normalize_title(candidate_title)
    target = normalize_title(target_title)
    if cand and cand == target:
        return TITLE_EXACT
    if _contains_either(cand, target):
        return TITLE_CONTAINS
    return (
        _overlap_ratio(significant_words(target), significant_words(cand))
        * TITLE_OVERLAP
    )


def author_score(candidate_authors: Iterable[str], target_author: str) -> float:
    """Best author similarity across all of the candidate's authors."""
    target = normalize_author(target_author)
    best = 0.0
    for raw in candidate_authors:
        author = normalize_author(raw)
        if not author:
            continue
        if author == target:
            score = AUTHOR_EXACT
        elif _contains_either(author, target):
            score = AUTHOR_CONTAINS
        else:
            score = _overlap_ratio(target.split(), author.split()) * AUTHOR_OVERLAP
        best = max(best, score)
    return best


def sequel_adjustment(candidate_title: str, target_title: str) -> int:
    """Penalize unrequested sequels, reward the requested volume number.

    Keeps "Heretical Fishing" above "Heretical Fishing 2" when no number
    was asked for.
    """
    target_num = first_number(normalize_title(target_title))
    cand_num = first_number(normalize_title(candidate_title))
    if target_num is None:
        return -10 if cand_num is not None else 0
    if cand_num is None:
        return -5
    return 10 if cand_num == target_num else -5


def score_candidate(candidate: Candidate, target: SearchTarget) -> int:
    """Relevance of candidate to target, a whole number roughly 0-110 (not clamped)."""
    score = title_score(candidate.title, target.title)
    score += author_score(candidate.authors, target.author)
    score += sequel_adjustment(candidate.title, target.title)
    if candidate.is_audio_product:
        score += AUDIO_BONUS
    # Half rounds up, so 22.5 scores 23
    return math.floor(score + 0.5)


def score_record(record: AudiobookRecord, target: SearchTarget) -> int:
    """Score a resolved record the same way as a raw candidate."""
    return score_candidate(
        Candidate(
            external_id=record.external_id or "",
            title=record.title or "",
            authors=record.authors,
        ),
        target,
    )


def best_author_match(authors: Sequence[N], target_name: str) -> N | None:
    """Pick the upstream author that best matches target_name.

    Exact normalized name, then substring containment, then surname
    equality, then the first entry. Only an empty list yields None.
    """
    if not authors:
        return None

    target = normalize_author(target_name)
    normalized = [(a, normalize_author(a.name)) for a in authors]

    for author, name in normalized:
        if name == target:
            return author
    for author, name in normalized:
        if _contains_either(name, target):
            return author

    target_last = target.split()[-1] if target else ""
    for author, name in normalized:
        if target_last and name.split() and name.split()[-1] == target_last:
            return author

    log.debug(f"No close author match for {target_name!r}, using first result")
    return authors[0]


def best_work_match(
    works: Sequence[Candidate],
    target_title: str,
    threshold: float = 0.4,
) -> Candidate | None:
    """Find the known work best matching target_title, or None.

    Tries exact, substring, significant-word and finally fuzzy matching.
    """
    if not works:
        return None

    target = normalize_title(target_title)
    normalized = [(w, normalize_title(w.title)) for w in works]

    for work, title in normalized:
        if title == target:
            return work
    for work, title in normalized:
        if _contains_either(title, target):
            return work

    # Most significant words present (handles subtitles)
    sig = significant_words(target, min_length=4)
    if sig:
        needed = min(2, len(sig))
        for work, title in normalized:
            words = title.split()
            hits = [w for w in sig if any(_contains_either(w, b) for b in words)]
            if len(hits) >= needed:
                return work

    return fuzzy_work_match(works, target_title, threshold)


def fuzzy_work_match(
    works: Sequence[Candidate],
    target_title: str,
    threshold: float = 0.4,
) -> Candidate | None:
    """Similarity = 0.8 substring + 0.6 word overlap + 0.2 length ratio.

    Returns the highest-scoring work above threshold; an exact normalized
    title wins immediately.
    """
    target = normalize_title(target_title)
    target_words = significant_words(target)

    best: Candidate | None = None
    best_score = 0.0
    for work in works:
        title = normalize_title(work.title)
        if title == target:
            return work
        words = significant_words(title)

        score = 0.0
        if _contains_either(title, target):
            score += 0.8
        denom = max(len(target_words), len(words))
        if denom:
            common = [
                w for w in target_words if any(_contains_either(w, b) for b in words)
            ]
            score += len(common) / denom * 0.6
        longest = max(len(target), len(title))
        if longest:
            score += min(len(target), len(title)) / longest * 0.2

        if score > best_score and score > threshold:
            best_score = score
            best = work

    if best:
        log.debug(f"Fuzzy match score: {best_score:.2f} for {best.title!r}")
    return best


def _dedupe(
    items: Iterable[T],
    key: Callable[[T], str],
    score: Callable[[T], float],
) -> list[T]:
    """One entry per key (highest score wins), sorted by score descending."""
    best: dict[str, T] = {}
    for item in items:
        k = key(item)
        if k not in best or score(item) > score(best[k]):
            best[k] = item
    return sorted(best.values(), key=score, reverse=True)


def dedupe_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    return _dedupe(candidates, key=lambda c: c.external_id, score=lambda c: c.score)


def dedupe_records(records: Iterable[AudiobookRecord]) -> list[AudiobookRecord]:
    return _dedupe(
        records,
        key=lambda r: r.external_id or "",
        score=lambda r: r.match_confidence or 0.0,
    )

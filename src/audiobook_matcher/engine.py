"""Audiobook discovery: ordered fallback strategies over two catalogs.

Strategies run strictly in order until one resolves a work:

    1. KeywordSearch        -- Audible keyword search, resolve each hit via Audnexus
    2. IsbnLookup           -- not supported upstream yet; always falls through
    3. AuthorCatalogMatch   -- Audnexus author lookup + known-works title match
    4. AuthorNameVariations -- strategy 3 retried with alternate author spellings

Every strategy shares the signature ``(target, cancel) -> StrategyResult | None``.
Upstream failures never escape the matcher; they only move the search on to
the next strategy (or candidate, or name variation). When nothing resolves,
the caller gets an author-only or no-match record explaining why.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from loguru import logger

from .api.audible import AudibleClient
from .api.audnexus import AudnexusClient
from .api.search import best_work_match, dedupe_records, score_record
from .concurrency import is_cancelled
from .config import MatcherConfig
from .errors import InvalidInputError, SearchCancelled
from .models import (
    AudiobookRecord,
    AuthorProfile,
    Candidate,
    MatchMethod,
    SearchTarget,
    SelectionResult,
    StrategyResult,
)
from .records import enrich, google_hint
from .variations import author_variations

if TYPE_CHECKING:
    from loguru import Logger


class KeywordSearcher(Protocol):
    async def search_by_keywords(
        self, target: SearchTarget, cancel: asyncio.Event | None = None
    ) -> list[Candidate]: ...


class WorkCatalog(Protocol):
    async def find_author(
        self, name: str, cancel: asyncio.Event | None = None
    ) -> AuthorProfile | None: ...

    async def get_author_detail(
        self, author_id: str, cancel: asyncio.Event | None = None
    ) -> AuthorProfile: ...

    async def get_work_detail(
        self, work_id: str, cancel: asyncio.Event | None = None
    ) -> AudiobookRecord | None: ...


Strategy = Callable[[SearchTarget, asyncio.Event | None], Awaitable[StrategyResult | None]]


def _require_author(author: str | None) -> str:
    if not author or not author.strip():
        raise InvalidInputError("Author is required for audiobook search")
    return author.strip()


class AudiobookMatcher:
    """Finds the audiobook matching a book's title and author.

    Holds no per-search state, so one instance can serve concurrent searches.
    """

    def __init__(
        self,
        keyword: KeywordSearcher,
        catalog: WorkCatalog,
        config: MatcherConfig | None = None,
        log: Logger | None = None,
    ) -> None:
        self.keyword = keyword
        self.catalog = catalog
        self.config = config or MatcherConfig()
        self.log = log or logger.bind(stage="matcher")

    @classmethod
    @asynccontextmanager
    async def connect(
        cls,
        config: MatcherConfig | None = None,
        log: Logger | None = None,
    ) -> AsyncIterator[AudiobookMatcher]:
        """Matcher backed by live HTTP clients, closed on exit."""
        config = config or MatcherConfig()
        async with httpx.AsyncClient(follow_redirects=True) as client:
            yield cls(
                AudibleClient(client, config),
                AudnexusClient(client, config),
                config=config,
                log=log,
            )

    def strategies(self) -> list[tuple[MatchMethod, Strategy]]:
        return [
            (MatchMethod.KEYWORD_SEARCH, self._keyword_search),
            (MatchMethod.ISBN_LOOKUP, self._isbn_lookup),
            (MatchMethod.AUTHOR_CATALOG, self._author_catalog),
            (MatchMethod.AUTHOR_VARIATIONS, self._author_variations),
        ]

    # -- Public API --

    async def find_best_match(
        self,
        title: str,
        author: str,
        isbn: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> AudiobookRecord:
        """Best audiobook for title/author, or a record explaining the miss.

        Raises InvalidInputError when author is missing. Never raises for
        upstream failures.
        """
        target = SearchTarget(title=title or "", author=_require_author(author), isbn=isbn)
        self.log.info(
            f"Searching for audiobook: {target.title!r} by {target.author}"
            + (f" (ISBN: {isbn})" if isbn else "")
        )

        author_profile: AuthorProfile | None = None
        for method, strategy in self.strategies():
            if is_cancelled(cancel):
                return self._cancelled(target, author_profile)
            try:
                result = await strategy(target, cancel)
            except SearchCancelled:
                return self._cancelled(target, author_profile)
            except Exception as e:
                self.log.warning(f"{method} failed: {e}")
                continue

            if result is None:
                self.log.debug(f"{method}: no result")
                continue
            author_profile = author_profile or result.author
            if result.resolved:
                record = result.record
                self.log.info(
                    f"Resolved {record.external_id} via {method} "
                    f"(confidence {record.match_confidence})"
                )
                return record
            if result.candidates:
                self.log.debug(
                    f"{method}: {len(result.candidates)} unresolved candidate(s), "
                    f"trying next strategy"
                )

        return self._exhausted(target, author_profile)

    async def find_candidates_for_selection(
        self,
        title: str,
        author: str,
        cancel: asyncio.Event | None = None,
    ) -> SelectionResult:
        """Every candidate from keyword search and the author catalog, ranked.

        Keyword hits that Audnexus can't resolve are still offered with a
        limitation note so the user can pick them.
        """
        target = SearchTarget(title=title or "", author=_require_author(author))
        self.log.info(f"Searching for audiobook matches: {target.title!r} by {target.author}")

        records: list[AudiobookRecord] = []
        author_profile: AuthorProfile | None = None
        cancelled = False
        try:
            await self._resolve_keyword_candidates(target, cancel, records)
            if is_cancelled(cancel):
                raise SearchCancelled("Search cancelled")
            try:
                result = await self._author_catalog(target, cancel)
            except SearchCancelled:
                raise
            except Exception as e:
                self.log.warning(f"Author catalog search failed: {e}")
                result = None
            if result is not None:
                author_profile = result.author
                if result.resolved:
                    records.append(result.record)
        except SearchCancelled:
            cancelled = True
            self.log.info("Selection search cancelled, returning partial results")

        ranked = dedupe_records(records)
        if ranked:
            message = f'Found {len(ranked)} audiobook matches for "{target.title}" by {target.author}'
            suggestion = None
        elif author_profile:
            message = (
                f'Author "{author_profile.name}" found but no audiobooks '
                f'discovered for "{target.title}"'
            )
            suggestion = (
                "The book may not have an audiobook version or may not be "
                "indexed in the databases."
            )
        else:
            message = f'No audiobooks or authors found for "{target.title}" by {target.author}'
            suggestion = (
                "The book may not have an audiobook version, or it may not be "
                "available in the US market. Try searching with different title "
                "variations or check the author name spelling."
            )
        self.log.info(message)
        return SelectionResult(
            candidates=ranked,
            author=author_profile,
            message=message,
            suggestion=suggestion,
            cancelled=cancelled,
        )

    async def enrich_book(
        self,
        book: Mapping[str, Any],
        cancel: asyncio.Event | None = None,
    ) -> dict[str, Any]:
        """Copy of book with an audiobook_data record attached."""
        authors = book.get("authors") or []
        primary = authors[0] if authors else None
        isbn = book.get("isbn13") or book.get("isbn10")

        if not primary or not str(primary).strip():
            self.log.info("No author provided, skipping audiobook search")
            record = AudiobookRecord(
                has_match=False,
                match_method=MatchMethod.NO_MATCH,
                message="No author provided, skipping audiobook search",
                suggestion="Add an author to search for an audiobook version.",
            )
        else:
            record = await self.find_best_match(
                book.get("title") or "", primary, isbn, cancel
            )

        hint = google_hint(book)
        if hint and not record.has_match and not record.author_found:
            record = replace(record, google_hint=hint)
        return enrich(book, record)

    async def lookup_asin(
        self,
        asin: str,
        cancel: asyncio.Event | None = None,
    ) -> AudiobookRecord | None:
        """Resolve a known identifier directly. Errors yield None."""
        try:
            record = await self.catalog.get_work_detail(asin, cancel)
        except Exception as e:
            self.log.warning(f"Direct lookup failed for {asin}: {e}")
            return None
        if record is None or not record.has_match:
            return None
        return replace(record, match_method=MatchMethod.DIRECT_LOOKUP)

    # -- Strategies --

    async def _keyword_search(
        self, target: SearchTarget, cancel: asyncio.Event | None
    ) -> StrategyResult | None:
        candidates = await self.keyword.search_by_keywords(target, cancel)
        if not candidates:
            return None
        self.log.debug(f"Found {len(candidates)} potential matches from keyword search")

        for candidate in candidates:
            self.log.debug(f"Trying {candidate.external_id} - {candidate.title!r}")
            try:
                record = await self.catalog.get_work_detail(candidate.external_id, cancel)
            except SearchCancelled:
                raise
            except Exception as e:
                self.log.warning(f"{candidate.external_id} failed: {e}")
                continue
            if record is not None and record.has_match:
                return StrategyResult(
                    record=replace(
                        record,
                        match_method=MatchMethod.KEYWORD_SEARCH,
                        match_confidence=candidate.score,
                    ),
                    candidates=tuple(candidates),
                )

        self.log.debug(f"None of {len(candidates)} keyword candidates resolved on Audnexus")
        return StrategyResult(candidates=tuple(candidates))

    async def _isbn_lookup(
        self, target: SearchTarget, cancel: asyncio.Event | None
    ) -> StrategyResult | None:
        # Audnexus has no ISBN endpoint; keep the hook until it does.
        if target.isbn:
            self.log.debug(f"ISBN lookup not supported by Audnexus ({target.isbn})")
        return None

    async def _author_catalog(
        self,
        target: SearchTarget,
        cancel: asyncio.Event | None,
        author_name: str | None = None,
        method: MatchMethod = MatchMethod.AUTHOR_CATALOG,
    ) -> StrategyResult | None:
        name = author_name or target.author
        found = await self.catalog.find_author(name, cancel)
        if found is None:
            self.log.debug(f"Author {name!r} not found on Audnexus")
            return None

        try:
            profile = await self.catalog.get_author_detail(found.external_id, cancel)
        except SearchCancelled:
            raise
        except Exception as e:
            self.log.warning(f"Could not get author details for {found.external_id}: {e}")
            profile = found

        if not profile.known_works:
            self.log.debug(f"Author profile for {profile.name!r} has no book catalog")
            return StrategyResult(author=profile)

        work = best_work_match(
            profile.known_works, target.title, self.config.fuzzy_title_threshold
        )
        if work is None:
            self.log.debug(
                f"{profile.name!r} lists {len(profile.known_works)} works, "
                f"none match {target.title!r}"
            )
            return StrategyResult(author=profile)

        self.log.debug(f"Known-work match: {work.title!r} ({work.external_id})")
        try:
            record = await self.catalog.get_work_detail(work.external_id, cancel)
        except SearchCancelled:
            raise
        except Exception as e:
            self.log.warning(f"Could not get work details for {work.external_id}: {e}")
            return StrategyResult(author=profile, candidates=(work,))

        if record is None or not record.has_match:
            return StrategyResult(author=profile, candidates=(work,))
        return StrategyResult(
            record=replace(
                record,
                match_method=method,
                match_confidence=score_record(record, target),
                author=profile,
            ),
            candidates=(work,),
            author=profile,
        )

    async def _author_variations(
        self, target: SearchTarget, cancel: asyncio.Event | None
    ) -> StrategyResult | None:
        first_author: AuthorProfile | None = None
        for variant in author_variations(target.author):
            if variant == target.author:
                continue
            if is_cancelled(cancel):
                raise SearchCancelled("Search cancelled")
            self.log.debug(f"Trying author variation: {variant!r}")
            try:
                result = await self._author_catalog(
                    target, cancel, author_name=variant, method=MatchMethod.AUTHOR_VARIATIONS
                )
            except SearchCancelled:
                raise
            except Exception as e:
                self.log.warning(f"Author variation {variant!r} failed: {e}")
                continue
            if result is None:
                continue
            if result.resolved:
                return result
            first_author = first_author or result.author
        return StrategyResult(author=first_author) if first_author else None

    # -- Helpers --

    async def _resolve_keyword_candidates(
        self,
        target: SearchTarget,
        cancel: asyncio.Event | None,
        records: list[AudiobookRecord],
    ) -> None:
        """Append a record per keyword candidate to records as each resolves.

        Entries appended before a SearchCancelled stay in records.
        """
        try:
            candidates = await self.keyword.search_by_keywords(target, cancel)
        except SearchCancelled:
            raise
        except Exception as e:
            self.log.warning(f"Keyword search failed: {e}")
            return

        for candidate in candidates:
            try:
                record = await self.catalog.get_work_detail(candidate.external_id, cancel)
            except SearchCancelled:
                raise
            except Exception as e:
                self.log.warning(f"Audnexus lookup failed for {candidate.external_id}: {e}")
                records.append(
                    _keyword_only(candidate, "Audnexus lookup failed, showing Audible data only")
                )
                continue
            if record is not None and record.has_match:
                records.append(
                    replace(
                        record,
                        match_method=MatchMethod.KEYWORD_SEARCH,
                        match_confidence=score_record(record, target),
                    )
                )
            else:
                records.append(
                    _keyword_only(candidate, "Full audiobook data not available in Audnexus database")
                )

    def _exhausted(
        self, target: SearchTarget, author: AuthorProfile | None
    ) -> AudiobookRecord:
        if author is not None:
            self.log.info(f"Author {author.name} found, but no audiobook for {target.title!r}")
            return _author_only(target, author)
        self.log.info(f"No audiobook found for {target.title!r} by {target.author}")
        return AudiobookRecord(
            has_match=False,
            match_method=MatchMethod.NO_MATCH,
            author_found=False,
            message=f'No audiobook found for "{target.title}" by {target.author}',
            limitation_note="Book not found via Audible search or Audnexus author lookup.",
            suggestion=(
                "The book may not have an audiobook version, or it may not be "
                "available in the US Audible store."
            ),
        )

    def _cancelled(
        self, target: SearchTarget, author: AuthorProfile | None
    ) -> AudiobookRecord:
        self.log.info(f"Search for {target.title!r} cancelled")
        if author is not None:
            return replace(_author_only(target, author), cancelled=True)
        return AudiobookRecord(
            has_match=False,
            match_method=MatchMethod.CANCELLED,
            cancelled=True,
            message=f'Search for "{target.title}" was cancelled before a match was found',
        )


def _author_only(target: SearchTarget, author: AuthorProfile) -> AudiobookRecord:
    return AudiobookRecord(
        has_match=False,
        match_method=MatchMethod.AUTHOR_ONLY,
        author_found=True,
        author=author,
        authors=(author.name,),
        genres=author.genres,
        message=(
            f"Author {author.name} found on Audnexus, but specific audiobook "
            f'for "{target.title}" not discoverable.'
        ),
        limitation_note=(
            "Book not found in Audnexus database. The book may not have an "
            "audiobook version or may not be indexed yet."
        ),
        suggestion=(
            "Try searching with different title variations or check if the "
            "book has an audiobook version on Audible."
        ),
    )


def _keyword_only(candidate: Candidate, note: str) -> AudiobookRecord:
    return AudiobookRecord(
        has_match=True,
        match_method=MatchMethod.KEYWORD_ONLY,
        external_id=candidate.external_id,
        title=candidate.title,
        authors=candidate.authors,
        narrators=(candidate.narrator,) if candidate.narrator else (),
        match_confidence=candidate.score,
        limitation_note=note,
    )

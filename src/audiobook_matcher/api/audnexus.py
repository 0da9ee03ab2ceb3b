"""Audnexus API client for author and work metadata.

Audnexus API: https://api.audnex.us
- GET /authors?name=...          - Search authors by name
- GET /authors/{asin}            - Author profile (books list rarely populated)
- GET /books/{asin}              - Work metadata
- GET /books/{asin}/chapters     - Chapter and runtime data

Every call is scoped to the configured region. A 404 on a work lookup is a
normal "no data" outcome; other failures surface as TransientUpstreamError
for the caller to downgrade.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from ..concurrency import guarded
from ..config import MatcherConfig
from ..errors import TransientUpstreamError
from ..models import AudiobookRecord, AuthorProfile, Candidate, CandidateSource
from ..records import to_audiobook_record
from .schemas import AudnexusAuthor, AudnexusAuthorStub, AudnexusBook, AudnexusChapters
from .search import best_author_match

log = logger.bind(stage="audnexus")

SOURCE = "audnexus"


class _NotFound(Exception):
    pass


def to_author_profile(author: AudnexusAuthor) -> AuthorProfile:
    return AuthorProfile(
        external_id=author.asin,
        name=author.name,
        description=author.description,
        image=author.image,
        genres=tuple(g.name for g in author.genres if g.name),
        known_works=tuple(
            Candidate(
                external_id=w.asin,
                title=w.title,
                authors=(author.name,),
                origin_source=CandidateSource.AUTHOR_CATALOG,
            )
            for w in author.books
        ),
    )


class AudnexusClient:
    """Author/work catalog lookups."""

    def __init__(self, client: httpx.AsyncClient, config: MatcherConfig) -> None:
        self.client = client
        self.config = config

    async def _get(
        self,
        path: str,
        params: dict[str, Any],
        cancel: asyncio.Event | None = None,
    ) -> Any:
        """GET a JSON document. Raises _NotFound on 404, TransientUpstreamError otherwise."""
        url = f"{self.config.audnexus_base_url}{path}"
        params = {"region": self.config.audnexus_region, **params}
        try:
            resp = await guarded(
                self.client.get(url, params=params, timeout=self.config.audnexus_timeout),
                cancel,
            )
        except httpx.TimeoutException as e:
            raise TransientUpstreamError(SOURCE, f"timeout on {path}: {e}") from e
        except httpx.HTTPError as e:
            raise TransientUpstreamError(SOURCE, f"request to {path} failed: {e}") from e

        if resp.status_code == 404:
            raise _NotFound(path)
        if resp.is_error:
            raise TransientUpstreamError(
                SOURCE, f"HTTP {resp.status_code} on {path}", status_code=resp.status_code
            )
        try:
            return resp.json()
        except ValueError as e:
            raise TransientUpstreamError(SOURCE, f"invalid JSON from {path}") from e

    async def search_authors(
        self,
        name: str,
        cancel: asyncio.Event | None = None,
    ) -> list[AudnexusAuthorStub]:
        try:
            data = await self._get("/authors", {"name": name}, cancel)
        except _NotFound:
            return []
        stubs = []
        for raw in data or []:
            try:
                stubs.append(AudnexusAuthorStub.model_validate(raw))
            except ValidationError as e:
                log.debug(f"Skipping malformed author stub: {e}")
        log.debug(f"Found {len(stubs)} authors matching {name!r}")
        return stubs

    async def find_author(
        self,
        name: str,
        cancel: asyncio.Event | None = None,
    ) -> AuthorProfile | None:
        """Best-matching author stub for name, as a profile without detail."""
        stub = best_author_match(await self.search_authors(name, cancel), name)
        if stub is None:
            return None
        log.debug(f"Matched author {stub.name!r} ({stub.asin}) for {name!r}")
        return AuthorProfile(external_id=stub.asin, name=stub.name)

    async def get_author_detail(
        self,
        author_id: str,
        cancel: asyncio.Event | None = None,
    ) -> AuthorProfile:
        try:
            data = await self._get(f"/authors/{author_id}", {"update": "0"}, cancel)
        except _NotFound as e:
            raise TransientUpstreamError(
                SOURCE, f"author {author_id} not found", status_code=404
            ) from e
        try:
            author = AudnexusAuthor.model_validate(data)
        except ValidationError as e:
            raise TransientUpstreamError(SOURCE, f"malformed author {author_id}") from e
        log.debug(
            f"Author {author.name!r}: {len(author.genres)} genres, "
            f"{len(author.books)} books listed"
        )
        return to_author_profile(author)

    async def get_chapters(
        self,
        work_id: str,
        cancel: asyncio.Event | None = None,
    ) -> AudnexusChapters | None:
        """Chapter data, or None if unavailable. Only cancellation propagates."""
        try:
            data = await self._get(f"/books/{work_id}/chapters", {"update": "0"}, cancel)
            chapters = AudnexusChapters.model_validate(data)
        except (_NotFound, TransientUpstreamError, ValidationError) as e:
            log.warning(f"Could not fetch chapter data for {work_id}: {e}")
            return None
        log.debug(f"Retrieved {len(chapters.chapters or [])} chapters for {work_id}")
        return chapters

    async def get_work_detail(
        self,
        work_id: str,
        cancel: asyncio.Event | None = None,
    ) -> AudiobookRecord | None:
        """Full work record, or None if the catalog doesn't know work_id.

        Raises TransientUpstreamError for anything other than not-found.
        """
        try:
            data = await self._get(
                f"/books/{work_id}", {"seedAuthors": "1", "update": "0"}, cancel
            )
        except _NotFound:
            log.debug(f"Work {work_id} not found on Audnexus")
            return None

        if not isinstance(data, dict) or not data.get("asin"):
            log.warning(f"Invalid work data received for {work_id}")
            return None
        try:
            book = AudnexusBook.model_validate(data)
        except ValidationError as e:
            raise TransientUpstreamError(SOURCE, f"malformed work {work_id}") from e

        chapters = await self.get_chapters(work_id, cancel)
        return to_audiobook_record(book, chapters)

"""Shared pytest fixtures and helpers for matcher tests."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock

import httpx
import pytest

from audiobook_matcher.config import MatcherConfig
from audiobook_matcher.engine import AudiobookMatcher
from audiobook_matcher.models import AudiobookRecord, Candidate, MatchMethod


@pytest.fixture
def config() -> MatcherConfig:
    return MatcherConfig(_env_file=None)


def make_record(asin: str, title: str = "Some Book", **kwargs) -> AudiobookRecord:
    """A resolved work record as the Audnexus adapter would return it."""
    kwargs.setdefault("authors", ("Some Author",))
    kwargs.setdefault("author_found", True)
    return AudiobookRecord(
        has_match=True,
        match_method=MatchMethod.DIRECT_LOOKUP,
        external_id=asin,
        title=title,
        **kwargs,
    )


def make_candidate(asin: str, title: str, score: float, **kwargs) -> Candidate:
    return Candidate(external_id=asin, title=title, score=score, **kwargs)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def keyword() -> AsyncMock:
    adapter = AsyncMock()
    adapter.search_by_keywords.return_value = []
    return adapter


@pytest.fixture
def catalog() -> AsyncMock:
    adapter = AsyncMock()
    adapter.find_author.return_value = None
    adapter.get_work_detail.return_value = None
    return adapter


@pytest.fixture
def matcher(keyword, catalog, config) -> AudiobookMatcher:
    return AudiobookMatcher(keyword, catalog, config=config)

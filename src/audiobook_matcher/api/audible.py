"""Audible catalog keyword search client.

Queries the Audible product catalog API with several phrasings of
title + author, scores every product against the target, and returns the
best few unique candidates. Individual query failures are logged and
skipped; the adapter as a whole never raises for upstream errors.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace

import httpx
from loguru import logger
from pydantic import ValidationError

from ..concurrency import guarded
from ..config import MatcherConfig
from ..models import Candidate, CandidateSource, SearchTarget
from ..normalize import clean_search_term
from .schemas import AudibleProduct
from .search import dedupe_candidates, score_candidate

log = logger.bind(stage="audible")

RESPONSE_GROUPS = "contributors,product_desc,product_extended_attrs,product_attrs,media,rating"


def query_variants(title: str, author: str) -> list[str]:
    """Keyword phrasings to try, most specific first."""
    t = clean_search_term(title)
    a = clean_search_term(author)
    if not t:
        return []
    queries = [
        f"{t} {a}",
        f'"{t}" {a}',
        f"{t} by {a}",
        f'"{t}" by {a}',
        t,  # Sometimes just the title works better
    ]
    return list(dict.fromkeys(q.strip() for q in queries))


def to_candidate(product: AudibleProduct) -> Candidate:
    narrators = [n.name for n in product.narrators if n.name]
    return Candidate(
        external_id=product.asin,
        title=product.title,
        authors=tuple(a.name for a in product.authors if a.name),
        narrator=", ".join(narrators) or None,
        origin_source=CandidateSource.KEYWORD_SEARCH,
        is_audio_product=product.is_audio_product,
    )


class AudibleClient:
    """Keyword search against api.audible.<region>/1.0/catalog/products."""

    def __init__(self, client: httpx.AsyncClient, config: MatcherConfig) -> None:
        self.client = client
        self.config = config

    async def search(
        self,
        query: str,
        cancel: asyncio.Event | None = None,
    ) -> list[AudibleProduct]:
        """One keyword request. Returns [] on any HTTP or parse error."""
        params = {
            "keywords": query,
            "num_results": str(self.config.audible_num_results),
            "products_sort_by": "Relevance",
            "response_groups": RESPONSE_GROUPS,
            "image_sizes": "500,1024",
        }
        log.debug(f"Audible search: query={query!r} region={self.config.audible_region}")

        try:
            resp = await guarded(
                self.client.get(
                    f"{self.config.audible_base_url}/catalog/products",
                    params=params,
                    headers={"User-Agent": self.config.user_agent},
                    timeout=self.config.audible_timeout,
                ),
                cancel,
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning(f"Audible query {query!r} failed: {e}")
            return []
        if not isinstance(data, dict):
            log.warning(f"Unexpected Audible response for {query!r}")
            return []

        products = []
        for raw in data.get("products") or []:
            try:
                products.append(AudibleProduct.model_validate(raw))
            except ValidationError as e:
                log.debug(f"Skipping malformed Audible product: {e}")
        log.debug(f"Audible results: {len(products)} products for {query!r}")
        return products

    async def search_by_keywords(
        self,
        target: SearchTarget,
        cancel: asyncio.Event | None = None,
    ) -> list[Candidate]:
        """Pool scored candidates across query variants, best first.

        Candidates scoring at or below the configured floor are dropped;
        duplicates keep their highest score.
        """
        pool: list[Candidate] = []
        for query in query_variants(target.title, target.author):
            for product in await self.search(query, cancel):
                if not product.asin:
                    continue
                candidate = to_candidate(product)
                scored = replace(candidate, score=score_candidate(candidate, target))
                if scored.score > self.config.keyword_score_floor:
                    pool.append(scored)

        if not pool:
            log.debug("No usable results from Audible search")
            return []

        unique = dedupe_candidates(pool)
        log.info(
            f"Audible search: {len(unique)} unique results, "
            f"top score {unique[0].score}"
        )
        return unique[: self.config.keyword_max_candidates]

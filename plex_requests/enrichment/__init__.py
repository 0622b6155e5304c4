"""Compose catalog, availability and ratings data into one response.

The catalog provider is mandatory: any failure there propagates to the caller
unchanged. Availability and ratings are optional collaborators whose failures
are logged and replaced by their defaults (``available=False`` and no
``ratings`` key), so a degraded media server or ratings provider never
suppresses catalog data.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from sqlalchemy.exc import SQLAlchemyError

from ..availability import (
    AvailabilityChecker,
    NullAvailabilityChecker,
    build_availability_checker,
)
from ..catalog import CatalogClient
from ..common.errors import InvalidInput, ProviderNotConfigured, UpstreamError
from ..common.types import (
    CatalogItem,
    EnrichedDetail,
    EnrichedItem,
    RatingsSnapshot,
    SearchPage,
    SearchResponse,
)
from ..common.validation import require_positive
from ..config import Settings
from ..ratings import NullRatingsCache, RatingsLookup, build_ratings_cache
from ..ratings.store import RatingsStore
from .utils import availability_target, gather_in_batches

DISCOVER_LISTINGS = ("trending", "popular", "top_rated", "upcoming")

logger = logging.getLogger(__name__)


class EnrichmentOrchestrator:
    """Request-time composer for search, discover and detail lookups."""

    def __init__(
        self,
        catalog: CatalogClient,
        *,
        availability: AvailabilityChecker | None = None,
        ratings: RatingsLookup | None = None,
        concurrency: int = 5,
    ) -> None:
        self._catalog = catalog
        self._availability = availability or NullAvailabilityChecker()
        self._ratings = ratings or NullRatingsCache()
        self._concurrency = require_positive(concurrency, name="concurrency")

    @property
    def catalog(self) -> CatalogClient:
        return self._catalog

    @property
    def availability(self) -> AvailabilityChecker:
        return self._availability

    async def is_available(self, item: CatalogItem) -> bool:
        """Return the availability flag for *item*, ``False`` on any failure."""

        target = availability_target(item)
        if target is None:
            return False
        title, year, kind = target
        try:
            return await self._availability.exists(title, year, kind)
        except UpstreamError as exc:
            logger.warning(
                "Availability check for %r (%s, %s) failed: %s", title, kind, year, exc
            )
            return False
        except Exception:
            logger.exception(
                "Unexpected error checking availability for %r (%s, %s)",
                title,
                kind,
                year,
            )
            return False

    async def _enrich_page(
        self, page: SearchPage, check_availability: bool
    ) -> SearchResponse:
        if check_availability and page.results:
            flags = await gather_in_batches(
                [self.is_available(item) for item in page.results],
                self._concurrency,
            )
        else:
            flags = [False] * len(page.results)
        return SearchResponse(
            page=page.page,
            total_pages=page.total_pages,
            total_results=page.total_results,
            results=[
                EnrichedItem.model_validate({**item.model_dump(), "available": flag})
                for item, flag in zip(page.results, flags)
            ],
        )

    async def search(
        self, query: str, page: int = 1, *, check_availability: bool = True
    ) -> SearchResponse:
        """Search the catalog and flag results already in the library."""

        results = await self._catalog.search(query, page)
        logger.debug(
            "Catalog search %r page %d returned %d results",
            query,
            page,
            len(results.results),
        )
        return await self._enrich_page(results, check_availability)

    async def discover(
        self,
        listing: str,
        *,
        kind: str | None = None,
        page: int = 1,
        window: str = "week",
        check_availability: bool = True,
    ) -> SearchResponse:
        """Fetch a curated catalog listing and flag library availability."""

        if listing == "trending":
            results = await self._catalog.trending(kind or "all", window, page)
        elif listing == "popular":
            results = await self._catalog.popular(kind or "movie", page)
        elif listing == "top_rated":
            results = await self._catalog.top_rated(kind or "movie", page)
        elif listing == "upcoming":
            results = await self._catalog.upcoming(kind or "movie", page)
        else:
            raise InvalidInput(
                f"listing must be one of {', '.join(DISCOVER_LISTINGS)}, got {listing!r}"
            )
        return await self._enrich_page(results, check_availability)

    async def _lookup_ratings(self, imdb_id: str) -> RatingsSnapshot | None:
        if not imdb_id:
            return None
        try:
            return await self._ratings.get_ratings(imdb_id)
        except UpstreamError as exc:
            logger.warning("Ratings enrichment for %s failed: %s", imdb_id, exc)
            return None
        except Exception:
            logger.exception("Unexpected error enriching ratings for %s", imdb_id)
            return None

    async def get_detail(self, kind: str, item_id: int) -> EnrichedDetail:
        """Fetch a movie or series detail with availability and ratings."""

        detail = await self._catalog.get_detail(kind, item_id)
        available = await self.is_available(detail)
        ratings = await self._lookup_ratings(detail.cross_reference_key)
        return EnrichedDetail.model_validate(
            {**detail.model_dump(), "available": available, "ratings": ratings}
        )


@asynccontextmanager
async def open_orchestrator(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[EnrichmentOrchestrator]:
    """Build an orchestrator from settings and release its resources on exit."""

    settings = settings or Settings()
    if not settings.tmdb_api_key:
        raise ProviderNotConfigured("TMDB_API_KEY must be set")

    store = RatingsStore.from_url(settings.database_url)
    try:
        async with httpx.AsyncClient(
            timeout=settings.http_timeout, transport=transport
        ) as http_client:
            ratings: RatingsLookup
            try:
                store.create_schema()
            except SQLAlchemyError:
                logger.exception(
                    "Ratings store at %s is unavailable; ratings disabled",
                    settings.database_url,
                )
                ratings = NullRatingsCache()
            else:
                ratings = build_ratings_cache(settings, http_client, store)
            yield EnrichmentOrchestrator(
                CatalogClient(http_client, settings.tmdb_api_key),
                availability=build_availability_checker(settings),
                ratings=ratings,
                concurrency=settings.enrichment_concurrency,
            )
    finally:
        store.dispose()


__all__ = ["DISCOVER_LISTINGS", "EnrichmentOrchestrator", "open_orchestrator"]

"""Cache-aside access to OMDb ratings keyed by IMDb id."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping, Protocol

import httpx
from sqlalchemy.exc import SQLAlchemyError

from ..common.errors import InvalidInput, UpstreamError
from ..common.types import JSONMapping, RatingsSnapshot
from ..config import Settings
from .store import RatingsStore

OMDB_BASE_URL = "http://www.omdbapi.com/"
ROTTEN_TOMATOES_SOURCE = "Rotten Tomatoes"
METACRITIC_SOURCE = "Metacritic"

_PROVIDER = "OMDb"

logger = logging.getLogger(__name__)


def extract_by_label(sources: Iterable[Mapping[str, Any]] | None, label: str) -> str | None:
    """Return the ``Value`` of the rating source named *label*, if listed."""

    for source in sources or ():
        if not isinstance(source, Mapping):
            continue
        if source.get("Source") == label:
            value = source.get("Value")
            return str(value) if value is not None else None
    return None


def _text(payload: JSONMapping, key: str) -> str:
    value = payload.get(key)
    return str(value) if value is not None else ""


def build_snapshot(imdb_id: str, payload: JSONMapping) -> RatingsSnapshot:
    """Assemble a :class:`RatingsSnapshot` from an OMDb title payload."""

    sources = payload.get("Ratings")
    if not isinstance(sources, list):
        sources = []
    metascore = extract_by_label(sources, METACRITIC_SOURCE)
    if not metascore:
        metascore = _text(payload, "Metascore")
    return RatingsSnapshot(
        imdb_id=imdb_id,
        imdb_rating=_text(payload, "imdbRating"),
        imdb_votes=_text(payload, "imdbVotes"),
        rotten_tomatoes_score=extract_by_label(sources, ROTTEN_TOMATOES_SOURCE) or "",
        metascore=metascore,
        awards=_text(payload, "Awards"),
        box_office=_text(payload, "BoxOffice"),
    )


class OMDbClient:
    """Minimal OMDb client returning ratings for an IMDb id."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        *,
        base_url: str = OMDB_BASE_URL,
    ) -> None:
        if not api_key:
            raise InvalidInput("an OMDb API key is required")
        self._http_client = http_client
        self._api_key = api_key
        self._base_url = base_url

    async def fetch_ratings(self, imdb_id: str) -> RatingsSnapshot | None:
        """Fetch ratings for *imdb_id*; ``None`` when OMDb reports no match."""

        if not imdb_id:
            raise InvalidInput("IMDb id cannot be empty")
        try:
            resp = await self._http_client.get(
                self._base_url, params={"i": imdb_id, "apikey": self._api_key}
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(_PROVIDER, f"request for {imdb_id} failed: {exc}") from exc
        if resp.status_code != httpx.codes.OK:
            raise UpstreamError(
                _PROVIDER,
                f"lookup for {imdb_id} returned status {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(_PROVIDER, f"invalid JSON for {imdb_id}") from exc
        if not isinstance(data, dict):
            raise UpstreamError(_PROVIDER, f"unexpected payload for {imdb_id}")
        if str(data.get("Response", "")).lower() == "false":
            logger.info("OMDb has no ratings for %s: %s", imdb_id, data.get("Error", ""))
            return None
        return build_snapshot(imdb_id, data)


class RatingsProvider(Protocol):
    async def fetch_ratings(self, imdb_id: str) -> RatingsSnapshot | None: ...


class RatingsLookup(Protocol):
    async def get_ratings(self, imdb_id: str) -> RatingsSnapshot | None: ...


class RatingsCache:
    """Serve ratings from the store, falling back to the provider on a miss."""

    def __init__(self, provider: RatingsProvider, store: RatingsStore) -> None:
        self._provider = provider
        self._store = store

    async def get_ratings(self, imdb_id: str) -> RatingsSnapshot | None:
        if not imdb_id:
            return None

        try:
            cached = await asyncio.to_thread(self._store.get, imdb_id)
        except SQLAlchemyError:
            logger.exception("Failed to read cached ratings for %s", imdb_id)
            cached = None
        if cached is not None:
            logger.debug("Ratings cache hit for %s", imdb_id)
            return cached

        logger.debug("Ratings cache miss for %s", imdb_id)
        try:
            snapshot = await self._provider.fetch_ratings(imdb_id)
        except UpstreamError as exc:
            logger.warning("Ratings lookup for %s failed: %s", imdb_id, exc)
            return None
        if snapshot is None:
            return None

        try:
            await asyncio.to_thread(self._store.insert_if_absent, snapshot)
        except SQLAlchemyError:
            logger.exception("Failed to cache ratings for %s", imdb_id)
        return snapshot


class NullRatingsCache:
    """Stand-in used when no ratings provider is configured."""

    async def get_ratings(self, imdb_id: str) -> RatingsSnapshot | None:
        return None


def build_ratings_cache(
    settings: Settings, http_client: httpx.AsyncClient, store: RatingsStore
) -> RatingsLookup:
    """Return an OMDb-backed cache, or the null cache when unconfigured."""

    if not settings.omdb_api_key:
        logger.warning("OMDb ratings disabled: OMDB_API_KEY is not set")
        return NullRatingsCache()
    return RatingsCache(OMDbClient(http_client, settings.omdb_api_key), store)


__all__ = [
    "OMDbClient",
    "RatingsCache",
    "RatingsLookup",
    "RatingsProvider",
    "NullRatingsCache",
    "build_ratings_cache",
    "build_snapshot",
    "extract_by_label",
    "RatingsStore",
]

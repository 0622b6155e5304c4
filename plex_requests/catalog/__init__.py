"""TMDb catalog client used for search, discover listings, details and people."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from ..common.errors import InvalidInput, UpstreamError
from ..common.types import (
    CatalogItem,
    CatalogItemDetail,
    PersonCredits,
    PersonDetail,
    PersonPage,
    SearchPage,
)

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p"

LIST_POSTER_SIZE = "w342"
LIST_BACKDROP_SIZE = "w780"
DETAIL_POSTER_SIZE = "w500"
DETAIL_BACKDROP_SIZE = "w1280"
LIST_PROFILE_SIZE = "w185"
DETAIL_PROFILE_SIZE = "h632"

UPCOMING_SERIES_WINDOW_DAYS = 180

_PROVIDER = "TMDb"
_TMDB_PATH_SEGMENTS = {"movie": "movie", "series": "tv"}
_TRENDING_KINDS = {"all": "all", "movie": "movie", "series": "tv"}
_TRENDING_WINDOWS = frozenset({"day", "week"})

logger = logging.getLogger(__name__)


def image_url(path: str | None, size: str) -> str:
    """Return the absolute TMDb image URL for *path* at *size*."""

    if not path:
        return ""
    return f"{TMDB_IMAGE_BASE}/{size}{path}"


def _require_kind(kind: str) -> str:
    normalized = (kind or "").strip().lower()
    if normalized == "tv":
        normalized = "series"
    if normalized not in _TMDB_PATH_SEGMENTS:
        raise InvalidInput(f"kind must be 'movie' or 'series', got {kind!r}")
    return normalized


def _require_page(page: int) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise InvalidInput("page must be a positive integer")
    return page


def _require_id(item_id: int) -> int:
    if isinstance(item_id, bool) or not isinstance(item_id, int) or item_id <= 0:
        raise InvalidInput("id must be a positive integer")
    return item_id


class CatalogClient:
    """Thin async wrapper over the TMDb v3 API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        *,
        base_url: str = TMDB_BASE_URL,
    ) -> None:
        if not api_key:
            raise InvalidInput("a TMDb API key is required")
        self._http_client = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    image_url = staticmethod(image_url)

    async def _get_json(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        try:
            resp = await self._http_client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("HTTP error calling TMDb %s: %s", path, exc)
            raise UpstreamError(_PROVIDER, f"request to {path} failed: {exc}") from exc
        if resp.status_code != httpx.codes.OK:
            raise UpstreamError(
                _PROVIDER,
                f"{path} returned status {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(_PROVIDER, f"{path} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise UpstreamError(_PROVIDER, f"{path} returned an unexpected payload")
        return data

    async def _get_page(
        self,
        path: str,
        params: Mapping[str, Any],
        *,
        default_kind: str | None = None,
    ) -> SearchPage:
        data = await self._get_json(path, params)
        if default_kind is not None:
            raw_results = data.get("results")
            if isinstance(raw_results, list):
                data = {
                    **data,
                    "results": [
                        {**raw, "media_type": default_kind}
                        if isinstance(raw, dict) and not raw.get("media_type")
                        else raw
                        for raw in raw_results
                    ],
                }
        try:
            page = SearchPage.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError(_PROVIDER, f"{path} returned a malformed page") from exc
        for item in page.results:
            self._attach_images(item, LIST_POSTER_SIZE, LIST_BACKDROP_SIZE)
        return page

    @staticmethod
    def _attach_images(item: CatalogItem, poster_size: str, backdrop_size: str) -> None:
        item.poster_url = image_url(item.poster_path, poster_size)
        item.backdrop_url = image_url(item.backdrop_path, backdrop_size)

    async def search(self, query: str, page: int = 1) -> SearchPage:
        """Search movies, series and people in one request."""

        if not query or not query.strip():
            raise InvalidInput("search query cannot be empty")
        _require_page(page)
        return await self._get_page(
            "/search/multi", {"query": query, "page": page}
        )

    async def _get_detail(self, kind: str, item_id: int) -> CatalogItemDetail:
        path = f"/{_TMDB_PATH_SEGMENTS[kind]}/{_require_id(item_id)}"
        data = await self._get_json(
            path, {"append_to_response": "credits,videos,external_ids"}
        )
        try:
            detail = CatalogItemDetail.model_validate({**data, "kind": kind})
        except ValidationError as exc:
            raise UpstreamError(_PROVIDER, f"{path} returned a malformed detail") from exc
        self._attach_images(detail, DETAIL_POSTER_SIZE, DETAIL_BACKDROP_SIZE)
        return detail

    async def get_movie_detail(self, movie_id: int) -> CatalogItemDetail:
        return await self._get_detail("movie", movie_id)

    async def get_series_detail(self, series_id: int) -> CatalogItemDetail:
        return await self._get_detail("series", series_id)

    async def get_detail(self, kind: str, item_id: int) -> CatalogItemDetail:
        """Dispatch to the movie or series detail lookup."""

        return await self._get_detail(_require_kind(kind), item_id)

    async def trending(
        self, kind: str = "all", window: str = "week", page: int = 1
    ) -> SearchPage:
        normalized = (kind or "").strip().lower()
        if normalized == "tv":
            normalized = "series"
        if normalized not in _TRENDING_KINDS:
            raise InvalidInput(
                f"kind must be 'all', 'movie' or 'series', got {kind!r}"
            )
        if window not in _TRENDING_WINDOWS:
            raise InvalidInput(f"window must be 'day' or 'week', got {window!r}")
        _require_page(page)
        return await self._get_page(
            f"/trending/{_TRENDING_KINDS[normalized]}/{window}",
            {"page": page},
            default_kind=None if normalized == "all" else normalized,
        )

    async def popular(self, kind: str, page: int = 1) -> SearchPage:
        normalized = _require_kind(kind)
        _require_page(page)
        return await self._get_page(
            f"/{_TMDB_PATH_SEGMENTS[normalized]}/popular",
            {"page": page},
            default_kind=normalized,
        )

    async def top_rated(self, kind: str, page: int = 1) -> SearchPage:
        normalized = _require_kind(kind)
        _require_page(page)
        return await self._get_page(
            f"/{_TMDB_PATH_SEGMENTS[normalized]}/top_rated",
            {"page": page},
            default_kind=normalized,
        )

    async def upcoming(
        self, kind: str, page: int = 1, *, today: date | None = None
    ) -> SearchPage:
        """Upcoming releases; series are those premiering in the next 180 days."""

        normalized = _require_kind(kind)
        _require_page(page)
        if normalized == "movie":
            return await self._get_page(
                "/movie/upcoming", {"page": page}, default_kind="movie"
            )
        start = today or date.today()
        end = start + timedelta(days=UPCOMING_SERIES_WINDOW_DAYS)
        return await self._get_page(
            "/discover/tv",
            {
                "page": page,
                "first_air_date.gte": start.isoformat(),
                "first_air_date.lte": end.isoformat(),
                "sort_by": "popularity.desc",
            },
            default_kind="series",
        )

    async def search_person(self, query: str, page: int = 1) -> PersonPage:
        """Search actors, directors and crew by name."""

        if not query or not query.strip():
            raise InvalidInput("search query cannot be empty")
        _require_page(page)
        data = await self._get_json("/search/person", {"query": query, "page": page})
        try:
            people = PersonPage.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError(
                _PROVIDER, "/search/person returned a malformed page"
            ) from exc
        for person in people.results:
            person.profile_url = image_url(person.profile_path, LIST_PROFILE_SIZE)
            for item in person.known_for:
                self._attach_images(item, LIST_POSTER_SIZE, LIST_BACKDROP_SIZE)
        return people

    async def get_person_detail(self, person_id: int) -> PersonDetail:
        path = f"/person/{_require_id(person_id)}"
        data = await self._get_json(path)
        try:
            person = PersonDetail.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError(_PROVIDER, f"{path} returned a malformed person") from exc
        person.profile_url = image_url(person.profile_path, DETAIL_PROFILE_SIZE)
        return person

    async def get_person_credits(self, person_id: int) -> PersonCredits:
        """Return a person's combined movie and series filmography."""

        path = f"/person/{_require_id(person_id)}/combined_credits"
        data = await self._get_json(path)
        try:
            credits = PersonCredits.model_validate(data)
        except ValidationError as exc:
            raise UpstreamError(_PROVIDER, f"{path} returned malformed credits") from exc
        for credit in (*credits.cast, *credits.crew):
            self._attach_images(credit, LIST_POSTER_SIZE, LIST_BACKDROP_SIZE)
        return credits


__all__ = [
    "CatalogClient",
    "image_url",
    "TMDB_BASE_URL",
    "TMDB_IMAGE_BASE",
    "LIST_POSTER_SIZE",
    "LIST_BACKDROP_SIZE",
    "DETAIL_POSTER_SIZE",
    "DETAIL_BACKDROP_SIZE",
    "LIST_PROFILE_SIZE",
    "DETAIL_PROFILE_SIZE",
]

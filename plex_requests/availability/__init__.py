"""Media server availability checks backed by Plex."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol, Sequence
from xml.etree.ElementTree import ParseError

from plexapi.exceptions import PlexApiException
from plexapi.server import PlexServer
from requests import RequestException

from ..common.errors import ProviderNotConfigured, UpstreamError
from ..common.types import LibraryEntry, LibrarySection, normalise_kind
from ..common.validation import coerce_year
from ..config import Settings

_PROVIDER = "Plex"
_PLEX_ERRORS = (PlexApiException, RequestException, ParseError)

logger = logging.getLogger(__name__)


class AvailabilityChecker(Protocol):
    """Answers whether a title already exists in the local library."""

    async def exists(self, title: str, year: int, kind: str) -> bool: ...

    async def search_library(self, query: str) -> list[LibraryEntry]: ...

    async def libraries(self) -> list[LibrarySection]: ...


def entry_matches(entry: LibraryEntry, title: str, year: int, kind: str) -> bool:
    """Return ``True`` when *entry* is the requested title.

    Titles and kinds compare case-insensitively; a *year* of ``0`` matches any
    release year.
    """

    return (
        entry.title.casefold() == title.casefold()
        and (year == 0 or entry.year == year)
        and entry.kind.casefold() == normalise_kind(kind).casefold()
    )


def _library_entry(item: Any) -> LibraryEntry:
    return LibraryEntry(
        title=str(getattr(item, "title", "") or ""),
        year=coerce_year(getattr(item, "year", None)),
        kind=str(getattr(item, "type", "") or ""),
        summary=str(getattr(item, "summary", "") or ""),
        thumb=str(getattr(item, "thumb", "") or ""),
        rating_key=str(getattr(item, "ratingKey", "") or ""),
    )


class PlexAvailabilityChecker:
    """Availability checker that queries a Plex Media Server."""

    def __init__(
        self,
        url: str | None,
        token: str | None,
        *,
        timeout: float = 10.0,
        server: Any | None = None,
        connect: Callable[[str, str, float], Any] | None = None,
    ) -> None:
        if not url or not token:
            raise ProviderNotConfigured("PLEX_URL and PLEX_TOKEN must be set")
        self._url = str(url).rstrip("/")
        self._token = token
        self._timeout = timeout
        self._server = server
        self._connect = connect or (
            lambda base_url, plex_token, plex_timeout: PlexServer(
                base_url, plex_token, timeout=plex_timeout
            )
        )
        self._lock = asyncio.Lock()

    async def _get_server(self) -> Any:
        async with self._lock:
            if self._server is None:
                try:
                    self._server = await asyncio.to_thread(
                        self._connect, self._url, self._token, self._timeout
                    )
                except _PLEX_ERRORS as exc:
                    raise UpstreamError(
                        _PROVIDER, f"failed to connect to {self._url}: {exc}"
                    ) from exc
                logger.info("Connected to Plex server at %s", self._url)
            return self._server

    async def search_library(self, query: str) -> list[LibraryEntry]:
        """Search every library section for *query*."""

        server = await self._get_server()
        try:
            results: Sequence[Any] = await asyncio.to_thread(server.search, query)
        except _PLEX_ERRORS as exc:
            raise UpstreamError(_PROVIDER, f"library search failed: {exc}") from exc
        return [_library_entry(item) for item in results or []]

    async def exists(self, title: str, year: int, kind: str) -> bool:
        for entry in await self.search_library(title):
            if entry_matches(entry, title, year, kind):
                return True
        return False

    async def libraries(self) -> list[LibrarySection]:
        server = await self._get_server()

        def _load_sections() -> list[Any]:
            return list(server.library.sections())

        try:
            sections = await asyncio.to_thread(_load_sections)
        except _PLEX_ERRORS as exc:
            raise UpstreamError(_PROVIDER, f"failed to list libraries: {exc}") from exc
        return [
            LibrarySection(
                key=str(getattr(section, "key", "")),
                title=str(getattr(section, "title", "")),
                kind=normalise_kind(str(getattr(section, "type", "") or "")),
            )
            for section in sections
        ]


class NullAvailabilityChecker:
    """Stand-in used when no media server is configured."""

    async def exists(self, title: str, year: int, kind: str) -> bool:
        return False

    async def search_library(self, query: str) -> list[LibraryEntry]:
        return []

    async def libraries(self) -> list[LibrarySection]:
        return []


def build_availability_checker(settings: Settings) -> AvailabilityChecker:
    """Return a Plex-backed checker, or the null checker when unconfigured."""

    try:
        return PlexAvailabilityChecker(
            str(settings.plex_url) if settings.plex_url else None,
            settings.plex_token,
            timeout=settings.http_timeout,
        )
    except ProviderNotConfigured as exc:
        logger.warning("Plex availability checks disabled: %s", exc)
        return NullAvailabilityChecker()


__all__ = [
    "AvailabilityChecker",
    "PlexAvailabilityChecker",
    "NullAvailabilityChecker",
    "build_availability_checker",
    "entry_matches",
]

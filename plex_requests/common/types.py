"""Type definitions for catalog, library and ratings payloads."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_KIND_ALIASES = {
    "movie": "movie",
    "tv": "series",
    "show": "series",
    "series": "series",
    "person": "person",
}


def normalise_kind(value: str | None) -> str:
    """Map provider media type names onto ``movie``/``series``/``person``."""

    if not value:
        return ""
    lowered = value.strip().lower()
    return _KIND_ALIASES.get(lowered, lowered)


def _blank_if_none(value: Any) -> Any:
    return "" if value is None else value


class CatalogItem(BaseModel):
    """A single movie, series or person as returned by catalog listings."""

    model_config = ConfigDict(extra="ignore")

    id: int
    kind: str = "movie"
    title: str = ""
    release_date: str = ""
    overview: str = ""
    poster_path: str = ""
    backdrop_path: str = ""
    vote_average: float = 0.0
    vote_count: int = 0
    popularity: float = 0.0
    genre_ids: List[int] = Field(default_factory=list)
    poster_url: str = ""
    backdrop_url: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalise_provider_fields(cls, data):
        """Fold TMDb's per-type title and date fields into one shape."""

        if isinstance(data, dict):
            payload = data.copy()
            media_type = payload.pop("media_type", None)
            if media_type and not payload.get("kind"):
                payload["kind"] = media_type
            if payload.get("kind"):
                payload["kind"] = normalise_kind(payload["kind"])
            if not payload.get("title"):
                payload["title"] = payload.get("name") or ""
            if not payload.get("release_date"):
                payload["release_date"] = payload.get("first_air_date") or ""
            return payload
        return data

    @field_validator(
        "title",
        "release_date",
        "overview",
        "poster_path",
        "backdrop_path",
        "poster_url",
        "backdrop_url",
        mode="before",
    )
    @classmethod
    def _strings_default_blank(cls, value):
        return _blank_if_none(value)

    @field_validator("vote_average", "popularity", "vote_count", mode="before")
    @classmethod
    def _numbers_default_zero(cls, value):
        return 0 if value is None else value


class Genre(BaseModel):
    id: int
    name: str = ""


class Company(BaseModel):
    id: int
    name: str = ""
    logo_path: Optional[str] = None


class CastMember(BaseModel):
    id: int
    name: str = ""
    character: Optional[str] = None
    profile_path: Optional[str] = None
    order: Optional[int] = None


class CrewMember(BaseModel):
    id: int
    name: str = ""
    job: Optional[str] = None
    department: Optional[str] = None
    profile_path: Optional[str] = None


class Credits(BaseModel):
    cast: List[CastMember] = Field(default_factory=list)
    crew: List[CrewMember] = Field(default_factory=list)


class Video(BaseModel):
    id: str
    key: str = ""
    name: str = ""
    site: str = ""
    type: str = ""
    official: bool = False


class ExternalIds(BaseModel):
    """Cross-reference identifiers attached to a catalog detail."""

    imdb_id: Optional[str] = None
    tvdb_id: Optional[int] = None
    facebook_id: Optional[str] = None
    twitter_id: Optional[str] = None
    instagram_id: Optional[str] = None


class CatalogItemDetail(CatalogItem):
    """Full catalog record for a single movie or series."""

    runtime: Optional[int] = None
    number_of_seasons: Optional[int] = None
    number_of_episodes: Optional[int] = None
    last_air_date: str = ""
    genres: List[Genre] = Field(default_factory=list)
    production_companies: List[Company] = Field(default_factory=list)
    networks: List[Company] = Field(default_factory=list)
    status: str = ""
    tagline: str = ""
    series_type: str = ""
    credits: Credits = Field(default_factory=Credits)
    videos: List[Video] = Field(default_factory=list)
    external_ids: ExternalIds = Field(default_factory=ExternalIds)

    @model_validator(mode="before")
    @classmethod
    def _normalise_detail_fields(cls, data):
        if isinstance(data, dict):
            payload = data.copy()
            videos = payload.get("videos")
            if isinstance(videos, dict):
                payload["videos"] = videos.get("results", [])
            if "type" in payload and not payload.get("series_type"):
                payload["series_type"] = payload.pop("type")
            genres = payload.get("genres")
            if isinstance(genres, list) and not payload.get("genre_ids"):
                payload["genre_ids"] = [
                    genre["id"]
                    for genre in genres
                    if isinstance(genre, dict) and "id" in genre
                ]
            top_level_imdb = payload.get("imdb_id")
            external = payload.get("external_ids")
            if top_level_imdb:
                if not isinstance(external, dict):
                    external = {}
                if not external.get("imdb_id"):
                    payload["external_ids"] = {**external, "imdb_id": top_level_imdb}
            return payload
        return data

    @field_validator("last_air_date", "status", "tagline", "series_type", mode="before")
    @classmethod
    def _detail_strings_default_blank(cls, value):
        return _blank_if_none(value)

    @property
    def cross_reference_key(self) -> str:
        """Return the ratings-provider key (the IMDb id), or ``""``."""

        return (self.external_ids.imdb_id or "").strip()


class SearchPage(BaseModel):
    """One page of catalog results."""

    page: int = 1
    total_pages: int = 0
    total_results: int = 0
    results: List[CatalogItem] = Field(default_factory=list)


class Person(BaseModel):
    """An actor, director or crew member from a person search."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    known_for_department: str = ""
    profile_path: str = ""
    profile_url: str = ""
    popularity: float = 0.0
    known_for: List[CatalogItem] = Field(default_factory=list)

    @field_validator(
        "name", "known_for_department", "profile_path", "profile_url", mode="before"
    )
    @classmethod
    def _person_strings_default_blank(cls, value):
        return _blank_if_none(value)

    @field_validator("popularity", mode="before")
    @classmethod
    def _popularity_default_zero(cls, value):
        return 0 if value is None else value


class PersonPage(BaseModel):
    page: int = 1
    total_pages: int = 0
    total_results: int = 0
    results: List[Person] = Field(default_factory=list)


class PersonDetail(Person):
    """Biographical record for a single person."""

    biography: str = ""
    birthday: str = ""
    deathday: str = ""
    place_of_birth: str = ""
    homepage: str = ""
    imdb_id: str = ""
    also_known_as: List[str] = Field(default_factory=list)

    @field_validator(
        "biography",
        "birthday",
        "deathday",
        "place_of_birth",
        "homepage",
        "imdb_id",
        mode="before",
    )
    @classmethod
    def _detail_strings_default_blank(cls, value):
        return _blank_if_none(value)


class PersonCredit(CatalogItem):
    """One movie or series in a person's filmography."""

    character: str = ""
    job: str = ""
    department: str = ""
    credit_id: str = ""
    episode_count: Optional[int] = None

    @field_validator("character", "job", "department", "credit_id", mode="before")
    @classmethod
    def _credit_strings_default_blank(cls, value):
        return _blank_if_none(value)


class PersonCredits(BaseModel):
    """Combined movie and series credits, split into cast and crew."""

    id: int
    cast: List[PersonCredit] = Field(default_factory=list)
    crew: List[PersonCredit] = Field(default_factory=list)


class RatingsSnapshot(BaseModel):
    """Third-party ratings stored verbatim as display strings."""

    imdb_id: str
    imdb_rating: str = ""
    imdb_votes: str = ""
    rotten_tomatoes_score: str = ""
    metascore: str = ""
    awards: str = ""
    box_office: str = ""


class LibraryEntry(BaseModel):
    """An item found in the media server library."""

    title: str
    year: int = 0
    kind: str = ""
    summary: str = ""
    thumb: str = ""
    rating_key: str = ""

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_library_kind(cls, value):
        return normalise_kind(value) if isinstance(value, str) else ""


class LibrarySection(BaseModel):
    key: str
    title: str
    kind: str = ""


class EnrichedItem(CatalogItem):
    """Catalog list item with the media server availability flag."""

    available: bool = False


class EnrichedDetail(CatalogItemDetail):
    """Catalog detail with availability and optional ratings attached."""

    available: bool = False
    ratings: Optional[RatingsSnapshot] = None

    def as_payload(self) -> dict[str, Any]:
        """Serialise for callers, omitting ``ratings`` when none were found."""

        exclude = {"ratings"} if self.ratings is None else None
        return self.model_dump(mode="json", exclude=exclude)


class SearchResponse(BaseModel):
    """Enriched page of catalog results."""

    page: int = 1
    total_pages: int = 0
    total_results: int = 0
    results: List[EnrichedItem] = Field(default_factory=list)

    def as_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | Sequence["JSONValue"] | Mapping[str, "JSONValue"]
JSONMapping: TypeAlias = Mapping[str, JSONValue]


__all__ = [
    "normalise_kind",
    "CatalogItem",
    "CatalogItemDetail",
    "Genre",
    "Company",
    "CastMember",
    "CrewMember",
    "Credits",
    "Video",
    "ExternalIds",
    "SearchPage",
    "Person",
    "PersonPage",
    "PersonDetail",
    "PersonCredit",
    "PersonCredits",
    "RatingsSnapshot",
    "LibraryEntry",
    "LibrarySection",
    "EnrichedItem",
    "EnrichedDetail",
    "SearchResponse",
    "JSONMapping",
    "JSONValue",
]

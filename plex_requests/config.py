from __future__ import annotations

from pydantic import AliasChoices, AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings."""

    tmdb_api_key: str | None = Field(default=None, validation_alias="TMDB_API_KEY")
    plex_url: AnyHttpUrl | None = Field(
        default=None,
        validation_alias=AliasChoices("PLEX_URL", "PLEX_SERVER_URL"),
    )
    plex_token: str | None = Field(default=None, validation_alias="PLEX_TOKEN")
    omdb_api_key: str | None = Field(default=None, validation_alias="OMDB_API_KEY")
    database_url: str = Field(
        default="sqlite:///plex_requests.db", validation_alias="DATABASE_URL"
    )
    http_timeout: float = Field(default=10.0, validation_alias="HTTP_TIMEOUT")
    enrichment_concurrency: int = Field(
        default=5, validation_alias="ENRICHMENT_CONCURRENCY"
    )

    @field_validator(
        "tmdb_api_key", "plex_url", "plex_token", "omdb_api_key", mode="before"
    )
    @classmethod
    def _blank_as_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("http_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("HTTP_TIMEOUT must be positive")
        return value

    @field_validator("enrichment_concurrency")
    @classmethod
    def _positive_concurrency(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("ENRICHMENT_CONCURRENCY must be positive")
        return value

    @property
    def plex_configured(self) -> bool:
        return bool(self.plex_url and self.plex_token)

    model_config = SettingsConfigDict(case_sensitive=False, populate_by_name=True)

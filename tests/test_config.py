import pytest
from pydantic import ValidationError

from plex_requests.config import Settings


def test_settings_defaults():
    settings = Settings()
    assert settings.tmdb_api_key is None
    assert settings.plex_url is None
    assert settings.database_url == "sqlite:///plex_requests.db"
    assert settings.http_timeout == 10.0
    assert settings.enrichment_concurrency == 5
    assert settings.plex_configured is False


def test_settings_env_override(monkeypatch):
    monkeypatch.setenv("TMDB_API_KEY", "tmdb")
    monkeypatch.setenv("PLEX_URL", "http://plex.local:32400")
    monkeypatch.setenv("PLEX_TOKEN", "token")
    monkeypatch.setenv("ENRICHMENT_CONCURRENCY", "3")
    settings = Settings()
    assert settings.tmdb_api_key == "tmdb"
    assert str(settings.plex_url).startswith("http://plex.local:32400")
    assert settings.enrichment_concurrency == 3
    assert settings.plex_configured is True


def test_settings_plex_server_url_alias(monkeypatch):
    monkeypatch.setenv("PLEX_SERVER_URL", "http://legacy:32400")
    settings = Settings()
    assert str(settings.plex_url).startswith("http://legacy:32400")


def test_settings_blank_credentials_are_unset(monkeypatch):
    monkeypatch.setenv("OMDB_API_KEY", "  ")
    monkeypatch.setenv("PLEX_URL", "")
    settings = Settings()
    assert settings.omdb_api_key is None
    assert settings.plex_url is None


def test_settings_accepts_field_names():
    settings = Settings(tmdb_api_key="k", database_url="sqlite://")
    assert settings.tmdb_api_key == "k"
    assert settings.database_url == "sqlite://"


@pytest.mark.parametrize(
    "name, value",
    [
        ("HTTP_TIMEOUT", "0"),
        ("HTTP_TIMEOUT", "slow"),
        ("ENRICHMENT_CONCURRENCY", "-1"),
        ("ENRICHMENT_CONCURRENCY", "many"),
    ],
)
def test_settings_invalid_numbers(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings()

import json
from contextlib import asynccontextmanager

from click.testing import CliRunner

from plex_requests import cli
from plex_requests.common.errors import InvalidInput, UpstreamError
from plex_requests.common.types import (
    EnrichedDetail,
    LibraryEntry,
    LibrarySection,
    PersonCredits,
    PersonDetail,
    PersonPage,
    SearchResponse,
)


class FakeAvailability:
    def __init__(self, library=(), error=None):
        self.library = set(library)
        self.error = error
        self.calls: list[tuple] = []

    async def exists(self, title, year, kind):
        self.calls.append((title, year, kind))
        if self.error is not None:
            raise self.error
        return (title, kind) in self.library

    async def search_library(self, query):
        return [LibraryEntry(title=query, year=2017, kind="show")]

    async def libraries(self):
        return [LibrarySection(key="1", title="Movies", kind="movie")]


class FakeCatalog:
    def __init__(self):
        self.calls: list[tuple] = []

    async def search_person(self, query, page=1):
        self.calls.append(("search_person", query, page))
        return PersonPage.model_validate(
            {"results": [{"id": 6384, "name": "Keanu Reeves"}], "total_results": 1}
        )

    async def get_person_detail(self, person_id):
        self.calls.append(("person", person_id))
        return PersonDetail(id=person_id, name="Keanu Reeves", biography="Actor.")

    async def get_person_credits(self, person_id):
        self.calls.append(("credits", person_id))
        return PersonCredits.model_validate(
            {"id": person_id, "cast": [{"id": 603, "media_type": "movie", "title": "The Matrix"}]}
        )


class FakeOrchestrator:
    def __init__(self, error=None):
        self.error = error
        self.calls: list[tuple] = []
        self.availability = FakeAvailability(library={("The Matrix", "movie")})
        self.catalog = FakeCatalog()

    async def search(self, query, page=1, *, check_availability=True):
        self.calls.append(("search", query, page, check_availability))
        if self.error is not None:
            raise self.error
        return SearchResponse.model_validate(
            {
                "page": page,
                "total_pages": 1,
                "total_results": 1,
                "results": [{"id": 603, "title": "The Matrix", "available": True}],
            }
        )

    async def discover(self, listing, *, kind=None, page=1, window="week", check_availability=True):
        self.calls.append(("discover", listing, kind, page, window, check_availability))
        return SearchResponse()

    async def get_detail(self, kind, item_id):
        self.calls.append(("detail", kind, item_id))
        return EnrichedDetail.model_validate(
            {"id": item_id, "kind": kind, "title": "The Matrix", "available": False}
        )


def _patch(monkeypatch, orchestrator):
    @asynccontextmanager
    async def fake_open(settings=None, **kwargs):
        yield orchestrator

    monkeypatch.setattr(cli, "open_orchestrator", fake_open)


def test_search_prints_json(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(cli.main, ["search", "Matrix", "--page", "2"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["page"] == 2
    assert payload["results"][0]["available"] is True
    assert orchestrator.calls == [("search", "Matrix", 2, True)]


def test_search_without_availability(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(cli.main, ["search", "Matrix", "--no-availability"])

    assert result.exit_code == 0, result.output
    assert orchestrator.calls == [("search", "Matrix", 1, False)]


def test_search_upstream_error_exits_with_message(monkeypatch):
    _patch(monkeypatch, FakeOrchestrator(error=UpstreamError("TMDb", "status 500")))

    result = CliRunner().invoke(cli.main, ["search", "Matrix"])

    assert result.exit_code == 1
    assert "TMDb: status 500" in result.output


def test_search_invalid_input_is_usage_error(monkeypatch):
    _patch(monkeypatch, FakeOrchestrator(error=InvalidInput("search query cannot be empty")))

    result = CliRunner().invoke(cli.main, ["search", " "])

    assert result.exit_code == 2
    assert "search query cannot be empty" in result.output


def test_detail_omits_missing_ratings(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(cli.main, ["detail", "TV", "1399"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert "ratings" not in payload
    assert orchestrator.calls == [("detail", "tv", 1399)]


def test_discover_passes_options(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(
        cli.main, ["discover", "trending", "--kind", "series", "--window", "day"]
    )

    assert result.exit_code == 0, result.output
    assert orchestrator.calls == [("discover", "trending", "series", 1, "day", True)]


def test_discover_rejects_unknown_listing(monkeypatch):
    _patch(monkeypatch, FakeOrchestrator())

    result = CliRunner().invoke(cli.main, ["discover", "random"])

    assert result.exit_code == 2


def test_libraries_and_library_search(monkeypatch):
    _patch(monkeypatch, FakeOrchestrator())
    runner = CliRunner()

    libraries = runner.invoke(cli.main, ["libraries"])
    assert libraries.exit_code == 0, libraries.output
    assert json.loads(libraries.output) == {
        "libraries": [{"key": "1", "title": "Movies", "kind": "movie"}],
        "count": 1,
    }

    found = runner.invoke(cli.main, ["library-search", "Dark"])
    assert found.exit_code == 0, found.output
    payload = json.loads(found.output)
    assert payload["count"] == 1
    assert payload["results"][0]["kind"] == "series"


def test_library_search_requires_query(monkeypatch):
    _patch(monkeypatch, FakeOrchestrator())

    result = CliRunner().invoke(cli.main, ["library-search", ""])

    assert result.exit_code == 2


def test_missing_tmdb_key_is_reported():
    result = CliRunner().invoke(cli.main, ["search", "Matrix"])

    assert result.exit_code == 1
    assert "TMDB_API_KEY must be set" in result.output


def test_check_prints_library_match(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(
        cli.main, ["check", "The Matrix", "--year", "1999", "--kind", "movie"]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "exists": True,
        "title": "The Matrix",
        "type": "movie",
        "year": 1999,
    }
    assert orchestrator.availability.calls == [("The Matrix", 1999, "movie")]


def test_check_defaults_to_any_year(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(cli.main, ["check", "Dark", "--kind", "show"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["exists"] is False
    assert orchestrator.availability.calls == [("Dark", 0, "show")]


def test_check_requires_kind(monkeypatch):
    _patch(monkeypatch, FakeOrchestrator())

    result = CliRunner().invoke(cli.main, ["check", "Dark"])

    assert result.exit_code == 2


def test_check_plex_failure_exits_with_message(monkeypatch):
    orchestrator = FakeOrchestrator()
    orchestrator.availability.error = UpstreamError("Plex", "library search failed")
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(cli.main, ["check", "Dark", "--kind", "series"])

    assert result.exit_code == 1
    assert "Plex: library search failed" in result.output


def test_person_search_prints_json(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(cli.main, ["person-search", "Keanu", "--page", "2"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["results"][0]["name"] == "Keanu Reeves"
    assert orchestrator.catalog.calls == [("search_person", "Keanu", 2)]


def test_person_with_credits(monkeypatch):
    orchestrator = FakeOrchestrator()
    _patch(monkeypatch, orchestrator)
    runner = CliRunner()

    plain = runner.invoke(cli.main, ["person", "6384"])
    assert plain.exit_code == 0, plain.output
    assert "credits" not in json.loads(plain.output)

    full = runner.invoke(cli.main, ["person", "6384", "--credits"])
    assert full.exit_code == 0, full.output
    payload = json.loads(full.output)
    assert payload["biography"] == "Actor."
    assert payload["credits"]["cast"][0]["title"] == "The Matrix"
    assert orchestrator.catalog.calls == [
        ("person", 6384),
        ("person", 6384),
        ("credits", 6384),
    ]


def test_invalid_environment_is_reported(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT", "0")

    result = CliRunner().invoke(cli.main, ["search", "Matrix"])

    assert result.exit_code == 1
    assert "invalid configuration" in result.output
    assert "Traceback" not in result.output


def test_invalid_plex_url_is_reported(monkeypatch):
    monkeypatch.setenv("PLEX_URL", "not-a-url")

    result = CliRunner().invoke(cli.main, ["libraries"])

    assert result.exit_code == 1
    assert "invalid configuration" in result.output

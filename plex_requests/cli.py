"""Command-line interface for the enrichment pipeline."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

import click
from pydantic import ValidationError

from .common.errors import InvalidInput, ProviderNotConfigured, UpstreamError
from .config import Settings
from .enrichment import DISCOVER_LISTINGS, EnrichmentOrchestrator, open_orchestrator

OrchestratorCall = Callable[[EnrichmentOrchestrator], Awaitable[Any]]


def _run(call: OrchestratorCall) -> Any:
    async def _main() -> Any:
        async with open_orchestrator(Settings()) as orchestrator:
            return await call(orchestrator)

    try:
        return asyncio.run(_main())
    except ValidationError as exc:
        raise click.ClickException(f"invalid configuration: {exc}") from exc
    except InvalidInput as exc:
        raise click.UsageError(str(exc)) from exc
    except (UpstreamError, ProviderNotConfigured) as exc:
        raise click.ClickException(str(exc)) from exc


def _echo(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2))


@click.group()
@click.option(
    "--log-level",
    envvar="LOG_LEVEL",
    show_envvar=True,
    type=click.Choice(
        ["critical", "error", "warning", "info", "debug", "notset"],
        case_sensitive=False,
    ),
    default="warning",
    show_default=True,
    help="Logging level for console output",
)
def main(log_level: str) -> None:
    """Search the catalog and enrich results with library and ratings data."""

    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.WARNING))


@main.command()
@click.argument("query")
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option(
    "--availability/--no-availability",
    default=True,
    show_default=True,
    help="Flag results already present in the Plex library",
)
def search(query: str, page: int, availability: bool) -> None:
    """Search movies and series by title."""

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        response = await orchestrator.search(
            query, page, check_availability=availability
        )
        return response.as_payload()

    _echo(_run(_call))


@main.command()
@click.argument("kind", type=click.Choice(["movie", "series", "tv"], case_sensitive=False))
@click.argument("item_id", type=int)
def detail(kind: str, item_id: int) -> None:
    """Show a movie or series with availability and ratings."""

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        result = await orchestrator.get_detail(kind.lower(), item_id)
        return result.as_payload()

    _echo(_run(_call))


@main.command()
@click.argument("listing", type=click.Choice(list(DISCOVER_LISTINGS)))
@click.option(
    "--kind",
    type=click.Choice(["all", "movie", "series"], case_sensitive=False),
    default=None,
    help="Media kind (defaults to 'all' for trending, 'movie' otherwise)",
)
@click.option(
    "--window",
    type=click.Choice(["day", "week"]),
    default="week",
    show_default=True,
    help="Time window for trending listings",
)
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--availability/--no-availability", default=True, show_default=True)
def discover(
    listing: str, kind: str | None, window: str, page: int, availability: bool
) -> None:
    """Browse trending, popular, top rated or upcoming titles."""

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        response = await orchestrator.discover(
            listing,
            kind=kind.lower() if kind else None,
            page=page,
            window=window,
            check_availability=availability,
        )
        return response.as_payload()

    _echo(_run(_call))


@main.command()
def libraries() -> None:
    """List the Plex library sections."""

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        sections = await orchestrator.availability.libraries()
        return {
            "libraries": [section.model_dump() for section in sections],
            "count": len(sections),
        }

    _echo(_run(_call))


@main.command("library-search")
@click.argument("query")
def library_search(query: str) -> None:
    """Search the Plex library directly."""

    if not query.strip():
        raise click.UsageError("search query is required")

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        entries = await orchestrator.availability.search_library(query)
        return {
            "results": [entry.model_dump() for entry in entries],
            "count": len(entries),
        }

    _echo(_run(_call))


@main.command()
@click.argument("title")
@click.option("--year", type=click.IntRange(min=0), default=0, show_default=True)
@click.option(
    "--kind",
    type=click.Choice(["movie", "series", "tv", "show"], case_sensitive=False),
    required=True,
    help="Media kind to match in the library",
)
def check(title: str, year: int, kind: str) -> None:
    """Check whether a title already exists in the Plex library."""

    if not title.strip():
        raise click.UsageError("title is required")

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        exists = await orchestrator.availability.exists(title, year, kind.lower())
        return {"exists": exists, "title": title, "type": kind.lower(), "year": year}

    _echo(_run(_call))


@main.command("person-search")
@click.argument("query")
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
def person_search(query: str, page: int) -> None:
    """Search actors, directors and crew."""

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        people = await orchestrator.catalog.search_person(query, page)
        return people.model_dump(mode="json")

    _echo(_run(_call))


@main.command()
@click.argument("person_id", type=int)
@click.option(
    "--credits/--no-credits",
    "with_credits",
    default=False,
    help="Include the combined movie and series filmography",
)
def person(person_id: int, with_credits: bool) -> None:
    """Show a person's biography and, optionally, filmography."""

    async def _call(orchestrator: EnrichmentOrchestrator) -> Any:
        detail = await orchestrator.catalog.get_person_detail(person_id)
        payload = detail.model_dump(mode="json")
        if with_credits:
            credits = await orchestrator.catalog.get_person_credits(person_id)
            payload["credits"] = credits.model_dump(mode="json", exclude={"id"})
        return payload

    _echo(_run(_call))


if __name__ == "__main__":
    main()

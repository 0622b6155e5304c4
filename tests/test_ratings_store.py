from pathlib import Path

from sqlalchemy import inspect

from plex_requests.common.types import RatingsSnapshot
from plex_requests.ratings.store import Rating, RatingsStore


def test_create_schema_builds_ratings_table(tmp_path: Path):
    store = RatingsStore.from_url(f"sqlite:///{tmp_path / 'ratings.db'}")
    store.create_schema()
    try:
        assert inspect(store.engine).has_table(Rating.__tablename__)
        assert store.count() == 0
        assert store.get("tt0133093") is None
    finally:
        store.dispose()


def test_insert_if_absent_keeps_first_row(tmp_path: Path):
    store = RatingsStore.from_url(f"sqlite:///{tmp_path / 'ratings.db'}")
    store.create_schema()
    try:
        first = RatingsSnapshot(imdb_id="tt0133093", imdb_rating="8.7")
        second = RatingsSnapshot(imdb_id="tt0133093", imdb_rating="1.0")

        assert store.insert_if_absent(first) is True
        assert store.insert_if_absent(second) is False

        assert store.count() == 1
        assert store.get("tt0133093") == first
    finally:
        store.dispose()


def test_rows_survive_a_new_store(tmp_path: Path):
    url = f"sqlite:///{tmp_path / 'ratings.db'}"
    store = RatingsStore.from_url(url)
    store.create_schema()
    store.insert_if_absent(
        RatingsSnapshot(imdb_id="tt0944947", rotten_tomatoes_score="89%")
    )
    store.dispose()

    reopened = RatingsStore.from_url(url)
    try:
        snapshot = reopened.get("tt0944947")
        assert snapshot is not None
        assert snapshot.rotten_tomatoes_score == "89%"
        assert snapshot.metascore == ""
    finally:
        reopened.dispose()

import sys
from pathlib import Path

import pytest

# Ensure package root is importable when tests are executed directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


_PROVIDER_ENV = (
    "TMDB_API_KEY",
    "PLEX_URL",
    "PLEX_SERVER_URL",
    "PLEX_TOKEN",
    "OMDB_API_KEY",
    "DATABASE_URL",
    "HTTP_TIMEOUT",
    "ENRICHMENT_CONCURRENCY",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_provider_env(monkeypatch):
    """Keep provider credentials from the host environment out of tests."""
    for name in _PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)

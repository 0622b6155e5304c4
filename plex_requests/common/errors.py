"""Exception hierarchy shared by the provider clients and the orchestrator."""

from __future__ import annotations


class PlexRequestsError(Exception):
    """Base class for errors raised by :mod:`plex_requests`."""


class InvalidInput(PlexRequestsError, ValueError):
    """Raised when a caller passes arguments a provider cannot accept."""


class UpstreamError(PlexRequestsError, RuntimeError):
    """Raised when an external provider cannot satisfy a request."""

    def __init__(
        self, provider: str, message: str, *, status_code: int | None = None
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class ProviderNotConfigured(PlexRequestsError, RuntimeError):
    """Raised when an optional provider is missing its credentials."""


__all__ = [
    "PlexRequestsError",
    "InvalidInput",
    "UpstreamError",
    "ProviderNotConfigured",
]

"""Shared utilities for the provider clients and the orchestrator."""

from __future__ import annotations

from .errors import InvalidInput, ProviderNotConfigured, PlexRequestsError, UpstreamError
from .types import JSONValue
from .validation import require_positive

__all__ = [
    "InvalidInput",
    "JSONValue",
    "PlexRequestsError",
    "ProviderNotConfigured",
    "UpstreamError",
    "require_positive",
]

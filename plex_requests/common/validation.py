"""Validation helpers shared across packages."""

from __future__ import annotations

from typing import Any


def require_positive(value: int, *, name: str) -> int:
    """Return *value* if it is a positive integer, otherwise raise an error."""

    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def coerce_year(raw_year: Any) -> int:
    """Best-effort conversion of a year value to an integer, ``0`` when unknown."""

    if isinstance(raw_year, bool):
        return 0
    if isinstance(raw_year, int):
        return raw_year
    if isinstance(raw_year, str):
        raw_year = raw_year.strip()
        if not raw_year:
            return 0
        try:
            return int(raw_year)
        except ValueError:
            return 0
    try:
        return int(raw_year)
    except (TypeError, ValueError):
        return 0


def year_from_date(value: str | None) -> int:
    """Return the year prefix of an ISO date string, or ``0`` when absent."""

    if not value or len(value) < 4:
        return 0
    head = value[:4]
    return int(head) if head.isdigit() else 0


__all__ = ["require_positive", "coerce_year", "year_from_date"]

"""Shared query parameter parsing utilities for framework adapters.

This module provides utilities for parsing and validating the query
parameters accepted by the read endpoints of the ASGI and FastAPI
adapters. Invalid values never raise; they fall back to "no filter".
"""

import math

from webhooksandbox.core.models import Level

# Accepted values of the 'level' parameter
VALID_LEVELS = {"info", "warn", "warning", "error"}

VALID_FORMATS = {"json", "ndjson"}


def _first(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    return values[0] if values else None


def _parse_since_param(params: dict[str, list[str]]) -> int:
    """Parse and validate the 'since' query parameter.

    Args:
        params: Parsed query string parameters (as returned by urllib.parse.parse_qs).

    Returns:
        Epoch-millisecond timestamp, defaulting to 0 if invalid or missing.
        Rejects negative, NaN, and infinite values, returning 0 for these cases.
    """
    raw = _first(params, "since")
    if raw is None:
        return 0
    try:
        value = float(raw)
    except ValueError:
        return 0
    if value < 0 or not math.isfinite(value):
        return 0
    return int(value)


def _parse_level_param(params: dict[str, list[str]]) -> Level | None:
    """Parse and validate the 'level' query parameter.

    Returns:
        The requested Level, or None if invalid/missing.
    """
    raw = _first(params, "level")
    if raw and raw.strip().lower() in VALID_LEVELS:
        return Level.parse(raw)
    return None


def _parse_limit_param(params: dict[str, list[str]]) -> int | None:
    """Parse the 'limit' query parameter.

    Returns:
        A positive integer, or None if invalid/missing.
    """
    raw = _first(params, "limit")
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def _parse_format_param(params: dict[str, list[str]]) -> str:
    """Parse the 'format' query parameter, defaulting to "json"."""
    raw = (_first(params, "format") or "json").strip().lower()
    return raw if raw in VALID_FORMATS else "json"

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone

logger = logging.getLogger(__name__)


def parse_superset_timestamp(value: str | bytes | None) -> datetime | None:
    """Parse a replica timestamp, either MediaWiki digits or ISO 8601, as UTC."""
    if not value:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    normalized = str(value).strip().replace("Z", "+00:00")
    if normalized.isdigit() and len(normalized) == 14:
        try:
            timestamp = datetime.strptime(normalized, "%Y%m%d%H%M%S")
        except ValueError:
            logger.warning("Unable to parse Superset timestamp: %s", value)
            return None
        return timestamp.replace(tzinfo=timezone.utc)
    try:
        timestamp = datetime.fromisoformat(normalized)
    except ValueError:
        try:
            timestamp = datetime.fromisoformat(normalized.replace(" ", "T"))
        except ValueError:
            logger.warning("Unable to parse Superset timestamp: %s", value)
            return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def parse_optional_int(value) -> int | None:
    try:
        if value is None:
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_superset_bool(value) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"", "null"}:
            return None
        if normalized in {"1", "true", "t", "yes", "y"}:
            return True
        if normalized in {"0", "false", "f", "no", "n"}:
            return False
    return bool(value)


def parse_superset_text(value) -> str | None:
    """Decode a text column; binary columns may come back as bytes."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def to_mediawiki_timestamp(value: date | datetime, *, end_of_day: bool = False) -> str:
    """Format a date or datetime the way MediaWiki stores rev_timestamp.

    Plain dates are widened to the start (or, with ``end_of_day``, the last
    second) of that day in UTC.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.max if end_of_day else time.min)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y%m%d%H%M%S")


def quote_sql_string(value: str) -> str:
    """Quote a string literal for inlining into a replica SQL query."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\x00", "\\0")
    return f"'{escaped}'"

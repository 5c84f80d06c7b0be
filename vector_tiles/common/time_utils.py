"""UTC helpers and date-pattern ranges."""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timezone

from vector_tiles.common.errors import ConfigError

_YEAR = re.compile(r"^\d{4}$")
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def date_range_for_pattern(pattern: str) -> tuple[str, str]:
    """Return the inclusive ``(start, end)`` ISO dates covered by ``YYYY`` or ``YYYY-MM``."""
    pattern = str(pattern).strip()
    if _YEAR.match(pattern):
        return f"{pattern}-01-01", f"{pattern}-12-31"

    match = _YEAR_MONTH.match(pattern)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise ConfigError(f"Invalid month in date pattern: {pattern}")
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1).isoformat(), date(year, month, last_day).isoformat()

    raise ConfigError(f"Unsupported date pattern: {pattern!r} (expected YYYY or YYYY-MM)")

"""Date helpers shared by the normalizer, filters and exports."""

from __future__ import annotations

import datetime as dt
from typing import Optional

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d")


def now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_iso() -> str:
    return dt.date.today().isoformat()


def parse_date(value) -> Optional[dt.datetime]:
    """Best-effort parse of ISO timestamps and the common day-first formats."""
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def date_part(value) -> str:
    """``YYYY-MM-DD`` for parseable values, the raw text otherwise."""
    parsed = parse_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.date().isoformat()


def format_date(value) -> str:
    """Display form used on invoices, e.g. ``01 Nov 2025``."""
    parsed = parse_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime("%d %b %Y")

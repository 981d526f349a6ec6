from __future__ import annotations

from datetime import date, datetime, timezone

# Python's isoformat() without and with microseconds, as printed by the Airflow CLI.
NO_DECIMAL_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"
DECIMAL_LAYOUT = "%Y-%m-%dT%H:%M:%S.%f%z"
DAY_LAYOUT = "%Y-%m-%d"


def _aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_no_decimal(raw: str) -> datetime:
    s = (raw or "").strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.strptime(s, NO_DECIMAL_LAYOUT)


def parse_decimal(raw: str) -> datetime:
    s = (raw or "").strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.strptime(s, DECIMAL_LAYOUT)
    except ValueError:
        return datetime.strptime(s, NO_DECIMAL_LAYOUT)


def format_no_decimal(dt: datetime) -> str:
    return _aware(dt).replace(microsecond=0).isoformat(timespec="seconds")


def format_decimal(dt: datetime) -> str:
    dt = _aware(dt)
    if not dt.microsecond:
        return format_no_decimal(dt)
    text = dt.isoformat(timespec="microseconds")
    # YYYY-MM-DDTHH:MM:SS.ffffff is 26 chars; the provider trims trailing zeros.
    return text[:26].rstrip("0") + text[26:]


def parse_day(raw: str) -> date:
    return datetime.strptime((raw or "").strip(), DAY_LAYOUT).date()

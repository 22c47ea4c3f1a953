"""
Recurrence configuration grammar and next-occurrence calculation.

Config grammar per pattern (comma-separated, whitespace around items ignored):
- daily: no config (anything given is ignored)
- weekly: weekday names, e.g. "Monday,Wednesday,Friday"
- monthly: day-of-month numbers 1-31, e.g. "1,15,25"
- yearly: month-day pairs, e.g. "1-1,12-25" (Jan 1 and Dec 25)
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from ..models import RecurrencePattern

WEEKDAYS: dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

CONFIG_EXAMPLES: dict[RecurrencePattern, str] = {
    RecurrencePattern.WEEKLY: 'weekday names (e.g., "Monday,Wednesday,Friday")',
    RecurrencePattern.MONTHLY: 'day numbers (e.g., "1,15,25")',
    RecurrencePattern.YEARLY: 'month-day pairs (e.g., "1-1,12-25")',
}

# Years scanned for yearly rules; Feb 29 can be 8 years away (e.g. 2096 -> 2104).
_YEARLY_HORIZON = 9


def _items(config: str) -> list[str]:
    return [part.strip() for part in config.split(",")]


def _is_number(text: str) -> bool:
    # ASCII only: isdigit() alone also accepts superscripts like "²"
    return text.isascii() and text.isdigit()


def parse_weekdays(config: str) -> tuple[frozenset[int], str | None]:
    """Parse weekday names. Returns (weekday numbers, first bad item or None)."""
    days: set[int] = set()
    for item in _items(config):
        number = WEEKDAYS.get(item.lower())
        if number is None:
            return frozenset(), item
        days.add(number)
    return frozenset(days), None


def parse_month_days(config: str) -> tuple[frozenset[int], str | None]:
    days: set[int] = set()
    for item in _items(config):
        if not _is_number(item) or not 1 <= int(item) <= 31:
            return frozenset(), item
        days.add(int(item))
    return frozenset(days), None


def parse_year_days(config: str) -> tuple[frozenset[tuple[int, int]], str | None]:
    pairs: set[tuple[int, int]] = set()
    for item in _items(config):
        parts = [p.strip() for p in item.split("-")]
        if len(parts) != 2 or not all(_is_number(p) for p in parts):
            return frozenset(), item
        month, day = int(parts[0]), int(parts[1])
        # 2000 is a leap year, so Feb 29 is accepted
        if not 1 <= month <= 12 or not 1 <= day <= calendar.monthrange(2000, month)[1]:
            return frozenset(), item
        pairs.add((month, day))
    return frozenset(pairs), None


def invalid_config_item(pattern: RecurrencePattern, config: str) -> str | None:
    """Return the first item of `config` that does not fit `pattern`, or None."""
    if pattern is RecurrencePattern.DAILY:
        return None
    if pattern is RecurrencePattern.WEEKLY:
        return parse_weekdays(config)[1]
    if pattern is RecurrencePattern.MONTHLY:
        return parse_month_days(config)[1]
    return parse_year_days(config)[1]


def _add_months(year: int, month: int, n: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def next_occurrence(from_date: date, pattern: RecurrencePattern, config: str | None) -> date | None:
    """Nearest date strictly after `from_date` that matches the rule.

    Returns None when the config is missing or yields no usable values.
    """
    if pattern is RecurrencePattern.DAILY:
        return from_date + timedelta(days=1)

    if not config:
        return None

    if pattern is RecurrencePattern.WEEKLY:
        weekdays, bad = parse_weekdays(config)
        if bad is not None or not weekdays:
            return None
        for offset in range(1, 8):
            candidate = from_date + timedelta(days=offset)
            if candidate.weekday() in weekdays:
                return candidate
        return None

    if pattern is RecurrencePattern.MONTHLY:
        month_days, bad = parse_month_days(config)
        if bad is not None or not month_days:
            return None
        # Months without a configured day (e.g. 31 in April) are skipped.
        for n in range(0, 13):
            year, month = _add_months(from_date.year, from_date.month, n)
            last_day = calendar.monthrange(year, month)[1]
            for day in sorted(month_days):
                if day > last_day:
                    continue
                candidate = date(year, month, day)
                if candidate > from_date:
                    return candidate
        return None

    year_days, bad = parse_year_days(config)
    if bad is not None or not year_days:
        return None
    for year in range(from_date.year, from_date.year + _YEARLY_HORIZON):
        for month, day in sorted(year_days):
            if day > calendar.monthrange(year, month)[1]:
                continue
            candidate = date(year, month, day)
            if candidate > from_date:
                return candidate
    return None

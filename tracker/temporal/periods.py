"""
Period Keys and Selection
=========================

Period keys identify stored artifacts:

    hour   YYYY-MM-DD-HH00
    day    YYYY-MM-DD
    week   YYYY-Www        (ISO 8601 week-year and week number)
    month  YYYY-MM
    year   YYYY

Every key maps to a half-open calendar date range. A source artifact
belongs to a target period when its whole range lies inside the target's
range. Membership is always decided on the full range, never on a shared
year prefix.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple
import re

from ..contracts.base import Level, MalformedInput


_HOUR_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})-(\d{2})00$')
_DAY_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_WEEK_RE = re.compile(r'^(\d{4})-W(\d{2})$')
_MONTH_RE = re.compile(r'^(\d{4})-(\d{2})$')
_YEAR_RE = re.compile(r'^(\d{4})$')


@dataclass(frozen=True)
class PeriodRange:
    """Half-open date range [start, end)."""
    start: date
    end: date

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError("PeriodRange start must be before end")

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def covers(self, other: PeriodRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days


# =============================================================================
# KEY FORMATTING
# =============================================================================

def hour_key(moment: datetime) -> str:
    return f"{moment:%Y-%m-%d-%H}00"


def day_key(day: date) -> str:
    return f"{day:%Y-%m-%d}"


def week_key(day: date) -> str:
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def month_key(day: date) -> str:
    return f"{day:%Y-%m}"


def year_key(day: date) -> str:
    return f"{day.year:04d}"


def hourly_keys(day: date, hours: int = 24) -> List[str]:
    """Snapshot keys of one day in hour order."""
    return [f"{day_key(day)}-{hour:02d}00" for hour in range(hours)]


def previous_day(now: datetime) -> date:
    return (now - timedelta(days=1)).date()


def previous_week(now: datetime) -> str:
    return week_key((now - timedelta(days=7)).date())


def previous_month(now: datetime) -> str:
    first = now.date().replace(day=1)
    return month_key(first - timedelta(days=1))


def previous_year(now: datetime) -> str:
    return f"{now.year - 1:04d}"


# =============================================================================
# KEY PARSING
# =============================================================================

def _month_range(year: int, month: int) -> PeriodRange:
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return PeriodRange(start, end)


def _parse(key: str) -> Tuple[Level, PeriodRange]:
    match = _HOUR_RE.match(key)
    if match:
        y, m, d, h = (int(g) for g in match.groups())
        if h > 23:
            raise ValueError(f"hour out of range: {h}")
        start = date(y, m, d)
        return Level.SNAPSHOTS, PeriodRange(start, start + timedelta(days=1))

    match = _DAY_RE.match(key)
    if match:
        start = date(*(int(g) for g in match.groups()))
        return Level.DAILY, PeriodRange(start, start + timedelta(days=1))

    match = _WEEK_RE.match(key)
    if match:
        start = date.fromisocalendar(int(match.group(1)), int(match.group(2)), 1)
        return Level.WEEKLY, PeriodRange(start, start + timedelta(days=7))

    match = _MONTH_RE.match(key)
    if match:
        return Level.MONTHLY, _month_range(int(match.group(1)), int(match.group(2)))

    match = _YEAR_RE.match(key)
    if match:
        year = int(match.group(1))
        return Level.YEARLY, PeriodRange(date(year, 1, 1), date(year + 1, 1, 1))

    raise ValueError("unrecognized key shape")


def parse_period_key(key: str) -> Tuple[Level, PeriodRange]:
    """
    Resolve a period key to its level and date range.

    Raises MalformedInput for unknown shapes and impossible calendar values
    (e.g. 2023-13, 2021-W53).
    """
    try:
        return _parse(key)
    except (ValueError, OverflowError) as e:
        raise MalformedInput(f"Invalid period key {key!r}: {e}", key=key) from None


def try_parse_period_key(key: str) -> Optional[Tuple[Level, PeriodRange]]:
    try:
        return parse_period_key(key)
    except MalformedInput:
        return None


def expect_level(key: str, level: Level) -> PeriodRange:
    """Parse key and require it to be of the given level."""
    parsed_level, period = parse_period_key(key)
    if parsed_level is not level:
        raise MalformedInput(
            f"Key {key!r} is a {parsed_level.value} key, expected {level.value}",
            key=key,
        )
    return period


# =============================================================================
# SELECTION
# =============================================================================

def belongs_to(source_key: str, source_level: Level, target: PeriodRange) -> bool:
    parsed = try_parse_period_key(source_key)
    if parsed is None:
        return False
    level, period = parsed
    return level is source_level and target.covers(period)


def select(
    source_level: Level,
    target_period_key: str,
    source_keys: Iterable[str],
    max_count: int
) -> List[str]:
    """
    Pick the source artifacts that belong to the target period.

    Returns keys of source_level shape whose period lies fully inside the
    target period, ascending lexicographic, at most max_count of them.
    """
    _, target = parse_period_key(target_period_key)
    members = sorted(
        key for key in set(source_keys)
        if belongs_to(key, source_level, target)
    )
    return members[:max(max_count, 0)]

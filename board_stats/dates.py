"""Date helpers for grouping completions by day and ISO week.

All calendar arithmetic is done in UTC. Naive datetimes are taken to be UTC.
"""

from datetime import date, datetime, timedelta, timezone

DONE_MARKER = 'Done!'

# lookback windows longer than this are rejected before any fetch
MAX_LOOKBACK_DAYS = 3660
MAX_LOOKBACK_WEEKS = 522


def parse_timestamp(s: str) -> datetime:
    """Parse a Trello ISO-8601 timestamp into an aware UTC datetime.

    Raises ValueError for anything that is not a timestamp.
    """
    if not isinstance(s, str) or not s.strip():
        raise ValueError(f'Invalid timestamp: {s!r}')
    dt = datetime.fromisoformat(s.strip().replace('Z', '+00:00'))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_done_date(action: dict):
    """Return the completion time of a "Done!" comment action, else None."""
    text = (action.get('data') or {}).get('text')
    if text and DONE_MARKER in text:
        return parse_timestamp(action.get('date'))
    return None


def _utc_date(instant) -> date:
    if isinstance(instant, datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone(timezone.utc)
        return instant.date()
    return instant


def _thursday_of_week(d: date) -> date:
    # weekday(): Monday=0 .. Sunday=6
    return d + timedelta(days=3 - d.weekday())


def day_key(instant) -> str:
    return _utc_date(instant).strftime('%Y-%m-%d')


def week_number(instant) -> int:
    """ISO-8601 week number: week 1 holds the year's first Thursday."""
    thursday = _thursday_of_week(_utc_date(instant))
    first_thursday = _thursday_of_week(date(thursday.year, 1, 4))
    return (thursday - first_thursday).days // 7 + 1


def week_key(instant) -> str:
    # The ISO year is the year of the week's Thursday, not of the instant.
    thursday = _thursday_of_week(_utc_date(instant))
    return f'{thursday.year}-W{week_number(instant):02d}'


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def range_start(now: datetime, count: int, unit: str) -> datetime:
    if unit == 'days':
        return now - timedelta(days=count)
    if unit == 'weeks':
        return now - timedelta(days=count * 7)
    raise ValueError(f'Unknown range unit: {unit!r}')


def date_range_start(days: int, now=None) -> datetime:
    return range_start(now or utc_now(), days, 'days')


def week_range_start(weeks: int, now=None) -> datetime:
    return range_start(now or utc_now(), weeks, 'weeks')


def is_date_in_range(instant: datetime, start: datetime, end=None) -> bool:
    return start <= instant <= (end or utc_now())


def format_date_for_display(instant) -> str:
    """'Mar 5, 2024'"""
    d = _utc_date(instant)
    return f'{d:%b} {d.day}, {d.year}'


def format_week_for_display(key: str) -> str:
    """'2024-W05' -> 'Week 05, 2024'"""
    year, week = key.split('-W')
    return f'Week {week}, {year}'

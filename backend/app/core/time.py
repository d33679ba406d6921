"""Time utilities for timezone-aware datetimes and calendar months."""

import calendar
from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def resolve_timezone(name: str | None, default: str = "UTC") -> tzinfo:
    """Map an IANA zone name to a tzinfo, raising ValueError for unknown names."""
    key = (name or default).strip()
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {key}") from exc


def coerce_datetime(value) -> datetime | None:
    """Return value as a datetime, parsing ISO strings; None if it cannot be read."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def align_to(value: datetime, reference: datetime) -> datetime:
    """Express value in the same clock as reference.

    Naive values are taken as UTC. With an aware reference the result is
    converted into reference's zone; with a naive reference the result is a
    naive UTC datetime.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    if reference.tzinfo is None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value.astimezone(reference.tzinfo)


def start_of_month(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def end_of_month(moment: datetime) -> datetime:
    last_day = calendar.monthrange(moment.year, moment.month)[1]
    return moment.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)


def shift_months(moment: datetime, months: int) -> datetime:
    """Return the first instant of the month `months` away from moment's month."""
    index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(index, 12)
    return start_of_month(moment).replace(year=year, month=month + 1)


def month_key(moment: datetime) -> str:
    return f"{moment.year}-{moment.month:02d}"


def month_label(moment: datetime) -> str:
    return calendar.month_abbr[moment.month]


def seconds_until(deadline: datetime, now: datetime) -> float:
    return (deadline - now) / timedelta(seconds=1)

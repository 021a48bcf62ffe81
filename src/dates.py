"""Calendar boundaries shared by every refresh tier.

All day and week rollover decisions go through these helpers so that
counters, momentum and daily-brief gating agree on where "today" and
"this week" begin. Boundaries are computed in the timezone carried by
the datetime passed in.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta


def assume_utc(moment: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware datetimes pass through."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def start_of_day(moment: datetime) -> datetime:
    """Midnight at the start of ``moment``'s calendar day."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """Monday 00:00 of the ISO week containing ``moment``."""
    day = start_of_day(moment)
    return day - timedelta(days=day.isoweekday() - 1)


def start_of_previous_week(moment: datetime) -> datetime:
    return start_of_week(moment) - timedelta(weeks=1)


def start_of_yesterday(moment: datetime) -> datetime:
    return start_of_day(moment) - timedelta(days=1)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed from ``earlier`` to ``later``, never negative."""
    return max(0, (assume_utc(later) - assume_utc(earlier)).days)


def same_day(a: datetime, b: datetime) -> bool:
    if a.tzinfo is not None and b.tzinfo is not None:
        b = b.astimezone(a.tzinfo)
    return a.date() == b.date()


def same_iso_week(a: datetime, b: datetime) -> bool:
    """True when both moments fall in the same ISO (year, week)."""
    if a.tzinfo is not None and b.tzinfo is not None:
        b = b.astimezone(a.tzinfo)
    return a.isocalendar()[:2] == b.isocalendar()[:2]


def week_identifier(moment: datetime | date) -> str:
    """ISO week label such as ``2026-W04``."""
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"

from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Optional

TODAY = "today"
YESTERDAY = "yesterday"
HOURS = "hours"
DAYS = "days"
WEEK = "week"

ACCEPTED_FORMS = ("today", "yesterday", "week", "<N>h", "<N>d")


class PeriodError(ValueError):
    def __init__(self, spec: str) -> None:
        self.spec = spec
        self.accepted = ACCEPTED_FORMS
        super().__init__(f"Unknown period: {spec!r} (expected one of: {', '.join(ACCEPTED_FORMS)}; e.g. 24h, 7d)")


@dataclasses.dataclass(frozen=True)
class TimeRange:
    since: dt.datetime
    until: Optional[dt.datetime] = None  # None means "up to now"


@dataclasses.dataclass(frozen=True)
class Period:
    kind: str
    amount: int = 0

    @property
    def label(self) -> str:
        if self.kind in (HOURS, DAYS):
            return TimeRange(since=_subtract(now, self.kind, self.amount))
        if self.kind == WEEK:
            monday = now.date() - dt.timedelta(days=now.weekday())
            return TimeRange(since=local_midnight(monday, tz))
        raise ValueError(f"Unknown period kind: {self.kind!r}")


def _subtract(now: dt.datetime, kind: str, amount: int) -> dt.datetime:
    # Windows reaching past year 1 are clamped to the earliest representable day.
    try:
        delta = dt.timedelta(hours=amount) if kind == HOURS else dt.timedelta(days=amount)
        return now - delta
    except OverflowError:
        return dt.datetime.min.replace(tzinfo=now.tzinfo) + dt.timedelta(days=1)


def local_midnight(day: dt.date, tz: dt.tzinfo | None = None) -> dt.datetime:
    naive = dt.datetime.combine(day, dt.time.min)
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def parse_period(spec: str) -> Period:
    s = (spec or "").strip()
    if s == TODAY:
        return Period(TODAY)
    if s == YESTERDAY:
        return Period(YESTERDAY)
    if s == WEEK:
        return Period(WEEK)
    if len(s) >= 2 and s[-1] in ("h", "d") and s[:-1].isascii() and s[:-1].isdigit():
        n = int(s[:-1])
        return Period(HOURS if s[-1] == "h" else DAYS, n)
    raise PeriodError(spec)

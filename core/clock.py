"""core/clock.py — Simulated day/night clock.

Hour-of-day runs in ``[0, 24)`` and advances with real time at a rate
set by ``day_length_minutes`` (one in-game day per N real minutes)::

    clock = DayNightClock(day_length_minutes=24.0, start_hour=6.0)
    clock.subscribe_hour(on_hour)       # on_hour(hour: float)
    clock.subscribe_day(on_day)         # on_day(day_of_week: str)
    clock.advance(real_dt)

Notifications are synchronous: every handler runs to completion before
``advance()`` returns.  On a rollover the day handlers fire first, then
the hour handlers with the new hour.

``elapsed`` is the absolute real-time clock (seconds since start) that
order pickup deadlines are measured against.  ``total_hours`` is the
absolute game time (``day * 24 + hour``) used for meeting windows that
straddle midnight.
"""

from __future__ import annotations
import math
from typing import Callable

from core.tuning import get as _tun


DAYS_OF_WEEK = ("monday", "tuesday", "wednesday", "thursday",
                "friday", "saturday", "sunday")


def wrap_hour(hour: float) -> float:
    """Fold *hour* into ``[0, 24)``."""
    h = math.fmod(hour, 24.0)
    if h < 0.0:
        h += 24.0
    if h >= 24.0 - 1e-9:    # float noise just below midnight is midnight
        h = 0.0
    return h


def format_time(hours: float) -> str:
    """``13.5`` → ``"13:30"``."""
    h = int(math.floor(wrap_hour(hours)))
    m = int(math.floor((wrap_hour(hours) - h) * 60.0))
    return f"{h:02d}:{m:02d}"


class DayNightClock:
    """The simulation's single source of hour-of-day and day rollover."""

    def __init__(self, day_length_minutes: float | None = None,
                 start_hour: float | None = None,
                 start_day: int = 0) -> None:
        if day_length_minutes is None:
            day_length_minutes = _tun("clock", "day_length_minutes", 24.0)
        if start_hour is None:
            start_hour = _tun("clock", "start_hour", 6.0)
        self.day_length_minutes: float = float(day_length_minutes)
        self.time_of_day: float = wrap_hour(float(start_hour))
        self.day: int = start_day
        self.elapsed: float = 0.0
        self._hour_subs: list[Callable[[float], None]] = []
        self._day_subs: list[Callable[[str], None]] = []

    # ── Derived values ───────────────────────────────────────────────

    @property
    def hour(self) -> float:
        return self.time_of_day

    @property
    def seconds_per_day(self) -> float:
        return self.day_length_minutes * 60.0

    @property
    def day_of_week(self) -> str:
        return DAYS_OF_WEEK[self.day % len(DAYS_OF_WEEK)]

    @property
    def total_hours(self) -> float:
        return self.day * 24.0 + self.time_of_day

    def absolute(self, hour: float) -> float:
        """Absolute game time of *hour* on the current day."""
        return self.day * 24.0 + hour

    def convert_duration(self, real_seconds: float) -> float:
        """Real-time seconds → in-game hours."""
        return (real_seconds / self.seconds_per_day) * 24.0

    def real_seconds_for(self, game_hours: float) -> float:
        """In-game hours → real-time seconds."""
        return (game_hours / 24.0) * self.seconds_per_day

    def get_hour(self) -> int:
        return int(math.floor(self.time_of_day))

    def get_minute(self) -> int:
        return int(math.floor((self.time_of_day % 1.0) * 60.0))

    # ── Subscriptions ────────────────────────────────────────────────

    def subscribe_hour(self, handler: Callable[[float], None]) -> None:
        if handler not in self._hour_subs:
            self._hour_subs.append(handler)

    def unsubscribe_hour(self, handler: Callable[[float], None]) -> None:
        if handler in self._hour_subs:
            self._hour_subs.remove(handler)

    def subscribe_day(self, handler: Callable[[str], None]) -> None:
        if handler not in self._day_subs:
            self._day_subs.append(handler)

    def unsubscribe_day(self, handler: Callable[[str], None]) -> None:
        if handler in self._day_subs:
            self._day_subs.remove(handler)

    # ── Advancing ────────────────────────────────────────────────────

    def advance(self, real_dt: float) -> None:
        """Move time forward by *real_dt* real seconds and broadcast."""
        if real_dt <= 0.0:
            return
        self.elapsed += real_dt
        self.time_of_day += self.convert_duration(real_dt)
        rolled = 0
        while self.time_of_day >= 24.0:
            self.time_of_day -= 24.0
            rolled += 1
        for _ in range(rolled):
            self.day += 1
            self._broadcast_day()
        self._broadcast_hour()

    def set_time(self, hour: float, *, advance_day: bool = False) -> None:
        """Jump to *hour*.  With ``advance_day`` the jump lands on the
        next day and the day handlers fire first."""
        self.time_of_day = wrap_hour(hour)
        if advance_day:
            self.day += 1
            self._broadcast_day()
        self._broadcast_hour()

    def _broadcast_day(self) -> None:
        dow = self.day_of_week
        print(f"[CLOCK] Day {self.day} begins ({dow})")
        for handler in list(self._day_subs):
            handler(dow)

    def _broadcast_hour(self) -> None:
        for handler in list(self._hour_subs):
            handler(self.time_of_day)

    def __repr__(self) -> str:
        return (f"DayNightClock(day={self.day}, {self.day_of_week}, "
                f"{format_time(self.time_of_day)})")

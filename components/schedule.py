"""components.schedule — Daily routine, meeting and presence state for agents.

  Activity     — the fixed set of states an agent can be in
  Schedule     — boundary times (+ optional weekly rows) → Activity
  Routine      — the agent's current Activity and day of week
  Waypoints    — where each Activity takes place
  Meeting      — a pending weapon-deal meeting (at most one per agent)
  Presence     — active ("awake") vs inactive ("dormant")
  FleeState    — temporary flee override after a threat
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from components.spatial import Waypoint


class Activity(str, Enum):
    SLEEPING = "sleeping"
    EATING = "eating"
    WORKING = "working"
    IDLE = "idle"
    GOING_TO_MEETING = "going_to_meeting"
    FLEEING = "fleeing"

    def __str__(self) -> str:
        return self.value


BASE_STATES = (Activity.SLEEPING, Activity.EATING,
               Activity.WORKING, Activity.IDLE)


@dataclass
class ScheduleEntry:
    """One row of a weekly schedule.

    Active on ``day`` from ``start`` to ``end`` (hours).  When
    ``start > end`` the row wraps past midnight.
    """
    day: str
    start: float
    end: float
    state: Activity
    location: Waypoint | None = None

    def is_active_at(self, hour: float) -> bool:
        if self.start < self.end:
            return self.start <= hour < self.end
        return hour >= self.start or hour < self.end


@dataclass
class Schedule:
    """Boundary times (hours, 0–24) of an agent's default day.

    Sleep wraps past midnight whenever ``sleep_time > wake_up_time``.
    ``weekly`` rows, when present for the current day, take priority.
    """
    wake_up_time: float = 6.0
    work_start_time: float = 9.0
    work_end_time: float = 17.0
    sleep_time: float = 22.0
    break_start_time: float = 12.0
    break_end_time: float = 13.0
    weekly: list[ScheduleEntry] = field(default_factory=list)

    def entries_for(self, day: str | None) -> list[ScheduleEntry]:
        if day is None:
            return []
        return [e for e in self.weekly if e.day == day]


@dataclass
class Routine:
    """Mutable schedule state of one agent.

    ``reconciles`` counts how many times the per-tick reconciliation
    ran for this agent (read through the diagnostics interface).
    """
    state: Activity = Activity.SLEEPING
    day: str | None = None
    reconciles: int = 0
    last_reconciled: float = -1.0     # absolute game hour of the last run


@dataclass
class Waypoints:
    points: dict[Activity, Waypoint] = field(default_factory=dict)

    def for_state(self, state: Activity) -> Waypoint | None:
        return self.points.get(state)


@dataclass
class Meeting:
    """The agent's pending meeting, if any.

    ``meeting_time`` / ``arrival_time`` are hours of day in ``[0, 24)``.
    ``meeting_at`` / ``arrival_at`` are the same instants in absolute
    game hours so windows that straddle midnight compare correctly.
    """
    pending: bool = False
    location: Waypoint | None = None
    meeting_time: float = 0.0
    arrival_time: float = 0.0
    meeting_at: float = 0.0
    arrival_at: float = 0.0
    state_before: Activity | None = None

    def clear(self) -> None:
        self.pending = False
        self.location = None


@dataclass
class Presence:
    """Whether the agent currently receives hour broadcasts."""
    active: bool = True


@dataclass
class FleeState:
    """Flee override bookkeeping.  Times are real seconds (``clock.elapsed``)."""
    enabled: bool = True              # reacts to gunshots at all
    fleeing: bool = False
    until: float = 0.0
    last_reaction: float = -999.0

"""simulation/routine.py — Time-of-day schedule state machine.

``determine_state`` is a pure function of an agent's ``Schedule`` and
the hour of day.  ``ScheduleMachine`` applies its result: it records
the new ``Activity`` on the agent's ``Routine``, emits ``StateEntered``
and asks the movement controller to walk to the state's waypoint.

Boundary rules, first match wins:

    hour >= sleep or hour < wake        → SLEEPING (wraps midnight)
    break_start <= hour < break_end     → EATING
    work_start  <= hour < work_end      → WORKING
    otherwise                           → IDLE

When the schedule carries weekly rows for the current day, the first
row active at the hour decides instead.
"""

from __future__ import annotations

from core.events import EventBus, StateEntered
from core.ecs import World
from components import (
    Activity, Schedule, ScheduleEntry, Routine, Waypoints, Waypoint,
    Identity, DevLog,
)


# ── Pure rules ───────────────────────────────────────────────────────

def active_entry(schedule: Schedule, hour: float,
                 day: str | None = None) -> ScheduleEntry | None:
    """First weekly row for *day* that is active at *hour*, if any."""
    for entry in schedule.entries_for(day):
        if entry.is_active_at(hour):
            return entry
    return None


def determine_state(schedule: Schedule, hour: float,
                    day: str | None = None) -> Activity:
    entry = active_entry(schedule, hour, day)
    if entry is not None:
        return entry.state

    if hour >= schedule.sleep_time or hour < schedule.wake_up_time:
        return Activity.SLEEPING
    if schedule.break_start_time <= hour < schedule.break_end_time:
        return Activity.EATING
    if schedule.work_start_time <= hour < schedule.work_end_time:
        return Activity.WORKING
    return Activity.IDLE


def location_for_state(schedule: Schedule | None, waypoints: Waypoints | None,
                       state: Activity, hour: float,
                       day: str | None = None) -> Waypoint | None:
    """Weekly row location for *state* if one is active, else the default."""
    if schedule is not None:
        for entry in schedule.entries_for(day):
            if (entry.is_active_at(hour) and entry.state == state
                    and entry.location is not None):
                return entry.location
    if waypoints is None:
        return None
    return waypoints.for_state(state)


# ── State machine ────────────────────────────────────────────────────

class ScheduleMachine:
    """Applies schedule transitions to agents in the world."""

    def __init__(self, world: World, bus: EventBus, movement,
                 log: DevLog, clock) -> None:
        self.world = world
        self.bus = bus
        self.movement = movement
        self.log = log
        self.clock = clock

    def _name(self, eid: int) -> str:
        ident = self.world.get(eid, Identity)
        return ident.name if ident else f"#{eid}"

    def target_state(self, eid: int, hour: float) -> Activity:
        schedule = self.world.get(eid, Schedule) or Schedule()
        routine = self.world.get(eid, Routine)
        return determine_state(schedule, hour, routine.day if routine else None)

    def location_for(self, eid: int, state: Activity,
                     hour: float) -> Waypoint | None:
        routine = self.world.get(eid, Routine)
        return location_for_state(
            self.world.get(eid, Schedule), self.world.get(eid, Waypoints),
            state, hour, routine.day if routine else None)

    def switch_state(self, eid: int, new_state: Activity,
                     hour: float | None = None,
                     location: Waypoint | None = None) -> bool:
        """Enter *new_state*.  Returns False if the agent was already in it.

        The state is recorded even when no waypoint is configured; only
        the movement request is skipped.
        """
        routine = self.world.get(eid, Routine)
        if routine is None or routine.state == new_state:
            return False

        previous = routine.state
        routine.state = new_state
        self.bus.emit(StateEntered(eid=eid, state=str(new_state),
                                   previous=str(previous)))

        if hour is None:
            hour = self.clock.hour
        if location is None:
            location = self.location_for(eid, new_state, hour)

        name = self._name(eid)
        if location is None:
            print(f"[SCHED] {name}: no waypoint for {new_state}, staying put")
            self.log.record(eid, "schedule", f"no waypoint for {new_state}",
                            name=name, t=self.clock.total_hours,
                            level="warning")
            return True

        self.movement.move_to(eid, location)
        self.log.record(eid, "schedule", f"{previous} → {new_state}",
                        name=name, t=self.clock.total_hours,
                        details={"location": location.name})
        return True

    def transition(self, eid: int, hour: float) -> bool:
        """Ordinary schedule step: switch if the schedule says so."""
        return self.switch_state(eid, self.target_state(eid, hour), hour)

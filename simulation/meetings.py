"""simulation/meetings.py — Meeting scheduler and per-tick reconciliation.

A meeting diverts one agent from its routine to a location at a time
of day.  The agent sets off ``arrival_lead_hours`` before the meeting,
waits ``wait_window_seconds`` (read as game seconds) past it, then
returns to its schedule.

Reconciliation, run on every hour broadcast for each active agent::

    1. window active (arrival ≤ now < meeting + wait)  → GOING_TO_MEETING
    2. past meeting + wait (player not nearby)         → complete_meeting()
    3. otherwise ordinary schedule transition, unless already
       GOING_TO_MEETING for the pending meeting

Due-times are kept in absolute game hours (``day * 24 + hour``) next to
the ``[0, 24)`` hours of day, so a window across midnight compares in
order.

Flee overrides (gunshots, threats) suspend reconciliation for the
agent until ``flee.duration`` real seconds have passed.
"""

from __future__ import annotations
import math
from dataclasses import dataclass

from core.clock import DayNightClock, wrap_hour, format_time
from core.ecs import World
from core.events import EventBus, MeetingScheduled, MeetingCompleted, StateEntered
from core.tuning import get as _tun
from components import (
    Activity, Routine, Meeting, Presence, FleeState, Position, Identity,
    Waypoint, Player, DevLog,
)
from simulation.routine import ScheduleMachine

EPS = 1e-4


def _wait_hours() -> float:
    return _tun("meetings", "wait_window_seconds", 300.0) / 3600.0

def _arrival_lead() -> float:
    return _tun("meetings", "arrival_lead_hours", 1.0)

def _location_reach() -> float:
    return _tun("meetings", "location_reach", 2.0)

def _bed_hold() -> float:
    return _tun("meetings", "bed_hold_seconds", 2.0)


@dataclass(frozen=True)
class MeetingDiagnostics:
    """Read-only view of one agent's meeting state (debug overlay)."""
    name: str
    state: str
    active: bool
    pending: bool
    location: str | None
    arrival_time: str
    meeting_time: str
    current_time: str
    in_window: bool
    at_location: bool
    fleeing: bool
    reconciles: int

    def lines(self) -> list[str]:
        out = [f"{self.name}: {self.state}"
               f"{'' if self.active else ' (dormant)'}"]
        if self.pending:
            out.append(f"  meeting at {self.location} {self.meeting_time} "
                       f"(leave {self.arrival_time}, now {self.current_time})")
            out.append(f"  in window: {self.in_window}  "
                       f"at location: {self.at_location}")
        else:
            out.append("  no meeting")
        if self.fleeing:
            out.append("  FLEEING")
        return out


class MeetingScheduler:
    """Owns every agent's ``Meeting`` and drives reconciliation."""

    def __init__(self, world: World, clock: DayNightClock, bus: EventBus,
                 machine: ScheduleMachine, movement, log: DevLog) -> None:
        self.world = world
        self.clock = clock
        self.bus = bus
        self.machine = machine
        self.movement = movement
        self.log = log

    def _name(self, eid: int) -> str:
        ident = self.world.get(eid, Identity)
        return ident.name if ident else f"#{eid}"

    def _record(self, eid: int, msg: str, level: str = "info",
                details: dict | None = None) -> None:
        self.log.record(eid, "meeting", msg, name=self._name(eid),
                        t=self.clock.total_hours, level=level,
                        details=details)

    # ── Scheduling ───────────────────────────────────────────────────

    def schedule_meeting(self, eid: int, location: Waypoint | None,
                         real_seconds: float) -> bool:
        """Book a meeting *real_seconds* of real time from now.

        Overwrites any earlier meeting.  Returns False (and logs) when
        there is no location or the agent cannot hold a meeting.
        """
        meeting = self.world.get(eid, Meeting)
        routine = self.world.get(eid, Routine)
        name = self._name(eid)
        if location is None:
            print(f"[MEET] {name}: no meeting location, not scheduling")
            self._record(eid, "schedule skipped: no location", "warning")
            return False
        if meeting is None or routine is None:
            print(f"[MEET] {name}: cannot hold meetings, not scheduling")
            self._record(eid, "schedule skipped: no meeting state", "warning")
            return False

        now = self.clock.total_hours
        offset = self.clock.convert_duration(real_seconds)
        lead = _arrival_lead()
        previous = meeting.location if meeting.pending else None

        meeting.pending = True
        meeting.location = location
        meeting.meeting_at = now + offset
        meeting.arrival_at = meeting.meeting_at - lead
        meeting.meeting_time = wrap_hour(self.clock.hour + offset)
        meeting.arrival_time = wrap_hour(meeting.meeting_time - lead)
        if routine.state != Activity.GOING_TO_MEETING:
            meeting.state_before = routine.state

        print(f"[MEET] {name} meeting at {location.name}: "
              f"now {format_time(self.clock.hour)}, "
              f"leave {format_time(meeting.arrival_time)}, "
              f"meet {format_time(meeting.meeting_time)}")
        self._record(eid, "meeting scheduled", details={
            "location": location.name,
            "arrival_time": meeting.arrival_time,
            "meeting_time": meeting.meeting_time,
        })
        self.bus.emit(MeetingScheduled(
            eid=eid, location=location.name,
            arrival_time=meeting.arrival_time,
            meeting_time=meeting.meeting_time,
        ))

        flee = self.world.get(eid, FleeState)
        if flee is not None and flee.fleeing:
            return True
        going = routine.state == Activity.GOING_TO_MEETING
        # Window current or just missed: go now.
        if meeting.arrival_at <= now + EPS and now <= meeting.meeting_at + EPS:
            if not going:
                self._go_to_meeting(eid)
            elif location != previous:
                self.movement.move_to(eid, location)
                print(f"[MEET] {name} redirected to {location.name}")
                self._record(eid, "redirected to meeting",
                             details={"location": location.name})
        elif going:
            # Replaced by a later meeting: back to the routine until then.
            self.machine.transition(eid, self.clock.hour)
        return True

    def has_meeting_at(self, eid: int, location: Waypoint | None) -> bool:
        meeting = self.world.get(eid, Meeting)
        return (meeting is not None and meeting.pending
                and location is not None and meeting.location == location)

    def _in_window(self, meeting: Meeting, now: float) -> bool:
        return meeting.arrival_at <= now + EPS < meeting.meeting_at + _wait_hours()

    def _go_to_meeting(self, eid: int) -> None:
        routine = self.world.get(eid, Routine)
        meeting = self.world.get(eid, Meeting)
        if routine.state == Activity.GOING_TO_MEETING:
            return
        previous = routine.state
        routine.state = Activity.GOING_TO_MEETING
        self.bus.emit(StateEntered(eid=eid, state=str(routine.state),
                                   previous=str(previous)))
        self.movement.move_to(eid, meeting.location)
        print(f"[MEET] {self._name(eid)} heading to {meeting.location.name}")
        self._record(eid, "going to meeting",
                     details={"location": meeting.location.name})

    # ── Reconciliation ───────────────────────────────────────────────

    def reconcile(self, eid: int, hour: float | None = None) -> None:
        """Bring one agent in line with its meeting and schedule."""
        routine = self.world.get(eid, Routine)
        if routine is None:
            return
        if hour is None:
            hour = self.clock.hour
        now = self.clock.absolute(hour)
        routine.reconciles += 1
        routine.last_reconciled = now

        meeting = self.world.get(eid, Meeting)
        if meeting is not None and meeting.pending:
            if self._in_window(meeting, now):
                self._go_to_meeting(eid)
                return
            if now + EPS >= meeting.meeting_at + _wait_hours():
                if self._player_nearby(eid):
                    self._record(eid, "window over, player nearby: waiting")
                    return
                print(f"[MEET] {self._name(eid)}: meeting time expired, "
                      f"leaving {meeting.location.name}")
                self.complete_meeting(eid, reason="timeout")
                return
            if routine.state == Activity.GOING_TO_MEETING:
                return

        self.machine.transition(eid, hour)

    def on_hour_changed(self, hour: float) -> None:
        """Clock hour handler: reconcile every active, non-fleeing agent."""
        now = self.clock.absolute(hour)
        for eid, routine in self.world.all_of(Routine):
            presence = self.world.get(eid, Presence)
            if presence is not None and not presence.active:
                continue
            flee = self.world.get(eid, FleeState)
            if flee is not None and flee.fleeing:
                continue
            # Already handled by this instant's day broadcast.
            if abs(routine.last_reconciled - now) < 1e-9:
                continue
            self.reconcile(eid, hour)

    def on_day_changed(self, day_of_week: str) -> None:
        """Clock day handler: record the new day, re-evaluate active agents.

        Inactive agents are left to the dormancy registry, which is
        subscribed after this handler.
        """
        for eid, routine in self.world.all_of(Routine):
            routine.day = day_of_week
        for eid, routine in self.world.all_of(Routine):
            presence = self.world.get(eid, Presence)
            if presence is not None and not presence.active:
                continue
            flee = self.world.get(eid, FleeState)
            if flee is not None and flee.fleeing:
                continue
            self.reconcile(eid)

    def notify_day_changed(self, eid: int, day_of_week: str | None = None) -> None:
        """Deliver a missed day change to one agent (dormancy catch-up).

        A no-op for active agents: they got the broadcast already.
        """
        routine = self.world.get(eid, Routine)
        presence = self.world.get(eid, Presence)
        if routine is None or presence is None or presence.active:
            return
        routine.day = day_of_week or self.clock.day_of_week
        self.reconcile(eid)

    # ── Completion ───────────────────────────────────────────────────

    def complete_meeting(self, eid: int, reason: str = "deal") -> bool:
        """Clear the meeting and resume the schedule.  Idempotent."""
        meeting = self.world.get(eid, Meeting)
        if meeting is None or not meeting.pending:
            return False
        meeting.clear()
        self.bus.emit(MeetingCompleted(eid=eid, reason=reason))
        self._record(eid, f"meeting completed ({reason})")
        self.machine.transition(eid, self.clock.hour)
        return True

    def complete_weapon_deal(self, eid: int) -> bool:
        print(f"[MEET] {self._name(eid)} weapon deal completed")
        return self.complete_meeting(eid, reason="deal")

    def is_at_meeting_location(self, eid: int) -> bool:
        meeting = self.world.get(eid, Meeting)
        routine = self.world.get(eid, Routine)
        pos = self.world.get(eid, Position)
        if meeting is None or routine is None or pos is None:
            return False
        if not meeting.pending or meeting.location is None:
            return False
        if routine.state != Activity.GOING_TO_MEETING:
            return False
        return meeting.location.distance_to(pos.x, pos.y) <= _location_reach()

    def _player_nearby(self, eid: int) -> bool:
        pos = self.world.get(eid, Position)
        if pos is None:
            return False
        for _, player, ppos in self.world.query(Player, Position):
            if pos.distance_to(ppos.x, ppos.y) <= player.nearby_range:
                return True
        return False

    # ── Overrides ────────────────────────────────────────────────────

    def reset_to_bed(self, eid: int) -> None:
        """Drop any meeting or flee and put the agent in bed, asleep."""
        routine = self.world.get(eid, Routine)
        if routine is None:
            return
        meeting = self.world.get(eid, Meeting)
        if meeting is not None and meeting.pending:
            meeting.clear()
            self.bus.emit(MeetingCompleted(eid=eid, reason="reset"))
        flee = self.world.get(eid, FleeState)
        if flee is not None:
            flee.fleeing = False

        previous = routine.state
        routine.state = Activity.SLEEPING
        if previous != Activity.SLEEPING:
            self.bus.emit(StateEntered(eid=eid, state=str(routine.state),
                                       previous=str(previous)))

        bed = self.machine.location_for(eid, Activity.SLEEPING, self.clock.hour)
        if bed is None:
            print(f"[MEET] {self._name(eid)} has no bed location assigned")
            self._record(eid, "reset to bed: no bed waypoint", "warning")
            return
        self.movement.teleport(eid, bed)
        self.movement.override_temporarily(eid, bed, _bed_hold())
        self._record(eid, "reset to bed", details={"location": bed.name})

    def on_gunshot_heard(self, eid: int, x: float, y: float) -> bool:
        """Gunshot reaction gate: dormant, enabled flag, cooldown, already fleeing."""
        presence = self.world.get(eid, Presence)
        if presence is not None and not presence.active:
            return False
        flee = self.world.get(eid, FleeState)
        if flee is None or not flee.enabled:
            self._record(eid, "heard gunshot, does not flee")
            return False
        now = self.clock.elapsed
        if now - flee.last_reaction < _tun("flee", "gunshot_cooldown", 2.0):
            self._record(eid, "heard gunshot, on cooldown")
            return False
        if flee.fleeing:
            return False
        flee.last_reaction = now
        return self.flee_from(eid, x, y)

    def flee_from(self, eid: int, x: float, y: float) -> bool:
        """Run ``flee.distance`` metres directly away from (x, y)."""
        flee = self.world.get(eid, FleeState)
        routine = self.world.get(eid, Routine)
        if flee is None or routine is None or flee.fleeing:
            return False
        pos = self.world.get(eid, Position)
        if pos is None:
            print(f"[MEET] {self._name(eid)} has no position to flee from")
            self._record(eid, "flee skipped: no position", "warning")
            return False

        dx, dy = pos.x - x, pos.y - y
        dist = math.hypot(dx, dy)
        if dist < EPS:
            dx, dy, dist = 1.0, 0.0, 1.0
        run = _tun("flee", "distance", 20.0)
        fx = pos.x + dx / dist * run
        fy = pos.y + dy / dist * run

        flee.fleeing = True
        flee.until = self.clock.elapsed + _tun("flee", "duration", 10.0)
        previous = routine.state
        routine.state = Activity.FLEEING
        self.bus.emit(StateEntered(eid=eid, state=str(routine.state),
                                   previous=str(previous)))
        self.movement.move_to_position(eid, fx, fy, label="flee")
        print(f"[MEET] {self._name(eid)} fleeing from ({x:.1f}, {y:.1f})")
        self._record(eid, "fleeing", details={"from": (x, y), "to": (fx, fy)})
        return True

    def update_fleeing(self) -> int:
        """End flee overrides that have run their course.  Returns count."""
        now = self.clock.elapsed
        ended = 0
        for eid, flee in self.world.all_of(FleeState):
            if flee.fleeing and now >= flee.until:
                flee.fleeing = False
                ended += 1
                self._record(eid, "stopped fleeing")
                self.reconcile(eid)
        return ended

    # ── Diagnostics ──────────────────────────────────────────────────

    def diagnostics(self, eid: int) -> MeetingDiagnostics | None:
        routine = self.world.get(eid, Routine)
        if routine is None:
            return None
        meeting = self.world.get(eid, Meeting) or Meeting()
        presence = self.world.get(eid, Presence)
        flee = self.world.get(eid, FleeState)
        now = self.clock.total_hours
        return MeetingDiagnostics(
            name=self._name(eid),
            state=str(routine.state),
            active=presence.active if presence else True,
            pending=meeting.pending,
            location=meeting.location.name if meeting.location else None,
            arrival_time=format_time(meeting.arrival_time),
            meeting_time=format_time(meeting.meeting_time),
            current_time=format_time(self.clock.hour),
            in_window=meeting.pending and self._in_window(meeting, now),
            at_location=self.is_at_meeting_location(eid),
            fleeing=bool(flee and flee.fleeing),
            reconciles=routine.reconciles,
        )

"""logic/movement.py — Headless movement collaborator.

The schedule and meeting systems never move agents themselves; they
ask this controller to::

    movement.move_to(eid, waypoint)              # walk to a named point
    movement.move_to_position(eid, x, y)         # walk to a raw point
    movement.override_temporarily(eid, bed, 5.0) # go there, ignore others for 5 s

``movement_system(dt)`` then steers each agent with a ``Velocity``
toward its target and integrates ``Position``.  A game client would
replace the stepping with its own navigation; the request API stays.

Every accepted request is appended to ``requests`` as
``(eid, target_name, x, y)`` so tests can assert on what was asked.
"""

from __future__ import annotations
import math

from core.ecs import World
from core.tuning import get as _tun
from components import Position, Velocity, Waypoint


def _walk_speed() -> float:
    return _tun("movement", "walk_speed", 3.5)

def _arrive_threshold() -> float:
    return _tun("movement", "arrive_threshold", 0.3)


class WaypointMovement:
    """Target bookkeeping + simple straight-line stepping."""

    def __init__(self, world: World) -> None:
        self.world = world
        self.requests: list[tuple[int, str, float, float]] = []
        self._targets: dict[int, tuple[str, float, float]] = {}
        self._holds: dict[int, float] = {}
        self._deferred: dict[int, tuple[str, float, float]] = {}
        self._time: float = 0.0

    # ── Requests ─────────────────────────────────────────────────────

    def move_to(self, eid: int, waypoint: Waypoint) -> bool:
        """Walk to *waypoint*.  Returns False while a hold blocks it; the
        blocked request is replayed when the hold ends."""
        return self._request(eid, waypoint.name, waypoint.x, waypoint.y)

    def move_to_position(self, eid: int, x: float, y: float,
                         label: str = "point") -> bool:
        return self._request(eid, label, x, y)

    def override_temporarily(self, eid: int, waypoint: Waypoint,
                             hold_seconds: float) -> None:
        """Go to *waypoint* and ignore other requests for *hold_seconds*."""
        self._holds.pop(eid, None)
        self._deferred.pop(eid, None)
        self._request(eid, waypoint.name, waypoint.x, waypoint.y)
        if hold_seconds > 0.0:
            self._holds[eid] = self._time + hold_seconds

    def teleport(self, eid: int, waypoint: Waypoint) -> None:
        """Place the agent on *waypoint* immediately and stop it there."""
        pos = self.world.get(eid, Position)
        if pos is not None:
            pos.x, pos.y = waypoint.x, waypoint.y
        vel = self.world.get(eid, Velocity)
        if vel is not None:
            vel.x = vel.y = 0.0
        self._targets.pop(eid, None)

    def _request(self, eid: int, label: str, x: float, y: float) -> bool:
        until = self._holds.get(eid)
        if until is not None and self._time < until:
            # Latest request wins once the hold runs out.
            self._deferred[eid] = (label, x, y)
            return False
        self._targets[eid] = (label, x, y)
        self.requests.append((eid, label, x, y))
        return True

    # ── Queries ──────────────────────────────────────────────────────

    def target_of(self, eid: int) -> str | None:
        t = self._targets.get(eid)
        return t[0] if t else None

    def is_holding(self, eid: int) -> bool:
        until = self._holds.get(eid)
        return until is not None and self._time < until

    def requests_for(self, eid: int) -> list[str]:
        return [label for e, label, _, _ in self.requests if e == eid]

    # ── Per-frame stepping ───────────────────────────────────────────

    def movement_system(self, dt: float) -> None:
        """Steer every targeted agent toward its target and move it."""
        self._time += dt
        for eid in [e for e, until in self._holds.items() if self._time >= until]:
            del self._holds[eid]
            pending = self._deferred.pop(eid, None)
            if pending is not None:
                self._request(eid, *pending)

        speed = _walk_speed()
        reach = _arrive_threshold()
        for eid, (label, tx, ty) in list(self._targets.items()):
            pos = self.world.get(eid, Position)
            vel = self.world.get(eid, Velocity)
            if pos is None or vel is None:
                continue
            dx = tx - pos.x
            dy = ty - pos.y
            dist = math.hypot(dx, dy)
            step = speed * dt
            if dist <= reach or dist <= step:
                pos.x, pos.y = tx, ty
                vel.x = vel.y = 0.0
                del self._targets[eid]
                continue
            vel.x = (dx / dist) * speed
            vel.y = (dy / dist) * speed
            pos.x += vel.x * dt
            pos.y += vel.y * dt

"""simulation/threats.py — Gunshot detection.

A gunshot alerts every active agent within hearing range.  Each alerted agent
decides for itself (flag, cooldown, already fleeing) whether to run.
"""

from __future__ import annotations

from core.events import GunshotHeard
from core.tuning import get as _tun
from components import Position, FleeState, Presence


def report_gunshot(world, scheduler, bus, x: float, y: float,
                   hearing_range: float | None = None) -> list[int]:
    """Alert agents near (x, y).  Returns the eids that started fleeing."""
    if hearing_range is None:
        hearing_range = _tun("flee", "hearing_range", 50.0)
    alerted = 0
    fled = []
    for eid, pos, flee, dist in world.nearby(x, y, hearing_range,
                                             Position, FleeState):
        presence = world.get(eid, Presence)
        if presence is not None and not presence.active:
            continue
        alerted += 1
        if scheduler.on_gunshot_heard(eid, x, y):
            fled.append(eid)
    bus.emit(GunshotHeard(x=x, y=y, alerted=alerted))
    print(f"[MEET] Gunshot at ({x:.1f}, {y:.1f}): {alerted} heard, "
          f"{len(fled)} fleeing")
    return fled

"""simulation/dormancy.py — Catch-up for agents that were inactive.

Inactive agents (``Presence.active == False``) receive no hour or day
broadcasts.  The registry keeps its own list of agents and, on every
day change, delivers the missed day change to each inactive one and
switches it back on.

Its day handler must be subscribed *after* the meeting scheduler's, so
the scheduler has already skipped the inactive agents and each agent
is reconciled exactly once per day change.
"""

from __future__ import annotations

from core.ecs import World
from components import Identity, Presence, DevLog


class DormancyRegistry:

    def __init__(self, world: World, scheduler, log: DevLog) -> None:
        self.world = world
        self.scheduler = scheduler
        self.log = log
        self._agents: list[int] = []

    def register(self, eid: int) -> None:
        if eid in self._agents:
            return
        self._agents.append(eid)
        print(f"[SLEEP] Registered {self._name(eid)}")

    def unregister(self, eid: int) -> None:
        if eid not in self._agents:
            return
        self._agents.remove(eid)
        print(f"[SLEEP] Unregistered {self._name(eid)}")

    def __contains__(self, eid: int) -> bool:
        return eid in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def _name(self, eid: int) -> str:
        ident = self.world.get(eid, Identity)
        return ident.name if ident else f"#{eid}"

    def _prune(self) -> None:
        self._agents = [e for e in self._agents if self.world.alive(e)]

    # ── Day change ───────────────────────────────────────────────────

    def on_day_changed(self, day_of_week: str) -> int:
        """Wake every inactive agent for *day_of_week*.  Returns count."""
        self._prune()
        woke = 0
        for eid in list(self._agents):
            presence = self.world.get(eid, Presence)
            if presence is None or presence.active:
                continue
            self._wake(eid, day_of_week)
            woke += 1
        print(f"[SLEEP] Woke up {woke} agents for {day_of_week}")
        return woke

    def _wake(self, eid: int, day_of_week: str | None) -> None:
        presence = self.world.get(eid, Presence)
        self.scheduler.notify_day_changed(eid, day_of_week)
        presence.active = True
        self.log.record(eid, "dormancy", "woken", name=self._name(eid),
                        t=self.scheduler.clock.total_hours,
                        details={"day": day_of_week})

    # ── Debug menu ───────────────────────────────────────────────────

    def wake_all_now(self) -> int:
        """Wake every inactive agent immediately, without a day change."""
        self._prune()
        woke = 0
        for eid in list(self._agents):
            presence = self.world.get(eid, Presence)
            if presence is not None and not presence.active:
                self._wake(eid, None)
                woke += 1
        print(f"[SLEEP] Manually woke {woke} agents")
        return woke

    def listing(self) -> list[str]:
        """``["Vera: AWAKE", "Dmitri: SLEEPING", ...]`` in registration order."""
        self._prune()
        out = []
        for eid in self._agents:
            presence = self.world.get(eid, Presence)
            awake = presence is None or presence.active
            out.append(f"{self._name(eid)}: {'AWAKE' if awake else 'SLEEPING'}")
        return out

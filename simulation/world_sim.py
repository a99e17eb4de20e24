"""simulation/world_sim.py — Top-level simulation manager.

Provides the ``WorldSim`` class that constructs every service, wires
the clock subscriptions and exposes a single ``tick()`` for the game
loop.

Usage::

    sim = WorldSim.from_data(rng=random.Random(7))
    player = sim.spawn_player(0.0, 0.0)

    # each frame:
    sim.tick(dt)

Services are plain objects held as attributes (``sim.meetings``,
``sim.book`` …) and passed to each other by reference.  Nothing is a
module-level singleton.
"""

from __future__ import annotations
import random
from pathlib import Path

from core.clock import DayNightClock
from core.ecs import World
from core.events import EventBus
from core.tuning import get as _tun
from components import (
    Activity, Identity, Position, Velocity, Schedule, Routine, Waypoints,
    Waypoint, Meeting, Presence, FleeState, Player, Inventory, ItemRegistry,
    DevLog,
)
from logic.movement import WaypointMovement
from simulation.routine import ScheduleMachine, determine_state
from simulation.meetings import MeetingScheduler
from simulation.dormancy import DormancyRegistry
from simulation.orders import OrderBook, OrderGenerator
from simulation.delivery import DeliveryVerifier, BuildLedger
from simulation.messaging import Messenger
from simulation.economy import new_wallet
from simulation.threats import report_gunshot


class WorldSim:
    """Owns the clock and every schedule / order service for one town."""

    def __init__(self, world: World | None = None, *,
                 clock: DayNightClock | None = None,
                 registry: ItemRegistry | None = None,
                 locations: dict[str, Waypoint] | None = None,
                 meeting_spots: list[Waypoint] | None = None,
                 rng: random.Random | None = None,
                 generate_orders: bool = True) -> None:
        self.world = world if world is not None else World()
        self.clock = clock or DayNightClock()
        self.bus = EventBus()
        self.log = DevLog()
        self.registry = registry or ItemRegistry()
        self.locations = dict(locations or {})
        self.meeting_spots = list(meeting_spots or [])
        self.rng = rng or random.Random()

        self.movement = WaypointMovement(self.world)
        self.messenger = Messenger(self.clock)
        self.machine = ScheduleMachine(self.world, self.bus, self.movement,
                                       self.log, self.clock)
        self.meetings = MeetingScheduler(self.world, self.clock, self.bus,
                                         self.machine, self.movement, self.log)
        self.dormancy = DormancyRegistry(self.world, self.meetings, self.log)
        self.book = OrderBook(self.world, self.clock, self.bus, self.meetings,
                              self.messenger, self.registry, self.log)
        self.generator = OrderGenerator(self.world, self.book, self.registry,
                                        self.meeting_spots, self.rng,
                                        enabled=generate_orders)
        self.ledger = BuildLedger()
        self.verifier = DeliveryVerifier(self.world, self.book, self.meetings,
                                         self.messenger, self.bus,
                                         self.registry, self.log, self.clock)

        # Scheduler's day handler first, dormancy second.
        self.clock.subscribe_day(self.meetings.on_day_changed)
        self.clock.subscribe_day(self.dormancy.on_day_changed)
        self.clock.subscribe_hour(self.meetings.on_hour_changed)

    # ── Setup ────────────────────────────────────────────────────────

    @classmethod
    def from_data(cls, data_dir: str | Path | None = None,
                  rng: random.Random | None = None,
                  **kwargs) -> "WorldSim":
        """Build a town from catalog.toml, world.toml and npcs.toml."""
        from core.data import DATA_DIR, load_catalog, load_locations, load_agents

        data_dir = Path(data_dir) if data_dir else DATA_DIR
        registry = load_catalog(data_dir / "catalog.toml")
        locations, spots = load_locations(data_dir / "world.toml")
        sim = cls(registry=registry, locations=locations,
                  meeting_spots=spots, rng=rng, **kwargs)
        ids = load_agents(sim.world, locations, data_dir / "npcs.toml")
        for eid in ids.values():
            sim.adopt_agent(eid)
        print(f"[SIM] Town ready: {len(ids)} agents, "
              f"{len(spots)} meeting spots, "
              f"{len(registry.weapon_ids())} weapons")
        return sim

    def spawn_agent(self, name: str, *,
                    schedule: Schedule | None = None,
                    waypoints: dict[Activity, Waypoint] | None = None,
                    position: tuple[float, float] | None = None,
                    flee_from_gunshots: bool = True) -> int:
        """Create an agent with every component the services expect."""
        eid = self.world.spawn()
        self.world.add(eid, Identity(name=name, kind="npc"))
        self.world.add(eid, schedule or Schedule())
        self.world.add(eid, Waypoints(points=dict(waypoints or {})))
        self.world.add(eid, FleeState(enabled=flee_from_gunshots))
        if position is not None:
            self.world.add(eid, Position(*position))
        self.adopt_agent(eid)
        return eid

    def adopt_agent(self, eid: int) -> None:
        """Fill in runtime components and register the agent.

        Agents start in the state their schedule gives for the current
        hour, standing at that state's waypoint unless placed already.
        """
        w = self.world
        if not w.has(eid, Schedule):
            w.add(eid, Schedule())
        if not w.has(eid, Waypoints):
            w.add(eid, Waypoints())
        if not w.has(eid, FleeState):
            w.add(eid, FleeState())
        if not w.has(eid, Velocity):
            w.add(eid, Velocity())
        w.add(eid, Meeting())
        w.add(eid, Presence(active=True))

        day = self.clock.day_of_week
        state = determine_state(w.get(eid, Schedule), self.clock.hour, day)
        w.add(eid, Routine(state=state, day=day))

        if not w.has(eid, Position):
            spot = self.machine.location_for(eid, state, self.clock.hour)
            w.add(eid, Position(spot.x, spot.y) if spot else Position())
        self.dormancy.register(eid)

    def spawn_player(self, x: float = 0.0, y: float = 0.0,
                     nearby_range: float | None = None) -> int:
        eid = self.world.spawn()
        self.world.add(eid, Identity(name="Player", kind="player"))
        self.world.add(eid, Position(x, y))
        self.world.add(eid, Player(nearby_range=nearby_range
                                   if nearby_range is not None
                                   else _tun("meetings", "player_nearby_range", 5.0)))
        self.world.add(eid, Inventory())
        self.world.add(eid, new_wallet())
        return eid

    # ── Per-frame tick ───────────────────────────────────────────────

    def tick(self, real_dt: float) -> int:
        """Advance the town by *real_dt* real seconds.

        Returns the number of events drained.
        """
        self.clock.advance(real_dt)
        self.meetings.update_fleeing()
        self.generator.update(self.clock.elapsed)
        self.book.poll_pickups()
        self.book.compact()
        self.movement.movement_system(real_dt)
        return self.bus.drain()

    def run(self, real_seconds: float, step: float = 1.0) -> None:
        """Tick repeatedly for *real_seconds* in steps of *step*."""
        remaining = real_seconds
        while remaining > 1e-9:
            dt = min(step, remaining)
            self.tick(dt)
            remaining -= dt

    # ── Controls ─────────────────────────────────────────────────────

    def set_active(self, eid: int, active: bool) -> None:
        """Switch an agent on or off (off: no broadcasts until woken)."""
        presence = self.world.get(eid, Presence)
        if presence is None:
            return
        presence.active = active

    def rest_until_morning(self, morning_hour: float | None = None) -> None:
        """Player sleeps: jump to the next morning.  The day change wakes
        dormant agents the usual way."""
        if morning_hour is None:
            morning_hour = _tun("clock", "morning_hour", 6.0)
        self.clock.set_time(morning_hour, advance_day=True)
        self.bus.drain()

    def reset_all_to_bed(self) -> None:
        for eid, _ in self.world.all_of(Routine):
            self.meetings.reset_to_bed(eid)
        self.bus.drain()

    def gunshot(self, x: float, y: float) -> list[int]:
        return report_gunshot(self.world, self.meetings, self.bus, x, y)

    # ── Queries ──────────────────────────────────────────────────────

    def agent(self, name: str) -> int | None:
        for eid, ident in self.world.all_of(Identity):
            if ident.name == name and ident.kind == "npc":
                return eid
        return None

    def state_of(self, eid: int) -> Activity | None:
        routine = self.world.get(eid, Routine)
        return routine.state if routine else None

    def debug_info(self) -> dict:
        return {
            "time": repr(self.clock),
            "agents": self.world.count(Routine),
            "open_orders": len(self.book.open_orders()),
            "archived_orders": len(self.book.archive),
            "pending_events": self.bus.pending_count(),
            "warnings": len(self.log.warnings()),
        }

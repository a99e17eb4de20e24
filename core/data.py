"""
core/data.py — TOML → ECS loader

Reads data files and spawns entities with the right components.
The mapping from TOML keys to component constructors lives here.

You define your components in components/.
You define your town in .toml files.
This file connects them.

Usage:
    loader = DataLoader(world)
    loader.register("position", Position)      # maps TOML key → component class
    loader.register("schedule", Schedule)
    npc_ids = loader.load("data/npcs.toml")    # returns {name: entity_id}

    registry = load_catalog("data/catalog.toml")
    locations, meeting_spots = load_locations("data/world.toml")
"""

from __future__ import annotations
try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib
from pathlib import Path
from dataclasses import fields
from core.ecs import World


DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _read(path: str | Path) -> dict:
    with open(Path(path), "rb") as f:
        return tomllib.load(f)


class DataLoader:
    def __init__(self, world: World):
        self.world = world
        self._registry: dict[str, type] = {}

    def register(self, key: str, comp_type: type):
        """Map a TOML section name to a component class.

        In the TOML file:
            [vera.position]
            x = 5.0
            y = 3.0

        With register("position", Position), this creates
        Position(x=5.0, y=3.0) on vera's entity.
        """
        self._registry[key] = comp_type

    def load(self, path: str | Path) -> dict[str, int]:
        """Load a TOML file. Each top-level key becomes an entity.
        Returns {name: entity_id} so you can reference them."""
        return self.load_tables(_read(path))

    def load_tables(self, data: dict) -> dict[str, int]:
        ids: dict[str, int] = {}

        for name, section in data.items():
            if not isinstance(section, dict):
                continue

            eid = self.world.spawn()
            ids[name] = eid

            for key, value in section.items():
                if key in self._registry and isinstance(value, dict):
                    # Nested table → component with kwargs
                    comp_type = self._registry[key]
                    comp = _build_component(comp_type, value)
                    self.world.add(eid, comp)
                elif key in self._registry:
                    # Bare value → component with single positional arg
                    comp_type = self._registry[key]
                    comp = comp_type(value)
                    self.world.add(eid, comp)

        return ids


def _build_component(comp_type: type, kwargs: dict):
    """Build a dataclass instance, skipping unknown fields."""
    valid = {f.name for f in fields(comp_type)} if hasattr(comp_type, '__dataclass_fields__') else set()
    if valid:
        filtered = {k: v for k, v in kwargs.items() if k in valid}
        return comp_type(**filtered)
    return comp_type(**kwargs)


# ── Catalog ──────────────────────────────────────────────────────────

def load_catalog(path: str | Path | None = None, registry=None):
    """Populate an ``ItemRegistry`` from catalog.toml and return it.

        [weapons.pistol]
        name = "Pistol"
        value = 250

        [attachments.red_dot]
        name = "Red Dot"
        slot = "sight"
        value = 40
    """
    from components import ItemRegistry

    if registry is None:
        registry = ItemRegistry()
    data = _read(path or DATA_DIR / "catalog.toml")

    for weapon_id, entry in data.get("weapons", {}).items():
        extra = {k: v for k, v in entry.items() if k not in ("name", "value")}
        registry.register_weapon(weapon_id, entry.get("name", weapon_id),
                                 entry.get("value", 0.0), **extra)
    for attachment_id, entry in data.get("attachments", {}).items():
        extra = {k: v for k, v in entry.items()
                 if k not in ("name", "slot", "value")}
        registry.register_attachment(attachment_id,
                                     entry.get("name", attachment_id),
                                     entry.get("slot", ""),
                                     entry.get("value", 0.0), **extra)

    print(f"[CATALOG] {len(registry.weapon_ids())} weapons loaded")
    return registry


# ── Town locations ───────────────────────────────────────────────────

def load_locations(path: str | Path | None = None):
    """Read world.toml → ``({name: Waypoint}, [meeting Waypoints])``.

        meeting_spots = ["alley", "docks"]

        [locations.alley]
        x = 40.0
        y = -12.0
    """
    from components import Waypoint

    data = _read(path or DATA_DIR / "world.toml")
    locations = {
        name: Waypoint(name=name, x=float(p.get("x", 0.0)),
                       y=float(p.get("y", 0.0)))
        for name, p in data.get("locations", {}).items()
    }
    spots = []
    for name in data.get("meeting_spots", []):
        if name in locations:
            spots.append(locations[name])
        else:
            print(f"[DATA] Unknown meeting spot '{name}' — skipped")
    return locations, spots


# ── Agents ───────────────────────────────────────────────────────────

def agent_loader(world: World) -> DataLoader:
    """A ``DataLoader`` with the agent component tables registered."""
    from components import Identity, Position, Schedule, FleeState

    loader = DataLoader(world)
    loader.register("identity", Identity)
    loader.register("position", Position)
    loader.register("schedule", Schedule)
    loader.register("flee", FleeState)
    return loader


def load_agents(world: World, locations: dict,
                path: str | Path | None = None) -> dict[str, int]:
    """Spawn the agents of npcs.toml.  Returns {key: entity_id}.

    ``waypoints`` maps activity names to location names; ``[[key.weekly]]``
    rows become ``ScheduleEntry`` items on the agent's ``Schedule``.
    Unknown locations are reported and left out.
    """
    from components import (
        Activity, BASE_STATES, Identity, Schedule, ScheduleEntry, Waypoints,
    )

    data = _read(path or DATA_DIR / "npcs.toml")
    ids = agent_loader(world).load_tables(data)

    for key, eid in ids.items():
        section = data[key]
        if not world.has(eid, Identity):
            world.add(eid, Identity(name=key))
        schedule = world.get(eid, Schedule)
        if schedule is None:
            schedule = Schedule()
            world.add(eid, schedule)

        points = {}
        for state_name, loc_name in section.get("waypoints", {}).items():
            state = Activity(state_name)
            if state not in BASE_STATES:
                print(f"[DATA] {key}: no waypoint allowed for {state} — skipped")
                continue
            loc = locations.get(loc_name)
            if loc is None:
                print(f"[DATA] {key}: unknown location '{loc_name}' — skipped")
                continue
            points[state] = loc
        world.add(eid, Waypoints(points=points))

        for row in section.get("weekly", []):
            loc = locations.get(row.get("location", ""))
            schedule.weekly.append(ScheduleEntry(
                day=row["day"],
                start=float(row["start"]),
                end=float(row["end"]),
                state=Activity(row["state"]),
                location=loc,
            ))

    print(f"[DATA] {len(ids)} agents loaded")
    return ids

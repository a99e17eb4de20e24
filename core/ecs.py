"""
core/ecs.py — Entity-Component-System

Entities are ints. Components are any object, stored by type.
Query by component types to get matching entities.

    w = World()
    e = w.spawn()
    w.add(e, Identity(name="Vera"))
    w.add(e, Routine())

    for eid, ident, routine in w.query(Identity, Routine):
        print(ident.name, routine.state)

Agents are never deleted while the simulation runs; ``kill`` only
marks them dead so registries can prune their references.
"""

from __future__ import annotations
import math
from typing import Any, Iterator


class World:
    def __init__(self):
        self._next_id = 0
        self._stores: dict[type, dict[int, Any]] = {}
        self._dead: set[int] = set()

    # -- Entities --

    def spawn(self) -> int:
        self._next_id += 1
        return self._next_id

    def kill(self, eid: int):
        self._dead.add(eid)

    def alive(self, eid: int) -> bool:
        return 0 < eid <= self._next_id and eid not in self._dead

    # -- Components --

    def add(self, eid: int, comp: Any):
        self._stores.setdefault(type(comp), {})[eid] = comp

    def get(self, eid: int, comp_type: type) -> Any | None:
        return self._stores.get(comp_type, {}).get(eid)

    def has(self, eid: int, comp_type: type) -> bool:
        return eid in self._stores.get(comp_type, {})

    # -- Queries --

    def query(self, *types: type) -> Iterator[tuple]:
        """Yield (eid, comp1, comp2, ...) for entities that have ALL types.

        Entities are yielded in spawn order so every sweep over agents
        is deterministic.
        """
        if not types:
            return
        buckets = [self._stores.get(t, {}) for t in types]
        smallest = min(buckets, key=len)
        for eid in sorted(smallest):
            if eid in self._dead:
                continue
            if all(eid in b for b in buckets):
                yield (eid, *(b[eid] for b in buckets))

    def all_of(self, comp_type: type) -> Iterator[tuple[int, Any]]:
        """Yield (eid, component) for every living entity with this type."""
        for eid, comp in sorted(self._stores.get(comp_type, {}).items()):
            if eid not in self._dead:
                yield eid, comp

    def count(self, comp_type: type) -> int:
        return sum(1 for _ in self.all_of(comp_type))

    def nearby(self, x: float, y: float, radius: float,
               *types: type) -> Iterator[tuple]:
        """Yield ``(eid, pos, comp2, ..., dist)`` within *radius* of (x, y).

        The first type must be the position component (anything with
        ``x``/``y`` attributes).
        """
        for result in self.query(*types):
            pos = result[1]
            dist = math.hypot(pos.x - x, pos.y - y)
            if dist <= radius:
                yield (*result, dist)

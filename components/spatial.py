"""components.spatial — Position, velocity and named waypoints.

All coordinates are in metres on the town's ground plane.
"""

from __future__ import annotations
from dataclasses import dataclass
import math


@dataclass
class Position:
    x: float = 0.0        # m
    y: float = 0.0        # m

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)


@dataclass
class Velocity:
    x: float = 0.0        # m/s
    y: float = 0.0        # m/s


@dataclass(frozen=True)
class Waypoint:
    """A named, fixed point in the town (bed, workplace, meeting spot …).

    Waypoints are shared by reference between agents and orders, so
    they are immutable.
    """
    name: str
    x: float = 0.0        # m
    y: float = 0.0        # m

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)

"""conftest.py — Shared test town.

Every test runs on code defaults: the tuning table is cleared before
and after each test, so a one-hour game step is 60 real seconds
(24-minute days).
"""
from __future__ import annotations
import random

import pytest

from core import tuning
from core.clock import DayNightClock
from components import Activity, Waypoint, ItemRegistry
from simulation.world_sim import WorldSim


LOCATIONS = {
    "bed": Waypoint("bed", -10.0, 0.0),
    "diner": Waypoint("diner", 0.0, 5.0),
    "shop": Waypoint("shop", 10.0, 0.0),
    "park": Waypoint("park", 0.0, -10.0),
    "alley": Waypoint("alley", 20.0, 20.0),
    "docks": Waypoint("docks", 40.0, -30.0),
}


def default_waypoints() -> dict:
    return {
        Activity.SLEEPING: LOCATIONS["bed"],
        Activity.EATING: LOCATIONS["diner"],
        Activity.WORKING: LOCATIONS["shop"],
        Activity.IDLE: LOCATIONS["park"],
    }


def small_catalog() -> ItemRegistry:
    reg = ItemRegistry()
    reg.register_weapon("pistol", "Pistol", 250)
    reg.register_weapon("rifle", "Rifle", 600)
    reg.register_attachment("red_dot", "Red Dot", "sight", 40)
    reg.register_attachment("scope_4x", "4x Scope", "sight", 90)
    reg.register_attachment("foregrip", "Foregrip", "underbarrel", 30)
    reg.register_attachment("suppressor", "Suppressor", "barrel", 80)
    reg.register_attachment("extended_mag", "Extended Mag", "magazine", 35)
    reg.register_attachment("laser", "Laser", "side_rail", 40)
    return reg


@pytest.fixture(autouse=True)
def _code_defaults():
    tuning.clear()
    yield
    tuning.clear()


@pytest.fixture
def make_sim():
    """``make_sim(start_hour=10.0)`` → a WorldSim with a small catalog."""
    def _make(start_hour: float = 10.0, generate_orders: bool = False,
              seed: int = 1) -> WorldSim:
        return WorldSim(
            clock=DayNightClock(day_length_minutes=24.0, start_hour=start_hour),
            registry=small_catalog(),
            locations=LOCATIONS,
            meeting_spots=[LOCATIONS["alley"], LOCATIONS["docks"]],
            rng=random.Random(seed),
            generate_orders=generate_orders,
        )
    return _make


@pytest.fixture
def waypoints():
    return default_waypoints()

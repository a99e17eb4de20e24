"""components — ECS component dataclasses, organised by domain.

Submodules
----------
spatial        Position, Velocity, Waypoint
social         Identity, TextMessage, Conversation
schedule       Activity, Schedule, ScheduleEntry, Routine, Waypoints,
               Meeting, Presence, FleeState
orders         WeaponOrder, Build, WeaponInstance, SLOTS
rpg            Inventory, Wallet, Transaction
resources      Player
item_registry  ItemRegistry
dev_log        DevLog

All public names are re-exported here so systems can do
``from components import Routine, Meeting``.
"""

# ── Spatial ──────────────────────────────────────────────────────────
from components.spatial import Position, Velocity, Waypoint

# ── Social ───────────────────────────────────────────────────────────
from components.social import Identity, TextMessage, Conversation

# ── Schedule ─────────────────────────────────────────────────────────
from components.schedule import (
    Activity, BASE_STATES, Schedule, ScheduleEntry, Routine, Waypoints,
    Meeting, Presence, FleeState,
)

# ── Orders / builds ──────────────────────────────────────────────────
from components.orders import SLOTS, WeaponOrder, Build, WeaponInstance

# ── RPG ──────────────────────────────────────────────────────────────
from components.rpg import Inventory, Wallet, Transaction

# ── Markers ──────────────────────────────────────────────────────────
from components.resources import Player

# ── Registries / logs ────────────────────────────────────────────────
from components.item_registry import ItemRegistry
from components.dev_log import DevLog

__all__ = [
    # spatial
    "Position", "Velocity", "Waypoint",
    # social
    "Identity", "TextMessage", "Conversation",
    # schedule
    "Activity", "BASE_STATES", "Schedule", "ScheduleEntry", "Routine",
    "Waypoints", "Meeting", "Presence", "FleeState",
    # orders
    "SLOTS", "WeaponOrder", "Build", "WeaponInstance",
    # rpg
    "Inventory", "Wallet", "Transaction",
    # markers
    "Player",
    # registries
    "ItemRegistry", "DevLog",
]

"""components.orders — Weapon orders and immutable build snapshots.

Both carry the same five optional attachment slots.  A slot holds the
stable catalog id of an attachment, or ``None`` when empty.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from components.spatial import Waypoint


SLOTS = ("sight", "underbarrel", "barrel", "magazine", "side_rail")

SLOT_LABELS = {
    "sight": "Sight",
    "underbarrel": "Underbarrel",
    "barrel": "Barrel",
    "magazine": "Magazine",
    "side_rail": "Side Rail",
}


@dataclass
class WeaponOrder:
    """A requested build plus the negotiated price and pickup time.

    ``pickup_time`` is an absolute real-clock value (``clock.elapsed``
    seconds).  ``pickup_time_game_hour`` is the matching hour of day.
    ``pickup_checked`` is set once the pickup poll has re-checked the
    agent's meeting.  ``outcome`` is set once the order completes: "delivered", "failed"
    or "expired".
    """
    order_id: int
    agent: int
    npc_name: str
    weapon_id: str | None
    meeting_location: Waypoint | None = None
    sight: str | None = None
    underbarrel: str | None = None
    barrel: str | None = None
    magazine: str | None = None
    side_rail: str | None = None
    agreed_price: float = 0.0
    pickup_time: float = 0.0
    pickup_time_game_hour: float = 0.0
    is_price_set: bool = False
    is_accepted: bool = False
    is_completed: bool = False
    pickup_checked: bool = False
    outcome: str | None = None

    def slots(self) -> tuple[str | None, ...]:
        return tuple(getattr(self, s) for s in SLOTS)

    def requested_attachments(self) -> dict[str, str]:
        return {s: getattr(self, s) for s in SLOTS if getattr(self, s)}


@dataclass(frozen=True)
class Build:
    """Immutable snapshot of an assembled weapon (a "configuration").

    ``build_id`` is the stable id of the physical weapon it was taken
    from, so two snapshots of the same weapon share it.
    """
    build_id: str
    weapon_id: str | None
    sight: str | None = None
    underbarrel: str | None = None
    barrel: str | None = None
    magazine: str | None = None
    side_rail: str | None = None

    def slots(self) -> tuple[str | None, ...]:
        return tuple(getattr(self, s) for s in SLOTS)

    def key(self) -> tuple:
        """Identity used for duplicate detection: id + weapon + all slots."""
        return (self.build_id, self.weapon_id, *self.slots())


@dataclass
class WeaponInstance:
    """A weapon the holder is carrying, with its live attachment map.

    ``attachments`` maps slot name → attachment id.  Attachments are
    part of the instance, so removing the instance removes them too.
    """
    instance_id: str
    weapon_id: str
    attachments: dict[str, str] = field(default_factory=dict)

    def attach(self, slot: str, attachment_id: str) -> None:
        if slot not in SLOTS:
            raise ValueError(f"unknown attachment slot {slot!r}")
        self.attachments[slot] = attachment_id

    def detach(self, slot: str) -> str | None:
        return self.attachments.pop(slot, None)

    def snapshot(self) -> Build:
        """Freeze the current attachment set into a ``Build``."""
        return Build(
            build_id=self.instance_id,
            weapon_id=self.weapon_id,
            **{s: self.attachments.get(s) for s in SLOTS},
        )

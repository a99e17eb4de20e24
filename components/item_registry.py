"""components.item_registry — Weapon and attachment catalog.

The only component with real lookup logic (pools per slot, display
names, value estimates) so it lives in its own module.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from components.orders import SLOTS, SLOT_LABELS


@dataclass
class ItemRegistry:
    """Lookup table mapping weapon / attachment IDs → catalog data.

    Populated by ``core.data.load_catalog`` from ``catalog.toml``.
    Systems can do::

        name = registry.display_name("red_dot")
        pool = registry.pool("sight")
    """
    _weapons: dict = field(default_factory=dict)
    _attachments: dict = field(default_factory=dict)

    # ── registration ─────────────────────────────────────────────────

    def register_weapon(self, weapon_id: str, name: str,
                        value: float = 0.0, **extra):
        self._weapons[weapon_id] = {"name": name, "value": float(value),
                                    **extra}

    def register_attachment(self, attachment_id: str, name: str,
                            slot: str, value: float = 0.0, **extra):
        if slot not in SLOTS:
            print(f"[CATALOG] {attachment_id}: unknown slot '{slot}' — skipped")
            return
        if attachment_id in self._attachments:
            print(f"[CATALOG] Duplicate attachment ID found: {attachment_id}")
            return
        self._attachments[attachment_id] = {
            "name": name, "slot": slot, "value": float(value), **extra,
        }

    # ── lookups ──────────────────────────────────────────────────────

    def weapon_ids(self) -> list[str]:
        return list(self._weapons)

    def pool(self, slot: str) -> list[str]:
        """All attachment ids that fit *slot*, in catalog order."""
        return [aid for aid, a in self._attachments.items()
                if a["slot"] == slot]

    def display_name(self, item_id: str | None) -> str:
        """Human-readable name for a weapon or attachment ID."""
        if item_id is None:
            return "nothing"
        entry = self._weapons.get(item_id) or self._attachments.get(item_id)
        return entry["name"] if entry else item_id

    def value(self, item_id: str | None) -> float:
        if item_id is None:
            return 0.0
        entry = self._weapons.get(item_id) or self._attachments.get(item_id)
        return float(entry["value"]) if entry else 0.0

    # ── semantic helpers ─────────────────────────────────────────────

    def order_value(self, order) -> float:
        """Suggested price: weapon value plus every requested attachment."""
        total = self.value(order.weapon_id)
        for slot in SLOTS:
            total += self.value(getattr(order, slot))
        return total

    def describe(self, order) -> list[str]:
        """``["Sight: Red Dot", ...]`` for the filled slots of *order*."""
        return [f"{SLOT_LABELS[s]}: {self.display_name(getattr(order, s))}"
                for s in SLOTS if getattr(order, s)]

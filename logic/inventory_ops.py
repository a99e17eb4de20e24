"""logic/inventory_ops.py — Canonical holder inventory operations.

Everything that reads or mutates a holder's ``Inventory`` goes through
here, so the delivery verifier and the headless player agree on what
"holding a weapon" means.

Public API
----------
``contains_item``   — stackable item count check
``add_item``        — add stackable items
``remove_item``     — decrement item count, delete if zero
``add_weapon``      — put an assembled weapon into the inventory
``remove_weapon``   — take exactly one weapon instance out (with attachments)
``find_weapon``     — look up an instance by id
``held_builds``     — immutable ``Build`` snapshots of every held weapon
"""

from __future__ import annotations
import uuid

from components.orders import Build, WeaponInstance


# ── Stackable items ──────────────────────────────────────────────────

def contains_item(inv, item_id: str, count: int = 1) -> bool:
    return inv.items.get(item_id, 0) >= count


def add_item(inv, item_id: str, count: int = 1) -> int:
    """Add *count* of *item_id*.  Returns the new stack size."""
    inv.items[item_id] = inv.items.get(item_id, 0) + count
    return inv.items[item_id]


def remove_item(inv, item_id: str, count: int = 1) -> bool:
    """Decrement *item_id* in *inv.items* by *count*.  Delete if zero.

    Returns True if the item was available and removed.
    """
    qty = inv.items.get(item_id, 0)
    if qty < count:
        return False
    inv.items[item_id] = qty - count
    if inv.items[item_id] <= 0:
        del inv.items[item_id]
    return True


# ── Assembled weapons ────────────────────────────────────────────────

def add_weapon(inv, weapon_id: str,
               attachments: dict[str, str] | None = None,
               instance_id: str | None = None) -> WeaponInstance:
    """Create a weapon instance in *inv* and return it."""
    inst = WeaponInstance(
        instance_id=instance_id or uuid.uuid4().hex,
        weapon_id=weapon_id,
    )
    for slot, attachment_id in (attachments or {}).items():
        if attachment_id:
            inst.attach(slot, attachment_id)
    inv.weapons.append(inst)
    return inst


def find_weapon(inv, instance_id: str) -> WeaponInstance | None:
    for inst in inv.weapons:
        if inst.instance_id == instance_id:
            return inst
    return None


def remove_weapon(inv, instance_id: str) -> WeaponInstance | None:
    """Remove exactly one weapon instance.  Its attachments go with it."""
    for i, inst in enumerate(inv.weapons):
        if inst.instance_id == instance_id:
            return inv.weapons.pop(i)
    return None


def held_builds(inv) -> list[Build]:
    """Snapshot every held weapon from its *current* attachment set."""
    return [inst.snapshot() for inst in inv.weapons]

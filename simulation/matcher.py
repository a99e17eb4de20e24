"""simulation/matcher.py — Exact structural match of a build against an order.

A build satisfies an order only when the weapon is the same and every
one of the five attachment slots agrees: both empty, or both the same
attachment id.  An extra attachment the order did not ask for is as
much a mismatch as a missing one.
"""

from __future__ import annotations

from components import SLOTS, Build, WeaponOrder


def matches(build: Build | None, order: WeaponOrder | None) -> bool:
    if build is None or order is None:
        return False
    if build.weapon_id != order.weapon_id:
        return False
    return all(getattr(build, s) == getattr(order, s) for s in SLOTS)


def slot_mismatches(build: Build, order: WeaponOrder) -> list[str]:
    """Names of the slots (and ``"weapon"``) where *build* differs."""
    out = []
    if build.weapon_id != order.weapon_id:
        out.append("weapon")
    out.extend(s for s in SLOTS if getattr(build, s) != getattr(order, s))
    return out

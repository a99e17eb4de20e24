"""test_matcher.py — Exact slot-for-slot matching of builds against orders."""
from __future__ import annotations

import pytest

from components import SLOTS, Build, WeaponOrder
from simulation.matcher import matches, slot_mismatches


def _order(**slots) -> WeaponOrder:
    return WeaponOrder(order_id=1, agent=1, npc_name="Vera",
                       weapon_id="pistol", **slots)


def _build(weapon="pistol", **slots) -> Build:
    return Build(build_id="b1", weapon_id=weapon, **slots)


def test_extra_attachment_is_a_mismatch():
    order = _order(sight="red_dot")
    build = _build(sight="red_dot", underbarrel="foregrip")
    assert not matches(build, order)
    assert slot_mismatches(build, order) == ["underbarrel"]


def test_exact_build_matches():
    order = _order(sight="red_dot", barrel="suppressor")
    assert matches(_build(sight="red_dot", barrel="suppressor"), order)
    assert matches(_build(), _order())


def test_weapon_must_match_first():
    order = _order(sight="red_dot")
    build = _build(weapon="rifle", sight="red_dot")
    assert not matches(build, order)
    assert slot_mismatches(build, order) == ["weapon"]


@pytest.mark.parametrize("slot", SLOTS)
def test_any_single_slot_difference_fails(slot):
    full = {s: f"{s}_a" for s in SLOTS}
    order = _order(**full)
    assert matches(_build(**full), order)

    swapped = dict(full, **{slot: f"{slot}_b"})
    assert not matches(_build(**swapped), order)

    missing = dict(full, **{slot: None})
    assert not matches(_build(**missing), order)
    assert slot_mismatches(_build(**missing), order) == [slot]


def test_none_inputs_never_match():
    assert not matches(None, _order())
    assert not matches(_build(), None)

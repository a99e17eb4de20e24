"""test_delivery.py — Settlement against the holder's live inventory, the
build ledger, and the player wallet."""
from __future__ import annotations

import pytest

from components import Activity, Build, Inventory, Meeting, Wallet
from conftest import LOCATIONS
from logic.inventory_ops import (
    add_weapon, find_weapon, held_builds, add_item, remove_item, contains_item,
)
from simulation.delivery import BuildLedger
from simulation.economy import (
    add_money, subtract_money, can_afford, set_balance, recent_transactions,
)


ALLEY = LOCATIONS["alley"]


def _deal(make_sim, waypoints, attachments=None, price=450.0):
    """Vera has ordered a pistol and is on her way to the alley."""
    sim = make_sim(start_hour=10.0)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    player = sim.spawn_player(ALLEY.x, ALLEY.y)
    order = sim.book.create(vera, "pistol", ALLEY, attachments)
    sim.book.negotiate(order.order_id, price, 0.5)
    assert sim.state_of(vera) == Activity.GOING_TO_MEETING
    return sim, vera, player, order


# ════════════════════════════════════════════════════════════════════════
#  Successful delivery
# ════════════════════════════════════════════════════════════════════════

def test_matching_weapon_settles(make_sim, waypoints):
    sim, vera, player, order = _deal(make_sim, waypoints, {"sight": "red_dot"})
    inv = sim.world.get(player, Inventory)
    wrong = add_weapon(inv, "rifle", {"sight": "red_dot"})
    right = add_weapon(inv, "pistol", {"sight": "red_dot"})

    result = sim.verifier.deliver(player, vera)

    assert result.success
    assert result.instance_id == right.instance_id
    assert result.amount == 450.0
    assert [w.instance_id for w in inv.weapons] == [wrong.instance_id]
    wallet = sim.world.get(player, Wallet)
    assert wallet.balance == pytest.approx(550.0)
    assert wallet.history[-1].description == "Weapon delivery to Vera"
    assert order.outcome == "delivered" and order.is_completed
    assert not sim.world.get(vera, Meeting).pending
    assert sim.state_of(vera) == Activity.WORKING
    assert sim.messenger.conversation("Vera").last().content == (
        "Thanks! Pleasure doing business.")
    assert [e.order_id for e in sim.bus.pending("DeliverySettled")] == [1]


def test_only_one_of_two_identical_weapons_is_taken(make_sim, waypoints):
    sim, vera, player, order = _deal(make_sim, waypoints)
    inv = sim.world.get(player, Inventory)
    add_weapon(inv, "pistol")
    add_weapon(inv, "pistol")
    assert sim.verifier.deliver(player, vera).success
    assert len(inv.weapons) == 1


# ════════════════════════════════════════════════════════════════════════
#  Failed delivery
# ════════════════════════════════════════════════════════════════════════

def test_live_attachments_are_read_at_delivery(make_sim, waypoints):
    sim, vera, player, order = _deal(make_sim, waypoints, {"sight": "red_dot"})
    inv = sim.world.get(player, Inventory)
    inst = add_weapon(inv, "pistol", {"sight": "red_dot"})
    sim.ledger.register(inst.snapshot())
    inst.detach("sight")                       # after the build was recorded

    result = sim.verifier.deliver(player, vera)

    assert not result.success
    assert result.mismatches == ["sight"]
    assert "Sight" in result.reason
    assert order.is_completed and order.outcome == "failed"
    assert find_weapon(inv, inst.instance_id) is inst
    assert sim.world.get(player, Wallet).balance == pytest.approx(100.0)
    assert sim.messenger.conversation("Vera").last().content == (
        "Delivery failed. You don't have the required weapon.")
    assert [e.reason for e in sim.bus.pending("DeliveryFailed")] == [result.reason]
    assert not sim.world.get(vera, Meeting).pending


def test_delivery_is_a_single_attempt(make_sim, waypoints):
    sim, vera, player, order = _deal(make_sim, waypoints)
    assert sim.verifier.deliver(player, vera).reason == "no weapons held"
    add_weapon(sim.world.get(player, Inventory), "pistol")
    again = sim.verifier.deliver(player, vera)
    assert not again.success
    assert again.reason == "no accepted order"
    assert again.order_id is None


def test_holder_without_wallet_is_refused(make_sim, waypoints):
    sim, vera, player, order = _deal(make_sim, waypoints)
    courier = sim.world.spawn()
    inv = Inventory()
    sim.world.add(courier, inv)
    add_weapon(inv, "pistol")

    result = sim.verifier.deliver(courier, vera)

    assert not result.success
    assert result.reason == "holder has no wallet"
    assert len(inv.weapons) == 1
    assert not order.is_completed
    assert sim.world.get(vera, Meeting).pending
    assert sim.log.warnings()[-1]["msg"] == "holder has no wallet"


def test_wrong_weapon_reason(make_sim, waypoints):
    sim, vera, player, order = _deal(make_sim, waypoints)
    add_weapon(sim.world.get(player, Inventory), "rifle")
    result = sim.verifier.deliver(player, vera)
    assert result.reason == "no Pistol held"


# ════════════════════════════════════════════════════════════════════════
#  Build ledger
# ════════════════════════════════════════════════════════════════════════

def test_ledger_skips_duplicate_builds():
    ledger = BuildLedger()
    a = Build("w1", "pistol", sight="red_dot")
    assert ledger.register(a)
    assert not ledger.register(Build("w1", "pistol", sight="red_dot"))
    assert ledger.register(Build("w1", "pistol", sight="scope_4x"))
    assert ledger.register(Build("w2", "pistol", sight="red_dot"))
    assert len(ledger) == 3
    assert len(ledger.for_id("w1")) == 2


def test_snapshots_are_immutable():
    inv = Inventory()
    inst = add_weapon(inv, "pistol", {"barrel": "suppressor"})
    (build,) = held_builds(inv)
    assert build.barrel == "suppressor"
    with pytest.raises(AttributeError):
        build.barrel = None
    with pytest.raises(ValueError):
        inst.attach("stock", "wood")


# ════════════════════════════════════════════════════════════════════════
#  Inventory + wallet helpers
# ════════════════════════════════════════════════════════════════════════

def test_stackable_items():
    inv = Inventory()
    add_item(inv, "scrap", 3)
    assert contains_item(inv, "scrap", 3)
    assert not remove_item(inv, "scrap", 4)
    assert remove_item(inv, "scrap", 3)
    assert "scrap" not in inv.items


def test_wallet_validation():
    wallet = Wallet(balance=100.0)
    assert not add_money(wallet, -1.0)
    assert not subtract_money(wallet, 150.0)
    assert can_afford(wallet, 100.0)
    assert subtract_money(wallet, 40.0, "Parts")
    assert add_money(wallet, 10.0)
    assert wallet.balance == pytest.approx(70.0)
    assert [str(t) for t in wallet.history] == [
        "Parts: -40.00 (Balance: 60.00)",
        "Money added: +10.00 (Balance: 70.00)",
    ]

    assert set_balance(wallet, 500.0, "Debug")
    assert not set_balance(wallet, -1.0)
    (last,) = recent_transactions(wallet, 1)
    assert (last.amount, last.balance_after) == (430.0, 500.0)
    assert len(recent_transactions(wallet)) == 3

"""test_orders.py — Order generation, negotiation, pickup poll, expiry."""
from __future__ import annotations

import pytest

from components import Activity, Meeting, SLOTS
from conftest import LOCATIONS


ALLEY = LOCATIONS["alley"]


def _town(make_sim, waypoints, start_hour=10.0):
    sim = make_sim(start_hour=start_hour)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    return sim, vera


# ════════════════════════════════════════════════════════════════════════
#  Creation
# ════════════════════════════════════════════════════════════════════════

def test_create_texts_request(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    order = sim.book.create(vera, "pistol", ALLEY,
                            {"sight": "red_dot", "barrel": "suppressor"})
    assert order.order_id == 1
    assert order.npc_name == "Vera"
    assert order.slots() == ("red_dot", None, "suppressor", None, None)

    conv = sim.messenger.conversation("Vera")
    assert conv.has_unread
    assert conv.last().content == ("I need a new Pistol with Sight: Red Dot, "
                                   "Barrel: Suppressor at alley.")
    assert conv.last().message_type == "weapon_request"
    requested = sim.bus.pending("OrderRequested")
    assert [(e.order_id, e.eid) for e in requested] == [(1, vera)]


def test_one_open_order_per_agent(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    assert sim.book.create(vera, "pistol", ALLEY) is not None
    assert sim.book.create(vera, "rifle", ALLEY) is None
    assert len(sim.book.active) == 1
    assert sim.log.warnings()[-1]["msg"] == "create refused: open order"


def test_unknown_slot_is_refused(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    assert sim.book.create(vera, "pistol", ALLEY, {"stock": "wood"}) is None
    assert sim.book.active == []


# ════════════════════════════════════════════════════════════════════════
#  Negotiation
# ════════════════════════════════════════════════════════════════════════

def test_negotiate_books_meeting(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    order = sim.book.create(vera, "pistol", ALLEY)
    assert sim.book.negotiate(order.order_id, 450.0, 3.0)

    assert order.is_price_set and order.is_accepted
    assert order.agreed_price == 450.0
    assert order.pickup_time == pytest.approx(180.0)
    assert order.pickup_time_game_hour == pytest.approx(13.0)

    m = sim.world.get(vera, Meeting)
    assert m.pending and m.location is ALLEY
    assert m.meeting_time == pytest.approx(13.0)

    assert sim.messenger.conversation("Vera").last().content == (
        "$450 in 3 minutes? Sounds good, I'll meet you at alley.")
    accepted = sim.bus.pending("OrderAccepted")
    assert [(e.order_id, e.price) for e in accepted] == [(1, 450.0)]
    assert sim.book.first_unpriced_for(vera) is None
    assert sim.book.accepted_for(vera) is order


def test_negotiate_rejects_repeat_and_bad_offers(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    order = sim.book.create(vera, "pistol", ALLEY)
    assert not sim.book.negotiate(order.order_id, -5.0, 3.0)
    assert not sim.book.negotiate(99, 100.0, 3.0)
    assert sim.book.negotiate(order.order_id, 100.0, 3.0)
    assert not sim.book.negotiate(order.order_id, 200.0, 1.0)
    assert order.agreed_price == 100.0


def test_negotiate_for_agent(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    assert not sim.book.negotiate_for_agent(vera, 100.0, 3.0)
    order = sim.book.create(vera, "rifle", ALLEY)
    assert sim.book.negotiate_for_agent(vera, 700.0, 2.0)
    assert order.agreed_price == 700.0


def test_order_value_suggests_price(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    order = sim.book.create(vera, "pistol", ALLEY,
                            {"sight": "red_dot", "side_rail": "laser"})
    assert sim.registry.order_value(order) == pytest.approx(330.0)


# ════════════════════════════════════════════════════════════════════════
#  Pickup poll
# ════════════════════════════════════════════════════════════════════════

def test_unmet_order_expires_after_meeting(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    order = sim.book.create(vera, "pistol", ALLEY)
    sim.book.negotiate(order.order_id, 300.0, 3.0)

    sim.run(182.0)
    assert not order.is_completed
    assert order.pickup_checked
    assert sim.state_of(vera) == Activity.GOING_TO_MEETING

    sim.run(10.0)                              # wait window (5 s) runs out
    assert order.is_completed
    assert order.outcome == "expired"
    assert order in sim.book.archive and order not in sim.book.active
    assert sim.state_of(vera) == Activity.WORKING
    assert sim.bus.stats().get("OrderExpired") == 1
    assert sim.messenger.conversation("Vera").last().content.startswith(
        "You never showed up")


def test_pickup_poll_rebooks_lost_meeting(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    order = sim.book.create(vera, "pistol", ALLEY)
    sim.book.negotiate(order.order_id, 300.0, 3.0)
    sim.run(30.0)
    sim.meetings.reset_to_bed(vera)
    assert not sim.world.get(vera, Meeting).pending

    sim.run(151.0)                             # pickup time passed
    assert sim.world.get(vera, Meeting).pending
    assert sim.state_of(vera) == Activity.GOING_TO_MEETING
    assert not order.is_completed


def test_compact_moves_completed(make_sim, waypoints):
    sim, vera = _town(make_sim, waypoints)
    order = sim.book.create(vera, "pistol", ALLEY)
    sim.book.complete(order.order_id, "failed")
    assert not sim.book.complete(order.order_id, "delivered")
    assert sim.book.compact() == 1
    assert sim.book.get(order.order_id) is order
    assert sim.book.active_for(vera) is None


# ════════════════════════════════════════════════════════════════════════
#  Generator
# ════════════════════════════════════════════════════════════════════════

def test_generator_fires_on_random_interval(make_sim, waypoints):
    sim = make_sim(start_hour=10.0, generate_orders=True, seed=4)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)

    assert sim.generator.update(0.0) is None
    due = sim.generator.next_time
    assert 120.0 <= due <= 300.0
    assert sim.generator.update(due - 1.0) is None

    order = sim.generator.update(due)
    assert order is not None
    assert order.agent == vera
    assert order.weapon_id in ("pistol", "rifle")
    assert order.meeting_location in sim.meeting_spots
    for slot, attachment in order.requested_attachments().items():
        assert attachment in sim.registry.pool(slot)

    # Vera is busy: the next firing finds nobody free.
    assert sim.generator.update(sim.generator.next_time) is None
    assert len(sim.book.active) == 1


def test_generator_is_deterministic_per_seed(make_sim, waypoints):
    def first_order(seed):
        sim = make_sim(generate_orders=True, seed=seed)
        sim.spawn_agent("Vera", waypoints=waypoints)
        sim.spawn_agent("Rosa", waypoints=waypoints)
        sim.generator.update(0.0)
        o = sim.generator.update(sim.generator.next_time)
        return o.npc_name, o.weapon_id, o.slots(), o.meeting_location.name

    assert first_order(11) == first_order(11)


def test_generator_skips_without_catalog(make_sim, waypoints):
    sim = make_sim(generate_orders=True)
    sim.spawn_agent("Vera", waypoints=waypoints)
    sim.registry._weapons.clear()
    assert sim.generator.send_random_request() is None
    sim.registry.register_weapon("pistol", "Pistol", 250)
    sim.generator.locations = []
    assert sim.generator.send_random_request() is None


def test_generator_fills_every_slot_from_its_pool(make_sim, waypoints):
    sim = make_sim(generate_orders=True, seed=2)
    seen = {s: set() for s in SLOTS}
    for i in range(40):
        sim.spawn_agent(f"Agent{i}", waypoints=waypoints)
        order = sim.generator.send_random_request()
        assert order is not None
        for slot, attachment in order.requested_attachments().items():
            seen[slot].add(attachment)
    for slot in SLOTS:
        assert seen[slot], f"no {slot} ever requested"
        assert seen[slot] <= set(sim.registry.pool(slot))


# ════════════════════════════════════════════════════════════════════════
#  Phone threads
# ════════════════════════════════════════════════════════════════════════

def test_unread_threads(make_sim, waypoints):
    sim = make_sim(start_hour=10.0)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    rosa = sim.spawn_agent("Rosa", waypoints=waypoints)
    sim.book.create(vera, "pistol", ALLEY)
    sim.book.create(rosa, "rifle", ALLEY)
    assert sim.messenger.unread() == ["Vera", "Rosa"]

    sim.messenger.conversation("Vera").mark_read()
    sim.messenger.send("Vera", "On my way.", from_player=True)
    assert sim.messenger.total_unread() == 1

    last = sim.messenger.conversation("Vera").last()
    assert last.sender == "Player" and last.from_player
    assert last.game_time == pytest.approx(10.0)
    with pytest.raises(ValueError):
        sim.messenger.send("Vera", "hello?", message_type="voicemail")

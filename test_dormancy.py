"""test_dormancy.py — Day-change catch-up for inactive agents."""
from __future__ import annotations

from components import Activity, Presence, Routine


def _routine(sim, eid) -> Routine:
    return sim.world.get(eid, Routine)


# ════════════════════════════════════════════════════════════════════════
#  Registration
# ════════════════════════════════════════════════════════════════════════

def test_register_is_idempotent(make_sim, waypoints):
    sim = make_sim()
    vera = sim.spawn_agent("Vera", waypoints=waypoints)   # registers itself
    sim.dormancy.register(vera)
    assert len(sim.dormancy) == 1
    sim.dormancy.unregister(vera)
    sim.dormancy.unregister(vera)
    assert vera not in sim.dormancy


def test_dead_agents_are_pruned(make_sim, waypoints):
    sim = make_sim()
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    rosa = sim.spawn_agent("Rosa", waypoints=waypoints)
    sim.world.kill(vera)
    assert sim.dormancy.listing() == ["Rosa: AWAKE"]


# ════════════════════════════════════════════════════════════════════════
#  Day change
# ════════════════════════════════════════════════════════════════════════

def test_inactive_agent_reconciled_once_on_day_change(make_sim, waypoints):
    sim = make_sim(start_hour=23.5)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    sim.set_active(vera, False)

    sim.clock.advance(20.0)                  # 23:50, no broadcast for Vera
    assert _routine(sim, vera).reconciles == 0

    sim.clock.advance(60.0)                  # rolls into Tuesday
    assert sim.world.get(vera, Presence).active
    assert _routine(sim, vera).reconciles == 1
    assert _routine(sim, vera).day == "tuesday"
    assert sim.state_of(vera) == Activity.SLEEPING

    sim.clock.advance(60.0)                  # next normal tick
    assert _routine(sim, vera).reconciles == 2


def test_active_agent_reconciled_once_on_day_change(make_sim, waypoints):
    sim = make_sim(start_hour=23.5)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    sim.clock.advance(60.0)
    assert _routine(sim, vera).reconciles == 1
    assert _routine(sim, vera).day == "tuesday"


def test_forced_notify_to_active_agent_is_noop(make_sim, waypoints):
    sim = make_sim(start_hour=10.0)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    sim.meetings.notify_day_changed(vera, "friday")
    assert _routine(sim, vera).reconciles == 0
    assert _routine(sim, vera).day == "monday"


def test_dormant_agent_catches_up_on_schedule(make_sim, waypoints):
    sim = make_sim(start_hour=20.0)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    assert sim.state_of(vera) == Activity.IDLE
    sim.set_active(vera, False)
    sim.rest_until_morning(10.0)
    assert sim.world.get(vera, Presence).active
    assert sim.state_of(vera) == Activity.WORKING
    assert sim.movement.target_of(vera) == "shop"


# ════════════════════════════════════════════════════════════════════════
#  Debug menu
# ════════════════════════════════════════════════════════════════════════

def test_wake_all_now_and_listing(make_sim, waypoints):
    sim = make_sim(start_hour=10.0)
    vera = sim.spawn_agent("Vera", waypoints=waypoints)
    rosa = sim.spawn_agent("Rosa", waypoints=waypoints)
    sim.set_active(rosa, False)
    assert sim.dormancy.listing() == ["Vera: AWAKE", "Rosa: SLEEPING"]

    assert sim.dormancy.wake_all_now() == 1
    assert sim.dormancy.listing() == ["Vera: AWAKE", "Rosa: AWAKE"]
    assert sim.world.get(rosa, Routine).reconciles == 1
    assert sim.world.get(vera, Routine).reconciles == 0

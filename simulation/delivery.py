"""simulation/delivery.py — Delivery verification and settlement.

At the moment of delivery the verifier re-reads the holder's inventory,
snapshots every held weapon from its live attachment set and looks for
one that exactly matches the agent's accepted order.

    result = verifier.deliver(player_eid, npc_eid)
    if result.success:
        ...   # weapon gone, wallet credited, meeting closed

Delivery is a single, final attempt: with no match the order is
completed as failed and nothing is paid.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from core.events import EventBus, DeliverySettled, DeliveryFailed
from core.ecs import World
from components import (
    Build, Inventory, Wallet, Identity, ItemRegistry, DevLog, SLOTS,
)
from components.orders import SLOT_LABELS
from logic.inventory_ops import held_builds, remove_weapon
from simulation.economy import add_money
from simulation.matcher import matches, slot_mismatches
from simulation.messaging import Messenger, THANKS, FAILED


@dataclass
class DeliveryResult:
    success: bool
    order_id: int | None = None
    instance_id: str | None = None
    amount: float = 0.0
    reason: str = ""
    mismatches: list[str] = field(default_factory=list)


class BuildLedger:
    """Record of every build the player has assembled.

    A build is recorded once per distinct (id, weapon, slots) tuple, so
    re-registering the same physical weapon unchanged is a no-op.
    """

    def __init__(self) -> None:
        self.builds: list[Build] = []
        self._keys: set[tuple] = set()

    def register(self, build: Build) -> bool:
        key = build.key()
        if key in self._keys:
            return False
        self._keys.add(key)
        self.builds.append(build)
        return True

    def for_id(self, build_id: str) -> list[Build]:
        return [b for b in self.builds if b.build_id == build_id]

    def __len__(self) -> int:
        return len(self.builds)


class DeliveryVerifier:

    def __init__(self, world: World, book, scheduler, messenger: Messenger,
                 bus: EventBus, registry: ItemRegistry, log: DevLog,
                 clock) -> None:
        self.world = world
        self.book = book
        self.scheduler = scheduler
        self.messenger = messenger
        self.bus = bus
        self.registry = registry
        self.log = log
        self.clock = clock

    def _name(self, eid: int) -> str:
        ident = self.world.get(eid, Identity)
        return ident.name if ident else f"#{eid}"

    def deliver(self, holder: int, agent: int) -> DeliveryResult:
        name = self._name(agent)
        order = self.book.accepted_for(agent)
        if order is None:
            print(f"[DELIVERY] {name} has no accepted order")
            self.log.record(agent, "delivery", "no accepted order", name=name,
                            t=self.clock.total_hours, level="warning")
            return DeliveryResult(success=False, reason="no accepted order")

        wallet = self.world.get(holder, Wallet)
        if wallet is None:
            print(f"[DELIVERY] #{order.order_id}: holder has no wallet, "
                  f"not settling")
            self.log.record(agent, "delivery", "holder has no wallet",
                            name=name, t=self.clock.total_hours,
                            level="warning")
            return DeliveryResult(success=False, order_id=order.order_id,
                                  reason="holder has no wallet")

        inv = self.world.get(holder, Inventory)
        builds = held_builds(inv) if inv is not None else []

        for build in builds:
            if not matches(build, order):
                continue
            remove_weapon(inv, build.build_id)
            add_money(wallet, order.agreed_price, f"Weapon delivery to {name}",
                      game_time=self.clock.total_hours)
            self.book.complete(order.order_id, "delivered")
            self.scheduler.complete_weapon_deal(agent)
            self.messenger.send(name, THANKS)
            self.bus.emit(DeliverySettled(order_id=order.order_id, eid=agent,
                                          amount=order.agreed_price,
                                          instance_id=build.build_id))
            print(f"[DELIVERY] #{order.order_id} delivered to {name} "
                  f"for ${order.agreed_price:.0f}")
            self.log.record(agent, "delivery", "settled", name=name,
                            t=self.clock.total_hours,
                            details={"order_id": order.order_id,
                                     "instance": build.build_id})
            return DeliveryResult(success=True, order_id=order.order_id,
                                  instance_id=build.build_id,
                                  amount=order.agreed_price)

        mismatches = self._closest_mismatch(builds, order)
        reason = self.explain(order, mismatches, bool(builds))
        self.book.complete(order.order_id, "failed")
        self.messenger.send(name, FAILED)
        self.bus.emit(DeliveryFailed(order_id=order.order_id, eid=agent,
                                     reason=reason))
        self.scheduler.complete_meeting(agent, reason="failed")
        print(f"[DELIVERY] #{order.order_id} to {name} failed: {reason}")
        self.log.record(agent, "delivery", "failed", name=name,
                        t=self.clock.total_hours, level="warning",
                        details={"order_id": order.order_id,
                                 "reason": reason})
        return DeliveryResult(success=False, order_id=order.order_id,
                              reason=reason, mismatches=mismatches)

    @staticmethod
    def _closest_mismatch(builds: list[Build], order) -> list[str]:
        """Mismatching slots of the held build that came closest."""
        best: list[str] | None = None
        for build in builds:
            diff = slot_mismatches(build, order)
            if best is None or len(diff) < len(best):
                best = diff
        return best or []

    def explain(self, order, mismatches: list[str], held_any: bool) -> str:
        if not held_any:
            return "no weapons held"
        if "weapon" in mismatches:
            return (f"no {self.registry.display_name(order.weapon_id)} "
                    f"held")
        wrong = ", ".join(SLOT_LABELS[s] for s in mismatches if s in SLOTS)
        return f"closest build differs in {wrong}"

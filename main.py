"""
main.py — Headless town run

1. Load tuning
2. Build the town from data/*.toml
3. Create the player (a bot that answers texts and delivers)
4. Tick N in-game days
5. Print a summary

    python main.py --days 3 --seed 7
"""

import argparse
import random

from core import tuning
from components import SLOTS, Identity, Position, Routine, Inventory, Wallet
from core.clock import format_time
from logic.inventory_ops import add_weapon
from simulation.world_sim import WorldSim


class BotPlayer:
    """Answers every request, assembles the build and meets the buyer.

    ``sloppiness`` is the chance a build comes out wrong (one slot
    flipped); ``flakiness`` the chance the bot never shows up.
    """

    def __init__(self, sim: WorldSim, eid: int, rng: random.Random,
                 sloppiness: float = 0.15, flakiness: float = 0.1):
        self.sim = sim
        self.eid = eid
        self.rng = rng
        self.sloppiness = sloppiness
        self.flakiness = flakiness
        self.skipped: set[int] = set()

    def update(self):
        book = self.sim.book
        for order in book.open_orders():
            if not order.is_price_set:
                self._answer(order)
            elif order.order_id not in self.skipped:
                if book.is_ready_for_delivery(order.agent):
                    self._deliver(order)

    def _answer(self, order):
        price = round(self.sim.registry.order_value(order) * 1.5)
        delay = self.rng.choice([2.0, 3.0, 4.0])
        if not self.sim.book.negotiate(order.order_id, price, delay):
            return
        attachments = order.requested_attachments()
        if self.rng.random() < self.sloppiness:
            self._botch(attachments)
        inst = add_weapon(self.sim.world.get(self.eid, Inventory),
                          order.weapon_id, attachments)
        self.sim.ledger.register(inst.snapshot())
        if self.rng.random() < self.flakiness:
            self.skipped.add(order.order_id)

    def _botch(self, attachments: dict):
        slot = self.rng.choice(SLOTS)
        if slot in attachments:
            del attachments[slot]
        else:
            pool = self.sim.registry.pool(slot)
            if pool:
                attachments[slot] = pool[0]

    def _deliver(self, order):
        agent_pos = self.sim.world.get(order.agent, Position)
        pos = self.sim.world.get(self.eid, Position)
        pos.x, pos.y = agent_pos.x + 1.0, agent_pos.y
        self.sim.verifier.deliver(self.eid, order.agent)


def main():
    parser = argparse.ArgumentParser(description="Run the town headless.")
    parser.add_argument("--days", type=float, default=2.0)
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--step", type=float, default=1.0,
                        help="real seconds per tick")
    args = parser.parse_args()

    # -- Load tuning + data --
    tuning.load()
    rng = random.Random(args.seed)
    sim = WorldSim.from_data(rng=rng)

    # -- Create player --
    player = sim.spawn_player(0.0, 0.0)
    bot = BotPlayer(sim, player, random.Random(args.seed + 1))

    # -- Run --
    total = args.days * sim.clock.seconds_per_day
    elapsed = 0.0
    while elapsed < total:
        sim.tick(args.step)
        bot.update()
        elapsed += args.step
        if rng.random() < 0.0005:
            sim.gunshot(rng.uniform(-40, 40), rng.uniform(-40, 40))

    _print_summary(sim, player)


def _print_summary(sim: WorldSim, player: int):
    print()
    print(f"=== Day {sim.clock.day} ({sim.clock.day_of_week}) "
          f"{format_time(sim.clock.hour)} ===")
    outcomes: dict[str, int] = {}
    for order in sim.book.archive:
        outcomes[order.outcome] = outcomes.get(order.outcome, 0) + 1
    print(f"Orders: {outcomes or 'none completed'}, "
          f"{len(sim.book.open_orders())} still open")
    wallet = sim.world.get(player, Wallet)
    print(f"Balance: ${wallet.balance:.2f} "
          f"({len(wallet.history)} transactions)")
    for eid, ident, routine in sim.world.query(Identity, Routine):
        print(f"  {ident.name:<8} {routine.state} "
              f"(reconciled {routine.reconciles}x)")
    print(f"Events: {sim.bus.stats()}")
    print(f"Warnings: {len(sim.log.warnings())}")


if __name__ == "__main__":
    main()

"""simulation/orders.py — Order generation and the negotiation ledger.

``OrderGenerator`` fabricates a random weapon order every few real
minutes.  ``OrderBook`` holds the orders in flight and applies the
player's price / time offers to them::

    order = book.create(eid, "pistol", alley, {"sight": "red_dot"})
    book.negotiate(order.order_id, price=450.0, delay_minutes=3.0)
    ...
    book.poll_pickups()     # each tick
    book.compact()

An agent has at most one open order.  Negotiating an order books the
agent's meeting through the ``MeetingScheduler``.

The pickup poll handles accepted orders whose pickup time has passed:
the first time it sees one it makes sure the agent's meeting is still
booked (re-booking it for "now" if not).  Once that meeting has closed
without a delivery, the order expires.
"""

from __future__ import annotations
import random

from core.clock import DayNightClock, wrap_hour
from core.ecs import World
from core.events import EventBus, OrderRequested, OrderAccepted, OrderExpired
from core.tuning import get as _tun
from components import (
    SLOTS, WeaponOrder, Waypoint, Identity, Meeting, ItemRegistry, DevLog,
)
from simulation.messaging import (
    Messenger, build_request_message, build_acceptance_message, EXPIRED,
)


class OrderBook:
    """The set of active orders plus an archive of completed ones."""

    def __init__(self, world: World, clock: DayNightClock, bus: EventBus,
                 scheduler, messenger: Messenger, registry: ItemRegistry,
                 log: DevLog) -> None:
        self.world = world
        self.clock = clock
        self.bus = bus
        self.scheduler = scheduler
        self.messenger = messenger
        self.registry = registry
        self.log = log
        self.active: list[WeaponOrder] = []
        self.archive: list[WeaponOrder] = []
        self._next_id = 0

    def _name(self, eid: int) -> str:
        ident = self.world.get(eid, Identity)
        return ident.name if ident else f"#{eid}"

    def _record(self, order: WeaponOrder, msg: str, level: str = "info",
                details: dict | None = None) -> None:
        self.log.record(order.agent, "order", msg, name=order.npc_name,
                        t=self.clock.total_hours, level=level,
                        details={"order_id": order.order_id, **(details or {})})

    # ── Creation ─────────────────────────────────────────────────────

    def create(self, agent: int, weapon_id: str | None,
               location: Waypoint | None,
               attachments: dict[str, str] | None = None) -> WeaponOrder | None:
        """Open a new order for *agent* and text the request to the player.

        Refused (returns None) when the agent already has an open order
        or an attachment names an unknown slot.
        """
        name = self._name(agent)
        if self.active_for(agent) is not None:
            print(f"[ORDER] {name} already has an open order, not creating")
            self.log.record(agent, "order", "create refused: open order",
                            name=name, t=self.clock.total_hours,
                            level="warning")
            return None
        attachments = dict(attachments or {})
        bad = [s for s in attachments if s not in SLOTS]
        if bad:
            print(f"[ORDER] {name}: unknown slots {bad}, not creating")
            self.log.record(agent, "order", f"create refused: slots {bad}",
                            name=name, t=self.clock.total_hours,
                            level="warning")
            return None

        self._next_id += 1
        order = WeaponOrder(
            order_id=self._next_id,
            agent=agent,
            npc_name=name,
            weapon_id=weapon_id,
            meeting_location=location,
            **attachments,
        )
        self.active.append(order)

        message = build_request_message(order, self.registry)
        self.messenger.send(name, message, message_type="weapon_request")
        self.bus.emit(OrderRequested(order_id=order.order_id, eid=agent,
                                     message=message))
        print(f"[ORDER] #{order.order_id} {name}: {message} "
              f"({len(self.active)} active)")
        self._record(order, "requested", details={
            "weapon": weapon_id, **order.requested_attachments(),
        })
        return order

    # ── Lookups ──────────────────────────────────────────────────────

    def get(self, order_id: int) -> WeaponOrder | None:
        for order in self.active:
            if order.order_id == order_id:
                return order
        for order in self.archive:
            if order.order_id == order_id:
                return order
        return None

    def active_for(self, eid: int) -> WeaponOrder | None:
        """The agent's open (not completed) order, if any."""
        for order in self.active:
            if order.agent == eid and not order.is_completed:
                return order
        return None

    def first_unpriced_for(self, eid: int) -> WeaponOrder | None:
        for order in self.active:
            if (order.agent == eid and not order.is_price_set
                    and not order.is_completed):
                return order
        return None

    def accepted_for(self, eid: int) -> WeaponOrder | None:
        for order in self.active:
            if order.agent == eid and order.is_accepted and not order.is_completed:
                return order
        return None

    def is_ready_for_delivery(self, eid: int) -> bool:
        """Accepted order and the agent is waiting at the meeting spot."""
        return (self.accepted_for(eid) is not None
                and self.scheduler.is_at_meeting_location(eid))

    def open_orders(self) -> list[WeaponOrder]:
        return [o for o in self.active if not o.is_completed]

    # ── Negotiation ──────────────────────────────────────────────────

    def negotiate(self, order_id: int, price: float,
                  delay_minutes: float) -> bool:
        """Apply the player's offer: *price* for pickup in *delay_minutes*.

        Delay is in real minutes.  Books the agent's meeting for the
        pickup time.
        """
        order = self.get(order_id)
        if order is None or order.is_completed:
            print(f"[ORDER] No open order #{order_id} to negotiate")
            return False
        if order.is_price_set:
            print(f"[ORDER] #{order_id} {order.npc_name} already agreed a price")
            self._record(order, "negotiate refused: already priced", "warning")
            return False
        if price < 0 or delay_minutes < 0:
            print(f"[ORDER] #{order_id}: invalid offer "
                  f"${price:.2f} in {delay_minutes} min")
            self._record(order, "negotiate refused: invalid offer", "warning")
            return False

        delay_seconds = delay_minutes * 60.0
        order.agreed_price = float(price)
        order.pickup_time = self.clock.elapsed + delay_seconds
        order.pickup_time_game_hour = wrap_hour(
            self.clock.hour + self.clock.convert_duration(delay_seconds))
        order.is_price_set = True
        order.is_accepted = True

        self.messenger.send(order.npc_name,
                            build_acceptance_message(order, delay_minutes),
                            message_type="acceptance")
        self.bus.emit(OrderAccepted(order_id=order.order_id, eid=order.agent,
                                    price=order.agreed_price,
                                    delay_minutes=delay_minutes))
        print(f"[ORDER] #{order.order_id} accepted: {order.npc_name}, "
              f"${order.agreed_price:.0f}, pickup in {delay_minutes} min")
        self._record(order, "accepted", details={
            "price": order.agreed_price,
            "pickup_hour": order.pickup_time_game_hour,
        })
        self.scheduler.schedule_meeting(order.agent, order.meeting_location,
                                        delay_seconds)
        return True

    def negotiate_for_agent(self, eid: int, price: float,
                            delay_minutes: float) -> bool:
        """Negotiate the agent's unpriced order, looked up by agent."""
        order = self.first_unpriced_for(eid)
        if order is None:
            print(f"[ORDER] No unpriced order for {self._name(eid)}")
            return False
        return self.negotiate(order.order_id, price, delay_minutes)

    # ── Settlement bookkeeping ───────────────────────────────────────

    def complete(self, order_id: int, outcome: str) -> bool:
        order = self.get(order_id)
        if order is None or order.is_completed:
            return False
        order.is_completed = True
        order.outcome = outcome
        self._record(order, f"completed ({outcome})")
        return True

    def poll_pickups(self) -> int:
        """Handle accepted orders whose pickup time has passed.

        Returns the number of orders expired by this poll.
        """
        now = self.clock.elapsed
        expired = 0
        for order in self.active:
            if not order.is_accepted or order.is_completed:
                continue
            if now < order.pickup_time:
                continue
            booked = self.scheduler.has_meeting_at(order.agent,
                                                   order.meeting_location)
            if not order.pickup_checked:
                order.pickup_checked = True
                if not booked:
                    print(f"[ORDER] #{order.order_id}: re-booking "
                          f"{order.npc_name} at the pickup spot")
                    self.scheduler.schedule_meeting(
                        order.agent, order.meeting_location, 0.0)
                continue
            if booked:
                continue
            self.complete(order.order_id, "expired")
            self.messenger.send(order.npc_name, EXPIRED)
            self.bus.emit(OrderExpired(order_id=order.order_id,
                                       eid=order.agent))
            print(f"[ORDER] #{order.order_id} {order.npc_name} expired")
            expired += 1
        return expired

    def compact(self) -> int:
        """Move completed orders to the archive.  Returns count moved."""
        done = [o for o in self.active if o.is_completed]
        if done:
            self.active = [o for o in self.active if not o.is_completed]
            self.archive.extend(done)
        return len(done)


class OrderGenerator:
    """Fabricates a random order at random real-time intervals."""

    def __init__(self, world: World, book: OrderBook, registry: ItemRegistry,
                 locations: list[Waypoint], rng: random.Random | None = None,
                 enabled: bool = True) -> None:
        self.world = world
        self.book = book
        self.registry = registry
        self.locations = list(locations)
        self.rng = rng or random.Random()
        self.enabled = enabled
        self.next_time: float | None = None

    def schedule_next(self, now: float) -> float:
        lo = _tun("orders", "min_interval", 120.0)
        hi = _tun("orders", "max_interval", 300.0)
        wait = self.rng.uniform(lo, hi)
        self.next_time = now + wait
        print(f"[ORDER] Next request in {wait:.0f}s")
        return self.next_time

    def update(self, now: float) -> WeaponOrder | None:
        """Fire a request when the timer has run out.  *now* is real seconds."""
        if not self.enabled:
            return None
        if self.next_time is None:
            self.schedule_next(now)
            return None
        if now < self.next_time:
            return None
        self.schedule_next(now)
        return self.send_random_request()

    def candidates(self) -> list[int]:
        """Agents that can take an order: they hold meetings, none open."""
        return [eid for eid, _ in self.world.all_of(Meeting)
                if self.book.active_for(eid) is None]

    def send_random_request(self) -> WeaponOrder | None:
        agents = self.candidates()
        weapons = self.registry.weapon_ids()
        if not agents:
            print("[ORDER] No agents free to order, skipping request")
            return None
        if not weapons:
            print("[ORDER] No weapons in catalog, skipping request")
            return None
        if not self.locations:
            print("[ORDER] No meeting locations, skipping request")
            return None

        agent = self.rng.choice(agents)
        weapon = self.rng.choice(weapons)
        location = self.rng.choice(self.locations)

        chance = _tun("orders", "attachment_chance", 0.7)
        attachments = {}
        for slot in SLOTS:
            pool = self.registry.pool(slot)
            if pool and self.rng.random() < chance:
                attachments[slot] = self.rng.choice(pool)

        return self.book.create(agent, weapon, location, attachments)

"""core/events.py — Lightweight event bus.

Decouples systems that need to *signal* something from systems that
*react* to it (animation, audio, the phone UI).  The bus is created by
``WorldSim`` and handed to every service that emits::

    from core.events import EventBus, OrderAccepted
    bus.emit(OrderAccepted(order_id=3, eid=12, price=450.0))

Consumers subscribe with a callable::

    bus.subscribe("OrderAccepted", my_handler)

And the simulation drains once per tick::

    bus.drain()          # calls all handlers for pending events

Events are plain dataclasses.  Services only emit; nothing in the
simulation core subscribes to its own notifications, so draining (or
not) never changes schedule or order state.
"""

from __future__ import annotations
from dataclasses import dataclass
import traceback
from collections import defaultdict, deque
from typing import Any, Callable


# ═══════════════════════════════════════════════════════════════════
#  Event definitions
# ═══════════════════════════════════════════════════════════════════

@dataclass
class StateEntered:
    """An agent switched schedule activity (drives animation / audio)."""
    eid: int
    state: str = ""
    previous: str = ""


@dataclass
class MeetingScheduled:
    eid: int
    location: str = ""
    arrival_time: float = 0.0
    meeting_time: float = 0.0


@dataclass
class MeetingCompleted:
    """A pending meeting was closed.  ``reason``: "deal", "failed", "timeout" or "reset"."""
    eid: int
    reason: str = ""


@dataclass
class OrderRequested:
    """The generator fabricated a new order (outbound "request" text)."""
    order_id: int
    eid: int
    message: str = ""


@dataclass
class OrderAccepted:
    """A price/time offer was applied to an order (outbound "acceptance")."""
    order_id: int
    eid: int
    price: float = 0.0
    delay_minutes: float = 0.0


@dataclass
class OrderExpired:
    """Pickup time passed without a delivery."""
    order_id: int
    eid: int


@dataclass
class DeliverySettled:
    order_id: int
    eid: int
    amount: float = 0.0
    instance_id: str = ""


@dataclass
class DeliveryFailed:
    order_id: int
    eid: int
    reason: str = ""


@dataclass
class GunshotHeard:
    x: float = 0.0
    y: float = 0.0
    alerted: int = 0


# ═══════════════════════════════════════════════════════════════════
#  Event Bus
# ═══════════════════════════════════════════════════════════════════

class EventBus:
    """Deferred event queue owned by the simulation.

    ``recent`` keeps the last ``recent_limit`` drained events for the
    debug overlay.
    """

    def __init__(self, recent_limit: int = 200):
        self._queue: list[Any] = []
        self._handlers: dict[str, list[Callable]] = defaultdict(list)
        self._counts: dict[str, int] = defaultdict(int)
        self.recent: deque = deque(maxlen=recent_limit)

    def emit(self, event) -> None:
        self._queue.append(event)

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """Call *handler* for every drained event whose class name is
        *event_type*, e.g. ``"OrderAccepted"``."""
        self._handlers[event_type].append(handler)

    def drain(self, max_rounds: int = 100) -> int:
        """Process queued events breadth-first.  Returns number processed.

        Events emitted by handlers are processed in a later round of the
        same call, up to *max_rounds* rounds.
        """
        processed = 0
        for _ in range(max_rounds):
            if not self._queue:
                break
            batch, self._queue = self._queue, []
            for event in batch:
                self._dispatch(event)
            processed += len(batch)
        return processed

    def _dispatch(self, event) -> None:
        name = type(event).__name__
        self._counts[name] += 1
        self.recent.append(event)
        for handler in self._handlers.get(name, ()):
            try:
                handler(event)
            except Exception as exc:
                print(f"[EVENT] handler error for {name}: {exc}")
                traceback.print_exc()

    def pending(self, event_type: str | None = None) -> list[Any]:
        """Events waiting to be drained, optionally filtered by class name."""
        return [e for e in self._queue
                if event_type is None or type(e).__name__ == event_type]

    def pending_count(self) -> int:
        return len(self._queue)

    def stats(self) -> dict[str, int]:
        """Cumulative drained-event counts by class name."""
        return dict(self._counts)

    def __repr__(self) -> str:
        return (f"EventBus(pending={len(self._queue)}, "
                f"handlers={sum(map(len, self._handlers.values()))})")

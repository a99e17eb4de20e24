"""simulation/messaging.py — Phone text threads between player and NPCs.

The simulation only *writes* here: requests, acceptances, thank-yous
and failure notices.  A phone UI reads the threads; nothing in the
core reads them back.
"""

from __future__ import annotations

from components import TextMessage, Conversation, ItemRegistry, WeaponOrder
from components.social import MESSAGE_TYPES


class Messenger:

    def __init__(self, clock) -> None:
        self.clock = clock
        self.conversations: dict[str, Conversation] = {}

    def conversation(self, npc_name: str) -> Conversation:
        conv = self.conversations.get(npc_name)
        if conv is None:
            conv = Conversation(npc_name=npc_name)
            self.conversations[npc_name] = conv
        return conv

    def send(self, npc_name: str, content: str, *, from_player: bool = False,
             message_type: str = "general") -> TextMessage:
        if message_type not in MESSAGE_TYPES:
            raise ValueError(f"unknown message type {message_type!r}")
        msg = TextMessage(
            sender="Player" if from_player else npc_name,
            content=content,
            from_player=from_player,
            message_type=message_type,
            game_time=self.clock.total_hours,
        )
        self.conversation(npc_name).add(msg)
        return msg

    def unread(self) -> list[str]:
        return [name for name, c in self.conversations.items() if c.has_unread]

    def total_unread(self) -> int:
        return len(self.unread())


# ── Message texts ────────────────────────────────────────────────────

def build_request_message(order: WeaponOrder, registry: ItemRegistry) -> str:
    """``"I need a new Pistol with Sight: Red Dot, Barrel: Suppressor at Alley."``"""
    message = f"I need a new {registry.display_name(order.weapon_id)}"
    pieces = registry.describe(order)
    if pieces:
        message += " with " + ", ".join(pieces)
    where = order.meeting_location.name if order.meeting_location else "somewhere"
    return message + f" at {where}."


def build_acceptance_message(order: WeaponOrder, delay_minutes: float) -> str:
    where = order.meeting_location.name if order.meeting_location else "the usual spot"
    return (f"${order.agreed_price:.0f} in {delay_minutes:.0f} minutes? "
            f"Sounds good, I'll meet you at {where}.")


THANKS = "Thanks! Pleasure doing business."
FAILED = "Delivery failed. You don't have the required weapon."
EXPIRED = "You never showed up. Forget it."

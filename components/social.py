"""components.social — Who an entity is, and the text threads with the player."""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class Identity:
    name: str = "unnamed"
    kind: str = "npc"          # "npc", "player"


# ── Phone conversations ──────────────────────────────────────────────

MESSAGE_TYPES = ("weapon_request", "price_offer", "acceptance", "general")


@dataclass
class TextMessage:
    """A single text in a conversation.

    ``game_time`` is the absolute game hour (``day * 24 + hour``) at
    which the text was sent.
    """
    sender: str
    content: str
    from_player: bool = False
    message_type: str = "general"
    game_time: float = 0.0


@dataclass
class Conversation:
    """Text thread between the player and one NPC."""
    npc_name: str
    messages: list[TextMessage] = field(default_factory=list)
    has_unread: bool = False

    def add(self, message: TextMessage) -> None:
        self.messages.append(message)
        if not message.from_player:
            self.has_unread = True

    def mark_read(self) -> None:
        self.has_unread = False

    def last(self) -> TextMessage | None:
        return self.messages[-1] if self.messages else None

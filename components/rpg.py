"""components.rpg — Inventory and wallet of a holder (the player)."""

from __future__ import annotations
from dataclasses import dataclass, field

from components.orders import WeaponInstance


@dataclass
class Inventory:
    """Stackable items by id plus assembled weapons.

    ``weapons`` are compound items: each carries its own attachments.
    """
    items: dict[str, int] = field(default_factory=dict)
    weapons: list[WeaponInstance] = field(default_factory=list)


@dataclass
class Transaction:
    description: str
    amount: float
    balance_after: float
    game_time: float = 0.0

    def __str__(self) -> str:
        sign = "+" if self.amount >= 0 else ""
        return (f"{self.description}: {sign}{self.amount:.2f} "
                f"(Balance: {self.balance_after:.2f})")


@dataclass
class Wallet:
    """Player money.  Mutated only through ``simulation.economy``."""
    balance: float = 100.0
    history: list[Transaction] = field(default_factory=list)

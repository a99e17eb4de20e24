"""simulation/economy.py — Player money.

Plain functions over a ``Wallet`` component, in the same style as the
inventory helpers.  Every change appends a ``Transaction`` so the
phone's bank screen (or a test) can replay the history.

Invalid requests (negative amounts, insufficient funds) are logged and
refused; they never raise.
"""

from __future__ import annotations

from core.tuning import get as _tun
from components import Wallet, Transaction


def new_wallet() -> Wallet:
    """A wallet holding the configured starting balance."""
    return Wallet(balance=float(_tun("economy", "starting_balance", 100.0)))


def add_money(wallet: Wallet, amount: float,
              description: str = "Money added",
              game_time: float = 0.0) -> bool:
    if amount < 0:
        print("[ECON] Cannot add negative amount")
        return False
    wallet.balance += amount
    wallet.history.append(Transaction(description, amount, wallet.balance,
                                      game_time))
    print(f"[ECON] Added ${amount:.2f}. New balance: ${wallet.balance:.2f}")
    return True


def subtract_money(wallet: Wallet, amount: float,
                   description: str = "Money spent",
                   game_time: float = 0.0) -> bool:
    if amount < 0:
        print("[ECON] Cannot subtract negative amount")
        return False
    if not can_afford(wallet, amount):
        print(f"[ECON] Insufficient funds. Required: ${amount:.2f}, "
              f"Available: ${wallet.balance:.2f}")
        return False
    wallet.balance -= amount
    wallet.history.append(Transaction(description, -amount, wallet.balance,
                                      game_time))
    print(f"[ECON] Spent ${amount:.2f}. New balance: ${wallet.balance:.2f}")
    return True


def can_afford(wallet: Wallet, amount: float) -> bool:
    return wallet.balance >= amount


def set_balance(wallet: Wallet, amount: float,
                description: str = "Balance set",
                game_time: float = 0.0) -> bool:
    if amount < 0:
        print("[ECON] Balance cannot be negative")
        return False
    delta = amount - wallet.balance
    wallet.balance = amount
    wallet.history.append(Transaction(description, delta, wallet.balance,
                                      game_time))
    return True


def recent_transactions(wallet: Wallet, limit: int = 0) -> list[Transaction]:
    """The last *limit* transactions (all of them when ``limit <= 0``)."""
    if limit > 0:
        return list(wallet.history[-limit:])
    return list(wallet.history)

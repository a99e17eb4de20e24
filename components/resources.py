"""components.resources — Markers shared across systems."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Player:
    """Marks the player entity (the holder that delivers weapons).

    ``nearby_range`` is how close the player must be for a waiting
    agent to hang around past its meeting wait window.
    """
    nearby_range: float = 5.0   # m

"""logic — Capability layer the simulation consumes.

Top-level modules
-----------------
movement        — WaypointMovement: move requests, temporary holds,
                  headless straight-line stepping
inventory_ops   — holder inventory: stackable items and assembled weapons
"""

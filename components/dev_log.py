"""components.dev_log — Structured schedule / deal event log.

A ring buffer that records timestamped transitions taken by agents
(state switches, meetings, orders, deliveries) and every warning the
services emit when they skip an operation.  Tests and the headless
runner read it instead of scraping console output.

Usage:
    log.record(eid, "meeting", "going to meeting", t=clock.total_hours,
               details={"location": "alley"})
    log.record(eid, "schedule", "no waypoint for working", level="warning")

Each entry is a dict:
    {"t": float, "eid": int, "name": str, "cat": str, "level": str,
     "msg": str, "details": dict | None}
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class DevLog:
    """Ring buffer of agent / system events."""

    entries: list[dict] = field(default_factory=list)
    max_entries: int = 500

    def record(self, eid: int, cat: str, msg: str, *,
               name: str = "", t: float = 0.0, level: str = "info",
               details: dict | None = None) -> None:
        self.entries.append({
            "t": t,
            "eid": eid,
            "name": name,
            "cat": cat,
            "level": level,
            "msg": msg,
            "details": details,
        })
        if len(self.entries) > self.max_entries:
            self.entries = self.entries[-self.max_entries:]

    def for_eid(self, eid: int, n: int = 30) -> list[dict]:
        return [e for e in self.entries if e["eid"] == eid][-n:]

    def warnings(self) -> list[dict]:
        return [e for e in self.entries if e["level"] == "warning"]

"""core/tuning.py — Data-driven tuning constants.

All simulation numbers (clock speed, meeting wait window, order
timing, flee distances …) live in ``data/tuning.toml`` and are loaded
once at startup.  Any system can read a value with::

    from core.tuning import get
    wait = get("meetings", "wait_window_seconds", 300.0)

Every caller passes its own default, so the simulation runs unchanged
when the file is missing (the test suite relies on this).

The table is read-only configuration: systems read it, nothing writes
to it after ``load()``.
"""

from __future__ import annotations
from pathlib import Path

try:
    import tomllib                         # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib                # pip install tomli


_data: dict = {}
_path: Path | None = None


def load(path: str | Path | None = None) -> None:
    """Load (or reload) tuning constants from *path*.

    If *path* is ``None``, default to ``data/tuning.toml`` relative to
    the project root (one level above ``core/``).
    """
    global _data, _path

    if path is None:
        root = Path(__file__).resolve().parent.parent
        path = root / "data" / "tuning.toml"
    else:
        path = Path(path)

    _path = path

    if not path.exists():
        print(f"[TUNING] {path} not found — using defaults")
        _data = {}
        return

    with open(path, "rb") as f:
        _data = tomllib.load(f)

    count = _count_values(_data)
    print(f"[TUNING] Loaded {count} values from {path}")


def reload() -> None:
    """Re-read the tuning file from disk."""
    load(_path)


def clear() -> None:
    """Forget every loaded value so all readers fall back to defaults."""
    global _data
    _data = {}


def _walk(section_path: str):
    """Follow a dotted path ("a.b") down the nested tables, or None."""
    node = _data
    for part in section_path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def get(section: str, key: str, default=None):
    """Read a tuning value, or *default* when the section or key is absent.

    >>> get("meetings", "arrival_lead_hours", 1.0)
    1.0
    """
    node = _walk(section)
    if isinstance(node, dict):
        return node.get(key, default)
    return default


def section(section_path: str) -> dict:
    """Return an entire section dict (shallow copy), or empty dict."""
    node = _walk(section_path)
    return dict(node) if isinstance(node, dict) else {}


def _count_values(table: dict) -> int:
    return sum(_count_values(v) if isinstance(v, dict) else 1
               for v in table.values())

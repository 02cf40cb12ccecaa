# scorer_api/cache.py
from __future__ import annotations

import time
from typing import Dict

# Suppression window for incoming remote snapshots, per scope.
# scope -> monotonic time at which the window closes
_windows: Dict[str, float] = {}

TOURNAMENT_SCOPE = "tournament"


def mark_local_write(ttl_seconds: float, scope: str = TOURNAMENT_SCOPE) -> None:
    """
    Opens (or extends) the window after a local write. A non-positive ttl
    leaves no window, so remote snapshots are always accepted.
    """
    if ttl_seconds <= 0:
        return
    _windows[scope] = time.monotonic() + ttl_seconds


def recent_local_write(scope: str = TOURNAMENT_SCOPE) -> bool:
    closes_at = _windows.get(scope)
    if closes_at is None:
        return False
    if time.monotonic() >= closes_at:
        del _windows[scope]
        return False
    return True


def seconds_remaining(scope: str = TOURNAMENT_SCOPE) -> float:
    closes_at = _windows.get(scope)
    if closes_at is None:
        return 0.0
    return max(0.0, closes_at - time.monotonic())


def clear() -> None:
    _windows.clear()

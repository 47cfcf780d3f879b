# src/scheduled_tx/core/clock.py
"""Time source used to judge execution windows."""

from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], int]


def unix_time() -> int:
    """Return the current UTC time as whole seconds since the epoch."""
    return int(time.time())

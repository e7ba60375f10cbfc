"""Wall-clock source used to stamp events and log entries."""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)

"""
Webhook liveness heuristic.

Tracks the time of the previous webhook delivery. A delivery arriving less
than WEBHOOK_BURST_GAP seconds after the previous one asks the coordinator
to switch to polling.

NOTE: the polarity is kept as deployed: frequent deliveries (not stalled
ones) trigger the switch. This looks inverted and is a likely defect; see
DESIGN.md before changing it.
"""
import asyncio
import time
from typing import Callable


class LivenessMonitor:
    def __init__(self, burst_gap: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.burst_gap = burst_gap
        self._clock = clock
        # Separate from the coordinator lock: the switch it triggers is best-effort
        self._lock = asyncio.Lock()
        self._previous = clock()

    async def record_delivery(self) -> float:
        """Store now as the previous delivery time, return the gap to the last one."""
        async with self._lock:
            now = self._clock()
            gap = now - self._previous
            self._previous = now
        return gap

    def is_burst(self, gap: float) -> bool:
        return 0 <= gap < self.burst_gap

"""Round-robin lane assignment."""

from __future__ import annotations


class LaneAllocator:
    """Process-wide lane cursor, wrapped by the lane count in effect at assignment time.

    Callers serialize access; the read-then-increment below is not locked on its own.
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("start must be >= 0")
        self._cursor = start

    @property
    def cursor(self) -> int:
        return self._cursor

    def next_lane(self, lane_count: int) -> int:
        """Return cursor mod lane_count, then advance the cursor."""
        if lane_count < 1:
            raise ValueError("lane_count must be >= 1")
        lane = self._cursor % lane_count
        self._cursor += 1
        return lane

# src/intelligence/budget.py - v1
"""Wall-clock budget threaded through every pipeline stage."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class Budget:
    """Remaining time for the rest of a pipeline run.

    Uses a monotonic clock; ``clock`` returns seconds and is injectable for
    tests.
    """

    total_ms: int
    clock: Callable[[], float] = time.monotonic
    _started: float = field(init=False)

    def __post_init__(self) -> None:
        self._started = self.clock()

    def elapsed_ms(self) -> int:
        return int((self.clock() - self._started) * 1000)

    def remaining_ms(self) -> int:
        return max(0, self.total_ms - self.elapsed_ms())

    def exceeds(self, floor_ms: int) -> bool:
        """Whether more than ``floor_ms`` is left."""
        return self.remaining_ms() > floor_ms


def extract_timeout_ms(remaining_ms: int, max_ms: int, min_ms: int, reserve_ms: int) -> int:
    """Deadline for the structured extraction call."""
    return min(max_ms, max(min_ms, remaining_ms - reserve_ms))


def short_timeout_ms(remaining_ms: int, max_ms: int, min_ms: int) -> int:
    """Deadline for the short summarize call."""
    return min(max_ms, max(min_ms, remaining_ms))

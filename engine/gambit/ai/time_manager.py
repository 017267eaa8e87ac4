"""
Time management for iterative deepening.

The search checks the clock between depths only: a depth that has
started always runs to completion. To keep that overrun small, a new
depth is skipped when the time the previous depths took predicts it
would finish well past the budget.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import time

# Each extra ply costs at least this factor over the previous one
MIN_DEPTH_GROWTH = 2.0
# Assumed growth when only one depth has been timed
DEFAULT_DEPTH_GROWTH = 4.0
# A depth may be started if it is predicted to end within this share of the budget
OVERRUN_ALLOWANCE = 1.25


def estimate_next_depth_ms(depth_times_ms: list[float]) -> float:
    """
    Predict how long the next depth will take.

    Args:
        depth_times_ms: Duration of each completed depth, shallowest first
    """
    if not depth_times_ms:
        return 0.0
    last = depth_times_ms[-1]
    if len(depth_times_ms) >= 2 and depth_times_ms[-2] > 0:
        growth = max(MIN_DEPTH_GROWTH, last / depth_times_ms[-2])
    else:
        growth = DEFAULT_DEPTH_GROWTH
    return last * growth


@dataclass
class SearchClock:
    """Wall-clock budget for one search call."""

    # Budget in milliseconds (None = unlimited)
    time_limit_ms: Optional[float] = None
    started: float = field(init=False)

    def __post_init__(self):
        self.started = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0

    @property
    def remaining_ms(self) -> float:
        if self.time_limit_ms is None:
            return float('inf')
        return max(0.0, self.time_limit_ms - self.elapsed_ms)

    def expired(self) -> bool:
        """True once the budget is used up."""
        return self.time_limit_ms is not None and self.elapsed_ms >= self.time_limit_ms

    def can_fit(self, estimate_ms: float) -> bool:
        """True if work expected to take `estimate_ms` would end inside the budget."""
        if self.time_limit_ms is None:
            return True
        return self.elapsed_ms + estimate_ms <= self.time_limit_ms * OVERRUN_ALLOWANCE


@dataclass
class TimeManager:
    """
    Hands out per-move clocks and keeps search statistics.

    Tracks how long each move took and how deep it got, so callers
    (the CLI, the benchmark script) can report averages.
    """

    time_limit_ms: Optional[float] = None

    # Statistics for analysis
    move_count: int = 0
    total_time_ms: float = 0.0
    total_nodes: int = 0
    total_depth: int = 0
    max_depth: int = 0

    def start(self) -> SearchClock:
        """Start the clock for a new move."""
        return SearchClock(self.time_limit_ms)

    def update(self, elapsed_ms: float, nodes: int, depth: int) -> None:
        """
        Record a finished search.

        Args:
            elapsed_ms: Time spent on this move
            nodes: Nodes visited
            depth: Deepest fully completed depth
        """
        self.move_count += 1
        self.total_time_ms += elapsed_ms
        self.total_nodes += nodes
        self.total_depth += depth
        self.max_depth = max(self.max_depth, depth)

    @property
    def avg_time_per_move(self) -> float:
        """Average time per move so far (ms)."""
        if self.move_count == 0:
            return 0.0
        return self.total_time_ms / self.move_count

    @property
    def avg_depth(self) -> float:
        if self.move_count == 0:
            return 0.0
        return self.total_depth / self.move_count

    @property
    def nodes_per_second(self) -> float:
        if self.total_time_ms <= 0:
            return 0.0
        return self.total_nodes / (self.total_time_ms / 1000.0)

    def stats(self) -> dict:
        """Return statistics about time management."""
        return {
            'time_limit_ms': self.time_limit_ms,
            'moves_searched': self.move_count,
            'total_time_ms': self.total_time_ms,
            'total_nodes': self.total_nodes,
            'avg_time_per_move': self.avg_time_per_move,
            'avg_depth': self.avg_depth,
            'max_depth': self.max_depth,
            'nodes_per_second': self.nodes_per_second,
        }

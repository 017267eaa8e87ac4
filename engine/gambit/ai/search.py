"""
Minimax search with alpha-beta pruning for Gambit.

Fixed-depth search for medium difficulty; time-boxed iterative deepening
with move ordering and root truncation for hard.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Optional, TYPE_CHECKING
import logging

from ..core.board import Color, PieceType, Move
from ..core.state import BoardState
from ..core.moves import MoveGenerator
from .evaluator import Evaluator, GamePhase, game_phase
from .time_manager import SearchClock, TimeManager, estimate_next_depth_ms

if TYPE_CHECKING:
    from ..core.game import MoveRecord

logger = logging.getLogger(__name__)

MATE_SCORE = 1_000_000
INF = float('inf')


@dataclass
class SearchConfig:
    """Configuration for the computer player's search."""
    depth: int = 3  # Fixed search depth (iterative=False)

    # Iterative deepening
    iterative: bool = False
    start_depth: int = 2
    max_depth: int = 10
    time_limit_ms: Optional[float] = None  # Checked between depths only

    # Move ordering: captures first, then by evaluate_move
    order_moves: bool = False
    order_min_depth: int = 3  # Order interior nodes with at least this many plies left
    root_limit: Optional[int] = None  # Keep only the best N root moves

    # Easy strategy and opening book
    random_rate: float = 0.0
    use_book: bool = False
    book_half_moves: int = 10


DIFFICULTY_PRESETS = {
    1: SearchConfig(depth=1, max_depth=2, random_rate=0.7),
    2: SearchConfig(depth=3, max_depth=10, time_limit_ms=2000),
    3: SearchConfig(
        iterative=True,
        start_depth=2,
        max_depth=20,
        time_limit_ms=5000,
        order_moves=True,
        root_limit=15,
        use_book=True,
    ),
}


@dataclass
class SearchResult:
    """Outcome of one move search."""
    move: Optional[Move]
    score: float
    depth: int
    nodes: int
    elapsed_ms: float
    source: str  # 'book', 'search' or 'random'

    def to_dict(self) -> dict:
        data = asdict(self)
        data['move'] = self.move.to_algebraic() if self.move else None
        return data


class SearchEngine:
    """
    Alpha-beta minimax over a borrowed BoardState.

    Every move is tried inside `state.simulated`, so the board is left
    exactly as it was found, even if evaluation raises.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        config: Optional[SearchConfig] = None,
        time_manager: Optional[TimeManager] = None,
    ):
        self.evaluator = evaluator
        self.config = config or SearchConfig()
        self.time_manager = time_manager
        self.nodes = 0
        self.phase = GamePhase.MIDDLEGAME
        self._last_move: Optional[MoveRecord] = None

    def minimax(
        self,
        state: BoardState,
        depth: int,
        alpha: float,
        beta: float,
        color: Color,
        root_color: Color,
        ply: int = 0,
    ) -> float:
        """
        Score the position for `root_color` searching `depth` plies.

        `color` is the side to move at this node. A side with no legal
        moves is mated (if in check) or stalemated; mates found at a
        smaller ply score higher.
        """
        self.nodes += 1
        if depth <= 0:
            return self.evaluator.evaluate(state, root_color, self.phase)

        moves = MoveGenerator.get_legal_moves(state, color)
        if not moves:
            if MoveGenerator.is_in_check(state, color):
                mate = MATE_SCORE - ply
                return -mate if color is root_color else mate
            return 0.0

        if self.config.order_moves and depth >= self.config.order_min_depth:
            moves = self.order_moves(state, moves)

        maximizing = color is root_color
        best = -INF if maximizing else INF
        for move in moves:
            with state.simulated(move, PieceType.QUEEN):
                score = self.minimax(state, depth - 1, alpha, beta, color.opponent, root_color, ply + 1)

            if maximizing:
                best = max(best, score)
                alpha = max(alpha, best)
            else:
                best = min(best, score)
                beta = min(beta, best)

            if beta <= alpha:
                break

        return best

    def order_moves(self, state: BoardState, moves: list[Move]) -> list[Move]:
        """Captures first, then by descending `evaluate_move` score."""
        scored = [
            (m.is_capture, self.evaluator.evaluate_move(state, m, last_move=self._last_move, phase=self.phase), i)
            for i, m in enumerate(moves)
        ]
        scored.sort(key=lambda t: (not t[0], -t[1], t[2]))
        return [moves[i] for _, _, i in scored]

    def search_depth(
        self,
        state: BoardState,
        color: Color,
        depth: int,
        moves: list[Move],
    ) -> tuple[Optional[Move], float]:
        """Full-width search of the given root moves to `depth`."""
        best_move: Optional[Move] = None
        best_score = -INF
        alpha = -INF
        for move in moves:
            with state.simulated(move, PieceType.QUEEN):
                score = self.minimax(state, depth - 1, alpha, INF, color.opponent, color, 1)
            if best_move is None or score > best_score:
                best_move, best_score = move, score
            alpha = max(alpha, best_score)
        return best_move, best_score

    def find_best_move(
        self,
        state: BoardState,
        color: Optional[Color] = None,
        half_moves: Optional[int] = None,
        last_move: Optional[MoveRecord] = None,
    ) -> SearchResult:
        """
        Pick a move for `color` (default: side to move).

        Args:
            state: Position to search; restored before returning
            half_moves: Half-moves played so far, for the game phase
            last_move: `color`'s previous move, penalised if reversed
        """
        color = color or state.side_to_move
        clock = self.time_manager.start() if self.time_manager else SearchClock(self.config.time_limit_ms)
        self.nodes = 0
        self.phase = game_phase(state, half_moves)
        self._last_move = last_move

        moves = MoveGenerator.get_legal_moves(state, color)
        if not moves:
            return SearchResult(None, 0.0, 0, 0, clock.elapsed_ms, 'search')

        if self.config.order_moves:
            moves = self.order_moves(state, moves)
            limit = self.config.root_limit
            if limit is not None and len(moves) > limit:
                moves = moves[:limit]

        if self.config.iterative:
            best_move, best_score, completed = self._iterative_deepening(state, color, moves, clock)
        else:
            depth = max(1, self.config.depth)
            best_move, best_score = self.search_depth(state, color, depth, moves)
            completed = depth

        result = SearchResult(best_move, best_score, completed, self.nodes, clock.elapsed_ms, 'search')
        if self.time_manager is not None:
            self.time_manager.update(result.elapsed_ms, result.nodes, result.depth)

        logger.info("Search %s: %s score=%.1f depth=%d nodes=%d time=%.0fms",
                    color.value, best_move.to_algebraic() if best_move else None,
                    best_score, completed, self.nodes, result.elapsed_ms)
        return result

    def _iterative_deepening(
        self,
        state: BoardState,
        color: Color,
        moves: list[Move],
        clock: SearchClock,
    ) -> tuple[Optional[Move], float, int]:
        best_move: Optional[Move] = None
        best_score = -INF
        completed = 0
        depth_times: list[float] = []

        start = max(1, self.config.start_depth)
        for depth in range(start, max(start, self.config.max_depth) + 1):
            if completed:
                if clock.expired():
                    logger.debug("Time budget spent after depth %d (%.0fms)", completed, clock.elapsed_ms)
                    break
                estimate = estimate_next_depth_ms(depth_times)
                if not clock.can_fit(estimate):
                    logger.debug("Skipping depth %d: expected %.0fms with %.0fms left",
                                 depth, estimate, clock.remaining_ms)
                    break

            began = clock.elapsed_ms
            best_move, best_score = self.search_depth(state, color, depth, moves)
            depth_times.append(clock.elapsed_ms - began)
            completed = depth
            logger.debug("Depth %d: %s score=%.1f nodes=%d",
                         depth, best_move.to_algebraic(), best_score, self.nodes)

            if abs(best_score) >= MATE_SCORE - self.config.max_depth:
                break

            # Search the previous best first at the next depth
            moves = [best_move] + [m for m in moves if m != best_move]

        return best_move, best_score, completed

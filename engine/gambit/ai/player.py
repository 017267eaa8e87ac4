"""
Computer player for Gambit.

Chooses a move for the side to move and plays it through the same
select/move interface a human uses. Difficulty picks the strategy:

    1  easy    mostly random, otherwise the best move by the quick heuristic
    2  medium  fixed-depth alpha-beta search
    3  hard    opening book, then time-boxed iterative deepening
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional
import asyncio
import logging
import time

import numpy as np

from ..core.board import Color, PieceType, Move
from ..core.game import ChessGame, MoveRecord
from ..core.moves import MoveGenerator
from .evaluator import Evaluator, game_phase
from .opening_book import BookMove, book_replies
from .search import DIFFICULTY_PRESETS, SearchConfig, SearchEngine, SearchResult
from .time_manager import TimeManager

logger = logging.getLogger(__name__)


class ComputerPlayer:
    """
    Plays moves for whichever side is to move in `game`.

    Args:
        game: The game to play in
        difficulty: 1 (easy), 2 (medium) or 3 (hard)
        seed: Seed for the random choices (book and easy strategy)
        config: Overrides the difficulty preset
        think_delay: (min, max) seconds awaited by compute_move_async
    """

    def __init__(
        self,
        game: ChessGame,
        difficulty: int = 2,
        seed: Optional[int] = None,
        config: Optional[SearchConfig] = None,
        think_delay: tuple[float, float] = (0.0, 0.0),
    ):
        self.game = game
        self.rng = np.random.default_rng(seed)
        self.think_delay = think_delay
        self.time_manager = TimeManager()
        self.last_result: Optional[SearchResult] = None
        self.set_difficulty(difficulty, config)

    def set_difficulty(self, level: int, config: Optional[SearchConfig] = None) -> None:
        """Switch strategy and clear the out-of-book flag."""
        if level not in DIFFICULTY_PRESETS:
            raise ValueError(f"Difficulty must be one of {sorted(DIFFICULTY_PRESETS)}, got {level}")

        self.difficulty = level
        self.config = config if config is not None else replace(DIFFICULTY_PRESETS[level])
        self.evaluator = Evaluator(level)
        self.time_manager.time_limit_ms = self.config.time_limit_ms
        self.engine = SearchEngine(self.evaluator, self.config, self.time_manager)

        self.left_book = False
        logger.debug("Difficulty set to %d: %s", level, self.config)

    # --- Public API ---

    def compute_move(self) -> Optional[MoveRecord]:
        """
        Choose and play a move. Returns the record, or None when the side
        to move has no legal move (or the game is over).
        """
        game = self.game
        if game.game_over or game.promotion_pending:
            return None
        color = game.current_player

        if self.difficulty == 1:
            return self._play_heuristic(color, self.config.random_rate)

        try:
            result = None
            if self.config.use_book:
                result = self._book_result(color)
            if result is None:
                result = self.engine.find_best_move(
                    game.state, color,
                    half_moves=game.half_moves_played,
                    last_move=self._own_last_move(color),
                )
            self.last_result = result
            if result.move is None:
                return None

            record = self._execute(result.move)
            if record is None:
                raise ValueError(f"Chosen move {result.move.to_algebraic()} could not be played")
            return record
        except Exception:
            logger.exception("Best-move search failed for %s; falling back to easy strategy", color.value)
            return self._play_heuristic(color, DIFFICULTY_PRESETS[1].random_rate)

    async def compute_move_async(self, delay: Optional[float] = None) -> Optional[MoveRecord]:
        """Compute a move, then wait `delay` seconds (default: from think_delay)."""
        record = self.compute_move()
        if delay is None:
            low, high = self.think_delay
            delay = float(self.rng.uniform(low, high)) if high > 0 else 0.0
        if delay > 0:
            await asyncio.sleep(delay)
        return record

    # --- Strategies ---

    def _play_heuristic(self, color: Color, random_rate: float) -> Optional[MoveRecord]:
        """Easy strategy: random with probability `random_rate`, else the best-scoring move."""
        started = time.perf_counter()
        state = self.game.state
        moves = MoveGenerator.get_legal_moves(state, color)
        if not moves:
            return None

        phase = game_phase(state, self.game.half_moves_played)
        last = self._own_last_move(color)
        scored = [(self.evaluator.evaluate_move(state, m, last_move=last, phase=phase), m) for m in moves]
        scored.sort(key=lambda t: -t[0])

        if self.rng.random() < random_rate:
            score, move = scored[int(self.rng.integers(len(scored)))]
        else:
            score, move = scored[0]

        record = self._execute(move)
        if record is None:
            remaining = [(s, m) for s, m in scored if m != move]
            if remaining:
                logger.warning("Move %s failed; retrying with %s",
                               move.to_algebraic(), remaining[0][1].to_algebraic())
                score, move = remaining[0]
                record = self._execute(move)

        elapsed = (time.perf_counter() - started) * 1000.0
        self.last_result = SearchResult(move, score, 0, len(moves), elapsed, 'random')
        logger.info("Easy move %s: %s score=%.1f", color.value, move.to_algebraic(), score)
        return record

    def _book_result(self, color: Color) -> Optional[SearchResult]:
        """A random legal book reply, or None once out of book."""
        if self.left_book or self.game.half_moves_played >= self.config.book_half_moves:
            return None

        # Follow the game so far through the book
        key: Optional[BookMove] = None
        for record in self.game.history:
            played = BookMove(record.from_sq, record.to_sq)
            if played not in book_replies(key):
                self.left_book = True
                logger.debug("Left the opening book at %s", played)
                return None
            key = played

        legal = {m.from_sq + m.to_sq: m for m in MoveGenerator.get_legal_moves(self.game.state, color)}
        candidates = [legal[b.from_sq + b.to_sq] for b in book_replies(key) if b.from_sq + b.to_sq in legal]
        if not candidates:
            return None

        move = candidates[int(self.rng.integers(len(candidates)))]
        logger.info("Book move %s: %s", color.value, move.to_algebraic())
        return SearchResult(move, 0.0, 0, 0, 0.0, 'book')

    # --- Helpers ---

    def _execute(self, move: Move) -> Optional[MoveRecord]:
        """Play `move` through select/move; promotions become queens."""
        game = self.game
        game.selected = None
        if not game.select_piece(*move.from_sq):
            return None
        record = game.move_piece(*move.to_sq)
        if record is not None and record.promotion_pending:
            game.promote_pawn(PieceType.QUEEN)
        return record

    def _own_last_move(self, color: Color) -> Optional[MoveRecord]:
        for record in reversed(self.game.history):
            if record.piece.color is color:
                return record
        return None

"""Tests for the computer player."""

import asyncio
import logging
import pytest
import sys
from dataclasses import replace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from gambit.core.board import Color, PieceType
from gambit.core.state import BoardState
from gambit.core.game import ChessGame
from gambit.ai.opening_book import BOOK, BookMove, book_replies
from gambit.ai.player import ComputerPlayer
from gambit.ai.search import DIFFICULTY_PRESETS, SearchConfig


# Hard settings with a one-ply search so tests stay fast
QUICK_HARD = replace(DIFFICULTY_PRESETS[3], start_depth=1, max_depth=1, time_limit_ms=None)


def played(record) -> BookMove:
    return BookMove(record.from_sq, record.to_sq)


class TestEasy:
    def test_plays_a_legal_move(self):
        game = ChessGame()
        record = ComputerPlayer(game, difficulty=1, seed=7).compute_move()

        assert record is not None
        assert record.piece.color is Color.WHITE
        assert game.current_player is Color.BLACK

    def test_same_seed_same_moves(self):
        def run(seed):
            game = ChessGame()
            player = ComputerPlayer(game, difficulty=1, seed=seed)
            for _ in range(6):
                player.compute_move()
            return [r.notation for r in game.history]

        assert run(3) == run(3)

    def test_result_source(self):
        player = ComputerPlayer(ChessGame(), difficulty=1, seed=0)
        player.compute_move()
        assert player.last_result.source == 'random'
        assert player.last_result.move is not None

    def test_takes_free_queen_without_randomness(self):
        state = BoardState.from_pieces({'e4': 'P', 'd5': 'q', 'e1': 'K', 'h8': 'k'})
        game = ChessGame(state)
        config = replace(DIFFICULTY_PRESETS[1], random_rate=0.0)
        record = ComputerPlayer(game, difficulty=1, config=config).compute_move()

        assert record.to_sq == (3, 3)
        assert record.captured.type is PieceType.QUEEN


class TestMedium:
    def test_searches(self):
        game = ChessGame()
        player = ComputerPlayer(game, difficulty=2, config=SearchConfig(depth=1))
        record = player.compute_move()

        assert record is not None
        assert player.last_result.source == 'search'
        assert player.time_manager.move_count == 1

    def test_auto_promotes_to_queen(self):
        game = ChessGame(BoardState.from_pieces({'a7': 'P', 'e1': 'K', 'h6': 'k'}))
        ComputerPlayer(game, difficulty=2, config=SearchConfig(depth=1)).compute_move()

        assert game.get_piece(0, 0).type is PieceType.QUEEN
        assert not game.promotion_pending
        assert game.current_player is Color.BLACK

    def test_nothing_to_do_when_game_over(self):
        game = ChessGame()
        for text in ('f2-f3', 'e7-e5', 'g2-g4', 'd8-h4'):
            game.play_move(text)
        assert ComputerPlayer(game, difficulty=2).compute_move() is None

    def test_falls_back_when_search_fails(self, monkeypatch, caplog):
        game = ChessGame()
        player = ComputerPlayer(game, difficulty=2, seed=1)

        def broken(*args, **kwargs):
            raise RuntimeError("search exploded")

        monkeypatch.setattr(player.engine, 'find_best_move', broken)
        with caplog.at_level(logging.ERROR):
            record = player.compute_move()

        assert record is not None
        assert game.current_player is Color.BLACK
        assert player.last_result.source == 'random'
        assert "falling back" in caplog.text

    def test_async(self):
        game = ChessGame()
        player = ComputerPlayer(game, difficulty=1, seed=5, think_delay=(0.0, 0.01))
        record = asyncio.run(player.compute_move_async(delay=0))
        assert record is not None
        assert len(game.history) == 1


class TestHard:
    def test_first_move_from_book(self):
        game = ChessGame()
        player = ComputerPlayer(game, difficulty=3, seed=11, config=QUICK_HARD)
        record = player.compute_move()

        assert played(record) in BOOK[None]
        assert player.last_result.source == 'book'

    def test_book_reply_follows_game(self):
        game = ChessGame()
        game.play_move('e2-e4')
        player = ComputerPlayer(game, difficulty=3, seed=2, config=QUICK_HARD)
        record = player.compute_move()

        assert played(record) in book_replies(BookMove.parse('e2-e4'))
        assert record.piece.color is Color.BLACK

    def test_leaves_book_after_unknown_move(self):
        game = ChessGame()
        game.play_move('a2-a3')
        player = ComputerPlayer(game, difficulty=3, seed=2, config=QUICK_HARD)
        record = player.compute_move()

        assert record is not None
        assert player.left_book
        assert player.last_result.source == 'search'

    def test_book_follows_new_game_after_reset(self):
        game = ChessGame()
        game.play_move('a2-a3')
        player = ComputerPlayer(game, difficulty=3, seed=2, config=QUICK_HARD)
        player.compute_move()
        assert player.left_book

        game.reset()
        player.set_difficulty(3, QUICK_HARD)
        game.play_move('d2-d4')
        record = player.compute_move()

        assert player.last_result.source == 'book'
        assert played(record) in book_replies(BookMove.parse('d2-d4'))

    def test_book_only_in_first_moves(self):
        game = ChessGame()
        player = ComputerPlayer(game, difficulty=3, seed=2, config=replace(QUICK_HARD, book_half_moves=0))
        player.compute_move()
        assert player.last_result.source == 'search'


class TestDifficulty:
    def test_set_difficulty_resets_book(self):
        game = ChessGame()
        player = ComputerPlayer(game, difficulty=3, seed=4, config=QUICK_HARD)
        player.compute_move()
        player.left_book = True

        player.set_difficulty(2)
        assert not player.left_book
        assert player.evaluator.difficulty == 2
        assert player.config.depth == 3
        assert player.time_manager.time_limit_ms == DIFFICULTY_PRESETS[2].time_limit_ms

    @pytest.mark.parametrize("level", [0, 4, -1])
    def test_invalid_level(self, level):
        with pytest.raises(ValueError):
            ComputerPlayer(ChessGame(), difficulty=level)

    def test_presets_are_not_shared(self):
        player = ComputerPlayer(ChessGame(), difficulty=2)
        player.config.depth = 1
        assert DIFFICULTY_PRESETS[2].depth == 3

"""Tests for the opening book and search clock."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from gambit.core.state import BoardState
from gambit.core.moves import find_move
from gambit.ai.opening_book import BOOK, BookMove, book_replies
from gambit.ai.time_manager import SearchClock, TimeManager, estimate_next_depth_ms


class TestOpeningBook:
    def test_parse_and_str(self):
        move = BookMove.parse('g1-f3')
        assert move == BookMove((7, 6), (5, 5))
        assert str(move) == 'g1-f3'

    def test_first_moves(self):
        assert [str(m) for m in book_replies(None)] == ['e2-e4', 'd2-d4', 'c2-c4', 'g1-f3']

    def test_unknown_key(self):
        assert book_replies(BookMove.parse('a2-a3')) == []

    def test_every_first_move_is_legal(self):
        state = BoardState.new_game()
        for move in BOOK[None]:
            assert find_move(state, str(move)) is not None

    def test_replies_to_e4_are_legal(self):
        state = BoardState.new_game()
        state.simulate(find_move(state, 'e2-e4'))
        state.switch_side()
        for move in book_replies(BookMove.parse('e2-e4')):
            assert find_move(state, str(move)) is not None


class TestSearchClock:
    def test_unlimited(self):
        clock = SearchClock()
        assert not clock.expired()
        assert clock.remaining_ms == float('inf')

    def test_zero_budget_expires(self):
        clock = SearchClock(0)
        assert clock.expired()
        assert clock.remaining_ms == 0.0

    def test_manager_hands_out_budget(self):
        manager = TimeManager(time_limit_ms=250)
        assert manager.start().time_limit_ms == 250

    def test_stats(self):
        manager = TimeManager()
        assert manager.avg_time_per_move == 0.0
        manager.update(100.0, 500, 3)
        manager.update(300.0, 1500, 5)

        stats = manager.stats()
        assert stats['moves_searched'] == 2
        assert stats['avg_time_per_move'] == 200.0
        assert stats['avg_depth'] == 4.0
        assert stats['max_depth'] == 5
        assert stats['nodes_per_second'] == 5000.0

    def test_can_fit(self):
        clock = SearchClock(1000)
        clock.started -= 0.9  # pretend 900ms have gone by
        assert clock.can_fit(50)
        assert not clock.can_fit(500)
        assert SearchClock().can_fit(1e9)


class TestDepthEstimate:
    def test_nothing_timed(self):
        assert estimate_next_depth_ms([]) == 0.0

    def test_single_depth_uses_default_growth(self):
        assert estimate_next_depth_ms([10.0]) == 40.0

    def test_follows_observed_growth(self):
        assert estimate_next_depth_ms([10.0, 80.0]) == 640.0

    def test_growth_has_a_floor(self):
        assert estimate_next_depth_ms([100.0, 50.0]) == 100.0

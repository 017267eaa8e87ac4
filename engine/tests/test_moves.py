"""Tests for move generation, legality filtering and attack detection."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from gambit.core.board import Color, PieceType, Move, MoveKind, CastlingRights, algebraic_to_sq
from gambit.core.state import BoardState
from gambit.core.moves import (
    MoveGenerator, get_legal_moves, has_legal_move, is_in_check,
    is_legal_move, get_move_count, find_move, perft,
)


def targets(state: BoardState, square: str) -> set[str]:
    row, col = algebraic_to_sq(square)
    return {m.to_algebraic()[3:] for m in MoveGenerator.legal_moves(state, row, col)}


class TestPerft:
    def test_start_position_white(self):
        assert perft(BoardState.new_game(), 1) == 20

    def test_black_after_any_white_move(self):
        state = BoardState.new_game()
        for move in get_legal_moves(state, Color.WHITE):
            with state.simulated(move):
                assert get_move_count(state, Color.BLACK) == 20

    def test_depth_two(self):
        assert perft(BoardState.new_game(), 2) == 400

    def test_depth_three(self):
        assert perft(BoardState.new_game(), 3) == 8902

    def test_promotions_count_four_ways(self):
        state = BoardState.from_pieces({'a7': 'P', 'e1': 'K', 'h6': 'k'})
        # 4 promotions + 5 king moves
        assert perft(state, 1) == 9


class TestPieceMoves:
    def test_pawn_pushes(self):
        state = BoardState.new_game()
        assert targets(state, 'e2') == {'e3', 'e4'}

    def test_pawn_blocked(self):
        state = BoardState.from_pieces({'e2': 'P', 'e3': 'n', 'e1': 'K', 'e8': 'k'})
        assert targets(state, 'e2') == set()

    def test_double_push_blocked_on_fourth_rank(self):
        state = BoardState.from_pieces({'e2': 'P', 'e4': 'n', 'e1': 'K', 'e8': 'k'})
        assert targets(state, 'e2') == {'e3'}

    def test_pawn_captures(self):
        state = BoardState.from_pieces({'e4': 'P', 'd5': 'p', 'f5': 'P', 'e1': 'K', 'e8': 'k'})
        assert targets(state, 'e4') == {'e5', 'd5'}

    def test_black_pawn_moves_down(self):
        state = BoardState.new_game()
        assert targets(state, 'd7') == {'d6', 'd5'}

    def test_knight(self):
        state = BoardState.new_game()
        assert targets(state, 'g1') == {'f3', 'h3'}

    def test_sliders_stop_at_pieces(self):
        state = BoardState.from_pieces({'d4': 'R', 'd6': 'p', 'b4': 'P', 'e1': 'K', 'e8': 'k'})
        assert targets(state, 'd4') == {
            'd5', 'd6', 'd3', 'd2', 'd1', 'c4', 'e4', 'f4', 'g4', 'h4',
        }

    def test_queen_combines_rook_and_bishop(self):
        state = BoardState.from_pieces({'a1': 'Q', 'h8': 'k', 'c3': 'K'})
        moves = targets(state, 'a1')
        assert 'a8' in moves and 'h1' in moves and 'b2' in moves
        assert 'd4' not in moves  # blocked by own king on c3

    def test_promotion_flag(self):
        state = BoardState.from_pieces({'a7': 'P', 'b8': 'r', 'e1': 'K', 'h6': 'k'})
        row, col = algebraic_to_sq('a7')
        moves = MoveGenerator.legal_moves(state, row, col)
        assert len(moves) == 2
        assert all(m.promotion for m in moves)
        assert {m.kind for m in moves} == {MoveKind.NORMAL, MoveKind.CAPTURE}

    def test_empty_square(self):
        assert MoveGenerator.legal_moves(BoardState.new_game(), 4, 4) == []


class TestLegality:
    POSITIONS = [
        BoardState.new_game,
        lambda: BoardState.from_pieces({'e1': 'K', 'e2': 'B', 'e8': 'r', 'a8': 'k', 'c3': 'n'}),
        lambda: BoardState.from_pieces({'a5': 'K', 'b5': 'P', 'h5': 'r', 'e8': 'k', 'd4': 'p', 'c2': 'Q'}),
        lambda: BoardState.from_pieces({'e1': 'K', 'h1': 'R', 'a1': 'R', 'e8': 'k', 'f8': 'r', 'b4': 'b'}),
    ]

    @pytest.mark.parametrize("make", POSITIONS)
    def test_legal_moves_never_leave_king_attacked(self, make):
        state = make()
        for color in Color:
            for move in get_legal_moves(state, color):
                with state.simulated(move):
                    assert not is_in_check(state, color), move.to_algebraic()

    def test_pinned_bishop_cannot_move(self):
        state = BoardState.from_pieces({'e1': 'K', 'e2': 'B', 'e8': 'r', 'a8': 'k'})
        assert targets(state, 'e2') == set()

    def test_must_answer_check(self):
        # Rook check on the e-file: only king moves or the block on e2 by the queen
        state = BoardState.from_pieces({'e1': 'K', 'd1': 'Q', 'e8': 'r', 'a8': 'k'})
        for move in get_legal_moves(state, Color.WHITE):
            with state.simulated(move):
                assert not is_in_check(state, Color.WHITE)
        assert targets(state, 'd1') == {'e2'}

    def test_is_legal_move_and_find_move(self):
        state = BoardState.new_game()
        assert is_legal_move(state, Move(6, 4, 4, 4))
        assert not is_legal_move(state, Move(6, 4, 3, 4))
        assert find_move(state, 'e2-e4') == Move(6, 4, 4, 4)
        assert find_move(state, 'e2-e5') is None
        with pytest.raises(ValueError):
            find_move(state, 'e2e4')


class TestAttacks:
    def test_white_pawn_attacks_forward_diagonals(self):
        state = BoardState.from_pieces({'e4': 'P', 'a1': 'K', 'h8': 'k'})
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('d5'), Color.BLACK)
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('f5'), Color.BLACK)
        assert not MoveGenerator.is_square_attacked(state, *algebraic_to_sq('d3'), Color.BLACK)
        assert not MoveGenerator.is_square_attacked(state, *algebraic_to_sq('e5'), Color.BLACK)

    def test_black_pawn_attacks_downward(self):
        state = BoardState.from_pieces({'d5': 'p', 'a1': 'K', 'h8': 'k'})
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('e4'), Color.WHITE)
        assert not MoveGenerator.is_square_attacked(state, *algebraic_to_sq('e6'), Color.WHITE)

    def test_knight_king_and_sliders(self):
        state = BoardState.from_pieces({'b1': 'n', 'h8': 'k', 'a8': 'r', 'h1': 'b', 'e1': 'K'})
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('c3'), Color.WHITE)
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('g7'), Color.WHITE)
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('a2'), Color.WHITE)
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('d5'), Color.WHITE)
        assert not MoveGenerator.is_square_attacked(state, *algebraic_to_sq('c4'), Color.WHITE)

    def test_slider_blocked(self):
        state = BoardState.from_pieces({'a8': 'r', 'a5': 'P', 'h8': 'k', 'e1': 'K'})
        assert MoveGenerator.is_square_attacked(state, *algebraic_to_sq('a5'), Color.WHITE)
        assert not MoveGenerator.is_square_attacked(state, *algebraic_to_sq('a4'), Color.WHITE)

    def test_does_not_mutate(self):
        state = BoardState.new_game()
        key = state.position_key()
        for row in range(8):
            for col in range(8):
                MoveGenerator.is_square_attacked(state, row, col, Color.WHITE)
        assert state.position_key() == key


class TestCastling:
    def base(self, **extra) -> BoardState:
        pieces = {'e1': 'K', 'a1': 'R', 'h1': 'R', 'e8': 'k'}
        pieces.update(extra)
        return BoardState.from_pieces(pieces)

    def castles(self, state: BoardState) -> set[str]:
        row, col = state.kings[Color.WHITE]
        return {m.to_algebraic() for m in MoveGenerator.legal_moves(state, row, col)
                if m.kind is MoveKind.CASTLING}

    def test_both_sides_available(self):
        assert self.castles(self.base()) == {'e1-g1', 'e1-c1'}

    def test_castling_move_carries_rook_columns(self):
        state = self.base()
        move = next(m for m in MoveGenerator.legal_moves(state, 7, 4) if m.kind is MoveKind.CASTLING and m.col == 6)
        assert (move.rook_from_col, move.rook_to_col) == (7, 5)

    def test_blocked_between(self):
        assert self.castles(self.base(f1='B')) == {'e1-c1'}
        assert self.castles(self.base(b1='N')) == {'e1-g1'}

    def test_not_through_attacked_square(self):
        assert self.castles(self.base(f8='r')) == {'e1-c1'}
        assert self.castles(self.base(g8='r')) == {'e1-c1'}

    def test_b_file_attack_does_not_stop_queen_side(self):
        assert self.castles(self.base(b8='r')) == {'e1-g1', 'e1-c1'}

    def test_not_out_of_check(self):
        assert self.castles(self.base(e5='r')) == set()

    def test_not_without_right(self):
        state = BoardState.from_pieces(
            {'e1': 'K', 'a1': 'R', 'h1': 'R', 'e8': 'k'},
            castling={Color.WHITE: CastlingRights(False, True), Color.BLACK: CastlingRights(False, False)},
        )
        assert self.castles(state) == {'e1-c1'}

    def test_not_without_rook(self):
        state = self.base()
        state.remove_piece(7, 7)
        assert self.castles(state) == {'e1-c1'}

    def test_rights_gone_after_castling(self):
        state = self.base()
        move = find_move(state, 'e1-g1')
        state.simulate(move)
        assert state.castling_rights[Color.WHITE] == CastlingRights(False, False)


class TestEnPassant:
    def test_capture_removes_pawn_beside(self):
        state = BoardState.from_pieces({'e5': 'P', 'd7': 'p', 'e1': 'K', 'e8': 'k'}, Color.BLACK)
        state.simulate(find_move(state, 'd7-d5'))

        move = next(m for m in MoveGenerator.legal_moves(state, 3, 4) if m.kind is MoveKind.EN_PASSANT)
        assert move.to_sq == (2, 3)
        assert move.captured_sq == (3, 3)

        state.simulate(move)
        assert state.get_piece(3, 3) is None
        assert state.get_piece(2, 3).type is PieceType.PAWN
        assert state.get_piece(3, 4) is None

    def test_only_immediately_after_double_push(self):
        state = BoardState.from_pieces({'e5': 'P', 'd7': 'p', 'e1': 'K', 'e8': 'k'}, Color.BLACK)
        state.simulate(find_move(state, 'd7-d5'))
        state.simulate(find_move(state, 'e1-f1'))
        state.simulate(find_move(state, 'e8-f8'))
        assert all(m.kind is not MoveKind.EN_PASSANT for m in MoveGenerator.legal_moves(state, 3, 4))

    def test_illegal_when_it_exposes_king(self):
        # Capturing would clear both pawns off the fifth rank
        state = BoardState.from_pieces({'a5': 'K', 'b5': 'P', 'c7': 'p', 'h5': 'r', 'e8': 'k'}, Color.BLACK)
        state.simulate(find_move(state, 'c7-c5'))
        assert targets(state, 'b5') == {'b6'}

    def test_no_target_without_adjacent_pawn(self):
        state = BoardState.new_game()
        state.simulate(find_move(state, 'e2-e4'))
        assert state.en_passant is not None
        for move in get_legal_moves(state, Color.BLACK):
            assert move.kind is not MoveKind.EN_PASSANT


class TestTerminal:
    def test_checkmate(self):
        # Back-rank mate
        state = BoardState.from_pieces({'g8': 'k', 'f7': 'p', 'g7': 'p', 'h7': 'p', 'a8': 'R', 'g1': 'K'}, Color.BLACK)
        assert is_in_check(state, Color.BLACK)
        assert not has_legal_move(state, Color.BLACK)

    def test_stalemate(self):
        state = BoardState.from_pieces({'a8': 'k', 'b6': 'Q', 'e1': 'K'}, Color.BLACK)
        assert not is_in_check(state, Color.BLACK)
        assert not has_legal_move(state, Color.BLACK)
        assert get_legal_moves(state) == []

"""
Handcrafted position evaluator for Gambit.

Scores a position from one side's point of view: material, piece-square
tables weighted by game phase, check, center control and mobility. The
hardest difficulty adds development, king safety and pawn structure.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional, TYPE_CHECKING

import numpy as np

from ..core.board import (
    CENTER_SQUARES, KING_DELTAS,
    Color, PieceType, Piece, Move, MoveKind, is_valid_sq,
)
from ..core.state import BoardState
from ..core.moves import MoveGenerator

if TYPE_CHECKING:
    from ..core.game import MoveRecord


PIECE_VALUES = {
    PieceType.PAWN: 100,
    PieceType.KNIGHT: 320,
    PieceType.BISHOP: 330,
    PieceType.ROOK: 500,
    PieceType.QUEEN: 900,
    PieceType.KING: 20000,
}

# Piece-square tables from white's side; row 0 is the 8th rank.
PIECE_SQUARE_TABLES = {
    PieceType.PAWN: np.array([
        [0, 0, 0, 0, 0, 0, 0, 0],
        [50, 50, 50, 50, 50, 50, 50, 50],
        [10, 10, 20, 30, 30, 20, 10, 10],
        [5, 5, 10, 25, 25, 10, 5, 5],
        [0, 0, 0, 20, 20, 0, 0, 0],
        [5, -5, -10, 0, 0, -10, -5, 5],
        [5, 10, 10, -20, -20, 10, 10, 5],
        [0, 0, 0, 0, 0, 0, 0, 0],
    ], dtype=np.int16),
    PieceType.KNIGHT: np.array([
        [-50, -40, -30, -30, -30, -30, -40, -50],
        [-40, -20, 0, 0, 0, 0, -20, -40],
        [-30, 0, 10, 15, 15, 10, 0, -30],
        [-30, 5, 15, 20, 20, 15, 5, -30],
        [-30, 0, 15, 20, 20, 15, 0, -30],
        [-30, 5, 10, 15, 15, 10, 5, -30],
        [-40, -20, 0, 5, 5, 0, -20, -40],
        [-50, -40, -30, -30, -30, -30, -40, -50],
    ], dtype=np.int16),
    PieceType.BISHOP: np.array([
        [-20, -10, -10, -10, -10, -10, -10, -20],
        [-10, 0, 0, 0, 0, 0, 0, -10],
        [-10, 0, 10, 10, 10, 10, 0, -10],
        [-10, 5, 5, 10, 10, 5, 5, -10],
        [-10, 0, 5, 10, 10, 5, 0, -10],
        [-10, 5, 5, 5, 5, 5, 5, -10],
        [-10, 0, 5, 0, 0, 5, 0, -10],
        [-20, -10, -10, -10, -10, -10, -10, -20],
    ], dtype=np.int16),
    PieceType.ROOK: np.array([
        [0, 0, 0, 0, 0, 0, 0, 0],
        [5, 10, 10, 10, 10, 10, 10, 5],
        [-5, 0, 0, 0, 0, 0, 0, -5],
        [-5, 0, 0, 0, 0, 0, 0, -5],
        [-5, 0, 0, 0, 0, 0, 0, -5],
        [-5, 0, 0, 0, 0, 0, 0, -5],
        [-5, 0, 0, 0, 0, 0, 0, -5],
        [0, 0, 0, 5, 5, 0, 0, 0],
    ], dtype=np.int16),
    PieceType.QUEEN: np.array([
        [-20, -10, -10, -5, -5, -10, -10, -20],
        [-10, 0, 0, 0, 0, 0, 0, -10],
        [-10, 0, 5, 5, 5, 5, 0, -10],
        [-5, 0, 5, 5, 5, 5, 0, -5],
        [0, 0, 5, 5, 5, 5, 0, -5],
        [-10, 5, 5, 5, 5, 5, 0, -10],
        [-10, 0, 5, 0, 0, 0, 0, -10],
        [-20, -10, -10, -5, -5, -10, -10, -20],
    ], dtype=np.int16),
    PieceType.KING: np.array([
        [-30, -40, -40, -50, -50, -40, -40, -30],
        [-30, -40, -40, -50, -50, -40, -40, -30],
        [-30, -40, -40, -50, -50, -40, -40, -30],
        [-30, -40, -40, -50, -50, -40, -40, -30],
        [-20, -30, -30, -40, -40, -30, -30, -20],
        [-10, -20, -20, -20, -20, -20, -20, -10],
        [20, 20, 0, 0, 0, 0, 20, 20],
        [20, 30, 10, 0, 0, 10, 30, 20],
    ], dtype=np.int16),
}

KING_ENDGAME_TABLE = np.array([
    [-50, -40, -30, -20, -20, -30, -40, -50],
    [-30, -20, -10, 0, 0, -10, -20, -30],
    [-30, -10, 20, 30, 30, 20, -10, -30],
    [-30, -10, 30, 40, 40, 30, -10, -30],
    [-30, -10, 30, 40, 40, 30, -10, -30],
    [-30, -10, 20, 30, 30, 20, -10, -30],
    [-30, -30, 0, 0, 0, 0, -30, -30],
    [-50, -30, -30, -30, -30, -30, -30, -50],
], dtype=np.int16)

# Black reads the same tables mirrored top to bottom
_BLACK_TABLES = {t: np.flipud(table) for t, table in PIECE_SQUARE_TABLES.items()}
_BLACK_KING_ENDGAME = np.flipud(KING_ENDGAME_TABLE)

OPENING_HALF_MOVES = 10
ENDGAME_MATERIAL = 3000
ENDGAME_PIECES = 10

MINORS = (PieceType.KNIGHT, PieceType.BISHOP)


class GamePhase(str, Enum):
    OPENING = "opening"
    MIDDLEGAME = "middlegame"
    ENDGAME = "endgame"


PHASE_WEIGHTS = {
    GamePhase.OPENING: 1.2,
    GamePhase.MIDDLEGAME: 1.0,
    GamePhase.ENDGAME: 0.8,
}


def half_moves_played(state: BoardState) -> int:
    """Half-moves since the start, from the move counters."""
    return 2 * (state.full_move_number - 1) + (1 if state.side_to_move is Color.BLACK else 0)


def game_phase(state: BoardState, half_moves: Optional[int] = None) -> GamePhase:
    """
    Classify the position.

    Opening for the first 10 half-moves; then endgame once non-king
    material drops under 3000 or fewer than 10 non-king pieces remain.
    """
    if half_moves is None:
        half_moves = half_moves_played(state)
    if half_moves < OPENING_HALF_MOVES:
        return GamePhase.OPENING

    material = 0
    count = 0
    for _, _, piece in state.pieces():
        if piece.type is not PieceType.KING:
            material += PIECE_VALUES[piece.type]
            count += 1

    if material < ENDGAME_MATERIAL or count < ENDGAME_PIECES:
        return GamePhase.ENDGAME
    return GamePhase.MIDDLEGAME


def square_value(piece: Piece, row: int, col: int, phase: GamePhase) -> int:
    """Piece-square table entry for `piece` standing on (row, col)."""
    white = piece.color is Color.WHITE
    if piece.type is PieceType.KING and phase is GamePhase.ENDGAME:
        table = KING_ENDGAME_TABLE if white else _BLACK_KING_ENDGAME
    else:
        table = PIECE_SQUARE_TABLES[piece.type] if white else _BLACK_TABLES[piece.type]
    return int(table[row, col])


def _center_distance(row: int, col: int) -> float:
    return abs(3.5 - row) + abs(3.5 - col)


class Evaluator:
    """
    Static evaluation used by the search engine.

    Args:
        difficulty: 1-3; only 3 enables the extra positional terms.
    """

    def __init__(self, difficulty: int = 2):
        self.difficulty = difficulty

    @property
    def thorough(self) -> bool:
        return self.difficulty == 3

    def evaluate(
        self,
        state: BoardState,
        color: Color,
        phase: Optional[GamePhase] = None,
    ) -> float:
        """Score the position for `color`; positive is good for `color`."""
        if phase is None:
            phase = game_phase(state)
        weight = PHASE_WEIGHTS[phase]
        opp = color.opponent

        score = 0.0
        for row, col, piece in state.pieces():
            value = PIECE_VALUES[piece.type] + square_value(piece, row, col, phase) * weight
            score += value if piece.color is color else -value

        check_bonus = 80 if self.thorough else 50
        if MoveGenerator.is_in_check(state, opp):
            score += check_bonus
        if MoveGenerator.is_in_check(state, color):
            score -= check_bonus

        own_moves = MoveGenerator.get_legal_moves(state, color)
        opp_moves = MoveGenerator.get_legal_moves(state, opp)
        score += self.center_control(state, color, own_moves)
        score += 2 * (len(own_moves) - len(opp_moves))

        if self.thorough:
            score += self.development(state, color, phase)
            score += self.king_safety(state, color, phase)
            score += self.pawn_structure(state, color)

        return score

    def center_control(self, state: BoardState, color: Color, moves: list[Move]) -> int:
        """+10 per own piece on a center square, +5 per own piece that can move onto one."""
        score = 0
        for row, col in CENTER_SQUARES:
            piece = state.get_piece(row, col)
            if piece is not None and piece.color is color:
                score += 10
            movers = {m.from_sq for m in moves if m.to_sq == (row, col)}
            score += 5 * len(movers)
        return score

    def development(self, state: BoardState, color: Color, phase: GamePhase) -> int:
        if phase is not GamePhase.OPENING:
            return 0

        score = 0
        home = color.home_row
        for row, col, piece in state.pieces(color):
            if piece.type not in MINORS:
                continue
            if row == home:
                score -= 10
            else:
                score += 5

        king_row, king_col = state.kings[color]
        if king_row == home and king_col in (2, 6):
            score += 30
        return score

    def king_safety(self, state: BoardState, color: Color, phase: GamePhase) -> float:
        king_row, king_col = state.kings[color]
        score = 0.0
        for dr, dc in KING_DELTAS:
            r, c = king_row + dr, king_col + dc
            if not is_valid_sq(r, c):
                continue
            piece = state.get_piece(r, c)
            if piece is not None:
                score += 5 if piece.color is color else -8
            if MoveGenerator.is_square_attacked(state, r, c, color):
                score -= 5

        dist = _center_distance(king_row, king_col)
        if phase is GamePhase.ENDGAME:
            score += (4 - dist) * 5
        elif dist < 2:
            score -= 20
        return score

    def pawn_structure(self, state: BoardState, color: Color) -> int:
        score = 0
        files = np.zeros(8, dtype=np.int8)
        advanced = np.zeros(8, dtype=bool)

        for row, col, piece in state.pieces(color):
            if piece.type is not PieceType.PAWN:
                continue
            files[col] += 1

            # Past the middle of the board
            if (color is Color.WHITE and row < 4) or (color is Color.BLACK and row > 3):
                advanced[col] = True
                score += 5

            for c in (col - 1, col + 1):
                neighbour = state.get_piece(row, c)
                if neighbour is not None and neighbour.type is PieceType.PAWN and neighbour.color is color:
                    score += 5

            if state.get_piece(row + color.forward, col) is not None:
                score -= 10

        for col in range(8):
            if files[col] == 0:
                continue
            left = files[col - 1] if col > 0 else 0
            right = files[col + 1] if col < 7 else 0
            if left == 0 and right == 0:
                score -= 10
            if files[col] > 1:
                score -= (int(files[col]) - 1) * 15

        if advanced[3] or advanced[4]:
            score += 10
        return score

    def evaluate_move(
        self,
        state: BoardState,
        move: Move,
        piece: Optional[Piece] = None,
        last_move: Optional[MoveRecord] = None,
        phase: Optional[GamePhase] = None,
    ) -> float:
        """Quick heuristic score of a move, used for move ordering."""
        if piece is None:
            piece = state.get_piece(move.from_row, move.from_col)
        if phase is None:
            phase = game_phase(state)
        score = 0.0

        if move.is_capture:
            victim = state.get_piece(*move.captured_sq)
            if victim is not None:
                gain = PIECE_VALUES[victim.type]
                score += gain * 10
                surplus = gain - PIECE_VALUES[piece.type]
                if self.thorough and surplus > 0:
                    score += surplus * 2

        delta = (square_value(piece, move.row, move.col, GamePhase.MIDDLEGAME)
                 - square_value(piece, move.from_row, move.from_col, GamePhase.MIDDLEGAME))
        score += delta * (1.5 if phase is not GamePhase.ENDGAME else 1.0)

        if move.promotion:
            score += PIECE_VALUES[PieceType.QUEEN] - PIECE_VALUES[PieceType.PAWN]

        if move.kind is MoveKind.CASTLING:
            score += 30
            if self.thorough and phase is GamePhase.OPENING:
                score += 20

        with state.simulated(move):
            if MoveGenerator.is_in_check(state, piece.color):
                score -= 150 if self.thorough else 100
            if MoveGenerator.is_in_check(state, piece.color.opponent):
                score += 70 if self.thorough else 50

        if self.thorough:
            if phase is GamePhase.OPENING and piece.type in MINORS:
                home = piece.color.home_row
                if move.from_row == home and move.row != home:
                    score += 15

            if phase is GamePhase.ENDGAME and piece.type is PieceType.KING:
                score += (4 - _center_distance(move.row, move.col)) * 5

            if (last_move is not None and last_move.piece.color is piece.color
                    and last_move.from_sq == move.to_sq and last_move.to_sq == move.from_sq):
                score -= 30

        return score

"""
Move generation for Gambit.

Each piece type has a pseudo-legal generator; `legal_moves` filters those
by simulating each move and rejecting any that leave the mover's king
attacked.
"""

from __future__ import annotations
from typing import Optional

from .board import (
    KNIGHT_DELTAS, KING_DELTAS, ROOK_DIRS, BISHOP_DIRS, QUEEN_DIRS,
    PROMOTION_TYPES, Color, PieceType, Move, MoveKind,
    is_valid_sq, algebraic_to_sq,
)
from .state import BoardState


class MoveGenerator:
    """Generates pseudo-legal and legal moves for a board state."""

    @staticmethod
    def pawn_moves(state: BoardState, row: int, col: int, color: Color) -> list[Move]:
        """Pushes, captures and en passant. Pawns never move backwards."""
        moves = []
        step = color.forward
        ahead = row + step
        promotes = ahead == color.promotion_row

        if is_valid_sq(ahead, col) and state.get_piece(ahead, col) is None:
            moves.append(Move(row, col, ahead, col, promotion=promotes))

            two_ahead = row + 2 * step
            if row == color.pawn_row and state.get_piece(two_ahead, col) is None:
                moves.append(Move(row, col, two_ahead, col))

        ep = state.en_passant
        for dc in (-1, 1):
            c = col + dc
            if not is_valid_sq(ahead, c):
                continue
            target = state.get_piece(ahead, c)
            if target is not None and target.color is not color:
                moves.append(Move(row, col, ahead, c, MoveKind.CAPTURE, promotion=promotes))
            elif target is None and ep is not None and ep.row == ahead and ep.col == c:
                victim = state.get_piece(ep.capture_row, ep.capture_col)
                if victim is not None and victim.color is not color:
                    moves.append(Move(
                        row, col, ahead, c, MoveKind.EN_PASSANT,
                        capture_row=ep.capture_row, capture_col=ep.capture_col,
                    ))

        return moves

    @staticmethod
    def step_moves(
        state: BoardState, row: int, col: int, color: Color,
        deltas: list[tuple[int, int]]
    ) -> list[Move]:
        """Fixed-offset moves (knight, king)."""
        moves = []
        for dr, dc in deltas:
            r, c = row + dr, col + dc
            if not is_valid_sq(r, c):
                continue
            target = state.get_piece(r, c)
            if target is None:
                moves.append(Move(row, col, r, c))
            elif target.color is not color:
                moves.append(Move(row, col, r, c, MoveKind.CAPTURE))
        return moves

    @staticmethod
    def sliding_moves(
        state: BoardState, row: int, col: int, color: Color,
        directions: list[tuple[int, int]]
    ) -> list[Move]:
        """Ray moves (rook, bishop, queen), stopped by the first occupant."""
        moves = []
        for dr, dc in directions:
            r, c = row + dr, col + dc
            while is_valid_sq(r, c):
                target = state.get_piece(r, c)
                if target is None:
                    moves.append(Move(row, col, r, c))
                else:
                    if target.color is not color:
                        moves.append(Move(row, col, r, c, MoveKind.CAPTURE))
                    break
                r += dr
                c += dc
        return moves

    @staticmethod
    def castling_moves(state: BoardState, row: int, col: int, color: Color) -> list[Move]:
        """
        Castling moves for a king on (row, col).

        Requires the king on its home square and not in check, the right
        still held, empty squares between king and rook, an own rook on the
        corner, and no attacked square on the king's path.
        """
        if (row, col) != (color.home_row, 4):
            return []
        if MoveGenerator.is_square_attacked(state, row, col, color):
            return []

        moves = []
        rights = state.castling_rights[color]
        for allowed, rook_col, step in ((rights.king_side, 7, 1), (rights.queen_side, 0, -1)):
            if not allowed:
                continue
            rook = state.get_piece(row, rook_col)
            if rook is None or rook.type is not PieceType.ROOK or rook.color is not color:
                continue
            between = range(min(col, rook_col) + 1, max(col, rook_col))
            if any(state.get_piece(row, c) is not None for c in between):
                continue
            path = (col + step, col + 2 * step)
            if any(MoveGenerator.is_square_attacked(state, row, c, color) for c in path):
                continue
            moves.append(Move(
                row, col, row, col + 2 * step, MoveKind.CASTLING,
                rook_from_col=rook_col, rook_to_col=col + step,
            ))
        return moves

    @staticmethod
    def pseudo_legal_moves(state: BoardState, row: int, col: int) -> list[Move]:
        """Moves for the piece on (row, col) ignoring self-check."""
        piece = state.get_piece(row, col)
        if piece is None:
            return []

        color = piece.color
        kind = piece.type
        if kind is PieceType.PAWN:
            return MoveGenerator.pawn_moves(state, row, col, color)
        elif kind is PieceType.KNIGHT:
            return MoveGenerator.step_moves(state, row, col, color, KNIGHT_DELTAS)
        elif kind is PieceType.BISHOP:
            return MoveGenerator.sliding_moves(state, row, col, color, BISHOP_DIRS)
        elif kind is PieceType.ROOK:
            return MoveGenerator.sliding_moves(state, row, col, color, ROOK_DIRS)
        elif kind is PieceType.QUEEN:
            return MoveGenerator.sliding_moves(state, row, col, color, QUEEN_DIRS)
        else:
            return (MoveGenerator.step_moves(state, row, col, color, KING_DELTAS)
                    + MoveGenerator.castling_moves(state, row, col, color))

    @staticmethod
    def legal_moves(state: BoardState, row: int, col: int) -> list[Move]:
        """Pseudo-legal moves for (row, col) that don't leave the own king attacked."""
        piece = state.get_piece(row, col)
        if piece is None:
            return []

        legal = []
        for move in MoveGenerator.pseudo_legal_moves(state, row, col):
            with state.simulated(move):
                king_row, king_col = state.kings[piece.color]
                if not MoveGenerator.is_square_attacked(state, king_row, king_col, piece.color):
                    legal.append(move)
        return legal

    @staticmethod
    def is_square_attacked(state: BoardState, row: int, col: int, color: Color) -> bool:
        """
        Check whether any piece of `color`'s opponent attacks (row, col).

        Pure function of the board; nothing is mutated.
        """
        opp = color.opponent

        # Pawns attack diagonally toward the defender, so look back along their direction
        pawn_row = row - opp.forward
        for dc in (-1, 1):
            p = state.get_piece(pawn_row, col + dc)
            if p is not None and p.color is opp and p.type is PieceType.PAWN:
                return True

        for dr, dc in KNIGHT_DELTAS:
            p = state.get_piece(row + dr, col + dc)
            if p is not None and p.color is opp and p.type is PieceType.KNIGHT:
                return True

        for dr, dc in KING_DELTAS:
            p = state.get_piece(row + dr, col + dc)
            if p is not None and p.color is opp and p.type is PieceType.KING:
                return True

        for directions, sliders in (
            (ROOK_DIRS, (PieceType.ROOK, PieceType.QUEEN)),
            (BISHOP_DIRS, (PieceType.BISHOP, PieceType.QUEEN)),
        ):
            for dr, dc in directions:
                r, c = row + dr, col + dc
                while is_valid_sq(r, c):
                    p = state.grid[r][c]
                    if p is not None:
                        if p.color is opp and p.type in sliders:
                            return True
                        break
                    r += dr
                    c += dc

        return False

    @staticmethod
    def get_legal_moves(state: BoardState, color: Color) -> list[Move]:
        """All legal moves for every piece of `color`."""
        moves = []
        for row, col, _ in list(state.pieces(color)):
            moves.extend(MoveGenerator.legal_moves(state, row, col))
        return moves

    @staticmethod
    def has_legal_move(state: BoardState, color: Color) -> bool:
        """Stops at the first piece that can move."""
        for row, col, _ in list(state.pieces(color)):
            if MoveGenerator.legal_moves(state, row, col):
                return True
        return False

    @staticmethod
    def is_in_check(state: BoardState, color: Color) -> bool:
        row, col = state.kings[color]
        return MoveGenerator.is_square_attacked(state, row, col, color)


# Convenience functions
def get_legal_moves(state: BoardState, color: Optional[Color] = None) -> list[Move]:
    """Get all legal moves for `color` (default: side to move)."""
    return MoveGenerator.get_legal_moves(state, color or state.side_to_move)


def has_legal_move(state: BoardState, color: Optional[Color] = None) -> bool:
    return MoveGenerator.has_legal_move(state, color or state.side_to_move)


def is_in_check(state: BoardState, color: Optional[Color] = None) -> bool:
    return MoveGenerator.is_in_check(state, color or state.side_to_move)


def is_legal_move(state: BoardState, move: Move) -> bool:
    """Check if a move is legal."""
    return move in MoveGenerator.legal_moves(state, move.from_row, move.from_col)


def get_move_count(state: BoardState, color: Optional[Color] = None) -> int:
    """Get number of legal moves."""
    return len(get_legal_moves(state, color))


def find_move(state: BoardState, notation: str) -> Optional[Move]:
    """Find the legal move matching coordinate notation like 'e2-e4'."""
    parts = notation.strip().lower().split('-')
    if len(parts) != 2:
        raise ValueError(f"Invalid move format: {notation}")
    src = algebraic_to_sq(parts[0])
    dst = algebraic_to_sq(parts[1])
    for move in MoveGenerator.legal_moves(state, *src):
        if move.to_sq == dst:
            return move
    return None


def perft(state: BoardState, depth: int, color: Optional[Color] = None) -> int:
    """
    Count leaf nodes of the legal move tree to `depth` plies.

    Promotions are expanded into all four piece types.
    """
    color = color or state.side_to_move
    if depth == 0:
        return 1

    moves = get_legal_moves(state, color)
    if depth == 1:
        return sum(4 if m.promotion else 1 for m in moves)

    nodes = 0
    for move in moves:
        promotions = PROMOTION_TYPES if move.promotion else (None,)
        for promotion in promotions:
            with state.simulated(move, promotion):
                nodes += perft(state, depth - 1, color.opponent)
    return nodes

"""
Board state representation for Gambit.

An 8x8 grid of optional pieces plus the auxiliary state the rules need:
side to move, castling rights, en-passant target, king squares and move
clocks. Moves are applied with `simulate` and reverted with `undo`; the
`simulated` context manager pairs the two so the board is restored on
every exit path.
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional
import logging

import numpy as np

from .board import (
    ROWS, COLS, PIECE_CODES,
    Color, PieceType, Piece, Move, MoveKind,
    CastlingRights, EnPassantTarget,
    algebraic_to_sq, sq_to_algebraic, iter_squares,
)

logger = logging.getLogger(__name__)

BACK_RANK = [
    PieceType.ROOK, PieceType.KNIGHT, PieceType.BISHOP, PieceType.QUEEN,
    PieceType.KING, PieceType.BISHOP, PieceType.KNIGHT, PieceType.ROOK,
]


def _empty_grid() -> list[list[Optional[Piece]]]:
    return [[None] * COLS for _ in range(ROWS)]


def _full_rights() -> dict[Color, CastlingRights]:
    return {Color.WHITE: CastlingRights(), Color.BLACK: CastlingRights()}


def _default_kings() -> dict[Color, tuple[int, int]]:
    return {Color.WHITE: (7, 4), Color.BLACK: (0, 4)}


@dataclass
class Undo:
    """Everything `BoardState.undo` needs to reverse one `simulate` call."""
    move: Move
    piece: Piece
    captured: Optional[Piece]
    castling: tuple[bool, bool, bool, bool]
    en_passant: Optional[EnPassantTarget]
    king_sq: tuple[int, int]
    promoted_from: Optional[PieceType] = None


@dataclass
class BoardState:
    """
    Mutable chess position.

    Attributes:
        grid: 8x8 list of Optional[Piece], grid[row][col]
        side_to_move: Color whose turn it is
        castling_rights: Per-color king/queen side rights
        en_passant: Target left by the last two-square pawn push, if any
        kings: Cached king square per color
        half_move_clock: Half-moves since the last pawn move or capture
        full_move_number: Starts at 1, incremented after black moves
    """
    grid: list[list[Optional[Piece]]] = field(default_factory=_empty_grid)
    side_to_move: Color = Color.WHITE
    castling_rights: dict[Color, CastlingRights] = field(default_factory=_full_rights)
    en_passant: Optional[EnPassantTarget] = None
    kings: dict[Color, tuple[int, int]] = field(default_factory=_default_kings)
    half_move_clock: int = 0
    full_move_number: int = 1

    @classmethod
    def new_game(cls) -> BoardState:
        """Create a board in the standard starting position."""
        state = cls()
        for col, piece_type in enumerate(BACK_RANK):
            state.grid[0][col] = Piece(piece_type, Color.BLACK)
            state.grid[7][col] = Piece(piece_type, Color.WHITE)
        for col in range(COLS):
            state.grid[1][col] = Piece(PieceType.PAWN, Color.BLACK)
            state.grid[6][col] = Piece(PieceType.PAWN, Color.WHITE)
        return state

    @classmethod
    def from_pieces(
        cls,
        placement: dict[str, str],
        side_to_move: Color = Color.WHITE,
        castling: Optional[dict[Color, CastlingRights]] = None,
    ) -> BoardState:
        """
        Build a position from {'e1': 'K', 'e8': 'k', ...}.

        Uppercase symbols are white, lowercase black. Castling rights default
        to whatever the king and rook placement still allows.
        """
        state = cls(side_to_move=side_to_move)
        for square, symbol in placement.items():
            row, col = algebraic_to_sq(square)
            color = Color.WHITE if symbol.isupper() else Color.BLACK
            state.place_piece(row, col, Piece(PieceType.from_symbol(symbol), color))

        for color in Color:
            found = [(r, c) for r, c, p in state.pieces(color) if p.type is PieceType.KING]
            if len(found) != 1:
                raise ValueError(f"Position needs exactly one {color.value} king")
            state.kings[color] = found[0]

        if castling is None:
            castling = {color: state._inferred_rights(color) for color in Color}
        state.castling_rights = {color: rights.copy() for color, rights in castling.items()}
        return state

    def _inferred_rights(self, color: Color) -> CastlingRights:
        home = color.home_row
        king = self.get_piece(home, 4)
        if king is None or king.type is not PieceType.KING or king.color is not color:
            return CastlingRights(False, False)

        def has_rook(col: int) -> bool:
            rook = self.get_piece(home, col)
            return rook is not None and rook.type is PieceType.ROOK and rook.color is color

        return CastlingRights(king_side=has_rook(7), queen_side=has_rook(0))

    # --- Accessors ---

    def get_piece(self, row: int, col: int) -> Optional[Piece]:
        """Return the piece at (row, col), or None if empty or off the board."""
        if 0 <= row < ROWS and 0 <= col < COLS:
            return self.grid[row][col]
        return None

    def place_piece(self, row: int, col: int, piece: Optional[Piece]) -> None:
        self.grid[row][col] = piece

    def remove_piece(self, row: int, col: int) -> Optional[Piece]:
        piece = self.grid[row][col]
        self.grid[row][col] = None
        return piece

    def pieces(self, color: Optional[Color] = None) -> Iterator[tuple[int, int, Piece]]:
        """Iterate over (row, col, piece), optionally filtered by color."""
        for row, col in iter_squares():
            piece = self.grid[row][col]
            if piece is not None and (color is None or piece.color is color):
                yield row, col, piece

    def switch_side(self) -> None:
        self.side_to_move = self.side_to_move.opponent

    # --- Simulation ---

    def simulate(self, move: Move, promotion: Optional[PieceType] = None) -> Undo:
        """
        Apply a move in place and return the record needed to undo it.

        Handles captures, en-passant removal, castling rook relocation, the
        king cache, castling-rights revocation and the en-passant target.
        Does not touch side_to_move or the move clocks. If `promotion` is
        given and the move promotes, the pawn becomes that piece type.

        Raises:
            ValueError: if no piece stands on the move's source square.
        """
        piece = self.get_piece(move.from_row, move.from_col)
        if piece is None:
            logger.error("simulate: no piece on %s for %s",
                         sq_to_algebraic(*move.from_sq), move.to_algebraic())
            raise ValueError(f"No piece on {sq_to_algebraic(*move.from_sq)}")

        cap_row, cap_col = move.captured_sq
        captured = self.grid[cap_row][cap_col] if move.kind is not MoveKind.CASTLING else None

        undo = Undo(
            move=move,
            piece=piece,
            captured=captured,
            castling=self._rights_tuple(),
            en_passant=self.en_passant,
            king_sq=self.kings[piece.color],
        )

        self.grid[move.from_row][move.from_col] = None
        if captured is not None:
            self.grid[cap_row][cap_col] = None
        self.grid[move.row][move.col] = piece

        if piece.type is PieceType.KING:
            self.kings[piece.color] = (move.row, move.col)
            if move.kind is MoveKind.CASTLING:
                rook = self.grid[move.from_row][move.rook_from_col]
                self.grid[move.from_row][move.rook_from_col] = None
                self.grid[move.from_row][move.rook_to_col] = rook

        self._revoke_rights(piece, move, captured)

        if piece.type is PieceType.PAWN and abs(move.from_row - move.row) == 2:
            self.en_passant = EnPassantTarget(
                row=(move.from_row + move.row) // 2,
                col=move.col,
                capture_row=move.row,
                capture_col=move.col,
            )
        else:
            self.en_passant = None

        if promotion is not None and move.promotion:
            undo.promoted_from = piece.type
            piece.type = promotion

        return undo

    def undo(self, undo: Undo) -> None:
        """Reverse a `simulate` call exactly."""
        move = undo.move
        self.grid[move.row][move.col] = None

        if move.kind is MoveKind.CASTLING:
            rook = self.grid[move.from_row][move.rook_to_col]
            self.grid[move.from_row][move.rook_to_col] = None
            self.grid[move.from_row][move.rook_from_col] = rook

        if undo.promoted_from is not None:
            undo.piece.type = undo.promoted_from

        self.grid[move.from_row][move.from_col] = undo.piece
        if undo.captured is not None:
            cap_row, cap_col = move.captured_sq
            self.grid[cap_row][cap_col] = undo.captured

        self.kings[undo.piece.color] = undo.king_sq
        self._restore_rights(undo.castling)
        self.en_passant = undo.en_passant

    @contextmanager
    def simulated(self, move: Move, promotion: Optional[PieceType] = None) -> Iterator[Undo]:
        """Apply `move` for the duration of the block, then undo it."""
        undo = self.simulate(move, promotion)
        try:
            yield undo
        finally:
            self.undo(undo)

    def _revoke_rights(self, piece: Piece, move: Move, captured: Optional[Piece]) -> None:
        rights = self.castling_rights[piece.color]
        if piece.type is PieceType.KING:
            rights.king_side = False
            rights.queen_side = False
        elif piece.type is PieceType.ROOK and move.from_row == piece.color.home_row:
            if move.from_col == 0:
                rights.queen_side = False
            elif move.from_col == 7:
                rights.king_side = False

        # A rook captured on its corner takes the right with it
        if captured is not None and captured.type is PieceType.ROOK:
            opp = captured.color
            if move.row == opp.home_row:
                if move.col == 0:
                    self.castling_rights[opp].queen_side = False
                elif move.col == 7:
                    self.castling_rights[opp].king_side = False

    def _rights_tuple(self) -> tuple[bool, bool, bool, bool]:
        w = self.castling_rights[Color.WHITE]
        b = self.castling_rights[Color.BLACK]
        return (w.king_side, w.queen_side, b.king_side, b.queen_side)

    def _restore_rights(self, rights: tuple[bool, bool, bool, bool]) -> None:
        w = self.castling_rights[Color.WHITE]
        b = self.castling_rights[Color.BLACK]
        w.king_side, w.queen_side, b.king_side, b.queen_side = rights

    # --- Snapshots ---

    def copy(self) -> BoardState:
        """Deep copy; pieces are duplicated so promotions don't leak."""
        return BoardState(
            grid=[[p.snapshot() if p else None for p in row] for row in self.grid],
            side_to_move=self.side_to_move,
            castling_rights={c: r.copy() for c, r in self.castling_rights.items()},
            en_passant=self.en_passant,
            kings=dict(self.kings),
            half_move_clock=self.half_move_clock,
            full_move_number=self.full_move_number,
        )

    def to_array(self) -> np.ndarray:
        """
        Encode the board as an (8, 8) int8 array.

        Pawn=1 .. King=6, positive for white and negative for black, 0 empty.
        """
        board = np.zeros((ROWS, COLS), dtype=np.int8)
        for row, col, piece in self.pieces():
            code = PIECE_CODES[piece.type]
            board[row, col] = code if piece.color is Color.WHITE else -code
        return board

    def en_passant_capturable(self) -> bool:
        """True if a pawn stands beside the double-pushed pawn, ready to take it."""
        ep = self.en_passant
        if ep is None:
            return False
        pushed = self.grid[ep.capture_row][ep.capture_col]
        if pushed is None:
            return False
        for col in (ep.capture_col - 1, ep.capture_col + 1):
            piece = self.get_piece(ep.capture_row, col)
            if piece is not None and piece.type is PieceType.PAWN and piece.color is not pushed.color:
                return True
        return False

    def position_key(self) -> bytes:
        """
        Key for repetition detection: placement, side, rights and en passant.

        The en-passant square only counts while a pawn can take on it.
        """
        ep = self.en_passant if self.en_passant_capturable() else None
        extra = bytes([
            0 if self.side_to_move is Color.WHITE else 1,
            *(int(r) for r in self._rights_tuple()),
            ep.row if ep else 255,
            ep.col if ep else 255,
        ])
        return self.to_array().tobytes() + extra

    def __repr__(self) -> str:
        """Pretty print the board."""
        lines = []
        for row in range(ROWS):
            rank = f"{ROWS - row} |"
            for col in range(COLS):
                piece = self.grid[row][col]
                rank += " " + (piece.symbol if piece else ".")
            lines.append(rank)

        lines.append("  +" + "-" * (COLS * 2))
        lines.append("    " + " ".join("abcdefgh"))
        lines.append(f"\n{self.side_to_move.value.capitalize()} to move (move {self.full_move_number})")

        return "\n".join(lines)

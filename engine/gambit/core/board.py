"""
Board primitives for Gambit: squares, colors, pieces and move descriptors.

Board layout (row, col), row 0 is black's back rank:

  8 | (0,0) (0,1) (0,2) (0,3) (0,4) (0,5) (0,6) (0,7)
  7 | (1,0) ...
  ...
  2 | (6,0) ...
  1 | (7,0) (7,1) (7,2) (7,3) (7,4) (7,5) (7,6) (7,7)
    +-----------------------------------------------
       a     b     c     d     e     f     g     h

Algebraic 'e2' is (6, 4); 'a8' is (0, 0).
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Iterator, Optional

# Board dimensions
ROWS = 8
COLS = 8
NUM_SQUARES = ROWS * COLS

FILES = "abcdefgh"


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> Color:
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def home_row(self) -> int:
        """Back rank of this color."""
        return 7 if self is Color.WHITE else 0

    @property
    def pawn_row(self) -> int:
        """Row this color's pawns start on."""
        return 6 if self is Color.WHITE else 1

    @property
    def forward(self) -> int:
        """Row delta of a pawn push."""
        return -1 if self is Color.WHITE else 1

    @property
    def promotion_row(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceType(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> PieceType:
        for piece_type, sym in _SYMBOLS.items():
            if sym == symbol.upper():
                return piece_type
        raise ValueError(f"Unknown piece symbol: {symbol}")


_SYMBOLS = {
    PieceType.PAWN: "P",
    PieceType.KNIGHT: "N",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.QUEEN: "Q",
    PieceType.KING: "K",
}

PROMOTION_TYPES = (PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT)

# Signed codes used by BoardState.to_array (white positive, black negative)
PIECE_CODES = {
    PieceType.PAWN: 1,
    PieceType.KNIGHT: 2,
    PieceType.BISHOP: 3,
    PieceType.ROOK: 4,
    PieceType.QUEEN: 5,
    PieceType.KING: 6,
}

# Offset tables (row_delta, col_delta)
KNIGHT_DELTAS = [
    (-2, -1), (-2, 1), (-1, -2), (-1, 2),
    (1, -2), (1, 2), (2, -1), (2, 1)
]

KING_DELTAS = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1)
]

ROOK_DIRS = [(-1, 0), (1, 0), (0, -1), (0, 1)]
BISHOP_DIRS = [(-1, -1), (-1, 1), (1, -1), (1, 1)]
QUEEN_DIRS = ROOK_DIRS + BISHOP_DIRS

CENTER_SQUARES = [(3, 3), (3, 4), (4, 3), (4, 4)]


@dataclass
class Piece:
    """A chess piece. Only `type` changes, and only on promotion."""
    type: PieceType
    color: Color

    @property
    def symbol(self) -> str:
        """Uppercase for white, lowercase for black."""
        sym = self.type.symbol
        return sym if self.color is Color.WHITE else sym.lower()

    def snapshot(self) -> Piece:
        return Piece(self.type, self.color)

    def to_dict(self) -> dict:
        return {"type": self.type.value, "color": self.color.value}


class MoveKind(str, Enum):
    NORMAL = "normal"
    CAPTURE = "capture"
    EN_PASSANT = "en_passant"
    CASTLING = "castling"


@dataclass(frozen=True)
class Move:
    """
    A legal-move descriptor for one piece.

    Attributes:
        from_row, from_col: Source square
        row, col: Destination square
        kind: normal, capture, en_passant or castling
        capture_row, capture_col: Square of the pawn taken en passant
        rook_from_col, rook_to_col: Rook relocation for castling
        promotion: True when a pawn lands on the far rank
    """
    from_row: int
    from_col: int
    row: int
    col: int
    kind: MoveKind = MoveKind.NORMAL
    capture_row: Optional[int] = None
    capture_col: Optional[int] = None
    rook_from_col: Optional[int] = None
    rook_to_col: Optional[int] = None
    promotion: bool = False

    @property
    def from_sq(self) -> tuple[int, int]:
        return self.from_row, self.from_col

    @property
    def to_sq(self) -> tuple[int, int]:
        return self.row, self.col

    @property
    def is_capture(self) -> bool:
        return self.kind in (MoveKind.CAPTURE, MoveKind.EN_PASSANT)

    @property
    def captured_sq(self) -> tuple[int, int]:
        """Square the captured piece stands on (differs from `to_sq` for en passant)."""
        if self.kind is MoveKind.EN_PASSANT:
            return self.capture_row, self.capture_col
        return self.row, self.col

    def to_algebraic(self) -> str:
        return f"{sq_to_algebraic(*self.from_sq)}-{sq_to_algebraic(*self.to_sq)}"

    def to_dict(self) -> dict:
        data = {k: v for k, v in asdict(self).items() if v is not None}
        data["kind"] = self.kind.value
        return data


@dataclass
class CastlingRights:
    king_side: bool = True
    queen_side: bool = True

    def copy(self) -> CastlingRights:
        return CastlingRights(self.king_side, self.queen_side)


@dataclass(frozen=True)
class EnPassantTarget:
    """Square a pawn skipped over, plus the square of the pawn itself."""
    row: int
    col: int
    capture_row: int
    capture_col: int


def is_valid_sq(row: int, col: int) -> bool:
    """Check if (row, col) is on the board."""
    return 0 <= row < ROWS and 0 <= col < COLS


def sq_to_algebraic(row: int, col: int) -> str:
    """Convert (row, col) to algebraic notation (e.g. (6, 4) -> 'e2')."""
    return FILES[col] + str(ROWS - row)


def algebraic_to_sq(s: str) -> tuple[int, int]:
    """Convert algebraic notation to (row, col)."""
    s = s.strip().lower()
    if len(s) != 2 or s[0] not in FILES or not s[1].isdigit():
        raise ValueError(f"Invalid square: {s}")
    row = ROWS - int(s[1])
    col = FILES.index(s[0])
    if not is_valid_sq(row, col):
        raise ValueError(f"Invalid square: {s}")
    return row, col


def iter_squares() -> Iterator[tuple[int, int]]:
    """Iterate over every square in row-major order."""
    for row in range(ROWS):
        for col in range(COLS):
            yield row, col

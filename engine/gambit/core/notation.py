"""
Move notation for Gambit.

Moves are written in long coordinate form with piece letters:

    1. e2-e4 e7-e5 2. Ng1-f3 Nb8-c6 3. Bf1-c4 Ng8-f6 4. O-O

- Pawns carry no letter; captures use 'x' instead of '-'
- Castling is 'O-O' (king side) or 'O-O-O' (queen side)
- Promotion appends '=Q' (or R, B, N)
- Check appends '+', checkmate '#'

Move numbers increment after both players have moved. No PGN tags or
parsing; this is display text for move lists and logs.
"""

from __future__ import annotations
import re
from typing import TYPE_CHECKING, Iterable

from .board import Color, PieceType, MoveKind, sq_to_algebraic, algebraic_to_sq

if TYPE_CHECKING:
    from .game import MoveRecord

COORDINATE_MOVE = re.compile(r'^([a-h][1-8])-([a-h][1-8])$')


def format_move(record: MoveRecord) -> str:
    """Format a single move record."""
    if record.kind is MoveKind.CASTLING:
        text = "O-O" if record.to_sq[1] > record.from_sq[1] else "O-O-O"
    else:
        letter = "" if record.piece.type is PieceType.PAWN else record.piece.type.symbol
        sep = "x" if record.kind in (MoveKind.CAPTURE, MoveKind.EN_PASSANT) else "-"
        text = f"{letter}{sq_to_algebraic(*record.from_sq)}{sep}{sq_to_algebraic(*record.to_sq)}"
        if record.promoted_to is not None:
            text += "=" + record.promoted_to.symbol

    if record.checkmate:
        text += "#"
    elif record.check:
        text += "+"
    return text


def format_history(records: Iterable[MoveRecord]) -> str:
    """Format a move list with move numbers."""
    parts = []
    for i, record in enumerate(records):
        text = format_move(record)
        if record.piece.color is Color.WHITE:
            parts.append(f"{record.move_number}. {text}")
        elif i == 0:
            # Game started with black to move
            parts.append(f"{record.move_number}... {text}")
        else:
            parts.append(text)
    return ' '.join(parts)


def parse_coordinate_move(text: str) -> tuple[tuple[int, int], tuple[int, int]]:
    """
    Parse 'e2-e4' into ((row, col), (row, col)).

    Raises:
        ValueError: if the text is not two squares joined by '-'.
    """
    match = COORDINATE_MOVE.match(text.strip().lower())
    if not match:
        raise ValueError(f"Invalid move format: {text}. Use notation like 'e2-e4'")
    return algebraic_to_sq(match.group(1)), algebraic_to_sq(match.group(2))

"""
Small in-memory opening book.

Maps the last book move played (None at the start of the game) to the
replies worth considering. Moves are (from, to) square pairs.
"""

from __future__ import annotations
from typing import NamedTuple, Optional

from ..core.board import algebraic_to_sq, sq_to_algebraic


class BookMove(NamedTuple):
    from_sq: tuple[int, int]
    to_sq: tuple[int, int]

    @classmethod
    def parse(cls, text: str) -> BookMove:
        src, dst = text.split('-')
        return cls(algebraic_to_sq(src), algebraic_to_sq(dst))

    def __str__(self) -> str:
        return f"{sq_to_algebraic(*self.from_sq)}-{sq_to_algebraic(*self.to_sq)}"


_LINES = {
    None: ["e2-e4", "d2-d4", "c2-c4", "g1-f3"],
    # 1. e4
    "e2-e4": ["e7-e5", "c7-c5", "e7-e6", "c7-c6", "d7-d6", "d7-d5"],
    "e7-e5": ["g1-f3", "f1-c4", "b1-c3"],
    "c7-c5": ["g1-f3", "b1-c3"],
    # 1. d4
    "d2-d4": ["d7-d5", "g8-f6", "e7-e6", "c7-c5"],
    "d7-d5": ["c2-c4", "g1-f3"],
    "g8-f6": ["c2-c4", "g1-f3"],
}

BOOK: dict[Optional[BookMove], list[BookMove]] = {
    (BookMove.parse(key) if key else None): [BookMove.parse(m) for m in replies]
    for key, replies in _LINES.items()
}


def book_replies(last: Optional[BookMove]) -> list[BookMove]:
    """Candidate replies after `last` (None for the starting position)."""
    return BOOK.get(last, [])

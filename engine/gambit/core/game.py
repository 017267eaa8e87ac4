"""
Game state machine for Gambit.

ChessGame owns a BoardState and drives it through the interface a UI (or
the computer player) uses: select a piece, list its moves, move it,
finish a pending promotion. Status flags are recomputed after every
completed move.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from .board import (
    PROMOTION_TYPES, Color, PieceType, Piece, Move, MoveKind,
    sq_to_algebraic, iter_squares,
)
from .state import BoardState
from .moves import MoveGenerator
from .notation import format_move, format_history, parse_coordinate_move

logger = logging.getLogger(__name__)

FIFTY_MOVE_LIMIT = 100  # half-moves
REPETITION_LIMIT = 3


class GameStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


@dataclass
class MoveRecord:
    """One entry of the move history."""
    from_sq: tuple[int, int]
    to_sq: tuple[int, int]
    piece: Piece
    captured: Optional[Piece]
    kind: MoveKind
    move_number: int
    rook_from_col: Optional[int] = None
    rook_to_col: Optional[int] = None
    en_passant_sq: Optional[tuple[int, int]] = None
    promotion_sq: Optional[tuple[int, int]] = None
    promoted_to: Optional[PieceType] = None
    promotion_pending: bool = False
    check: bool = False
    checkmate: bool = False

    @property
    def notation(self) -> str:
        return format_move(self)

    def to_dict(self) -> dict:
        return {
            "from": sq_to_algebraic(*self.from_sq),
            "to": sq_to_algebraic(*self.to_sq),
            "piece": self.piece.to_dict(),
            "captured": self.captured.to_dict() if self.captured else None,
            "kind": self.kind.value,
            "move_number": self.move_number,
            "castling": (
                {"rook_from_col": self.rook_from_col, "rook_to_col": self.rook_to_col}
                if self.kind is MoveKind.CASTLING else None
            ),
            "en_passant": list(self.en_passant_sq) if self.en_passant_sq else None,
            "promotion": (
                {
                    "square": sq_to_algebraic(*self.promotion_sq),
                    "promoted_to": self.promoted_to.value if self.promoted_to else None,
                }
                if self.promotion_sq else None
            ),
            "promotion_pending": self.promotion_pending,
            "check": self.check,
            "checkmate": self.checkmate,
            "notation": self.notation,
        }


@dataclass
class _Snapshot:
    """Game state captured before a move, restored by undo_move."""
    state: BoardState
    history_len: int
    captured_lens: dict[Color, int]
    position_counts: Counter
    flags: tuple


class ChessGame:
    """
    A chess game between two sides.

    Illegal actions return False or None and leave the game unchanged.
    """

    def __init__(self, state: Optional[BoardState] = None):
        self.reset(state)

    def reset(self, state: Optional[BoardState] = None) -> None:
        """Start over from `state` (default: the standard start position)."""
        self.state = state if state is not None else BoardState.new_game()
        self.selected: Optional[tuple[int, int]] = None
        self.history: list[MoveRecord] = []
        self.captured: dict[Color, list[Piece]] = {Color.WHITE: [], Color.BLACK: []}
        self.in_check: dict[Color, bool] = {Color.WHITE: False, Color.BLACK: False}
        self.checkmate = False
        self.stalemate = False
        self.draw = False
        self.draw_reason: Optional[str] = None
        self.winner: Optional[Color] = None
        self.game_over = False
        self.position_counts: Counter = Counter([self.state.position_key()])
        self._snapshots: list[_Snapshot] = []
        self.update_game_status()

    @property
    def current_player(self) -> Color:
        return self.state.side_to_move

    @property
    def promotion_pending(self) -> bool:
        return bool(self.history) and self.history[-1].promotion_pending

    @property
    def last_move(self) -> Optional[MoveRecord]:
        return self.history[-1] if self.history else None

    @property
    def half_moves_played(self) -> int:
        return len(self.history)

    @property
    def status(self) -> GameStatus:
        if self.checkmate:
            return GameStatus.CHECKMATE
        if self.stalemate:
            return GameStatus.STALEMATE
        if self.draw:
            return GameStatus.DRAW
        if self.in_check[self.current_player]:
            return GameStatus.CHECK
        return GameStatus.IN_PROGRESS

    # --- Interaction ---

    def get_piece(self, row: int, col: int) -> Optional[Piece]:
        return self.state.get_piece(row, col)

    def select_piece(self, row: int, col: int) -> bool:
        """Select a piece of the side to move."""
        if self.game_over or self.promotion_pending:
            logger.debug("select_piece(%d, %d) rejected: game over or promotion pending", row, col)
            return False
        piece = self.state.get_piece(row, col)
        if piece is None or piece.color is not self.current_player:
            logger.debug("select_piece(%d, %d) rejected: no %s piece there",
                         row, col, self.current_player.value)
            return False
        self.selected = (row, col)
        return True

    def possible_moves(self) -> list[Move]:
        """Legal moves of the selected piece."""
        if self.selected is None:
            return []
        return MoveGenerator.legal_moves(self.state, *self.selected)

    def legal_moves(self) -> list[Move]:
        """Legal moves of every piece of the side to move."""
        if self.game_over or self.promotion_pending:
            return []
        return MoveGenerator.get_legal_moves(self.state, self.current_player)

    def move_piece(self, row: int, col: int) -> Optional[MoveRecord]:
        """
        Move the selected piece to (row, col).

        Returns the new MoveRecord, or None if the move is illegal. When a
        pawn reaches the far rank the record has `promotion_pending` set
        and the turn doesn't pass until `promote_pawn` is called.
        """
        if self.selected is None or self.game_over or self.promotion_pending:
            logger.debug("move_piece(%d, %d) rejected: nothing selected or game over", row, col)
            return None

        move = next((m for m in self.possible_moves() if m.to_sq == (row, col)), None)
        if move is None:
            logger.debug("move_piece: %s-%s is not legal",
                         sq_to_algebraic(*self.selected), sq_to_algebraic(row, col))
            return None
        return self.apply_move(move)

    def apply_move(self, move: Move) -> Optional[MoveRecord]:
        """Apply a move already known to be legal."""
        self._snapshots.append(self._snapshot())
        try:
            undo = self.state.simulate(move)
        except ValueError:
            self._snapshots.pop()
            self.selected = None
            return None

        piece = undo.piece
        mover = piece.color
        if undo.captured is not None:
            self.captured[mover].append(undo.captured.snapshot())

        if piece.type is PieceType.PAWN or undo.captured is not None:
            self.state.half_move_clock = 0
        else:
            self.state.half_move_clock += 1

        record = MoveRecord(
            from_sq=move.from_sq,
            to_sq=move.to_sq,
            piece=piece.snapshot(),
            captured=undo.captured.snapshot() if undo.captured else None,
            kind=move.kind,
            move_number=self.state.full_move_number,
            rook_from_col=move.rook_from_col,
            rook_to_col=move.rook_to_col,
            en_passant_sq=move.captured_sq if move.kind is MoveKind.EN_PASSANT else None,
            promotion_sq=move.to_sq if move.promotion else None,
            promotion_pending=move.promotion,
        )
        self.history.append(record)
        self.selected = None

        if not move.promotion:
            self._finish_turn()
        return record

    def promote_pawn(self, piece_type: PieceType | str) -> bool:
        """Finish a pending promotion and pass the turn."""
        if not self.promotion_pending:
            logger.debug("promote_pawn rejected: no promotion pending")
            return False
        try:
            piece_type = PieceType(piece_type)
        except ValueError:
            logger.debug("promote_pawn rejected: unknown piece type %r", piece_type)
            return False
        if piece_type not in PROMOTION_TYPES:
            logger.debug("promote_pawn rejected: cannot promote to %s", piece_type.value)
            return False

        record = self.history[-1]
        pawn = self.state.get_piece(*record.promotion_sq)
        if pawn is None or pawn.type is not PieceType.PAWN:
            logger.debug("promote_pawn rejected: no pawn on %s", sq_to_algebraic(*record.promotion_sq))
            return False

        pawn.type = piece_type
        record.promoted_to = piece_type
        record.promotion_pending = False
        self._finish_turn()
        return True

    def play_move(self, notation: str) -> Optional[MoveRecord]:
        """Play a move given as 'e2-e4'. Returns None if malformed or illegal."""
        try:
            src, dst = parse_coordinate_move(notation)
        except ValueError as e:
            logger.debug("play_move: %s", e)
            return None

        self.selected = None
        if not self.select_piece(*src):
            return None
        record = self.move_piece(*dst)
        if record is None:
            self.selected = None
        return record

    def undo_move(self) -> bool:
        """Take back the last move (completed or pending promotion)."""
        if not self._snapshots:
            logger.debug("undo_move rejected: no moves to undo")
            return False

        snap = self._snapshots.pop()
        self.state = snap.state
        del self.history[snap.history_len:]
        for color, length in snap.captured_lens.items():
            del self.captured[color][length:]
        self.position_counts = snap.position_counts
        (self.in_check, self.checkmate, self.stalemate, self.draw,
         self.draw_reason, self.winner, self.game_over) = snap.flags
        self.selected = None
        return True

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            state=self.state.copy(),
            history_len=len(self.history),
            captured_lens={color: len(pieces) for color, pieces in self.captured.items()},
            position_counts=self.position_counts.copy(),
            flags=(dict(self.in_check), self.checkmate, self.stalemate, self.draw,
                   self.draw_reason, self.winner, self.game_over),
        )

    def _finish_turn(self) -> None:
        if self.state.side_to_move is Color.BLACK:
            self.state.full_move_number += 1
        self.state.switch_side()
        self.position_counts[self.state.position_key()] += 1
        self.update_game_status()

    # --- Status ---

    def update_game_status(self) -> None:
        """Recompute check, checkmate, stalemate and draw for the side to move."""
        color = self.current_player
        in_check = MoveGenerator.is_in_check(self.state, color)
        self.in_check = {Color.WHITE: False, Color.BLACK: False}
        self.in_check[color] = in_check

        self.checkmate = False
        self.stalemate = False
        self.draw = False
        self.draw_reason = None
        self.winner = None

        last = self.last_move
        if last is not None:
            last.check = in_check

        if not MoveGenerator.has_legal_move(self.state, color):
            if in_check:
                self.checkmate = True
                self.winner = color.opponent
                if last is not None:
                    last.checkmate = True
            else:
                self.stalemate = True
        elif self.state.half_move_clock >= FIFTY_MOVE_LIMIT:
            self.draw = True
            self.draw_reason = "fifty_move_rule"
        elif self.position_counts[self.state.position_key()] >= REPETITION_LIMIT:
            self.draw = True
            self.draw_reason = "threefold_repetition"

        self.game_over = self.checkmate or self.stalemate or self.draw
        if self.game_over:
            logger.info("Game over: %s%s", self.status.value,
                        f" ({self.draw_reason})" if self.draw_reason else "")

    # --- Snapshots ---

    def get_game_state(self) -> dict:
        """JSON-ready snapshot of the game for collaborators."""
        board = [[None] * 8 for _ in range(8)]
        for row, col in iter_squares():
            piece = self.state.get_piece(row, col)
            if piece is not None:
                board[row][col] = piece.to_dict()

        last = self.last_move
        return {
            "board": board,
            "current_player": self.current_player.value,
            "selected": list(self.selected) if self.selected else None,
            "possible_moves": [m.to_dict() for m in self.possible_moves()],
            "in_check": {color.value: flag for color, flag in self.in_check.items()},
            "checkmate": self.checkmate,
            "stalemate": self.stalemate,
            "draw": self.draw,
            "draw_reason": self.draw_reason,
            "game_over": self.game_over,
            "status": self.status.value,
            "winner": self.winner.value if self.winner else None,
            "promotion_pending": self.promotion_pending,
            "move_history": [r.to_dict() for r in self.history],
            "captured_pieces": {
                color.value: [p.to_dict() for p in pieces]
                for color, pieces in self.captured.items()
            },
            "last_move": last.to_dict() if last else None,
            "move_list": format_history(self.history),
            "half_move_clock": self.state.half_move_clock,
            "full_move_number": self.state.full_move_number,
        }

    def __repr__(self) -> str:
        return f"{self.state!r}\nStatus: {self.status.value}"

"""Core game logic: board, state, move generation and the game machine."""

from .board import *
from .state import BoardState, Undo
from .moves import MoveGenerator
from .game import ChessGame, GameStatus, MoveRecord

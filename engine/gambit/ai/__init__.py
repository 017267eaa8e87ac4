"""AI components: evaluation, minimax search, opening book and the computer player."""

from .evaluator import Evaluator, GamePhase, PIECE_VALUES
from .search import SearchEngine, SearchConfig, SearchResult, DIFFICULTY_PRESETS, MATE_SCORE
from .player import ComputerPlayer

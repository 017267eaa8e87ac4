#!/usr/bin/env python3
"""
Terminal-based Gambit chess client.

Play against the computer or watch computer vs computer games.
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from gambit.core.board import Color, PieceType, Move, algebraic_to_sq
from gambit.core.game import ChessGame
from gambit.core.notation import format_history
from gambit.ai.player import ComputerPlayer
from gambit.ai.search import DIFFICULTY_PRESETS


def print_board(game: ChessGame, highlight_moves: list[Move] | None = None) -> None:
    """Print the board with optional move highlighting.

    Uppercase = white, lowercase = black. Green squares are move targets.
    """
    # ANSI color codes
    GREEN = '\033[92m'
    RESET = '\033[0m'

    targets = {m.to_sq for m in highlight_moves or []}

    print()
    print("  +" + "-" * 17 + "+")
    for row in range(8):
        line = f"{8 - row} |"
        for col in range(8):
            piece = game.get_piece(row, col)
            sym = piece.symbol if piece else '.'
            if (row, col) in targets:
                line += f" {GREEN}{sym if piece else '*'}{RESET}"
            else:
                line += f" {sym}"
        line += " |"
        print(line)
    print("  +" + "-" * 17 + "+")
    print("    a b c d e f g h")
    print()


def print_status(game: ChessGame) -> None:
    if game.checkmate:
        print(f"Checkmate! {game.winner.value.capitalize()} wins.")
    elif game.stalemate:
        print("Stalemate.")
    elif game.draw:
        print(f"Draw ({game.draw_reason.replace('_', ' ')}).")
    elif game.in_check[game.current_player]:
        print(f"{game.current_player.value.capitalize()} is in check.")


def show_legal_moves(game: ChessGame, square: str | None = None) -> None:
    """Display legal moves, for one piece if a square is given."""
    if square:
        try:
            row, col = algebraic_to_sq(square)
        except ValueError as e:
            print(e)
            return
        if not game.select_piece(row, col):
            print(f"No {game.current_player.value} piece on {square}")
            return
        moves = game.possible_moves()
        print_board(game, moves)
        game.selected = None
    else:
        moves = game.legal_moves()

    if not moves:
        print("No legal moves!")
        return
    print("Moves:", ", ".join(m.to_algebraic() for m in moves))


def ask_promotion() -> PieceType:
    choices = {'q': PieceType.QUEEN, 'r': PieceType.ROOK, 'b': PieceType.BISHOP, 'n': PieceType.KNIGHT}
    while True:
        try:
            answer = input("Promote to (q/r/b/n): ").strip().lower()
        except EOFError:
            return PieceType.QUEEN
        if answer in choices:
            return choices[answer]


def play_human_vs_ai(player: ComputerPlayer, human: Color = Color.WHITE) -> None:
    """Play a game: human vs computer."""
    game = player.game

    print("\n=== Gambit ===")
    print(f"You are {human.value}. Computer difficulty: {player.difficulty}")
    print("Commands: move (e.g., 'e2-e4'), 'm' for moves, 'm e2' for one piece, 'u' undo, 'q' quit")

    while not game.game_over:
        print_board(game)
        print_status(game)

        if game.current_player is human:
            print(f"Your turn ({human.value})")

            while True:
                try:
                    user_input = input("> ").strip().lower()
                except EOFError:
                    return

                if user_input in ('q', 'quit', 'exit'):
                    print("Thanks for playing!")
                    return
                elif user_input in ('h', 'help', '?'):
                    print("Enter moves like 'e2-e4'")
                    print("'m' to see legal moves, 'm e2' for one piece, 'u' to undo, 'q' to quit")
                elif user_input == 'm' or user_input == 'moves':
                    show_legal_moves(game)
                elif user_input.startswith('m '):
                    show_legal_moves(game, user_input[2:].strip())
                elif user_input in ('u', 'undo'):
                    if game.undo_move():
                        if game.current_player is not human:  # Undo computer move too
                            game.undo_move()
                        print("Move undone.")
                        break
                    print("Nothing to undo.")
                else:
                    record = game.play_move(user_input)
                    if record is None:
                        print(f"Illegal move: {user_input}. Use notation like 'e2-e4'")
                        continue
                    if record.promotion_pending:
                        game.promote_pawn(ask_promotion())
                    print(f"You played: {record.notation}")
                    break
        else:
            print("Computer thinking...")
            record = player.compute_move()
            if record is None:
                break
            result = player.last_result
            if result is not None:
                print(f"  {result.source}: depth {result.depth}, {result.nodes} nodes, "
                      f"score {result.score:.0f}, {result.elapsed_ms:.0f}ms")
            print(f"Computer plays: {record.notation}")

    # Game over
    print_board(game)
    print_status(game)
    if game.winner is not None:
        if game.winner is human:
            print("Congratulations! You win!")
        else:
            print("Computer wins. Better luck next time!")
    print(format_history(game.history))


def watch_ai_vs_ai(player: ComputerPlayer, delay: float = 0.5, max_moves: int = 300) -> None:
    """Watch the computer play against itself."""
    game = player.game

    print("\n=== Computer vs Computer ===")
    print(f"Difficulty: {player.difficulty}")

    while not game.game_over and game.half_moves_played < max_moves:
        print_board(game)
        print(f"Move {game.state.full_move_number}, {game.current_player.value}")

        record = player.compute_move()
        if record is None:
            break
        print(f"Plays: {record.notation}\n")
        time.sleep(delay)

    print_board(game)
    print_status(game)
    print(format_history(game.history))
    stats = player.time_manager.stats()
    print(f"Searched {stats['moves_searched']} moves, avg depth {stats['avg_depth']:.1f}, "
          f"{stats['nodes_per_second']:.0f} nodes/s")


def main():
    parser = argparse.ArgumentParser(description='Gambit Terminal Client')
    parser.add_argument('--difficulty', type=int, choices=[1, 2, 3], default=2,
                        help='Computer difficulty (1 easy, 2 medium, 3 hard)')
    parser.add_argument('--depth', type=int, help='Override fixed search depth')
    parser.add_argument('--time-limit', type=float, help='Override time budget (ms)')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--watch', action='store_true', help='Watch computer vs computer')
    parser.add_argument('--delay', type=float, default=0.5, help='Pause between moves when watching (s)')
    parser.add_argument('--play-as', choices=['white', 'black'], default='white',
                        help='Play as white or black')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log search details')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = replace(DIFFICULTY_PRESETS[args.difficulty])
    if args.depth is not None:
        config.depth = args.depth
        config.max_depth = max(args.depth, config.start_depth)
    if args.time_limit is not None:
        config.time_limit_ms = args.time_limit

    game = ChessGame()
    player = ComputerPlayer(game, difficulty=args.difficulty, seed=args.seed, config=config)

    if args.watch:
        watch_ai_vs_ai(player, args.delay)
    else:
        play_human_vs_ai(player, Color(args.play_as))


if __name__ == '__main__':
    main()

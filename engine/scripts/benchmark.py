#!/usr/bin/env python3
"""
Performance benchmarks for the Gambit engine.

Measures:
- Move generation speed
- Perft node counts and throughput
- Position evaluation speed
- Search time per difficulty
- End-to-end game time
"""

import argparse
import time
import sys
from dataclasses import replace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
from gambit.core.state import BoardState
from gambit.core.game import ChessGame
from gambit.core.moves import get_legal_moves, perft
from gambit.ai.evaluator import Evaluator
from gambit.ai.search import SearchEngine, DIFFICULTY_PRESETS
from gambit.ai.player import ComputerPlayer


def benchmark_move_generation(iterations: int = 200) -> dict:
    """Benchmark legal move generation from the start position."""
    state = BoardState.new_game()

    start = time.perf_counter()
    for _ in range(iterations):
        moves = get_legal_moves(state)
    elapsed = time.perf_counter() - start

    return {
        "name": "Move Generation",
        "iterations": iterations,
        "moves": len(moves),
        "total_ms": elapsed * 1000,
        "per_call_us": (elapsed / iterations) * 1_000_000,
        "calls_per_sec": iterations / elapsed,
    }


def benchmark_perft(max_depth: int = 3) -> list[dict]:
    """Perft from the start position at increasing depths."""
    results = []
    state = BoardState.new_game()
    for depth in range(1, max_depth + 1):
        start = time.perf_counter()
        nodes = perft(state, depth)
        elapsed = time.perf_counter() - start
        results.append({
            "name": f"Perft {depth}",
            "nodes": nodes,
            "total_ms": elapsed * 1000,
            "nodes_per_sec": nodes / elapsed if elapsed > 0 else 0.0,
        })
    return results


def benchmark_evaluation(iterations: int = 100, difficulty: int = 3) -> dict:
    """Benchmark a full static evaluation."""
    state = BoardState.new_game()
    evaluator = Evaluator(difficulty)

    start = time.perf_counter()
    for _ in range(iterations):
        evaluator.evaluate(state, state.side_to_move)
    elapsed = time.perf_counter() - start

    return {
        "name": f"Evaluation (difficulty {difficulty})",
        "iterations": iterations,
        "total_ms": elapsed * 1000,
        "per_call_us": (elapsed / iterations) * 1_000_000,
    }


def benchmark_search(depths: list[int] = [1, 2, 3]) -> list[dict]:
    """Fixed-depth search from the start position."""
    results = []
    for depth in depths:
        state = BoardState.new_game()
        config = replace(DIFFICULTY_PRESETS[2], depth=depth)
        engine = SearchEngine(Evaluator(2), config)
        result = engine.find_best_move(state)
        results.append({
            "name": f"Search depth {depth}",
            "move": result.move.to_algebraic() if result.move else None,
            "nodes": result.nodes,
            "total_ms": result.elapsed_ms,
            "nodes_per_sec": result.nodes / (result.elapsed_ms / 1000) if result.elapsed_ms > 0 else 0.0,
        })
    return results


def benchmark_full_game(max_moves: int = 40, difficulty: int = 1, seed: int = 0) -> dict:
    """Benchmark computer vs computer play."""
    game = ChessGame()
    player = ComputerPlayer(game, difficulty=difficulty, seed=seed)

    move_times = []
    start_total = time.perf_counter()
    while not game.game_over and game.half_moves_played < max_moves:
        start_move = time.perf_counter()
        if player.compute_move() is None:
            break
        move_times.append(time.perf_counter() - start_move)
    total_time = time.perf_counter() - start_total

    return {
        "name": f"Full Game (difficulty {difficulty})",
        "moves_played": len(move_times),
        "status": game.status.value,
        "total_time_sec": total_time,
        "avg_move_time_ms": np.mean(move_times) * 1000 if move_times else 0.0,
        "min_move_time_ms": np.min(move_times) * 1000 if move_times else 0.0,
        "max_move_time_ms": np.max(move_times) * 1000 if move_times else 0.0,
    }


def print_result(result: dict) -> None:
    """Pretty print a benchmark result."""
    name = result.pop("name")
    print(f"\n{name}:")
    for key, value in result.items():
        if isinstance(value, float):
            print(f"  {key}: {value:.2f}")
        else:
            print(f"  {key}: {value}")


def main():
    parser = argparse.ArgumentParser(description='Gambit Engine Benchmarks')
    parser.add_argument('--all', action='store_true', help='Run all benchmarks')
    parser.add_argument('--core', action='store_true', help='Run move generation and perft benchmarks')
    parser.add_argument('--search', action='store_true', help='Run evaluation and search benchmarks')
    parser.add_argument('--game', action='store_true', help='Run full game benchmark')
    parser.add_argument('--perft-depth', type=int, default=3, help='Deepest perft to run')
    parser.add_argument('--difficulty', type=int, choices=[1, 2, 3], default=1,
                        help='Difficulty for the full game benchmark')

    args = parser.parse_args()

    # Default to all if nothing specified
    if not any([args.all, args.core, args.search, args.game]):
        args.all = True

    print("=" * 50)
    print("Gambit Engine Benchmarks")
    print("=" * 50)

    if args.all or args.core:
        print("\n### Core Engine ###")
        print_result(benchmark_move_generation())
        for result in benchmark_perft(args.perft_depth):
            print_result(result)

    if args.all or args.search:
        print("\n### Evaluation ###")
        print_result(benchmark_evaluation(difficulty=2))
        print_result(benchmark_evaluation(difficulty=3))

        print("\n### Search ###")
        for result in benchmark_search():
            print_result(result)

    if args.all or args.game:
        print("\n### Full Game ###")
        print_result(benchmark_full_game(difficulty=args.difficulty))

    print("\n" + "=" * 50)
    print("Benchmarks complete")


if __name__ == '__main__':
    main()

import sys
import os
import time
import csv
import random
import argparse
from typing import Dict, Any

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pipegrid.game_state import GameState
from pipegrid.generators.puzzle_generator import PuzzleGenerator


def solution_is_playable(puzzle) -> bool:
    """Set every tile to its solution rotation and check the live win condition."""
    state = GameState(puzzle)
    for tile, entry in zip(state.tiles, puzzle.tiles):
        tile.rotation = entry.solution_rotation
    state.refresh_flow()
    won, _ = state.check_win()
    return won and len(state.flow) == puzzle.cell_count


def run_single_puzzle(puzzle_id: int, width: int, height: int, difficulty: str,
                      rng: random.Random, max_attempts: int = 50) -> Dict[str, Any]:
    """
    Generates one puzzle and records what it cost.
    """
    generator = PuzzleGenerator(width, height, difficulty=difficulty, level=puzzle_id,
                                rng=rng, max_attempts=max_attempts)
    start_time = time.perf_counter()
    puzzle = generator.generate()
    elapsed = time.perf_counter() - start_time

    result = {
        "puzzle_id": puzzle_id,
        "difficulty": difficulty,
        "size": f"{width}x{height}",
        "cells": width * height,
        "generated": puzzle is not None,
        "verified": generator.needs_verification,
        "attempts": generator.attempts_used,
        "gen_time": elapsed,
        "solver_nodes": generator.solver_nodes,
        "solver_time": generator.solver_time,
        "wrong_ratio": 0.0,
        "playable": False,
    }
    if puzzle is not None:
        result["wrong_ratio"] = puzzle.wrong_count() / puzzle.cell_count
        result["playable"] = solution_is_playable(puzzle)
    return result


def main():
    parser = argparse.ArgumentParser(description="Benchmark the puzzle generator")
    parser.add_argument("--puzzles", type=int, default=10, help="Number of puzzles to generate")
    parser.add_argument("--width", type=int, default=5, help="Width")
    parser.add_argument("--height", type=int, default=5, help="Height")
    parser.add_argument("--difficulty", type=str, default="glazed", help="Difficulty label")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--output", type=str, default="benchmark_results.csv", help="Output CSV file")

    args = parser.parse_args()
    rng = random.Random(args.seed)

    print(f"Starting Benchmark: {args.puzzles} puzzles, {args.width}x{args.height}, {args.difficulty}")

    results = []
    for i in range(args.puzzles):
        print(f"Generating Puzzle {i+1}/{args.puzzles}...", end="\r")
        results.append(run_single_puzzle(i + 1, args.width, args.height, args.difficulty, rng))

    failed = sum(1 for r in results if not r["generated"])
    print(f"\nBenchmark Complete!")
    print(f"Slots that exhausted their attempts: {failed}/{args.puzzles}")

    keys = results[0].keys()
    with open(args.output, "w", newline="") as f:
        dict_writer = csv.DictWriter(f, fieldnames=keys)
        dict_writer.writeheader()
        dict_writer.writerows(results)

    print(f"Results saved to {args.output}")

    done = [r for r in results if r["generated"]] or results
    print("\nSummary Statistics:")
    print(f"{'Metric':<16} | {'Average':>12}")
    print("-" * 32)
    for label, key in [("Attempts", "attempts"), ("Gen time (s)", "gen_time"),
                       ("Solver nodes", "solver_nodes"), ("Solver time (s)", "solver_time"),
                       ("Wrong ratio", "wrong_ratio")]:
        avg = sum(r[key] for r in done) / len(done)
        print(f"{label:<16} | {avg:>12.4f}")


if __name__ == "__main__":
    main()

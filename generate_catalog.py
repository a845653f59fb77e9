"""
Catalog Generator
=================
Generates every difficulty/size/level slot as spanning-tree pipe puzzles with
verified unique solutions (grids up to 100 cells), then writes the catalog
index.

Run:  python generate_catalog.py --out assets --levels 50 --seed 7
"""

import sys
import os
import time
import random
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pipegrid.catalog import new_index, write_index, write_puzzle
from pipegrid.constants import DIFFICULTIES, MAX_ATTEMPTS, display_name
from pipegrid.errors import GenerationExhaustedError
from pipegrid.generators.puzzle_generator import generate_puzzle


def generate_catalog(out_dir, difficulties, levels=None, seed=None,
                     max_attempts=MAX_ATTEMPTS, verbose=False):
    """
    Returns (index, generated, failed). A slot that runs out of attempts is
    reported and skipped; the rest of the batch continues.
    """
    rng = random.Random(seed)
    index = new_index()
    generated = 0
    failed = 0

    for difficulty in difficulties:
        config = DIFFICULTIES[difficulty]
        name = display_name(difficulty)
        level_count = levels or config["levels"]
        index["levels"][name] = {}

        for size in config["sizes"]:
            print(f"Generating {name} {size}x{size}...")
            level_numbers = []

            for level in range(1, level_count + 1):
                try:
                    puzzle = generate_puzzle(difficulty, size, size, level, rng=rng,
                                             max_attempts=max_attempts, verbose=verbose)
                except GenerationExhaustedError as e:
                    print(f"  FAILED: {e}")
                    failed += 1
                    continue

                write_puzzle(out_dir, puzzle)
                level_numbers.append(level)
                generated += 1

                if level % 10 == 0:
                    print(f"  {level}/{level_count}", end="\r")

            index["levels"][name][str(size)] = level_numbers
            print(f"  Done: {len(level_numbers)} levels")

    write_index(out_dir, index)
    return index, generated, failed


def main():
    parser = argparse.ArgumentParser(description="Generate the pipe puzzle catalog")
    parser.add_argument("--out", type=str, default="assets", help="Output directory")
    parser.add_argument("--levels", type=int, default=None,
                        help="Levels per size (default: per-difficulty setting)")
    parser.add_argument("--difficulty", action="append", choices=sorted(DIFFICULTIES),
                        help="Only generate these difficulties (repeatable)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--attempts", type=int, default=MAX_ATTEMPTS, help="Attempts per level")
    parser.add_argument("--verbose", action="store_true", help="Print rejected attempts")
    args = parser.parse_args()

    difficulties = args.difficulty or list(DIFFICULTIES)

    print("Pipe Puzzle Generator")
    print("=====================\n")
    start = time.time()
    _, generated, failed = generate_catalog(args.out, difficulties, levels=args.levels,
                                            seed=args.seed, max_attempts=args.attempts,
                                            verbose=args.verbose)

    print("\nComplete!")
    print(f"  Generated: {generated} puzzles")
    print(f"  Failed: {failed}")
    print(f"  Catalog: {os.path.join(args.out, 'catalog-index.json')}")
    print(f"  Time: {time.time() - start:.1f}s")


if __name__ == "__main__":
    main()

"""
Presentation Chart Generator
=============================
Generates charts of what puzzle generation costs as grids grow: attempts per
accepted puzzle, generation time, uniqueness-solver nodes, scramble ratio, and
a diagram of the generation pipeline.
Run:  python generate_presentation_charts.py --puzzles 5
Output: presentation_charts/ folder with 5 PNG files.
"""

import sys
import os
import random
import argparse
import numpy as np
from typing import Dict, Any, List, Tuple
from collections import defaultdict

# Ensure project root is on the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for file output
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches

from benchmark_generator import run_single_puzzle
from pipegrid.constants import SCRAMBLE_RATIO, UNIQUENESS_CELL_LIMIT

# ─────────────────────────────────────────────────────────────
# Color Palette & Styling
# ─────────────────────────────────────────────────────────────
COLORS = {
    "attempts": "#FF6B6B",
    "time":     "#51CF66",
    "nodes":    "#339AF0",
    "ratio":    "#E0AF68",
}
BG_COLOR = "#1A1B26"
CARD_COLOR = "#24283B"
TEXT_COLOR = "#C0CAF5"
GRID_COLOR = "#414868"
ACCENT_GOLD = "#E0AF68"


def setup_style():
    """Apply a dark, presentation-friendly matplotlib style."""
    plt.rcParams.update({
        "figure.facecolor": BG_COLOR,
        "axes.facecolor": CARD_COLOR,
        "axes.edgecolor": GRID_COLOR,
        "axes.labelcolor": TEXT_COLOR,
        "axes.titleweight": "bold",
        "text.color": TEXT_COLOR,
        "xtick.color": TEXT_COLOR,
        "ytick.color": TEXT_COLOR,
        "grid.color": GRID_COLOR,
        "grid.alpha": 0.3,
        "font.size": 13,
        "axes.titlesize": 16,
        "axes.labelsize": 13,
        "legend.facecolor": CARD_COLOR,
        "legend.edgecolor": GRID_COLOR,
        "legend.fontsize": 11,
        "figure.dpi": 180,
        "savefig.dpi": 180,
        "savefig.bbox": "tight",
        "savefig.facecolor": BG_COLOR,
    })


# ─────────────────────────────────────────────────────────────
# Benchmarking Engine
# ─────────────────────────────────────────────────────────────
def run_benchmark(puzzles_per_size: int, sizes: List[Tuple[int, int]],
                  seed=None) -> Dict[str, List[Dict[str, Any]]]:
    """
    Generate ``puzzles_per_size`` puzzles for every (width, height).
    Returns results grouped by "WxH", in the order given.
    """
    rng = random.Random(seed)
    results = defaultdict(list)

    total = len(sizes) * puzzles_per_size
    done = 0

    for width, height in sizes:
        key = f"{width}x{height}"
        for p in range(puzzles_per_size):
            done += 1
            print(f"  [{done}/{total}] {key} puzzle {p+1}/{puzzles_per_size} ...", end="\r")
            results[key].append(run_single_puzzle(p + 1, width, height, "benchmark", rng))

    print()
    return results


# ─────────────────────────────────────────────────────────────
# Chart Generators
# ─────────────────────────────────────────────────────────────
def add_value_labels(ax, bars, fmt="{:.1f}", offset=0.5):
    """Add value labels on top of bars."""
    for bar in bars:
        h = bar.get_height()
        if h > 0:
            ax.text(bar.get_x() + bar.get_width() / 2, h + offset,
                    fmt.format(h), ha="center", va="bottom",
                    fontsize=9, fontweight="bold", color=TEXT_COLOR)


def _finish(ax, fig, out_dir, filename, label):
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    fig.savefig(os.path.join(out_dir, filename))
    plt.close(fig)
    print(f"  + {label}")


def chart_1_attempts(results, out_dir):
    """Bar chart: average attempts until a puzzle was accepted."""
    fig, ax = plt.subplots(figsize=(10, 6))
    sizes = list(results.keys())
    x = np.arange(len(sizes))

    attempts = [np.mean([r["attempts"] for r in results[s]]) for s in sizes]
    bars = ax.bar(x, attempts, 0.6, color=COLORS["attempts"], alpha=0.9, zorder=3)
    add_value_labels(ax, bars, fmt="{:.1f}", offset=0.1)

    ax.set_xticks(x)
    ax.set_xticklabels(sizes)
    ax.set_ylabel("Average Attempts")
    ax.set_title("Attempts per Accepted Puzzle", fontsize=18, pad=15)
    ax.grid(axis="y", zorder=0)
    _finish(ax, fig, out_dir, "1_attempts.png", "Chart 1: Attempts")


def chart_2_timing(results, out_dir):
    """Stacked bar: generation time split into solver and everything else."""
    fig, ax = plt.subplots(figsize=(10, 6))
    sizes = list(results.keys())
    x = np.arange(len(sizes))

    solver = np.array([np.mean([r["solver_time"] for r in results[s]]) for s in sizes])
    total = np.array([np.mean([r["gen_time"] for r in results[s]]) for s in sizes])
    other = np.clip(total - solver, 0, None)

    ax.bar(x, other, 0.6, label="Tree + scramble", color=COLORS["time"], alpha=0.9, zorder=3)
    ax.bar(x, solver, 0.6, bottom=other, label="Uniqueness solver",
           color=COLORS["nodes"], alpha=0.9, zorder=3)

    ax.set_xticks(x)
    ax.set_xticklabels(sizes)
    ax.set_ylabel("Average Time (seconds)")
    ax.set_title("Generation Time Breakdown", fontsize=18, pad=15)
    ax.legend(loc="upper left")
    ax.grid(axis="y", zorder=0)
    _finish(ax, fig, out_dir, "2_timing.png", "Chart 2: Timing")


def chart_3_solver_nodes(results, out_dir):
    """Line chart (log scale): solver nodes vs cell count, verified sizes only."""
    fig, ax = plt.subplots(figsize=(10, 6))

    verified = [s for s in results if results[s][0]["verified"]]
    cells = [results[s][0]["cells"] for s in verified]
    nodes = [max(np.mean([r["solver_nodes"] for r in results[s]]), 1) for s in verified]

    ax.plot(cells, nodes, "o-", color=COLORS["nodes"], linewidth=2.5, markersize=8, zorder=3)
    for c, n, s in zip(cells, nodes, verified):
        ax.annotate(s, (c, n), textcoords="offset points", xytext=(0, 10),
                    ha="center", fontsize=9, color=TEXT_COLOR)

    ax.set_yscale("log")
    ax.set_xlabel("Cells")
    ax.set_ylabel("Solver Nodes (log)")
    ax.set_title(f"Uniqueness Search Cost (<= {UNIQUENESS_CELL_LIMIT} cells)", fontsize=18, pad=15)
    ax.grid(True, zorder=0)
    _finish(ax, fig, out_dir, "3_solver_nodes.png", "Chart 3: Solver Nodes")


def chart_4_scramble(results, out_dir):
    """Box plot: share of tiles starting away from their solution."""
    fig, ax = plt.subplots(figsize=(10, 6))
    sizes = list(results.keys())
    data = [[r["wrong_ratio"] * 100 for r in results[s] if r["generated"]] or [0] for s in sizes]

    box = ax.boxplot(data, patch_artist=True)
    ax.set_xticks(np.arange(1, len(sizes) + 1))
    ax.set_xticklabels(sizes)
    for patch in box["boxes"]:
        patch.set_facecolor(COLORS["ratio"])
        patch.set_alpha(0.8)

    ax.axhline(SCRAMBLE_RATIO * 100, color=ACCENT_GOLD, linestyle="--", linewidth=1.5,
               label=f"Quota floor ({SCRAMBLE_RATIO:.0%})")
    ax.set_ylabel("Wrong Tiles (%)")
    ax.set_ylim(0, 105)
    ax.set_title("Scramble Ratio", fontsize=18, pad=15)
    ax.legend(loc="lower right")
    ax.grid(axis="y", zorder=0)
    _finish(ax, fig, out_dir, "4_scramble_ratio.png", "Chart 4: Scramble Ratio")


def chart_5_pipeline(out_dir):
    """Flowchart of the generate / verify / retry loop."""
    fig, ax = plt.subplots(figsize=(12, 8))
    ax.set_xlim(0, 12)
    ax.set_ylim(0, 8)
    ax.axis("off")

    def draw_box(x, y, w, h, text, color, fontsize=11, is_decision=False):
        if is_decision:
            diamond = plt.Polygon(
                [(x + w/2, y + h), (x + w, y + h/2),
                 (x + w/2, y), (x, y + h/2)],
                facecolor=color, edgecolor=TEXT_COLOR, linewidth=1.5, alpha=0.85
            )
            ax.add_patch(diamond)
        else:
            box = mpatches.FancyBboxPatch(
                (x, y), w, h, boxstyle="round,pad=0.15",
                facecolor=color, edgecolor=TEXT_COLOR, linewidth=1.5, alpha=0.85
            )
            ax.add_patch(box)
        ax.text(x + w/2, y + h/2, text, ha="center", va="center",
                fontsize=fontsize, fontweight="bold", color="#FFFFFF")

    def draw_arrow(x1, y1, x2, y2, label="", color=TEXT_COLOR):
        ax.annotate("", xy=(x2, y2), xytext=(x1, y1),
                    arrowprops=dict(arrowstyle="->", color=color, lw=2))
        if label:
            mx, my = (x1 + x2) / 2, (y1 + y2) / 2
            ax.text(mx + 0.15, my + 0.1, label, fontsize=9,
                    color=ACCENT_GOLD, fontweight="bold")

    ax.text(6, 7.6, "Puzzle Generation Pipeline",
            ha="center", va="center", fontsize=20, fontweight="bold",
            color=ACCENT_GOLD)

    draw_box(0.5, 6.0, 3, 0.8, "Random DFS\nspanning tree", GRID_COLOR)
    draw_arrow(3.6, 6.4, 4.4, 6.4)
    draw_box(4.5, 6.0, 3, 0.8, "Classify tiles\n+ solution rotations", GRID_COLOR)
    draw_arrow(7.6, 6.4, 8.4, 6.4)
    draw_box(8.5, 6.0, 3, 0.8, "Pick source\n(center, non-leaf)", GRID_COLOR)

    draw_arrow(10, 6.0, 10, 5.3)
    draw_box(8.5, 4.3, 3, 0.8, "Scramble\n(>= quota wrong)", COLORS["ratio"])

    draw_arrow(8.5, 4.7, 7.6, 4.7)
    draw_box(4, 3.9, 3.5, 1.6, f"cells <= {UNIQUENESS_CELL_LIMIT}?", "#565f89", is_decision=True)

    draw_arrow(5.75, 3.9, 5.75, 3.1, "Yes", "#51CF66")
    draw_box(4, 2.2, 3.5, 0.8, "Uniqueness solver\n(stop at 2 solutions)", COLORS["nodes"])

    draw_arrow(5.75, 2.2, 5.75, 1.4, "exactly 1", "#51CF66")
    draw_box(4.5, 0.5, 2.5, 0.8, "Accept", COLORS["time"], fontsize=12)

    draw_arrow(4, 4.7, 2.0, 1.3, "No (unverified)")
    draw_box(0.5, 0.5, 3, 0.8, "Accept as-is", COLORS["time"], fontsize=12)

    draw_arrow(7.5, 2.6, 10, 2.6, "0 or 2+", COLORS["attempts"])
    draw_box(8.8, 2.2, 2.7, 0.8, "Retry\n(up to 50 attempts)", COLORS["attempts"], fontsize=10)

    fig.savefig(os.path.join(out_dir, "5_pipeline.png"))
    plt.close(fig)
    print("  + Chart 5: Pipeline")


# ─────────────────────────────────────────────────────────────
# Summary Table
# ─────────────────────────────────────────────────────────────
def print_summary(results):
    """Print a clean summary table to console."""
    all_entries = [e for entries in results.values() for e in entries]

    print("\n" + "=" * 70)
    print("  GENERATION BENCHMARK SUMMARY")
    print("=" * 70)
    print(f"  Total puzzles: {len(all_entries)}")
    print(f"  Sizes tested: {list(results.keys())}")
    print("-" * 70)
    print(f"  {'Size':<8} {'OK':>6} {'Attempts':>10} {'Time':>10} {'Nodes':>12} {'Wrong':>8}")
    print("-" * 70)

    for size, entries in results.items():
        ok = sum(1 for e in entries if e["generated"])
        avg_a = np.mean([e["attempts"] for e in entries])
        avg_t = np.mean([e["gen_time"] for e in entries])
        avg_n = np.mean([e["solver_nodes"] for e in entries])
        avg_w = np.mean([e["wrong_ratio"] for e in entries]) * 100
        print(f"  {size:<8} {ok:>3}/{len(entries):<2} {avg_a:>10.1f} {avg_t:>9.3f}s {avg_n:>12.0f} {avg_w:>7.1f}%")

    print("=" * 70)


# ─────────────────────────────────────────────────────────────
# Main
# ─────────────────────────────────────────────────────────────
def main():
    parser = argparse.ArgumentParser(description="Generate Presentation Charts")
    parser.add_argument("--puzzles", type=int, default=5,
                        help="Puzzles per size (default: 5)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--quick", action="store_true",
                        help="Quick mode: fewer sizes for faster testing")
    args = parser.parse_args()

    out_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                           "presentation_charts")
    os.makedirs(out_dir, exist_ok=True)

    setup_style()

    if args.quick:
        sizes = [(3, 3), (5, 5)]
    else:
        sizes = [(3, 3), (5, 5), (7, 7), (10, 10), (15, 15)]

    print("Pipe Puzzle Generator Benchmark")
    print(f"  Puzzles per size : {args.puzzles}")
    print(f"  Sizes            : {len(sizes)}")
    print(f"  Output folder    : {out_dir}")
    print()

    print("Phase 1/2: Running Benchmarks...")
    results = run_benchmark(args.puzzles, sizes, args.seed)

    print("\nPhase 2/2: Generating Charts...")
    chart_1_attempts(results, out_dir)
    chart_2_timing(results, out_dir)
    chart_3_solver_nodes(results, out_dir)
    chart_4_scramble(results, out_dir)
    chart_5_pipeline(out_dir)

    print_summary(results)
    print(f"All 5 charts saved to: {out_dir}")


if __name__ == "__main__":
    main()

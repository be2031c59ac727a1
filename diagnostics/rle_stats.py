#!/usr/bin/env python3
"""
Run statistics for the RLE bitmaps of one page:
  - number of runs and decoded pixels per color code
  - pixels covered versus the page budget (underflow / overflow)

Usage:
    python diagnostics/rle_stats.py path/to/file.note --page 1 [--layer MAINLAYER]
"""

from __future__ import annotations

import argparse
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from supernote import Layer, NoteError, iter_runs, load_note
from supernote.rle import COLOR_NAMES


def layer_stats(layer: Layer, budget: int) -> Dict[str, Any]:
    runs: Counter[int] = Counter()
    pixels: Counter[int] = Counter()
    covered = 0
    for color, length in iter_runs(layer.bitmap or b"", budget):
        runs[color] += 1
        pixels[color] += length
        covered += length
    return {
        "encoded_bytes": len(layer.bitmap or b""),
        "runs": sum(runs.values()),
        "covered": covered,
        "budget": budget,
        "colors": {
            code: (COLOR_NAMES.get(code, "unknown"), runs[code], pixels[code]) for code in sorted(runs)
        },
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="RLE run statistics for a .note page.")
    parser.add_argument("input", type=Path, help="Path to the .note file")
    parser.add_argument("--page", type=int, default=1, help="1-based page number (default 1)")
    parser.add_argument("--layer", action="append", help="Layer name to inspect (default: every layer with a bitmap)")
    args = parser.parse_args(argv)

    try:
        document = load_note(args.input)
    except (NoteError, OSError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    if not 1 <= args.page <= document.page_count:
        print(f"[error] page {args.page} out of range (1-{document.page_count})", file=sys.stderr)
        return 1

    page = document.pages[args.page - 1]
    budget = document.page_width * document.page_height
    for layer in page.layers:
        if args.layer and layer.name not in args.layer:
            continue
        if not layer.has_bitmap:
            continue
        stats = layer_stats(layer, budget)
        state = "exact"
        if stats["covered"] < budget:
            state = f"underflow by {budget - stats['covered']}"
        elif stats["covered"] > budget:
            state = f"overflow by {stats['covered'] - budget}"
        print(
            f"{layer.name} ({layer.protocol}): {stats['encoded_bytes']} bytes, {stats['runs']} runs, "
            f"{stats['covered']}/{budget} px ({state})"
        )
        for code, (name, run_count, pixel_count) in stats["colors"].items():
            print(f"  0x{code:02X} {name:<18} runs={run_count:<8} pixels={pixel_count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

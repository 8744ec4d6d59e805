"""Command-line front end for the piece tiler."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from board import load_state
from config import CFG
from io_files import read_initial_state, write_solutions
from models import Solution
from pieces import catalog_for
from solver.partition import run_partitions
from solver.search import find_solutions


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Enumerate tilings of the 12-piece board")
    ap.add_argument("--pyramid", action="store_true", help="search the 5-layer pyramid instead of the rectangle")
    ap.add_argument("--state", metavar="FILE", help="initial board state to resume from")
    ap.add_argument("--start", metavar="X[n]", help="first catalog entry tried at the first free depth")
    ap.add_argument("--end", metavar="X[n]", help="catalog entry at which the search stops (exclusive)")
    ap.add_argument("--allow-backtracking", action="store_true", default=None,
                    help="allow removing the pieces given in --state")
    ap.add_argument("--max-solutions", type=int, metavar="N", help="stop after N solutions (0 = all)")
    ap.add_argument("--parts", type=int, default=1, metavar="N", help="split the range into N partitions")
    ap.add_argument("--workers", type=int, metavar="N", help="processes used for partitions")
    ap.add_argument("--out", metavar="FILE", help="also write every solution to FILE")
    ap.add_argument("--catalog", action="store_true", help="print orientation counts per piece and exit")
    ap.add_argument("--quiet", action="store_true", help="only print the final count")
    return ap


def _print_solution(solution: Solution) -> None:
    print(f"#{solution.index}: {solution.path}")
    print(solution.grid)
    print()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO, format="%(levelname)s %(message)s")
    kind = "pyramid" if args.pyramid else CFG.BOARD

    if args.catalog:
        catalog = catalog_for(kind)
        for piece, count in catalog.table().items():
            print(f"{piece}: {count}")
        print(f"total: {catalog.size}")
        return 0

    try:
        state = read_initial_state(args.state) if args.state else None
        if not args.quiet:
            board, _seeded = load_state(state or "", kind)
            print("initial board:")
            print(board.to_text())
            print()
        if args.parts and args.parts > 1:
            report = run_partitions(
                kind,
                args.parts,
                initial_state=state,
                start=args.start,
                end=args.end,
                allow_backtracking=args.allow_backtracking,
                workers=args.workers,
                max_solutions=args.max_solutions,
            )
            if not args.quiet:
                for s in report.solutions:
                    _print_solution(s)
        else:
            report = find_solutions(
                kind,
                initial_state=state,
                start=args.start,
                end=args.end,
                allow_backtracking=args.allow_backtracking,
                max_solutions=args.max_solutions,
                on_solution=None if args.quiet else _print_solution,
            )
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    for note in report.notes:
        print(f"warning: {note}", file=sys.stderr)
    if args.out:
        path = write_solutions(report.solutions, os.getcwd(), args.out)
        if not args.quiet:
            print(f"wrote {path}")
    print(f"found {report.count} solutions")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

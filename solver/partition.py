# solver/partition.py
"""Split the floor-depth catalog range and search the pieces independently.

Partitions share no state, so each one can run in its own child process.
Results are concatenated in range order, which reproduces the order of a
single uninterrupted search over the whole range.
"""

from __future__ import annotations

import dataclasses
import multiprocessing as mp
import queue
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

from board import Board, create_board, parse_state, seed_board
from config import CFG
from errors import RangeError
from models import CatalogEntry, Solution, parse_entry
from pieces import Catalog
from progress import (
    log_attempt_detail, set_board, set_done, set_message, set_progress_pct,
    set_search, set_status, start_timer,
)
from solver.search import SearchReport, find_solutions

Bound = Optional[CatalogEntry]
BoardLike = Union[Board, str, None]


def _entry(value) -> Bound:
    return value if isinstance(value, CatalogEntry) or value is None else parse_entry(value)


def split_range(catalog: Catalog, parts: int, start=None, end=None) -> List[Tuple[Bound, Bound]]:
    """Cut ``[start, end)`` into at most ``parts`` contiguous, non-empty pieces.

    ``None`` stands for the beginning / end of the catalog, so the first
    and last pair keep whatever bounds the caller gave.
    """
    start_entry, end_entry = _entry(start), _entry(end)
    lo = catalog.index_of(start_entry) if start_entry is not None else 0
    hi = catalog.index_of(end_entry) if end_entry is not None else catalog.size
    span = max(0, hi - lo)
    parts = max(1, min(int(parts or 1), span or 1))

    cuts = [lo + (span * i) // parts for i in range(parts + 1)]
    out: List[Tuple[Bound, Bound]] = []
    for i in range(parts):
        a = start_entry if i == 0 else catalog.entries[cuts[i]]
        b = end_entry if i == parts - 1 else catalog.entries[cuts[i + 1]]
        out.append((a, b))
    return out


def _fresh_board(board: BoardLike) -> Board:
    if isinstance(board, Board):
        return board.blank()
    return create_board(board)


# Worker must be top-level (picklable under spawn)
def _search_worker(q, board: Board, start: Bound, end: Bound, initial_state: Optional[str],
                   allow_backtracking: bool, max_solutions: int):
    try:
        report = find_solutions(
            initial_state=initial_state,
            start=start,
            end=end,
            allow_backtracking=allow_backtracking,
            max_solutions=max_solutions,
            board=board,
            track_progress=False,
        )
        q.put(("ok", report.solutions, report.nodes, None))
    except MemoryError:
        q.put(("err", [], 0, "Child ran out of memory"))
    except Exception as e:
        q.put(("exc", [], 0, f"{e}\n{traceback.format_exc()}"))


def _terminate(proc, grace: float = 2.0) -> None:
    if proc.is_alive():
        proc.terminate()
        proc.join(grace)


def run_partition_isolated(
    board: BoardLike,
    start: Bound,
    end: Bound,
    initial_state: Optional[str] = None,
    max_seconds: Optional[float] = None,
    allow_backtracking: bool = False,
    max_solutions: int = 0,
) -> Tuple[bool, List[Solution], Optional[str], Optional[str]]:
    """
    Returns (ok, solutions, reason, crash_note).
    crash_note is non-empty only if the child crashed/was killed/timed out.
    """
    seconds = float(max_seconds if max_seconds is not None else CFG.PARTITION_SECONDS)
    ctx = mp.get_context("spawn")
    q = ctx.Queue()
    p = ctx.Process(
        target=_search_worker,
        args=(q, _fresh_board(board), start, end, initial_state, bool(allow_backtracking), int(max_solutions or 0)),
    )
    p.daemon = True
    p.start()

    # Read before joining: a child blocked on a full pipe never exits.
    try:
        tag, solutions, _nodes, reason = q.get(timeout=seconds)
    except queue.Empty:
        if not p.is_alive() and p.exitcode not in (0, None):
            return False, [], f"Stopped before finishing (child exit {p.exitcode})", "child crashed"
        _terminate(p)
        return False, [], "Stopped before finishing (timebox)", "killed: timeout"
    p.join(5.0)
    _terminate(p)

    if tag == "ok":
        return True, list(solutions), None, None
    return False, [], reason, None


def run_partitions(
    board: BoardLike,
    parts: int,
    initial_state: Optional[str] = None,
    start=None,
    end=None,
    allow_backtracking: Optional[bool] = None,
    workers: Optional[int] = None,
    max_seconds: Optional[float] = None,
    isolated: Optional[bool] = None,
    max_solutions: Optional[int] = None,
) -> SearchReport:
    """Search every partition and merge the results in range order.

    With one worker and ``isolated`` off the partitions run in this
    process; otherwise each gets its own spawned child with a time budget.
    ``max_solutions`` caps every partition and then the merged list, which
    keeps the first solutions of the single-search order.
    """
    template = _fresh_board(board)
    ranges = split_range(template.catalog, parts, start, end)
    # Surface state errors here rather than once per child.
    seeded = template.blank()
    if initial_state and initial_state.strip():
        seed_board(seeded, parse_state(initial_state, seeded))
    workers = max(1, int(workers or CFG.WORKERS or 1))
    if isolated is None:
        isolated = workers > 1
    if allow_backtracking is None:
        allow_backtracking = CFG.ALLOW_BACKTRACKING
    if max_solutions is None:
        max_solutions = CFG.MAX_SOLUTIONS
    cap = max(0, int(max_solutions or 0))
    if allow_backtracking and seeded.pieces_on_board() and len(ranges) > 1:
        raise RangeError("partitions cannot backtrack over seeded pieces; use a single part")

    first, last = ranges[0][0], ranges[-1][1]
    search_range = f"{first or 'start'} .. {last or 'end'}"
    start_timer()
    set_status("Searching")
    set_board(template.kind, search_range)
    log_attempt_detail("Partitioned run started", board=template.kind, parts=len(ranges), workers=workers)

    def _one(bounds: Tuple[Bound, Bound]) -> Tuple[bool, List[Solution], Optional[str], int]:
        a, b = bounds
        if isolated:
            ok, sols, reason, crash = run_partition_isolated(
                template, a, b, initial_state, max_seconds, bool(allow_backtracking), cap
            )
            return ok, sols, crash or reason, 0
        rep = find_solutions(
            initial_state=initial_state, start=a, end=b,
            allow_backtracking=allow_backtracking, max_solutions=cap,
            board=template.blank(), track_progress=False,
        )
        return True, rep.solutions, None, rep.nodes

    t0 = time.time()
    results: List[Tuple[bool, List[Solution], Optional[str], int]] = []
    if workers == 1:
        for i, bounds in enumerate(ranges):
            results.append(_one(bounds))
            set_progress_pct(100.0 * (i + 1) / len(ranges))
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(_one, ranges))

    report = SearchReport(
        board_kind=template.kind,
        initial=seeded.to_text(),
        elapsed=time.time() - t0,
        search_range=search_range,
    )
    for (a, b), (ok, sols, note, nodes) in zip(ranges, results):
        log_attempt_detail("Partition finished", start=a, end=b, ok=ok, solutions=len(sols), note=note)
        report.nodes += nodes
        if not ok:
            report.stopped = True
            report.notes.append(f"{a or 'start'} .. {b or 'end'}: {note}")
        for s in sols:
            report.solutions.append(dataclasses.replace(s, index=len(report.solutions) + 1))
    if cap and report.count >= cap:
        del report.solutions[cap:]
        report.stopped = True

    set_search("", 0, report.nodes, report.count)
    set_message(f"found {report.count} solution(s) in {len(ranges)} partition(s)")
    set_done(not report.notes, message="; ".join(report.notes) or None)
    return report


__all__ = ["run_partition_isolated", "run_partitions", "split_range"]

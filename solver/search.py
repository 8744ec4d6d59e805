"""Depth-first driver over a board and a placement iterator.

The loop is an explicit state machine rather than recursion: each
``step()`` asks the iterator for one candidate, tries it at the board's
first empty cell and reports the outcome back on the next request. The
board and the iterator move in lock-step; every committed catalog entry has
exactly one placement on the board and one entry on ``Solver.stack``.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from board import Board, create_board, parse_state, seed_board
from config import CFG
from errors import SearchStateError
from models import CatalogEntry, Placement, Solution, format_path, parse_entry
from progress import (
    log_attempt_detail, record_solution, set_board, set_done, set_message,
    set_progress_pct, set_search, set_status, start_timer,
)
from solver.placements import PlacementIterator

logger = logging.getLogger(__name__)


class SearchState(enum.Enum):
    SEARCHING = "searching"
    SOLUTION_FOUND = "solution_found"
    EXHAUSTED = "exhausted"


class Solver:
    def __init__(
        self,
        board: Board,
        iterator: PlacementIterator,
        *,
        max_solutions: Optional[int] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        on_solution: Optional[Callable[[Solution], None]] = None,
        on_progress: Optional[Callable[["Solver"], None]] = None,
        progress_every: Optional[int] = None,
    ):
        self.board = board
        self.iterator = iterator
        self.max_solutions = max_solutions if max_solutions and max_solutions > 0 else None
        self.should_stop = should_stop
        self.on_solution = on_solution
        self.on_progress = on_progress
        self.progress_every = int(progress_every or CFG.PROGRESS_EVERY or 0)

        on_board = {p.piece: p for p in board.placements()}
        try:
            self.stack: List[Placement] = [on_board[e.piece] for e in iterator.committed]
        except KeyError as exc:
            raise SearchStateError(f"committed piece {exc.args[0]} is not on the board") from None

        self.state = SearchState.SEARCHING
        self.solutions: List[Solution] = []
        self.nodes = 0
        self.placed = 0
        self.backtracks = 0
        self.stopped = False
        self._committed_last = False

    # ---------- transitions ----------

    def step(self) -> SearchState:
        if self.state is SearchState.EXHAUSTED:
            return self.state
        self.state = SearchState.SEARCHING

        if self.nodes == 0 and self.board.is_full() and not self.solutions:
            # A seeded board that is already complete is its own single solution.
            self._record(self.stack)
            self.state = SearchState.EXHAUSTED
            return self.state

        floor_before = self.iterator.position()
        entry = self.iterator.next_candidate(self._committed_last)
        self._committed_last = False

        if entry is None:
            if self.iterator.at_floor:
                self.state = SearchState.EXHAUSTED
                return self.state
            top = self.stack.pop()
            self.board.remove(top)
            exposed = self.iterator.pop()
            if exposed != top.entry:
                raise SearchStateError(f"board popped {top.entry} but iterator popped {exposed}")
            self.backtracks += 1
            return self.state

        self.nodes += 1
        if self.on_progress and self.progress_every and self.nodes % self.progress_every == 0:
            self.on_progress(self)

        if self.iterator.depth == self.iterator.floor and self.iterator.position() != floor_before:
            if self._stop_requested():
                self.state = SearchState.EXHAUSTED
                return self.state

        placement = self.board.placement_for(entry)
        if placement is None or not self.board.can_place(placement):
            return self.state

        self.board.place(placement)
        if self.board.is_full() and self.board.supports_hold():
            self._record(self.stack + [placement])
            self.board.remove(placement)
            self.state = SearchState.SOLUTION_FOUND
            if self._stop_requested():
                self.state = SearchState.EXHAUSTED
            return self.state

        self.stack.append(placement)
        self.placed += 1
        self._committed_last = True
        return self.state

    def run(self) -> List[Solution]:
        while self.step() is not SearchState.EXHAUSTED:
            pass
        return self.solutions

    # ---------- helpers ----------

    def _record(self, placements: Sequence[Placement]) -> None:
        solution = Solution(
            index=len(self.solutions) + 1,
            path=format_path(p.entry for p in placements),
            grid=self.board.to_text(),
            placements=tuple(placements),
        )
        self.solutions.append(solution)
        if self.on_solution:
            self.on_solution(solution)

    def _stop_requested(self) -> bool:
        if self.max_solutions is not None and len(self.solutions) >= self.max_solutions:
            self.stopped = True
        elif self.should_stop is not None and self.should_stop():
            self.stopped = True
        return self.stopped


@dataclass
class SearchReport:
    board_kind: str
    initial: str
    solutions: List[Solution] = field(default_factory=list)
    nodes: int = 0
    placed: int = 0
    backtracks: int = 0
    elapsed: float = 0.0
    stopped: bool = False
    search_range: str = ""
    notes: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.solutions)


def _range_label(start: Optional[CatalogEntry], end: Optional[CatalogEntry]) -> str:
    return f"{start or 'start'} .. {end or 'end'}"


def find_solutions(
    kind: Optional[str] = None,
    initial_state: Optional[str] = None,
    start=None,
    end=None,
    allow_backtracking: Optional[bool] = None,
    max_solutions: Optional[int] = None,
    on_solution: Optional[Callable[[Solution], None]] = None,
    *,
    board: Optional[Board] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    track_progress: bool = True,
) -> SearchReport:
    """Parse, seed and run one search.

    ``start`` / ``end`` accept a ``CatalogEntry`` or its ``B[3]`` text.
    Every user error (state text, seeded placements, range) is raised before
    the search begins.
    """
    board = board if board is not None else create_board(kind)
    catalog = board.catalog
    start_entry = start if isinstance(start, CatalogEntry) else parse_entry(start)
    end_entry = end if isinstance(end, CatalogEntry) else parse_entry(end)
    for entry in (start_entry, end_entry):
        if entry is not None:
            catalog.check(entry)

    seeded: List[Placement] = []
    if initial_state and initial_state.strip():
        seeded = parse_state(initial_state, board)
        seed_board(board, seeded)

    if allow_backtracking is None:
        allow_backtracking = CFG.ALLOW_BACKTRACKING
    if max_solutions is None:
        max_solutions = CFG.MAX_SOLUTIONS

    iterator = PlacementIterator(
        catalog,
        committed=[p.entry for p in seeded],
        start=start_entry,
        end=end_entry,
        allow_backtracking=bool(allow_backtracking),
    )
    search_range = _range_label(start_entry, end_entry)
    initial = board.to_text()

    def _progress(solver: Solver) -> None:
        set_search(solver.iterator.path(), solver.iterator.depth, solver.nodes, len(solver.solutions))
        set_progress_pct(100.0 * solver.iterator.floor_fraction())

    def _solution(solution: Solution) -> None:
        if track_progress:
            record_solution(solution.index, solution.path)
        if on_solution:
            on_solution(solution)

    solver = Solver(
        board,
        iterator,
        max_solutions=max_solutions,
        should_stop=should_stop,
        on_solution=_solution,
        on_progress=_progress if track_progress else None,
    )

    logger.info("search %s board, range %s, %d seeded piece(s)", catalog.kind, search_range, len(seeded))
    if track_progress:
        start_timer()
        set_status("Searching")
        set_board(catalog.kind, search_range)
        log_attempt_detail(
            "Run started",
            board=catalog.kind,
            range=search_range,
            seeded=format_path(p.entry for p in seeded) or None,
            backtracking=int(bool(allow_backtracking)),
        )

    t0 = time.time()
    try:
        solver.run()
    except Exception as exc:
        if track_progress:
            set_done(False, message=f"{type(exc).__name__}: {exc}")
        raise
    elapsed = time.time() - t0

    report = SearchReport(
        board_kind=catalog.kind,
        initial=initial,
        solutions=solver.solutions,
        nodes=solver.nodes,
        placed=solver.placed,
        backtracks=solver.backtracks,
        elapsed=elapsed,
        stopped=solver.stopped,
        search_range=search_range,
    )
    logger.info("found %d solution(s) in %.2fs (%d nodes)", report.count, elapsed, report.nodes)
    if track_progress:
        set_search(iterator.path(), iterator.depth, solver.nodes, report.count)
        set_message(f"found {report.count} solution(s)" + (" (stopped early)" if report.stopped else ""))
        set_done(True)
    return report


__all__ = ["SearchReport", "SearchState", "Solver", "find_solutions"]

from collections import Counter

import pytest

from board import PyramidBoard, RectangularBoard
from errors import RangeError, StateParseError
from models import parse_entry
from progress import snapshot
from solver.placements import PlacementIterator
from solver.search import SearchState, Solver, find_solutions


def _solver(board, **kwargs):
    return Solver(board, PlacementIterator(board.catalog), **kwargs)


def test_two_by_four_has_four_tilings_by_f_and_b():
    board = RectangularBoard(4, 2)
    solutions = _solver(board).run()
    assert len(solutions) == 4
    assert [s.index for s in solutions] == [1, 2, 3, 4]
    assert all(s.pieces() == "BF" for s in solutions)
    assert len({s.grid for s in solutions}) == 4
    assert all("." not in s.grid for s in solutions)
    # Two start with B in the corner, two with F.
    assert [s.path[0] for s in solutions] == ["B", "B", "F", "F"]


def test_solutions_cover_every_cell_exactly_once():
    board = RectangularBoard(4, 2)
    for sol in _solver(board).run():
        cells = [cell for p in sol.placements for cell in p.cells]
        assert sorted(cells) == sorted(board.cells)
        for p in sol.placements:
            assert len(p.cells) == len(board.catalog.offsets(p.entry))
            assert sol.grid.count(p.piece) == len(p.cells)
        assert Counter(p.piece for p in sol.placements).most_common(1)[0][1] == 1


def test_board_and_iterator_unwind_after_the_search():
    board = RectangularBoard(4, 2)
    solver = _solver(board)
    solver.run()
    assert board.pieces_on_board() == []
    assert solver.stack == []
    assert solver.iterator.depth == 0
    assert solver.nodes > 0 and solver.backtracks > 0


def test_square_board_is_one_k():
    solutions = _solver(RectangularBoard(2, 2)).run()
    assert [s.path for s in solutions] == ["K[0]"]
    assert solutions[0].grid == "KK\nKK"


def test_smallest_pyramid_has_no_tiling():
    solver = _solver(PyramidBoard(2))
    assert solver.run() == []
    assert solver.state is SearchState.EXHAUSTED


def test_step_reports_solutions_then_exhaustion():
    solver = _solver(RectangularBoard(2, 2))
    states = []
    while True:
        states.append(solver.step())
        if states[-1] is SearchState.EXHAUSTED:
            break
    assert states.count(SearchState.SOLUTION_FOUND) == 1
    assert solver.step() is SearchState.EXHAUSTED


def test_runs_are_deterministic():
    first = [s.path for s in _solver(RectangularBoard(4, 2)).run()]
    second = [s.path for s in _solver(RectangularBoard(4, 2)).run()]
    assert first == second


def test_max_solutions_and_should_stop():
    capped = _solver(RectangularBoard(4, 2), max_solutions=1)
    assert len(capped.run()) == 1
    assert capped.stopped

    halted = _solver(RectangularBoard(4, 2), should_stop=lambda: True)
    assert halted.run() == []
    assert halted.stopped


def test_callbacks_fire():
    seen, ticks = [], []
    _solver(
        RectangularBoard(4, 2),
        on_solution=seen.append,
        on_progress=lambda s: ticks.append(s.nodes),
        progress_every=5,
    ).run()
    assert len(seen) == 4
    assert ticks and all(n % 5 == 0 for n in ticks)


def test_find_solutions_reports_and_publishes_progress():
    report = find_solutions(board=RectangularBoard(4, 2))
    assert report.count == 4
    assert report.board_kind == "rectangle"
    assert report.initial == "....\n...."
    assert not report.stopped
    snap = snapshot()
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["solutions"] == 4
    assert snap["board"] == "rectangle"


def test_range_splits_reproduce_the_full_order():
    full = [s.path for s in find_solutions(board=RectangularBoard(4, 2)).solutions]
    low = find_solutions(board=RectangularBoard(4, 2), end="C[0]")
    high = find_solutions(board=RectangularBoard(4, 2), start="C[0]")
    assert low.count == 2 and high.count == 2
    assert [s.path for s in low.solutions + high.solutions] == full
    assert high.search_range == "C[0] .. end"


def test_seeded_state_stays_fixed_unless_backtracking():
    fixed = find_solutions(board=RectangularBoard(4, 2), initial_state="F\nFF")
    assert fixed.count == 1
    assert fixed.solutions[0].path.startswith("F[0]; B[")
    assert fixed.initial == "F...\nFF.."

    loose = find_solutions(board=RectangularBoard(4, 2), initial_state="F\nFF", allow_backtracking=True)
    assert loose.count >= 1
    assert loose.solutions[0].path == fixed.solutions[0].path


def test_complete_seeded_board_is_its_own_solution():
    report = find_solutions(board=RectangularBoard(2, 2), initial_state="KK\nKK")
    assert [s.path for s in report.solutions] == ["K[0]"]


def test_user_errors_surface_before_the_search():
    with pytest.raises(RangeError):
        find_solutions(board=RectangularBoard(4, 2), start="Z[0]")
    with pytest.raises(RangeError):
        find_solutions(board=RectangularBoard(4, 2), end="A[9]")
    with pytest.raises(StateParseError):
        find_solutions(board=RectangularBoard(4, 2), initial_state="AA\nAA")


def test_default_board_comes_from_config(small_rect):
    report = find_solutions("rectangle", max_solutions=2)
    assert report.count == 2
    assert report.stopped


FIRST_RECTANGLE_TILING = "A[0]; C[3]; B[0]; I[0]; F[1]; L[0]; J[1]; K[0]; H[3]; G[1]; D[6]; E[6]"


def _replay(board, path):
    placements = []
    for text in path.split("; "):
        placement = board.placement_for(parse_entry(text))
        board.place(placement)
        placements.append(placement)
    return placements


def test_completions_of_a_full_size_rectangle_use_all_twelve_pieces():
    full = RectangularBoard(11, 5)
    placements = _replay(full, FIRST_RECTANGLE_TILING)
    assert full.is_full()

    partial = RectangularBoard(11, 5)
    for p in placements[:-3]:
        partial.place(p)
    report = find_solutions(board=RectangularBoard(11, 5), initial_state=partial.to_text(), track_progress=False)

    assert full.to_text() in [s.grid for s in report.solutions]
    for sol in report.solutions:
        assert sol.pieces() == "ABCDEFGHIJKL"
        cells = [cell for p in sol.placements for cell in p.cells]
        assert sorted(cells) == sorted(full.cells)


def test_pyramid_tilings_rest_on_covered_cells():
    solver = _solver(PyramidBoard(4), max_solutions=5)
    solutions = solver.run()
    assert len(solutions) == 5
    for sol in solutions:
        rebuilt = PyramidBoard(4)
        for p in sol.placements:
            rebuilt.place(p)
        assert rebuilt.is_full()
        assert rebuilt.supports_hold()
        assert len({p.piece for p in sol.placements}) == len(sol.placements)
        # The single top cell can only be reached by an upright piece.
        assert any(len({cell[0] for cell in p.cells}) > 1 for p in sol.placements)

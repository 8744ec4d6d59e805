import pytest

from board import RectangularBoard
from errors import RangeError, StateParseError
from models import CatalogEntry
from pieces import catalog_for
from progress import snapshot
from solver.partition import run_partition_isolated, run_partitions, split_range
from solver.search import find_solutions


def test_split_range_is_contiguous_and_keeps_outer_bounds():
    catalog = catalog_for("rectangle")
    ranges = split_range(catalog, 3)
    assert len(ranges) == 3
    assert ranges[0][0] is None
    assert ranges[-1][1] is None
    for (_, end), (start, _) in zip(ranges, ranges[1:]):
        assert end == start
    assert ranges[0][1] == catalog.entries[catalog.size // 3]


def test_split_range_never_makes_empty_parts():
    catalog = catalog_for("rectangle")
    ranges = split_range(catalog, 5, start="K[0]")
    assert ranges == [(CatalogEntry("K", 0), CatalogEntry("L", 0)), (CatalogEntry("L", 0), None)]
    assert split_range(catalog, 0) == [(None, None)]
    with pytest.raises(RangeError):
        split_range(catalog, 2, end="L[3]")


def test_partitions_match_a_single_search():
    single = find_solutions(board=RectangularBoard(4, 2), track_progress=False)
    merged = run_partitions(RectangularBoard(4, 2), parts=4, workers=1, isolated=False)
    assert [s.path for s in merged.solutions] == [s.path for s in single.solutions]
    assert [s.index for s in merged.solutions] == [1, 2, 3, 4]
    assert merged.notes == []
    assert not merged.stopped


def test_partitions_check_the_state_up_front():
    with pytest.raises(StateParseError):
        run_partitions(RectangularBoard(4, 2), parts=2, initial_state="AA\nAA", workers=1)


def test_isolated_partition_runs_in_a_child_process():
    ok, solutions, reason, crash = run_partition_isolated(
        RectangularBoard(4, 2), None, CatalogEntry("C", 0), max_seconds=120
    )
    assert ok, reason
    assert crash is None
    assert [s.pieces() for s in solutions] == ["BF", "BF"]
    assert all(s.path.startswith("B[") for s in solutions)


def test_backtracking_over_seeds_cannot_be_partitioned():
    with pytest.raises(RangeError, match="seeded"):
        run_partitions(
            RectangularBoard(4, 2), 3, initial_state="F\nFF",
            allow_backtracking=True, workers=1, isolated=False,
        )
    with pytest.raises(RangeError, match="seeded"):
        find_solutions(board=RectangularBoard(4, 2), initial_state="F\nFF", start="C[0]", allow_backtracking=True)

    single = run_partitions(
        RectangularBoard(4, 2), 1, initial_state="F\nFF",
        allow_backtracking=True, workers=1, isolated=False,
    )
    expected = find_solutions(
        board=RectangularBoard(4, 2), initial_state="F\nFF", allow_backtracking=True, track_progress=False
    )
    assert [s.path for s in single.solutions] == [s.path for s in expected.solutions]


def test_partitioned_run_honours_the_cap_and_publishes_counts():
    full = find_solutions(board=RectangularBoard(4, 2), track_progress=False)
    capped = run_partitions(RectangularBoard(4, 2), parts=3, workers=1, isolated=False, max_solutions=3)
    assert [s.path for s in capped.solutions] == [s.path for s in full.solutions[:3]]
    assert capped.stopped

    run_partitions(RectangularBoard(4, 2), parts=2, workers=1, isolated=False)
    snap = snapshot()
    assert snap["solutions"] == 4
    assert snap["nodes"] > 0
    assert snap["done"] is True

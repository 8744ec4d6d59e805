import cli


def test_catalog_listing(capsys):
    assert cli.main(["--catalog"]) == 0
    out = capsys.readouterr().out
    assert "A: 8" in out
    assert "L: 1" in out
    assert "total: 60" in out


def test_pyramid_catalog_is_larger(capsys):
    assert cli.main(["--catalog", "--pyramid"]) == 0
    total = int(capsys.readouterr().out.strip().splitlines()[-1].split(":")[1])
    assert total > 60


def test_search_prints_board_solutions_and_count(small_rect, capsys):
    assert cli.main([]) == 0
    out = capsys.readouterr().out
    assert out.startswith("initial board:\n....\n....\n")
    assert "#1: B[" in out
    assert "#4: F[" in out
    assert out.rstrip().endswith("found 4 solutions")


def test_quiet_prints_only_the_count(small_rect, capsys):
    assert cli.main(["--quiet", "--max-solutions", "3"]) == 0
    assert capsys.readouterr().out == "found 3 solutions\n"


def test_state_file_and_output_file(small_rect, tmp_path, capsys):
    state = tmp_path / "state.txt"
    state.write_text("F\nFF\n", encoding="utf-8")
    out_file = tmp_path / "out" / "found.txt"

    assert cli.main(["--state", str(state), "--out", str(out_file)]) == 0
    out = capsys.readouterr().out
    assert "initial board:\nF...\nFF..\n" in out
    assert "found 1 solutions" in out
    assert out_file.read_text(encoding="utf-8").startswith("#1: F[0]; B[")


def test_partitioned_search_matches_plain_search(small_rect, capsys):
    assert cli.main(["--quiet", "--parts", "3"]) == 0
    assert capsys.readouterr().out == "found 4 solutions\n"


def test_user_errors_exit_with_code_2(small_rect, tmp_path, capsys):
    assert cli.main(["--start", "Z[0]"]) == 2
    assert "error:" in capsys.readouterr().err

    assert cli.main(["--state", str(tmp_path / "missing.txt")]) == 2
    assert "error:" in capsys.readouterr().err

    bad = tmp_path / "bad.txt"
    bad.write_text("AA\nAA\n", encoding="utf-8")
    assert cli.main(["--state", str(bad)]) == 2
    assert "unrecognized orientation" in capsys.readouterr().err


def test_partitioned_search_keeps_the_solution_cap(small_rect, capsys):
    assert cli.main(["--quiet", "--parts", "3", "--max-solutions", "2"]) == 0
    assert capsys.readouterr().out == "found 2 solutions\n"


def test_partitions_refuse_to_backtrack_over_a_state(small_rect, tmp_path, capsys):
    state = tmp_path / "state.txt"
    state.write_text("F\nFF\n", encoding="utf-8")
    assert cli.main(["--quiet", "--state", str(state), "--parts", "3", "--allow-backtracking"]) == 2
    assert "seeded" in capsys.readouterr().err

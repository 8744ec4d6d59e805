import pytest

import app as app_module
from config import CFG


@pytest.fixture
def client(small_rect, tmp_path, monkeypatch):
    monkeypatch.setattr(CFG, "SOLUTIONS_OUT", str(tmp_path / "solutions.txt"))
    monkeypatch.setattr(CFG, "LAYOUT_HTML", str(tmp_path / "layout_view.html"))
    app_module.app.config.update(TESTING=True)
    with app_module.app.test_client() as c:
        yield c


def test_index_renders_the_search_form(client):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert 'action="/solve"' in body
    assert "pyramid" in body


def test_solve_renders_every_solution_and_writes_outputs(client, tmp_path):
    resp = client.post("/solve", data={"board": "rectangle", "state": ""})
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "found 4 solution(s)" in body
    assert body.count("<svg") == 5  # initial board plus four solutions
    assert "solutions.txt" in body

    text = (tmp_path / "solutions.txt").read_text(encoding="utf-8")
    assert text.startswith("#1: B[")
    assert (tmp_path / "layout_view.html").exists()

    latest = client.get("/result/latest")
    assert "found 4 solution(s)" in latest.get_data(as_text=True)

    download = client.get("/download/solutions")
    assert download.status_code == 200
    assert download.get_data(as_text=True) == text


def test_solve_accepts_json_and_range(client):
    resp = client.post("/solve", json={"board": "rectangle", "start": "C[0]", "max_solutions": "1"})
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "found 1 solution(s) (stopped early)" in body
    assert "C[0] .. end" in body


@pytest.mark.parametrize("data, needle", [
    ({"board": "rectangle", "start": "Z[0]"}, "unknown piece"),
    ({"board": "rectangle", "state": "AA\nAA"}, "unrecognized orientation"),
    ({"board": "hexagon"}, "unknown board kind"),
    ({"board": "rectangle", "max_solutions": "lots"}, "whole number"),
])
def test_solve_reports_user_errors(client, data, needle):
    resp = client.post("/solve", data=data)
    assert resp.status_code == 400
    body = resp.get_data(as_text=True)
    assert "Search failed" in body
    assert needle in body

    progress = client.get("/progress3").get_json()
    assert progress["done"] is True
    assert progress["ok"] is False


def test_progress_endpoint_is_never_cached(client):
    resp = client.get("/progress3")
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "no-store, max-age=0"
    payload = resp.get_json()
    for key in ("status", "board", "path", "nodes", "solutions", "percent", "elapsed_str", "run_id"):
        assert key in payload

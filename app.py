# app.py: search form, synchronous solve, progress polling, downloads
from __future__ import annotations
import os
import time
from typing import Any, Dict, Optional, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify, url_for

from config import CFG
from io_files import format_solutions, write_layout_view_html, write_solutions
from pieces import BOARD_KINDS
from render import render_grid, render_result
from solver.search import find_solutions

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    set_done, set_result_url,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Boards drawn on the result page; the text download always has every solution.
MAX_RENDERED = 60


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


def _solutions_location() -> Tuple[str, str, str]:
    return _resolve_output_paths(CFG.SOLUTIONS_OUT, "solutions.txt")


def _layout_location() -> Tuple[str, str, str]:
    return _resolve_output_paths(CFG.LAYOUT_HTML, "layout_view.html")


LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "message": "No search has run yet.",
    "board": CFG.BOARD,
    "search_range": "",
    "count": 0,
    "nodes": 0,
    "stopped": False,
    "elapsed_str": "0s",
    "initial_svg": "",
    "svgs": [],
    "paths": [],
    "legend": "",
    "text": "",
    "solutions_filename": _solutions_location()[2],
    "layout_filename": _layout_location()[2],
}

app = Flask(__name__, static_folder=None, template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress3":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return render_template(
        "search_form.html",
        board_kinds=BOARD_KINDS,
        board=CFG.BOARD,
        allow_backtracking=CFG.ALLOW_BACKTRACKING,
        max_solutions=CFG.MAX_SOLUTIONS or "",
    )


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


@app.route("/styles.css")
def styles_css():
    return send_from_directory(BASE_DIR, "styles.css")


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _form_value(name: str) -> str:
    payload = request.get_json(silent=True)
    if isinstance(payload, dict) and payload.get(name) is not None:
        return str(payload[name])
    return request.form.get(name, "")


def _form_flag(name: str) -> bool:
    return _form_value(name).strip().lower() in ("1", "true", "on", "yes")


def _form_int(name: str) -> Optional[int]:
    raw = _form_value(name).strip()
    if not raw:
        return None
    try:
        return max(0, int(raw))
    except ValueError:
        raise ValueError(f"{name} must be a whole number, got {raw!r}") from None


def _error_result(message: str, board: str, t0: float) -> Dict[str, Any]:
    return {
        "ok": False,
        "message": message,
        "board": board,
        "search_range": "",
        "count": 0,
        "nodes": 0,
        "stopped": False,
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "initial_svg": "",
        "svgs": [],
        "paths": [],
        "legend": "",
        "text": "",
    }


@app.route("/solve", methods=["POST"])
def solve():
    t0 = time.time()
    progress_reset()
    board = (_form_value("board") or CFG.BOARD).strip().lower()

    try:
        if board not in BOARD_KINDS:
            raise ValueError(f"unknown board kind {board!r}")
        report = find_solutions(
            board,
            initial_state=_form_value("state"),
            start=_form_value("start") or None,
            end=_form_value("end") or None,
            allow_backtracking=_form_flag("allow_backtracking"),
            max_solutions=_form_int("max_solutions"),
        )
    except ValueError as e:
        # User errors only; PlacementError / SearchStateError propagate.
        set_done(False, message=str(e))
        LAST_RESULT.update(_error_result(str(e), board, t0))
        set_result_url(url_for("result_latest"))
        return render_template("result.html", **LAST_RESULT), 400

    shown = report.solutions[:MAX_RENDERED]
    svgs, legend_html = render_result(shown)
    solutions_path = write_solutions(report.solutions, BASE_DIR)
    layout_path = write_layout_view_html(svgs, legend_html, BASE_DIR)
    solutions_name = os.path.basename(solutions_path)
    layout_name = os.path.basename(layout_path)

    message = f"found {report.count} solution(s)"
    if report.stopped:
        message += " (stopped early)"
    if report.count > len(shown):
        message += f"; showing the first {len(shown)}"

    LAST_RESULT.update({
        "ok": True,
        "message": message,
        "board": report.board_kind,
        "search_range": report.search_range,
        "count": report.count,
        "nodes": report.nodes,
        "stopped": report.stopped,
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "initial_svg": render_grid(report.initial),
        "svgs": svgs,
        "paths": [s.path for s in shown],
        "legend": legend_html,
        "text": format_solutions(report.solutions),
        "solutions_filename": solutions_name,
        "layout_filename": layout_name,
    })
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/download/solutions")
def download_solutions():
    _full, directory, filename = _solutions_location()
    return send_from_directory(directory, filename, as_attachment=True)


@app.route("/download/html")
def download_html():
    _full, directory, filename = _layout_location()
    return send_from_directory(directory, filename, as_attachment=True)


@app.route("/progress3")
def progress3():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)

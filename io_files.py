"""Helpers for reading initial states and writing search outputs to disk."""

from __future__ import annotations

import os
from typing import Optional, Sequence

from config import CFG
from models import Solution


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def read_initial_state(path: str) -> str:
    """Return the text of an initial-state file (parsing happens in ``board``)."""

    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def format_solutions(solutions: Sequence[Solution]) -> str:
    if not solutions:
        return "No solution\n"
    return "\n\n".join(s.to_text() for s in solutions) + "\n"


def write_solutions(solutions: Sequence[Solution], base_dir: str, name: Optional[str] = None) -> str:
    """Write every solution's path line and grid to ``name`` or the configured file."""

    path = _resolve_output_path(base_dir, name or CFG.SOLUTIONS_OUT, "solutions.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(format_solutions(solutions))
    return path


def write_layout_view_html(svgs: Sequence[str], legend_html: str, base_dir: str) -> str:
    """Write the rendered solution SVGs and legend to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    boards = "".join(f"<section class='card'><div class='gridwrap'>{svg}</div></section>" for svg in svgs)
    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>Layout View</title>
<link rel='stylesheet' href='/styles.css'></head>
<body class='container'>
<h1>Layout View</h1>
{boards or "<p>No solution</p>"}
<section class='card'><h3>Legend</h3><ul>{legend_html}</ul></section>
</body></html>"""
        )
    return path


__all__ = ["format_solutions", "read_initial_state", "write_layout_view_html", "write_solutions"]

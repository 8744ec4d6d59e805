import random
from typing import Dict, List, Tuple

from board import Board
from models import PIECE_NAMES, Solution

CELL_PX = 36
LAYER_GAP = 18

def _color(name: str) -> str:
    rng = random.Random(ord(name[:1] or "?") * 7919)
    r = rng.randint(40, 220)
    g = rng.randint(40, 220)
    b = rng.randint(40, 220)
    return f"rgb({r},{g},{b})"

def palette() -> Dict[str, str]:
    return {name: _color(name) for name in PIECE_NAMES}

def render_rows(layers: List[List[str]], scale: int = CELL_PX) -> str:
    """SVG of text layers side by side, bottom layer on the left."""
    colors = palette()
    widths = [max((len(r) for r in rows), default=0) for rows in layers]
    height = max((len(rows) for rows in layers), default=0)
    svg_w = sum(widths) * scale + LAYER_GAP * max(0, len(layers) - 1) + 2
    svg_h = height * scale + 2

    cells = []
    x0 = 1
    for rows, w in zip(layers, widths):
        for r, row in enumerate(rows):
            for c, ch in enumerate(row):
                x = x0 + c * scale
                y = 1 + r * scale
                fill = colors.get(ch, "none")
                cells.append(
                    f'<rect x="{x}" y="{y}" width="{scale}" height="{scale}" fill="{fill}" stroke="black" stroke-width="1"/>'
                )
                if ch in colors:
                    cells.append(
                        f'<text x="{x + scale // 2 - 4}" y="{y + scale // 2 + 4}" font-size="12" fill="black">{ch}</text>'
                    )
        x0 += w * scale + LAYER_GAP

    return (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{"".join(cells)}</svg>'
    )

def render_board(board: Board, scale: int = CELL_PX) -> str:
    return render_rows(board.layer_rows(), scale)

def render_grid(grid: str, scale: int = CELL_PX) -> str:
    """SVG of board text; pyramid layers are blank-line separated."""
    return render_rows([block.splitlines() for block in grid.split("\n\n")], scale)

def render_solution(solution: Solution, scale: int = CELL_PX) -> str:
    return render_grid(solution.grid, scale)

def render_result(solutions: List[Solution]) -> Tuple[List[str], str]:
    svgs = [render_solution(s) for s in solutions]
    used = sorted({ch for s in solutions for ch in s.grid if ch in PIECE_NAMES})
    colors = palette()
    legend = "".join(f"<li><span class='swatch' style='background:{colors[n]}'></span>{n}</li>" for n in used)
    return svgs, legend

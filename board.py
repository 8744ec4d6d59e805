"""Board occupancy for the flat rectangle and the stepped pyramid.

Both boards share one coordinate scheme, ``(layer, row, col)``; the
rectangle simply has a single layer. Cells are visited in scan order
(layer, then row, then column) and the search always anchors the next
piece on the first empty cell in that order.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from config import CFG
from errors import InvalidPlacementError, PlacementError, StateParseError
from models import PIECE_NAMES, CatalogEntry, Cell, Placement
from pieces import BOARD_KINDS, Catalog, catalog_for, normalize, shape_text


class Board:
    kind = ""

    def __init__(self) -> None:
        self.catalog: Catalog = catalog_for(self.kind)
        self.cells: Tuple[Cell, ...] = tuple(
            (l, r, c)
            for l, (rows, cols) in enumerate(self.layer_dims())
            for r in range(rows)
            for c in range(cols)
        )
        self._grid: Dict[Cell, Optional[str]] = {cell: None for cell in self.cells}
        self._placed: Dict[str, Placement] = {}
        self._filled = 0

    # ---------- geometry ----------

    def layer_dims(self) -> List[Tuple[int, int]]:
        raise NotImplementedError

    def _supported(self, cell: Cell, covering: Iterable[Cell]) -> bool:
        return True

    def supports_hold(self) -> bool:
        """Every covered cell rests on covered cells."""
        covered = {cell for cell, piece in self._grid.items() if piece is not None}
        return all(self._supported(cell, covered) for cell in covered)

    def in_bounds(self, cell: Cell) -> bool:
        return cell in self._grid

    # ---------- queries ----------

    def occupant(self, cell: Cell) -> Optional[str]:
        return self._grid[cell]

    def first_empty(self) -> Optional[Cell]:
        for cell in self.cells:
            if self._grid[cell] is None:
                return cell
        return None

    def is_full(self) -> bool:
        return self._filled == len(self.cells)

    def pieces_on_board(self) -> List[str]:
        return sorted(self._placed)

    def placements(self) -> List[Placement]:
        return [self._placed[p] for p in sorted(self._placed)]

    def snapshot(self) -> Dict[Cell, Optional[str]]:
        return dict(self._grid)

    def placement_for(self, entry: CatalogEntry) -> Optional[Placement]:
        """Anchor ``entry`` so its leading offset covers the first empty cell."""
        target = self.first_empty()
        if target is None:
            return None
        offsets = self.catalog.offsets(entry)
        ll, lr, lc = offsets[0]
        tl, tr, tc = target
        return Placement(entry, (tl - ll, tr - lr, tc - lc), offsets)

    def can_place(self, placement: Placement, settled: bool = False) -> bool:
        """True if every cell is on the board and empty.

        While searching, cells below a new pyramid cell may still be empty:
        each of them lies at or after the anchor in scan order and is filled
        before the board is full. With ``settled`` they must already be
        covered, by the board or by the piece itself, as seeding requires.
        """
        cells = placement.cells
        for cell in cells:
            if cell not in self._grid or self._grid[cell] is not None:
                return False
        if not settled:
            return True
        covering = set(cells)
        for cell in cells:
            if not self._supported(cell, covering):
                return False
        return True

    # ---------- mutation ----------

    def place(self, placement: Placement) -> None:
        if placement.piece in self._placed:
            raise PlacementError(f"piece {placement.piece} is already on the board")
        if not self.can_place(placement):
            raise PlacementError(f"{placement.entry} does not fit at {placement.anchor}")
        for cell in placement.cells:
            self._grid[cell] = placement.piece
        self._placed[placement.piece] = placement
        self._filled += len(placement.offsets)

    def remove(self, placement: Placement) -> None:
        if self._placed.get(placement.piece) != placement:
            raise PlacementError(f"{placement.entry} at {placement.anchor} is not on the board")
        for cell in placement.cells:
            self._grid[cell] = None
        del self._placed[placement.piece]
        self._filled -= len(placement.offsets)

    def copy(self) -> "Board":
        other = self.blank()
        for placement in self.placements():
            other._grid.update({cell: placement.piece for cell in placement.cells})
            other._placed[placement.piece] = placement
            other._filled += len(placement.offsets)
        return other

    def blank(self) -> "Board":
        raise NotImplementedError

    # ---------- text ----------

    def layer_rows(self, filler: Optional[str] = None) -> List[List[str]]:
        filler = filler or CFG.FILLER
        out: List[List[str]] = []
        for l, (rows, cols) in enumerate(self.layer_dims()):
            out.append([
                "".join(self._grid[(l, r, c)] or filler for c in range(cols))
                for r in range(rows)
            ])
        return out

    def to_text(self, filler: Optional[str] = None) -> str:
        return "\n\n".join("\n".join(rows) for rows in self.layer_rows(filler))

    def __str__(self) -> str:
        return self.to_text()


class RectangularBoard(Board):
    kind = "rectangle"

    def __init__(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        self.width = int(width or CFG.RECT_WIDTH)
        self.height = int(height or CFG.RECT_HEIGHT)
        super().__init__()

    def layer_dims(self) -> List[Tuple[int, int]]:
        return [(self.height, self.width)]

    def blank(self) -> "RectangularBoard":
        return RectangularBoard(self.width, self.height)


class PyramidBoard(Board):
    """Square layers of side size, size-1, ... 1, indexed bottom to top.

    Cell ``(l, r, c)`` above the bottom layer rests on the four cells
    ``(l-1, r..r+1, c..c+1)``.
    """

    kind = "pyramid"

    def __init__(self, size: Optional[int] = None) -> None:
        self.size = int(size or CFG.PYRAMID_SIZE)
        super().__init__()

    def layer_dims(self) -> List[Tuple[int, int]]:
        return [(self.size - l, self.size - l) for l in range(self.size)]

    def support_cells(self, cell: Cell) -> Tuple[Cell, ...]:
        l, r, c = cell
        if l == 0:
            return ()
        return ((l - 1, r, c), (l - 1, r + 1, c), (l - 1, r, c + 1), (l - 1, r + 1, c + 1))

    def _supported(self, cell: Cell, covering: Iterable[Cell]) -> bool:
        for below in self.support_cells(cell):
            if self._grid.get(below) is None and below not in covering:
                return False
        return True

    def blank(self) -> "PyramidBoard":
        return PyramidBoard(self.size)


def create_board(kind: Optional[str] = None) -> Board:
    kind = (kind or CFG.BOARD).strip().lower()
    if kind == "rectangle":
        return RectangularBoard()
    if kind == "pyramid":
        return PyramidBoard()
    raise ValueError(f"unknown board kind {kind!r}; expected one of {', '.join(BOARD_KINDS)}")


# ---------- initial state ----------

def _split_layers(lines: List[str], layered: bool) -> List[List[Tuple[int, str]]]:
    """Group non-trailing lines into layers, keeping every row's position.

    A row written only with filler is still a row. On the pyramid only a
    line with no characters at all separates layers.
    """
    numbered = [(i + 1, line) for i, line in enumerate(lines)]
    while numbered and not numbered[-1][1].strip():
        numbered.pop()
    if not layered:
        return [[(lineno, line.rstrip()) for lineno, line in numbered]]
    layers: List[List[Tuple[int, str]]] = [[]]
    for lineno, line in numbered:
        if line:
            layers[-1].append((lineno, line.rstrip()))
        elif layers[-1]:
            layers.append([])
    return layers


def _as_board(board: Union[Board, str, None]) -> Board:
    if isinstance(board, Board):
        return board
    return create_board(board)


def parse_state(text: str, board: Union[Board, str, None] = None) -> List[Placement]:
    """Read the textual board format into placements, sorted by piece.

    Letters ``A``–``L`` are pieces and any other non-letter is an empty cell.
    Rows may stop short of the board edge, and a row of filler (spaces
    included) keeps its place. Pyramid layers are separated by an empty
    line, bottom (largest) layer first.
    """
    board = _as_board(board)
    dims = board.layer_dims()
    layers = _split_layers((text or "").splitlines(), layered=len(dims) > 1)
    if len(layers) > len(dims):
        raise StateParseError(f"{len(layers)} layers given, board has {len(dims)}")

    found: Dict[str, List[Cell]] = {}
    for l, rows in enumerate(layers):
        n_rows, n_cols = dims[l]
        if len(rows) > n_rows:
            raise StateParseError(
                f"layer {l} has {len(rows)} rows, expected at most {n_rows}", rows[n_rows][0]
            )
        for r, (lineno, line) in enumerate(rows):
            if len(line) > n_cols:
                raise StateParseError(f"row is {len(line)} wide, expected at most {n_cols}", lineno)
            for c, ch in enumerate(line):
                if not ch.isalpha():
                    continue
                if ch not in PIECE_NAMES:
                    raise StateParseError(f"unknown piece letter {ch!r}", lineno)
                found.setdefault(ch, []).append((l, r, c))

    placements: List[Placement] = []
    for piece in sorted(found):
        cells = found[piece]
        offsets = normalize(cells)
        idx = board.catalog.resolve(piece, offsets)
        if idx is None:
            raise StateParseError(
                f"unrecognized orientation for piece {piece}:\n{shape_text(offsets, filled=piece)}"
            )
        anchor = (
            min(cell[0] for cell in cells),
            min(cell[1] for cell in cells),
            min(cell[2] for cell in cells),
        )
        entry = CatalogEntry(piece, idx)
        placements.append(Placement(entry, anchor, board.catalog.offsets(entry)))
    return placements


def _why_not(board: Board, placement: Placement) -> str:
    for cell in placement.cells:
        if not board.in_bounds(cell):
            return f"cell {cell} is outside the board"
        other = board.occupant(cell)
        if other is not None:
            return f"cell {cell} is already covered by {other}"
    return "it is not supported by the layer below"


def seed_board(board: Union[Board, str, None], placements: Sequence[Placement]) -> Board:
    """Apply externally supplied placements, supports first on the pyramid."""
    board = _as_board(board)
    seen = set()
    for p in placements:
        if p.piece in seen or p.piece in board.pieces_on_board():
            raise InvalidPlacementError(f"piece {p.piece} is placed twice", p.piece)
        board.catalog.check(p.entry)
        seen.add(p.piece)

    pending = list(placements)
    while pending:
        progressed = False
        for p in list(pending):
            if board.can_place(p, settled=True):
                board.place(p)
                pending.remove(p)
                progressed = True
        if not progressed:
            p = pending[0]
            raise InvalidPlacementError(
                f"unable to add initial piece {p.piece} at {p.anchor}: {_why_not(board, p)}", p.piece
            )
    return board


def load_state(text: str, kind: Optional[str] = None) -> Tuple[Board, List[Placement]]:
    board = create_board(kind)
    placements = parse_state(text, board)
    seed_board(board, placements)
    return board, placements


__all__ = [
    "Board", "PyramidBoard", "RectangularBoard", "create_board",
    "load_state", "parse_state", "seed_board",
]

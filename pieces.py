# pieces.py: the twelve pieces and their orientation catalog
from __future__ import annotations

from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from errors import RangeError
from models import PIECE_NAMES, CatalogEntry, Cell, Offsets

BOARD_KINDS = ("rectangle", "pyramid")

Cell2D = Tuple[int, int]

# Default orientation of every piece; '.' is a gap.
BASE_SHAPES: Dict[str, Tuple[str, ...]] = {
    "A": ("A",
          "AAA"),
    "B": ("BB",
          "BBB"),
    "C": (".C",
          ".C",
          ".C",
          "CC"),
    "D": ("DDDD",
          "..D"),
    "E": ("EE",
          ".EEE"),
    "F": ("F",
          "FF"),
    "G": ("GGG",
          "..G",
          "..G"),
    "H": ("HH",
          ".HH",
          "..H"),
    "I": ("II",
          ".I",
          "II"),
    "J": ("JJJJ",),
    "K": ("KK",
          "KK"),
    "L": (".L",
          "LLL",
          ".L"),
}

# How a 2D cell (p, q) sits in the pyramid lattice: lying on a layer, or
# standing upright in one of the two diagonal vertical planes.
_EMBEDDINGS: Tuple[Callable[[int, int], Cell], ...] = (
    lambda p, q: (0, p, q),
    lambda p, q: (p + q, -q, -q),
    lambda p, q: (p + q, -q, -p),
)


def parse_rows(rows: Sequence[str], letter: str) -> Tuple[Cell2D, ...]:
    return tuple(
        (r, c)
        for r, row in enumerate(rows)
        for c, ch in enumerate(row)
        if ch == letter
    )


def normalize(cells: Iterable[Cell]) -> Offsets:
    """Translate so every axis starts at 0 and sort into scan order."""
    cells = list(cells)
    if not cells:
        return ()
    ml = min(c[0] for c in cells)
    mr = min(c[1] for c in cells)
    mc = min(c[2] for c in cells)
    return tuple(sorted((l - ml, r - mr, c - mc) for l, r, c in cells))


def flat_transforms(cells: Sequence[Cell2D]) -> List[Tuple[Cell2D, ...]]:
    """The 4 rotations of the shape, then the 4 rotations of its mirror."""
    out: List[Tuple[Cell2D, ...]] = []
    for mirrored in (False, True):
        current = [(r, -c) for r, c in cells] if mirrored else list(cells)
        for _ in range(4):
            out.append(tuple(current))
            current = [(c, -r) for r, c in current]
    return out


def generate_orientations(cells: Sequence[Cell2D], pyramid: bool = False) -> List[Offsets]:
    embeddings = _EMBEDDINGS if pyramid else _EMBEDDINGS[:1]
    seen = set()
    out: List[Offsets] = []
    for embed in embeddings:
        for variant in flat_transforms(cells):
            norm = normalize(embed(p, q) for p, q in variant)
            if norm in seen:
                continue
            seen.add(norm)
            out.append(norm)
    return out


def shape_text(offsets: Offsets, filled: str = "#", empty: str = ".") -> str:
    """Small picture of an orientation, one block per layer (bottom first)."""
    if not offsets:
        return ""
    rows = max(r for _, r, _ in offsets) + 1
    cols = max(c for _, _, c in offsets) + 1
    layers = max(l for l, _, _ in offsets) + 1
    cells = set(offsets)
    blocks = []
    for l in range(layers):
        blocks.append("\n".join(
            "".join(filled if (l, r, c) in cells else empty for c in range(cols))
            for r in range(rows)
        ))
    return "\n\n".join(blocks)


class Catalog:
    """Globally ordered (piece, orientation) entries for one board kind.

    Entries run A[0..], B[0..], ... L[0..]; that order is what the placement
    iterator walks, so it must never change between runs.
    """

    def __init__(self, kind: str, orientations: Dict[str, List[Offsets]]):
        self.kind = kind
        self._orientations = {p: tuple(orientations[p]) for p in PIECE_NAMES}
        self.entries: Tuple[CatalogEntry, ...] = tuple(
            CatalogEntry(p, i)
            for p in PIECE_NAMES
            for i in range(len(self._orientations[p]))
        )
        self._index = {e: i for i, e in enumerate(self.entries)}
        self._lookup = {
            (p, offs): i
            for p, variants in self._orientations.items()
            for i, offs in enumerate(variants)
        }

    @property
    def size(self) -> int:
        return len(self.entries)

    def orientations(self, piece: str) -> Tuple[Offsets, ...]:
        try:
            return self._orientations[piece]
        except KeyError:
            raise RangeError(f"unknown piece {piece!r}") from None

    def count(self, piece: str) -> int:
        return len(self.orientations(piece))

    def offsets(self, entry: CatalogEntry) -> Offsets:
        return self.orientations(entry.piece)[entry.orientation]

    def check(self, entry: CatalogEntry) -> CatalogEntry:
        n = self.count(entry.piece)
        if not 0 <= entry.orientation < n:
            raise RangeError(
                f"{entry} is out of range: piece {entry.piece} has {n} "
                f"orientation(s) on the {self.kind} board"
            )
        return entry

    def index_of(self, entry: CatalogEntry) -> int:
        return self._index[self.check(entry)]

    def resolve(self, piece: str, offsets: Offsets) -> Optional[int]:
        return self._lookup.get((piece, normalize(offsets)))

    def table(self) -> Dict[str, int]:
        return {p: len(v) for p, v in self._orientations.items()}


@lru_cache(maxsize=None)
def catalog_for(kind: str) -> Catalog:
    if kind not in BOARD_KINDS:
        raise ValueError(f"unknown board kind {kind!r}; expected one of {', '.join(BOARD_KINDS)}")
    pyramid = kind == "pyramid"
    orientations = {
        name: generate_orientations(parse_rows(rows, name), pyramid=pyramid)
        for name, rows in BASE_SHAPES.items()
    }
    return Catalog(kind, orientations)


__all__ = [
    "BASE_SHAPES", "BOARD_KINDS", "Catalog", "catalog_for",
    "flat_transforms", "generate_orientations", "normalize", "shape_text",
]

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from errors import RangeError

Cell = Tuple[int, int, int]          # (layer, row, col); rectangles use layer 0
Offsets = Tuple[Cell, ...]

PIECE_NAMES = "ABCDEFGHIJKL"

# Accepts "B[3]" as well as the bare "B3" form.
_ENTRY_RE = re.compile(r"^\s*(?P<piece>[A-Za-z])\s*(?:\[\s*(?P<idx>\d+)\s*\]|(?P<bare>\d+))\s*$")


@dataclass(frozen=True, order=True)
class CatalogEntry:
    piece: str
    orientation: int

    def __str__(self) -> str:
        return f"{self.piece}[{self.orientation}]"


@dataclass(frozen=True)
class Placement:
    entry: CatalogEntry
    anchor: Cell
    offsets: Offsets

    @property
    def piece(self) -> str:
        return self.entry.piece

    @property
    def cells(self) -> Tuple[Cell, ...]:
        dl, dr, dc = self.anchor
        return tuple((l + dl, r + dr, c + dc) for l, r, c in self.offsets)


@dataclass
class Solution:
    index: int
    path: str
    grid: str
    placements: Tuple[Placement, ...] = field(default_factory=tuple)

    def pieces(self) -> str:
        return "".join(sorted(p.piece for p in self.placements))

    def to_text(self) -> str:
        return f"#{self.index}: {self.path}\n{self.grid}"


def parse_entry(text: Optional[str]) -> Optional[CatalogEntry]:
    """Read ``<Letter>[<index>]`` into an entry; ``None``/blank means unbounded.

    Only the syntax and the piece letter are checked here; whether the
    orientation index exists depends on the board's catalog.
    """
    if text is None or not str(text).strip():
        return None
    m = _ENTRY_RE.match(str(text))
    if not m:
        raise RangeError(f"expected <Letter>[<index>], got {text!r}")
    piece = m.group("piece").upper()
    if piece not in PIECE_NAMES:
        raise RangeError(f"unknown piece {piece!r} in {text!r}")
    idx = m.group("idx") if m.group("idx") is not None else m.group("bare")
    return CatalogEntry(piece, int(idx))


def format_path(entries: Iterable[CatalogEntry]) -> str:
    return "; ".join(str(e) for e in entries)

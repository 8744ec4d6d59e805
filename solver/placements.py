"""Per-depth cursors over the global (piece, orientation) catalog.

Every depth owns one integer cursor into ``Catalog.entries``. A rejected
suggestion advances the cursor, a committed one opens a fresh cursor one
level deeper, and popping discards the deepest cursor so the level above
resumes right after the entry it had committed. Nothing is ever retried at
the same depth while that depth's board context is unchanged, and memory is
one integer per depth.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

from errors import RangeError, SearchStateError
from models import CatalogEntry, format_path
from pieces import Catalog


class PlacementIterator:
    def __init__(
        self,
        catalog: Catalog,
        committed: Sequence[CatalogEntry] = (),
        start: Optional[CatalogEntry] = None,
        end: Optional[CatalogEntry] = None,
        allow_backtracking: bool = False,
    ):
        self.catalog = catalog
        self.committed: List[CatalogEntry] = []
        self.cursors: List[int] = []
        for entry in committed:
            if entry.piece in self.used_pieces:
                raise RangeError(f"piece {entry.piece} is committed twice")
            self.cursors.append(catalog.index_of(entry))
            self.committed.append(entry)
        self.floor = 0 if allow_backtracking else len(self.committed)

        self._start = catalog.index_of(start) if start is not None else 0
        self._end = catalog.index_of(end) if end is not None else catalog.size
        if self._start > self._end:
            raise RangeError(f"start {start} comes after end {end}")
        # The floor resumes from the first seeded entry, not from start.
        if start is not None and self.floor < len(self.committed):
            raise RangeError(f"start {start} cannot be combined with backtracking over seeded pieces")

        # The open cursor sits just before its first candidate.
        first = self._start if self.floor == len(self.committed) else 0
        self.cursors.append(first - 1)
        self.pending: Optional[CatalogEntry] = None

    # ---------- state ----------

    @property
    def depth(self) -> int:
        return len(self.committed)

    @property
    def used_pieces(self) -> Set[str]:
        return {e.piece for e in self.committed}

    @property
    def at_floor(self) -> bool:
        return self.depth <= self.floor

    def path(self) -> str:
        return format_path(self.committed)

    def position(self, depth: Optional[int] = None) -> int:
        """Cursor of ``depth`` (default: the floor), -1 before the first try."""
        return self.cursors[self.floor if depth is None else depth]

    def floor_fraction(self) -> float:
        """How far the floor cursor has walked through its allowed range."""
        span = self._end - self._start
        if span <= 0:
            return 1.0
        done = self.cursors[self.floor] + 1 - self._start
        return max(0.0, min(1.0, done / span))

    # ---------- protocol ----------

    def next_candidate(self, previous_was_committed: bool = False) -> Optional[CatalogEntry]:
        if previous_was_committed:
            if self.pending is None:
                raise SearchStateError("nothing was suggested, so nothing can be committed")
            self.committed.append(self.pending)
            self.cursors.append(-1)
        self.pending = None

        used = self.used_pieces
        entries = self.catalog.entries
        limit = self._end if self.depth == self.floor else len(entries)
        pos = self.cursors[-1] + 1
        while pos < limit and entries[pos].piece in used:
            pos += 1
        if pos >= limit:
            self.cursors[-1] = max(self.cursors[-1], limit - 1)
            return None
        self.cursors[-1] = pos
        self.pending = entries[pos]
        return self.pending

    def pop(self) -> CatalogEntry:
        """Drop the exhausted deepest cursor and un-commit the entry above it."""
        if self.at_floor:
            raise SearchStateError(f"cannot pop below depth {self.floor}")
        self.cursors.pop()
        self.pending = None
        return self.committed.pop()


__all__ = ["PlacementIterator"]

from __future__ import annotations


class TilerError(Exception):
    """Base class for tiler errors."""
    pass


class StateParseError(TilerError, ValueError):
    """Initial-state text could not be read into placements."""

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class InvalidPlacementError(TilerError, ValueError):
    """A seeded piece overlaps another, leaves the board or is unsupported."""

    def __init__(self, message: str, piece: str | None = None):
        self.message = message
        self.piece = piece
        super().__init__(message)


class RangeError(TilerError, ValueError):
    """A start/end catalog entry names an unknown piece or orientation."""
    pass


class PlacementError(TilerError, RuntimeError):
    """Board mutated with a placement that does not fit (driver bug)."""
    pass


class SearchStateError(TilerError, RuntimeError):
    """Search stack popped below its floor (driver bug)."""
    pass

"""
Exceptions raised by cadwalls.

Expected-empty geometry (no overlap, no pairs) is never an exception; these
are reserved for malformed input and for failures the caller must handle.
"""


class CadWallsError(Exception):
    """Base class for all cadwalls errors."""


class DegenerateLineError(CadWallsError, ValueError):
    """A line is too short to carry a direction."""


class DegenerateCenterlineError(CadWallsError, ValueError):
    """A parallel pair produced a zero-length centerline."""


class EmptyCatalogError(CadWallsError, ValueError):
    """The wall-type catalog has no entries."""


class WallCreationError(CadWallsError, RuntimeError):
    """Unexpected failure inside the wall creation transaction; work was rolled back."""

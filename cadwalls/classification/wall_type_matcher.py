"""
Wall type matching from measured thickness.

Maps the gap between two wall faces to the closest entry of the wall-type
catalog, asking a tie-breaker when two types are equally close.
"""

from typing import Callable, Iterable, List, Optional, Tuple

from loguru import logger

from cadwalls.core.errors import EmptyCatalogError
from cadwalls.core.models import WallTypeCatalogEntry, WallTypeMatch

# (pair_index, measured thickness mm, tied candidates) -> chosen entry, or None to cancel
TieBreaker = Callable[[int, float, List[WallTypeCatalogEntry]], Optional[WallTypeCatalogEntry]]


def find_candidate_wall_types(
    thickness: float,
    catalog: Iterable[WallTypeCatalogEntry],
    tolerance: float = 0.001,
) -> Tuple[float, List[WallTypeCatalogEntry]]:
    """
    Find catalog entries closest to a thickness.

    Args:
        thickness: Measured thickness (mm)
        catalog: Catalog entries
        tolerance: Differences within this are treated as equal

    Returns:
        (smallest absolute difference, entries achieving it sorted by name)
    """
    entries = list(catalog)
    if not entries:
        return float("inf"), []

    min_diff = min(abs(entry.thickness - thickness) for entry in entries)
    candidates = [
        entry for entry in entries
        if abs(abs(entry.thickness - thickness) - min_diff) < tolerance
    ]
    candidates.sort(key=lambda entry: entry.name)
    return min_diff, candidates


class WallTypeMatcher:
    """
    Resolves a measured thickness to one catalog entry.

    Policy:
    1. One closest entry: selected without interaction
    2. Exactly two entries equally close: the tie-breaker decides, and may cancel
    3. Anything else: the first closest entry by name
    """

    def __init__(
        self,
        catalog: Iterable[WallTypeCatalogEntry],
        tie_breaker: Optional[TieBreaker] = None,
        tolerance: float = 0.001,
    ):
        """
        Initialize the matcher.

        Args:
            catalog: Wall types available in the host model
            tie_breaker: Called for genuine ties; None picks the first by name
            tolerance: Equality tolerance on thickness differences (mm)

        Raises:
            EmptyCatalogError: If the catalog has no entries
        """
        self.catalog = list(catalog)
        if not self.catalog:
            raise EmptyCatalogError("No wall types available. Create at least one wall type.")

        self.tie_breaker = tie_breaker
        self.tolerance = tolerance

    def match(self, thickness: float, pair_index: int = 0) -> WallTypeMatch:
        """
        Pick the wall type for one pair.

        Args:
            thickness: Measured thickness (mm)
            pair_index: Pair position in the batch, passed to the tie-breaker

        Returns:
            WallTypeMatch (``cancelled`` set if the tie-breaker aborted)
        """
        min_diff, candidates = find_candidate_wall_types(thickness, self.catalog, self.tolerance)

        if len(candidates) == 1:
            return WallTypeMatch(entry=candidates[0], candidates=candidates, min_difference=min_diff)

        if len(candidates) == 2 and self._is_tie(thickness, candidates):
            if self.tie_breaker is None:
                logger.debug(f"Pair {pair_index}: tie without tie-breaker, using {candidates[0].name}")
                return WallTypeMatch(entry=candidates[0], candidates=candidates, min_difference=min_diff)

            choice = self.tie_breaker(pair_index, thickness, candidates)
            if choice is None:
                logger.warning(f"Pair {pair_index}: wall type choice cancelled")
                return WallTypeMatch.cancelled_match(candidates, min_diff)

            return WallTypeMatch(
                entry=choice,
                candidates=candidates,
                min_difference=min_diff,
                prompted=True,
            )

        logger.debug(
            f"Pair {pair_index}: {len(candidates)} closest wall types, using {candidates[0].name}"
        )
        return WallTypeMatch(entry=candidates[0], candidates=candidates, min_difference=min_diff)

    def _is_tie(self, thickness: float, candidates: List[WallTypeCatalogEntry]) -> bool:
        diff1 = abs(candidates[0].thickness - thickness)
        diff2 = abs(candidates[1].thickness - thickness)
        return abs(diff1 - diff2) < self.tolerance

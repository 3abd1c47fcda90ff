"""
Parallel line pair detection.

Every unordered pair of lines is tested for being the two faces of a wall:
parallel directions, a gap inside the wall-thickness window, and either a
shared corner or enough side-by-side overlap.
"""

from typing import Dict, List, Optional, Sequence

from loguru import logger

from cadwalls.core.config import DetectionSettings
from cadwalls.core.models import LineSegment, ParallelPairCandidate
from cadwalls.geometry.projection import calculate_overlap, perpendicular_distance


def evaluate_pair(
    line1: LineSegment,
    line2: LineSegment,
    settings: DetectionSettings,
) -> Optional[ParallelPairCandidate]:
    """
    Test one pair of lines.

    Returns:
        A candidate if the pair passes every check, None otherwise
    """
    dot_product = abs(line1.direction.dot(line2.direction))
    if dot_product < settings.parallel_threshold:
        return None

    distance = perpendicular_distance(line1, line2)
    if distance < settings.min_distance or distance > settings.max_distance:
        return None

    # Pair meets at a corner: no overlap needed
    is_coincident = line1.end.distance_to(line2.start) < settings.coincident_threshold

    overlap = calculate_overlap(
        line1,
        line2,
        coincident_threshold=settings.coincident_threshold,
        overlap_floor=settings.overlap_floor,
        nominal_overlap=settings.nominal_overlap,
    )

    if not is_coincident and overlap < settings.min_overlap_length:
        return None

    return ParallelPairCandidate(
        first=line1,
        second=line2,
        distance=distance,
        overlap_length=overlap,
        dot_product=dot_product,
        is_coincident=is_coincident,
    )


def find_parallel_pairs(
    lines: Sequence[LineSegment],
    settings: Optional[DetectionSettings] = None,
) -> List[ParallelPairCandidate]:
    """
    Scan all line pairs (i < j) for wall-face candidates.

    A line may belong to several pairs; every plausible reading is kept.

    Args:
        lines: Lines (after endpoint splitting) in batch order
        settings: Detection tolerances (defaults if None)

    Returns:
        Accepted pairs in scan order
    """
    if settings is None:
        settings = DetectionSettings()

    logger.info(f"Searching parallel pairs among {len(lines)} lines")

    pairs = []
    n = len(lines)
    for i in range(n):
        for j in range(i + 1, n):
            candidate = evaluate_pair(lines[i], lines[j], settings)
            if candidate is not None:
                logger.debug(f"  {candidate}")
                pairs.append(candidate)

    logger.success(f"Found {len(pairs)} parallel pairs")
    return pairs


def count_shared_lines(pairs: Sequence[ParallelPairCandidate]) -> int:
    """Number of lines that belong to more than one pair."""
    usage: Dict[int, int] = {}
    for pair in pairs:
        for index in pair.line_indices:
            usage[index] = usage.get(index, 0) + 1
    return sum(1 for count in usage.values() if count > 1)

"""
Centerline synthesis from a parallel pair.
"""

from loguru import logger

from cadwalls.core.errors import DegenerateCenterlineError
from cadwalls.core.models import Centerline, LineSegment, ParallelPairCandidate
from cadwalls.geometry.projection import project_point_clamped, project_point_unclamped


def compute_centerline(line1: LineSegment, line2: LineSegment) -> Centerline:
    """
    Build the wall axis midway between two parallel faces.

    The part of line1 that runs alongside line2 is found with unclamped
    projections, each end of that interval is matched (clamped) to line2,
    and matching points are averaged. If the interval collapses, the whole
    of line1 is used instead.

    Raises:
        DegenerateCenterlineError: If even the fallback has zero length
    """
    t2a = project_point_unclamped(line2.start, line1.start, line1.end).t
    t2b = project_point_unclamped(line2.end, line1.start, line1.end).t

    s = max(0.0, min(t2a, t2b))
    e = min(1.0, max(t2a, t2b))

    if e - s <= 1e-6:
        logger.debug(f"Overlap of lines {line1.index}/{line2.index} collapsed, using full line")
        s, e = 0.0, 1.0

    start1 = line1.point_at(s)
    end1 = line1.point_at(e)

    start2 = project_point_clamped(start1, line2.start, line2.end).point
    end2 = project_point_clamped(end1, line2.start, line2.end).point

    centerline = Centerline(start=start1.midpoint(start2), end=end1.midpoint(end2))
    if centerline.length() < 1e-9:
        raise DegenerateCenterlineError(
            f"Lines {line1.index} and {line2.index} give a zero-length centerline"
        )
    return centerline


def centerline_for_pair(pair: ParallelPairCandidate) -> Centerline:
    return compute_centerline(pair.first, pair.second)

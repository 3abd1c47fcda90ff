"""
Point-to-line projection and overlap between parallel lines.

The clamped projection serves interval and overlap math; the unclamped one
serves centerline reconstruction.
"""

from typing import NamedTuple

from cadwalls.core.models import LineSegment, Point3D


class Projection(NamedTuple):
    """Parametric coordinate on the line (0 = start, 1 = end) and the projected point."""
    t: float
    point: Point3D


def _project(point: Point3D, line_start: Point3D, line_end: Point3D, clamp: bool) -> Projection:
    line_vec = line_end - line_start
    line_len_sq = line_vec.dot(line_vec)

    if line_len_sq < 1e-9:
        return Projection(0.0, line_start)

    t = (point - line_start).dot(line_vec) / line_len_sq
    if clamp:
        t = max(0.0, min(1.0, t))

    return Projection(t, line_start + line_vec.scale(t))


def project_point_clamped(point: Point3D, line_start: Point3D, line_end: Point3D) -> Projection:
    """Project ``point`` onto segment start-end, with ``t`` forced into [0, 1]."""
    return _project(point, line_start, line_end, clamp=True)


def project_point_unclamped(point: Point3D, line_start: Point3D, line_end: Point3D) -> Projection:
    """Project ``point`` onto the infinite line through start and end."""
    return _project(point, line_start, line_end, clamp=False)


def perpendicular_distance(line1: LineSegment, line2: LineSegment) -> float:
    """
    Distance from line2's start to the infinite line carrying line1.

    Only meaningful for (nearly) parallel lines, where it is the gap between them.
    """
    return (line2.start - line1.start).cross(line1.direction).length()


def calculate_overlap(
    line1: LineSegment,
    line2: LineSegment,
    coincident_threshold: float = 0.02,
    overlap_floor: float = 0.01,
    nominal_overlap: float = 0.001,
) -> float:
    """
    Length along line1 where line2 runs alongside it.

    Both endpoints of line2 are projected (clamped) onto line1 and the
    resulting interval is intersected with [0, 1]. When the overlap is below
    ``overlap_floor`` but the lines touch end-to-start at a corner, a nominal
    overlap is reported instead of zero.

    Returns:
        Overlap length (never negative)
    """
    t2a = project_point_clamped(line2.start, line1.start, line1.end).t
    t2b = project_point_clamped(line2.end, line1.start, line1.end).t

    s = max(0.0, min(t2a, t2b))
    e = min(1.0, max(t2a, t2b))

    overlap = (e - s) * line1.length

    if overlap < overlap_floor:
        end_to_start = line1.end.distance_to(line2.start)
        end_to_start2 = line2.end.distance_to(line1.start)
        if end_to_start < coincident_threshold or end_to_start2 < coincident_threshold:
            return nominal_overlap

    return max(0.0, overlap)

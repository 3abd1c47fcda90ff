"""
Coincident endpoint detection and splitting.

Lines drawn corner-to-corner share endpoints. Those shared points are found
by quantizing coordinates, then nudged apart along each line so overlap and
centerline math never sees a zero-length interval at a corner.
"""

import math
from typing import Dict, List, Sequence, Tuple

from loguru import logger

from cadwalls.core.models import (
    CoincidenceCluster,
    CoincidenceMember,
    EndpointRole,
    LineSegment,
    Point3D,
)

PointKey = Tuple[float, float, float]


def key_precision(tolerance: float) -> int:
    """Number of decimals used to quantize points for a given tolerance."""
    if tolerance <= 0:
        return 6
    return max(0, math.floor(-math.log10(tolerance)))


def point_key(point: Point3D, tolerance: float) -> PointKey:
    """
    Quantize a point so that points within ``tolerance`` usually share a key.

    Each axis is rounded independently, so two points straddling a rounding
    boundary can still land on different keys.
    """
    precision = key_precision(tolerance)
    return (
        round(point.x, precision),
        round(point.y, precision),
        round(point.z, precision),
    )


def find_coincident_points(lines: Sequence[LineSegment], tolerance: float = 0.01) -> List[CoincidenceCluster]:
    """
    Group line endpoints that fall on the same quantized point.

    Args:
        lines: Lines in batch order
        tolerance: Point tolerance (same unit as the coordinates)

    Returns:
        Clusters with two or more members, in first-seen order
    """
    point_map: Dict[PointKey, List[CoincidenceMember]] = {}

    for line in lines:
        for role, point in ((EndpointRole.START, line.start), (EndpointRole.END, line.end)):
            key = point_key(point, tolerance)
            point_map.setdefault(key, []).append(
                CoincidenceMember(line_index=line.index, role=role, point=point)
            )

    clusters = [
        CoincidenceCluster(key=key, members=members)
        for key, members in point_map.items()
        if len(members) > 1
    ]

    logger.debug(f"Found {len(clusters)} coincident points among {len(lines)} lines")
    return clusters


def split_coincident_points(
    lines: Sequence[LineSegment],
    clusters: Sequence[CoincidenceCluster],
    epsilon: float = 0.001,
) -> Tuple[List[LineSegment], int]:
    """
    Move every clustered endpoint ``epsilon`` along its own line.

    END points move forward (+direction), START points move backward
    (-direction). The input lines are left untouched.

    Returns:
        (new lines in the same order, number of endpoints moved)
    """
    endpoints: Dict[int, List[Point3D]] = {line.index: [line.start, line.end] for line in lines}
    directions = {line.index: line.direction for line in lines}
    moved = 0

    for cluster in clusters:
        for member in cluster.members:
            if member.line_index not in endpoints:
                raise KeyError(f"Cluster references unknown line {member.line_index}")

            offset = directions[member.line_index].scale(epsilon)
            if member.role == EndpointRole.END:
                endpoints[member.line_index][1] = member.point + offset
            else:
                endpoints[member.line_index][0] = member.point - offset
            moved += 1

    split_lines = []
    for line in lines:
        start, end = endpoints[line.index]
        if start is line.start and end is line.end:
            split_lines.append(line)
        else:
            split_lines.append(line.with_endpoints(start, end))

    logger.debug(f"Split {moved} coincident endpoints")
    return split_lines, moved

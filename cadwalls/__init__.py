"""
cadwalls - Walls from CAD line layers

Finds the paired faces of walls among the lines of a CAD layer, derives
wall centerlines and matches their thickness to a wall-type catalog.
"""

__version__ = "0.1.0"

from cadwalls.core.config import DetectionSettings, load_config
from cadwalls.classification.wall_type_matcher import WallTypeMatcher
from cadwalls.detection.centerline import compute_centerline
from cadwalls.detection.coincidence import find_coincident_points, split_coincident_points
from cadwalls.detection.parallel_pairs import find_parallel_pairs
from cadwalls.pipeline import WallsFromCadPipeline, detect_wall_pairs

__all__ = [
    "DetectionSettings",
    "load_config",
    "WallTypeMatcher",
    "compute_centerline",
    "find_coincident_points",
    "split_coincident_points",
    "find_parallel_pairs",
    "WallsFromCadPipeline",
    "detect_wall_pairs",
]

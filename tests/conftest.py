"""Pytest configuration and shared fixtures for cadwalls tests."""

import pytest

from cadwalls.core.config import DetectionSettings
from cadwalls.core.models import LineSegment, Point3D, WallTypeCatalogEntry


def make_line(index, x1, y1, x2, y2, z=0.0, layer="A-WALL"):
    """Create a LineSegment from plan coordinates (meters)."""
    return LineSegment.from_points(
        index,
        Point3D(x=x1, y=y1, z=z),
        Point3D(x=x2, y=y2, z=z),
        layer=layer,
    )


def make_lines(*coords):
    """Create indexed lines from (x1, y1, x2, y2) tuples."""
    return [make_line(i, *c) for i, c in enumerate(coords)]


def make_entry(name, thickness):
    return WallTypeCatalogEntry(name=name, thickness=thickness, handle=f"type:{name}")


@pytest.fixture
def settings():
    return DetectionSettings()


@pytest.fixture
def catalog():
    return [
        make_entry("Generic - 100mm", 100),
        make_entry("Generic - 200mm", 200),
        make_entry("Exterior - 300mm", 300),
    ]


@pytest.fixture
def rectangle_lines():
    """
    Closed wall outline, 0.20 m thick, outer box 5 x 4.

    Index: 0-3 outer bottom/right/top/left, 4-7 inner bottom/right/top/left.
    """
    return make_lines(
        (0.0, 0.0, 5.0, 0.0),
        (5.0, 0.0, 5.0, 4.0),
        (5.0, 4.0, 0.0, 4.0),
        (0.0, 4.0, 0.0, 0.0),
        (0.2, 0.2, 4.8, 0.2),
        (4.8, 0.2, 4.8, 3.8),
        (4.8, 3.8, 0.2, 3.8),
        (0.2, 3.8, 0.2, 0.2),
    )

"""Tests for the IFC wall writer."""

import pytest

ifcopenshell = pytest.importorskip("ifcopenshell")
import ifcopenshell.util.element  # noqa: E402

from cadwalls.core.models import Centerline, Point3D, WallCreationRequest  # noqa: E402
from cadwalls.generation.ifc_writer import IFCWallWriter  # noqa: E402
from conftest import make_entry  # noqa: E402


@pytest.fixture
def writer():
    writer = IFCWallWriter(project_name="Test")
    writer.create_project()
    return writer


def make_request(pair_index=0, level=None, x2=5.0):
    return WallCreationRequest(
        pair_index=pair_index,
        centerline=Centerline(start=Point3D(x=0.0, y=0.1), end=Point3D(x=x2, y=0.1)),
        wall_type=make_entry("Generic - 200mm", 200),
        level=level,
        height=3000.0,
        thickness=199.7,
        source_layer="A-WALL",
    )


def test_get_level(writer):
    upper = writer.add_storey("Level 1", 3.0)

    assert writer.get_level("Level 1") == upper
    assert writer.get_level("Roof").Name == "Ground Floor"
    assert writer.get_level().Name == "Ground Floor"


def test_no_storey():
    writer = IFCWallWriter()
    writer.create_project(create_default_storey=False)
    assert writer.get_level() is None


def test_create_and_commit(writer):
    level = writer.get_level()
    writer.begin("Create Walls from CAD Layer: A-WALL")

    wall = writer.create_wall(make_request(level=level))
    writer.commit()

    assert wall.is_a("IfcWall")
    assert wall.ObjectType == "Generic - 200mm"
    assert writer.walls() == [wall]

    psets = ifcopenshell.util.element.get_psets(wall)
    props = psets["CADWalls_Provisional"]
    assert props["IsProvisional"] is True
    assert props["SourceLayer"] == "A-WALL"
    assert props["MeasuredThickness"] == pytest.approx(199.7)


def test_zero_length_centerline_skipped(writer):
    writer.begin("batch")
    assert writer.create_wall(make_request(x2=0.0)) is None
    writer.commit()
    assert writer.walls() == []


def test_rollback_removes_batch(writer):
    writer.begin("first")
    writer.create_wall(make_request(0))
    writer.commit()

    writer.begin("second")
    writer.create_wall(make_request(1))
    writer.create_wall(make_request(2))
    writer.rollback()

    assert len(writer.walls()) == 1


def test_create_without_transaction(writer):
    with pytest.raises(RuntimeError):
        writer.create_wall(make_request())


def test_write(writer, tmp_path):
    writer.begin("batch")
    writer.create_wall(make_request())

    with pytest.raises(RuntimeError):
        writer.write(str(tmp_path / "open.ifc"))

    writer.commit()
    output = tmp_path / "walls.ifc"
    writer.write(str(output))

    reopened = ifcopenshell.open(str(output))
    assert len(reopened.by_type("IfcWall")) == 1


def request_along(start, end):
    return WallCreationRequest(
        pair_index=0,
        centerline=Centerline(start=Point3D(x=start[0], y=start[1], z=start[2]),
                              end=Point3D(x=end[0], y=end[1], z=end[2])),
        wall_type=make_entry("Generic - 200mm", 200),
        thickness=200.0,
    )


def test_sloped_centerline_uses_unit_plan_direction(writer):
    writer.begin("batch")
    wall = writer.create_wall(request_along((0.0, 0.0, 0.0), (3.0, 4.0, 1.0)))
    writer.commit()

    ratios = wall.ObjectPlacement.RelativePlacement.RefDirection.DirectionRatios
    assert ratios == pytest.approx((0.6, 0.8, 0.0))
    axis = wall.Representation.Representations[0].Items[0]
    assert axis.Points[1].Coordinates[0] == pytest.approx(5.0)


def test_vertical_centerline_skipped(writer):
    writer.begin("batch")
    assert writer.create_wall(request_along((1.0, 1.0, 0.0), (1.0, 1.0, 3.0))) is None
    writer.commit()
    assert writer.walls() == []

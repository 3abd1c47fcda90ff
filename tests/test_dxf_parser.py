"""Tests for DXF line extraction."""

import ezdxf
import pytest

from cadwalls.parsers.dxf_parser import DXFParser, parse_dxf


@pytest.fixture
def wall_dxf(tmp_path):
    """Drawing in millimeters with straight and curved geometry on A-WALL."""
    doc = ezdxf.new("R2010")
    doc.header["$INSUNITS"] = 4
    doc.layers.add("A-WALL")
    doc.layers.add("A-FURN")
    msp = doc.modelspace()

    wall = {"layer": "A-WALL"}
    msp.add_line((0, 0), (5000, 0), dxfattribs=wall)
    msp.add_lwpolyline([(0, 200), (5000, 200), (5000, 4000)], dxfattribs=wall)
    # Too short to be a wall face
    msp.add_line((0, 1000), (100, 1000), dxfattribs=wall)
    # Arc segment only
    msp.add_lwpolyline([(0, 2000, 0.5), (1000, 2000, 0.0)], format="xyb", dxfattribs=wall)
    msp.add_line((0, 0), (800, 800), dxfattribs={"layer": "A-FURN"})

    path = tmp_path / "plan.dxf"
    doc.saveas(path)
    return path


def test_parse_metadata(wall_dxf):
    parser = parse_dxf(str(wall_dxf))

    assert parser.metadata.units == "mm"
    assert parser.metadata.scale_to_meters == 0.001
    assert "A-WALL" in parser.get_layer_names()
    assert parser.metadata.has_layer_structure


def test_extract_layer_lines_in_meters(wall_dxf):
    parser = parse_dxf(str(wall_dxf))

    lines = parser.extract_line_segments("A-WALL", min_length=0.2)

    assert [line.index for line in lines] == [0, 1, 2]
    assert all(line.layer == "A-WALL" for line in lines)
    assert lines[0].end.x == pytest.approx(5.0)
    assert lines[1].start.y == pytest.approx(0.2)
    assert lines[2].length == pytest.approx(3.8)


def test_extract_all_layers(wall_dxf):
    parser = parse_dxf(str(wall_dxf))

    lines = parser.extract_line_segments(min_length=0.2)

    assert {line.layer for line in lines} == {"A-WALL", "A-FURN"}
    assert len(lines) == 4


def test_closed_polyline_yields_closing_edge(tmp_path):
    doc = ezdxf.new("R2010")
    doc.header["$INSUNITS"] = 6
    msp = doc.modelspace()
    msp.add_lwpolyline([(0, 0), (4, 0), (4, 3)], close=True)
    path = tmp_path / "closed.dxf"
    doc.saveas(path)

    parser = parse_dxf(str(path))
    lines = parser.extract_line_segments()

    assert len(lines) == 3
    assert lines[2].length == pytest.approx(5.0)


def test_empty_drawing_is_rejected(tmp_path):
    path = tmp_path / "empty.dxf"
    ezdxf.new("R2010").saveas(path)

    with pytest.raises(ValueError):
        parse_dxf(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        DXFParser(str(tmp_path / "missing.dxf")).parse()


def test_geometry_layers_sorted_and_non_empty(wall_dxf):
    parser = parse_dxf(str(wall_dxf))
    assert parser.get_geometry_layers() == ["A-FURN", "A-WALL"]


@pytest.fixture
def block_dxf(tmp_path):
    """Wall faces drawn inside block references, one of them nested."""
    doc = ezdxf.new("R2010")
    doc.header["$INSUNITS"] = 4
    doc.layers.add("A-WALL")

    wall = doc.blocks.new("WALL")
    wall.add_line((0, 0), (10000, 0), dxfattribs={"layer": "A-WALL"})
    wall.add_line((0, 200), (10000, 200), dxfattribs={"layer": "A-WALL"})

    room = doc.blocks.new("ROOM")
    room.add_blockref("WALL", (0, 0))
    room.add_line((0, 1000), (2000, 1000), dxfattribs={"layer": "0"})

    msp = doc.modelspace()
    msp.add_line((0, 0), (1000, 0), dxfattribs={"layer": "A-WALL"})
    msp.add_blockref("WALL", (5000, 5000))
    msp.add_blockref("ROOM", (0, 20000), dxfattribs={"layer": "A-WALL"})

    path = tmp_path / "blocks.dxf"
    doc.saveas(path)
    return path


def test_block_reference_lines_are_extracted(block_dxf):
    parser = parse_dxf(str(block_dxf))

    lines = parser.extract_line_segments("A-WALL", min_length=0.2)

    assert len(lines) == 6
    assert [line.index for line in lines] == list(range(6))

    inserted = lines[1:3]
    assert inserted[0].start.as_tuple() == pytest.approx((5.0, 5.0, 0.0))
    assert inserted[0].end.as_tuple() == pytest.approx((15.0, 5.0, 0.0))
    assert inserted[1].start.y == pytest.approx(5.2)


def test_nested_block_content_takes_reference_layer(block_dxf):
    parser = parse_dxf(str(block_dxf))

    nested = parser.extract_line_segments("A-WALL", min_length=0.2)[3:]

    assert sorted(round(line.start.y, 3) for line in nested) == [20.0, 20.2, 21.0]
    assert parser.get_geometry_layers() == ["A-WALL"]

"""Tests for wall-type catalog loading."""

import json

import pytest

from cadwalls.core.errors import EmptyCatalogError
from cadwalls.parsers.catalog_loader import (
    DEFAULT_THICKNESS_MM,
    catalog_from_data,
    load_wall_type_catalog,
)


def test_wall_types_list():
    entries = catalog_from_data({"wall_types": [
        {"name": "Generic - 200mm", "thickness_mm": 200},
        {"name": "Brick", "thickness_mm": 220.04},
    ]})

    assert [e.name for e in entries] == ["Generic - 200mm", "Brick"]
    assert entries[1].thickness == 220.0
    assert entries[0].handle == "Generic - 200mm"


def test_name_to_thickness_mapping():
    entries = catalog_from_data({"A": 100, "B": 250.56})
    assert [(e.name, e.thickness) for e in entries] == [("A", 100.0), ("B", 250.6)]


@pytest.mark.parametrize("thickness", [None, 0, -50, "thick"])
def test_missing_thickness_uses_default(thickness):
    entries = catalog_from_data([{"name": "Odd", "thickness_mm": thickness}])
    assert entries[0].thickness == DEFAULT_THICKNESS_MM


def test_unnamed_entry():
    entries = catalog_from_data([{"thickness_mm": 100}])
    assert entries[0].name == "Unknown_0"


@pytest.mark.parametrize("data", [{"wall_types": []}, [], {}])
def test_empty_catalog(data):
    with pytest.raises(EmptyCatalogError):
        catalog_from_data(data)


def test_load_from_file(tmp_path):
    path = tmp_path / "types.json"
    path.write_text(json.dumps({"wall_types": [{"name": "W", "thickness_mm": 150}]}))

    entries = load_wall_type_catalog(str(path))

    assert len(entries) == 1
    assert entries[0].thickness == 150.0


def test_bundled_catalog():
    from pathlib import Path

    path = Path(__file__).parent.parent / "config" / "wall_types.json"
    entries = load_wall_type_catalog(str(path))
    assert {e.thickness for e in entries} >= {100.0, 200.0, 300.0}


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_wall_type_catalog(str(tmp_path / "nope.json"))

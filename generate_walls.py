#!/usr/bin/env python
"""
Generate IFC walls from the parallel lines of one DXF layer.

Usage:
    python generate_walls.py input.dxf [layer] [wall_types.json] [output.ifc]

Without a layer, the drawing's layers are listed and one is asked for.
Without a catalog, config/wall_types.json is used.

Example:
    python generate_walls.py plans/ground_floor.dxf A-WALL config/wall_types.json walls.ifc
"""

import os
import sys
from pathlib import Path

from loguru import logger

from cadwalls.core.config import get_default_config
from cadwalls.core.errors import WallCreationError
from cadwalls.core.models import BatchReport, BatchStatus
from cadwalls.generation.ifc_writer import IFCWallWriter
from cadwalls.interaction import ConsoleTieBreaker, select_layer
from cadwalls.parsers.catalog_loader import load_wall_type_catalog
from cadwalls.parsers.dxf_parser import parse_dxf
from cadwalls.pipeline import WallsFromCadPipeline

DEFAULT_CATALOG = Path(__file__).parent / "config" / "wall_types.json"


def main():
    if len(sys.argv) < 2:
        print("Usage: python generate_walls.py input.dxf [layer] [wall_types.json] [output.ifc]")
        print()
        print("Examples:")
        print("  python generate_walls.py plans/ground_floor.dxf")
        print("  python generate_walls.py plans/ground_floor.dxf A-WALL config/wall_types.json walls.ifc")
        sys.exit(1)

    logger.remove()
    logger.add(sys.stderr, level=os.environ.get("CADWALLS_LOG_LEVEL", "WARNING"))

    dxf_file = sys.argv[1]
    layer = sys.argv[2] if len(sys.argv) >= 3 else None
    catalog_file = sys.argv[3] if len(sys.argv) >= 4 else str(DEFAULT_CATALOG)
    output_file = sys.argv[4] if len(sys.argv) >= 5 else str(Path(dxf_file).with_suffix('.ifc'))

    if not Path(dxf_file).exists():
        print(f"Error: Input file not found: {dxf_file}")
        sys.exit(1)

    print("=" * 60)
    print("cadwalls - Walls from CAD layer")
    print("=" * 60)
    print(f"Input:   {dxf_file}")
    print(f"Catalog: {catalog_file}")
    print(f"Output:  {output_file}")
    print()

    try:
        config = get_default_config()
        settings = config.settings()

        print("[1/5] Parsing DXF file...")
        parser = parse_dxf(dxf_file)
        print(f"      [OK] Parsed {len(parser.get_layer_names())} layers")
        print(f"      [OK] Units: {parser.metadata.units}")
        print()

        print("[2/5] Selecting layer...")
        if layer is None:
            layer = select_layer(parser.get_geometry_layers())
        if layer is None:
            print(BatchReport.cancelled("No layer selected").summary())
            sys.exit(0)
        if layer not in parser.get_layer_names():
            print(f"Error: Layer not found: {layer}")
            sys.exit(1)
        lines = parser.extract_line_segments(layer, min_length=settings.min_line_length)
        print(f"      [OK] Layer: {layer}")
        print(f"      [OK] Lines: {len(lines)}")
        print()

        print("[3/5] Loading wall types...")
        catalog = load_wall_type_catalog(catalog_file)
        print(f"      [OK] Wall types: {len(catalog)}")
        print()

        print("[4/5] Creating walls...")
        project_name = Path(dxf_file).stem.replace('-', ' ').title()
        writer = IFCWallWriter(project_name=project_name)
        writer.create_project()
        level = writer.get_level(config.get_default("storey_name"))

        pipeline = WallsFromCadPipeline(
            catalog,
            writer,
            tie_breaker=ConsoleTieBreaker(),
            settings=settings,
            level=level,
            height_mm=config.get_default("wall_height_mm", 3000.0),
        )
        report = pipeline.run(lines, layer=layer)
        print(report.summary())
        print()

        if report.status == BatchStatus.ABORTED:
            sys.exit(1)

        print("[5/5] Writing IFC file...")
        writer.write(output_file)
        print(f"      [OK] Wrote IFC file")
        print()

        print("=" * 60)
        print("SUCCESS!")
        print("=" * 60)
        print(f"Generated: {output_file}")
        if report.shared_line_count:
            print(f"Note: {report.shared_line_count} lines were used by several walls - "
                  f"review overlapping walls.")

    except WallCreationError as e:
        print()
        print("=" * 60)
        print("ERROR!")
        print("=" * 60)
        print(f"Wall creation rolled back: {e}")
        sys.exit(1)
    except (OSError, ValueError) as e:
        print()
        print("=" * 60)
        print("ERROR!")
        print("=" * 60)
        print(f"Failed to process DXF file: {e}")
        print()
        print("Common issues:")
        print("  - No parallel pairs -> Check the layer holds both faces of each wall")
        print("  - Wrong units -> Check $INSUNITS in the drawing header")
        print("  - File not found -> Check file path is correct")
        sys.exit(1)


if __name__ == "__main__":
    main()

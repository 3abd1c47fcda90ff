"""
DXF file parser using ezdxf library.

Extracts the straight lines of one layer, converted to meters, with
fail-fast validation of the drawing.
"""

from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from loguru import logger

try:
    import ezdxf
    from ezdxf.document import Drawing
except ImportError:
    raise ImportError(
        "ezdxf is required for DXF parsing. Install with: pip install ezdxf"
    )

from cadwalls.core.errors import DegenerateLineError
from cadwalls.core.models import (
    DrawingMetadata,
    LineSegment,
    Point3D,
    ValidationResult,
)

MAX_BLOCK_DEPTH = 16

# $INSUNITS code -> (name, meters per drawing unit)
UNITS_MAP = {
    1: ("inches", 0.0254),
    2: ("feet", 0.3048),
    4: ("mm", 0.001),
    5: ("cm", 0.01),
    6: ("m", 1.0),
    14: ("dm", 0.1),
}


class DXFParser:
    """Parser for DXF files with fail-fast validation."""

    def __init__(self, file_path: str):
        """
        Initialize DXF parser.

        Args:
            file_path: Path to DXF file
        """
        self.file_path = Path(file_path)
        self.doc: Optional[Drawing] = None
        self.metadata: Optional[DrawingMetadata] = None

    def parse(self) -> ValidationResult:
        """
        Parse DXF file with fail-fast validation.

        Returns:
            ValidationResult indicating if file is suitable for processing

        Raises:
            FileNotFoundError: If DXF file doesn't exist
            ezdxf.DXFError: If file is not valid DXF
        """
        logger.info(f"Parsing DXF file: {self.file_path}")

        if not self.file_path.exists():
            raise FileNotFoundError(f"DXF file not found: {self.file_path}")

        try:
            self.doc = ezdxf.readfile(str(self.file_path))
        except ezdxf.DXFError as e:
            logger.error(f"Failed to parse DXF file: {e}")
            raise

        self.metadata = self._extract_metadata()
        validation = self._validate()

        if validation.should_abort():
            logger.error(
                f"DXF validation failed with {len(validation.critical_errors)} "
                f"critical errors"
            )
            for error in validation.critical_errors:
                logger.error(f"  - {error}")
        else:
            logger.success(
                f"DXF validation passed (with {len(validation.warnings)} warnings)"
            )

        return validation

    def _extract_metadata(self) -> DrawingMetadata:
        """Extract metadata from DXF document."""
        assert self.doc is not None

        layers = [layer.dxf.name for layer in self.doc.layers]
        units, scale = self._get_units()

        metadata = DrawingMetadata(
            file_path=str(self.file_path),
            file_format="DXF",
            units=units,
            scale_to_meters=scale,
            layers=layers,
            has_layer_structure=len(layers) > 1,
        )

        logger.debug(f"Extracted metadata: {len(layers)} layers, units={units}")
        return metadata

    def _get_units(self) -> Tuple[str, float]:
        """Get drawing units and their size in meters from the DXF header."""
        assert self.doc is not None

        # Unitless drawings are assumed to be in mm
        insunits = self.doc.header.get("$INSUNITS", 4)
        return UNITS_MAP.get(insunits, UNITS_MAP[4])

    def _validate(self) -> ValidationResult:
        """
        Run fail-fast validation checks.

        Critical checks (will abort):
        - Drawing must contain entities

        Warnings:
        - Minimal layer structure
        - No straight lines at all
        """
        assert self.doc is not None
        assert self.metadata is not None

        critical_errors = []
        warnings = []

        msp = self.doc.modelspace()
        if len(msp) == 0:
            critical_errors.append("Drawing contains no entities")

        if not self.metadata.has_layer_structure:
            warnings.append(
                "Drawing has minimal layer structure - wall lines may be mixed with other geometry"
            )

        line_count = len(msp.query("LINE LWPOLYLINE POLYLINE"))
        if line_count == 0 and not critical_errors:
            warnings.append("Drawing has no LINE or polyline entities")

        return ValidationResult(
            is_valid=len(critical_errors) == 0,
            critical_errors=critical_errors,
            warnings=warnings,
            metadata=self.metadata,
        )

    def get_layer_names(self) -> List[str]:
        """Get all layer names in the drawing."""
        assert self.metadata is not None
        return self.metadata.layers

    def _raw_edges(self, layer: Optional[str]) -> Iterator[Tuple[Point3D, Point3D, str]]:
        """Yield straight edges of LINE and polyline entities, block references expanded, in drawing units."""
        assert self.doc is not None

        msp = self.doc.modelspace()
        for entity in msp.query("LINE LWPOLYLINE POLYLINE INSERT"):
            yield from self._entity_edges(entity, layer)

    def _entity_edges(
        self,
        entity,
        layer: Optional[str],
        parent_layer: Optional[str] = None,
        depth: int = 0,
    ) -> Iterator[Tuple[Point3D, Point3D, str]]:
        kind = entity.dxftype()
        entity_layer = entity.dxf.layer
        # Block content on layer 0 takes the layer of its block reference
        if parent_layer is not None and entity_layer == "0":
            entity_layer = parent_layer

        if kind == "INSERT":
            if depth >= MAX_BLOCK_DEPTH:
                logger.warning(f"Block nesting deeper than {MAX_BLOCK_DEPTH} skipped")
                return
            # virtual_entities() applies the insert transform (nested inserts stay INSERTs)
            for sub in entity.virtual_entities():
                yield from self._entity_edges(sub, layer, entity_layer, depth + 1)
            return

        if layer is not None and entity_layer != layer:
            return

        if kind == "LINE":
            start, end = entity.dxf.start, entity.dxf.end
            yield (
                Point3D(x=start.x, y=start.y, z=start.z),
                Point3D(x=end.x, y=end.y, z=end.z),
                entity_layer,
            )
        elif kind == "LWPOLYLINE":
            elevation = entity.dxf.elevation
            vertices = [(x, y, b) for x, y, b in entity.get_points("xyb")]
            yield from self._polyline_edges(
                [Point3D(x=x, y=y, z=elevation) for x, y, _ in vertices],
                [b for _, _, b in vertices],
                entity.closed,
                entity_layer,
            )
        elif kind == "POLYLINE":
            points = [Point3D(x=p.x, y=p.y, z=p.z) for p in entity.points()]
            yield from self._polyline_edges(
                points, [0.0] * len(points), entity.is_closed, entity_layer
            )

    def get_geometry_layers(self) -> List[str]:
        """Layers that carry straight edges (block content included), sorted by name."""
        return sorted({layer_name for _, _, layer_name in self._raw_edges(None)})

    @staticmethod
    def _polyline_edges(
        points: List[Point3D],
        bulges: List[float],
        closed: bool,
        layer: str,
    ) -> Iterator[Tuple[Point3D, Point3D, str]]:
        count = len(points)
        edge_count = count if closed and count > 2 else count - 1
        for i in range(edge_count):
            # Arc segments are not wall faces
            if abs(bulges[i]) > 1e-9:
                continue
            yield points[i], points[(i + 1) % count], layer

    def extract_line_segments(
        self,
        layer: Optional[str] = None,
        min_length: float = 0.0,
    ) -> List[LineSegment]:
        """
        Extract straight lines from a layer, converted to meters.

        Args:
            layer: Layer name (None = all layers)
            min_length: Drop lines shorter than this (meters)

        Returns:
            LineSegment list indexed in drawing order
        """
        assert self.metadata is not None

        scale = self.metadata.scale_to_meters
        segments: List[LineSegment] = []
        skipped = 0

        for start, end, layer_name in self._raw_edges(layer):
            start_m = start.scale(scale)
            end_m = end.scale(scale)
            if start_m.distance_to(end_m) < min_length:
                skipped += 1
                continue
            try:
                segments.append(
                    LineSegment.from_points(len(segments), start_m, end_m, layer=layer_name)
                )
            except DegenerateLineError:
                skipped += 1

        logger.debug(
            f"Extracted {len(segments)} lines from layer {layer or 'all'} "
            f"({skipped} too short)"
        )
        return segments


def parse_dxf(file_path: str) -> DXFParser:
    """
    Parse DXF file with fail-fast validation.

    Args:
        file_path: Path to DXF file

    Returns:
        DXFParser instance with parsed document

    Raises:
        FileNotFoundError: If file doesn't exist
        ezdxf.DXFError: If file is not valid DXF
        ValueError: If validation fails (critical errors)
    """
    parser = DXFParser(file_path)
    validation = parser.parse()

    if validation.should_abort():
        error_msg = "\n".join(validation.critical_errors)
        raise ValueError(
            f"DXF validation failed with critical errors:\n{error_msg}\n\n"
            f"Unable to proceed. Please fix the drawing and try again."
        )

    return parser

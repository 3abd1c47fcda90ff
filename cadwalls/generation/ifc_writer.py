"""
IFC4 wall writer using IfcOpenShell.

Persists wall creation requests as IfcWall elements. All walls of a batch
live in one transaction: ``rollback()`` removes every wall created since
``begin()``.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from loguru import logger

try:
    import ifcopenshell
    import ifcopenshell.api
except ImportError:
    raise ImportError(
        "IfcOpenShell is required for IFC generation. "
        "Install with: pip install ifcopenshell"
    )

from cadwalls.core.models import Point3D, WallCreationRequest


class IFCWallWriter:
    """
    Writes provisional IFC4 walls.

    Coordinates are taken in meters; heights and thicknesses in millimeters.
    Every wall carries a "CADWalls_Provisional" property set.
    """

    def __init__(self, project_name: str = "CAD Walls Model"):
        """
        Initialize IFC writer.

        Args:
            project_name: Name of the IFC project
        """
        self.project_name = project_name
        self.ifc_file: Optional[ifcopenshell.file] = None
        self.project = None
        self.site = None
        self.building = None
        self.storey = None
        self.transaction_name: Optional[str] = None
        self._pending: List[Any] = []

    def create_project(self, create_default_storey: bool = True) -> ifcopenshell.file:
        """
        Create new IFC4 project structure.

        Args:
            create_default_storey: If True, creates a default "Ground Floor" storey.

        Returns:
            IfcOpenShell file object
        """
        logger.info(f"Creating IFC4 project: {self.project_name}")

        self.ifc_file = ifcopenshell.api.run("project.create_file", version="IFC4")

        self.project = ifcopenshell.api.run(
            "root.create_entity",
            self.ifc_file,
            ifc_class="IfcProject",
            name=self.project_name,
        )

        ifcopenshell.api.run(
            "unit.assign_unit",
            self.ifc_file,
            length={"is_metric": True, "raw": "METERS"},
        )

        ifcopenshell.api.run(
            "context.add_context",
            self.ifc_file,
            context_type="Model",
        )

        self.site = ifcopenshell.api.run(
            "root.create_entity",
            self.ifc_file,
            ifc_class="IfcSite",
            name="Site",
        )

        self.building = ifcopenshell.api.run(
            "root.create_entity",
            self.ifc_file,
            ifc_class="IfcBuilding",
            name="Building",
        )

        ifcopenshell.api.run(
            "aggregate.assign_object",
            self.ifc_file,
            relating_object=self.project,
            products=[self.site],
        )

        ifcopenshell.api.run(
            "aggregate.assign_object",
            self.ifc_file,
            relating_object=self.site,
            products=[self.building],
        )

        if create_default_storey:
            self.add_storey("Ground Floor", 0.0)

        logger.success("Created IFC project structure")

        return self.ifc_file

    def add_storey(self, name: str, elevation_m: float):
        """
        Add a building storey at specified elevation.

        Args:
            name: Storey name (e.g., "Level 1")
            elevation_m: Elevation in meters

        Returns:
            The created IfcBuildingStorey
        """
        if not self.ifc_file or not self.building:
            raise RuntimeError("Project not created")

        storey = ifcopenshell.api.run(
            "root.create_entity",
            self.ifc_file,
            ifc_class="IfcBuildingStorey",
            name=name,
        )
        storey.Elevation = elevation_m

        ifcopenshell.api.run(
            "aggregate.assign_object",
            self.ifc_file,
            relating_object=self.building,
            products=[storey],
        )

        self.storey = storey
        return storey

    def get_level(self, name: Optional[str] = None):
        """
        Find the storey walls are placed on.

        Args:
            name: Preferred storey name; falls back to the lowest storey

        Returns:
            IfcBuildingStorey, or None if the project has no storeys
        """
        if not self.ifc_file:
            raise RuntimeError("Project not created. Call create_project() first.")

        storeys = self.ifc_file.by_type("IfcBuildingStorey")
        if not storeys:
            logger.error("No storey in project")
            return None

        if name is not None:
            for storey in storeys:
                if storey.Name == name:
                    return storey
            logger.warning(f"Storey '{name}' not found, using the lowest storey")

        lowest = min(storeys, key=lambda s: s.Elevation or 0.0)
        logger.debug(f"Using storey: {lowest.Name}")
        return lowest

    def begin(self, name: str) -> None:
        """Start a wall creation transaction."""
        if not self.ifc_file:
            raise RuntimeError("Project not created. Call create_project() first.")
        if self.transaction_name is not None:
            raise RuntimeError(f"Transaction already open: {self.transaction_name}")

        self.transaction_name = name
        self._pending = []
        logger.debug(f"Transaction started: {name}")

    def create_wall(self, request: WallCreationRequest):
        """
        Create one IfcWall from a request.

        Returns:
            The IfcWall, or None if the request has no usable geometry
        """
        if self.transaction_name is None:
            raise RuntimeError("No open transaction. Call begin() first.")

        start, end = request.centerline.start, request.centerline.end
        plan = Point3D(x=end.x - start.x, y=end.y - start.y)
        length_m = plan.length()
        if length_m < 1e-9:
            logger.warning(f"Pair {request.pair_index}: centerline has no length in plan, wall skipped")
            return None
        direction = plan.scale(1.0 / length_m)

        storey = request.level if request.level is not None else self.storey
        if storey is None:
            logger.warning(f"Pair {request.pair_index}: no storey to place the wall on")
            return None

        ifc_wall = ifcopenshell.api.run(
            "root.create_entity",
            self.ifc_file,
            ifc_class="IfcWall",
            name=f"{request.wall_type.name} #{request.pair_index + 1}",
        )
        ifc_wall.ObjectType = request.wall_type.name

        self._set_placement(ifc_wall, request, direction)
        self._add_wall_geometry(ifc_wall, request, length_m)

        ifcopenshell.api.run(
            "spatial.assign_container",
            self.ifc_file,
            relating_structure=storey,
            products=[ifc_wall],
        )

        self._add_provisional_pset(ifc_wall, request)

        self._pending.append(ifc_wall)
        return ifc_wall

    def commit(self) -> None:
        """Keep every wall created in the open transaction."""
        logger.success(f"Committed {len(self._pending)} walls ({self.transaction_name})")
        self._pending = []
        self.transaction_name = None

    def rollback(self) -> None:
        """Remove every wall created in the open transaction."""
        for ifc_wall in self._pending:
            ifcopenshell.api.run("root.remove_product", self.ifc_file, product=ifc_wall)

        logger.warning(f"Rolled back {len(self._pending)} walls ({self.transaction_name})")
        self._pending = []
        self.transaction_name = None

    def walls(self) -> list:
        """All IfcWall elements currently in the model."""
        if not self.ifc_file:
            return []
        return list(self.ifc_file.by_type("IfcWall"))

    def _set_placement(self, ifc_wall, request: WallCreationRequest, direction: Point3D) -> None:
        """Place the wall's local X axis along the plan direction, origin at the centerline start."""
        start = request.centerline.start
        floor_elevation_m = getattr(request.level, "Elevation", None) or 0.0

        axis_placement = self.ifc_file.createIfcAxis2Placement3D(
            self.ifc_file.createIfcCartesianPoint((start.x, start.y, start.z + floor_elevation_m)),
            self.ifc_file.createIfcDirection((0.0, 0.0, 1.0)),
            self.ifc_file.createIfcDirection((direction.x, direction.y, 0.0)),
        )
        ifc_wall.ObjectPlacement = self.ifc_file.createIfcLocalPlacement(None, axis_placement)

    def _add_wall_geometry(self, ifc_wall, request: WallCreationRequest, length_m: float) -> None:
        """
        Add axis and body representations.

        Body is a rectangle centered on the centerline (catalog thickness),
        extruded up by the wall height.
        """
        thickness_m = request.wall_type.thickness / 1000.0
        height_m = request.height / 1000.0

        context = self.ifc_file.by_type("IfcGeometricRepresentationContext")[0]

        axis_curve = self.ifc_file.createIfcPolyline([
            self.ifc_file.createIfcCartesianPoint((0.0, 0.0)),
            self.ifc_file.createIfcCartesianPoint((length_m, 0.0)),
        ])
        axis_representation = self.ifc_file.createIfcShapeRepresentation(
            context, "Axis", "Curve2D", [axis_curve]
        )

        profile = self.ifc_file.createIfcRectangleProfileDef(
            "AREA",
            None,
            self.ifc_file.createIfcAxis2Placement2D(
                self.ifc_file.createIfcCartesianPoint((length_m / 2.0, 0.0)), None
            ),
            length_m,
            thickness_m,
        )

        placement = self.ifc_file.createIfcAxis2Placement3D(
            self.ifc_file.createIfcCartesianPoint((0.0, 0.0, 0.0)),
            self.ifc_file.createIfcDirection((0.0, 0.0, 1.0)),
            self.ifc_file.createIfcDirection((1.0, 0.0, 0.0)),
        )

        extruded_solid = self.ifc_file.createIfcExtrudedAreaSolid(
            profile,
            placement,
            self.ifc_file.createIfcDirection((0.0, 0.0, 1.0)),
            height_m,
        )

        body_representation = self.ifc_file.createIfcShapeRepresentation(
            context, "Body", "SweptSolid", [extruded_solid]
        )

        ifc_wall.Representation = self.ifc_file.createIfcProductDefinitionShape(
            None, None, [axis_representation, body_representation]
        )

    def _add_provisional_pset(self, ifc_element, request: WallCreationRequest) -> None:
        """Record where the wall came from and how its type was chosen."""
        pset = ifcopenshell.api.run(
            "pset.add_pset",
            self.ifc_file,
            product=ifc_element,
            name="CADWalls_Provisional",
        )

        ifcopenshell.api.run(
            "pset.edit_pset",
            self.ifc_file,
            pset=pset,
            properties={
                "IsProvisional": True,
                "GeneratedBy": "cadwalls",
                "GeneratedAt": datetime.now().isoformat(),
                "WallTypeName": request.wall_type.name,
                "WallTypeThickness": request.wall_type.thickness,
                "MeasuredThickness": round(request.thickness, 1),
                "WallLocationLine": "Centerline",
                "SourceLayer": request.source_layer or "Unknown",
                "PairIndex": request.pair_index,
            },
        )

    def write(self, output_path: str) -> None:
        """
        Write IFC file to disk.

        Args:
            output_path: Path to output .ifc file
        """
        if not self.ifc_file:
            raise RuntimeError("No IFC file to write. Create project first.")
        if self.transaction_name is not None:
            raise RuntimeError(f"Transaction still open: {self.transaction_name}")

        output_file = Path(output_path)
        self.ifc_file.write(str(output_file))

        file_size_kb = output_file.stat().st_size / 1024

        logger.success(
            f"Wrote IFC file: {output_file.absolute()} ({file_size_kb:.1f} KB)"
        )

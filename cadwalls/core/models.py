"""
Core data models for cadwalls.

All models use Pydantic for validation and serialization. Geometry values are
frozen so they can be shared between pipeline stages without copying.
"""

import math
from enum import Enum
from typing import Any, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cadwalls.core.errors import DegenerateLineError


class Point3D(BaseModel):
    """3D point (or vector) in model space."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float = 0.0

    def __add__(self, other: "Point3D") -> "Point3D":
        return Point3D(x=self.x + other.x, y=self.y + other.y, z=self.z + other.z)

    def __sub__(self, other: "Point3D") -> "Point3D":
        return Point3D(x=self.x - other.x, y=self.y - other.y, z=self.z - other.z)

    def scale(self, factor: float) -> "Point3D":
        """Multiply every coordinate by ``factor``."""
        return Point3D(x=self.x * factor, y=self.y * factor, z=self.z * factor)

    def dot(self, other: "Point3D") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Point3D") -> "Point3D":
        return Point3D(
            x=self.y * other.z - self.z * other.y,
            y=self.z * other.x - self.x * other.z,
            z=self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        """Euclidean norm when the point is used as a vector."""
        return math.sqrt(self.dot(self))

    def normalized(self) -> "Point3D":
        """Unit vector in the same direction."""
        norm = self.length()
        if norm < 1e-12:
            raise ValueError("Cannot normalize a zero-length vector")
        return self.scale(1.0 / norm)

    def distance_to(self, other: "Point3D") -> float:
        """Calculate Euclidean distance to another point."""
        return (self - other).length()

    def midpoint(self, other: "Point3D") -> "Point3D":
        return Point3D(
            x=(self.x + other.x) / 2.0,
            y=(self.y + other.y) / 2.0,
            z=(self.z + other.z) / 2.0,
        )

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


class LineSegment(BaseModel):
    """
    Straight line from a CAD layer with its cached direction and length.

    ``index`` is the line identity inside one batch; it survives endpoint
    splitting so pairs can be traced back to the extracted line.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    start: Point3D
    end: Point3D
    direction: Point3D
    length: float = Field(gt=0.0)
    layer: str = "0"

    @classmethod
    def from_points(
        cls,
        index: int,
        start: Point3D,
        end: Point3D,
        layer: str = "0",
        min_length: float = 1e-6,
    ) -> "LineSegment":
        """
        Build a segment from its endpoints.

        Raises:
            ValueError: If a coordinate is NaN or infinite
            DegenerateLineError: If the segment is shorter than ``min_length``
        """
        if not (start.is_finite() and end.is_finite()):
            raise ValueError(f"Line {index} has non-finite coordinates")

        delta = end - start
        length = delta.length()
        if length < min_length:
            raise DegenerateLineError(
                f"Line {index} is degenerate (length {length:.6f} < {min_length})"
            )

        return cls(
            index=index,
            start=start,
            end=end,
            direction=delta.scale(1.0 / length),
            length=length,
            layer=layer,
        )

    def with_endpoints(self, start: Point3D, end: Point3D) -> "LineSegment":
        """Rebuild this line (same identity and layer) from new endpoints."""
        return LineSegment.from_points(self.index, start, end, layer=self.layer)

    def point_at(self, t: float) -> Point3D:
        """Point at parameter ``t`` (0 = start, 1 = end)."""
        return self.start + (self.end - self.start).scale(t)


class EndpointRole(str, Enum):
    """Which end of a line touches a coincidence cluster."""
    START = "START"
    END = "END"


class CoincidenceMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_index: int
    role: EndpointRole
    point: Point3D


class CoincidenceCluster(BaseModel):
    """Endpoints landing on the same quantized point."""
    key: Tuple[float, float, float]
    members: List[CoincidenceMember] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)


class ParallelPairCandidate(BaseModel):
    """Two nearly-parallel lines that may be the faces of one wall."""
    model_config = ConfigDict(frozen=True)

    first: LineSegment
    second: LineSegment
    distance: float
    overlap_length: float
    dot_product: float
    is_coincident: bool = False

    @property
    def line_indices(self) -> FrozenSet[int]:
        return frozenset((self.first.index, self.second.index))

    def __str__(self) -> str:
        return (f"ParallelPair({self.first.index}-{self.second.index}, "
                f"distance={self.distance:.4f}, overlap={self.overlap_length:.4f})")


class WallTypeCatalogEntry(BaseModel):
    """Wall type from the host catalog. ``thickness`` is in millimeters."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    thickness: float = Field(gt=0.0)
    handle: Any = None

    def __str__(self) -> str:
        return f"{self.name} ({self.thickness:g} mm)"


class WallTypeMatch(BaseModel):
    """Catalog entry chosen for one measured thickness."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    entry: Optional[WallTypeCatalogEntry] = None
    cancelled: bool = False
    candidates: List[WallTypeCatalogEntry] = Field(default_factory=list)
    min_difference: float = 0.0
    prompted: bool = False

    @classmethod
    def cancelled_match(
        cls,
        candidates: Optional[List[WallTypeCatalogEntry]] = None,
        min_difference: float = 0.0,
    ) -> "WallTypeMatch":
        """Sentinel returned when the user aborts a tie-break."""
        return cls(
            entry=None,
            cancelled=True,
            candidates=candidates or [],
            min_difference=min_difference,
            prompted=True,
        )


class Centerline(BaseModel):
    """Two-point wall axis midway between a pair of faces."""
    model_config = ConfigDict(frozen=True)

    start: Point3D
    end: Point3D

    def length(self) -> float:
        return self.start.distance_to(self.end)

    def angle(self) -> float:
        """Plan angle in radians measured from the X axis."""
        return math.atan2(self.end.y - self.start.y, self.end.x - self.start.x)


class WallCreationRequest(BaseModel):
    """Everything the persistence layer needs to create one wall."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pair_index: int
    centerline: Centerline
    wall_type: WallTypeCatalogEntry
    level: Any = None
    height: float = 3000.0  # mm
    thickness: float  # measured, mm
    source_layer: Optional[str] = None

    @field_validator("height")
    @classmethod
    def validate_height(cls, v: float) -> float:
        if v <= 0.0:
            raise ValueError("Wall height must be positive")
        return v


class DrawingMetadata(BaseModel):
    """Metadata about the source drawing."""
    file_path: str
    file_format: str = "DXF"
    units: str = "mm"  # Drawing units
    scale_to_meters: float = 0.001
    layers: List[str] = Field(default_factory=list)
    has_layer_structure: bool = False


class ValidationResult(BaseModel):
    """Result of fail-fast validation."""
    is_valid: bool
    critical_errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    metadata: DrawingMetadata

    def should_abort(self) -> bool:
        """Check if critical errors require aborting."""
        return len(self.critical_errors) > 0


class PairStatus(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


class PairOutcome(BaseModel):
    """What happened to one parallel pair during a batch."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    pair_index: int
    status: PairStatus
    reason: str = ""
    wall_type: Optional[str] = None
    element: Any = None


class BatchStatus(str, Enum):
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"  # nothing to do, nothing written
    CANCELLED = "cancelled"  # user stopped at an interactive step
    FAILED = "failed"  # rolled back


class BatchReport(BaseModel):
    """Result of one walls-from-CAD batch."""
    status: BatchStatus = BatchStatus.SUCCEEDED
    message: str = ""
    layer: Optional[str] = None
    line_count: int = 0
    coincident_points: int = 0
    split_points: int = 0
    pair_count: int = 0
    shared_line_count: int = 0
    success_count: int = 0
    failed_count: int = 0
    outcomes: List[PairOutcome] = Field(default_factory=list)

    def record(self, outcome: PairOutcome) -> None:
        """Add a per-pair outcome and update the counters."""
        self.outcomes.append(outcome)
        if outcome.status == PairStatus.CREATED:
            self.success_count += 1
        else:
            self.failed_count += 1

    @classmethod
    def cancelled(cls, message: str, layer: Optional[str] = None) -> "BatchReport":
        """Report for a batch the user stopped before any wall was created."""
        return cls(status=BatchStatus.CANCELLED, message=message, layer=layer)

    def should_abort(self) -> bool:
        return self.status in (BatchStatus.ABORTED, BatchStatus.CANCELLED)

    def summary(self) -> str:
        lines = [
            "========== RESULT ==========",
            f"Layer: {self.layer or 'Unknown'}",
            f"Status: {self.status.value}",
        ]
        if self.message:
            lines.append(f"Message: {self.message}")
        lines.extend([
            f"Step 1: coincident points found: {self.coincident_points}",
            f"Step 2: endpoints split: {self.split_points}",
            f"Step 3: parallel pairs found: {self.pair_count}",
            f"Walls created: {self.success_count}",
            f"Walls failed: {self.failed_count}",
        ])
        return "\n".join(lines)

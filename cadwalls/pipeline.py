"""
Walls-from-CAD batch orchestration.

Sequences coincidence detection, endpoint splitting and pair finding over a
whole layer, then turns each pair into a wall creation request inside one
writer transaction.
"""

from typing import Any, Iterable, List, NamedTuple, Optional, Protocol, Sequence

from loguru import logger

from cadwalls.classification.wall_type_matcher import TieBreaker, WallTypeMatcher
from cadwalls.core.config import DetectionSettings
from cadwalls.core.errors import CadWallsError, EmptyCatalogError, WallCreationError
from cadwalls.core.models import (
    BatchReport,
    BatchStatus,
    LineSegment,
    PairOutcome,
    PairStatus,
    ParallelPairCandidate,
    WallCreationRequest,
    WallTypeCatalogEntry,
)
from cadwalls.detection.centerline import centerline_for_pair
from cadwalls.detection.coincidence import find_coincident_points, split_coincident_points
from cadwalls.detection.parallel_pairs import count_shared_lines, find_parallel_pairs


class WallWriter(Protocol):
    """Persistence collaborator. All walls of a batch share one transaction."""

    def begin(self, name: str) -> None: ...

    def create_wall(self, request: WallCreationRequest) -> Any:
        """Return the created element, or None if this one wall could not be created."""
        ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class PairDetection(NamedTuple):
    """Output of the geometry stages for one batch."""
    lines: List[LineSegment]
    pairs: List[ParallelPairCandidate]
    coincident_points: int
    split_points: int


def filter_lines(lines: Iterable[LineSegment], min_length: float) -> List[LineSegment]:
    """
    Drop lines shorter than ``min_length``.

    Raises:
        ValueError: If two lines share the same index
    """
    kept = []
    seen = set()
    for line in lines:
        if line.index in seen:
            raise ValueError(f"Duplicate line index {line.index}")
        seen.add(line.index)
        if line.length >= min_length:
            kept.append(line)

    dropped = len(seen) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} lines shorter than {min_length}")
    return kept


def detect_wall_pairs(
    lines: Sequence[LineSegment],
    settings: Optional[DetectionSettings] = None,
) -> PairDetection:
    """
    Run the geometry stages: coincidence, splitting, pair finding.

    Args:
        lines: Lines already filtered by length
        settings: Detection tolerances (defaults if None)
    """
    if settings is None:
        settings = DetectionSettings()

    clusters = find_coincident_points(lines, settings.point_tolerance)
    logger.info(f"Step 1: found {len(clusters)} coincident points")

    if clusters:
        split_lines, moved = split_coincident_points(lines, clusters, settings.epsilon)
    else:
        split_lines, moved = list(lines), 0
    logger.info(f"Step 2: split {moved} endpoints")

    pairs = find_parallel_pairs(split_lines, settings)
    logger.info(f"Step 3: found {len(pairs)} parallel pairs")

    return PairDetection(split_lines, pairs, len(clusters), moved)


class WallsFromCadPipeline:
    """
    Creates walls from the parallel line pairs of one CAD layer.

    Per-pair problems (cancelled tie-break, degenerate centerline, writer
    refusing one wall) are counted and skipped. Any other exception during
    the creation loop rolls back the whole batch.
    """

    def __init__(
        self,
        catalog: Iterable[WallTypeCatalogEntry],
        wall_writer: WallWriter,
        tie_breaker: Optional[TieBreaker] = None,
        settings: Optional[DetectionSettings] = None,
        level: Any = None,
        height_mm: float = 3000.0,
    ):
        """
        Initialize the pipeline.

        Args:
            catalog: Wall types to match thickness against
            wall_writer: Persistence collaborator
            tie_breaker: Asked when two wall types are equally close
            settings: Detection tolerances (defaults if None)
            level: Level handle passed through to every request
            height_mm: Wall height for the whole batch
        """
        self.catalog = list(catalog)
        self.wall_writer = wall_writer
        self.tie_breaker = tie_breaker
        self.settings = settings or DetectionSettings()
        self.level = level
        self.height_mm = height_mm

    def run(self, lines: Iterable[LineSegment], layer: Optional[str] = None) -> BatchReport:
        """
        Process one batch of lines.

        Returns:
            BatchReport; ABORTED when there is nothing to create

        Raises:
            WallCreationError: If the batch was rolled back
        """
        report = BatchReport(layer=layer)

        lines = filter_lines(lines, self.settings.min_line_length)
        report.line_count = len(lines)
        if not lines:
            return self._abort(report, f"No lines found in layer: {layer}")

        logger.info(f"Found {len(lines)} lines in layer: {layer}")

        detection = detect_wall_pairs(lines, self.settings)
        report.coincident_points = detection.coincident_points
        report.split_points = detection.split_points
        report.pair_count = len(detection.pairs)

        if not detection.pairs:
            return self._abort(report, f"No parallel line pairs found in layer: {layer}")

        report.shared_line_count = count_shared_lines(detection.pairs)
        if report.shared_line_count:
            logger.warning(
                f"{report.shared_line_count} lines belong to more than one pair; "
                f"overlapping walls may be created"
            )

        try:
            matcher = WallTypeMatcher(self.catalog, self.tie_breaker, self.settings.tie_tolerance)
        except EmptyCatalogError as e:
            return self._abort(report, str(e))

        self._create_walls(detection.pairs, matcher, report)

        logger.success(
            f"Created {report.success_count} walls, {report.failed_count} failed"
        )
        return report

    def _abort(self, report: BatchReport, message: str) -> BatchReport:
        logger.error(message)
        report.status = BatchStatus.ABORTED
        report.message = message
        return report

    def _create_walls(
        self,
        pairs: Sequence[ParallelPairCandidate],
        matcher: WallTypeMatcher,
        report: BatchReport,
    ) -> None:
        self.wall_writer.begin(f"Create Walls from CAD Layer: {report.layer}")

        try:
            for pair_index, pair in enumerate(pairs):
                report.record(self._process_pair(pair_index, pair, matcher))
            self.wall_writer.commit()
        except Exception as e:
            logger.error(f"Wall creation failed, rolling back: {e}")
            self.wall_writer.rollback()
            report.status = BatchStatus.FAILED
            report.message = str(e)
            raise WallCreationError(f"Wall creation failed: {e}") from e

    def _process_pair(
        self,
        pair_index: int,
        pair: ParallelPairCandidate,
        matcher: WallTypeMatcher,
    ) -> PairOutcome:
        thickness_mm = pair.distance * self.settings.length_to_mm

        match = matcher.match(thickness_mm, pair_index)
        if match.cancelled:
            return PairOutcome(pair_index=pair_index, status=PairStatus.SKIPPED,
                               reason="wall type choice cancelled")
        if match.entry is None:
            return PairOutcome(pair_index=pair_index, status=PairStatus.FAILED,
                               reason="no matching wall type")

        try:
            centerline = centerline_for_pair(pair)
            request = WallCreationRequest(
                pair_index=pair_index,
                centerline=centerline,
                wall_type=match.entry,
                level=self.level,
                height=self.height_mm,
                thickness=thickness_mm,
                source_layer=pair.first.layer,
            )
        except CadWallsError as e:
            logger.warning(f"Pair {pair_index}: {e}")
            return PairOutcome(pair_index=pair_index, status=PairStatus.FAILED,
                               reason=str(e), wall_type=match.entry.name)

        element = self.wall_writer.create_wall(request)
        if element is None:
            logger.warning(f"Pair {pair_index}: could not create wall of type {match.entry.name}")
            return PairOutcome(pair_index=pair_index, status=PairStatus.FAILED,
                               reason="wall creation failed", wall_type=match.entry.name)

        logger.debug(f"Pair {pair_index}: created wall of type {match.entry.name}")
        return PairOutcome(pair_index=pair_index, status=PairStatus.CREATED,
                           wall_type=match.entry.name, element=element)

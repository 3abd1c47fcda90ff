"""
Configuration management for cadwalls.

Loads detection tolerances and defaults from JSON files.
Following the project principle: Configuration Over Code.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator


class DetectionSettings(BaseModel):
    """
    Geometric tolerances for wall reconstruction.

    All lengths share one unit (meters by default). ``length_to_mm`` converts
    a measured distance to the millimeters used by the wall-type catalog.
    """
    model_config = ConfigDict(frozen=True)

    same_wall_threshold: float = 0.5
    parallel_threshold: float = Field(0.999, gt=0.0, le=1.0)  # |cos(angle)|
    min_overlap_length: float = 0.01
    max_distance: float = 0.45
    min_distance: float = 0.08
    min_line_length: float = 0.20
    coincident_threshold: float = 0.02
    epsilon: float = 0.001
    point_tolerance: float = 0.01
    overlap_floor: float = 0.01  # 1 cm
    nominal_overlap: float = 0.001  # 1 mm
    tie_tolerance: float = 0.001  # mm, catalog side
    length_to_mm: float = 1000.0

    @model_validator(mode="after")
    def check_consistency(self) -> "DetectionSettings":
        if self.min_distance >= self.max_distance:
            raise ValueError("min_distance must be smaller than max_distance")
        # Splitting moves each end by epsilon; keep that small next to the shortest line
        if self.epsilon * 2.0 >= self.min_line_length:
            raise ValueError("epsilon is too large for min_line_length")
        return self

    def scaled(self, factor: float) -> "DetectionSettings":
        """
        Express every length tolerance in another unit.

        ``factor`` is the number of new units per current unit (1000 for
        meters to millimeters). Ratios between tolerances are unchanged.
        """
        lengths = {
            name: getattr(self, name) * factor
            for name in (
                "same_wall_threshold",
                "min_overlap_length",
                "max_distance",
                "min_distance",
                "min_line_length",
                "coincident_threshold",
                "epsilon",
                "point_tolerance",
                "overlap_floor",
                "nominal_overlap",
            )
        }
        return self.model_copy(
            update={**lengths, "length_to_mm": self.length_to_mm / factor}
        )


class Config:
    """Configuration manager for tolerances and batch defaults."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to JSON config file. If None, uses the bundled default.
        """
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / "wall_detection.json"

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            self._config = json.load(f)

        logger.info(f"Loaded config: {self._config.get('name', 'Unknown')}")

    def get_tolerance(self, name: str, default: Any = None) -> Any:
        """
        Get a tolerance value.

        Args:
            name: Tolerance name (e.g. 'parallel_threshold')
            default: Default value if not found

        Returns:
            Tolerance value or default
        """
        return self._config.get("tolerances", {}).get(name, default)

    def get_default(self, name: str, default: Any = None) -> Any:
        """Get a batch default (wall height, storey name)."""
        return self._config.get("defaults", {}).get(name, default)

    def get_unit(self, name: str, default: Any = None) -> Any:
        return self._config.get("units", {}).get(name, default)

    def settings(self) -> DetectionSettings:
        """
        Build validated detection settings from the tolerances section.

        Unknown keys are ignored; missing keys fall back to the built-in defaults.
        """
        known = DetectionSettings.model_fields.keys()
        values = {k: v for k, v in self._config.get("tolerances", {}).items() if k in known}

        ignored = set(self._config.get("tolerances", {})) - set(values)
        if ignored:
            logger.warning(f"Ignoring unknown tolerances: {sorted(ignored)}")

        settings = DetectionSettings(**values)
        logger.debug(f"Detection settings: {settings.model_dump()}")
        return settings


# Global default config instance
_default_config: Optional[Config] = None


def get_default_config() -> Config:
    """Get the default global configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = Config()
    return _default_config


def load_config(config_path: str) -> Config:
    """
    Load configuration from a specific file.

    Args:
        config_path: Path to JSON config file

    Returns:
        Config instance
    """
    return Config(config_path)

"""
Wall-type catalog loading from JSON.

Accepted layouts:
    {"wall_types": [{"name": "...", "thickness_mm": 200}, ...]}
    {"Generic - 200mm": 200, ...}
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from loguru import logger

from cadwalls.core.errors import EmptyCatalogError
from cadwalls.core.models import WallTypeCatalogEntry

DEFAULT_THICKNESS_MM = 200.0


def _entry(name: str, thickness: Any) -> WallTypeCatalogEntry:
    try:
        value = float(thickness or 0.0)
    except (TypeError, ValueError):
        value = 0.0

    if value <= 0.0:
        logger.warning(f"Wall type '{name}' has no thickness, assuming {DEFAULT_THICKNESS_MM} mm")
        value = DEFAULT_THICKNESS_MM

    return WallTypeCatalogEntry(name=name, thickness=round(value, 1), handle=name)


def catalog_from_data(data: Union[Dict[str, Any], List[Dict[str, Any]]]) -> List[WallTypeCatalogEntry]:
    """
    Build catalog entries from parsed JSON.

    Raises:
        EmptyCatalogError: If no wall types are defined
    """
    if isinstance(data, dict) and "wall_types" in data:
        data = data["wall_types"]

    if isinstance(data, dict):
        entries = [_entry(name, thickness) for name, thickness in data.items()]
    else:
        entries = [
            _entry(item.get("name") or f"Unknown_{i}", item.get("thickness_mm"))
            for i, item in enumerate(data)
        ]

    if not entries:
        raise EmptyCatalogError("No wall types found in catalog. Define at least one wall type.")

    return entries


def load_wall_type_catalog(path: str) -> List[WallTypeCatalogEntry]:
    """
    Load the wall-type catalog from a JSON file.

    Args:
        path: Path to catalog JSON

    Returns:
        Catalog entries (thickness in mm, rounded to 0.1 mm)
    """
    catalog_path = Path(path)
    if not catalog_path.exists():
        raise FileNotFoundError(f"Wall type catalog not found: {catalog_path}")

    with open(catalog_path, 'r') as f:
        data = json.load(f)

    entries = catalog_from_data(data)
    logger.info(f"Loaded {len(entries)} wall types from {catalog_path.name}")
    return entries

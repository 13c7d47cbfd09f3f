"""Destination catalog loading and validation.

A catalog file is JSON: either an array of destinations or an object
with a "destinations" array. Loaded catalogs are frozen snapshots.
"""

import json
import logging
from collections import Counter
from functools import lru_cache
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from .exceptions import CatalogLoadError
from .schema import ELEMENT_KEYS, TRAIT_KEYS, Destination, DestinationCatalog

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "destinations.json"


def parse_catalog(data: Any) -> DestinationCatalog:
    """Build a catalog from decoded JSON.

    Raises:
        CatalogLoadError: On a wrong top-level shape or invalid entries.
    """
    if isinstance(data, list):
        data = {"destinations": data}
    if not isinstance(data, dict):
        raise CatalogLoadError("Catalog must be a JSON array or object")
    if not isinstance(data.get("destinations"), list):
        raise CatalogLoadError("Catalog object must contain a 'destinations' array")

    try:
        return DestinationCatalog.model_validate(data)
    except ValidationError as e:
        raise CatalogLoadError(f"Invalid catalog entries: {e.error_count()} error(s)") from e


def load_catalog(path: Union[str, Path]) -> DestinationCatalog:
    """Load and validate a catalog file.

    Args:
        path: Path to a catalog JSON file.

    Returns:
        The frozen catalog.

    Raises:
        CatalogLoadError: If the file is missing, not JSON, or invalid.
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise CatalogLoadError(f"Catalog not found: {path}") from e
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Catalog is not valid JSON: {e}") from e

    catalog = parse_catalog(data)
    logger.info("Loaded %d destinations from %s", catalog.total_destinations, path)
    return catalog


@lru_cache(maxsize=1)
def load_default_catalog() -> DestinationCatalog:
    """Load the sample catalog bundled with the package (cached)."""
    return load_catalog(DEFAULT_CATALOG_PATH)


def validate_catalog(path: Union[str, Path]) -> tuple[bool, list[str]]:
    """Check a catalog file without raising.

    Returns:
        Tuple of (is_valid, issues).
    """
    try:
        catalog = load_catalog(path)
    except CatalogLoadError as e:
        return False, [str(e)]

    issues = []
    duplicates = [i for i, n in Counter(d.id for d in catalog.destinations).items() if n > 1]
    for dest_id in duplicates:
        issues.append(f"Duplicate destination id: {dest_id}")

    for dest in catalog.destinations:
        issues.extend(_check_destination(dest))

    return not issues, issues


def _check_destination(dest: Destination) -> list[str]:
    """Range and key checks for one destination."""
    issues = []

    for label, profile, keys in (
        ("trait", dest.trait_profile, TRAIT_KEYS),
        ("element", dest.element_profile, ELEMENT_KEYS),
    ):
        for key, value in profile.items():
            if key not in keys:
                issues.append(f"{dest.id}: unknown {label} key '{key}'")
            elif not 0.0 <= value <= 1.0:
                issues.append(f"{dest.id}: {label} '{key}' out of range ({value})")

    if not 1 <= dest.budget_level <= 5:
        issues.append(f"{dest.id}: budget_level out of range ({dest.budget_level})")

    for field in ("best_months", "rainy_season_months", "heat_alert_months"):
        months = getattr(dest, field) or []
        bad = [m for m in months if not 1 <= m <= 12]
        if bad:
            issues.append(f"{dest.id}: {field} out of range {bad}")

    for field in ("access_ease", "safety_index", "language_ease", "nightlife", "group_ease", "cost_index"):
        value = getattr(dest, field)
        if value is not None and not 0.0 <= value <= 1.0:
            issues.append(f"{dest.id}: {field} out of range ({value})")

    return issues

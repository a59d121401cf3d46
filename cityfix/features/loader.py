"""Convert a WFS GeoJSON FeatureCollection into ``Issue`` objects.

Features with a missing geometry, missing / non-numeric coordinates or an id
already seen are skipped with a warning; the rest of the batch still loads.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Container, Optional

from cityfix.core.models import Issue, Location

logger = logging.getLogger("cityfix.features.loader")


def _coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _severity(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_feature(feature: dict[str, Any]) -> Optional[Issue]:
    """Build an Issue from one GeoJSON feature, or None if its point is unusable."""
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    lon, lat = _coordinate(coords[0]), _coordinate(coords[1])
    if lon is None or lat is None:
        return None

    props = feature.get("properties")
    if not isinstance(props, dict):
        props = {}
    issue_id = props.get("id")
    if issue_id is None:
        issue_id = feature.get("id")

    return Issue(
        id=_text(issue_id),
        category=_text(props.get("category")),
        status=_text(props.get("status")),
        severity=_severity(props.get("severity")),
        description=_text(props.get("descriptio")),
        timestamp=_text(props.get("timestamp")),
        location=Location(lat=lat, lon=lon),
    )


def parse_feature_collection(
    payload: dict[str, Any],
    skip_ids: Container[str] = (),
) -> list[Issue]:
    """Parse every usable feature of a FeatureCollection.

    Ids in ``skip_ids`` and repeats within the batch are dropped, so the
    result can always be registered in one go.
    """
    features = payload.get("features")
    if features is None:
        features = []
    elif not isinstance(features, list):
        logger.warning("Ignoring non-list features member (%s)", type(features).__name__)
        features = []

    issues: list[Issue] = []
    seen: set[str] = set()
    skipped = 0
    for feature in features:
        issue = parse_feature(feature) if isinstance(feature, dict) else None
        if issue is None:
            skipped += 1
            logger.warning("Skipping feature with malformed geometry: %s", feature)
            continue
        if issue.id in seen or issue.id in skip_ids:
            skipped += 1
            logger.warning("Skipping feature with duplicate id: %r", issue.id)
            continue
        seen.add(issue.id)
        issues.append(issue)

    logger.info("Parsed %d issues, skipped %d", len(issues), skipped)
    return issues

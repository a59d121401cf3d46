"""Severity classification for issue markers."""

from __future__ import annotations

from typing import Optional

from cityfix.core.models import SeverityTier

_TIER_COLORS: dict[SeverityTier, str] = {
    SeverityTier.MINOR: "#2e7d32",
    SeverityTier.MODERATE: "#f57c00",
    SeverityTier.SEVERE: "#c62828",
}


def classify_severity(severity: Optional[int]) -> SeverityTier:
    """Map a numeric severity to its display tier.

    ``>= 4`` is severe, ``2..3`` moderate, anything else minor. Open-ended
    above 5; ``None`` counts as 1.
    """
    if severity is None:
        severity = 1
    if severity >= 4:
        return SeverityTier.SEVERE
    if severity >= 2:
        return SeverityTier.MODERATE
    return SeverityTier.MINOR


def tier_color(tier: SeverityTier) -> str:
    return _TIER_COLORS[tier]

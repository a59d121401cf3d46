"""Unit tests for the severity classifier."""

import pytest

from cityfix.core.models import SeverityTier
from cityfix.core.severity import classify_severity, tier_color


class TestClassifySeverity:
    @pytest.mark.parametrize(
        "severity, tier",
        [
            (-3, SeverityTier.MINOR),
            (0, SeverityTier.MINOR),
            (1, SeverityTier.MINOR),
            (2, SeverityTier.MODERATE),
            (3, SeverityTier.MODERATE),
            (4, SeverityTier.SEVERE),
            (5, SeverityTier.SEVERE),
            (9, SeverityTier.SEVERE),
        ],
    )
    def test_tiers(self, severity, tier):
        assert classify_severity(severity) is tier

    def test_none_is_minor(self):
        assert classify_severity(None) is SeverityTier.MINOR


class TestTierColor:
    def test_every_tier_has_a_color(self):
        colors = {tier_color(t) for t in SeverityTier}
        assert len(colors) == 3

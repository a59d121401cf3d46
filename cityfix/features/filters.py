"""Category / status filter engine.

A feature is visible iff its category is in the enabled categories AND its
status is in the enabled statuses. Every toggle recomputes visibility over
the whole store; only handles whose attachment state has to change are
touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from cityfix.core.exceptions import FilterError
from cityfix.core.models import CATEGORIES, STATUSES, Issue
from cityfix.features.layer import MarkerHandle, Renderer
from cityfix.features.store import FeatureStore

logger = logging.getLogger("cityfix.features.filters")

CATEGORY = "category"
STATUS = "status"

_TAGS: dict[str, tuple[str, ...]] = {
    CATEGORY: CATEGORIES,
    STATUS: STATUSES,
}


@dataclass
class FilterState:
    """Enabled tags per dimension; everything is enabled initially."""

    enabled_categories: set[str] = field(default_factory=lambda: set(CATEGORIES))
    enabled_statuses: set[str] = field(default_factory=lambda: set(STATUSES))

    def tags(self, dimension: str) -> set[str]:
        if dimension == CATEGORY:
            return self.enabled_categories
        if dimension == STATUS:
            return self.enabled_statuses
        raise FilterError(f"Unknown filter dimension: {dimension!r}")

    def as_dict(self) -> dict[str, list[str]]:
        return {
            CATEGORY: [t for t in CATEGORIES if t in self.enabled_categories],
            STATUS: [t for t in STATUSES if t in self.enabled_statuses],
        }


class FilterEngine:
    """Keeps renderer attachment in sync with the filter state.

    Usage::

        engine = FilterEngine(store, layer)
        engine.toggle("category", "roadwork", False)   # hides roadwork
        engine.toggle("category", "roadwork", True)    # shows it again
    """

    def __init__(
        self,
        store: FeatureStore,
        renderer: Renderer,
        state: FilterState | None = None,
    ):
        self.store = store
        self.renderer = renderer
        self.state = state or FilterState()

    def is_visible(self, issue: Issue) -> bool:
        return (
            issue.category in self.state.enabled_categories
            and issue.status in self.state.enabled_statuses
        )

    def apply(self, issue: Issue, handle: MarkerHandle) -> bool:
        """Bring one handle to its target state. Returns True if it flipped."""
        visible = self.is_visible(issue)
        attached = self.renderer.is_attached(handle)
        if visible and not attached:
            self.renderer.attach(handle)
            return True
        if not visible and attached:
            self.renderer.detach(handle)
            return True
        return False

    def recompute(self) -> int:
        """Apply the current filter state to every feature; returns the flip count."""
        flips = sum(self.apply(issue, handle) for issue, handle in self.store.all())
        logger.debug("Recomputed visibility: %d flips over %d", flips, len(self.store))
        return flips

    def toggle(self, dimension: str, tag: str, enabled: bool) -> int:
        """Enable or disable one tag, then recompute visibility."""
        if dimension not in _TAGS:
            raise FilterError(f"Unknown filter dimension: {dimension!r}")
        if tag not in _TAGS[dimension]:
            raise FilterError(f"Unknown {dimension} tag: {tag!r}")

        tags = self.state.tags(dimension)
        if enabled:
            tags.add(tag)
        else:
            tags.discard(tag)
        logger.info("Filter %s=%s %s", dimension, tag, "on" if enabled else "off")
        return self.recompute()

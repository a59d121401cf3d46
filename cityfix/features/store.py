"""In-memory registry of loaded and created issues with their marker handles."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from shapely.geometry import MultiPoint

from cityfix.core.exceptions import DuplicateIdError
from cityfix.core.models import Issue
from cityfix.features.layer import MarkerHandle

logger = logging.getLogger("cityfix.features.store")


class FeatureStore:
    """Insertion-ordered map of issue id → (issue, handle).

    An issue and its handle enter the store together and stay for the
    lifetime of the store.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Issue, MarkerHandle]] = {}

    def add(self, issue: Issue, handle: MarkerHandle) -> None:
        """Register one issue. Raises ``DuplicateIdError`` on a known id."""
        if issue.id in self._entries:
            raise DuplicateIdError(f"Issue id already registered: {issue.id}")
        self._entries[issue.id] = (issue, handle)
        logger.debug("Registered issue %s", issue.id)

    def bulk_load(self, pairs: Iterable[tuple[Issue, MarkerHandle]]) -> int:
        """Register many issues at once; returns how many were added."""
        count = 0
        for issue, handle in pairs:
            self.add(issue, handle)
            count += 1
        logger.info("Bulk-loaded %d issues (store size %d)", count, len(self))
        return count

    def all(self) -> list[tuple[Issue, MarkerHandle]]:
        """Snapshot of every (issue, handle) pair in insertion order."""
        return list(self._entries.values())

    def get(self, issue_id: str) -> Optional[tuple[Issue, MarkerHandle]]:
        return self._entries.get(issue_id)

    def bounds(self, pad: float = 0.0) -> Optional[tuple[float, float, float, float]]:
        """Bounding box ``(min_lon, min_lat, max_lon, max_lat)`` of all issues.

        ``pad`` widens each side by that fraction of the box size. Returns
        ``None`` for an empty store.
        """
        if not self._entries:
            return None
        points = MultiPoint([issue.point for issue, _ in self._entries.values()])
        minx, miny, maxx, maxy = points.bounds
        dx = (maxx - minx) * pad
        dy = (maxy - miny) * pad
        return (minx - dx, miny - dy, maxx + dx, maxy + dy)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, issue_id: str) -> bool:
        return issue_id in self._entries

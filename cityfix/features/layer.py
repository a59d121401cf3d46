"""Rendering boundary — marker handles and the layer they attach to.

Every issue in the feature store owns exactly one ``MarkerHandle``. The
filter engine never draws anything itself; it only asks a ``Renderer`` to
attach or detach handles. ``MarkerLayer`` is the in-memory renderer used by
the web API and the CLI: its attached handles are what the map shows.
"""

from __future__ import annotations

import html
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from cityfix.core.models import Issue
from cityfix.core.severity import classify_severity, tier_color

logger = logging.getLogger("cityfix.features.layer")

_MISSING = "—"


@dataclass(eq=False)
class MarkerHandle:
    """Renderable counterpart of one issue: a styled circle marker + popup."""

    issue_id: str
    lon: float
    lat: float
    style: dict[str, Any] = field(default_factory=dict)
    popup_html: str = ""

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "id": self.issue_id,
            "geometry": {"type": "Point", "coordinates": [self.lon, self.lat]},
            "properties": {"style": self.style, "popup": self.popup_html},
        }


class Renderer(ABC):
    """Map renderer collaborator.

    Subclasses must implement handle creation and the attach / detach pair.
    """

    @abstractmethod
    def create_handle(self, issue: Issue) -> MarkerHandle:
        ...

    @abstractmethod
    def attach(self, handle: MarkerHandle) -> None:
        ...

    @abstractmethod
    def detach(self, handle: MarkerHandle) -> None:
        ...

    @abstractmethod
    def is_attached(self, handle: MarkerHandle) -> bool:
        ...


def _show(value: Any) -> str:
    if value is None or value == "":
        return _MISSING
    return html.escape(str(value))


def popup_html(issue: Issue) -> str:
    """Popup markup listing the issue attributes."""
    return (
        '<div style="min-width:220px">'
        f"<h3 style='margin:0 0 6px 0;'>{_show(issue.category)}</h3>"
        f"<div><b>ID:</b> {_show(issue.id)}</div>"
        f"<div><b>Status:</b> {_show(issue.status)}</div>"
        f"<div><b>Severity:</b> {_show(issue.severity)}</div>"
        f"<div><b>Description:</b> {_show(issue.description)}</div>"
        f"<div><b>Time:</b> {_show(issue.timestamp)}</div>"
        "</div>"
    )


def marker_style(issue: Issue) -> dict[str, Any]:
    tier = classify_severity(issue.severity)
    return {
        "radius": 10,
        "weight": 2,
        "opacity": 1,
        "fillOpacity": 0.85,
        "color": tier_color(tier),
        "tier": tier.value,
    }


class MarkerLayer(Renderer):
    """In-memory marker layer; attached handles are the visible markers.

    Usage::

        layer = MarkerLayer()
        handle = layer.create_handle(issue)
        layer.attach(handle)
        layer.to_geojson()   # FeatureCollection of attached markers
    """

    def __init__(self) -> None:
        self._attached: dict[int, MarkerHandle] = {}

    def create_handle(self, issue: Issue) -> MarkerHandle:
        return MarkerHandle(
            issue_id=issue.id,
            lon=issue.location.lon,
            lat=issue.location.lat,
            style=marker_style(issue),
            popup_html=popup_html(issue),
        )

    def attach(self, handle: MarkerHandle) -> None:
        self._attached[id(handle)] = handle
        logger.debug("Attached marker %s", handle.issue_id)

    def detach(self, handle: MarkerHandle) -> None:
        self._attached.pop(id(handle), None)
        logger.debug("Detached marker %s", handle.issue_id)

    def is_attached(self, handle: MarkerHandle) -> bool:
        return id(handle) in self._attached

    @property
    def attached(self) -> list[MarkerHandle]:
        return list(self._attached.values())

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [h.to_geojson() for h in self._attached.values()],
        }

"""Core data models for CityFix.

Defines the data structures that flow through the client:
  WFS feature → Issue → (Issue, MarkerHandle) in the FeatureStore
  FormDraft + Location → Issue → SubmissionResult
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import NamedTuple, Optional, Union

from shapely.geometry import Point

# ── Enums ───────────────────────────────────────────────────────────────


class Category(Enum):
    """Kinds of municipal issue a citizen can report."""

    BROKEN_LIGHT = "broken_light"
    ROADWORK = "roadwork"
    BLOCKAGE = "blockage"


class Status(Enum):
    """Lifecycle status of an issue on the service side."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class SeverityTier(Enum):
    """Display tier derived from the numeric severity."""

    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"


class Phase(Enum):
    """Phases of the reporting workflow."""

    IDLE = "idle"
    ARMED = "armed"
    LOCATED = "located"
    SUBMITTING = "submitting"


CATEGORIES: tuple[str, ...] = tuple(c.value for c in Category)
STATUSES: tuple[str, ...] = tuple(s.value for s in Status)


# ── Issue ───────────────────────────────────────────────────────────────


class Location(NamedTuple):
    """WGS84 coordinate pair, latitude first."""

    lat: float
    lon: float


@dataclass
class Issue:
    """A reported municipal problem.

    ``category`` and ``status`` hold the raw strings delivered by the
    service. Values outside :data:`CATEGORIES` / :data:`STATUSES` are kept
    as-is; they never match an enabled filter tag.
    """

    id: str
    category: str
    status: str
    severity: int
    description: str
    timestamp: str
    location: Location

    @property
    def point(self) -> Point:
        """Shapely point in ``(lon, lat)`` axis order."""
        return Point(self.location.lon, self.location.lat)


def generate_issue_id() -> str:
    """Client-side id: ``issue_<epoch ms>_<random suffix>``."""
    return f"issue_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def current_timestamp() -> str:
    """UTC now as ISO-8601 truncated to whole seconds, without a zone suffix."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="seconds")


# ── Reporting ───────────────────────────────────────────────────────────


@dataclass
class FormDraft:
    """User-entered fields of an issue that has not been submitted yet."""

    category: str = Category.BROKEN_LIGHT.value
    severity: int = 3
    description: str = ""


@dataclass
class ReportingSession:
    """One reporting attempt, from arming to resolution or cancellation."""

    phase: Phase = Phase.ARMED
    pending_location: Optional[Location] = None
    draft: FormDraft = field(default_factory=FormDraft)


# ── Submission Result ───────────────────────────────────────────────────


@dataclass
class SubmissionSuccess:
    """The service acknowledged (or did not reject) the insert."""

    message: str
    issue: Optional[Issue] = None
    server_fid: Optional[str] = None

    ok = True


@dataclass
class SubmissionFailure:
    """The insert failed, in-band or at the transport level."""

    message: str
    transport: bool = False

    ok = False


SubmissionResult = Union[SubmissionSuccess, SubmissionFailure]

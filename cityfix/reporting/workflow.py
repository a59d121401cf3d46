"""Reporting workflow — the state machine behind "report an issue".

Phases::

    IDLE ──arm──▶ ARMED ──pick──▶ LOCATED ──submit──▶ SUBMITTING
                                   ▲  │ pick                │
                                   │  ▼                     ├─ Success ─▶ IDLE
                                   └──┘◀──── Failure ───────┘

``cancel`` returns to IDLE from any phase without touching the network.
``submit`` is the only trigger that suspends.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from cityfix.core.exceptions import (
    DraftValidationError,
    MissingLocationError,
    SubmissionInProgressError,
    WorkflowStateError,
)
from cityfix.core.models import (
    CATEGORIES,
    FormDraft,
    Issue,
    Location,
    Phase,
    ReportingSession,
    Status,
    SubmissionResult,
    SubmissionSuccess,
    current_timestamp,
    generate_issue_id,
)
from cityfix.features.filters import FilterEngine
from cityfix.features.store import FeatureStore
from cityfix.wfs.transaction import TransactionBuilder

logger = logging.getLogger("cityfix.reporting.workflow")

MIN_SEVERITY = 1
MAX_SEVERITY = 5


class ReportingWorkflow:
    """Coordinates arming, location picking, submission and cancellation.

    Only one session exists at a time. On a successful submission the new
    issue is the only entry this workflow ever adds to the feature store.

    Usage::

        workflow.arm()
        workflow.pick_location(51.96, 7.62)
        workflow.update_draft(category="roadwork", severity=5)
        result = await workflow.submit()
    """

    def __init__(
        self,
        builder: TransactionBuilder,
        store: FeatureStore,
        filters: FilterEngine,
    ):
        self.builder = builder
        self.store = store
        self.filters = filters
        self._session: Optional[ReportingSession] = None
        self._in_flight: Optional[ReportingSession] = None

    # ── State ───────────────────────────────────────────────────────

    @property
    def session(self) -> Optional[ReportingSession]:
        return self._session

    @property
    def phase(self) -> Phase:
        return self._session.phase if self._session else Phase.IDLE

    @property
    def pending_location(self) -> Optional[Location]:
        return self._session.pending_location if self._session else None

    @property
    def can_submit(self) -> bool:
        return self.phase is Phase.LOCATED and self._in_flight is None

    @property
    def submission_pending(self) -> bool:
        """True while a transaction is in flight, even after ``cancel``."""
        return self._in_flight is not None

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict view of the session for presentation layers."""
        session = self._session
        location = session.pending_location if session else None
        draft = session.draft if session else None
        return {
            "phase": self.phase.value,
            "can_submit": self.can_submit,
            "submission_pending": self.submission_pending,
            "pending_location": (
                {"lat": location.lat, "lon": location.lon} if location else None
            ),
            "draft": (
                {
                    "category": draft.category,
                    "severity": draft.severity,
                    "description": draft.description,
                }
                if draft
                else None
            ),
        }

    # ── Triggers ────────────────────────────────────────────────────

    def arm(self) -> ReportingSession:
        """Start a fresh session, dropping any stale location and draft."""
        if self._in_flight is not None:
            raise SubmissionInProgressError("A submission is already in progress")
        self._session = ReportingSession(phase=Phase.ARMED)
        logger.info("Reporting armed")
        return self._session

    def pick_location(self, lat: float, lon: float) -> bool:
        """Record the picked point. Ignored unless ARMED or LOCATED."""
        if self.phase not in (Phase.ARMED, Phase.LOCATED):
            logger.debug("Location pick ignored in phase %s", self.phase.value)
            return False
        self._session.pending_location = Location(lat=float(lat), lon=float(lon))
        self._session.phase = Phase.LOCATED
        logger.info("Location picked: %.5f, %.5f", lat, lon)
        return True

    def update_draft(
        self,
        category: Optional[str] = None,
        severity: Optional[int] = None,
        description: Optional[str] = None,
    ) -> FormDraft:
        """Change draft fields of the active session."""
        if self._session is None:
            raise WorkflowStateError("Reporting is not armed")
        if self.phase is Phase.SUBMITTING:
            raise SubmissionInProgressError("A submission is already in progress")

        if category is not None and category not in CATEGORIES:
            raise DraftValidationError(f"Unknown category: {category!r}")
        if severity is not None and (
            isinstance(severity, bool)
            or not isinstance(severity, int)
            or not MIN_SEVERITY <= severity <= MAX_SEVERITY
        ):
            raise DraftValidationError(
                f"Severity must be an integer from {MIN_SEVERITY} to {MAX_SEVERITY}"
            )

        draft = self._session.draft
        if category is not None:
            draft.category = category
        if severity is not None:
            draft.severity = severity
        if description is not None:
            draft.description = description
        return draft

    def cancel(self) -> None:
        """Tear down the session.

        A submission in flight is detached from it but still blocks ``arm``
        and ``submit`` until its response arrives.
        """
        if self._session is not None:
            logger.info("Reporting cancelled in phase %s", self._session.phase.value)
        self._session = None

    async def submit(self) -> SubmissionResult:
        """Send the drafted issue at the pending location.

        Guard failures raise before any network call. Success registers the
        issue and ends the session; Failure returns to LOCATED with the
        location and draft kept for a retry.
        """
        if self._in_flight is not None:
            raise SubmissionInProgressError("A submission is already in progress")
        session = self._session
        if session is None:
            raise WorkflowStateError("Reporting is not armed")
        if session.pending_location is None:
            raise MissingLocationError("Pick a location before submitting")

        draft = session.draft
        issue = Issue(
            id=generate_issue_id(),
            category=draft.category,
            status=Status.OPEN.value,
            severity=draft.severity,
            description=draft.description[: self.builder.description_max_length],
            timestamp=current_timestamp(),
            location=session.pending_location,
        )
        session.phase = Phase.SUBMITTING
        self._in_flight = session
        logger.info("Submitting issue %s (%s)", issue.id, issue.category)

        try:
            result = await self.builder.submit(issue)
        except BaseException:
            if self._session is session:
                session.phase = Phase.LOCATED
            raise
        finally:
            self._in_flight = None

        active = self._session is session
        if isinstance(result, SubmissionSuccess):
            self._register(issue)
            if active:
                self._session = None
        elif active:
            session.phase = Phase.LOCATED
            logger.warning("Submission failed: %s", result.message)
        else:
            logger.warning("Submission failed after cancel: %s", result.message)
        return result

    # ── Internal helpers ────────────────────────────────────────────

    def _register(self, issue: Issue) -> None:
        handle = self.filters.renderer.create_handle(issue)
        self.store.add(issue, handle)
        self.filters.apply(issue, handle)
        logger.info(
            "Issue %s added to store (visible=%s)",
            issue.id,
            self.filters.renderer.is_attached(handle),
        )

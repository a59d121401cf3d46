"""CityFix custom exceptions."""

from __future__ import annotations


class CityFixError(Exception):
    """Base exception for all CityFix errors."""


class BulkLoadError(CityFixError):
    """Raised when the initial feature load from the WFS fails."""


class DuplicateIdError(CityFixError):
    """Raised when an issue id is already registered in the feature store."""


class FilterError(CityFixError, ValueError):
    """Raised for an unknown filter dimension or tag."""


class WorkflowStateError(CityFixError):
    """Raised when a reporting trigger arrives in a phase that forbids it."""


class SubmissionInProgressError(WorkflowStateError):
    """Raised when reporting is re-armed while a submission is in flight."""


class MissingLocationError(WorkflowStateError):
    """Raised when submit is triggered before a location was picked."""


class DraftValidationError(CityFixError, ValueError):
    """Raised when a draft field is outside its allowed values."""

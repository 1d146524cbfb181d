"""Custom exception hierarchy for TrackNest."""

from __future__ import annotations


class TrackNestError(Exception):
    """Base class for all custom errors raised by TrackNest."""


# --- 3-layer hierarchy ---

class DomainError(TrackNestError):
    """Base class for domain-level errors."""


class InfrastructureError(TrackNestError):
    """Base class for infrastructure-level errors."""


class ApplicationError(TrackNestError):
    """Base class for application-level errors."""


# --- Domain errors ---

class RecordNotFoundError(DomainError):
    """Raised when a record id is not resident in the local collection."""


class DuplicateRecordError(DomainError):
    """Raised when an insert would introduce an id that is already present."""


class InvalidSearchFieldError(DomainError):
    """Raised when a search names a field the collection cannot be searched by."""


class PermissionDeniedError(DomainError):
    """Raised when the current role lacks the capability for an operation."""


# --- Infrastructure errors ---

class RemoteError(InfrastructureError):
    """Raised when a call against the remote store fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteNotFoundError(RemoteError):
    """Raised when the remote store has no record with the requested id."""


class AuthenticationError(InfrastructureError):
    """Raised when the login endpoint rejects the supplied credentials."""


# --- Application errors ---

class FetchError(ApplicationError):
    """Raised when a list or search request fails; the local view is left untouched."""


class RemovalPendingError(ApplicationError):
    """Raised when a removal is staged while another batch is still pending."""


class NoRemovalPendingError(ApplicationError):
    """Raised when undo is requested with nothing to undo."""


class RestoreError(ApplicationError):
    """Raised when recreating records after an already-fired commit fails."""

    def __init__(self, message: str, lost: list | None = None) -> None:
        super().__init__(message)
        self.lost = list(lost or [])


# --- DI-specific errors ---

class CircularDependencyError(TrackNestError):
    """Raised when a circular dependency is detected during resolution."""


class ResolutionError(TrackNestError):
    """Raised when a dependency cannot be resolved."""


# --- Settings ---

class SettingsError(TrackNestError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""

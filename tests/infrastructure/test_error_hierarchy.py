"""Tests for the layered error hierarchy."""

import pytest
from tracknest.errors import (
    ApplicationError,
    AuthenticationError,
    CircularDependencyError,
    DomainError,
    DuplicateRecordError,
    FetchError,
    InfrastructureError,
    InvalidSearchFieldError,
    NoRemovalPendingError,
    PermissionDeniedError,
    RecordNotFoundError,
    RemoteError,
    RemoteNotFoundError,
    RemovalPendingError,
    ResolutionError,
    RestoreError,
    SettingsError,
    SettingsLoadError,
    SettingsValidationError,
    TrackNestError,
)


@pytest.mark.parametrize("layer", [DomainError, InfrastructureError, ApplicationError, SettingsError])
def test_layers_share_the_root(layer):
    assert issubclass(layer, TrackNestError)


@pytest.mark.parametrize(
    "error, layer",
    [
        (RecordNotFoundError, DomainError),
        (DuplicateRecordError, DomainError),
        (InvalidSearchFieldError, DomainError),
        (PermissionDeniedError, DomainError),
        (RemoteError, InfrastructureError),
        (RemoteNotFoundError, RemoteError),
        (AuthenticationError, InfrastructureError),
        (FetchError, ApplicationError),
        (RemovalPendingError, ApplicationError),
        (NoRemovalPendingError, ApplicationError),
        (RestoreError, ApplicationError),
        (SettingsLoadError, SettingsError),
        (SettingsValidationError, SettingsError),
    ],
)
def test_error_layers(error, layer):
    assert issubclass(error, layer)


def test_di_errors_are_tracknest_errors():
    assert issubclass(CircularDependencyError, TrackNestError)
    assert issubclass(ResolutionError, TrackNestError)


def test_remote_error_keeps_status_code():
    err = RemoteNotFoundError("No entries record 4", status_code=404)
    assert str(err) == "No entries record 4"
    assert err.status_code == 404


def test_restore_error_lists_lost_records():
    err = RestoreError("1 record could not be restored", lost=("B",))
    assert err.lost == ["B"]
    assert RestoreError("none").lost == []

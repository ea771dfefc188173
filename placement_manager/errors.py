"""Exception types raised across :mod:`placement_manager`."""
from __future__ import annotations


class PlacementError(Exception):
    """Base class for placement_manager errors."""


class StoreError(PlacementError):
    """The backing spreadsheet could not be read or written."""


class ApplicantNotFoundError(PlacementError, LookupError):
    """No roster row matches the requested applicant name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Applicant '{name}' not found")
        self.name = name


class InvalidCredentialsError(PlacementError):
    """Passcode did not match the roster entry."""


class TransportError(PlacementError):
    """The placement API could not be reached or returned garbage."""


class RemoteError(PlacementError):
    """The placement API answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class EditorStateError(PlacementError):
    """A preference edit was attempted from the wrong state."""

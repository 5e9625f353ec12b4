"""Error taxonomy shared by the backend services and the client core."""

from __future__ import annotations


class EchoSphereError(Exception):
    """Base class. ``message`` is always safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(EchoSphereError):
    """A required external credential or price id is missing."""


class SubmissionValidationError(EchoSphereError):
    """A local precondition blocked the submission before any network call."""

    def __init__(self, message: str, wait_seconds: int = 0):
        super().__init__(message)
        self.wait_seconds = wait_seconds


class ExternalServiceError(EchoSphereError):
    """Network or service failure while talking to an external collaborator."""


class PolicyRefusal(EchoSphereError):
    """The classifier decided the content is not a legitimate civic issue."""

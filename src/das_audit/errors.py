from __future__ import annotations


class AuditError(Exception):
    """Base class for errors raised by das_audit."""


class AuthenticationError(AuditError):
    """No active identity, or a token could not be obtained for it."""


class InteractionRequiredError(AuthenticationError):
    """The identity provider needs the user to sign in again interactively."""


class UploadError(AuditError):
    def __init__(self, reason: str, *, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class SubmissionInProgressError(AuditError):
    """A submission is already pending for this audit."""

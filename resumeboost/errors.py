"""Exception taxonomy shared by the service layer."""
from __future__ import annotations


class ResumeBoostError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(ResumeBoostError):
    """Required configuration is missing or invalid. Fatal at bootstrap."""


class CredentialsError(ConfigurationError):
    """A remote service rejected our credentials (HTTP 401). Never retried."""


class TransientServiceError(ResumeBoostError):
    """HTTP 429 / 5xx from a remote service. Safe to retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LLMServiceError(ResumeBoostError):
    """Non-retryable failure talking to the text-generation service."""


class MalformedResponseError(ResumeBoostError):
    """A reply could not be parsed into the expected structure."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class BrowserServiceError(ResumeBoostError):
    """The external browser-automation service returned an error.

    ``manual_url`` is where the user can apply by hand instead.
    """

    def __init__(
        self, message: str, status_code: int | None = None, manual_url: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.manual_url = manual_url


class SubmissionTimeoutError(BrowserServiceError):
    """The initial auto-apply submission exceeded its time budget."""


class TrackingError(ResumeBoostError):
    """The status channel failed while polling; the remote job state is unknown."""

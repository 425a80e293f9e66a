# app/services/reddit_sources/errors.py
"""
Error taxonomy for the analytics pipeline.

InvalidInputError, NotFoundError and UpstreamError are surfaced to callers
with a distinguishing code. StoreError is caught by the orchestrator and
turned into a warning. PartialSourceFailure is never raised: it records
which secondary source was missing and what default replaced it.
"""

from dataclasses import dataclass


class AnalyticsError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "API_ERROR"
    status_code = 500

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "code": self.code}


class InvalidInputError(AnalyticsError):
    """Malformed reference. Raised before any network call."""

    code = "INVALID_INPUT"
    status_code = 400


class NotFoundError(AnalyticsError):
    """The primary upstream resource does not exist (HTTP 404)."""

    code = "NOT_FOUND"
    status_code = 404


class UpstreamError(AnalyticsError):
    """The primary upstream source failed after retries."""

    code = "API_ERROR"
    status_code = 502

    def __init__(self, message: str, code: str | None = None, upstream_status: int | None = None):
        super().__init__(message, code)
        self.upstream_status = upstream_status


class InsightUnavailableError(AnalyticsError):
    """No text-generation provider is configured."""

    code = "INSIGHT_UNAVAILABLE"
    status_code = 503


class StoreError(Exception):
    """Persistence failed. Non-fatal for the read path."""

    pass


@dataclass(frozen=True)
class PartialSourceFailure:
    """A secondary source failed; `default_applied` describes the fallback."""

    source: str
    reason: str
    default_applied: str

    def as_warning(self) -> str:
        return f"{self.source} unavailable ({self.reason}); {self.default_applied}"

# app/services/reddit_sources/base.py
"""
Request and outcome types for upstream Reddit fetches.

A FetchRequest describes one logical GET. Every fetch produces exactly one
FetchOutcome: either Success with the decoded JSON payload or Failure with
the kind of error, the last error message and the upstream status code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union
from urllib.parse import urlparse

from app.constants import FetchDefaults
from app.services.reddit_sources.errors import InvalidInputError
from app.services.resilience import BackoffPolicy


class ErrorKind(str, Enum):
    """Why a fetch failed."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    NOT_FOUND = "not_found"
    INVALID_PAYLOAD = "invalid_payload"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class FetchRequest:
    """One logical upstream GET."""

    url: str
    max_attempts: int = FetchDefaults.MAX_ATTEMPTS
    timeout: float = FetchDefaults.ATTEMPT_TIMEOUT_SECONDS
    backoff: BackoffPolicy = BackoffPolicy.LINEAR


@dataclass(frozen=True)
class Success:
    """Fetch succeeded with a decoded JSON payload."""

    payload: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Fetch failed after all attempts."""

    error_kind: ErrorKind
    last_error: str
    status_code: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return False


FetchOutcome = Union[Success, Failure]


def validate_url(url: Any) -> str:
    """
    Reject anything that is not an absolute http(s) URL.

    Raises:
        InvalidInputError: Before any network attempt is made
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidInputError("Valid URL is required", code="INVALID_INPUT")

    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError(f"Not an http(s) URL: {url!r}", code="INVALID_INPUT")
    return url.strip()

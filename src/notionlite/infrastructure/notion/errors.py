"""Notion API request errors"""

from typing import Optional

from notionlite.domain.models.outcome import (
    ExecutionFailure,
    FailureKind,
    PermanentFailure,
    RateLimited,
)


class NotionRequestError(RuntimeError):
    """Base error for a Notion API request that did not succeed"""

    def __init__(
        self,
        message: str,
        *,
        reason: str = "",
        status_code: Optional[int] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code
        self.attempts = attempts


class NotionAuthorizationError(NotionRequestError):
    """401: the token is missing, invalid or revoked"""


class NotionBadRequestError(NotionRequestError):
    """400: the request body or parameters were rejected"""


class NotionCommunicationError(NotionRequestError):
    """Transport failure: DNS, connection refused, timeout, malformed URL"""


class NotionRateLimitError(NotionRequestError):
    """429 after all attempts were used"""

    def __init__(self, message: str, *, retry_after: float, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NotionUnexpectedStatusError(NotionRequestError):
    """Any other non-2xx status"""


class NotionResponseError(NotionRequestError):
    """2xx response whose body could not be parsed"""


class NotionRequestCancelled(NotionRequestError):
    """Cancelled before the request could complete"""


def _format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:g}s"


def error_from_failure(failure: ExecutionFailure) -> NotionRequestError:
    """Convert a terminal execution failure into the matching exception"""
    details = {
        "reason": failure.reason,
        "status_code": failure.status_code,
        "attempts": failure.attempts,
    }
    outcome = failure.last_error

    if failure.kind is FailureKind.CANCELLED:
        return NotionRequestCancelled("Notion API request cancelled", **details)

    if isinstance(outcome, RateLimited):
        return NotionRateLimitError(
            f"Notion API request failure. Please retry in {_format_duration(outcome.retry_after)}",
            retry_after=outcome.retry_after,
            **details,
        )

    status_code = failure.status_code
    if status_code is None:
        if isinstance(outcome, PermanentFailure) and not outcome.request_error:
            return NotionResponseError(f"Notion API request failure: {failure.reason}", **details)
        return NotionCommunicationError(f"Notion API request failure: {failure.reason}", **details)

    message = f"Notion API request failed with status code {status_code}"
    if status_code == 400:
        return NotionBadRequestError(message, **details)
    if status_code == 401:
        return NotionAuthorizationError(message, **details)
    return NotionUnexpectedStatusError(message, **details)

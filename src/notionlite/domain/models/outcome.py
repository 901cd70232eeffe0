"""Outcome models - per-attempt classification and the final execution result"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Success:
    """Attempt returned 2xx and the body was parsed"""

    value: Any


@dataclass(frozen=True)
class RateLimited:
    """Attempt was throttled (HTTP 429)"""

    retry_after: float  # Seconds, from the Retry-After header
    reason: str
    status_code: int = 429


@dataclass(frozen=True)
class TransientFailure:
    """Attempt failed in a way a replay may fix (5xx, network error)"""

    reason: str
    status_code: Optional[int] = None  # None for transport-level failures


@dataclass(frozen=True)
class PermanentFailure:
    """Attempt failed in a way a replay cannot fix (4xx, unparsable body)"""

    reason: str
    status_code: Optional[int] = None  # None for parse failures and unsendable requests
    request_error: bool = False  # The request could not be built or sent at all


Outcome = Union[Success, RateLimited, TransientFailure, PermanentFailure]
FailureOutcome = Union[RateLimited, TransientFailure, PermanentFailure]


def is_retryable(outcome: Outcome) -> bool:
    """Check if an outcome should be retried"""
    return isinstance(outcome, (RateLimited, TransientFailure))


class FailureKind(str, Enum):
    """Kind of terminal failure"""

    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    CANCELLED = "cancelled"

    @classmethod
    def of(cls, outcome: Optional[FailureOutcome]) -> "FailureKind":
        if isinstance(outcome, RateLimited):
            return cls.RATE_LIMITED
        if isinstance(outcome, TransientFailure):
            return cls.TRANSIENT
        if isinstance(outcome, PermanentFailure):
            return cls.PERMANENT
        return cls.CANCELLED


@dataclass(frozen=True)
class ExecutionSuccess:
    """Final result of an execution that produced a parsed value"""

    value: Any
    attempts: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ExecutionFailure:
    """Final result of an execution that gave up

    ``last_error`` is the outcome of the last attempt made, or None when the
    execution was cancelled before its first attempt.
    """

    kind: FailureKind
    attempts: int
    last_error: Optional[FailureOutcome] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        if self.kind is FailureKind.CANCELLED or self.last_error is None:
            return "request cancelled"
        return self.last_error.reason

    @property
    def status_code(self) -> Optional[int]:
        if self.last_error is None:
            return None
        return self.last_error.status_code


ExecutionResult = Union[ExecutionSuccess, ExecutionFailure]

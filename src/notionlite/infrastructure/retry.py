"""Retrying request executor built on tenacity.

Every HTTP call goes through ``RetryingExecutor``: a bounded retry loop with
exponential backoff that honors the server's ``Retry-After`` hint on 429.
The executor does not know about any particular API. Callers hand it a
zero-argument operation that performs one request and, optionally, a parser
for the successful body.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import threading
import time
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

import requests
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential,
)
from tenacity.wait import wait_base

from notionlite.domain.models.outcome import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    FailureKind,
    FailureOutcome,
    Outcome,
    PermanentFailure,
    RateLimited,
    Success,
    TransientFailure,
    is_retryable,
)
from notionlite.infrastructure.http_client import RequestOperation, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 1.0
# Longer Retry-After hints end the loop instead of blocking the caller
MAX_RETRY_AFTER = 3600.0

# Raised by requests before anything is sent
INVALID_REQUEST_ERRORS: Tuple[Type[BaseException], ...] = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    requests.exceptions.URLRequired,
)
TRANSPORT_ERRORS: Tuple[Type[BaseException], ...] = (
    requests.exceptions.RequestException,
    ConnectionError,
    TimeoutError,
)

Parser = Callable[[requests.Response], Any]


class OutcomeError(Exception):
    """Carries a failed attempt's outcome through the tenacity loop"""

    def __init__(self, outcome: FailureOutcome):
        super().__init__(outcome.reason)
        self.outcome = outcome


class ExecutionCancelled(Exception):
    """Raised inside the loop when cancellation is observed before an attempt"""


def parse_json_body(response: requests.Response) -> Any:
    """Default parser: decoded JSON body, ``{}`` for an empty body"""
    if not response.content:
        return {}
    return response.json()


# Integrations should accommodate variable rate limits by handling HTTP 429
# responses and respecting the Retry-After header, which is an integer number
# of seconds in decimal. See https://developers.notion.com/reference/request-limits
def parse_retry_after(value: Optional[str]) -> float:
    """Parse a Retry-After header value into seconds"""
    if value is None:
        logger.warning("Response returned 429 status code without Retry-After header")
        return DEFAULT_RETRY_AFTER
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Response returned 429 status code with invalid Retry-After header: {value}")
        return DEFAULT_RETRY_AFTER
    if not math.isfinite(seconds) or seconds < 0:
        logger.warning(f"Response returned 429 status code with invalid Retry-After header: {value}")
        return DEFAULT_RETRY_AFTER
    return seconds


def _describe_status(response: requests.Response) -> str:
    """Short reason for a non-2xx response, using the API's JSON error body if any"""
    reason = f"HTTP {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return reason
    if isinstance(data, dict):
        code = data.get("code")
        message = data.get("message")
        if code and message:
            return f"{reason} {code}: {message}"
        if message:
            return f"{reason}: {message}"
    return reason


def classify_response(response: requests.Response, parser: Optional[Parser] = None) -> Outcome:
    """Map a raw response to an attempt outcome"""
    status_code = response.status_code
    if 200 <= status_code < 300:
        parser = parser or parse_json_body
        try:
            return Success(parser(response))
        except (ValueError, KeyError, TypeError) as e:
            return PermanentFailure(reason=f"Failed to parse response body: {e}")

    if status_code == 429:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        logger.warning(f"Request rate limited for {retry_after}s")
        return RateLimited(retry_after=retry_after, reason=_describe_status(response))

    if status_code >= 500:
        return TransientFailure(reason=_describe_status(response), status_code=status_code)

    return PermanentFailure(reason=_describe_status(response), status_code=status_code)


def _failed_outcome(retry_state: RetryCallState) -> Optional[FailureOutcome]:
    if retry_state.outcome is None or not retry_state.outcome.failed:
        return None
    exception = retry_state.outcome.exception()
    if isinstance(exception, OutcomeError):
        return exception.outcome
    return None


def _exceeds_retry_after_limit(outcome: FailureOutcome) -> bool:
    return isinstance(outcome, RateLimited) and outcome.retry_after > MAX_RETRY_AFTER


def _should_retry(exception: BaseException) -> bool:
    if not isinstance(exception, OutcomeError) or not is_retryable(exception.outcome):
        return False
    return not _exceeds_retry_after_limit(exception.outcome)


class wait_jitter(wait_base):
    """Multiply another wait by a random factor in [1 - jitter, 1 + jitter]"""

    def __init__(self, wait: wait_base, jitter: float, max: float) -> None:
        self.wait = wait
        self.jitter = jitter
        self.max = max

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.wait(retry_state)
        factor = random.uniform(1 - self.jitter, 1 + self.jitter)
        return min(delay * factor, self.max)


class wait_retry_after(wait_base):
    """Wait at least as long as the server asked for on a rate-limited attempt"""

    def __init__(self, wait: wait_base) -> None:
        self.wait = wait

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.wait(retry_state)
        outcome = _failed_outcome(retry_state)
        if isinstance(outcome, RateLimited):
            return max(outcome.retry_after, delay)
        return delay


def backoff_wait(policy: RetryPolicy) -> wait_base:
    """Wait strategy for a policy: initial_delay * backoff_multiplier ^ (attempt - 1)"""
    wait: wait_base = wait_exponential(
        multiplier=policy.initial_delay,
        exp_base=policy.backoff_multiplier,
        min=0,
        max=policy.max_delay,
    )
    if policy.jitter > 0:
        wait = wait_jitter(wait, policy.jitter, policy.max_delay)
    return wait_retry_after(wait)


class RetryingExecutor:
    """Executes request operations with bounded retries

    One executor can be shared between threads: each ``execute`` call keeps
    its own attempt counter and builds its own tenacity loop.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Optional[Callable[[float], Any]] = None,
        async_sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        cancel_event: Optional[threading.Event] = None,
        transport_errors: Tuple[Type[BaseException], ...] = TRANSPORT_ERRORS,
        description: str = "HTTP request",
    ):
        """Initialize executor

        Args:
            policy: Retry policy (defaults to RetryPolicy())
            sleep: Blocking sleep used between attempts. Defaults to
                ``cancel_event.wait`` when a cancel event is given, else ``time.sleep``
            async_sleep: Sleep used by ``execute_async`` (default: asyncio.sleep)
            cancel_event: Checked before every attempt; once set, the loop stops
            transport_errors: Exceptions raised by an operation that count as
                transient network failures
            description: What is being executed, for log messages
        """
        self.policy = policy or RetryPolicy()
        self.cancel_event = cancel_event
        self.transport_errors = transport_errors
        self.description = description
        if sleep is None:
            sleep = cancel_event.wait if cancel_event is not None else time.sleep
        self._sleep = sleep
        self._async_sleep = async_sleep or asyncio.sleep

    def execute(self, operation: RequestOperation, parser: Optional[Parser] = None) -> ExecutionResult:
        """Run ``operation`` until it succeeds, fails permanently or attempts run out

        Args:
            operation: Zero-argument callable performing exactly one request
            parser: Converts a 2xx response into the result value (default: JSON)

        Returns:
            ExecutionSuccess with the parsed value, or ExecutionFailure
        """
        attempts = 0

        def _attempt() -> Any:
            nonlocal attempts
            self._raise_if_cancelled()
            attempts += 1
            try:
                response = operation()
            except INVALID_REQUEST_ERRORS as e:
                raise self._invalid_request(e) from e
            except self.transport_errors as e:
                raise self._transport_failure(e) from e
            return self._resolve(response, parser)

        retrying = Retrying(sleep=self._sleep, **self._retrying_kwargs())
        try:
            value = retrying(_attempt)
        except OutcomeError as e:
            return self._failure(e.outcome, attempts)
        except ExecutionCancelled:
            return self._cancelled(attempts)
        return ExecutionSuccess(value=value, attempts=attempts)

    async def execute_async(
        self,
        operation: Callable[[], Awaitable[requests.Response]],
        parser: Optional[Parser] = None,
    ) -> ExecutionResult:
        """Same as ``execute`` for an operation returning an awaitable

        Backoff sleeps go through ``async_sleep`` so they never block the loop.
        """
        attempts = 0

        async def _attempt() -> Any:
            nonlocal attempts
            self._raise_if_cancelled()
            attempts += 1
            try:
                response = await operation()
            except INVALID_REQUEST_ERRORS as e:
                raise self._invalid_request(e) from e
            except self.transport_errors as e:
                raise self._transport_failure(e) from e
            return self._resolve(response, parser)

        retrying = AsyncRetrying(sleep=self._async_sleep, **self._retrying_kwargs())
        try:
            value = await retrying(_attempt)
        except OutcomeError as e:
            return self._failure(e.outcome, attempts)
        except ExecutionCancelled:
            return self._cancelled(attempts)
        return ExecutionSuccess(value=value, attempts=attempts)

    def _retrying_kwargs(self) -> dict:
        stop = stop_after_attempt(self.policy.max_attempts)
        if self.cancel_event is not None:
            stop = stop | stop_when_event_set(self.cancel_event)
        return {
            "stop": stop,
            "wait": backoff_wait(self.policy),
            "retry": retry_if_exception(_should_retry),
            "reraise": True,
            "before_sleep": self._log_before_sleep,
        }

    def _is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _raise_if_cancelled(self) -> None:
        if self._is_cancelled():
            raise ExecutionCancelled()

    def _resolve(self, response: requests.Response, parser: Optional[Parser]) -> Any:
        outcome = classify_response(response, parser)
        if isinstance(outcome, Success):
            return outcome.value
        raise OutcomeError(outcome)

    def _transport_failure(self, exception: BaseException) -> OutcomeError:
        return OutcomeError(TransientFailure(reason=f"{type(exception).__name__}: {exception}"))

    def _invalid_request(self, exception: BaseException) -> OutcomeError:
        return OutcomeError(
            PermanentFailure(reason=f"{type(exception).__name__}: {exception}", request_error=True)
        )

    def _log_before_sleep(self, retry_state: RetryCallState) -> None:
        outcome = _failed_outcome(retry_state)
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        reason = outcome.reason if outcome else "unknown error"
        logger.warning(
            f"Sleeping for {delay:.2f}s before retrying {self.description} "
            f"(attempt {retry_state.attempt_number}/{self.policy.max_attempts}): {reason}"
        )

    def _failure(self, outcome: FailureOutcome, attempts: int) -> ExecutionFailure:
        if not is_retryable(outcome):
            logger.warning(f"Not retryable {self.description} error: {outcome.reason}")
            return ExecutionFailure(kind=FailureKind.PERMANENT, attempts=attempts, last_error=outcome)

        if _exceeds_retry_after_limit(outcome):
            logger.error(
                f"Not retrying {self.description}: server asked to wait {outcome.retry_after:g}s, "
                f"limit is {MAX_RETRY_AFTER:g}s"
            )
            return ExecutionFailure(kind=FailureKind.RATE_LIMITED, attempts=attempts, last_error=outcome)

        if self._is_cancelled() and attempts < self.policy.max_attempts:
            return self._cancelled(attempts, outcome)

        logger.error(f"Stopping to retry {self.description} after {attempts} attempts: {outcome.reason}")
        return ExecutionFailure(kind=FailureKind.of(outcome), attempts=attempts, last_error=outcome)

    def _cancelled(self, attempts: int, outcome: Optional[FailureOutcome] = None) -> ExecutionFailure:
        logger.info(f"{self.description} cancelled after {attempts} attempts")
        return ExecutionFailure(kind=FailureKind.CANCELLED, attempts=attempts, last_error=outcome)


def send_with_retries(
    operation: RequestOperation,
    policy: Optional[RetryPolicy] = None,
    *,
    parser: Optional[Parser] = None,
    sleep: Optional[Callable[[float], Any]] = None,
) -> ExecutionResult:
    """Execute one operation with a throwaway executor"""
    return RetryingExecutor(policy, sleep=sleep).execute(operation, parser)

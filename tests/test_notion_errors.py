"""Tests for Notion error conversion"""

import pytest

from notionlite.domain.models.outcome import (
    ExecutionFailure,
    FailureKind,
    PermanentFailure,
    RateLimited,
    TransientFailure,
)
from notionlite.infrastructure.notion.errors import (
    NotionAuthorizationError,
    NotionBadRequestError,
    NotionCommunicationError,
    NotionRateLimitError,
    NotionRequestCancelled,
    NotionRequestError,
    NotionResponseError,
    NotionUnexpectedStatusError,
    error_from_failure,
)


def test_rate_limit_error_message():
    failure = ExecutionFailure(
        kind=FailureKind.RATE_LIMITED,
        attempts=4,
        last_error=RateLimited(retry_after=0.23, reason="HTTP 429"),
    )

    err = error_from_failure(failure)

    assert isinstance(err, NotionRateLimitError)
    assert str(err) == "Notion API request failure. Please retry in 230ms"
    assert err.retry_after == 0.23
    assert err.attempts == 4
    assert err.status_code == 429


def test_rate_limit_error_message_in_seconds():
    failure = ExecutionFailure(
        kind=FailureKind.RATE_LIMITED,
        attempts=1,
        last_error=RateLimited(retry_after=5.0, reason="HTTP 429"),
    )
    assert str(error_from_failure(failure)) == "Notion API request failure. Please retry in 5s"


def test_status_code_error_message():
    failure = ExecutionFailure(
        kind=FailureKind.PERMANENT,
        attempts=1,
        last_error=PermanentFailure(reason="HTTP 404", status_code=404),
    )

    err = error_from_failure(failure)

    assert isinstance(err, NotionUnexpectedStatusError)
    assert str(err) == "Notion API request failed with status code 404"


def test_transport_error_message():
    failure = ExecutionFailure(
        kind=FailureKind.TRANSIENT,
        attempts=3,
        last_error=TransientFailure(reason="Cannot resolve the target name."),
    )

    err = error_from_failure(failure)

    assert isinstance(err, NotionCommunicationError)
    assert str(err) == "Notion API request failure: Cannot resolve the target name."


@pytest.mark.parametrize(
    "status_code, error_class",
    [
        (400, NotionBadRequestError),
        (401, NotionAuthorizationError),
        (403, NotionUnexpectedStatusError),
        (409, NotionUnexpectedStatusError),
    ],
)
def test_permanent_status_mapping(status_code, error_class):
    failure = ExecutionFailure(
        kind=FailureKind.PERMANENT,
        attempts=1,
        last_error=PermanentFailure(reason=f"HTTP {status_code}", status_code=status_code),
    )
    err = error_from_failure(failure)
    assert type(err) is error_class
    assert isinstance(err, NotionRequestError)
    assert isinstance(err, RuntimeError)


def test_exhausted_server_errors_are_unexpected_status():
    failure = ExecutionFailure(
        kind=FailureKind.TRANSIENT,
        attempts=4,
        last_error=TransientFailure(reason="HTTP 503", status_code=503),
    )
    assert isinstance(error_from_failure(failure), NotionUnexpectedStatusError)


def test_parse_failure_is_response_error():
    failure = ExecutionFailure(
        kind=FailureKind.PERMANENT,
        attempts=1,
        last_error=PermanentFailure(reason="Failed to parse response body: Expecting value"),
    )
    err = error_from_failure(failure)
    assert isinstance(err, NotionResponseError)
    assert "Expecting value" in str(err)


def test_unsendable_request_is_communication_error():
    failure = ExecutionFailure(
        kind=FailureKind.PERMANENT,
        attempts=1,
        last_error=PermanentFailure(reason="MissingSchema: Invalid URL", request_error=True),
    )
    err = error_from_failure(failure)
    assert type(err) is NotionCommunicationError
    assert str(err) == "Notion API request failure: MissingSchema: Invalid URL"


def test_cancelled():
    failure = ExecutionFailure(kind=FailureKind.CANCELLED, attempts=0)
    err = error_from_failure(failure)
    assert isinstance(err, NotionRequestCancelled)
    assert err.reason == "request cancelled"

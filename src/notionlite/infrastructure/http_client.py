"""Shared HTTP client utilities (requests + retry policy).

We keep HTTP logic centralized so every endpoint sends requests the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests

from notionlite.domain.models.request import RequestAttempt

logger = logging.getLogger(__name__)

DEFAULT_NOTION_VERSION = "2022-06-28"


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 4
    initial_delay: float = 0.5
    backoff_multiplier: float = 2.0
    jitter: float = 0.1  # +/-10% by default, applied multiplicatively
    max_delay: float = 60.0


class RequestOperation(Protocol):
    """Performs exactly one network call per invocation"""

    def __call__(self) -> requests.Response:
        ...


def retry_policy_from_dict(config: Dict[str, Any]) -> RetryPolicy:
    """Parse retry policy from dict, supporting legacy aliases."""
    max_attempts = config.get("max_attempts")
    initial_delay = config.get("initial_delay")
    backoff_multiplier = config.get("backoff_multiplier")

    # Aliases: max_retries counts retries, not attempts
    if max_attempts is None and config.get("max_retries") is not None:
        try:
            max_attempts = int(config["max_retries"]) + 1
        except (TypeError, ValueError):
            max_attempts = None
    if max_attempts is None:
        max_attempts = 4
    if initial_delay is None:
        initial_delay = config.get("retry_delay", 0.5)
    if backoff_multiplier is None:
        backoff_multiplier = config.get("backoff", 2.0)

    # Optional
    jitter = config.get("jitter", 0.1)
    max_delay = config.get("max_delay", 60.0)

    try:
        max_attempts_i = int(max_attempts)
    except (TypeError, ValueError):
        max_attempts_i = 4

    try:
        initial_delay_f = float(initial_delay)
    except (TypeError, ValueError):
        initial_delay_f = 0.5

    try:
        backoff_multiplier_f = float(backoff_multiplier)
    except (TypeError, ValueError):
        backoff_multiplier_f = 2.0

    try:
        jitter_f = float(jitter)
    except (TypeError, ValueError):
        jitter_f = 0.1

    try:
        max_delay_f = float(max_delay)
    except (TypeError, ValueError):
        max_delay_f = 60.0

    if max_attempts_i < 1:
        max_attempts_i = 1
    if initial_delay_f < 0:
        initial_delay_f = 0.0
    if backoff_multiplier_f < 1:
        backoff_multiplier_f = 1.0
    if jitter_f < 0:
        jitter_f = 0.0
    if jitter_f > 1:
        jitter_f = 1.0
    if max_delay_f < initial_delay_f:
        max_delay_f = initial_delay_f

    return RetryPolicy(
        max_attempts=max_attempts_i,
        initial_delay=initial_delay_f,
        backoff_multiplier=backoff_multiplier_f,
        jitter=jitter_f,
        max_delay=max_delay_f,
    )


def build_headers(api_key: str, notion_version: Optional[str] = None) -> Dict[str, str]:
    """Headers sent with every Notion API request"""
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Notion-Version": notion_version or DEFAULT_NOTION_VERSION,
    }


def send_attempt(
    session: requests.Session,
    attempt: RequestAttempt,
    *,
    timeout: float,
) -> requests.Response:
    """Send one request attempt. Transport errors propagate to the caller."""
    logger.debug(f"HTTP {attempt.method} {attempt.url}")
    return session.request(
        attempt.method,
        attempt.url,
        headers=dict(attempt.headers),
        data=attempt.body,
        timeout=timeout,
    )

"""Notion API client"""

import logging
from typing import Any, Callable, Dict, Optional

import requests

from notionlite.domain.models.request import (
    CreateDatabaseEntryParameters,
    QueryDatabaseParameters,
    RequestAttempt,
    UpdateDatabaseEntryParameters,
)
from notionlite.infrastructure.http_client import (
    DEFAULT_NOTION_VERSION,
    RetryPolicy,
    build_headers,
    send_attempt,
)
from notionlite.infrastructure.notion.errors import error_from_failure
from notionlite.infrastructure.retry import RetryingExecutor

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.notion.com/v1"


class NotionClient:
    """Client for the Notion pages and databases endpoints

    Every call is sent through a RetryingExecutor, so rate-limited (429) and
    transient (5xx, network) failures are retried according to the policy.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        notion_version: Optional[str] = None,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ):
        """Initialize Notion client

        Args:
            api_key: Integration token, sent as a bearer token
            base_url: API root URL (default: https://api.notion.com/v1)
            notion_version: Notion-Version header value (default: 2022-06-28)
            timeout: Per-request timeout in seconds
            retry_policy: Retry policy (default: RetryPolicy())
            session: requests session to reuse (a new one is created if None)
            sleep: Sleep function used between retries (mostly for tests)

        Raises:
            ValueError: If api_key is empty
        """
        if not api_key:
            raise ValueError(
                "Notion API key is required. "
                "Set NOTION_API_KEY environment variable or provide in config."
            )

        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.notion_version = notion_version or DEFAULT_NOTION_VERSION
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.session = session or requests.Session()
        self._owns_session = session is None
        self.executor = RetryingExecutor(
            self.retry_policy,
            sleep=sleep,
            description="Notion API request",
        )

    def __enter__(self) -> "NotionClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying session if this client created it"""
        if self._owns_session:
            self.session.close()

    def create_database_entry(self, database_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Create a page inside a database

        Args:
            database_id: Parent database ID
            properties: Page property values, keyed by property name

        Returns:
            The created page object
        """
        parameters = CreateDatabaseEntryParameters(database_id=database_id, properties=properties)
        return self._send("POST", "/pages", parameters.to_payload())

    def query_database_properties(self, database_id: str) -> Dict[str, Any]:
        """Retrieve a database object, including its property schema

        Args:
            database_id: Database ID

        Returns:
            The database object
        """
        if not database_id:
            raise ValueError("database_id must not be empty")
        return self._send("GET", f"/databases/{database_id}")

    def query_database(
        self,
        database_id: str,
        filter: Optional[Dict[str, Any]] = None,
        page_size: Optional[int] = None,
        start_cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Query the entries of a database

        Args:
            database_id: Database ID
            filter: Notion filter object
            page_size: Number of results, 1-100 (default: 100)
            start_cursor: Cursor returned by a previous query

        Returns:
            The paginated list object (``results``, ``next_cursor``, ``has_more``)
        """
        parameters = QueryDatabaseParameters(
            database_id=database_id,
            filter=filter,
            page_size=page_size,
            start_cursor=start_cursor,
        )
        logger.info(
            f"Query Notion database {database_id} "
            f"(page_size={parameters.effective_page_size}, start_cursor={start_cursor})"
        )
        return self._send("POST", f"/databases/{database_id}/query", parameters.to_payload())

    def update_database_entry(self, entry_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Update property values of a database entry (page)

        Args:
            entry_id: Page ID
            properties: Property values to change, keyed by property name

        Returns:
            The updated page object
        """
        parameters = UpdateDatabaseEntryParameters(entry_id=entry_id, properties=properties)
        return self._send("PATCH", f"/pages/{entry_id}", parameters.to_payload())

    def _send(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send one request through the executor

        Raises:
            NotionRequestError: If the request failed after all retries
        """
        attempt = RequestAttempt.with_json_body(
            method,
            f"{self.base_url}{path}",
            build_headers(self.api_key, self.notion_version),
            payload,
        )
        result = self.executor.execute(lambda: send_attempt(self.session, attempt, timeout=self.timeout))
        if not result.ok:
            raise error_from_failure(result)
        if result.attempts > 1:
            logger.debug(f"{method} {path} succeeded after {result.attempts} attempts")
        return result.value

"""Notion API client"""

from notionlite.infrastructure.notion.client import NotionClient
from notionlite.infrastructure.notion.errors import (
    NotionAuthorizationError,
    NotionBadRequestError,
    NotionCommunicationError,
    NotionRateLimitError,
    NotionRequestCancelled,
    NotionRequestError,
    NotionResponseError,
    NotionUnexpectedStatusError,
)

__all__ = [
    "NotionClient",
    "NotionRequestError",
    "NotionAuthorizationError",
    "NotionBadRequestError",
    "NotionCommunicationError",
    "NotionRateLimitError",
    "NotionUnexpectedStatusError",
    "NotionResponseError",
    "NotionRequestCancelled",
]

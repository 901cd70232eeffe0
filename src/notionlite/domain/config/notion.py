"""Notion API configuration model."""

from typing import Optional

from pydantic import BaseModel, Field


class NotionConfig(BaseModel):
    """Configuration for the Notion API connection.

    Attributes:
        api_key: Integration token (None = from NOTION_API_KEY env)
        base_url: API root URL
        version: Value sent in the Notion-Version header
        timeout: Per-request timeout in seconds
    """

    api_key: Optional[str] = None
    base_url: str = "https://api.notion.com/v1"
    version: str = "2022-06-28"
    timeout: float = Field(30.0, gt=0.0, le=600.0)

"""Configuration models with Pydantic validation."""

from notionlite.domain.config.app import AppConfig
from notionlite.domain.config.notion import NotionConfig
from notionlite.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "NotionConfig",
    "RetryConfig",
]

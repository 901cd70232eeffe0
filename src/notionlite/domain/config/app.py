"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from notionlite.domain.config.notion import NotionConfig
from notionlite.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        notion: Notion API connection configuration
        retry: Retry logic configuration
    """

    notion: NotionConfig = Field(default_factory=NotionConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "notion": {
                    "api_key": None,
                    "base_url": "https://api.notion.com/v1",
                    "version": "2022-06-28",
                    "timeout": 30.0,
                },
                "retry": {
                    "max_attempts": 4,
                    "initial_delay": 0.5,
                    "backoff_multiplier": 2.0,
                    "jitter": 0.1,
                    "max_delay": 60.0,
                },
            }
        },
    )

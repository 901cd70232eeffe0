"""Retry configuration model."""

from pydantic import BaseModel, Field


class RetryConfig(BaseModel):
    """Configuration for retry logic.
    
    Attributes:
        max_attempts: Maximum number of attempts, the first call included
        initial_delay: Initial delay in seconds
        backoff_multiplier: Exponential backoff multiplier
        jitter: Multiplicative random jitter factor (0.0-1.0)
        max_delay: Ceiling for the computed backoff in seconds
    """

    max_attempts: int = Field(4, gt=0, le=10)
    initial_delay: float = Field(0.5, ge=0.0)  # Allow 0 for tests
    backoff_multiplier: float = Field(2.0, ge=1.0, le=10.0)
    jitter: float = Field(0.1, ge=0.0, le=1.0)
    max_delay: float = Field(60.0, gt=0.0)

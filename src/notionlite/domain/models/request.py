"""Request models - the immutable request attempt and endpoint parameters"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class RequestAttempt:
    """Description of one HTTP call, replayed verbatim on every retry"""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None  # Already-serialized payload

    def __post_init__(self):
        """Freeze headers so retries cannot mutate them"""
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @classmethod
    def with_json_body(
        cls,
        method: str,
        url: str,
        headers: Mapping[str, str],
        payload: Optional[Dict[str, Any]] = None,
    ) -> "RequestAttempt":
        """Build an attempt with a JSON body serialized once up front"""
        body = None
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
        return cls(method=method, url=url, headers=headers, body=body)


@dataclass
class CreateDatabaseEntryParameters:
    """Parameters for creating a page inside a database"""

    database_id: str
    properties: Dict[str, Any]

    def __post_init__(self):
        if not self.database_id:
            raise ValueError("database_id must not be empty")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "parent": {"database_id": self.database_id},
            "properties": self.properties,
        }


@dataclass
class QueryDatabaseParameters:
    """Parameters for querying a database"""

    database_id: str
    filter: Optional[Dict[str, Any]] = None
    page_size: Optional[int] = None  # None = DEFAULT_PAGE_SIZE
    start_cursor: Optional[str] = None  # Passed through as-is, no cursoring

    def __post_init__(self):
        if not self.database_id:
            raise ValueError("database_id must not be empty")
        if self.page_size is not None and not (1 <= self.page_size <= MAX_PAGE_SIZE):
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")

    @property
    def effective_page_size(self) -> int:
        return self.page_size if self.page_size is not None else DEFAULT_PAGE_SIZE

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"page_size": self.effective_page_size}
        if self.start_cursor is not None:
            payload["start_cursor"] = self.start_cursor
        if self.filter is not None:
            payload["filter"] = self.filter
        return payload


@dataclass
class UpdateDatabaseEntryParameters:
    """Parameters for updating the properties of a database entry (page)"""

    entry_id: str
    properties: Dict[str, Any]

    def __post_init__(self):
        if not self.entry_id:
            raise ValueError("entry_id must not be empty")

    def to_payload(self) -> Dict[str, Any]:
        return {"properties": self.properties}

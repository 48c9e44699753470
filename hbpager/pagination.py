"""
Pagination support for hbpager.

This module provides the cursor a caller keeps between page fetches and the
outcome object returned by RangeScanPaginator.fetch_page().
"""

import base64
import time
from dataclasses import dataclass, field
from typing import Any

from ._logging import logger
from .exceptions import HBPagerError
from .rows import Row


def now_millis() -> int:
    return int(time.time() * 1000)


def _encode_row_key(key: bytes | None) -> str | None:
    return base64.b64encode(key).decode("ascii") if key is not None else None


def _decode_row_key(value: str | None) -> bytes | None:
    if value is None:
        return None
    try:
        return base64.b64decode(value, validate=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Row key {value!r} is not valid base64") from e


@dataclass
class PageCursor:
    """
    Progress of one paging session over a table.

    A cursor is mutated in place by every fetch and is not thread-safe:
    drive each cursor from one thread or task at a time.

    Attributes:
        page_size: Rows per page
        page_index: Number of pages delivered so far
        start_row_key: First row key of the last page (or the session's start)
        end_row_key: Last row key of the last page; the next page starts after it
        result_rows: Rows of the most recent page
        total_rows_seen: Sum of page lengths across the session
        has_next_page: True when the last fetch found more rows past this page
        start_time_millis: When the most recent fetch started
        end_time_millis: When the most recent fetch finished
    """

    page_size: int
    page_index: int = 0
    start_row_key: bytes | None = None
    end_row_key: bytes | None = None
    result_rows: list[Row] = field(default_factory=list)
    total_rows_seen: int = 0
    has_next_page: bool = False
    start_time_millis: int = field(default_factory=now_millis)
    end_time_millis: int = field(default_factory=now_millis)

    def __post_init__(self) -> None:
        if isinstance(self.page_size, bool) or not isinstance(self.page_size, int):
            raise ValueError(f"page_size must be an integer, got {self.page_size!r}")
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.page_index < 0 or self.total_rows_seen < 0:
            raise ValueError("page_index and total_rows_seen cannot be negative")

    @property
    def is_fresh(self) -> bool:
        """True until the first page has been anchored."""
        return self.start_row_key is None

    @property
    def count(self) -> int:
        return len(self.result_rows)

    @property
    def prev_page_index(self) -> int:
        return self.page_index - 1 if self.page_index > 1 else 1

    @property
    def next_page_index(self) -> int:
        return self.page_index + 1

    @property
    def page_first_row_index(self) -> int:
        """1-based position of the current page's first row within the session."""
        return (self.page_index - 1) * self.page_size + 1

    # --- Timing ---

    def mark_start(self) -> None:
        self.start_time_millis = now_millis()
        self.end_time_millis = self.start_time_millis

    def mark_end(self) -> None:
        self.end_time_millis = now_millis()

    @property
    def elapsed_millis(self) -> int:
        return self.end_time_millis - self.start_time_millis

    @property
    def elapsed_seconds(self) -> float:
        return round(self.elapsed_millis / 1000.0, 2)

    def log_timing(self) -> None:
        logger.info(
            "Page timing",
            extra={
                "page_index": self.page_index,
                "start_time_millis": self.start_time_millis,
                "end_time_millis": self.end_time_millis,
                "elapsed_seconds": self.elapsed_seconds,
            },
        )

    # --- Persistence ---

    def to_dict(self) -> dict[str, Any]:
        """
        JSON-safe snapshot of the cursor position.

        Rows and timings are not included; a cursor rebuilt with from_dict()
        continues from the same place on its next fetch.
        """
        return {
            "page_size": self.page_size,
            "page_index": self.page_index,
            "start_row_key": _encode_row_key(self.start_row_key),
            "end_row_key": _encode_row_key(self.end_row_key),
            "total_rows_seen": self.total_rows_seen,
            "has_next_page": self.has_next_page,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PageCursor":
        """
        Rebuilds a cursor saved with to_dict().

        Raises:
            ValueError: If a row key is not valid base64 or a counter is out of range
        """
        return cls(
            page_size=data["page_size"],
            page_index=data.get("page_index", 0),
            start_row_key=_decode_row_key(data.get("start_row_key")),
            end_row_key=_decode_row_key(data.get("end_row_key")),
            total_rows_seen=data.get("total_rows_seen", 0),
            has_next_page=data.get("has_next_page", False),
        )


@dataclass
class PageOutcome:
    """
    Result of a single fetch_page() call.

    A failed fetch still carries the cursor, left exactly as it was after
    the last successful page, so callers can retry with it.

    Attributes:
        cursor: The session cursor
        error: The store failure that stopped this fetch, if any
    """

    cursor: PageCursor
    error: HBPagerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def rows(self) -> list[Row]:
        return self.cursor.result_rows

    @property
    def has_more(self) -> bool:
        return self.ok and self.cursor.has_next_page

    def raise_for_error(self) -> PageCursor:
        """Returns the cursor, or raises the fetch error if there was one."""
        if self.error is not None:
            raise self.error
        return self.cursor

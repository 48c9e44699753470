"""
Paged range scans over HBase tables.

This module provides resolve_first_row() and the RangeScanPaginator, which
turns repeated scans into stable, non-overlapping pages tracked by a
PageCursor.

Thrift scans are start-inclusive. Instead of re-reading the previous page's
last row and dropping it, every page after the first starts at the
immediate successor of that row key (key + b"\\x00"), so no row is ever
delivered twice and the extra (page_size + 1)th row is always a new one.

Failures:
    Store errors never escape fetch_page(). They are logged and returned
    in PageOutcome.error, with the cursor left exactly as it was after the
    last good page. A short page with ok=False is an error, not the end of
    the data; check outcome.ok or call outcome.raise_for_error().
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from ._logging import describe_range, logger, redact_key
from .exceptions import HBPagerError, IllegalArgumentError, handle_hbase_errors
from .filters import FilterLike, compose_filter, judges_cell_versions, wrap_filter
from .pagination import PageCursor, PageOutcome
from .rows import Row, encode_key, load_versions, row_from_store
from .versions import LATEST_VERSION, resolve_versions

if TYPE_CHECKING:
    from .client import HBaseClient


def next_row_key(key: bytes) -> bytes:
    """The smallest row key strictly greater than `key`."""
    return key + b"\x00"


def _close_scanner(scanner: Any, table_name: str | None) -> None:
    # Closing the generator runs happybase's scannerClose
    try:
        scanner.close()
    except Exception as e:
        logger.warning(
            "Failed to release scanner",
            extra={"table": table_name, "error": str(e)},
        )


def _collect(scanner: Any, limit: int, table_name: str | None) -> list[Row]:
    rows: list[Row] = []
    try:
        for key, data in scanner:
            rows.append(row_from_store(key, data))
            if len(rows) >= limit:
                break
    finally:
        _close_scanner(scanner, table_name)
    return rows


def _as_text(filter_string: bytes | None) -> str | None:
    if filter_string is None:
        return None
    return filter_string.decode("utf-8", errors="backslashreplace")


def _user_filter(row_filter: FilterLike | None) -> bytes | None:
    if row_filter is None or row_filter in ("", b""):
        return None
    return wrap_filter(row_filter).compile()


def _first_row(
    table: Any, filter_string: bytes | None, stop_row: bytes | None, table_name: str | None
) -> Row | None:
    logger.debug(
        "Resolving first row",
        extra={"table": table_name, "has_filter": filter_string is not None},
    )
    scanner = table.scan(row_stop=stop_row, filter=filter_string, limit=1, batch_size=1)
    rows = _collect(scanner, 1, table_name)
    return rows[0] if rows else None


def resolve_first_row(
    table: Any,
    row_filter: FilterLike | None = None,
    stop_row: bytes | None = None,
    table_name: str | None = None,
) -> Row | None:
    """
    Returns the first row of the table (or of the filtered subset), or None.

    Args:
        table: happybase Table handle
        row_filter: Optional filter the row must satisfy
        stop_row: Optional exclusive upper bound
        table_name: Used for error messages and logs

    Raises:
        HBPagerError: If the scan fails
    """
    filter_string = _user_filter(row_filter)
    with handle_hbase_errors(table_name=table_name, filter_string=_as_text(filter_string)):
        return _first_row(table, filter_string, stop_row, table_name)


class RangeScanPaginator:
    """
    Fetches one page of a key-range scan per call.

    Usage:
        paginator = RangeScanPaginator(client)

        outcome = paginator.fetch_page("events", page_size=20)
        cursor = outcome.raise_for_error()
        while cursor.has_next_page:
            cursor = paginator.fetch_page("events", cursor=cursor).raise_for_error()
    """

    def __init__(self, client: "HBaseClient"):
        self.client = client

    def fetch_page(
        self,
        table_name: str | None,
        start_row: str | bytes | None = None,
        stop_row: str | bytes | None = None,
        row_filter: FilterLike | None = None,
        versions: int | None = LATEST_VERSION,
        cursor: PageCursor | None = None,
        page_size: int | None = None,
    ) -> PageOutcome:
        """
        Fetches the next page into `cursor`.

        Args:
            table_name: Table to scan. Blank names are a no-op.
            start_row: Inclusive start key for the first page. When absent the
                       first row of the table (or filtered range) is used.
                       Ignored once the cursor has been anchored.
            stop_row: Exclusive end key of the whole range
            row_filter: Optional ScanFilter or filter-language string.
                        Never modified.
            versions: Version count (see hbpager.versions). Older versions
                      are re-read per column without the filter, so a filter
                      that judges single cell versions (ValueFilter,
                      TimestampsFilter, KeyOnlyFilter, DependentColumnFilter)
                      is only accepted with the latest-version policy; any
                      other combination fails with IllegalArgumentError.
            cursor: Cursor from the previous call; a new one is created if None
            page_size: Page size for a new cursor (defaults to settings).
                       The cursor's own page size wins when both are given.

        Returns:
            PageOutcome holding the updated cursor, or the untouched cursor
            and the error if the store failed.
        """
        if cursor is None:
            cursor = PageCursor(page_size=page_size or self.client.settings.default_page_size)
        elif page_size is not None and page_size != cursor.page_size:
            logger.debug(
                "Ignoring page_size, cursor already has one",
                extra={"page_size": page_size, "cursor_page_size": cursor.page_size},
            )

        cursor.mark_start()
        try:
            if table_name is None or not table_name.strip():
                logger.debug("Blank table name, nothing to fetch")
                return PageOutcome(cursor=cursor)
            return self._fetch(table_name, start_row, stop_row, row_filter, versions, cursor)
        finally:
            cursor.mark_end()
            cursor.log_timing()

    def _fetch(
        self,
        table_name: str,
        start_row: str | bytes | None,
        stop_row: str | bytes | None,
        row_filter: FilterLike | None,
        versions: int | None,
        cursor: PageCursor,
    ) -> PageOutcome:
        stop_key = encode_key(stop_row) if stop_row is not None else None
        scan_start = encode_key(start_row) if start_row is not None else None
        page_size = cursor.page_size
        policy = resolve_versions(versions)
        scan_filter = compose_filter(row_filter, page_size + 1)
        range_is_empty = False

        try:
            if not policy.latest_only and judges_cell_versions(row_filter):
                raise IllegalArgumentError(
                    f"Filter {wrap_filter(row_filter)} judges single cell versions and cannot "
                    f"be combined with the '{policy.mode}' version policy; use the latest "
                    "version only"
                )

            # Errors are translated outside the lease so the pool sees them first
            with handle_hbase_errors(table_name=table_name, filter_string=str(scan_filter)):
                with self.client.table(table_name) as table:
                    if not cursor.is_fresh:
                        if cursor.end_row_key is not None:
                            scan_start = next_row_key(cursor.end_row_key)
                        else:
                            # Every page so far was empty; retry from the session start
                            scan_start = cursor.start_row_key
                    elif scan_start is None:
                        first = _first_row(table, _user_filter(row_filter), stop_key, table_name)
                        if first is None:
                            range_is_empty = True
                        else:
                            scan_start = first.key

                    if not range_is_empty:
                        logger.info(
                            "Executing scan page",
                            extra={
                                "table": table_name,
                                "page_index": cursor.next_page_index,
                                "row_range": describe_range(scan_start, stop_key),
                                "has_filter": row_filter is not None,
                                "versions": policy.mode,
                                "limit": page_size + 1,
                            },
                        )
                        scanner = table.scan(
                            row_start=scan_start,
                            row_stop=stop_key,
                            filter=scan_filter.compile(),
                            limit=page_size + 1,
                            batch_size=self.client.settings.batch_size,
                            include_timestamp=True,
                        )
                        raw = _collect(scanner, page_size + 1, table_name)
                        rows = [load_versions(table, row, policy) for row in raw[:page_size]]

        except HBPagerError as e:
            logger.error(
                "Scan page failed",
                extra={
                    "table": table_name,
                    "page_index": cursor.next_page_index,
                    "row_range": describe_range(scan_start, stop_key),
                    "error": e.message,
                },
            )
            return PageOutcome(cursor=cursor, error=e)

        if range_is_empty:
            logger.info(
                "Range is empty",
                extra={"table": table_name, "row_range": describe_range(None, stop_key)},
            )
            self._commit(cursor, rows=[], raw_count=0, scan_start=None)
            return PageOutcome(cursor=cursor)

        self._commit(cursor, rows=rows, raw_count=len(raw), scan_start=scan_start)

        logger.info(
            "Scan page complete",
            extra={
                "table": table_name,
                "page_index": cursor.page_index,
                "count": cursor.count,
                "has_next_page": cursor.has_next_page,
                "end_key_hash": redact_key(cursor.end_row_key),
            },
        )
        return PageOutcome(cursor=cursor)

    @staticmethod
    def _commit(
        cursor: PageCursor, rows: list[Row], raw_count: int, scan_start: bytes | None
    ) -> None:
        """Moves the cursor past a successfully fetched page."""
        cursor.result_rows = rows
        cursor.has_next_page = raw_count > cursor.page_size
        if rows:
            cursor.start_row_key = rows[0].key
            cursor.end_row_key = rows[-1].key
        elif cursor.is_fresh:
            cursor.start_row_key = scan_start
        cursor.page_index += 1
        cursor.total_rows_seen += len(rows)

    def iter_pages(
        self,
        table_name: str,
        start_row: str | bytes | None = None,
        stop_row: str | bytes | None = None,
        row_filter: FilterLike | None = None,
        versions: int | None = LATEST_VERSION,
        cursor: PageCursor | None = None,
        page_size: int | None = None,
    ) -> Iterator[PageCursor]:
        """
        Yields the cursor after each page until the range is exhausted.

        Raises:
            HBPagerError: As soon as a page fails
        """
        while True:
            cursor = self.fetch_page(
                table_name,
                start_row=start_row,
                stop_row=stop_row,
                row_filter=row_filter,
                versions=versions,
                cursor=cursor,
                page_size=page_size,
            ).raise_for_error()
            yield cursor
            if not cursor.has_next_page:
                return

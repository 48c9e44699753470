"""
Scan filter DSL for hbpager.

This module provides a ScanFilter wrapper and builder functions that render
HBase Thrift filter-language strings (the `filter` argument of
happybase.Table.scan).

Design:
- ScanFilter holds the compiled expression as bytes, so binary row keys
  survive untouched
- Operators &, | and ~ produce new ScanFilter instances (AND, OR, SKIP)
- Nothing is ever mutated in place; composing a page limit onto a
  caller's filter leaves the caller's object as it was

Usage:
    from hbpager.filters import PrefixFilter, ValueFilter

    row_filter = PrefixFilter(b"user#") & ValueFilter("=", "substring:active")
    paginator.fetch_page("users", row_filter=row_filter, cursor=cursor)
"""

from __future__ import annotations

import re
from typing import Union

COMPARE_OPERATORS = ("=", "!=", "<", "<=", ">", ">=")
COMPARATOR_TYPES = ("binary", "binaryprefix", "substring", "regexstring")

# Filters that accept or drop single cell versions rather than whole rows or columns
_CELL_VERSION_FILTERS = re.compile(
    rb"\b(?:ValueFilter|TimestampsFilter|KeyOnlyFilter|DependentColumnFilter)\s*\("
)

# Type alias for filter parameters (ScanFilter or a raw filter-language string)
FilterLike = Union["ScanFilter", str, bytes]


class ScanFilter:
    """
    Immutable HBase filter-language expression.

    Users typically don't instantiate this directly - use the builder
    functions below (PrefixFilter, ValueFilter, ...) instead.

    Attributes:
        expression: The compiled filter string as bytes
    """

    __slots__ = ("expression",)

    def __init__(self, expression: bytes) -> None:
        self.expression = expression

    def __and__(self, other: FilterLike) -> ScanFilter:
        """
        Combine filters with AND.

        Usage:
            PrefixFilter(b"a") & KeyOnlyFilter()
        """
        return ScanFilter(b"(" + self.expression + b") AND (" + _extract_raw(other) + b")")

    def __rand__(self, other: FilterLike) -> ScanFilter:
        """Support for: "raw filter string" & ScanFilter"""
        return ScanFilter(b"(" + _extract_raw(other) + b") AND (" + self.expression + b")")

    def __or__(self, other: FilterLike) -> ScanFilter:
        """Combine filters with OR."""
        return ScanFilter(b"(" + self.expression + b") OR (" + _extract_raw(other) + b")")

    def __ror__(self, other: FilterLike) -> ScanFilter:
        return ScanFilter(b"(" + _extract_raw(other) + b") OR (" + self.expression + b")")

    def __invert__(self) -> ScanFilter:
        """
        SKIP: drop the whole row if any cell fails the wrapped filter.

        Usage:
            ~ValueFilter("!=", "binary:0")
        """
        return ScanFilter(b"SKIP (" + self.expression + b")")

    def while_(self) -> ScanFilter:
        """WHILE: stop the scan at the first cell that fails the wrapped filter."""
        return ScanFilter(b"WHILE (" + self.expression + b")")

    def compile(self) -> bytes:
        return self.expression

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScanFilter):
            return NotImplemented
        return self.expression == other.expression

    def __hash__(self) -> int:
        return hash(self.expression)

    def __str__(self) -> str:
        return self.expression.decode("utf-8", errors="backslashreplace")

    def __repr__(self) -> str:
        return f"ScanFilter({str(self)!r})"


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"Expected str or bytes, got {type(value).__name__}")


def _extract_raw(row_filter: FilterLike) -> bytes:
    """
    Extracts the expression from a ScanFilter or a raw filter string.

    Raises:
        TypeError: If row_filter is neither a ScanFilter nor str/bytes
    """
    if isinstance(row_filter, ScanFilter):
        return row_filter.expression
    return _to_bytes(row_filter)


def wrap_filter(row_filter: FilterLike) -> ScanFilter:
    """Ensures a filter is wrapped in ScanFilter."""
    if isinstance(row_filter, ScanFilter):
        return row_filter
    return ScanFilter(_to_bytes(row_filter))


def quote(literal: str | bytes) -> bytes:
    """Quotes a literal for the filter language, doubling embedded quotes."""
    return b"'" + _to_bytes(literal).replace(b"'", b"''") + b"'"


def _compare_op(op: str) -> bytes:
    if op not in COMPARE_OPERATORS:
        raise ValueError(f"Unsupported compare operator '{op}', expected one of {COMPARE_OPERATORS}")
    return op.encode("ascii")


def _comparator(comparator: str | bytes) -> bytes:
    raw = _to_bytes(comparator)
    kind, sep, _ = raw.partition(b":")
    if not sep or kind.decode("ascii", errors="replace") not in COMPARATOR_TYPES:
        raise ValueError(
            f"Comparator must start with one of {COMPARATOR_TYPES} followed by ':', got {raw!r}"
        )
    return quote(raw)


def _call(name: str, *args: bytes) -> ScanFilter:
    return ScanFilter(name.encode("ascii") + b"(" + b", ".join(args) + b")")


# --- Builders ---


def PageFilter(page_size: int) -> ScanFilter:
    """Stops returning rows from a region once page_size rows have passed."""
    if page_size <= 0:
        raise ValueError("PageFilter size must be positive")
    return _call("PageFilter", str(page_size).encode("ascii"))


def PrefixFilter(prefix: str | bytes) -> ScanFilter:
    return _call("PrefixFilter", quote(prefix))


def KeyOnlyFilter() -> ScanFilter:
    return _call("KeyOnlyFilter")


def FirstKeyOnlyFilter() -> ScanFilter:
    return _call("FirstKeyOnlyFilter")


def ColumnPrefixFilter(prefix: str | bytes) -> ScanFilter:
    return _call("ColumnPrefixFilter", quote(prefix))


def ColumnCountGetFilter(limit: int) -> ScanFilter:
    return _call("ColumnCountGetFilter", str(limit).encode("ascii"))


def InclusiveStopFilter(stop_row: str | bytes) -> ScanFilter:
    return _call("InclusiveStopFilter", quote(stop_row))


def TimestampsFilter(*timestamps: int) -> ScanFilter:
    if not timestamps:
        raise ValueError("TimestampsFilter needs at least one timestamp")
    return _call("TimestampsFilter", *(str(ts).encode("ascii") for ts in timestamps))


def RowKeyFilter(op: str, comparator: str | bytes) -> ScanFilter:
    """
    Compares row keys (HBase RowFilter).

    Usage:
        RowKeyFilter("<=", b"binary:row5")
    """
    return _call("RowFilter", _compare_op(op), _comparator(comparator))


def FamilyFilter(op: str, comparator: str | bytes) -> ScanFilter:
    return _call("FamilyFilter", _compare_op(op), _comparator(comparator))


def QualifierFilter(op: str, comparator: str | bytes) -> ScanFilter:
    return _call("QualifierFilter", _compare_op(op), _comparator(comparator))


def ValueFilter(op: str, comparator: str | bytes) -> ScanFilter:
    """
    Compares cell values.

    Usage:
        ValueFilter("=", "substring:active")
    """
    return _call("ValueFilter", _compare_op(op), _comparator(comparator))


def SingleColumnValueFilter(
    family: str | bytes,
    qualifier: str | bytes,
    op: str,
    comparator: str | bytes,
    filter_if_missing: bool = True,
    latest_version_only: bool = True,
) -> ScanFilter:
    """
    Keeps rows whose family:qualifier value satisfies the comparison.

    Args:
        family: Column family
        qualifier: Column qualifier
        op: Compare operator
        comparator: e.g. "binary:42"
        filter_if_missing: Drop rows that lack the column entirely
        latest_version_only: Only test the newest version of the cell
    """
    return _call(
        "SingleColumnValueFilter",
        quote(family),
        quote(qualifier),
        _compare_op(op),
        _comparator(comparator),
        b"true" if filter_if_missing else b"false",
        b"true" if latest_version_only else b"false",
    )


def compose_filter(row_filter: FilterLike | None, page_limit: int) -> ScanFilter:
    """
    Builds the single predicate passed to a paged scan.

    The page limit is always the last conjunct. The caller's filter is
    never modified; a new ScanFilter is returned.

    Args:
        row_filter: Optional caller filter (ScanFilter or raw filter string)
        page_limit: Row cap for the scan, usually page_size + 1

    Returns:
        ScanFilter for the scan's `filter` argument
    """
    page_filter = PageFilter(page_limit)
    if row_filter is None or (isinstance(row_filter, (str, bytes)) and not row_filter):
        return page_filter
    return wrap_filter(row_filter) & page_filter


def judges_cell_versions(row_filter: FilterLike | None) -> bool:
    """
    True if the filter keeps or drops individual cell versions.

    Value, timestamp, key-only and dependent-column filters act on each
    cell, so the versions a scan returns depend on them. Row and column
    filters (prefix, row key, family, qualifier, single-column value) only
    decide which rows and columns appear.
    """
    if row_filter is None:
        return False
    return _CELL_VERSION_FILTERS.search(_extract_raw(row_filter)) is not None

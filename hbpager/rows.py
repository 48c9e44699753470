"""
Row and cell containers returned by scans and gets.

Rows are built from the (key, data) pairs happybase yields. The pagination
core only reads Row.key; everything else is for callers.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .exceptions import RowSerializationError
from .versions import VersionPolicy


@dataclass(frozen=True)
class Cell:
    """A single stored version of a column value."""

    value: bytes
    timestamp: int | None = None


@dataclass
class Row:
    """
    A row key plus its cells.

    Attributes:
        key: Row key
        cells: Column name (b"family:qualifier") -> versions, newest first
    """

    key: bytes
    cells: dict[bytes, list[Cell]] = field(default_factory=dict)

    @property
    def columns(self) -> list[bytes]:
        return list(self.cells)

    def value(self, column: str | bytes) -> bytes | None:
        """Returns the newest value of a column, or None if it is absent."""
        versions = self.cells.get(encode_key(column))
        if not versions:
            return None
        return versions[0].value

    def versions(self, column: str | bytes) -> list[Cell]:
        return list(self.cells.get(encode_key(column), []))

    def to_dict(self) -> dict[bytes, bytes]:
        """Flattens the row to {column: newest value}, the shape happybase puts take."""
        return {column: cells[0].value for column, cells in self.cells.items() if cells}


def encode_key(value: str | bytes) -> bytes:
    """Encodes a row key or column name to bytes (UTF-8 for str)."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise RowSerializationError(
        f"Row keys and column names must be str or bytes, got {type(value).__name__}"
    )


def encode_data(data: Mapping[Any, Any]) -> dict[bytes, bytes]:
    """Encodes a {column: value} mapping for a put."""
    encoded: dict[bytes, bytes] = {}
    for column, value in data.items():
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        try:
            encoded[encode_key(column)] = encode_key(value)
        except RowSerializationError as e:
            raise RowSerializationError(
                f"Failed to encode column '{column!r}'. value={value!r} error={e.message}",
                original_error=e,
            ) from e
    return encoded


def row_from_store(key: bytes, data: Mapping[bytes, Any]) -> Row:
    """
    Builds a Row from one happybase result.

    Accepts both plain values and the (value, timestamp) tuples returned
    when include_timestamp=True.
    """
    cells: dict[bytes, list[Cell]] = {}
    for column, raw in data.items():
        if isinstance(raw, tuple):
            value, timestamp = raw
            cells[column] = [Cell(value=value, timestamp=timestamp)]
        else:
            cells[column] = [Cell(value=raw)]
    return Row(key=key, cells=cells)


def load_versions(table: Any, row: Row, policy: VersionPolicy) -> Row:
    """
    Replaces each column's cells with the versions the policy asks for.

    The Thrift scan only ever returns the newest version, so older ones
    are read per column with Table.cells(). Latest-only rows are returned
    unchanged.
    Table.cells() takes no filter, so callers must not combine this with a
    filter that judges single cell versions (see filters.judges_cell_versions).
    """
    if policy.latest_only:
        return row

    cells: dict[bytes, list[Cell]] = {}
    for column in row.cells:
        stored = table.cells(row.key, column, versions=policy.max_versions, include_timestamp=True)
        cells[column] = [Cell(value=value, timestamp=timestamp) for value, timestamp in stored]
    return Row(key=row.key, cells=cells)


def rows_from_store(results: Iterable[tuple[bytes, Mapping[bytes, Any]]]) -> list[Row]:
    return [row_from_store(key, data) for key, data in results]

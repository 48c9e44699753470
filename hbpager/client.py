"""
Explicitly managed HBase client.

An HBaseClient owns a happybase.ConnectionPool. Build it once at startup,
hand it to every component that needs the store, and close it once at
shutdown:

    client = HBaseClient(ClientSettings(host="hbase-thrift"))
    client.open()
    try:
        paginator = RangeScanPaginator(client)
        ...
    finally:
        client.close()

or simply `with HBaseClient(settings) as client: ...`.

One client may be shared by several threads. Every store call leases a
pooled connection for its own duration, so no Thrift transport is ever
used by two threads at once.
"""

import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import happybase

from ._logging import logger, redact_key
from .config import ClientSettings
from .exceptions import StoreUnavailableError, handle_hbase_errors
from .rows import Row, encode_data, encode_key, load_versions, row_from_store
from .versions import LATEST_VERSION, resolve_versions


class HBaseClient:
    """
    Owns the Thrift connections and the single-row CRUD calls.

    Args:
        settings: Connection settings; defaults to ClientSettings()
        connection: Pre-built happybase.Connection (or a test double) used
                    instead of a pool. It is never closed by the client, and
                    threads take turns on it.
    """

    def __init__(self, settings: ClientSettings | None = None, connection: Any | None = None):
        self.settings = settings or ClientSettings()
        self._connection = connection
        self._pool: happybase.ConnectionPool | None = None
        self._lock = threading.RLock()
        self._closed = False

    # --- LIFECYCLE ---

    def _check_open(self) -> None:
        if self._closed:
            raise StoreUnavailableError("HBaseClient is closed")

    def _get_pool(self) -> happybase.ConnectionPool:
        with self._lock:
            self._check_open()
            if self._pool is None:
                logger.debug(
                    "Creating connection pool",
                    extra={"host": self.settings.host, "pool_size": self.settings.pool_size},
                )
                # The pool connects its first connection right away
                self._pool = happybase.ConnectionPool(
                    self.settings.pool_size, **self.settings.connection_kwargs()
                )
            return self._pool

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """
        Leases a connection to the calling thread for the duration of the block.

        Nested leases on one thread get the same connection. Store errors
        raised inside the block reach the pool untranslated, so it can
        replace a tainted connection; translate them outside the block.

        Raises:
            StoreUnavailableError: If the client has been closed
        """
        if self._connection is not None:
            with self._lock:
                self._check_open()
                yield self._connection
            return
        with self._get_pool().connection() as connection:
            yield connection

    @contextmanager
    def table(self, name: str) -> Iterator[Any]:
        """Yields a happybase Table handle bound to a leased connection."""
        with self.connection() as connection:
            yield connection.table(name)

    def open(self) -> "HBaseClient":
        logger.info(
            "Opening HBase connection",
            extra={"host": self.settings.host, "port": self.settings.port},
        )
        with handle_hbase_errors():
            with self.connection() as connection:
                connection.open()
        return self

    def close(self) -> None:
        """
        Releases the pool. Safe to call more than once.

        happybase closes pooled connections when they are garbage collected;
        a connection still leased by another thread goes once that thread
        is done with it. An injected connection is left open.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pool, self._pool = self._pool, None
        if pool is not None:
            logger.info("Closing HBase connection pool", extra={"host": self.settings.host})

    def __enter__(self) -> "HBaseClient":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- SINGLE-ROW OPERATIONS ---

    def get_row(
        self,
        table_name: str,
        key: str | bytes,
        columns: Iterable[str | bytes] | None = None,
        versions: int | None = LATEST_VERSION,
    ) -> Row | None:
        """
        Fetches one row by key.

        Args:
            table_name: Table to read
            key: Row key
            columns: Optional column names or families to restrict the read
            versions: Version count (see hbpager.versions)

        Returns:
            The Row, or None if it does not exist
        """
        row_key = encode_key(key)
        column_list = [encode_key(c) for c in columns] if columns is not None else None
        policy = resolve_versions(versions)

        logger.debug(
            "Fetching row",
            extra={"table": table_name, "key_hash": redact_key(row_key), "operation": "get"},
        )

        with handle_hbase_errors(table_name=table_name), self.table(table_name) as table:
            data = table.row(row_key, columns=column_list, include_timestamp=True)
            if not data:
                logger.info(
                    "Row not found",
                    extra={"table": table_name, "operation": "get", "key_hash": redact_key(row_key)},
                )
                return None
            row = load_versions(table, row_from_store(row_key, data), policy)

        logger.info(
            "Row found",
            extra={"table": table_name, "operation": "get", "key_hash": redact_key(row_key)},
        )
        return row

    def get_rows(
        self,
        table_name: str,
        keys: Iterable[str | bytes],
        columns: Iterable[str | bytes] | None = None,
    ) -> list[Row]:
        """Fetches several rows in one call. Missing rows are left out of the result."""
        row_keys = [encode_key(k) for k in keys]
        if not row_keys:
            return []
        column_list = [encode_key(c) for c in columns] if columns is not None else None

        logger.debug(
            "Fetching rows",
            extra={"table": table_name, "operation": "get_rows", "count": len(row_keys)},
        )

        with handle_hbase_errors(table_name=table_name), self.table(table_name) as table:
            results = table.rows(row_keys, columns=column_list, include_timestamp=True)

        return [row_from_store(key, data) for key, data in results]

    def put_row(
        self,
        table_name: str,
        key: str | bytes,
        data: Mapping[Any, Any],
        timestamp: int | None = None,
    ) -> None:
        """
        Writes columns of one row.

        Usage:
            client.put_row("users", "u1", {"info:name": "Ada"})
        """
        row_key = encode_key(key)
        encoded = encode_data(data)

        logger.info(
            "Saving row",
            extra={"table": table_name, "operation": "put", "key_hash": redact_key(row_key)},
        )

        with handle_hbase_errors(table_name=table_name), self.table(table_name) as table:
            table.put(row_key, encoded, timestamp=timestamp)

        logger.debug("Save successful", extra={"table": table_name, "operation": "put"})

    def put_rows(
        self,
        table_name: str,
        rows: Mapping[Any, Mapping[Any, Any]],
        timestamp: int | None = None,
    ) -> int:
        """
        Writes several rows in a single batch request.

        Returns:
            Number of rows written
        """
        encoded = {encode_key(key): encode_data(data) for key, data in rows.items()}
        if not encoded:
            return 0

        logger.info(
            "Saving rows",
            extra={"table": table_name, "operation": "put_rows", "count": len(encoded)},
        )

        with handle_hbase_errors(table_name=table_name), self.table(table_name) as table:
            with table.batch(timestamp=timestamp) as batch:
                for key, data in encoded.items():
                    batch.put(key, data)

        return len(encoded)

    def delete_row(
        self,
        table_name: str,
        key: str | bytes,
        columns: Iterable[str | bytes] | None = None,
    ) -> None:
        """Deletes a whole row, or only the given columns of it."""
        row_key = encode_key(key)
        column_list = [encode_key(c) for c in columns] if columns is not None else None

        logger.info(
            "Deleting row",
            extra={"table": table_name, "operation": "delete", "key_hash": redact_key(row_key)},
        )

        with handle_hbase_errors(table_name=table_name), self.table(table_name) as table:
            table.delete(row_key, columns=column_list)

        logger.debug("Delete successful", extra={"table": table_name, "operation": "delete"})

    def delete_rows(self, table_name: str, keys: Iterable[str | bytes]) -> int:
        row_keys = [encode_key(k) for k in keys]
        if not row_keys:
            return 0

        logger.info(
            "Deleting rows",
            extra={"table": table_name, "operation": "delete_rows", "count": len(row_keys)},
        )

        with handle_hbase_errors(table_name=table_name), self.table(table_name) as table:
            with table.batch() as batch:
                for key in row_keys:
                    batch.delete(key)

        return len(row_keys)

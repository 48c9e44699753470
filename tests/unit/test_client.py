"""
Unit tests for HBaseClient lifecycle and single-row operations.
"""

import logging
import threading
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import pytest
from thriftpy2.transport import TTransportException

from hbpager import ALL_VERSIONS, ClientSettings, HBaseClient
from hbpager.exceptions import RowSerializationError, StoreUnavailableError
from tests.helpers.memtable import MemPool


@pytest.mark.unit
class TestLifecycle:
    def test_pool_built_from_settings(self):
        settings = ClientSettings(host="hbase", port=9091, timeout_millis=2000, pool_size=2)

        with patch("hbpager.client.happybase.ConnectionPool") as pool_cls:
            client = HBaseClient(settings)
            client.open()

        pool_cls.assert_called_once_with(2, **settings.connection_kwargs())
        leased = pool_cls.return_value.connection.return_value.__enter__.return_value
        leased.open.assert_called_once_with()

    def test_pool_is_lazy(self):
        with patch("hbpager.client.happybase.ConnectionPool") as pool_cls:
            HBaseClient()
        pool_cls.assert_not_called()

    def test_context_manager(self):
        with patch("hbpager.client.happybase.ConnectionPool") as pool_cls:
            with HBaseClient() as client:
                with client.connection() as connection:
                    leased = pool_cls.return_value.connection.return_value.__enter__.return_value
                    assert connection is leased

        with pytest.raises(StoreUnavailableError, match="closed"):
            with client.connection():
                pass

    def test_close_is_idempotent(self, caplog):
        caplog.set_level(logging.INFO, logger="hbpager")

        with patch("hbpager.client.happybase.ConnectionPool") as pool_cls:
            client = HBaseClient().open()
            client.close()
            client.close()

        pool_cls.assert_called_once()
        closing = [r for r in caplog.records if r.getMessage() == "Closing HBase connection pool"]
        assert len(closing) == 1

    def test_closed_client_refuses_work(self, client):
        client.close()

        with pytest.raises(StoreUnavailableError, match="closed"):
            with client.table("events"):
                pass
        with pytest.raises(StoreUnavailableError):
            client.get_row("events", "row0")

    def test_closed_client_does_not_rebuild_pool(self):
        with patch("hbpager.client.happybase.ConnectionPool") as pool_cls:
            client = HBaseClient().open()
            client.close()
            with pytest.raises(StoreUnavailableError):
                client.put_row("users", "u1", {"info:name": "Ada"})

        pool_cls.assert_called_once()

    def test_injected_connection_is_not_closed(self, mem_connection):
        client = HBaseClient(connection=mem_connection)
        client.open()
        client.close()

        assert mem_connection.opened is True
        assert mem_connection.closed is False

    def test_open_failure_is_translated(self, mem_connection):
        mem_connection.open_error = TTransportException(TTransportException.NOT_OPEN, "refused")
        client = HBaseClient(connection=mem_connection)

        with pytest.raises(StoreUnavailableError):
            client.open()

    def test_unreachable_gateway_is_translated(self):
        with patch(
            "hbpager.client.happybase.ConnectionPool",
            side_effect=TTransportException(TTransportException.NOT_OPEN, "refused"),
        ):
            client = HBaseClient()
            with pytest.raises(StoreUnavailableError):
                client.open()


@pytest.mark.unit
class TestConnectionPool:
    def test_every_call_leases_a_connection(self):
        pool = MemPool(size=2)

        with patch("hbpager.client.happybase.ConnectionPool", return_value=pool):
            client = HBaseClient()
            client.put_row("users", "u1", {"info:name": "Ada"})
            client.get_row("users", "u1")
            client.delete_row("users", "u1")

        assert pool.leases == 3

    def test_pool_sees_raw_store_errors(self):
        seen: list[Exception] = []
        connection = MagicMock()
        connection.table.return_value.row.side_effect = TTransportException(
            TTransportException.NOT_OPEN, "down"
        )

        @contextmanager
        def lease(timeout=None):
            try:
                yield connection
            except Exception as e:
                seen.append(e)
                raise

        with patch("hbpager.client.happybase.ConnectionPool") as pool_cls:
            pool_cls.return_value.connection.side_effect = lease
            client = HBaseClient()
            with pytest.raises(StoreUnavailableError):
                client.get_row("users", "u1")

        assert len(seen) == 1
        assert isinstance(seen[0], TTransportException)

    def test_threads_never_share_a_connection(self):
        pool = MemPool(size=2)
        errors: list[BaseException] = []

        def worker(prefix: str) -> None:
            try:
                for i in range(20):
                    client.put_row("users", f"{prefix}{i}", {"info:n": str(i)})
                    assert client.get_row("users", f"{prefix}{i}") is not None
            except BaseException as e:
                errors.append(e)

        with patch("hbpager.client.happybase.ConnectionPool", return_value=pool):
            client = HBaseClient(ClientSettings(pool_size=2))
            threads = [threading.Thread(target=worker, args=(p,)) for p in ("a", "b", "c", "d")]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        assert errors == []
        assert pool.leases == 4 * 20 * 2


@pytest.mark.unit
class TestRowOperations:
    def test_put_then_get(self, client, mem_connection):
        client.put_row("users", "u1", {"info:name": "Ada", "info:age": 36})

        row = client.get_row("users", "u1")

        assert row is not None
        assert row.key == b"u1"
        assert row.value("info:name") == b"Ada"
        assert row.value(b"info:age") == b"36"
        assert row.versions("info:name")[0].timestamp is not None

    def test_get_missing_row(self, client):
        assert client.get_row("users", b"nobody") is None

    def test_get_row_columns(self, client):
        client.put_row("users", "u1", {"info:name": "Ada", "meta:x": "1"})

        row = client.get_row("users", "u1", columns=["info"])

        assert row.columns == [b"info:name"]

    def test_get_row_versions(self, client):
        for name in ("a", "b", "c"):
            client.put_row("users", "u1", {"info:name": name})

        latest = client.get_row("users", "u1")
        every = client.get_row("users", "u1", versions=ALL_VERSIONS)
        two = client.get_row("users", "u1", versions=2)

        assert [c.value for c in latest.versions("info:name")] == [b"c"]
        assert [c.value for c in every.versions("info:name")] == [b"c", b"b", b"a"]
        assert [c.value for c in two.versions("info:name")] == [b"c", b"b"]

    def test_put_with_timestamp(self, client, mem_connection):
        client.put_row("users", "u1", {"info:name": "Ada"}, timestamp=1234)
        assert mem_connection.table("users").data[b"u1"][b"info:name"] == [(b"Ada", 1234)]

    def test_put_rows_and_get_rows(self, client):
        written = client.put_rows(
            "users", {"u1": {"info:name": "Ada"}, b"u2": {"info:name": "Grace"}}
        )

        rows = client.get_rows("users", ["u2", "missing", "u1"])

        assert written == 2
        assert [row.key for row in rows] == [b"u2", b"u1"]
        assert rows[0].value("info:name") == b"Grace"

    def test_empty_batches(self, client):
        assert client.put_rows("users", {}) == 0
        assert client.get_rows("users", []) == []
        assert client.delete_rows("users", []) == 0

    def test_delete_row_and_columns(self, client):
        client.put_row("users", "u1", {"info:name": "Ada", "info:age": "36"})

        client.delete_row("users", "u1", columns=["info:age"])
        assert client.get_row("users", "u1").columns == [b"info:name"]

        client.delete_row("users", "u1")
        assert client.get_row("users", "u1") is None

    def test_delete_rows(self, client):
        client.put_rows("users", {"u1": {"info:n": "a"}, "u2": {"info:n": "b"}})

        assert client.delete_rows("users", ["u1", "u2"]) == 2
        assert client.get_rows("users", ["u1", "u2"]) == []

    def test_bad_key_type(self, client):
        with pytest.raises(RowSerializationError):
            client.put_row("users", 12, {"info:n": "a"})  # type: ignore[arg-type]

    def test_store_errors_are_translated(self):
        connection = MagicMock()
        connection.table.return_value.row.side_effect = TTransportException(
            TTransportException.NOT_OPEN, "down"
        )
        client = HBaseClient(connection=connection)

        with pytest.raises(StoreUnavailableError):
            client.get_row("users", "u1")

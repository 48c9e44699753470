"""
Shared pytest fixtures and configuration for hbpager tests.

This module provides common fixtures used across unit and integration tests,
including an in-memory happybase connection, a live Thrift gateway client,
and seeded tables.
"""

import os
from typing import TYPE_CHECKING

import pytest

from hbpager import ClientSettings, HBaseClient, RangeScanPaginator
from tests.helpers.memtable import MemConnection, MemTable, seed

if TYPE_CHECKING:
    from tests.helpers.hbase_thrift import HBaseThriftHelper


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with in-memory store doubles")
    config.addinivalue_line("markers", "integration: Integration tests against an HBase Thrift gateway")
    config.addinivalue_line("markers", "slow: Slow tests that may take longer")


@pytest.fixture
def mem_connection() -> MemConnection:
    """An in-memory stand-in for happybase.Connection."""
    return MemConnection()


@pytest.fixture
def client(mem_connection: MemConnection) -> HBaseClient:
    """HBaseClient wired to the in-memory connection."""
    return HBaseClient(ClientSettings(batch_size=100, default_page_size=15), connection=mem_connection)


@pytest.fixture
def paginator(client: HBaseClient) -> RangeScanPaginator:
    return RangeScanPaginator(client)


@pytest.fixture
def ten_rows(mem_connection: MemConnection) -> MemTable:
    """Table 'events' holding row0..row9."""
    table = mem_connection.table("events")
    seed(table, [f"row{i}".encode() for i in range(10)])
    return table


@pytest.fixture
def empty_table(mem_connection: MemConnection) -> MemTable:
    return mem_connection.table("empty")


# Integration Test Fixtures


@pytest.fixture(scope="session")
def thrift_settings() -> ClientSettings:
    """Thrift gateway location from environment or default."""
    return ClientSettings(
        host=os.getenv("HBASE_THRIFT_HOST", "localhost"),
        port=int(os.getenv("HBASE_THRIFT_PORT", "9090")),
        timeout_millis=10000,
    )


@pytest.fixture(scope="session")
def hbase_helper(thrift_settings: ClientSettings) -> "HBaseThriftHelper":
    """Provides an HBaseThriftHelper instance for integration tests."""
    from tests.helpers.hbase_thrift import HBaseThriftHelper

    helper = HBaseThriftHelper(thrift_settings)
    yield helper
    helper.close()


@pytest.fixture
def integration_client(thrift_settings: ClientSettings):
    """A real HBaseClient connected to the Thrift gateway."""
    with HBaseClient(thrift_settings) as hbase_client:
        yield hbase_client


@pytest.fixture
def clean_table(hbase_helper: "HBaseThriftHelper"):
    """
    Creates a fresh table with families 'cf' (1 version) and 'hist' (5 versions)
    for each test and drops it afterwards.
    """
    table_name = "hbpager_it_events"
    hbase_helper.recreate_table(table_name, {"cf": {"max_versions": 1}, "hist": {"max_versions": 5}})

    yield table_name

    try:
        hbase_helper.drop_table(table_name)
    except Exception:
        # Ignore errors during cleanup
        pass

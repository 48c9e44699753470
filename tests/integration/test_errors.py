"""
Integration tests for error translation against an HBase Thrift gateway.
"""

import pytest

from hbpager import (
    ClientSettings,
    HBaseClient,
    HBPagerError,
    RangeScanPaginator,
    StoreUnavailableError,
    TableNotFoundError,
)


@pytest.mark.integration
class TestErrorsIntegration:
    def test_missing_table(self, integration_client):
        outcome = RangeScanPaginator(integration_client).fetch_page(
            "hbpager_it_does_not_exist", start_row=b"a", page_size=5
        )

        assert not outcome.ok
        assert isinstance(outcome.error, HBPagerError)

    def test_missing_table_on_get(self, integration_client):
        with pytest.raises((TableNotFoundError, HBPagerError)):
            integration_client.get_row("hbpager_it_does_not_exist", "x")

    def test_rejected_filter(self, integration_client, clean_table):
        outcome = RangeScanPaginator(integration_client).fetch_page(
            clean_table, start_row=b"a", row_filter="NoSuchFilter(1)", page_size=5
        )

        assert not outcome.ok
        assert outcome.cursor.page_index == 0

    def test_unreachable_gateway(self):
        client = HBaseClient(ClientSettings(host="127.0.0.1", port=1, timeout_millis=500))

        with pytest.raises(StoreUnavailableError):
            client.open()

"""
Paging through an HBase table with hbpager.

Run against a local Thrift gateway (`hbase thrift start`) with a table
created as: create 'events', {NAME => 'cf', VERSIONS => 3}
"""

import json
import logging

from hbpager import (
    ALL_VERSIONS,
    ClientSettings,
    HBaseClient,
    PageCursor,
    PrefixFilter,
    RangeScanPaginator,
)

logging.basicConfig(level=logging.INFO)


def seed(client: HBaseClient) -> None:
    client.put_rows("events", {f"event#{i:03d}": {"cf:payload": f"payload {i}"} for i in range(42)})


def page_by_hand(paginator: RangeScanPaginator) -> None:
    cursor = PageCursor(page_size=10)
    while True:
        outcome = paginator.fetch_page("events", row_filter=PrefixFilter("event#"), cursor=cursor)
        if not outcome.ok:
            # A failed page is not the end of the data: retry or give up explicitly
            print(f"page {cursor.next_page_index} failed: {outcome.error}")
            break
        print(
            f"page {cursor.page_index}: {cursor.count} rows, "
            f"{cursor.start_row_key!r}..{cursor.end_row_key!r} in {cursor.elapsed_millis} ms"
        )
        if not cursor.has_next_page:
            break


def resume_later(paginator: RangeScanPaginator) -> None:
    first = paginator.fetch_page("events", page_size=5).raise_for_error()

    # Persist the position somewhere (a session, a job table...)
    token = json.dumps(first.to_dict())

    cursor = PageCursor.from_dict(json.loads(token))
    second = paginator.fetch_page("events", cursor=cursor).raise_for_error()
    print("resumed at", second.start_row_key, "page", second.page_index)


def every_version(paginator: RangeScanPaginator) -> None:
    for cursor in paginator.iter_pages("events", versions=ALL_VERSIONS, page_size=20):
        for row in cursor.result_rows:
            print(row.key, [cell.timestamp for cell in row.versions("cf:payload")])


if __name__ == "__main__":
    with HBaseClient(ClientSettings(host="localhost", port=9090)) as client:
        seed(client)
        paginator = RangeScanPaginator(client)
        page_by_hand(paginator)
        resume_later(paginator)
        every_version(paginator)

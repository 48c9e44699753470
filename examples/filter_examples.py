"""
Building scan filters for paged scans.

Filters render to the HBase Thrift filter language. The paginator appends
its own PageFilter to whatever you pass and never modifies your filter.
"""

from hbpager import (
    FirstKeyOnlyFilter,
    KeyOnlyFilter,
    PrefixFilter,
    SingleColumnValueFilter,
    ValueFilter,
    compose_filter,
)

# Rows under a key prefix, keys only
keys_only = PrefixFilter("user#") & KeyOnlyFilter()

# Rows whose cf:status is "active"
active = SingleColumnValueFilter("cf", "status", "=", "binary:active")

# Either prefix
either = PrefixFilter("user#") | PrefixFilter("admin#")

# Drop whole rows that contain any empty value
no_empty_cells = ~ValueFilter("=", "binary:")

# Raw filter-language strings work too
raw = "PrefixFilter('user#') AND FirstKeyOnlyFilter()"

if __name__ == "__main__":
    for scan_filter in (keys_only, active, either, no_empty_cells, FirstKeyOnlyFilter()):
        print(scan_filter)
    print(compose_filter(raw, 16))

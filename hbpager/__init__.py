from .client import HBaseClient
from .config import ClientSettings
from .exceptions import (
    HBPagerError,
    IllegalArgumentError,
    InvalidFilterError,
    RequestTimeoutError,
    RowSerializationError,
    StoreUnavailableError,
    TableNotFoundError,
)
from .filters import (
    ColumnCountGetFilter,
    ColumnPrefixFilter,
    FamilyFilter,
    FirstKeyOnlyFilter,
    InclusiveStopFilter,
    KeyOnlyFilter,
    PageFilter,
    PrefixFilter,
    QualifierFilter,
    RowKeyFilter,
    ScanFilter,
    SingleColumnValueFilter,
    TimestampsFilter,
    ValueFilter,
    compose_filter,
    judges_cell_versions,
)
from .pagination import PageCursor, PageOutcome
from .rows import Cell, Row
from .scan import RangeScanPaginator, resolve_first_row
from .versions import ALL_VERSIONS, LATEST_VERSION, VersionPolicy, resolve_versions

__all__ = [
    "HBaseClient",
    "ClientSettings",
    "RangeScanPaginator",
    "resolve_first_row",
    "PageCursor",
    "PageOutcome",
    "Row",
    "Cell",
    # Versions
    "ALL_VERSIONS",
    "LATEST_VERSION",
    "VersionPolicy",
    "resolve_versions",
    # Filters DSL
    "ScanFilter",
    "compose_filter",
    "judges_cell_versions",
    "PageFilter",
    "PrefixFilter",
    "KeyOnlyFilter",
    "FirstKeyOnlyFilter",
    "ColumnPrefixFilter",
    "ColumnCountGetFilter",
    "InclusiveStopFilter",
    "TimestampsFilter",
    "RowKeyFilter",
    "FamilyFilter",
    "QualifierFilter",
    "ValueFilter",
    "SingleColumnValueFilter",
    # Exceptions
    "HBPagerError",
    "TableNotFoundError",
    "StoreUnavailableError",
    "RequestTimeoutError",
    "InvalidFilterError",
    "IllegalArgumentError",
    "RowSerializationError",
]

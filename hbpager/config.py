from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ClientSettings(BaseModel):
    """
    Connection and scan settings for an HBaseClient.

    Mirrors the keyword arguments of happybase.Connection, plus the
    defaults the paginator falls back to when a caller leaves them out.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = "localhost"
    port: int = Field(default=9090, ge=1, le=65535)
    timeout_millis: int | None = Field(default=None, gt=0)
    table_prefix: str | None = None
    table_prefix_separator: bytes = b"_"
    transport: Literal["buffered", "framed"] = "buffered"
    protocol: Literal["binary", "compact"] = "binary"
    # Connections kept by the client's happybase.ConnectionPool
    pool_size: int = Field(default=4, gt=0)

    # Client-side row caching hint passed to every scan
    batch_size: int = Field(default=1000, gt=0)
    default_page_size: int = Field(default=15, gt=0)

    def connection_kwargs(self) -> dict[str, object]:
        """Keyword arguments for each pooled happybase.Connection (always autoconnect=False)."""
        return {
            "host": self.host,
            "port": self.port,
            "timeout": self.timeout_millis,
            "autoconnect": False,
            "table_prefix": self.table_prefix,
            "table_prefix_separator": self.table_prefix_separator,
            "transport": self.transport,
            "protocol": self.protocol,
        }

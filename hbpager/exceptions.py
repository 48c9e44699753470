from collections.abc import Generator
from contextlib import contextmanager

from thriftpy2.thrift import TException
from thriftpy2.transport import TTransportException


class HBPagerError(Exception):
    """Base exception for all hbpager errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class TableNotFoundError(HBPagerError):
    """Raised when the HBase table does not exist."""

    def __init__(self, table_name: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Table '{table_name}' not found", original_error)
        self.table_name = table_name


class StoreUnavailableError(HBPagerError):
    """Raised when the Thrift gateway cannot be reached or drops the connection."""

    def __init__(
        self, message: str = "HBase store unavailable", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class RequestTimeoutError(HBPagerError):
    """Raised when a request to HBase times out."""

    def __init__(
        self, message: str = "Request timed out", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)


class InvalidFilterError(HBPagerError):
    """Raised when the region servers reject a filter string."""

    def __init__(
        self,
        message: str,
        filter_string: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.filter_string = filter_string


class IllegalArgumentError(HBPagerError):
    """Raised for invalid arguments reported by the Thrift service."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


class RowSerializationError(HBPagerError):
    """Raised when a row key, column or value cannot be encoded to bytes."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


def _server_message(error: Exception) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    return message or str(error)


@contextmanager
def handle_hbase_errors(
    table_name: str | None = None, filter_string: str | None = None
) -> Generator[None, None, None]:
    """
    Context manager that catches Thrift and socket errors
    and raises the appropriate HBPagerError subclass.

    Args:
        table_name: Optional table name for better error messages
        filter_string: Optional compiled filter, attached to filter errors

    Usage:
        with handle_hbase_errors(table_name="users"):
            table.row(b"row-1")
    """
    try:
        yield
    except HBPagerError:
        raise
    except TimeoutError as e:
        raise RequestTimeoutError(message=f"Request timed out: {e}", original_error=e) from e
    except TTransportException as e:
        message = _server_message(e)
        if e.type == TTransportException.TIMED_OUT or "timed out" in message.lower():
            raise RequestTimeoutError(message=message, original_error=e) from e
        raise StoreUnavailableError(message=message, original_error=e) from e
    except TException as e:
        # Service exceptions are generated from Hbase.thrift, so dispatch on the name
        error_code = type(e).__name__
        message = _server_message(e)

        if "TableNotFoundException" in message:
            raise TableNotFoundError(table_name=table_name or "unknown", original_error=e) from e

        if filter_string is not None and (
            "filter" in message.lower() or "parse" in message.lower()
        ):
            raise InvalidFilterError(
                message=message, filter_string=filter_string, original_error=e
            ) from e

        if error_code == "IllegalArgument":
            raise IllegalArgumentError(message=message, original_error=e) from e

        # Unknown error: wrap in generic HBPagerError
        raise HBPagerError(message=f"HBase error ({error_code}): {message}", original_error=e) from e
    except ConnectionError as e:
        raise StoreUnavailableError(message=str(e), original_error=e) from e

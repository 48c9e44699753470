import hashlib
import logging

# Create the library logger
logger = logging.getLogger("hbpager")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_key(key: bytes | str | None) -> str | None:
    """
    Redacts a row key for logging.
    Hashes the key so log lines can be correlated without revealing row contents.
    """
    if key is None:
        return None
    try:
        raw = key if isinstance(key, bytes) else str(key).encode("utf-8")
        return hashlib.sha256(raw).hexdigest()[:8]
    except Exception:
        return "<redaction_failed>"


def describe_range(start: bytes | None, stop: bytes | None) -> str:
    """Renders a redacted [start, stop) row range for log context."""
    return f"[{redact_key(start) or '-inf'}, {redact_key(stop) or '+inf'})"

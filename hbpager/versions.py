"""
Cell version retention for scans and gets.

Callers pass a plain integer; resolve_versions() maps it onto a
VersionPolicy. The sentinels match the store's 32-bit integer bounds.
"""

from dataclasses import dataclass
from typing import Literal

ALL_VERSIONS = 2**31 - 1
LATEST_VERSION = -(2**31)


@dataclass(frozen=True)
class VersionPolicy:
    """
    Resolved version retention instruction.

    Attributes:
        mode: "latest", "all" or "exact"
        count: Number of versions for "exact", None otherwise
    """

    mode: Literal["latest", "all", "exact"]
    count: int | None = None

    @property
    def max_versions(self) -> int:
        """The versions argument to send to the store."""
        if self.mode == "all":
            return ALL_VERSIONS
        if self.mode == "exact" and self.count is not None:
            return self.count
        return 1

    @property
    def latest_only(self) -> bool:
        return self.mode == "latest"


def resolve_versions(versions: int | None) -> VersionPolicy:
    """
    Maps a requested version count to a VersionPolicy.

    ALL_VERSIONS returns every stored version, LATEST_VERSION, None or any
    value <= 0 returns only the newest, anything else returns exactly that
    many of the most recent versions.
    """
    if versions == ALL_VERSIONS:
        return VersionPolicy(mode="all")
    if versions is None or versions == LATEST_VERSION or versions <= 0:
        return VersionPolicy(mode="latest")
    return VersionPolicy(mode="exact", count=versions)

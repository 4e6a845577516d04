"""Cluster health status enumeration."""

from enum import Enum
from typing import Optional


class ClusterStatus(Enum):
    """ElasticSearch cluster health status."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    def to_code(self) -> int:
        """
        Convert status to its numeric Graphite representation.

        Returns:
            int: 0 for green, 1 for yellow, 2 for red
        """
        return {
            ClusterStatus.GREEN: 0,
            ClusterStatus.YELLOW: 1,
            ClusterStatus.RED: 2
        }[self]

    @classmethod
    def parse(cls, value) -> Optional["ClusterStatus"]:
        """Return the matching status, or None for anything unrecognized."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

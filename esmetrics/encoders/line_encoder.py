"""Graphite plaintext line encoder for cluster health documents."""

import json
import logging
import time
from collections.abc import Mapping
from typing import Any, Optional

from ..utils.status import ClusterStatus


STATUS_KEYS = ("cluster_status", "status")


class LineEncoder:
    """
    Converts a decoded cluster health document into Carbon metric lines.

    Each top-level key becomes one line of the form
    "<namespace>.<key> <value> <timestamp>\\n". Categorical values that
    Graphite cannot chart (cluster name, timeout flag, health colour) are
    remapped to numbers first.
    """

    def __init__(self, namespace: str, logger: logging.Logger = None):
        """
        Initialize line encoder.

        Args:
            namespace: Graphite database prefix for every metric
            logger: Optional logger instance
        """
        self.namespace = namespace
        self.logger = logger or logging.getLogger(__name__)

    def encode(self, document: Any, now: Optional[float] = None) -> str:
        """
        Encode a health document into a multi-line Carbon payload.

        Args:
            document: Decoded JSON value; only mappings produce output
            now: Capture time in epoch seconds (defaults to current time)

        Returns:
            str: One line per top-level key, or "" for non-mapping input
        """
        timestamp = int(time.time() if now is None else now)

        if not isinstance(document, Mapping):
            self.logger.debug(
                f"Health document is {type(document).__name__}, not an object; nothing to encode"
            )
            return ""

        return "".join(
            self.format_line(key, self.encode_value(key, value), timestamp)
            for key, value in document.items()
        )

    def format_line(self, key: str, value: Any, timestamp: int) -> str:
        """Render one metric line."""
        return f"{self.namespace}.{key} {render_value(value)} {timestamp}\n"

    @staticmethod
    def encode_value(key: str, value: Any) -> Any:
        """
        Apply categorical remapping for well-known health fields.

        Values that match no rule are returned unchanged, including
        unrecognized status strings.
        """
        if key == "cluster_name":
            return 0

        if key == "timed_out":
            if value is True:
                return 1
            if value is False:
                return 0
            return value

        if key in STATUS_KEYS:
            status = ClusterStatus.parse(value)
            if status is not None:
                return status.to_code()

        return value


def render_value(value: Any) -> str:
    """
    Render a value in its natural text form.

    Booleans and null use their JSON spelling; whole floats drop the
    trailing ".0"; containers are dumped as compact JSON so that the
    line stays space-free.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def encode(document: Any, namespace: str, now: Optional[float] = None) -> str:
    """Encode a health document with a one-off LineEncoder."""
    return LineEncoder(namespace).encode(document, now=now)

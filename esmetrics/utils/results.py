"""Result data structures passed between pipeline stages."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple
import time


class FetchErrorKind(Enum):
    """Why a cluster health fetch failed."""

    CONNECT_FAILED = "connect_failed"  # no response received
    BAD_STATUS = "bad_status"
    READ_FAILED = "read_failed"
    PARSE_FAILED = "parse_failed"


class SendErrorKind(Enum):
    """Why a Carbon delivery failed."""

    CONNECT_FAILED = "connect_failed"
    WRITE_FAILED = "write_failed"


@dataclass
class FetchError:
    """Classified fetch failure."""

    kind: FetchErrorKind
    detail: str
    status_code: Optional[int] = None


@dataclass
class SendError:
    """Classified send failure."""

    kind: SendErrorKind
    detail: str


@dataclass
class FetchResult:
    """Outcome of one cluster health fetch."""

    url: str
    document: Any = None  # Decoded JSON value
    error: Optional[FetchError] = None
    timestamp: Optional[float] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SendResult:
    """Outcome of one Carbon delivery."""

    address: Tuple[str, int]
    bytes_sent: int = 0
    error: Optional[SendError] = None
    timestamp: Optional[float] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = time.time()

    @property
    def ok(self) -> bool:
        return self.error is None

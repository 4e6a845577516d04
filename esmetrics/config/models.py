"""Pydantic configuration models for the metrics shipper."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Tuple, Union
import re


# Connection timeout, in seconds
DEFAULT_TIMEOUT = 5

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|s|m|h)')
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Convert a duration such as "20s", "1m30s" or "500ms" to seconds.

    Plain numbers are taken as seconds.

    Raises:
        ValueError: If the string is not a valid duration
    """
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    if not text or _DURATION_PART.sub('', text):
        raise ValueError(f"Invalid duration: {value!r}")

    return sum(
        float(amount) * _DURATION_UNITS[unit]
        for amount, unit in _DURATION_PART.findall(text)
    )


class ElasticConfig(BaseModel):
    """ElasticSearch node to poll."""
    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(default=9200, ge=1, le=65535)

    @field_validator('host')
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Require a non-empty host."""
        if not v.strip():
            raise ValueError('ElasticSearch host must not be empty')
        return v.strip()

    @property
    def url(self) -> str:
        """Cluster health URL of the node."""
        return f"http://{self.host}:{self.port}/_cluster/health"


class GraphiteConfig(BaseModel):
    """Carbon endpoint receiving the metrics."""
    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(default=2003, ge=1, le=65535)
    database: str = "elasticsearch.cluster"  # Metric namespace prefix

    @field_validator('host', 'database')
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Require non-empty values."""
        if not v.strip():
            raise ValueError('Value must not be empty')
        return v.strip()

    @property
    def address(self) -> Tuple[str, int]:
        return (self.host, self.port)


class PollConfig(BaseModel):
    """Poll schedule and I/O timeout."""
    model_config = ConfigDict(frozen=True)

    interval_seconds: float = Field(default=20.0, gt=0)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    @field_validator('interval_seconds', 'timeout_seconds', mode='before')
    @classmethod
    def validate_duration(cls, v):
        """Accept "20s"-style durations as well as plain seconds."""
        if isinstance(v, str):
            return parse_duration(v)
        return v


class LoggingConfig(BaseModel):
    """Diagnostic output configuration."""
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    syslog: bool = False
    syslog_address: str = "/dev/log"
    syslog_tag: str = "esmetrics"

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return level


class EsMetricsConfig(BaseModel):
    """Root configuration model, immutable after startup."""
    model_config = ConfigDict(frozen=True)

    elastic: ElasticConfig
    graphite: GraphiteConfig
    poll: PollConfig = Field(default_factory=PollConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

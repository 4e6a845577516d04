"""Shared pytest configuration and fixtures."""

import pytest

from esmetrics.config.models import EsMetricsConfig
from esmetrics.utils.logger import setup_logger


@pytest.fixture
def config():
    """Configuration pointing at local test endpoints."""
    return EsMetricsConfig(
        elastic={"host": "es.test", "port": 9200},
        graphite={"host": "127.0.0.1", "port": 2003, "database": "elasticsearch.cluster"},
        poll={"interval_seconds": 0.01, "timeout_seconds": 1}
    )


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test")


@pytest.fixture
def health_document():
    """Typical _cluster/health response."""
    return {
        "cluster_name": "prod-search",
        "status": "yellow",
        "timed_out": False,
        "number_of_nodes": 3,
        "number_of_data_nodes": 3,
        "active_primary_shards": 25,
        "active_shards": 48,
        "relocating_shards": 0,
        "initializing_shards": 0,
        "unassigned_shards": 2,
        "active_shards_percent_as_number": 96.0
    }

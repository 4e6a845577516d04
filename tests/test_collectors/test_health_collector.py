"""Tests for HealthCollector."""

import json

import httpx
import pytest

from esmetrics.collectors.health_collector import HealthCollector
from esmetrics.utils.results import FetchErrorKind

# Fixtures imported from conftest.py: config, logger, health_document


class TrackedStream(httpx.AsyncByteStream):
    """Response body that records whether it was released."""

    def __init__(self, chunks, fail_after=False):
        self.chunks = chunks
        self.fail_after = fail_after
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.fail_after:
            raise httpx.ReadError("Connection reset by peer")

    async def aclose(self):
        self.closed = True


class BrokenStream(TrackedStream):
    """Response body that dies half way through."""

    def __init__(self):
        super().__init__([b'{"status": '], fail_after=True)


def make_collector(config, logger, handler):
    """Build a collector whose HTTP traffic goes to handler."""
    return HealthCollector(
        config.elastic.url,
        config.poll.timeout_seconds,
        logger,
        transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_fetch_success(config, logger, health_document):
    """200 with a JSON object yields the decoded document."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=health_document)

    result = await make_collector(config, logger, handler).fetch()

    assert result.ok
    assert result.error is None
    assert result.document == health_document
    assert result.url == "http://es.test:9200/_cluster/health"

    assert len(requests) == 1
    assert requests[0].method == "GET"
    assert str(requests[0].url) == "http://es.test:9200/_cluster/health"


@pytest.mark.asyncio
async def test_fetch_connect_failed(config, logger):
    """Connection refused is classified as CONNECT_FAILED."""
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    result = await make_collector(config, logger, handler).fetch()

    assert not result.ok
    assert result.document is None
    assert result.error.kind == FetchErrorKind.CONNECT_FAILED
    assert "Connection refused" in result.error.detail


@pytest.mark.asyncio
async def test_fetch_timeout_is_connect_failure(config, logger):
    """No response before the timeout counts as a connect failure."""
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.CONNECT_FAILED


@pytest.mark.asyncio
async def test_fetch_connect_failed_logs_error(config, logger, caplog):
    """An unreachable node is logged at error level."""
    logger.propagate = True

    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    with caplog.at_level("WARNING", logger="test"):
        await make_collector(config, logger, handler).fetch()

    assert any(r.levelname == "ERROR" for r in caplog.records)


@pytest.mark.asyncio
async def test_fetch_bad_status(config, logger, caplog):
    """Non-200 responses are BAD_STATUS with the code attached."""
    logger.propagate = True

    def handler(request):
        return httpx.Response(503, json={"error": "unavailable"})

    with caplog.at_level("WARNING", logger="test"):
        result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.BAD_STATUS
    assert result.error.status_code == 503
    assert "503" in result.error.detail
    assert any(r.levelname == "WARNING" for r in caplog.records)


@pytest.mark.asyncio
async def test_fetch_redirect_is_bad_status(config, logger):
    """Redirects are not followed; anything but 200 is rejected."""
    def handler(request):
        return httpx.Response(301, headers={"Location": "http://elsewhere/"})

    result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.BAD_STATUS
    assert result.error.status_code == 301


@pytest.mark.asyncio
async def test_fetch_read_failed(config, logger):
    """A body that breaks mid-stream is READ_FAILED."""
    def handler(request):
        return httpx.Response(200, stream=BrokenStream())

    result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.READ_FAILED


@pytest.mark.asyncio
async def test_fetch_parse_failed(config, logger):
    """Malformed JSON is PARSE_FAILED with the decoder message."""
    def handler(request):
        return httpx.Response(200, content=b'{"status": "green",')

    result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.PARSE_FAILED
    assert "Could not decode JSON data" in result.error.detail


@pytest.mark.asyncio
async def test_fetch_bad_status_releases_body(config, logger):
    """An unread error body is still closed."""
    stream = TrackedStream([b'{"error": "unavailable"}'])

    def handler(request):
        return httpx.Response(503, stream=stream)

    result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.BAD_STATUS
    assert stream.closed


@pytest.mark.asyncio
async def test_fetch_read_failed_releases_body(config, logger, caplog):
    """A broken body is closed and logged as a warning."""
    logger.propagate = True
    stream = BrokenStream()

    def handler(request):
        return httpx.Response(200, stream=stream)

    with caplog.at_level("WARNING", logger="test"):
        result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.READ_FAILED
    assert stream.closed
    assert [r.levelname for r in caplog.records] == ["WARNING"]


@pytest.mark.asyncio
async def test_fetch_success_releases_body(config, logger):
    stream = TrackedStream([b'{"status": "green"}'])

    def handler(request):
        return httpx.Response(200, stream=stream)

    result = await make_collector(config, logger, handler).fetch()

    assert result.document == {"status": "green"}
    assert stream.closed


@pytest.mark.asyncio
async def test_fetch_parse_failed_logs_warning(config, logger, caplog):
    logger.propagate = True

    def handler(request):
        return httpx.Response(200, content=b'not json')

    with caplog.at_level("WARNING", logger="test"):
        result = await make_collector(config, logger, handler).fetch()

    assert result.error.kind == FetchErrorKind.PARSE_FAILED
    assert [r.levelname for r in caplog.records] == ["WARNING"]


@pytest.mark.asyncio
async def test_fetch_non_object_json(config, logger):
    """Valid JSON that is not an object is still a successful fetch."""
    def handler(request):
        return httpx.Response(200, content=json.dumps([1, 2, 3]).encode())

    result = await make_collector(config, logger, handler).fetch()

    assert result.ok
    assert result.document == [1, 2, 3]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

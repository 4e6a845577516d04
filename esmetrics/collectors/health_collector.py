"""ElasticSearch cluster health collector."""

import json
import logging
from typing import Optional

import httpx

from ..utils.results import FetchError, FetchErrorKind, FetchResult


class HealthCollector:
    """Fetches and decodes the cluster health document of one node."""

    def __init__(
        self,
        url: str,
        timeout: float,
        logger: logging.Logger,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize health collector.

        Args:
            url: Cluster health URL
            timeout: Request timeout in seconds
            logger: Logger instance
            transport: Optional httpx transport (tests inject a mock one)
        """
        self.url = url
        self.timeout = timeout
        self.transport = transport
        self.logger = logger.getChild(self.__class__.__name__)

    async def fetch(self) -> FetchResult:
        """
        GET the cluster health document.

        No retries are made; the next poll tick is the retry.

        Returns:
            FetchResult: Decoded document, or the classified error
        """
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.timeout
            ) as client:
                async with client.stream("GET", self.url) as response:
                    if response.status_code != 200:
                        return self._failed(
                            FetchErrorKind.BAD_STATUS,
                            f"HTTP response code was not 200: "
                            f"{response.status_code} {response.reason_phrase}",
                            status_code=response.status_code
                        )

                    try:
                        body = await response.aread()
                    except httpx.HTTPError as e:
                        return self._failed(
                            FetchErrorKind.READ_FAILED,
                            f"Could not read response body: {e}"
                        )

        except httpx.RequestError as e:
            return self._failed(
                FetchErrorKind.CONNECT_FAILED,
                f"Could not connect to ElasticSearch server: {e}"
            )

        try:
            document = json.loads(body)
        except ValueError as e:
            return self._failed(
                FetchErrorKind.PARSE_FAILED,
                f"Could not decode JSON data: {e}"
            )

        self.logger.debug(f"Fetched cluster health ({len(body)} bytes)")
        return FetchResult(url=self.url, document=document)

    def _failed(
        self,
        kind: FetchErrorKind,
        detail: str,
        status_code: Optional[int] = None
    ) -> FetchResult:
        """Log a fetch failure and wrap it in a result."""
        extra = {"url": self.url, "error_type": kind.value}
        if status_code is not None:
            extra["status_code"] = status_code

        # An unreachable node is an error; a misbehaving one is a warning
        if kind == FetchErrorKind.CONNECT_FAILED:
            self.logger.error(detail, extra=extra)
        else:
            self.logger.warning(detail, extra=extra)

        return FetchResult(
            url=self.url,
            error=FetchError(kind=kind, detail=detail, status_code=status_code)
        )

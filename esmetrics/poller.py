"""Poll loop: fetch cluster health, encode it, ship it to Carbon."""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional, Set

from .collectors.health_collector import HealthCollector
from .config.models import EsMetricsConfig
from .encoders.line_encoder import LineEncoder
from .services.carbon_client import CarbonClient
from .utils.logger import setup_logger
from .utils.results import FetchResult, SendResult


class PollState(Enum):
    """Poll loop state."""

    IDLE = "idle"
    TICKING = "ticking"


class PollLoop:
    """
    Orchestrates the fetch → encode → send pipeline on a fixed interval.

    Each tick awaits the fetch, then hands the document to a short-lived
    delivery task (encode, then send) and returns. The interval sleep is
    not held up by delivery, so a slow Carbon server can overlap the next
    tick. The loop reports TICKING for as long as any fetch or delivery
    is in flight.
    """

    def __init__(
        self,
        config: EsMetricsConfig,
        logger: logging.Logger = None,
        collector: Optional[HealthCollector] = None,
        encoder: Optional[LineEncoder] = None,
        client: Optional[CarbonClient] = None,
        dry_run: bool = False
    ):
        """
        Initialize poll loop.

        Args:
            config: System configuration
            logger: Optional logger instance
            collector: Health collector (built from config if omitted)
            encoder: Line encoder (built from config if omitted)
            client: Carbon client (built from config if omitted)
            dry_run: If True, log payloads instead of sending them
        """
        self.config = config
        self.logger = logger or setup_logger("poller")
        self.dry_run = dry_run

        self.collector = collector or HealthCollector(
            config.elastic.url,
            config.poll.timeout_seconds,
            self.logger
        )
        self.encoder = encoder or LineEncoder(
            config.graphite.database,
            self.logger
        )
        self.client = client or CarbonClient(
            config.graphite.address,
            config.poll.timeout_seconds,
            self.logger
        )

        self._fetches_in_flight = 0
        self._deliveries: Set[asyncio.Task] = set()

    @property
    def state(self) -> PollState:
        """TICKING until every fetch and delivery has finished."""
        if self._fetches_in_flight or self._deliveries:
            return PollState.TICKING
        return PollState.IDLE

    @property
    def pending_deliveries(self) -> int:
        """Number of delivery tasks still in flight."""
        return len(self._deliveries)

    async def run_tick(self) -> Optional[asyncio.Task]:
        """
        Run one tick.

        Returns:
            The dispatched delivery task, or None if the fetch failed
        """
        self._fetches_in_flight += 1
        try:
            result = await self.collector.fetch()
            if not result.ok:
                return None

            task = asyncio.create_task(self._deliver(result))
            self._deliveries.add(task)
            task.add_done_callback(self._delivery_done)
            return task
        finally:
            self._fetches_in_flight -= 1

    async def run_once(self) -> bool:
        """
        Run one tick and wait for its delivery.

        Returns:
            bool: True if the metrics reached Carbon (or were logged in dry-run)
        """
        task = await self.run_tick()
        if task is None:
            return False

        send_result = await task
        return send_result is None or send_result.ok

    async def run_forever(self, max_ticks: Optional[int] = None):
        """
        Tick, sleep for the poll interval, repeat.

        Args:
            max_ticks: Stop after this many ticks (None runs until cancelled)
        """
        interval = self.config.poll.interval_seconds
        ticks = 0

        while max_ticks is None or ticks < max_ticks:
            try:
                await self.run_tick()
            except Exception as e:
                self.logger.error(
                    "Poll tick failed",
                    exc_info=True,
                    extra={
                        "error_type": type(e).__name__,
                        "error_message": str(e)
                    }
                )
            ticks += 1
            await asyncio.sleep(interval)

    def _delivery_done(self, task: asyncio.Task):
        """Forget a finished delivery task and report any crash."""
        self._deliveries.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            self.logger.error(
                "Metric delivery failed",
                exc_info=error,
                extra={
                    "error_type": type(error).__name__,
                    "error_message": str(error)
                }
            )

    async def _deliver(self, fetched: FetchResult) -> Optional[SendResult]:
        """Encode a fetched document and send it. Returns None in dry-run mode."""
        start_time = time.time()

        payload = self.encoder.encode(fetched.document)
        line_count = payload.count("\n")

        if self.dry_run:
            self.logger.info("DRY RUN - Carbon payload preview:")
            self.logger.info(payload)
            return None

        send_result = await self.client.send(payload)

        if send_result.ok:
            self.logger.info(
                f"Shipped {line_count} metrics",
                extra={
                    "line_count": line_count,
                    "bytes_sent": send_result.bytes_sent,
                    "duration_ms": round((time.time() - start_time) * 1000, 1)
                }
            )
        return send_result

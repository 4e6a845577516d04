"""Carbon plaintext protocol client for delivering metric lines."""

import asyncio
import logging
from typing import Tuple

from ..utils.results import SendError, SendErrorKind, SendResult


class CarbonClient:
    """
    Fire-and-forget client for a Graphite Carbon receiver.

    Every send opens a fresh TCP connection, writes the whole payload
    and closes the connection. Nothing is read back from the server.
    """

    def __init__(
        self,
        address: Tuple[str, int],
        timeout: float,
        logger: logging.Logger = None
    ):
        """
        Initialize Carbon client.

        Args:
            address: (host, port) of the Carbon receiver
            timeout: Connect timeout in seconds
            logger: Optional logger instance
        """
        self.host, self.port = address
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    @property
    def address(self) -> Tuple[str, int]:
        return (self.host, self.port)

    async def send(self, payload: str) -> SendResult:
        """
        Deliver a metric payload.

        Args:
            payload: Newline-terminated Carbon lines

        Returns:
            SendResult: bytes written, or the classified error
        """
        data = payload.encode("utf-8")

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            self.logger.warning(
                "Could not connect to Carbon server",
                extra={"carbon_address": f"{self.host}:{self.port}", "error_message": str(e)}
            )
            return SendResult(
                address=self.address,
                error=SendError(kind=SendErrorKind.CONNECT_FAILED, detail=str(e) or "timeout")
            )

        try:
            writer.write(data)
            await writer.drain()
        except OSError as e:
            self.logger.warning(
                f"Could not send data to Carbon server: {e}",
                extra={"carbon_address": f"{self.host}:{self.port}"}
            )
            return SendResult(
                address=self.address,
                error=SendError(kind=SendErrorKind.WRITE_FAILED, detail=str(e))
            )
        finally:
            await self._close(writer)

        self.logger.debug(f"Sent {len(data)} bytes to Carbon server")
        return SendResult(address=self.address, bytes_sent=len(data))

    async def _close(self, writer: asyncio.StreamWriter):
        """Close the connection; a reset peer at this point is only worth a debug line."""
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            self.logger.debug(f"Error while closing Carbon connection: {e}")

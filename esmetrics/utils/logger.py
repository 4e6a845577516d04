"""Structured JSON logging configuration."""

import logging
import logging.handlers
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter


def setup_logger(
    name: str = "esmetrics",
    level: str = "INFO",
    syslog_address: Optional[str] = None,
    syslog_tag: str = "esmetrics"
) -> logging.Logger:
    """
    Configure structured JSON logging.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        syslog_address: Unix socket path or "host:port" of a syslog daemon.
            When set, log records are also forwarded to syslog.
        syslog_tag: Program tag prepended to syslog messages

    Returns:
        logging.Logger: Configured logger instance

    Raises:
        OSError: If the syslog daemon cannot be reached
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    # Create console handler with JSON formatter
    handler = logging.StreamHandler(sys.stdout)
    formatter = JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        timestamp=True
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if syslog_address:
        logger.addHandler(_syslog_handler(syslog_address, syslog_tag))

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def _syslog_handler(address: str, tag: str) -> logging.Handler:
    """
    Build a syslog handler for a socket path or a host:port pair.

    Raises:
        OSError: If the syslog socket cannot be opened
    """
    if ":" in address:
        host, port = address.rsplit(":", 1)
        target = (host, int(port))
    else:
        target = address

    handler = logging.handlers.SysLogHandler(address=target)
    handler.ident = f"{tag}: "
    handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
    return handler

"""Main application entry point for the ElasticSearch to Graphite metrics shipper."""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .config.loader import ConfigLoader
from .config.models import EsMetricsConfig
from .poller import PollLoop
from .utils.logger import setup_logger


class EsMetricsApp:
    """
    Main metrics shipper application.

    Loads configuration, sets up logging and drives the poll loop.
    """

    def __init__(self, config: EsMetricsConfig, dry_run: bool = False):
        """
        Initialize application.

        Args:
            config: Resolved configuration
            dry_run: If True, log payloads instead of sending them

        Raises:
            OSError: If syslog logging is enabled but the daemon is unreachable
        """
        self.config = config
        self.dry_run = dry_run
        self.logger = setup_logger(
            "esmetrics",
            level=config.logging.level,
            syslog_address=config.logging.syslog_address if config.logging.syslog else None,
            syslog_tag=config.logging.syslog_tag
        )
        self.poll_loop = PollLoop(config, self.logger, dry_run=dry_run)

        self.logger.info(f"ElasticSearch cluster health URL: {config.elastic.url}")
        self.logger.info(f"Carbon server: {config.graphite.host}:{config.graphite.port}")
        self.logger.info(f"Poll period: {config.poll.interval_seconds:g}s")

    def run_once(self) -> int:
        """
        Run a single tick and wait for its delivery.

        Returns:
            int: Process exit code
        """
        try:
            delivered = asyncio.run(self.poll_loop.run_once())
        except Exception:
            self.logger.error("Single poll run failed", exc_info=True)
            return 1
        return 0 if delivered else 1

    def run_forever(self):
        """Poll until SIGINT/SIGTERM."""
        asyncio.run(self._serve())

    async def _serve(self):
        loop = asyncio.get_running_loop()
        main_task = asyncio.current_task()

        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, self._shutdown, signum, main_task)

        try:
            await self.poll_loop.run_forever()
        except asyncio.CancelledError:
            self.logger.info("Poll loop stopped")

    def _shutdown(self, signum: int, task: asyncio.Task):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, shutting down...")
        task.cancel()


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        description='Ship ElasticSearch cluster health metrics to Graphite',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Poll every 20s and send to Carbon
  esmetrics -eh es01.local -gh graphite.local

  # Run once and print the payload instead of sending it
  esmetrics -eh es01.local -gh graphite.local --run-once --dry-run

  # Use a config file, override the poll period
  esmetrics --config /etc/esmetrics.yaml -poll 1m
        """
    )

    parser.add_argument('-eh', '--elastic-host', help='IP, FQDN or hostname of your ElasticSearch host')
    parser.add_argument('-ep', '--elastic-port', type=int, help='ElasticSearch hosts port (default: 9200)')
    parser.add_argument('-gh', '--graphite-host', help='IP, FQDN or hostname of your Carbon host')
    parser.add_argument('-gp', '--graphite-port', type=int, help='Carbon hosts port (default: 2003)')
    parser.add_argument(
        '-gd', '--graphite-db',
        help='Graphite database name (default: elasticsearch.cluster)'
    )
    parser.add_argument('-poll', '--poll', help='Metrics poll interval, e.g. 20s or 1m (default: 20s)')
    parser.add_argument('--timeout', help='Connection timeout, e.g. 5 or 5s (default: 5)')

    parser.add_argument('--config', help='Path to optional YAML configuration file')
    parser.add_argument(
        '--run-once',
        action='store_true',
        help='Run one poll cycle and exit (no loop)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log the Carbon payload instead of sending it'
    )
    parser.add_argument(
        '--log-level',
        default=os.getenv('LOG_LEVEL'),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO or LOG_LEVEL env var)'
    )
    parser.add_argument(
        '--syslog',
        action='store_true',
        default=None,
        help='Also log to the local syslog daemon'
    )

    return parser


def config_from_args(args: argparse.Namespace) -> EsMetricsConfig:
    """
    Resolve configuration from an optional file and command-line flags.

    Raises:
        FileNotFoundError: If --config points to a missing file
        yaml.YAMLError: If the file is not valid YAML
        pydantic.ValidationError: If the resolved values are invalid
    """
    overrides: Dict[str, Dict[str, Any]] = {
        "elastic": {"host": args.elastic_host, "port": args.elastic_port},
        "graphite": {
            "host": args.graphite_host,
            "port": args.graphite_port,
            "database": args.graphite_db
        },
        "poll": {"interval_seconds": args.poll, "timeout_seconds": args.timeout},
        "logging": {"level": args.log_level, "syslog": args.syslog},
    }

    if args.config:
        return ConfigLoader.load_from_file(args.config, overrides)
    return ConfigLoader.load_from_dict({}, overrides)


def main(argv: Optional[List[str]] = None):
    """
    CLI entry point.

    Parses command-line arguments and starts the poll loop.
    """
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except FileNotFoundError as e:
        logging.error(str(e))
        sys.exit(1)
    except (yaml.YAMLError, ValidationError) as e:
        logging.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        app = EsMetricsApp(config, dry_run=args.dry_run)
    except OSError as e:
        logging.error(f"Could not establish connection to the system log daemon: {e}")
        sys.exit(1)

    if args.run_once:
        sys.exit(app.run_once())

    app.run_forever()


if __name__ == '__main__':
    main()

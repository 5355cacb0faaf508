"""Main application entry point for the AWS EC2 price exporter."""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from prometheus_client import CollectorRegistry

from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .config.settings import Settings
from .exporter import PriceExporter
from .fetchers.base import PriceFetcher
from .fetchers.ondemand import OnDemandPriceFetcher
from .fetchers.spot import SpotPriceFetcher
from .regions import RegionDiscoveryError, resolve_regions
from .scrape.cache import CacheGate
from .scrape.coordinator import ScrapeCoordinator
from .scrape.registry import MetricRegistry
from .server import create_app, make_http_server
from .utils.lifecycle import InstanceLifecycle
from .utils.logger import configure_logging


def build_fetchers(config: ExporterConfig, logger: logging.Logger) -> List[PriceFetcher]:
    """Instantiate the fetch adapters selected by the lifecycle filter."""
    fetchers: List[PriceFetcher] = []

    if config.lifecycle_enabled(InstanceLifecycle.SPOT.value):
        fetchers.append(SpotPriceFetcher(
            config.product_descriptions,
            config.api_timeout_seconds,
            logger
        ))

    if config.lifecycle_enabled(InstanceLifecycle.ONDEMAND.value):
        fetchers.append(OnDemandPriceFetcher(
            config.operating_systems,
            config.api_timeout_seconds,
            logger
        ))

    return fetchers


def build_exporter(
    config: ExporterConfig,
    regions: List[str],
    logger: logging.Logger
) -> PriceExporter:
    """Wire fetchers, coordinator, registry and cache gate into one exporter."""
    coordinator = ScrapeCoordinator(
        build_fetchers(config, logger),
        regions,
        logger,
        allowed_regions=config.regions,
        max_workers=config.max_workers
    )
    return PriceExporter(
        coordinator,
        MetricRegistry(),
        CacheGate(config.cache_seconds),
        logger
    )


class ExporterApp:
    """
    Price exporter application.

    Loads configuration, resolves regions and serves the metrics endpoint until
    interrupted.
    """

    def __init__(self, config: ExporterConfig, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.server = None

        self.logger.info(
            "Starting AWS EC2 Price exporter",
            extra={
                "log_level": config.log_level,
                "product_descriptions": config.product_descriptions,
                "operating_systems": config.operating_systems,
                "lifecycles": config.lifecycles or ["spot", "ondemand"],
                "cache": config.cache_seconds,
            }
        )

        default_region = Settings.get("AWS_REGION", "us-east-1")
        regions = resolve_regions(config, default_region, self.logger)

        self.exporter = build_exporter(config, regions, self.logger)
        self.registry = CollectorRegistry()
        self.registry.register(self.exporter)

    def run_once(self) -> str:
        """Poll the exporter once and return the exposition text."""
        return self.exporter.render(self.registry).decode("utf-8")

    def serve(self) -> None:
        """Serve HTTP until SIGTERM/SIGINT."""
        app = create_app(self.registry, self.config.metrics_path)
        self.server = make_http_server(app, self.config.host, self.config.port)

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.logger.info(
            f"Starting metric http endpoint [address={self.config.listen_address}, "
            f"path={self.config.metrics_path}]"
        )
        try:
            self.server.serve_forever()
        finally:
            self.server.server_close()
            self.logger.info("HTTP server stopped")

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        if self.server is not None:
            # shutdown() blocks until serve_forever returns, so it cannot run on that thread
            threading.Thread(target=self.server.shutdown, daemon=True).start()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line options; unset options are None so lower layers apply."""
    parser = argparse.ArgumentParser(
        description='Prometheus exporter for AWS EC2 spot and on-demand prices',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve metrics for all enabled regions
  ec2-price-exporter

  # Two regions, spot only, cache results for 5 minutes
  ec2-price-exporter --regions us-east-1,eu-west-1 --lifecycles spot --cache 300

  # Scrape once, print the exposition and exit
  ec2-price-exporter --regions us-east-1 --run-once
        """
    )

    parser.add_argument('--config', help='Optional YAML configuration file')
    parser.add_argument('--listen-address', dest='listen_address',
                        help='The address to listen on for HTTP requests (default: :8080)')
    parser.add_argument('--metrics-path', dest='metrics_path',
                        help='Path to metrics endpoint (default: /metrics)')
    parser.add_argument('--log-level', dest='log_level',
                        help='Log level: DEBUG, INFO, WARNING, ERROR (default: INFO)')
    parser.add_argument('--product-descriptions', dest='product_descriptions',
                        help='Comma separated list of product descriptions, used to filter spot '
                             'instances. Accepted values: Linux/UNIX, SUSE Linux, Windows, '
                             'Linux/UNIX (Amazon VPC), SUSE Linux (Amazon VPC), Windows (Amazon VPC)')
    parser.add_argument('--operating-systems', dest='operating_systems',
                        help='Comma separated list of operating systems, used to filter ondemand '
                             'instances. Accepted values: Linux, RHEL, SUSE, Windows')
    parser.add_argument('--regions',
                        help='Comma separated list of AWS regions to get pricing for (defaults to all enabled)')
    parser.add_argument('--partitions',
                        help='Comma separated list of AWS partitions to restrict regions to')
    parser.add_argument('--lifecycles',
                        help='Comma separated list of lifecycles (spot, ondemand) to get pricing for '
                             '(defaults to all)')
    parser.add_argument('--cache', dest='cache_seconds', type=int,
                        help='How long results are cached, in seconds (default: 0, always scrape)')
    parser.add_argument('--run-once', action='store_true',
                        help='Scrape once, print the metrics and exit')

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ExporterConfig:
    """Layer environment defaults, the optional file and command line flags."""
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key not in ('config', 'run_once') and value is not None
    }
    return ConfigLoader.from_sources(
        args.config,
        overrides,
        defaults=Settings.option_defaults()
    )


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entry point.

    Configuration and region discovery errors are fatal before serving.
    """
    args = parse_args(argv)
    bootstrap_logger = configure_logging()

    try:
        config = load_config(args)
    except Exception as e:
        bootstrap_logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logger = configure_logging(config.log_level)

    try:
        app = ExporterApp(config, logger)
    except RegionDiscoveryError as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)

    if args.run_once:
        sys.stdout.write(app.run_once())
        sys.exit(0)

    app.serve()


if __name__ == '__main__':
    main()

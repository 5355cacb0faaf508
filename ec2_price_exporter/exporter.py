"""Prometheus collector facade over the scrape coordinator and metric registry."""

from typing import Iterator, List, Optional
import logging
import threading

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .scrape.cache import CacheGate
from .scrape.coordinator import ScrapeCoordinator
from .scrape.registry import MetricFamily, MetricRegistry
from .scrape.session import ScrapeSession


NAMESPACE = "aws_pricing"


class PriceExporter(Collector):
    """
    Collector polled by the Prometheus client on every scrape request.

    Each poll consults the cache gate, rebuilds the metric registry when a scrape
    is due, and serializes the registry plus scrape health gauges. Polls are
    serialized by a single lock so no poll observes a half-rebuilt registry.
    """

    def __init__(
        self,
        coordinator: ScrapeCoordinator,
        registry: MetricRegistry,
        cache_gate: CacheGate,
        logger: logging.Logger,
        namespace: str = NAMESPACE
    ):
        """
        Initialize exporter.

        Args:
            coordinator: Scrape coordinator producing the record stream
            registry: Metric registry owned by this exporter
            cache_gate: TTL gate deciding when to scrape
            logger: Logger instance
            namespace: Prefix for every exported metric name
        """
        self.coordinator = coordinator
        self.registry = registry
        self.cache_gate = cache_gate
        self.namespace = namespace
        self.logger = logger.getChild(self.__class__.__name__)

        self.session = ScrapeSession()
        self._poll_lock = threading.Lock()

    def _name(self, metric_name: str) -> str:
        return f"{self.namespace}_{metric_name}"

    def describe(self) -> Iterator[Metric]:
        """
        Yield static metric descriptors without scraping.

        Also keeps prometheus_client from calling collect() at registration time.
        """
        for name, (documentation, label_names) in sorted(self.registry.definitions.items()):
            yield GaugeMetricFamily(self._name(name), documentation, labels=label_names)
        yield from self._health_metrics(with_samples=False)

    def collect(self) -> Iterator[Metric]:
        """
        Scrape if due and yield the current snapshot.

        The whole gate/scrape/serialize path runs under the poll lock; metrics are
        materialized before the lock is released.
        """
        with self._poll_lock:
            now = self.cache_gate.now()
            if self.cache_gate.is_due(now):
                self._refresh()
                self.cache_gate.mark_scraped(now)
            else:
                self.logger.debug("Serving cached prices, next scrape not yet due")

            metrics = [self._family_metric(family) for family in self.registry.families()]
            metrics.extend(self._health_metrics())

        yield from metrics

    def _refresh(self) -> None:
        """Rebuild the registry from a full scrape cycle."""
        self.registry.reset()
        for record in self.coordinator.scrape(self.session):
            self.registry.ingest(record)

        if self.session.error_count:
            self.logger.warning(
                f"Scrape finished with {self.session.error_count} error(s)",
                extra=self.session.summary()
            )

    def _family_metric(self, family: MetricFamily) -> GaugeMetricFamily:
        metric = GaugeMetricFamily(
            self._name(family.name),
            family.documentation or f"{family.name} reported by the price exporter.",
            labels=family.label_names
        )
        for labels, value in family.samples():
            metric.add_metric(list(labels), value)
        return metric

    def _health_metrics(self, with_samples: bool = True) -> List[Metric]:
        duration = GaugeMetricFamily(
            self._name("scrape_duration_seconds"),
            "The scrape duration."
        )
        total = CounterMetricFamily(
            self._name("scrapes"),
            "Total AWS pricing scrapes."
        )
        errors = GaugeMetricFamily(
            self._name("scrape_error"),
            "Number of errors during the last scrape."
        )
        timestamp = GaugeMetricFamily(
            self._name("last_scrape_timestamp_seconds"),
            "Unix time the last scrape finished."
        )

        if with_samples:
            duration.add_metric([], self.session.duration_seconds)
            total.add_metric([], self.coordinator.total_scrapes)
            errors.add_metric([], self.session.error_count)
            timestamp.add_metric([], self.session.last_scrape_timestamp or 0.0)

        return [duration, total, errors, timestamp]

    def render(self, registry: Optional[CollectorRegistry] = None) -> bytes:
        """
        Poll once and return the text exposition.

        Args:
            registry: Registry this exporter is registered with; a private one is
                created when omitted

        Returns:
            bytes: Prometheus text format
        """
        if registry is None:
            registry = CollectorRegistry()
            registry.register(self)
        return generate_latest(registry)

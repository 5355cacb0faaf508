"""Scrape coordinator: concurrent fan-out over price dimensions."""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Iterator, List, Optional, Tuple
import logging
import queue
import threading

from ..fetchers.base import (
    FetchSessionError,
    FetchTransportError,
    PriceFetcher,
    RecordParseError,
)
from ..utils.metrics import Dimension, ResultRecord
from .session import ErrorKind, ScrapeSession


# Posted by every unit when it finishes, successfully or not
_UNIT_DONE = object()


class ScrapeCoordinator:
    """
    Fans one fetch unit out per dimension and merges their records into one stream.

    Units run on a thread pool and only write to the record stream; they never
    touch the metric registry. The stream ends once every launched unit has
    posted its completion marker.
    """

    def __init__(
        self,
        fetchers: List[PriceFetcher],
        regions: Iterable[str],
        logger: logging.Logger,
        allowed_regions: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None
    ):
        """
        Initialize scrape coordinator.

        Args:
            fetchers: Enabled fetch adapters (spot, on-demand)
            regions: Regions to scrape
            logger: Logger instance
            allowed_regions: Optional allow-list; empty or None allows every region
            max_workers: Optional cap on concurrently running units; None runs every
                unit at once
        """
        self.fetchers = list(fetchers)
        self.regions = list(regions)
        self.allowed_regions = set(allowed_regions or [])
        self.max_workers = max_workers
        self.logger = logger.getChild(self.__class__.__name__)

        self._counter_lock = threading.Lock()
        self.total_scrapes = 0

    def _in_regions(self, region: str) -> bool:
        return not self.allowed_regions or region in self.allowed_regions

    def units(self) -> List[Tuple[PriceFetcher, Dimension]]:
        """Return every (fetcher, dimension) pair a scrape launches."""
        regions = []
        for region in self.regions:
            if not self._in_regions(region):
                self.logger.debug(f"Skipping region {region}")
                continue
            regions.append(region)

        return [
            (fetcher, dimension)
            for fetcher in self.fetchers
            for dimension in fetcher.dimensions(regions)
        ]

    def scrape(self, session: ScrapeSession) -> Iterator[ResultRecord]:
        """
        Start a scrape cycle and return its record stream.

        The total scrape counter is incremented and the session reset before this
        returns. The session is finalized once the stream is exhausted.

        Args:
            session: Health state to reset and fill for this cycle

        Returns:
            Iterator[ResultRecord]: Records from all units, in arrival order
        """
        with self._counter_lock:
            self.total_scrapes += 1
        session.start()

        units = self.units()
        self.logger.info(f"Starting scrape of {len(units)} unit(s)")
        return self._drain(units, session)

    def _drain(
        self,
        units: List[Tuple[PriceFetcher, Dimension]],
        session: ScrapeSession
    ) -> Iterator[ResultRecord]:
        stream: "queue.Queue" = queue.Queue()

        if units:
            executor = ThreadPoolExecutor(
                max_workers=min(self.max_workers or len(units), len(units)),
                thread_name_prefix="price-scrape"
            )
            try:
                # Launch everything first; the only join point is the drain below
                for fetcher, dimension in units:
                    executor.submit(self._run_unit, fetcher, dimension, session, stream)

                pending = len(units)
                while pending:
                    item = stream.get()
                    if item is _UNIT_DONE:
                        pending -= 1
                        continue
                    session.record_delivered()
                    yield item
            finally:
                executor.shutdown(wait=True)

        session.finish()
        self.logger.info("Scrape completed", extra=session.summary())

    def _run_unit(
        self,
        fetcher: PriceFetcher,
        dimension: Dimension,
        session: ScrapeSession,
        stream: "queue.Queue"
    ) -> None:
        """Drive one fetcher through all pages of one dimension."""
        try:
            context = fetcher.open(dimension)

            for entry in fetcher.entries(context):
                try:
                    records = fetcher.parse(context, entry)
                except RecordParseError as e:
                    self.logger.error(f"Dropping record [unit={dimension}]: {e}")
                    session.record_error(ErrorKind.PARSE)
                    continue

                for record in records:
                    stream.put(record)

        except FetchSessionError as e:
            self.logger.error(f"Abandoning unit [unit={dimension}]: {e}")
            session.record_error(ErrorKind.SESSION)
        except FetchTransportError as e:
            self.logger.error(f"Abandoning remaining pages [unit={dimension}]: {e}")
            session.record_error(ErrorKind.TRANSPORT)
        except Exception as e:
            self.logger.error(f"Unit failed [unit={dimension}]: {e}", exc_info=True)
            session.record_error(ErrorKind.TRANSPORT)
        finally:
            stream.put(_UNIT_DONE)

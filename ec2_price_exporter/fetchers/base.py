"""Base fetch adapter for all AWS price sources."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, List
import logging

from botocore.config import Config

from ..utils.lifecycle import InstanceLifecycle
from ..utils.metrics import Dimension, ResultRecord


class FetchError(Exception):
    """Base class for errors raised by fetch adapters."""


class FetchSessionError(FetchError):
    """Provider credentials or clients could not be set up for a dimension."""


class FetchTransportError(FetchError):
    """A result page could not be fetched."""


class RecordParseError(FetchError):
    """A single raw price entry is malformed."""


def client_config(api_timeout_seconds: float) -> Config:
    """
    Build the botocore client configuration shared by all fetchers.

    Failed calls are not retried, and each call is bounded by the timeout so a
    hung connection cannot stall a scrape.
    """
    return Config(
        connect_timeout=api_timeout_seconds,
        read_timeout=api_timeout_seconds,
        retries={"total_max_attempts": 1, "mode": "standard"},
    )


class PriceFetcher(ABC):
    """
    Abstract base class for price fetch adapters.

    A fetch unit runs ``open`` once, then iterates ``entries`` and hands every raw
    entry to ``parse``. Each step reports failures through its own exception type
    so the coordinator can decide how much of the unit to abandon.
    """

    lifecycle: InstanceLifecycle

    def __init__(self, api_timeout_seconds: float, logger: logging.Logger):
        """
        Initialize base fetcher.

        Args:
            api_timeout_seconds: Connect/read timeout for every API call
            logger: Logger instance
        """
        self.api_timeout_seconds = api_timeout_seconds
        self.logger = logger.getChild(self.__class__.__name__)

    @abstractmethod
    def dimensions(self, regions: Iterable[str]) -> List[Dimension]:
        """Return the fetch units this fetcher contributes for the given regions."""

    @abstractmethod
    def open(self, dimension: Dimension) -> Any:
        """
        Prepare clients for one dimension.

        Returns:
            Any: Context passed to ``entries`` and ``parse``

        Raises:
            FetchSessionError: If clients or credentials cannot be set up
        """

    @abstractmethod
    def entries(self, context: Any) -> Iterator[Any]:
        """
        Lazily yield raw price entries across all result pages.

        Raises:
            FetchTransportError: If a page fetch fails; entries already yielded stand
        """

    @abstractmethod
    def parse(self, context: Any, entry: Any) -> List[ResultRecord]:
        """
        Convert one raw entry into records.

        Raises:
            RecordParseError: If the entry is malformed
        """

    def _client_config(self) -> Config:
        return client_config(self.api_timeout_seconds)


def fetch_pages(paginator, region: str, result_key: str, **kwargs) -> Iterator[Any]:
    """
    Iterate a boto3 paginator, yielding the items under ``result_key``.

    Any error while requesting a page is raised as FetchTransportError so callers
    only deal with the fetcher error hierarchy.
    """
    pages = iter(paginator.paginate(**kwargs))
    while True:
        try:
            page = next(pages)
        except StopIteration:
            return
        except Exception as e:
            raise FetchTransportError(f"page fetch failed [region={region}]: {e}") from e

        for item in page.get(result_key, []):
            yield item

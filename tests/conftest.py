"""Shared pytest configuration and fixtures."""

import pytest

from ec2_price_exporter.fetchers.base import (
    FetchSessionError,
    FetchTransportError,
    PriceFetcher,
    RecordParseError,
)
from ec2_price_exporter.utils.lifecycle import InstanceLifecycle
from ec2_price_exporter.utils.logger import configure_logging
from ec2_price_exporter.utils.metrics import CURRENT_PRICE, Dimension, ResultRecord


class FakeFetcher(PriceFetcher):
    """
    Scripted fetch adapter.

    ``pages`` maps region -> list of pages; a page is a list of entries
    ``{"type", "az", "price"}`` or an Exception, which fails the unit at that page.
    """

    lifecycle = InstanceLifecycle.SPOT

    def __init__(self, pages, logger, fail_open=()):
        super().__init__(1.0, logger)
        self.pages = pages
        self.fail_open = set(fail_open)
        self.opened = []

    def dimensions(self, regions):
        return [Dimension(self.lifecycle, region) for region in regions]

    def open(self, dimension):
        self.opened.append(dimension.region)
        if dimension.region in self.fail_open:
            raise FetchSessionError(f"no credentials for {dimension.region}")
        return dimension

    def entries(self, dimension):
        for page in self.pages.get(dimension.region, []):
            if isinstance(page, Exception):
                raise FetchTransportError(str(page))
            for entry in page:
                yield entry

    def parse(self, dimension, entry):
        try:
            value = float(entry["price"])
        except ValueError as e:
            raise RecordParseError(str(e)) from e
        return [ResultRecord.build(
            CURRENT_PRICE,
            value,
            region=dimension.region,
            availability_zone=entry["az"],
            instance_type=entry["type"],
        )]


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def logger():
    """Create logger for tests."""
    return configure_logging("DEBUG", name="test")


@pytest.fixture
def make_fetcher(logger):
    """Factory for scripted fetchers."""
    def factory(pages, fail_open=()):
        return FakeFetcher(pages, logger, fail_open=fail_open)
    return factory


@pytest.fixture
def clock():
    return FakeClock()

"""Spot price fetcher via EC2 DescribeSpotPriceHistory."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, List
import logging

import boto3

from ..utils.lifecycle import InstanceLifecycle
from ..utils.metrics import CURRENT_PRICE, Dimension, ResultRecord
from .base import FetchSessionError, PriceFetcher, RecordParseError, fetch_pages


@dataclass
class SpotContext:
    dimension: Dimension
    ec2_client: Any


class SpotPriceFetcher(PriceFetcher):
    """Fetch adapter for current spot prices, one unit per region."""

    lifecycle = InstanceLifecycle.SPOT

    def __init__(
        self,
        product_descriptions: List[str],
        api_timeout_seconds: float,
        logger: logging.Logger
    ):
        """
        Initialize spot fetcher.

        Args:
            product_descriptions: Product descriptions to filter price history by
            api_timeout_seconds: Connect/read timeout for every API call
            logger: Logger instance
        """
        super().__init__(api_timeout_seconds, logger)
        self.product_descriptions = list(product_descriptions)

    def dimensions(self, regions: Iterable[str]) -> List[Dimension]:
        return [Dimension(self.lifecycle, region) for region in regions]

    def open(self, dimension: Dimension) -> SpotContext:
        """Create the regional EC2 client."""
        try:
            session = boto3.session.Session(region_name=dimension.region)
            if session.get_credentials() is None:
                raise FetchSessionError(f"no AWS credentials available [region={dimension.region}]")
            ec2_client = session.client('ec2', config=self._client_config())
        except FetchSessionError:
            raise
        except Exception as e:
            raise FetchSessionError(
                f"error while initializing aws client [region={dimension.region}]: {e}"
            ) from e

        return SpotContext(dimension=dimension, ec2_client=ec2_client)

    def entries(self, context: SpotContext) -> Iterator[dict]:
        """Yield spot price history entries starting now, across all pages."""
        self.logger.debug(f"querying spot prices [region={context.dimension.region}]")
        paginator = context.ec2_client.get_paginator('describe_spot_price_history')
        return fetch_pages(
            paginator,
            context.dimension.region,
            'SpotPriceHistory',
            StartTime=datetime.now(timezone.utc),
            ProductDescriptions=self.product_descriptions,
        )

    def parse(self, context: SpotContext, entry: dict) -> List[ResultRecord]:
        """
        Convert a SpotPriceHistory entry into a current_price record.

        Args:
            context: Unit context
            entry: Raw entry as returned by boto3

        Returns:
            List[ResultRecord]: A single record

        Raises:
            RecordParseError: If required fields are missing or the price is not numeric
        """
        region = context.dimension.region
        az = entry.get('AvailabilityZone')
        instance_type = entry.get('InstanceType')
        raw_price = entry.get('SpotPrice')

        if not az or not instance_type or raw_price is None:
            raise RecordParseError(
                f"incomplete spot price entry [region={region}, az={az}, type={instance_type}]"
            )

        try:
            value = float(raw_price)
        except (TypeError, ValueError) as e:
            raise RecordParseError(
                f"error while parsing spot price value from API response "
                f"[region={region}, az={az}, type={instance_type}]: {e}"
            ) from e

        self.logger.debug(
            f"Creating new metric: {CURRENT_PRICE}{{region={region}, az={az}, "
            f"instance_type={instance_type}, product_description={entry.get('ProductDescription', '')}}} = {value}"
        )

        return [ResultRecord.build(
            CURRENT_PRICE,
            value,
            instance_type=instance_type,
            region=region,
            availability_zone=az,
            instance_lifecycle=self.lifecycle.value,
            product_description=entry.get('ProductDescription', ''),
        )]

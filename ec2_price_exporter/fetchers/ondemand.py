"""On-demand price fetcher via the AWS Price List GetProducts API."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List
import logging

import boto3
from pydantic import BaseModel, ValidationError

from ..utils.lifecycle import InstanceLifecycle
from ..utils.metrics import CURRENT_PRICE, Dimension, ResultRecord
from .base import FetchSessionError, PriceFetcher, RecordParseError, fetch_pages


# Offer term and rate codes for the plain hourly on-demand rate
TERM_ON_DEMAND = "JRTCKXETXF"
TERM_PER_HOUR = "6YS6EN2CT7"

# The Price List API is only served from a few regions
PRICING_REGION = "us-east-1"


class PriceDimension(BaseModel):
    """Rate entry inside an offer term."""
    unit: str = ""
    description: str = ""
    pricePerUnit: Dict[str, str]


class OfferTerm(BaseModel):
    """Offer term for one SKU."""
    offerTermCode: str = ""
    priceDimensions: Dict[str, PriceDimension]


class Product(BaseModel):
    """Product section of a price list entry."""
    sku: str
    productFamily: str = ""
    attributes: Dict[str, str]


class Terms(BaseModel):
    """Terms section; only on-demand terms are read."""
    OnDemand: Dict[str, OfferTerm]


class PriceListItem(BaseModel):
    """One GetProducts price list entry."""
    serviceCode: str = ""
    product: Product
    terms: Terms

    @property
    def instance_type(self) -> str:
        return self.product.attributes.get("instanceType", "")

    def hourly_usd(self) -> str:
        """
        Return the raw hourly on-demand USD price.

        Raises:
            KeyError: If the on-demand term, hourly rate or USD price is absent
        """
        sku_on_demand = f"{self.product.sku}.{TERM_ON_DEMAND}"
        sku_per_hour = f"{sku_on_demand}.{TERM_PER_HOUR}"
        term = self.terms.OnDemand[sku_on_demand]
        return term.priceDimensions[sku_per_hour].pricePerUnit["USD"]


@dataclass
class OnDemandContext:
    dimension: Dimension
    pricing_client: Any
    availability_zones: List[str]


class OnDemandPriceFetcher(PriceFetcher):
    """Fetch adapter for on-demand prices, one unit per region and operating system."""

    lifecycle = InstanceLifecycle.ONDEMAND

    def __init__(
        self,
        operating_systems: List[str],
        api_timeout_seconds: float,
        logger: logging.Logger
    ):
        """
        Initialize on-demand fetcher.

        Args:
            operating_systems: Operating systems to filter price lists by
            api_timeout_seconds: Connect/read timeout for every API call
            logger: Logger instance
        """
        super().__init__(api_timeout_seconds, logger)
        self.operating_systems = list(operating_systems)

    def dimensions(self, regions: Iterable[str]) -> List[Dimension]:
        return [
            Dimension(self.lifecycle, region, operating_system)
            for region in regions
            for operating_system in self.operating_systems
        ]

    def open(self, dimension: Dimension) -> OnDemandContext:
        """Create clients and resolve the region's availability zones."""
        try:
            session = boto3.session.Session(region_name=dimension.region)
            if session.get_credentials() is None:
                raise FetchSessionError(f"no AWS credentials available [region={dimension.region}]")
            pricing_client = session.client(
                'pricing', region_name=PRICING_REGION, config=self._client_config()
            )
            ec2_client = session.client('ec2', config=self._client_config())
            availability_zones = self._get_azs(ec2_client, dimension.region)
        except FetchSessionError:
            raise
        except Exception as e:
            raise FetchSessionError(
                f"error while initializing aws clients [region={dimension.region}]: {e}"
            ) from e

        return OnDemandContext(
            dimension=dimension,
            pricing_client=pricing_client,
            availability_zones=availability_zones
        )

    def _get_azs(self, ec2_client, region: str) -> List[str]:
        response = ec2_client.describe_availability_zones(
            Filters=[{'Name': 'group-name', 'Values': [region]}]
        )
        return [az['ZoneName'] for az in response.get('AvailabilityZones', [])]

    def entries(self, context: OnDemandContext) -> Iterator[str]:
        """Yield raw JSON price list entries for the unit's region and operating system."""
        dimension = context.dimension
        self.logger.debug(
            f"querying on-demand prices [region={dimension.region}, os={dimension.operating_system}]"
        )
        paginator = context.pricing_client.get_paginator('get_products')
        return fetch_pages(
            paginator,
            dimension.region,
            'PriceList',
            ServiceCode='AmazonEC2',
            Filters=self._filters(dimension),
            PaginationConfig={'PageSize': 100},
        )

    @staticmethod
    def _filters(dimension: Dimension) -> List[dict]:
        terms = [
            ('regionCode', dimension.region),
            ('capacitystatus', 'Used'),
            ('tenancy', 'Shared'),
            ('preInstalledSw', 'NA'),
            ('operatingSystem', dimension.operating_system),
        ]
        return [{'Type': 'TERM_MATCH', 'Field': field, 'Value': value} for field, value in terms]

    def parse(self, context: OnDemandContext, entry: str) -> List[ResultRecord]:
        """
        Decode a price list entry into one record per availability zone.

        Args:
            context: Unit context
            entry: JSON document as returned in GetProducts PriceList

        Returns:
            List[ResultRecord]: Records for every availability zone in the region

        Raises:
            RecordParseError: If the document does not match the expected schema
                or the hourly price is missing or not numeric
        """
        region = context.dimension.region
        try:
            item = PriceListItem.model_validate_json(entry)
        except ValidationError as e:
            raise RecordParseError(f"malformed price list entry [region={region}]: {e}") from e

        if not item.instance_type:
            raise RecordParseError(f"price list entry without instanceType [region={region}, sku={item.product.sku}]")

        try:
            value = float(item.hourly_usd())
        except (KeyError, ValueError) as e:
            raise RecordParseError(
                f"error while parsing on-demand price value from API response "
                f"[region={region}, type={item.instance_type}]: {e}"
            ) from e

        attributes = item.product.attributes
        records = []
        for az in context.availability_zones:
            self.logger.debug(
                f"Creating new metric: {CURRENT_PRICE}{{region={region}, az={az}, "
                f"instance_type={item.instance_type}, operating_system={attributes.get('operatingSystem', '')}}} = {value}"
            )
            records.append(ResultRecord.build(
                CURRENT_PRICE,
                value,
                instance_type=item.instance_type,
                region=region,
                availability_zone=az,
                instance_lifecycle=self.lifecycle.value,
                operating_system=attributes.get('operatingSystem', ''),
                product_description=attributes.get('productDescription', ''),
            ))
        return records

"""Region discovery and partition filtering."""

from typing import List
import logging

import boto3
from botocore.exceptions import UnknownRegionError

from .config.models import ExporterConfig


class RegionDiscoveryError(Exception):
    """Enabled regions could not be listed at startup."""


def discover_regions(default_region: str, logger: logging.Logger) -> List[str]:
    """
    List regions enabled for the account.

    Args:
        default_region: Region used for the DescribeRegions call
        logger: Logger instance

    Returns:
        List[str]: Enabled region names

    Raises:
        RegionDiscoveryError: If the regions cannot be listed
    """
    try:
        ec2_client = boto3.client('ec2', region_name=default_region)
        response = ec2_client.describe_regions(AllRegions=False)
    except Exception as e:
        raise RegionDiscoveryError(f"error while listing available regions: {e}") from e

    regions = [region['RegionName'] for region in response.get('Regions', [])]
    logger.info(f"Discovered {len(regions)} enabled region(s)")
    return regions


def filter_partitions(regions: List[str], partitions: List[str]) -> List[str]:
    """Keep regions that belong to one of the partitions; no partitions keeps all."""
    if not partitions:
        return list(regions)

    session = boto3.session.Session()
    kept = []
    for region in regions:
        try:
            partition = session.get_partition_for_region(region)
        except UnknownRegionError as e:
            raise RegionDiscoveryError(f"region {region} belongs to no known partition") from e
        if partition in partitions:
            kept.append(region)
    return kept


def resolve_regions(
    config: ExporterConfig,
    default_region: str,
    logger: logging.Logger
) -> List[str]:
    """
    Resolve the regions to scrape.

    Configured regions are used as given; otherwise enabled regions are
    discovered. The partition allow-list applies in both cases.

    Raises:
        RegionDiscoveryError: If discovery fails or nothing is left to scrape
    """
    regions = list(config.regions) or discover_regions(default_region, logger)
    regions = filter_partitions(regions, config.partitions)

    if not regions:
        raise RegionDiscoveryError(
            f"no regions left to scrape [partitions={','.join(config.partitions)}]"
        )

    logger.info(f"Scraping regions: {', '.join(regions)}")
    return regions

"""Tests for the on-demand price fetcher."""

import json

import pytest
from unittest.mock import MagicMock, patch

from ec2_price_exporter.fetchers.base import FetchSessionError, RecordParseError
from ec2_price_exporter.fetchers.ondemand import (
    OnDemandContext,
    OnDemandPriceFetcher,
    PRICING_REGION,
    PriceListItem,
)
from ec2_price_exporter.utils.lifecycle import InstanceLifecycle
from ec2_price_exporter.utils.metrics import Dimension

# Fixtures imported from conftest.py: logger

DIMENSION = Dimension(InstanceLifecycle.ONDEMAND, "eu-west-1", "Linux")


def price_list_entry(sku="ABC123", instance_type="m5.large", price="0.107", os="Linux"):
    return json.dumps({
        "product": {
            "productFamily": "Compute Instance",
            "sku": sku,
            "attributes": {
                "instanceType": instance_type,
                "operatingSystem": os,
                "regionCode": "eu-west-1",
            },
        },
        "serviceCode": "AmazonEC2",
        "terms": {
            "OnDemand": {
                f"{sku}.JRTCKXETXF": {
                    "offerTermCode": "JRTCKXETXF",
                    "sku": sku,
                    "priceDimensions": {
                        f"{sku}.JRTCKXETXF.6YS6EN2CT7": {
                            "unit": "Hrs",
                            "description": "$0.107 per On Demand Linux m5.large Instance Hour",
                            "pricePerUnit": {"USD": price},
                        }
                    },
                }
            }
        },
        "version": "20240101000000",
    })


@pytest.fixture
def fetcher(logger):
    return OnDemandPriceFetcher(["Linux", "Windows"], 5.0, logger)


@pytest.fixture
def context():
    return OnDemandContext(
        dimension=DIMENSION,
        pricing_client=MagicMock(),
        availability_zones=["eu-west-1a", "eu-west-1b"],
    )


def test_one_dimension_per_region_and_os(fetcher):
    assert fetcher.dimensions(["us-east-1", "eu-west-1"]) == [
        Dimension(InstanceLifecycle.ONDEMAND, "us-east-1", "Linux"),
        Dimension(InstanceLifecycle.ONDEMAND, "us-east-1", "Windows"),
        Dimension(InstanceLifecycle.ONDEMAND, "eu-west-1", "Linux"),
        Dimension(InstanceLifecycle.ONDEMAND, "eu-west-1", "Windows"),
    ]


def test_open_resolves_availability_zones(fetcher):
    with patch('ec2_price_exporter.fetchers.ondemand.boto3') as mock_boto3:
        mock_pricing_client = MagicMock()
        mock_ec2_client = MagicMock()
        session = mock_boto3.session.Session.return_value
        session.client.side_effect = lambda service, **kwargs: {
            'pricing': mock_pricing_client,
            'ec2': mock_ec2_client,
        }[service]
        mock_ec2_client.describe_availability_zones.return_value = {
            'AvailabilityZones': [{'ZoneName': 'eu-west-1a'}, {'ZoneName': 'eu-west-1b'}]
        }

        context = fetcher.open(DIMENSION)

        assert context.availability_zones == ["eu-west-1a", "eu-west-1b"]
        assert context.pricing_client is mock_pricing_client
        pricing_call = [c for c in session.client.call_args_list if c.args[0] == 'pricing'][0]
        assert pricing_call.kwargs['region_name'] == PRICING_REGION


def test_availability_zone_failure_is_session_error(fetcher):
    with patch('ec2_price_exporter.fetchers.ondemand.boto3') as mock_boto3:
        mock_ec2_client = MagicMock()
        mock_boto3.session.Session.return_value.client.return_value = mock_ec2_client
        mock_ec2_client.describe_availability_zones.side_effect = RuntimeError("UnauthorizedOperation")

        with pytest.raises(FetchSessionError):
            fetcher.open(DIMENSION)


def test_entries_use_term_match_filters(fetcher, context):
    paginator = context.pricing_client.get_paginator.return_value
    paginator.paginate.return_value = [
        {'PriceList': [price_list_entry("A")]},
        {'PriceList': [price_list_entry("B")]},
    ]

    entries = list(fetcher.entries(context))

    assert len(entries) == 2
    context.pricing_client.get_paginator.assert_called_once_with('get_products')
    kwargs = paginator.paginate.call_args.kwargs
    assert kwargs['ServiceCode'] == 'AmazonEC2'
    filters = {f['Field']: f['Value'] for f in kwargs['Filters']}
    assert filters == {
        'regionCode': 'eu-west-1',
        'capacitystatus': 'Used',
        'tenancy': 'Shared',
        'preInstalledSw': 'NA',
        'operatingSystem': 'Linux',
    }
    assert all(f['Type'] == 'TERM_MATCH' for f in kwargs['Filters'])


def test_parse_emits_one_record_per_zone(fetcher, context):
    records = fetcher.parse(context, price_list_entry(price="0.107"))

    assert [r.label_dict()["availability_zone"] for r in records] == ["eu-west-1a", "eu-west-1b"]
    for record in records:
        assert record.value == 0.107
        labels = record.label_dict()
        assert labels["instance_type"] == "m5.large"
        assert labels["instance_lifecycle"] == "ondemand"
        assert labels["operating_system"] == "Linux"
        assert labels["product_description"] == ""


def test_hourly_price_lookup():
    item = PriceListItem.model_validate_json(price_list_entry(sku="XYZ", price="1.5"))
    assert item.hourly_usd() == "1.5"
    assert item.instance_type == "m5.large"


@pytest.mark.parametrize("entry", [
    "not json",
    json.dumps({"product": {"sku": "A"}}),
    price_list_entry(price="bad"),
    price_list_entry(instance_type=""),
    price_list_entry().replace("6YS6EN2CT7", "OTHERRATE"),
])
def test_parse_rejects_malformed_entries(fetcher, context, entry):
    with pytest.raises(RecordParseError):
        fetcher.parse(context, entry)

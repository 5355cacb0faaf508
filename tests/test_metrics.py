"""Tests for record data structures."""

import pytest

from ec2_price_exporter.utils.lifecycle import InstanceLifecycle
from ec2_price_exporter.utils.metrics import CURRENT_PRICE, LABEL_NAMES, Dimension, ResultRecord


def test_build_fills_missing_labels_with_empty_strings():
    record = ResultRecord.build(CURRENT_PRICE, "0.5", region="us-east-1", instance_type="t3.micro")

    assert record.value == 0.5
    assert len(record.labels) == len(LABEL_NAMES)
    assert record.label_dict() == {
        "instance_type": "t3.micro",
        "region": "us-east-1",
        "availability_zone": "",
        "instance_lifecycle": "",
        "operating_system": "",
        "product_description": "",
    }


def test_build_rejects_unknown_labels():
    with pytest.raises(ValueError):
        ResultRecord.build(CURRENT_PRICE, 1.0, colour="blue")


def test_records_are_immutable():
    record = ResultRecord.build(CURRENT_PRICE, 1.0)
    with pytest.raises(AttributeError):
        record.value = 2.0


def test_dimension_str():
    assert str(Dimension(InstanceLifecycle.SPOT, "us-east-1")) == "spot:us-east-1"
    assert str(Dimension(InstanceLifecycle.ONDEMAND, "us-east-1", "Linux")) == "ondemand:us-east-1:Linux"

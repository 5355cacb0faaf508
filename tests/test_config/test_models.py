"""Tests for ExporterConfig validation."""

import pytest
from pydantic import ValidationError

from ec2_price_exporter.config.models import ExporterConfig, split_and_trim


def test_defaults():
    config = ExporterConfig()

    assert config.listen_address == ":8080"
    assert config.metrics_path == "/metrics"
    assert config.product_descriptions == ["Linux/UNIX"]
    assert config.operating_systems == ["Linux"]
    assert config.regions == []
    assert config.cache_seconds == 0
    assert config.host == "0.0.0.0"
    assert config.port == 8080


def test_comma_separated_values_are_split_and_trimmed():
    config = ExporterConfig(
        product_descriptions="Linux/UNIX, Windows (Amazon VPC)",
        operating_systems="Linux,RHEL",
        regions=" us-east-1 , eu-west-1,",
    )

    assert config.product_descriptions == ["Linux/UNIX", "Windows (Amazon VPC)"]
    assert config.operating_systems == ["Linux", "RHEL"]
    assert config.regions == ["us-east-1", "eu-west-1"]


@pytest.mark.parametrize("field,value", [
    ("product_descriptions", "Linux/UNIX,Solaris"),
    ("operating_systems", "BSD"),
    ("partitions", "aws-moon"),
    ("lifecycles", "reserved"),
    ("regions", "not a region"),
    ("metrics_path", "metrics"),
    ("log_level", "chatty"),
    ("listen_address", "localhost"),
    ("listen_address", "::1:8080"),
    ("listen_address", "[::1:8080"),
    ("listen_address", "[]:8080"),
    ("cache_seconds", -1),
])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        ExporterConfig(**{field: value})


def test_lifecycle_selection():
    assert ExporterConfig().lifecycle_enabled("spot")
    assert ExporterConfig().lifecycle_enabled("ondemand")

    config = ExporterConfig(lifecycles="Spot")
    assert config.lifecycles == ["spot"]
    assert config.lifecycle_enabled("spot")
    assert not config.lifecycle_enabled("ondemand")


def test_log_level_normalized():
    assert ExporterConfig(log_level="debug").log_level == "DEBUG"


def test_listen_address_with_host():
    config = ExporterConfig(listen_address="127.0.0.1:9100")
    assert config.host == "127.0.0.1"
    assert config.port == 9100


def test_split_and_trim_edge_cases():
    assert split_and_trim(None) == []
    assert split_and_trim("") == []
    assert split_and_trim(["a ", " ", "b"]) == ["a", "b"]


@pytest.mark.parametrize("address,host,port", [
    (":9100", "0.0.0.0", 9100),
    ("127.0.0.1:8080", "127.0.0.1", 8080),
    ("[::]:8080", "::", 8080),
    ("[::1]:9100", "::1", 9100),
])
def test_listen_address_host_and_port(address, host, port):
    config = ExporterConfig(listen_address=address)

    assert config.host == host
    assert config.port == port

"""Tests for ConfigLoader."""

import pytest
from pydantic import ValidationError

from ec2_price_exporter.config.loader import ConfigLoader


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "regions:\n"
        "  - us-east-1\n"
        "operating_systems: ${TEST_EXPORTER_OS}\n"
        "cache_seconds: 120\n"
    )
    return str(path)


def test_load_from_file_substitutes_env(config_file, monkeypatch):
    monkeypatch.setenv("TEST_EXPORTER_OS", "Linux,Windows")

    config = ConfigLoader.load_from_file(config_file)

    assert config.regions == ["us-east-1"]
    assert config.operating_systems == ["Linux", "Windows"]
    assert config.cache_seconds == 120


def test_missing_file_raises():
    with pytest.raises(FileNotFoundError):
        ConfigLoader.load_from_file("/nonexistent/config.yaml")


def test_overrides_win_over_file(config_file, monkeypatch):
    monkeypatch.setenv("TEST_EXPORTER_OS", "Linux")

    config = ConfigLoader.from_sources(config_file, {"cache_seconds": 5, "regions": None})

    assert config.cache_seconds == 5
    assert config.regions == ["us-east-1"]


def test_without_file_uses_defaults_and_overrides():
    config = ConfigLoader.from_sources(None, {"lifecycles": "spot"})

    assert config.lifecycles == ["spot"]
    assert config.cache_seconds == 0


def test_invalid_file_value_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("operating_systems: [Plan9]\n")

    with pytest.raises(ValidationError):
        ConfigLoader.load_from_file(str(path))


def test_non_mapping_file_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        ConfigLoader.load_from_file(str(path))


def test_defaults_only_fill_keys_missing_from_file(config_file, monkeypatch):
    monkeypatch.setenv("TEST_EXPORTER_OS", "Linux")

    config = ConfigLoader.from_sources(
        config_file,
        defaults={"cache_seconds": "30", "lifecycles": "spot"},
    )

    assert config.cache_seconds == 120
    assert config.lifecycles == ["spot"]

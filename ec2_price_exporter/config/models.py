"""Pydantic configuration models for the price exporter."""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
import re


PRODUCT_DESCRIPTIONS = (
    "Linux/UNIX",
    "SUSE Linux",
    "Windows",
    "Linux/UNIX (Amazon VPC)",
    "SUSE Linux (Amazon VPC)",
    "Windows (Amazon VPC)",
)

OPERATING_SYSTEMS = ("Linux", "RHEL", "SUSE", "Windows")

PARTITIONS = ("aws", "aws-cn", "aws-us-gov", "aws-iso", "aws-iso-b")

LIFECYCLES = ("spot", "ondemand")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

REGION_PATTERN = re.compile(r'^[a-z]{2}(-[a-z]+)+-\d+$')


def split_and_trim(value) -> List[str]:
    """Accept a comma separated string or a list, dropping empty items."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if str(item).strip()]


def _check_allowed(values: List[str], allowed, what: str) -> List[str]:
    for value in values:
        if value not in allowed:
            raise ValueError(
                f"{what} '{value}' is not recognized. "
                f"Accepted values: {', '.join(allowed)}"
            )
    return values


class ExporterConfig(BaseModel):
    """Root configuration model for the exporter."""
    listen_address: str = ":8080"
    metrics_path: str = "/metrics"
    log_level: str = "INFO"
    product_descriptions: List[str] = Field(default_factory=lambda: ["Linux/UNIX"])
    operating_systems: List[str] = Field(default_factory=lambda: ["Linux"])
    regions: List[str] = Field(default_factory=list)  # Empty means discover
    partitions: List[str] = Field(default_factory=list)
    lifecycles: List[str] = Field(default_factory=list)  # Empty means all
    cache_seconds: int = Field(default=0, ge=0)  # 0 means always scrape
    api_timeout_seconds: float = Field(default=30.0, gt=0)
    max_workers: Optional[int] = Field(default=None, ge=1)  # None means one thread per unit

    @field_validator(
        'product_descriptions', 'operating_systems', 'regions', 'partitions', 'lifecycles',
        mode='before'
    )
    @classmethod
    def split_lists(cls, v):
        """Allow comma separated strings for list options."""
        return split_and_trim(v)

    @field_validator('product_descriptions')
    @classmethod
    def validate_product_descriptions(cls, v: List[str]) -> List[str]:
        """Product descriptions filter spot price history."""
        return _check_allowed(v, PRODUCT_DESCRIPTIONS, "Product description")

    @field_validator('operating_systems')
    @classmethod
    def validate_operating_systems(cls, v: List[str]) -> List[str]:
        """Operating systems filter on-demand price lists."""
        return _check_allowed(v, OPERATING_SYSTEMS, "Operating system")

    @field_validator('partitions')
    @classmethod
    def validate_partitions(cls, v: List[str]) -> List[str]:
        return _check_allowed(v, PARTITIONS, "Partition")

    @field_validator('lifecycles')
    @classmethod
    def validate_lifecycles(cls, v: List[str]) -> List[str]:
        return _check_allowed([item.lower() for item in v], LIFECYCLES, "Lifecycle")

    @field_validator('regions')
    @classmethod
    def validate_regions(cls, v: List[str]) -> List[str]:
        """Validate AWS region name format (e.g. us-east-1)."""
        for region in v:
            if not REGION_PATTERN.match(region):
                raise ValueError(f"Region '{region}' is not a valid AWS region name")
        return v

    @field_validator('metrics_path')
    @classmethod
    def validate_metrics_path(cls, v: str) -> str:
        if not v.startswith('/'):
            raise ValueError('Metrics path must start with /')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @field_validator('listen_address')
    @classmethod
    def validate_listen_address(cls, v: str) -> str:
        """Expect host:port; host may be empty or a bracketed IPv6 address."""
        host, sep, port = v.rpartition(':')
        if not sep or not port.isdigit():
            raise ValueError('Listen address must be in host:port form, e.g. :8080')
        if host.startswith('[') or host.endswith(']') or ':' in host:
            if not (host.startswith('[') and host.endswith(']') and len(host) > 2):
                raise ValueError('IPv6 listen addresses must be bracketed, e.g. [::]:8080')
        return v

    @property
    def host(self) -> str:
        """Bind host, brackets stripped from IPv6 addresses."""
        host = self.listen_address.rpartition(':')[0]
        if host.startswith('['):
            return host[1:-1]
        return host or "0.0.0.0"

    @property
    def port(self) -> int:
        return int(self.listen_address.rpartition(':')[2])

    def lifecycle_enabled(self, lifecycle: str) -> bool:
        """Return True when the lifecycle is selected (all are, when none listed)."""
        return not self.lifecycles or lifecycle in self.lifecycles

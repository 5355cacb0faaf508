"""Price record data structures shared by fetchers and the metric registry."""

from dataclasses import dataclass
from typing import Dict, Tuple

from .lifecycle import InstanceLifecycle


# Union of every label any producer may emit. Producers without a value for a
# label supply "" so every record for a metric has the same label tuple shape.
LABEL_NAMES: Tuple[str, ...] = (
    "instance_type",
    "region",
    "availability_zone",
    "instance_lifecycle",
    "operating_system",
    "product_description",
)

CURRENT_PRICE = "current_price"

# metric name -> (help text, label names)
METRIC_DEFINITIONS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    CURRENT_PRICE: ("Current price of the instance type.", LABEL_NAMES),
}


@dataclass(frozen=True)
class ResultRecord:
    """One price observation plus its label dimensions."""

    metric_name: str
    value: float
    labels: Tuple[str, ...]

    @classmethod
    def build(cls, metric_name: str, value: float, **labels: str) -> "ResultRecord":
        """
        Build a record whose labels follow the LABEL_NAMES order.

        Args:
            metric_name: Logical metric the observation belongs to
            value: Parsed price
            **labels: Label values keyed by label name; missing labels become ""

        Returns:
            ResultRecord: Immutable record

        Raises:
            ValueError: If a label name is not part of LABEL_NAMES
        """
        unknown = set(labels) - set(LABEL_NAMES)
        if unknown:
            raise ValueError(f"Unknown label(s): {', '.join(sorted(unknown))}")

        return cls(
            metric_name=metric_name,
            value=float(value),
            labels=tuple(labels.get(name) or "" for name in LABEL_NAMES),
        )

    def label_dict(self) -> Dict[str, str]:
        """Return the labels keyed by name."""
        return dict(zip(LABEL_NAMES, self.labels))


@dataclass(frozen=True)
class Dimension:
    """One concurrent fetch unit: a region, or a region and operating system."""

    lifecycle: InstanceLifecycle
    region: str
    operating_system: str = ""

    def __str__(self) -> str:
        if self.operating_system:
            return f"{self.lifecycle.value}:{self.region}:{self.operating_system}"
        return f"{self.lifecycle.value}:{self.region}"

"""Label-indexed metric store rebuilt on every scrape cycle."""

from typing import Dict, Iterator, List, Optional, Tuple
import threading

from ..utils.metrics import LABEL_NAMES, METRIC_DEFINITIONS, ResultRecord


class MetricFamily:
    """Values of one metric, keyed by label tuple."""

    def __init__(self, name: str, documentation: str, label_names: Tuple[str, ...]):
        self.name = name
        self.documentation = documentation
        self.label_names = tuple(label_names)
        self.values: Dict[Tuple[str, ...], float] = {}

    def set(self, labels: Tuple[str, ...], value: float) -> None:
        if len(labels) != len(self.label_names):
            raise ValueError(
                f"Metric {self.name} expects {len(self.label_names)} label values, got {len(labels)}"
            )
        self.values[labels] = value

    def samples(self) -> List[Tuple[Tuple[str, ...], float]]:
        return sorted(self.values.items())


class MetricRegistry:
    """
    Dynamic mapping from metric name to label-indexed values.

    Families named in the definitions exist from the start of every generation;
    unseen names are created on first ingest with the full label schema. Only the
    create path takes the lock.
    """

    def __init__(self, definitions: Optional[Dict[str, Tuple[str, Tuple[str, ...]]]] = None):
        """
        Initialize registry.

        Args:
            definitions: metric name -> (help text, label names);
                defaults to METRIC_DEFINITIONS
        """
        self.definitions = dict(METRIC_DEFINITIONS if definitions is None else definitions)
        self._create_lock = threading.Lock()
        self._families: Dict[str, MetricFamily] = {}
        self.reset()

    def reset(self) -> None:
        """Discard every entry, replacing the generation wholesale."""
        self._families = {
            name: MetricFamily(name, documentation, label_names)
            for name, (documentation, label_names) in self.definitions.items()
        }

    def ingest(self, record: ResultRecord) -> None:
        """Set the value at the record's label tuple, creating its family if needed."""
        family = self._families.get(record.metric_name)
        if family is None:
            with self._create_lock:
                family = self._families.get(record.metric_name)
                if family is None:
                    family = MetricFamily(record.metric_name, "", LABEL_NAMES)
                    self._families[record.metric_name] = family
        family.set(record.labels, record.value)

    def get(self, metric_name: str, labels: Tuple[str, ...]) -> Optional[float]:
        family = self._families.get(metric_name)
        if family is None:
            return None
        return family.values.get(tuple(labels))

    def families(self) -> List[MetricFamily]:
        return [self._families[name] for name in sorted(self._families)]

    def snapshot(self) -> Iterator[Tuple[str, Tuple[str, ...], float]]:
        """Yield every (metric name, label values, value) triple in a stable order."""
        for family in self.families():
            for labels, value in family.samples():
                yield family.name, labels, value

    def __len__(self) -> int:
        return sum(len(family.values) for family in self._families.values())

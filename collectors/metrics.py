"""
Metric model shared by all ServerTech collectors.

Collectors never talk to prometheus_client directly. They produce
MetricEmission values into a MetricSink, which groups them by descriptor
and converts them into metric families when the scrape is exposed.
"""
import re
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Dict, Iterable, List, Tuple

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

# The namespace used by all metrics.
NAMESPACE = "servertech"

STATUS_HELP = "Status (1 = Normal, 0 = Not Normal)."
STATE_HELP = "State (1 = On, 0 = Off)."

REACTANCE_CODES = {
    "capacitive": 1,
    "inductive": 2,
    "resistive": 3,
}

DISPLAY_ORIENTATION_CODES = {
    "auto (inverted)": 1,
    "auto (normal)": 2,
    "inverted": 3,
    "normal": 4,
}

UNIT_SEQUENCE_CODES = {
    "normal": 1,
    "reversed": 2,
}

UPTIME_PATTERN = re.compile(
    r"(?:(\d+) days? )?(?:(\d+) hours? )?(?:(\d+) minutes? )?(\d+) seconds?"
)


class MetricKind(Enum):
    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class MetricDescriptor:
    """Identity of a metric family: fully-qualified name, help and label names."""

    subsystem: str
    name: str
    help: str
    label_names: Tuple[str, ...] = ()
    namespace: str = NAMESPACE

    @property
    def fqname(self) -> str:
        return "_".join(part for part in (self.namespace, self.subsystem, self.name) if part)

    def with_status_type(self) -> "MetricDescriptor":
        return MetricDescriptor(
            self.subsystem,
            self.name,
            self.help,
            self.label_names + ("status_type",),
            self.namespace,
        )


def descriptor(subsystem: str, name: str, help_text: str, labels: Iterable[str] = ()) -> MetricDescriptor:
    return MetricDescriptor(subsystem, name, help_text, tuple(labels))


@dataclass(frozen=True)
class MetricEmission:
    descriptor: MetricDescriptor
    kind: MetricKind
    value: float
    labels: Tuple[str, ...] = ()

    def __post_init__(self):
        if len(self.labels) != len(self.descriptor.label_names):
            raise ValueError(
                f"{self.descriptor.fqname}: expected {len(self.descriptor.label_names)} "
                f"label values, got {len(self.labels)}"
            )


def gauge(desc: MetricDescriptor, value: float, labels: Iterable[str] = ()) -> MetricEmission:
    return MetricEmission(desc, MetricKind.GAUGE, float(value), tuple(labels))


def counter(desc: MetricDescriptor, value: float, labels: Iterable[str] = ()) -> MetricEmission:
    return MetricEmission(desc, MetricKind.COUNTER, float(value), tuple(labels))


def status_value(status: str) -> float:
    return 1.0 if status.lower() == "normal" else 0.0


def state_value(state: str) -> float:
    return 1.0 if state.lower() == "on" else 0.0


def _code(vocabulary: Dict[str, int], value: str) -> float:
    # Anything outside the vocabulary is reported as 0 (Unknown)
    return float(vocabulary.get(value.lower(), 0))


def reactance_value(reactance: str) -> float:
    return _code(REACTANCE_CODES, reactance)


def display_orientation_value(orientation: str) -> float:
    return _code(DISPLAY_ORIENTATION_CODES, orientation)


def unit_sequence_value(sequence: str) -> float:
    return _code(UNIT_SEQUENCE_CODES, sequence)


def status_metric(desc: MetricDescriptor, status: str, status_type: str,
                  labels: Tuple[str, ...]) -> MetricEmission:
    """Status gauge with the status_type discriminator appended to the labels."""
    return gauge(desc, status_value(status), labels + (status_type,))


def state_metric(desc: MetricDescriptor, state: str, labels: Tuple[str, ...]) -> MetricEmission:
    return gauge(desc, state_value(state), labels)


def parse_uptime(uptime: str) -> int:
    """
    Convert the device uptime string into seconds.

    The device reports "<N> days <N> hours <N> minutes <N> seconds", where
    the days, hours and minutes segments may be absent.

    Args:
        uptime: Raw uptime string from the system endpoint

    Returns:
        Uptime in seconds

    Raises:
        ValueError: If the string has no seconds component or a component
            is not an unsigned integer
    """
    match = UPTIME_PATTERN.fullmatch(uptime.strip())
    if not match:
        raise ValueError(f"unrecognised uptime format: {uptime!r}")

    days, hours, minutes, seconds = (int(group or 0) for group in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


class MetricSink:
    """
    Thread-safe collection point for emissions produced during one scrape.

    Workers call add() concurrently; each call appends its batch atomically so
    emissions from different collectors never interleave inside a batch.
    """

    def __init__(self):
        self._emissions: List[MetricEmission] = []
        self._lock = Lock()

    def add(self, emissions: Iterable[MetricEmission]) -> None:
        batch = list(emissions)
        with self._lock:
            self._emissions.extend(batch)

    def emissions(self) -> List[MetricEmission]:
        with self._lock:
            return list(self._emissions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._emissions)

    def families(self) -> List[object]:
        """
        Group emissions into prometheus_client metric families.

        Families are ordered by the first emission seen for each descriptor.
        """
        families: Dict[MetricDescriptor, object] = {}
        for emission in self.emissions():
            family = families.get(emission.descriptor)
            if family is None:
                family = _new_family(emission.descriptor, emission.kind)
                families[emission.descriptor] = family
            family.add_metric(list(emission.labels), emission.value)
        return list(families.values())


def _new_family(desc: MetricDescriptor, kind: MetricKind) -> object:
    if kind is MetricKind.COUNTER:
        return CounterMetricFamily(desc.fqname, desc.help, labels=list(desc.label_names))
    return GaugeMetricFamily(desc.fqname, desc.help, labels=list(desc.label_names))


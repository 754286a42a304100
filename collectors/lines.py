"""
Line collector.
Reads /jaws/monitor/lines.
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector
from .metrics import (
    STATE_HELP, STATUS_HELP, MetricDescriptor, MetricEmission,
    descriptor, gauge, state_metric, status_metric,
)

SUBSYSTEM = "lines"

LABELS = ("id", "name")

DESCRIPTORS = {
    "amps": descriptor(SUBSYSTEM, "amps", "Floating point line current in hundredth Amps. Available only if line current sensing is present and value is known.", LABELS),
    "amps_capacity": descriptor(SUBSYSTEM, "amps_capacity", "Integer line current capacity in whole Amps.", LABELS),
    "state": descriptor(SUBSYSTEM, "state", STATE_HELP, LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class Line:
    id: str
    name: str
    current: float
    current_capacity: float
    current_status: str
    current_utilized: float
    state: str
    status: str


class LinesCollector(BaseCollector):
    subsystem = SUBSYSTEM
    path = "lines"
    entity = Line

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: List[Line]) -> Iterator[MetricEmission]:
        for line in data:
            labels = (line.id, line.name)

            yield gauge(DESCRIPTORS["amps"], line.current, labels)
            yield gauge(DESCRIPTORS["amps_capacity"], line.current_capacity, labels)

            yield status_metric(DESCRIPTORS["status"], line.current_status, "current", labels)
            yield status_metric(DESCRIPTORS["status"], line.status, "line", labels)

            yield state_metric(DESCRIPTORS["state"], line.state, labels)

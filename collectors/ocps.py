"""
Over-current protector collector.
Reads /jaws/monitor/ocps. OCPs report capacity and status only; they have
no current sensing or on/off state of their own.
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector
from .metrics import (
    STATUS_HELP, MetricDescriptor, MetricEmission,
    descriptor, gauge, status_metric,
)

SUBSYSTEM = "ocps"

LABELS = ("id", "name", "type")

DESCRIPTORS = {
    "amps_capacity": descriptor(SUBSYSTEM, "amps_capacity", "Integer over-current protector capacity in whole Amps.", LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class Ocp:
    id: str
    name: str
    current_capacity: float
    status: str
    type: str


class OcpsCollector(BaseCollector):
    subsystem = SUBSYSTEM
    path = "ocps"
    entity = Ocp

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: List[Ocp]) -> Iterator[MetricEmission]:
        for ocp in data:
            labels = (ocp.id, ocp.name, ocp.type)

            yield gauge(DESCRIPTORS["amps_capacity"], ocp.current_capacity, labels)
            yield status_metric(DESCRIPTORS["status"], ocp.status, "ocp", labels)

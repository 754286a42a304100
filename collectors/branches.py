"""
Branch collector.
Reads /jaws/monitor/branches: one entry per sub-circuit with current sensing.
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector
from .metrics import (
    STATE_HELP, STATUS_HELP, MetricDescriptor, MetricEmission,
    descriptor, gauge, state_metric, status_metric,
)

SUBSYSTEM = "branches"

LABELS = ("id", "name", "phase_id", "ocp_id")

DESCRIPTORS = {
    "amps": descriptor(SUBSYSTEM, "amps", "Floating point branch current in hundredth Amps. Available only if branch current sensing is present and value is known.", LABELS),
    "amps_capacity": descriptor(SUBSYSTEM, "amps_capacity", "Integer branch current capacity in whole Amps.", LABELS),
    "state": descriptor(SUBSYSTEM, "state", STATE_HELP, LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class Branch:
    id: str
    name: str
    current: float
    current_capacity: float
    current_status: str
    current_utilized: float
    ocp_id: str
    phase_id: str
    state: str
    status: str


class BranchesCollector(BaseCollector):
    """Branch current, capacity, status and state."""

    subsystem = SUBSYSTEM
    path = "branches"
    entity = Branch

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: List[Branch]) -> Iterator[MetricEmission]:
        for branch in data:
            labels = (branch.id, branch.name, branch.phase_id, branch.ocp_id)

            yield gauge(DESCRIPTORS["amps"], branch.current, labels)
            yield gauge(DESCRIPTORS["amps_capacity"], branch.current_capacity, labels)

            yield status_metric(DESCRIPTORS["status"], branch.current_status, "current", labels)
            yield status_metric(DESCRIPTORS["status"], branch.status, "branch", labels)

            yield state_metric(DESCRIPTORS["state"], branch.state, labels)

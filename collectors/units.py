"""
Unit collector.
Reads /jaws/monitor/units: the PDU chassis units (master and link units).
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector
from .metrics import (
    STATUS_HELP, MetricDescriptor, MetricEmission,
    descriptor, display_orientation_value, gauge, status_metric, unit_sequence_value,
)

SUBSYSTEM = "units"

LABELS = ("id", "name", "type")

# Fields the unit_sequence metric may be read from
UNIT_SEQUENCE_SOURCES = ("display_orientation", "unit_sequence")
DEFAULT_UNIT_SEQUENCE_SOURCE = "display_orientation"

DESCRIPTORS = {
    "display_orientation": descriptor(SUBSYSTEM, "display_orientation", "0 = Unknown, 1 = Auto (inverted), 2 = Auto (Normal), 3 = Inverted, 4 = Normal.", LABELS),
    "unit_sequence": descriptor(SUBSYSTEM, "unit_sequence", "0 = Unknown, 1 = Normal, 2 = Reversed.", LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class Unit:
    id: str
    name: str
    display_orientation: str
    unit_sequence: str
    status: str
    type: str


class UnitsCollector(BaseCollector):
    """
    Display orientation, outlet sequence and status for each unit.

    The unit_sequence metric has historically been derived from the
    display_orientation field. The "unit_sequence_source" option selects
    which field feeds it so deployments can switch to the dedicated
    unit_sequence field explicitly.
    """

    subsystem = SUBSYSTEM
    path = "units"
    entity = Unit

    def __init__(self, config: dict, client, error_counter):
        super().__init__(config, client, error_counter)

        self.unit_sequence_source = self.config.get(
            "unit_sequence_source", DEFAULT_UNIT_SEQUENCE_SOURCE
        )
        if self.unit_sequence_source not in UNIT_SEQUENCE_SOURCES:
            raise ValueError(
                f"Unsupported unit_sequence_source: {self.unit_sequence_source}. "
                f"Supported sources: {', '.join(UNIT_SEQUENCE_SOURCES)}"
            )

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: List[Unit]) -> Iterator[MetricEmission]:
        for unit in data:
            labels = (unit.id, unit.name, unit.type)

            yield gauge(
                DESCRIPTORS["display_orientation"],
                display_orientation_value(unit.display_orientation),
                labels,
            )

            sequence = getattr(unit, self.unit_sequence_source)
            yield gauge(DESCRIPTORS["unit_sequence"], unit_sequence_value(sequence), labels)

            yield status_metric(DESCRIPTORS["status"], unit.status, "unit", labels)

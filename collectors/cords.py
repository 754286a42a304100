"""
Cord collector.
Reads /jaws/monitor/cords: the input power cords feeding the PDU.
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector
from .metrics import (
    STATE_HELP, STATUS_HELP, MetricDescriptor, MetricEmission,
    descriptor, gauge, state_metric, status_metric,
)

SUBSYSTEM = "cords"

LABELS = ("id", "name", "plug_type")

DESCRIPTORS = {
    "watts": descriptor(SUBSYSTEM, "watts", "Integer cord power in Watts. Available only if cord power sensing is present and value is known (AC or DC).", LABELS),
    "watts_capacity": descriptor(SUBSYSTEM, "watts_capacity", "Integer cord power capacity in Watts.", LABELS),
    "voltamps": descriptor(SUBSYSTEM, "voltamps", "Integer cord apparent power ranging from 0 to maximum rated power in Volt-Amps. Available only if AC cord power sensing is present and value is known.", LABELS),
    "kilowatthours": descriptor(SUBSYSTEM, "kilowatthours", "Floating point cord energy in tenth kilowatt-hours (kWh). Available only if energy sensing is present and value is known.", LABELS),
    "hertz": descriptor(SUBSYSTEM, "hertz", "Floating point cord frequency in tenth Hertz (Hz). Available only if frequency sensing is present and value is known.", LABELS),
    "three_phase_imbalance": descriptor(SUBSYSTEM, "three_phase_imbalance", "Floating point 3 phase out of balance percentage in tenths. Available only if 3-phase AC cord current sensing is present and value is known.", LABELS),
    "power_factor": descriptor(SUBSYSTEM, "power_factor", "Floating point cord power factor in hundredths. Available only if AC cord power factor sensing is present and value is known.", LABELS),
    "state": descriptor(SUBSYSTEM, "state", STATE_HELP, LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class Cord:
    id: str
    name: str
    active_power: float
    active_power_status: str
    apparent_power: float
    apparent_power_status: str
    energy: float
    frequency: float
    power_capacity: float
    power_factor: float
    power_factor_status: str
    power_utilized: float
    plug_type: str
    state: str
    status: str
    three_phase_imbalance: float
    three_phase_imbalance_status: str


class CordsCollector(BaseCollector):
    """
    Power, energy and frequency readings for each input cord.

    A cord reports five separate status values which share one status
    metric, told apart by the status_type label.
    """

    subsystem = SUBSYSTEM
    path = "cords"
    entity = Cord

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: List[Cord]) -> Iterator[MetricEmission]:
        status = DESCRIPTORS["status"]

        for cord in data:
            labels = (cord.id, cord.name, cord.plug_type)

            yield gauge(DESCRIPTORS["watts"], cord.active_power, labels)
            yield gauge(DESCRIPTORS["watts_capacity"], cord.power_capacity, labels)
            yield gauge(DESCRIPTORS["voltamps"], cord.apparent_power, labels)
            yield gauge(DESCRIPTORS["kilowatthours"], cord.energy, labels)
            yield gauge(DESCRIPTORS["hertz"], cord.frequency, labels)
            yield gauge(DESCRIPTORS["three_phase_imbalance"], cord.three_phase_imbalance, labels)
            yield gauge(DESCRIPTORS["power_factor"], cord.power_factor, labels)

            yield status_metric(status, cord.active_power_status, "active power", labels)
            yield status_metric(status, cord.apparent_power_status, "apparent power", labels)
            yield status_metric(status, cord.power_factor_status, "power factor", labels)
            yield status_metric(status, cord.three_phase_imbalance_status, "three phase imbalance", labels)
            yield status_metric(status, cord.status, "cord", labels)

            yield state_metric(DESCRIPTORS["state"], cord.state, labels)

"""
Phase collector.
Reads /jaws/monitor/phases: one entry per AC phase.
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector
from .metrics import (
    STATE_HELP, STATUS_HELP, MetricDescriptor, MetricEmission,
    descriptor, gauge, reactance_value, state_metric, status_metric,
)

SUBSYSTEM = "phases"

LABELS = ("id", "name")

DESCRIPTORS = {
    "watts": descriptor(SUBSYSTEM, "watts", "Integer phase power in Watts. Available only if phase power sensing is present and value is known (AC or DC).", LABELS),
    "voltamps": descriptor(SUBSYSTEM, "voltamps", "Integer phase apparent power in Volt-Amps. Available only if phase apparent power sensing is present and value is known.", LABELS),
    "amps": descriptor(SUBSYSTEM, "amps", "Floating point phase current in hundredth Amps. Available only if phase current sensing is present and value is known.", LABELS),
    "crest_factor": descriptor(SUBSYSTEM, "crest_factor", "Floating point phase crest factor in tenths. Available only if phase crest factor sensing is present and value is known.", LABELS),
    "kilowatthours": descriptor(SUBSYSTEM, "kilowatthours", "Floating point phase energy in tenth kilowatt-hours (kWh). Available only if energy sensing is present and value is known.", LABELS),
    "nominal_volts": descriptor(SUBSYSTEM, "nominal_volts", "Integer phase nominal voltage in Volts. Available only if phase voltage sensing present.", LABELS),
    "power_factor": descriptor(SUBSYSTEM, "power_factor", "Floating point phase power factor in hundredths. Available only if phase power factor sensing is present and value is known.", LABELS),
    "reactance": descriptor(SUBSYSTEM, "reactance", "Measured phase reactance. Available only if phase power factor sensing is present and value is known (0 = Unknown, 1 = Capacitive, 2 = Inductive, 3 = Resistive).", LABELS),
    "volts": descriptor(SUBSYSTEM, "volts", "Floating point phase voltage in tenth Volts. Available only if voltage sensing is present and value is known.", LABELS),
    "volts_deviation": descriptor(SUBSYSTEM, "volts_deviation", "Floating point phase deviation percentage from nominal voltage in tenths. Available only if phase voltage sensing present.", LABELS),
    "state": descriptor(SUBSYSTEM, "state", STATE_HELP, LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class Phase:
    id: str
    name: str
    active_power: float
    apparent_power: float
    crest_factor: float
    current: float
    energy: float
    nominal_voltage: float
    power_factor: float
    power_factor_status: str
    reactance: str
    state: str
    status: str
    voltage: float
    voltage_status: str
    voltage_deviation: float


class PhasesCollector(BaseCollector):
    subsystem = SUBSYSTEM
    path = "phases"
    entity = Phase

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: List[Phase]) -> Iterator[MetricEmission]:
        status = DESCRIPTORS["status"]

        for phase in data:
            labels = (phase.id, phase.name)

            yield gauge(DESCRIPTORS["watts"], phase.active_power, labels)
            yield gauge(DESCRIPTORS["voltamps"], phase.apparent_power, labels)
            yield gauge(DESCRIPTORS["amps"], phase.current, labels)
            yield gauge(DESCRIPTORS["crest_factor"], phase.crest_factor, labels)
            yield gauge(DESCRIPTORS["kilowatthours"], phase.energy, labels)
            yield gauge(DESCRIPTORS["nominal_volts"], phase.nominal_voltage, labels)
            yield gauge(DESCRIPTORS["power_factor"], phase.power_factor, labels)
            yield gauge(DESCRIPTORS["volts"], phase.voltage, labels)
            yield gauge(DESCRIPTORS["volts_deviation"], phase.voltage_deviation, labels)

            yield gauge(DESCRIPTORS["reactance"], reactance_value(phase.reactance), labels)

            yield status_metric(status, phase.power_factor_status, "power factor", labels)
            yield status_metric(status, phase.voltage_status, "voltage", labels)
            yield status_metric(status, phase.status, "phase", labels)

            yield state_metric(DESCRIPTORS["state"], phase.state, labels)

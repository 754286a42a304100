"""
Outlet collector.
Reads /jaws/monitor/outlets: one entry per switched/metered receptacle.
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector
from .metrics import (
    STATE_HELP, STATUS_HELP, MetricDescriptor, MetricEmission,
    descriptor, gauge, reactance_value, state_metric, status_metric,
)

SUBSYSTEM = "outlets"

LABELS = ("id", "name", "branch_id", "ocp_id", "phase_id", "socket_adapter", "socket_type")

DESCRIPTORS = {
    "watts": descriptor(SUBSYSTEM, "watts", "Integer outlet power in Watts. Available only if outlet power sensing is present and value is known (AC or DC).", LABELS),
    "watts_capacity": descriptor(SUBSYSTEM, "watts_capacity", "Integer power capacity in VA for AC products and Watts for DC products.", LABELS),
    "voltamps": descriptor(SUBSYSTEM, "voltamps", "Integer outlet apparent power in Volt-Amps. Available only if outlet apparent power sensing is present and value is known.", LABELS),
    "amps": descriptor(SUBSYSTEM, "amps", "Floating point outlet current in hundredth Amps. Available only if outlet current sensing is present and value is known.", LABELS),
    "amps_capacity": descriptor(SUBSYSTEM, "amps_capacity", "Integer outlet current capacity in whole Amps.", LABELS),
    "crest_factor": descriptor(SUBSYSTEM, "crest_factor", "Floating point outlet crest factor in tenths. Available only if outlet crest factor sensing is present and value is known.", LABELS),
    "kilowatthours": descriptor(SUBSYSTEM, "kilowatthours", "Floating point outlet energy in tenth kilowatt-hours (kWh). Available only if energy sensing is present and value is known.", LABELS),
    "power_factor": descriptor(SUBSYSTEM, "power_factor", "Floating point outlet power factor in hundredths. Available only if outlet power factor sensing is present and value is known.", LABELS),
    "reactance": descriptor(SUBSYSTEM, "reactance", "Measured outlet reactance. Available only if outlet power factor sensing is present and value is known (0 = Unknown, 1 = Capacitive, 2 = Inductive, 3 = Resistive).", LABELS),
    "volts": descriptor(SUBSYSTEM, "volts", "Floating point outlet voltage in tenth Volts. Available only if voltage sensing is present and value is known.", LABELS),
    "state": descriptor(SUBSYSTEM, "state", STATE_HELP, LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class Outlet:
    id: str
    name: str
    active_power: float
    active_power_status: str
    apparent_power: float
    branch_id: str
    control_state: str
    current: float
    current_capacity: float
    current_status: str
    current_utilized: float
    energy: float
    ocp_id: str
    phase_id: str
    power_capacity: float
    power_factor_status: str
    socket_adapter: str
    socket_type: str
    state: str
    status: str
    voltage: float
    # Only reported by outlets with power factor sensing
    crest_factor: float
    power_factor: float
    reactance: str


class OutletsCollector(BaseCollector):
    subsystem = SUBSYSTEM
    path = "outlets"
    entity = Outlet

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: List[Outlet]) -> Iterator[MetricEmission]:
        status = DESCRIPTORS["status"]

        for outlet in data:
            labels = (
                outlet.id,
                outlet.name,
                outlet.branch_id,
                outlet.ocp_id,
                outlet.phase_id,
                outlet.socket_adapter,
                outlet.socket_type,
            )

            yield gauge(DESCRIPTORS["watts"], outlet.active_power, labels)
            yield gauge(DESCRIPTORS["watts_capacity"], outlet.power_capacity, labels)
            yield gauge(DESCRIPTORS["voltamps"], outlet.apparent_power, labels)
            yield gauge(DESCRIPTORS["amps"], outlet.current, labels)
            yield gauge(DESCRIPTORS["amps_capacity"], outlet.current_capacity, labels)
            yield gauge(DESCRIPTORS["crest_factor"], outlet.crest_factor, labels)
            yield gauge(DESCRIPTORS["kilowatthours"], outlet.energy, labels)
            yield gauge(DESCRIPTORS["power_factor"], outlet.power_factor, labels)
            yield gauge(DESCRIPTORS["volts"], outlet.voltage, labels)

            yield gauge(DESCRIPTORS["reactance"], reactance_value(outlet.reactance), labels)

            yield status_metric(status, outlet.active_power_status, "active power", labels)
            yield status_metric(status, outlet.current_status, "current", labels)
            yield status_metric(status, outlet.power_factor_status, "power factor", labels)
            yield status_metric(status, outlet.status, "outlet", labels)

            yield state_metric(DESCRIPTORS["state"], outlet.state, labels)

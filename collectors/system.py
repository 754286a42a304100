"""
System collector.
Reads /jaws/monitor/system, which returns a single object rather than an
array: firmware identity, active users, a roll-up status per entity kind
and a free-text uptime.

Example uptime value:
"12 days 3 hours 41 minutes 7 seconds"
"""
from dataclasses import dataclass
from typing import Iterator, List

from .base import BaseCollector, DecodeError
from .metrics import (
    STATUS_HELP, MetricDescriptor, MetricEmission,
    counter, descriptor, gauge, parse_uptime, status_metric,
)

SUBSYSTEM = "system"

LABELS = ("firmware", "nic_serial_number")

DESCRIPTORS = {
    "active_users": descriptor(SUBSYSTEM, "active_users", "Integer number of active users logged in.", LABELS),
    "uptime_seconds": descriptor(SUBSYSTEM, "uptime_seconds", "System uptime in seconds.", LABELS),
    "status": descriptor(SUBSYSTEM, "status", STATUS_HELP, LABELS).with_status_type(),
}


@dataclass
class SystemInfo:
    active_users: float
    firmware: str
    nic_serial_number: str
    status_branches: str
    status_cords: str
    status_lines: str
    status_ocps: str
    status_outlets: str
    status_phases: str
    status_units: str
    uptime: str


class SystemCollector(BaseCollector):
    subsystem = SUBSYSTEM
    path = "system"
    entity = SystemInfo
    many = False

    @classmethod
    def descriptors(cls) -> List[MetricDescriptor]:
        return list(DESCRIPTORS.values())

    def process(self, data: SystemInfo) -> Iterator[MetricEmission]:
        labels = (data.firmware, data.nic_serial_number)
        status = DESCRIPTORS["status"]

        yield gauge(DESCRIPTORS["active_users"], data.active_users, labels)

        yield status_metric(status, data.status_branches, "branches", labels)
        yield status_metric(status, data.status_cords, "cords", labels)
        yield status_metric(status, data.status_lines, "lines", labels)
        yield status_metric(status, data.status_ocps, "ocps", labels)
        yield status_metric(status, data.status_outlets, "outlets", labels)
        yield status_metric(status, data.status_phases, "phases", labels)
        yield status_metric(status, data.status_units, "units", labels)

        try:
            uptime = parse_uptime(data.uptime)
        except ValueError as e:
            raise DecodeError(f"cannot parse system uptime: {e}")

        yield counter(DESCRIPTORS["uptime_seconds"], uptime, labels)
